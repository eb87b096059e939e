"""Single-flight refresh coordination.

The client itself performs no locking: two concurrent refreshes with the
same refresh token race, and the server lets at most one win. `TokenKeeper`
is the opt-in layer for callers that share one credential between tasks:

- refreshes are serialized behind one `asyncio.Lock`;
- callers that queue behind an in-flight refresh reuse its result;
- the access token is refreshed proactively once it is within `leeway` of
  `expires_at`;
- `invalidate(stale)` refreshes reactively after an authentication failure,
  unless another task already replaced `stale`.

Persisting the rotated refresh token stays with the caller (`on_rotate`).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from questrade.core.domain.models import ApiToken, utcnow
from questrade.core.interfaces.token_source import TokenSource

logger = logging.getLogger(__name__)

RotateHook = Callable[[ApiToken], Optional[Awaitable[None]]]


@dataclass
class KeeperHooks:
    """Optional callbacks for the caller (persistence, UI)."""

    on_rotate: RotateHook | None = None


class TokenKeeper:
    """Holds the current `ApiToken` of one credential chain."""

    def __init__(
        self,
        source: TokenSource,
        refresh_token: str,
        *,
        leeway: timedelta = timedelta(seconds=60),
        hooks: KeeperHooks | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not refresh_token:
            raise ValueError("refresh_token must not be empty")
        self._source = source
        self._initial_refresh_token = refresh_token
        self._leeway = leeway
        self._hooks = hooks or KeeperHooks()
        self._clock = clock
        self._token: ApiToken | None = None
        self._lock = asyncio.Lock()

    @property
    def current(self) -> ApiToken | None:
        """Last token obtained, fresh or not."""

        return self._token

    def _is_fresh(self, token: ApiToken | None) -> bool:
        return token is not None and not token.is_expired(leeway=self._leeway, now=self._clock())

    async def get_token(self) -> ApiToken:
        """Return a token that is not within `leeway` of expiry, refreshing if needed."""

        token = self._token
        if self._is_fresh(token):
            return token  # type: ignore[return-value]

        async with self._lock:
            # Another task may have refreshed while this one waited.
            token = self._token
            if self._is_fresh(token):
                return token  # type: ignore[return-value]
            return await self._rotate()

    async def invalidate(self, stale: ApiToken) -> ApiToken:
        """Replace `stale` after the API rejected it; coalesces concurrent calls."""

        async with self._lock:
            if self._token is not None and self._token is not stale:
                return self._token
            return await self._rotate()

    async def _rotate(self) -> ApiToken:
        spent = (
            self._token.refresh_token.get_secret_value()
            if self._token is not None
            else self._initial_refresh_token
        )
        token = await self._source.refresh_token(spent)
        self._token = token
        logger.debug("Token rotated; next expiry %s", token.expires_at.isoformat())

        hook = self._hooks.on_rotate
        if hook is not None:
            result = hook(token)
            if inspect.isawaitable(result):
                await result
        return token
