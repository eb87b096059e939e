"""Contract for refresh-token exchangers.

`Client` satisfies it; `TokenKeeper` depends only on this Protocol, which
keeps it testable without HTTP.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from questrade.core.domain.models import ApiToken


@runtime_checkable
class TokenSource(Protocol):
    """Anything able to exchange a refresh token for a new `ApiToken`."""

    async def refresh_token(self, refresh_token: str) -> ApiToken:
        """Exchange `refresh_token`; the argument is spent on success."""

        ...
