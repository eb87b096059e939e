"""Questrade API client.

Responsibilities:
- Hold the immutable triple (HTTP transport, consumer key, environment).
- Delegate refresh exchanges to `TokenManager`.
- Build authenticated requests against the token's session host and decode
  responses through `ApiResponse` (request pipeline).
- Expose the per-resource queries as thin path/query compositions.

The client keeps no token state: every call receives the `ApiToken` to use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, TypeVar

import httpx

from questrade.adapters.auth import TokenManager
from questrade.adapters.http_client import build_async_client, execute
from questrade.core.config import AppSettings
from questrade.core.domain.accounts import Accounts, Activities, Activity
from questrade.core.domain.environment import Environment
from questrade.core.domain.markets import Candle, Candles, Interval, Market, Markets, Quote, Quotes
from questrade.core.domain.models import ApiToken, ServerTime
from questrade.core.envelope import ApiResponse
from questrade.core.errors import BuilderError, InternalError

logger = logging.getLogger(__name__)

T = TypeVar("T")

QueryParams = Mapping[str, str | int | float]


def join_api_url(api_server: str, path: str) -> httpx.URL:
    """Join the session host and a resource path with exactly one `/`.

    A path prefix on `api_server` is kept; leading slashes on `path` do not
    reset it.
    """

    base = api_server.rstrip("/")
    suffix = path.lstrip("/")
    try:
        return httpx.URL(f"{base}/{suffix}")
    except httpx.InvalidURL as exc:
        raise InternalError(f"cannot build URL from {api_server!r} and {path!r}: {exc}") from exc


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        raise ValueError("timestamps sent to the API must be timezone-aware")
    return value.isoformat()


@dataclass(frozen=True)
class ClientConfig:
    """Validated construction parameters of a `Client`."""

    http: httpx.AsyncClient
    consumer_key: str
    environment: Environment


class ClientBuilder:
    """Collects the optional configuration and validates it once in `build()`."""

    def __init__(self) -> None:
        self._http: httpx.AsyncClient | None = None
        self._consumer_key: str | None = None
        self._environment: Environment | None = Environment.default()

    def http_client(self, http: httpx.AsyncClient) -> "ClientBuilder":
        self._http = http
        return self

    def consumer_key(self, consumer_key: str) -> "ClientBuilder":
        self._consumer_key = consumer_key
        return self

    def environment(self, environment: Environment | str | None) -> "ClientBuilder":
        if isinstance(environment, str):
            try:
                environment = Environment(environment.lower())
            except ValueError as exc:
                raise BuilderError(f"unknown environment {environment!r}") from exc
        self._environment = environment
        return self

    def build(self) -> "Client":
        """Build the client.

        Raises:
            BuilderError: the HTTP client, consumer key or environment is missing.
        """

        if self._http is None:
            raise BuilderError("an HTTP client is required (ClientBuilder.http_client)")
        if self._consumer_key is None or not self._consumer_key.strip():
            raise BuilderError("a consumer key is required (ClientBuilder.consumer_key)")
        if self._environment is None:
            raise BuilderError("an environment is required (ClientBuilder.environment)")
        return Client(
            ClientConfig(
                http=self._http,
                consumer_key=self._consumer_key.strip(),
                environment=self._environment,
            )
        )


class Client:
    """Typed async binding for the Questrade REST API."""

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._auth = TokenManager(
            http=config.http,
            consumer_key=config.consumer_key,
            environment=config.environment,
        )

    @staticmethod
    def builder() -> ClientBuilder:
        return ClientBuilder()

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "Client":
        """Build a client (and its own HTTP handle) from `AppSettings`."""

        settings = settings or AppSettings()
        if not settings.consumer_key:
            raise BuilderError("QUESTRADE_CONSUMER_KEY is not configured")
        return (
            cls.builder()
            .http_client(build_async_client(settings, transport=transport))
            .consumer_key(settings.consumer_key)
            .environment(settings.environment)
            .build()
        )

    @property
    def environment(self) -> Environment:
        return self._config.environment

    @property
    def consumer_key(self) -> str:
        return self._config.consumer_key

    async def aclose(self) -> None:
        await self._config.http.aclose()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def refresh_token(self, refresh_token: str) -> ApiToken:
        """Exchange `refresh_token` for a new `ApiToken` (one attempt)."""

        return await self._auth.refresh(refresh_token)

    # ------------------------------------------------------------------
    # Request pipeline
    # ------------------------------------------------------------------

    def build_request(
        self,
        method: str,
        token: ApiToken,
        path: str,
        *,
        params: QueryParams | None = None,
    ) -> httpx.Request:
        """Build an authenticated request against `token.api_server`. No I/O."""

        url = join_api_url(token.api_server, path)
        try:
            return self._config.http.build_request(
                method,
                url,
                params=dict(params) if params else None,
                headers={"Authorization": f"Bearer {token.access_token.get_secret_value()}"},
            )
        except httpx.InvalidURL as exc:
            raise InternalError(f"cannot build request for {path!r}: {exc}") from exc

    async def send(self, request: httpx.Request, model: type[T] | Any) -> T:
        """Send `request` once and decode the body as `ApiResponse[model]`.

        Raises:
            ApiError: the body is the `{code, message}` error shape.
            TransportError: connect/timeout/redirect/write fault.
            InternalError: unreadable or undecodable body.
        """

        response, body = await execute(self._config.http, request)
        envelope: ApiResponse[T] = ApiResponse.decode(body, model)
        if not envelope.ok:
            logger.debug(
                "API error on %s %s: HTTP %s",
                request.method,
                request.url.path,
                response.status_code,
            )
        return envelope.unwrap(status_code=response.status_code)

    async def _get(self, token: ApiToken, path: str, model: type[T] | Any, params: QueryParams | None = None) -> T:
        return await self.send(self.build_request("GET", token, path, params=params), model)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def time(self, token: ApiToken) -> ServerTime:
        return await self._get(token, "v1/time", ServerTime)

    async def accounts(self, token: ApiToken) -> Accounts:
        return await self._get(token, "v1/accounts", Accounts)

    async def account_activities(
        self,
        token: ApiToken,
        account_id: str,
        start: datetime,
        end: datetime,
    ) -> list[Activity]:
        data = await self._get(
            token,
            f"v1/accounts/{account_id}/activities",
            Activities,
            {"startTime": _rfc3339(start), "endTime": _rfc3339(end)},
        )
        return data.activities

    async def markets(self, token: ApiToken) -> list[Market]:
        data = await self._get(token, "v1/markets", Markets)
        return data.markets

    async def market_candles(
        self,
        token: ApiToken,
        symbol_id: int,
        start: datetime,
        end: datetime,
        interval: Interval,
    ) -> list[Candle]:
        data = await self._get(
            token,
            f"v1/markets/candles/{symbol_id}",
            Candles,
            {
                "startTime": _rfc3339(start),
                "endTime": _rfc3339(end),
                "interval": Interval(interval).value,
            },
        )
        return data.candles

    async def market_quotes_symbol(self, token: ApiToken, symbol_id: int) -> list[Quote]:
        data = await self._get(token, f"v1/markets/quotes/{symbol_id}", Quotes)
        return data.quotes

    async def market_quotes_symbols(self, token: ApiToken, symbol_ids: Iterable[int]) -> list[Quote]:
        ids = ",".join(str(int(symbol_id)) for symbol_id in symbol_ids)
        if not ids:
            raise ValueError("at least one symbol id is required")
        data = await self._get(token, "v1/markets/quotes", Quotes, {"ids": ids})
        return data.quotes
