"""Refresh-token exchange against the Questrade authorization server.

Protocol:
- `POST <login host>/oauth2/token`, form-encoded `client_id`,
  `refresh_token`, `grant_type=refresh_token`.
- 200 → `{access_token, token_type, refresh_token, api_server, expires_in}`.

One attempt per call: no caching, no retry, no re-refresh on expiry. The
refresh token passed in is spent once the exchange succeeds.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from questrade.adapters.http_client import execute
from questrade.core.domain.environment import Environment
from questrade.core.domain.models import ApiErrorBody, ApiToken, TokenResponse, utcnow
from questrade.core.errors import ApiError, InternalError

logger = logging.getLogger(__name__)

GRANT_TYPE = "refresh_token"


class TokenManager:
    """Performs refresh exchanges for one consumer key."""

    def __init__(self, *, http: httpx.AsyncClient, consumer_key: str, environment: Environment) -> None:
        self._http = http
        self._consumer_key = consumer_key
        self._environment = environment
        self._token_url = environment.token_url()

    @property
    def token_url(self) -> str:
        return self._token_url

    async def refresh(self, refresh_token: str) -> ApiToken:
        """Exchange `refresh_token` for a new `ApiToken`.

        Raises:
            ApiError: the authorization server rejected the exchange.
            TransportError: the exchange did not complete at the HTTP layer.
            InternalError: a 200 response whose body is not a token.
            ValueError: `refresh_token` is empty.
        """

        if not refresh_token or not refresh_token.strip():
            raise ValueError("refresh_token must not be empty")

        request = self._http.build_request(
            "POST",
            self._token_url,
            data={
                "client_id": self._consumer_key,
                "refresh_token": refresh_token.strip(),
                "grant_type": GRANT_TYPE,
            },
        )
        response, body = await execute(self._http, request)

        if response.status_code != httpx.codes.OK:
            error = _rejection(response, body)
            logger.warning(
                "Token exchange rejected by %s: HTTP %s [%s] %s",
                self._environment.value,
                response.status_code,
                error.code,
                error.message,
            )
            raise error

        try:
            payload = TokenResponse.model_validate_json(body)
            token = ApiToken.from_response(payload, now=utcnow())
        except ValidationError as exc:
            raise InternalError(f"unexpected token response: {exc.error_count()} validation error(s)") from exc

        logger.info(
            "Access token issued for %s, expires at %s",
            token.api_server,
            token.expires_at.isoformat(),
        )
        return token


def _rejection(response: httpx.Response, body: bytes) -> ApiError:
    """Build the `ApiError` for a non-200 token response."""

    try:
        structured = ApiErrorBody.model_validate_json(body)
    except ValidationError:
        structured = None
    if structured is not None:
        return ApiError(structured.code, structured.message, status_code=response.status_code)

    text = body.decode("utf-8", errors="replace").strip()
    message = text or response.reason_phrase or "token exchange rejected"
    return ApiError(response.status_code, message, status_code=response.status_code)
