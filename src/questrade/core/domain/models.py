"""Domain models (Pydantic v2).

- `ApiToken` is the immutable credential produced by a refresh exchange.
- `TokenResponse` is the wire shape of the token endpoint.
- `ApiErrorBody` is the error variant of every resource response.
- `ApiModel` is the strict base of every resource shape: camelCase on the
  wire, unknown fields rejected.

Note:
- These models describe *what* the API exchanges, not *how* it is fetched.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
from pydantic import AwareDatetime, BaseModel, Field, SecretStr, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApiModel(BaseModel):
    """Base of resource payloads.

    Field presence is part of the contract: a missing required field or an
    unexpected one is a decode failure. Callers that need forward
    compatibility must widen the shape explicitly.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class ApiErrorBody(BaseModel):
    """Structured API error: `{"code": 1017, "message": "..."}`.

    Only `code` and `message` are required; other fields the server adds are ignored.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    code: int = Field(..., description="Questrade error code.")
    message: str = Field(..., description="Human readable error message.")


class TokenResponse(BaseModel):
    """Body returned by `POST /oauth2/token` on success."""

    model_config = ConfigDict(extra="ignore")

    access_token: SecretStr
    token_type: str = Field(default="Bearer")
    refresh_token: SecretStr
    api_server: str = Field(..., min_length=1)
    expires_in: int = Field(..., ge=0, description="Access token time-to-live (seconds).")

    @field_validator("access_token", "refresh_token")
    @classmethod
    def _non_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("token must not be empty")
        return value


class ApiToken(BaseModel):
    """Credential bundle for one API session.

    Rotation:
    - Every successful refresh yields a brand-new `ApiToken`; the previous
      `refresh_token` is spent server-side at that instant.
    - Instances are frozen. Code holding a stale copy keeps a stale copy,
      it never observes a half-updated token.
    """

    model_config = ConfigDict(frozen=True)

    access_token: SecretStr = Field(..., description="Short-lived bearer credential.")
    refresh_token: SecretStr = Field(..., description="Single-use credential for the next refresh.")
    api_server: str = Field(
        ...,
        description="Session-scoped API host; every resource request targets it.",
    )
    expires_at: AwareDatetime = Field(..., description="Absolute expiry of the access token (UTC).")

    @field_validator("api_server")
    @classmethod
    def _check_api_server(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid api_server URL: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"api_server must be an absolute http(s) URL, got {value!r}")
        return value

    @classmethod
    def from_response(cls, response: TokenResponse, *, now: datetime | None = None) -> "ApiToken":
        issued_at = now or utcnow()
        return cls(
            access_token=response.access_token,
            refresh_token=response.refresh_token,
            api_server=response.api_server,
            expires_at=issued_at + timedelta(seconds=response.expires_in),
        )

    def expires_in(self, *, now: datetime | None = None) -> timedelta:
        return self.expires_at - (now or utcnow())

    def is_expired(self, *, leeway: timedelta = timedelta(0), now: datetime | None = None) -> bool:
        """True once `now` is within `leeway` of `expires_at`."""

        return self.expires_in(now=now) <= leeway


class ServerTime(ApiModel):
    time: datetime
