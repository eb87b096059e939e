"""Deployment environments of the Questrade authorization server.

Each environment resolves deterministically to a login host plus the fixed
`authorize` and `token` endpoints under it. The hosts are static constants,
so a failed join means a broken constant, reported as `InternalError`.
"""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

import httpx

from questrade.core.errors import InternalError


class AuthEndpoints(NamedTuple):
    authorize_url: str
    token_url: str


_HOSTS: dict[str, str] = {
    "practice": "https://practicelogin.questrade.com",
    "production": "https://login.questrade.com",
}

AUTHORIZE_PATH = "/oauth2/authorize"
TOKEN_PATH = "/oauth2/token"


class Environment(str, Enum):
    """Supported Questrade environments."""

    PRACTICE = "practice"
    PRODUCTION = "production"

    @classmethod
    def default(cls) -> "Environment":
        return cls.PRODUCTION

    def host(self) -> httpx.URL:
        """Base URL of the authorization server for this environment."""

        try:
            return httpx.URL(_HOSTS[self.value])
        except httpx.InvalidURL as exc:
            raise InternalError(f"invalid host for environment {self.value!r}: {exc}") from exc

    def _join(self, path: str) -> str:
        try:
            return str(self.host().join(path))
        except httpx.InvalidURL as exc:
            raise InternalError(f"cannot join {path!r} onto {self.value!r} host: {exc}") from exc

    def authorize_url(self) -> str:
        return self._join(AUTHORIZE_PATH)

    def token_url(self) -> str:
        return self._join(TOKEN_PATH)

    def endpoints(self) -> AuthEndpoints:
        return AuthEndpoints(authorize_url=self.authorize_url(), token_url=self.token_url())

    def label(self) -> str:
        """Human readable label for tables and logging."""

        return "Practice" if self is Environment.PRACTICE else "Production"
