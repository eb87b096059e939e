"""Typed async client for the Questrade REST API."""

from questrade.adapters.client import Client, ClientBuilder
from questrade.core.domain.environment import Environment
from questrade.core.domain.models import ApiToken
from questrade.core.envelope import ApiResponse
from questrade.core.errors import (
    ApiError,
    BuilderError,
    InternalError,
    QuestradeError,
    TransportError,
)
from questrade.core.services.token_keeper import KeeperHooks, TokenKeeper

__all__ = [
    "ApiError",
    "ApiResponse",
    "ApiToken",
    "BuilderError",
    "Client",
    "ClientBuilder",
    "Environment",
    "InternalError",
    "KeeperHooks",
    "QuestradeError",
    "TokenKeeper",
    "TransportError",
]
