"""
Shared builders for the test suite.

The network is replaced with `httpx.MockTransport`; handlers receive the
outgoing `httpx.Request` and return a canned `httpx.Response`.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
from pydantic import SecretStr

from questrade.adapters.client import Client
from questrade.core.domain.environment import Environment
from questrade.core.domain.models import ApiToken

API_SERVER = "https://api01.iq.questrade.com/"
CONSUMER_KEY = "consumer-key-123"

Handler = Callable[[httpx.Request], httpx.Response]


def make_token(
    *,
    api_server: str = API_SERVER,
    access_token: str = "access-abc",
    refresh_token: str = "refresh-abc",
    ttl_seconds: int = 1800,
    now: datetime | None = None,
) -> ApiToken:
    issued = now or datetime.now(timezone.utc)
    return ApiToken(
        access_token=SecretStr(access_token),
        refresh_token=SecretStr(refresh_token),
        api_server=api_server,
        expires_at=issued + timedelta(seconds=ttl_seconds),
    )


def token_body(
    *,
    access_token: str = "new-access",
    refresh_token: str = "new-refresh",
    api_server: str = API_SERVER,
    expires_in: int = 1800,
) -> dict[str, Any]:
    return {
        "access_token": access_token,
        "token_type": "Bearer",
        "expires_in": expires_in,
        "refresh_token": refresh_token,
        "api_server": api_server,
    }


def json_response(payload: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )


class Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response | Handler | Exception) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"unexpected request: {request.method} {request.url}")
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        if callable(nxt) and not isinstance(nxt, httpx.Response):
            return nxt(request)
        return nxt


def make_client(
    handler: Handler,
    *,
    environment: Environment = Environment.PRODUCTION,
    consumer_key: str = CONSUMER_KEY,
) -> Client:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return (
        Client.builder()
        .http_client(http)
        .consumer_key(consumer_key)
        .environment(environment)
        .build()
    )


ACCOUNTS_PAYLOAD: dict[str, Any] = {
    "accounts": [
        {
            "type": "Margin",
            "number": "26598145",
            "status": "Active",
            "isPrimary": True,
            "isBilling": True,
            "clientAccountType": "Individual",
        }
    ]
}

ACTIVITIES_PAYLOAD: dict[str, Any] = {
    "activities": [
        {
            "tradeDate": "2011-02-16T00:00:00.000000-05:00",
            "transactionDate": "2011-02-16T00:00:00.000000-05:00",
            "settlementDate": "2011-02-16T00:00:00.000000-05:00",
            "action": "",
            "symbol": "",
            "symbolId": 0,
            "description": "INT FR 02/04 THRU02/15@ 4 3/4%BAL 205,006 AVBAL 204,966",
            "currency": "USD",
            "quantity": 0,
            "price": 0,
            "grossAmount": 0,
            "commission": 0,
            "netAmount": -320.08,
            "type": "Interest",
        }
    ]
}

CANDLES_PAYLOAD: dict[str, Any] = {
    "candles": [
        {
            "start": "2014-01-02T00:00:00.000000-05:00",
            "end": "2014-01-03T00:00:00.000000-05:00",
            "low": 70.3,
            "high": 70.78,
            "open": 70.68,
            "close": 70.73,
            "volume": 983609,
        }
    ]
}

MARKETS_PAYLOAD: dict[str, Any] = {
    "markets": [
        {
            "name": "TSX",
            "tradingVenues": ["TSX", "ALPH", "CHIC", "OMGA", "PURE"],
            "defaultTradingVenue": "AUTO",
            "primaryOrderRoutes": ["AUTO"],
            "secondaryOrderRoutes": ["TSX", "AUTO"],
            "level1Feeds": ["ALPH", "CHIC", "OMGA", "PURE", "TSX"],
            "level2Feeds": ["PINX"],
            "extendedStartTime": "2014-10-06T07:00:00.000000-04:00",
            "startTime": "2014-10-06T09:30:00.000000-04:00",
            "endTime": "2014-10-06T09:30:00.000000-04:00",
            "snapQuotesLimit": 99999,
        }
    ]
}

QUOTES_PAYLOAD: dict[str, Any] = {
    "quotes": [
        {
            "symbol": "THI.TO",
            "symbolId": 38738,
            "tier": " ",
            "bidPrice": 83.65,
            "bidSize": 6500,
            "askPrice": 83.67,
            "askSize": 9100,
            "lastTradePriceTrHrs": 83.66,
            "lastTradePrice": 83.66,
            "lastTradeSize": 3100,
            "lastTradeTick": "Equal",
            "lastTradeTime": "2014-10-24T20:06:40.131000-04:00",
            "volume": 80483500,
            "openPrice": 83.66,
            "highPrice": 83.86,
            "lowPrice": 83.66,
            "delay": 0,
            "isHalted": False,
        }
    ]
}

TIME_PAYLOAD: dict[str, Any] = {"time": "2014-10-24T12:14:42.730000-04:00"}
