"""Error taxonomy of the client.

Four kinds, no further subtyping:

- `ApiError`: structured `{code, message}` returned by Questrade.
- `TransportError`: connect/timeout/redirect/request-write faults. The
  caller may retry these with backoff.
- `InternalError`: local faults (body read or parse, URL construction,
  malformed configuration). Not retried.
- `BuilderError`: mandatory configuration missing at construction time.

Callers dispatch on the class to decide retry vs. abort vs. re-authentication.
"""

from __future__ import annotations

import httpx


class QuestradeError(Exception):
    """Base error of the client."""


class ApiError(QuestradeError):
    """Structured error returned by the API (`{code, message}`)."""

    def __init__(self, code: int, message: str, *, status_code: int | None = None) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{code}] {message}")


class TransportError(QuestradeError):
    """Failure at the HTTP layer (connect, timeout, redirect, request write)."""


class InternalError(QuestradeError):
    """Local failure not caused by the remote peer."""


class BuilderError(QuestradeError):
    """Missing mandatory configuration when building a `Client`."""


def classify_http_error(exc: Exception, *, reading_body: bool = False) -> QuestradeError:
    """Map an httpx failure to the client taxonomy.

    The decision depends on where the exchange broke and on the nature of the
    fault, never on an HTTP status:

    - before the response head arrives (connect, write, redirect, proxy,
      timeout, request construction) the fault is a `TransportError`;
    - while reading the body of an exchange that otherwise succeeded, only a
      timeout stays a transport fault; anything else is `InternalError`;
    - content decoding and stream misuse are always internal.
    """

    if isinstance(exc, QuestradeError):
        return exc
    detail = f"{type(exc).__name__}: {exc}"
    if isinstance(exc, httpx.TimeoutException):
        return TransportError(detail)
    if reading_body:
        return InternalError(detail)
    if isinstance(exc, (httpx.TransportError, httpx.TooManyRedirects)):
        return TransportError(detail)
    return InternalError(detail)
