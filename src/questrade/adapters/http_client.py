"""httpx wrapper.

- Standardizes timeouts and headers for the token endpoint and the API host.
- Timeouts and cancellation live here, in the transport, not in the request
  pipeline.
- Tests substitute the transport (`httpx.MockTransport`).
"""

from __future__ import annotations

import logging

import httpx

from questrade.core.config import AppSettings
from questrade.core.errors import classify_http_error

logger = logging.getLogger(__name__)


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with the client defaults.

    The returned handle is safe to share between concurrent requests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            settings.http_timeout_seconds,
            connect=settings.connect_timeout_seconds,
        ),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


async def execute(client: httpx.AsyncClient, request: httpx.Request) -> tuple[httpx.Response, bytes]:
    """Send `request` once and read the whole body.

    Failures are raised already classified (`TransportError` /
    `InternalError`); the stage matters, so the head and the body are read
    separately.
    """

    try:
        response = await client.send(request, stream=True)
    except httpx.HTTPError as exc:
        raise classify_http_error(exc) from exc

    try:
        body = await response.aread()
    except httpx.HTTPError as exc:
        raise classify_http_error(exc, reading_body=True) from exc
    finally:
        await response.aclose()

    logger.debug(
        "%s %s -> %s (%d bytes)",
        request.method,
        request.url.copy_with(query=None),
        response.status_code,
        len(body),
    )
    return response, body
