"""Pass-through of requests to the LanguageTool upstream."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Iterable
from urllib.parse import urlencode

import httpx
from fastapi import Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    }
)

# Rebuilt for the outbound request
_REQUEST_SKIP_HEADERS = HOP_BY_HOP_HEADERS | {"host", "content-length", "content-type"}


def encode_form(items: Iterable[tuple[str, str]]) -> str:
    """URL-encode form values sorted by key, keeping the order within a key."""
    return urlencode(sorted(items, key=lambda item: item[0]))


def outbound_headers(raw_headers: Iterable[tuple[bytes, bytes]]) -> httpx.Headers:
    # Values stay bytes: inbound headers may carry non-ASCII (latin-1) octets.
    headers = httpx.Headers(
        [
            (name, value)
            for name, value in raw_headers
            if name.decode("latin-1").lower() not in _REQUEST_SKIP_HEADERS
        ]
    )
    headers["Content-Type"] = FORM_CONTENT_TYPE
    return headers


def relay_headers(raw_headers: Iterable[tuple[bytes, bytes]]) -> list[tuple[bytes, bytes]]:
    return [
        (name.lower(), value)
        for name, value in raw_headers
        if name.decode("latin-1").lower() not in HOP_BY_HOP_HEADERS
    ]


class Forwarder:
    """Re-sends an inbound request to ``base_url`` and relays the answer verbatim.

    ``timeout_s`` is one deadline covering the send and the whole body relay.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        timeout_s: float = 60.0,
        logger: logging.Logger | None = None,
    ):
        self._client = client
        self._base_url = base_url
        self._timeout_s = timeout_s
        self._logger = logger or logging.getLogger(__name__)

    async def forward(self, request: Request, form_items: list[tuple[str, str]]) -> Response:
        url = f"{self._base_url}{request.url.path}"
        deadline = time.monotonic() + self._timeout_s
        try:
            outbound = self._client.build_request(
                request.method,
                url,
                content=encode_form(form_items).encode("ascii"),
                headers=outbound_headers(request.headers.raw),
            )
            upstream = await asyncio.wait_for(
                self._client.send(outbound, stream=True), timeout=self._timeout_s
            )
        except asyncio.TimeoutError:
            self._logger.error(
                "Request timed out: method=%s url=%s timeout=%.1fs",
                request.method,
                url,
                self._timeout_s,
            )
            return PlainTextResponse("Bad Gateway", status_code=502)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._logger.error(
                "Error executing request: method=%s url=%s error=%r", request.method, url, exc
            )
            return PlainTextResponse("Bad Gateway", status_code=502)

        self._logger.debug(
            "Forwarded %s %s -> %d", request.method, request.url.path, upstream.status_code
        )

        response = StreamingResponse(
            self._relay_body(upstream, deadline), status_code=upstream.status_code
        )
        response.raw_headers = relay_headers(upstream.headers.raw)
        return response

    async def _relay_body(self, upstream: httpx.Response, deadline: float) -> AsyncIterator[bytes]:
        # Status and headers are already committed once this runs.
        chunks = upstream.aiter_raw()
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise asyncio.TimeoutError
                try:
                    chunk = await asyncio.wait_for(chunks.__anext__(), timeout=remaining)
                except StopAsyncIteration:
                    break
                yield chunk
        except asyncio.TimeoutError:
            self._logger.error(
                "Error copying response body: url=%s error=timeout after %.1fs",
                upstream.url,
                self._timeout_s,
            )
        except httpx.HTTPError as exc:
            self._logger.error("Error copying response body: url=%s error=%r", upstream.url, exc)
        finally:
            await upstream.aclose()
