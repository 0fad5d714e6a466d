"""Shared utilities: stub HTTP servers for the upstream and the completion endpoint."""

import asyncio
import json
from collections.abc import Callable

import httpx

UPSTREAM_URL = "http://languagetool.test"
COMPLETION_URL = "http://llm.test/v1"


class StubServer:
    """Records outbound requests and answers them with ``responder``.

    ``responder`` may be a plain or an async function.
    """

    def __init__(self, responder: Callable):
        self.responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        return self.responder(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class BodyStream(httpx.AsyncByteStream):
    """Response body delivered chunk by chunk, like a real socket read.

    ``delay`` seconds pass before every chunk after the first.
    """

    def __init__(self, *chunks: bytes, delay: float = 0.0):
        self._chunks = chunks
        self._delay = delay

    async def __aiter__(self):
        for index, chunk in enumerate(self._chunks):
            if index and self._delay:
                await asyncio.sleep(self._delay)
            yield chunk


def upstream_reply(
    status_code: int,
    body: bytes,
    headers: list[tuple[str, str]] | None = None,
) -> httpx.Response:
    """An unread, streamed upstream response as the network transport returns it."""
    headers = list(headers or [])
    headers.append(("Content-Length", str(len(body))))
    return httpx.Response(status_code, headers=headers, stream=BodyStream(body))


def upstream_json(payload: dict, headers: list[tuple[str, str]] | None = None) -> httpx.Response:
    headers = [("Content-Type", "application/json")] + list(headers or [])
    return upstream_reply(200, json.dumps(payload).encode("utf-8"), headers)


def completion_reply(content: str) -> Callable[[httpx.Request], httpx.Response]:
    def _reply(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"choices": [{"message": {"role": "assistant", "content": content}}]}
        )

    return _reply
