"""Shared test doubles for the HTTP layer."""

from __future__ import annotations

import httpx
import pytest


class StubExecutor:
    """Executor that hands back a prepared response and records requests."""

    def __init__(self, response: httpx.Response | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[httpx.Request] = []
        self.closed = False

    async def execute(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    async def aclose(self) -> None:
        self.closed = True


class UnreadableStream(httpx.AsyncByteStream):
    """Body stream that fails the test if anything tries to read it."""

    def __init__(self) -> None:
        self.closed = False

    async def __aiter__(self):
        pytest.fail("response body must not be read")
        yield b""  # pragma: no cover

    async def aclose(self) -> None:
        self.closed = True


class ChunkedStream(httpx.AsyncByteStream):
    """Body stream without Content-Length, yielding fixed-size chunks."""

    def __init__(self, payload: bytes, chunk_size: int = 1024) -> None:
        self.payload = payload
        self.chunk_size = chunk_size
        self.yielded = 0
        self.closed = False

    async def __aiter__(self):
        for start in range(0, len(self.payload), self.chunk_size):
            chunk = self.payload[start : start + self.chunk_size]
            self.yielded += len(chunk)
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def streamed_response(status_code: int, payload: bytes, chunk_size: int = 1024) -> httpx.Response:
    return httpx.Response(status_code, stream=ChunkedStream(payload, chunk_size))


class _SlotReleasingStream(httpx.AsyncByteStream):
    def __init__(self, payload: bytes, release) -> None:
        self.payload = payload
        self._release = release
        self._released = False

    async def __aiter__(self):
        yield self.payload

    async def aclose(self) -> None:
        if not self._released:
            self._released = True
            self._release()


class SingleConnectionTransport(httpx.AsyncBaseTransport):
    """Transport with one pooled connection, held until the response closes.

    Mirrors `httpx.Limits(max_connections=1)`: a request issued while the only
    connection is checked out fails with `httpx.PoolTimeout`.
    """

    def __init__(self, status_code: int, payload: bytes = b"") -> None:
        self.status_code = status_code
        self.payload = payload
        self.in_use = False
        self.requests = 0

    def _release(self) -> None:
        self.in_use = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self.in_use:
            raise httpx.PoolTimeout("no free connection in the pool", request=request)
        self.in_use = True
        self.requests += 1
        return httpx.Response(
            self.status_code,
            headers={"X-GitHub-Request-Id": f"req-{self.requests}"},
            stream=_SlotReleasingStream(self.payload, self._release),
        )
