"""
httpx transports that honour the httpdetour activation state.

httpx never goes through ``http.client``, so swapping connection classes does
not reach it. Mount one of these transports instead; they check the active
selector on every request and fall back to the wrapped transport when it does
not match::

    client = httpx.Client(transport=httpdetour.DetourTransport())

    with httpdetour.activate_for(app, "api.example.test"):
        client.get("https://api.example.test/users")   # handled by app
        client.get("https://www.example.com/")         # real network
"""

from __future__ import annotations

import logging
from typing import List, Optional

import h11
import httpx

from . import _state
from ._exceptions import InvalidResponse
from ._materialize import serialize
from ._models import DEFAULT_PORTS, Response, Selector
from ._translate import build_request, invoke

logger = logging.getLogger("httpdetour.transports")


class DetourTransport(httpx.BaseTransport):
    def __init__(self, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._transport = transport if transport is not None else httpx.HTTPTransport()

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        selector = _select(request)
        if selector is None:
            return self._transport.handle_request(request)
        request.read()
        return _detour(selector, request)

    def close(self) -> None:
        self._transport.close()


class AsyncDetourTransport(httpx.AsyncBaseTransport):
    """Async variant of :class:`DetourTransport`.

    Handlers are plain callables and run synchronously on the event loop.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport if transport is not None else httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        selector = _select(request)
        if selector is None:
            return await self._transport.handle_async_request(request)
        await request.aread()
        return _detour(selector, request)

    async def aclose(self) -> None:
        await self._transport.aclose()


def _port(url: httpx.URL) -> Optional[int]:
    return url.port if url.port is not None else DEFAULT_PORTS.get(url.scheme)


def _select(request: httpx.Request) -> Optional[Selector]:
    selector = _state.current_selector()
    if selector is not None and selector.matches(request.url.host, _port(request.url)):
        return selector
    logger.debug("Passing %s %s through", request.method, request.url)
    return None


def _detour(selector: Selector, request: httpx.Request) -> httpx.Response:
    url = request.url
    described = build_request(
        url.scheme,
        url.host,
        _port(url) or 0,
        request.method,
        url.raw_path.decode("ascii"),
        request.headers.raw,
        request.content or None,
    )
    return materialize_httpx(invoke(selector.handler, described), request)


def materialize_httpx(response: Response, request: httpx.Request) -> httpx.Response:
    """Parse ``response`` with h11 into an :class:`httpx.Response`.

    h11 is the HTTP/1.1 parser behind httpx's default transport, so the
    result is framed exactly as a response read off the network would be.
    """
    connection = h11.Connection(our_role=h11.CLIENT)
    connection.send(
        h11.Request(
            method=request.method,
            target=request.url.raw_path,
            headers=[(b"Host", request.url.netloc)],
        )
    )
    connection.send(h11.EndOfMessage())
    connection.receive_data(serialize(response))
    connection.receive_data(b"")

    chunks: List[bytes] = []
    try:
        head = connection.next_event()
        while isinstance(head, h11.InformationalResponse):
            head = connection.next_event()
        if not isinstance(head, h11.Response):
            raise InvalidResponse(f"Expected a response head, got {head!r}")
        while True:
            event = connection.next_event()
            if isinstance(event, h11.Data):
                chunks.append(bytes(event.data))
            elif isinstance(event, h11.EndOfMessage):
                break
            else:
                raise InvalidResponse(f"Unexpected event while reading the body: {event!r}")
    except h11.ProtocolError as exc:
        raise InvalidResponse(f"Response could not be parsed: {exc}") from exc

    return httpx.Response(
        status_code=head.status_code,
        headers=head.headers.raw_items(),
        stream=httpx.ByteStream(b"".join(chunks)),
        extensions={
            "http_version": b"HTTP/" + head.http_version,
            "reason_phrase": head.reason,
        },
        request=request,
    )
