from __future__ import annotations

import io
import typing
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence, Tuple, Union

import httpx

from ._exceptions import InvalidResponse

DEFAULT_PORTS = {"http": 80, "https": 443}

HeaderTypes = Union[
    httpx.Headers,
    Mapping[str, str],
    Mapping[bytes, bytes],
    Sequence[Tuple[str, str]],
    Sequence[Tuple[bytes, bytes]],
]
BodyTypes = Union[bytes, bytearray, memoryview, str, Iterable[Union[bytes, str]], None]


def matches(
    selector_host: Optional[str],
    selector_port: Optional[int],
    host: str,
    port: Optional[int],
) -> bool:
    """Decide whether a connection to ``host:port`` should be intercepted.

    Hosts and ports are compared exactly: no case folding, no wildcards and
    no reasoning about default ports.
    """
    if selector_host is None:
        return True
    if selector_port is None:
        return host == selector_host
    return host == selector_host and port == selector_port


class Selector:
    __slots__ = ("handler", "host", "port")

    def __init__(
        self,
        handler: Handler,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None:
        if host is None and port is not None:
            raise ValueError("A port can only be selected together with a host")
        self.handler = handler
        self.host = host
        self.port = port

    @property
    def is_global(self) -> bool:
        return self.host is None

    def matches(self, host: str, port: Optional[int]) -> bool:
        return matches(self.host, self.port, host, port)

    def __repr__(self) -> str:
        if self.host is None:
            return f"Selector(handler={self.handler!r})"
        if self.port is None:
            return f"Selector(handler={self.handler!r}, host={self.host!r})"
        return f"Selector(handler={self.handler!r}, host={self.host!r}, port={self.port!r})"


class Request:
    """What a handler receives for every intercepted request."""

    def __init__(
        self,
        method: str,
        scheme: str,
        host: str,
        port: int,
        path: str,
        headers: Optional[HeaderTypes] = None,
        body: Optional[bytes] = None,
    ) -> None:
        self.method = method
        self.scheme = scheme
        self.host = host
        self.port = port
        self.path = path
        self.headers = httpx.Headers(headers)
        self.body: Optional[typing.BinaryIO] = None if body is None else io.BytesIO(body)

    @property
    def url(self) -> str:
        if DEFAULT_PORTS.get(self.scheme) == self.port:
            return f"{self.scheme}://{self.host}{self.path}"
        return f"{self.scheme}://{self.host}:{self.port}{self.path}"

    def read(self) -> bytes:
        if self.body is None:
            return b""
        return self.body.read()

    def __repr__(self) -> str:
        return f"<Request [{self.method} {self.url}]>"


class Response:
    __slots__ = ("status", "headers", "body")

    def __init__(
        self,
        status: int,
        headers: Optional[HeaderTypes] = None,
        body: BodyTypes = b"",
    ) -> None:
        # The status is checked when the response is serialized.
        self.status = status
        self.headers = _coerce_headers(headers)
        self.body = _coerce_body(body)

    def __repr__(self) -> str:
        return f"<Response [{self.status!r}]>"


ResponseTypes = Union[Response, Tuple[int, Any, Any]]


class SupportsHandle(typing.Protocol):
    def handle(self, request: Request) -> ResponseTypes: ...


Handler = Union[Callable[[Request], ResponseTypes], SupportsHandle]


def coerce_response(value: Any) -> Response:
    if isinstance(value, Response):
        return value
    if isinstance(value, (tuple, list)) and len(value) == 3:
        status, headers, body = value
        return Response(status, headers, body)
    raise InvalidResponse(
        "Handlers must return a Response or a (status, headers, body) triple, "
        f"got {type(value).__name__}"
    )


def _coerce_headers(headers: Optional[HeaderTypes]) -> httpx.Headers:
    try:
        return httpx.Headers(headers)
    except (TypeError, ValueError) as exc:
        raise InvalidResponse(f"Invalid response headers: {headers!r}") from exc


def _coerce_body(body: BodyTypes) -> bytes:
    if body is None:
        return b""
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    try:
        chunks = iter(body)
    except TypeError:
        raise InvalidResponse(
            f"Response body must be bytes, str or an iterable of chunks, "
            f"got {type(body).__name__}"
        ) from None
    return b"".join(_coerce_chunk(chunk) for chunk in chunks)


def _coerce_chunk(chunk: Any) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    if isinstance(chunk, (bytes, bytearray, memoryview)):
        return bytes(chunk)
    raise InvalidResponse(f"Response body chunks must be bytes or str, got {type(chunk).__name__}")
