"""
Turn handler responses into genuine client response objects.

Rather than faking a response object, the handler's response is written out
as a literal HTTP/1.1 message and parsed back by ``http.client`` itself, so
callers get exactly the reading behaviour of a network response: framing by
Content-Length, chunked or read-until-close, HEAD semantics, header lookup.
"""

from __future__ import annotations

import http.client
import io
import re
from typing import Any, Callable, Optional

import httpx

from ._exceptions import InvalidResponse
from ._models import Response

# RFC 9110 token characters.
_HEADER_NAME = re.compile(rb"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")
# Control characters other than horizontal tab.
_ILLEGAL_VALUE = re.compile(rb"[\x00-\x08\x0a-\x1f\x7f]")


def reason_phrase(status: Any) -> str:
    if isinstance(status, bool) or not isinstance(status, int):
        raise InvalidResponse(f"Response status must be an integer, got {status!r}")
    try:
        return httpx.codes(status).phrase
    except ValueError:
        raise InvalidResponse(f"Unknown response status: {status}") from None


def serialize(response: Response) -> bytes:
    lines = [f"HTTP/1.1 {response.status} {reason_phrase(response.status)}".encode("ascii")]

    for name, value in response.headers.raw:
        if not _HEADER_NAME.fullmatch(name):
            raise InvalidResponse(f"Invalid response header name: {name!r}")
        if _ILLEGAL_VALUE.search(value):
            raise InvalidResponse(f"Invalid value for response header {name!r}: {value!r}")
        lines.append(name + b": " + value)

    lines.append(b"")
    return b"\r\n".join(lines) + b"\r\n" + response.body


class MessageSocket:
    """Just enough of a socket for ``http.client`` to read a response from."""

    def __init__(self, message: bytes) -> None:
        self._message = message
        self.closed = False

    def makefile(self, mode: str = "rb", *args: Any, **kwargs: Any) -> io.BufferedReader:
        return io.BufferedReader(io.BytesIO(self._message))  # type: ignore[arg-type]

    def close(self) -> None:
        self.closed = True


def materialize(
    response: Response,
    method: str = "GET",
    on_ready: Optional[Callable[[http.client.HTTPResponse], Any]] = None,
) -> http.client.HTTPResponse:
    """Parse ``response`` into an :class:`http.client.HTTPResponse`.

    ``method`` is the request method the response answers, which decides
    whether a body is expected. ``on_ready`` is called with the parsed
    response before it is returned, while its body can still be read.
    """
    parsed = http.client.HTTPResponse(
        MessageSocket(serialize(response)),  # type: ignore[arg-type]
        method=method,
    )
    try:
        parsed.begin()
    except http.client.HTTPException as exc:
        parsed.close()
        raise InvalidResponse(f"Response could not be parsed: {exc!r}") from exc

    if on_ready is not None:
        on_ready(parsed)
    return parsed
