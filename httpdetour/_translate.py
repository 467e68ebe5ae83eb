from __future__ import annotations

import logging
import typing
from typing import Any, Optional

from ._models import Handler, HeaderTypes, Request, Response, coerce_response

logger = logging.getLogger("httpdetour.translate")


def build_request(
    scheme: str,
    host: str,
    port: int,
    method: str,
    path: str,
    headers: Optional[HeaderTypes],
    body: Any = None,
    fallback_body: Any = None,
) -> Request:
    """Describe an outbound request in the form handlers consume.

    ``body`` is the body handed to the send call itself and wins over
    ``fallback_body``, the body that travelled with the request object.
    Stream bodies are read to completion here.
    """
    payload = body if body is not None else fallback_body
    return Request(
        method,
        scheme,
        host,
        port,
        path,
        headers=headers,
        body=read_body(payload),
    )


def read_body(body: Any) -> Optional[bytes]:
    if body is None:
        return None
    if isinstance(body, str):
        # http.client puts str bodies on the wire as ISO-8859-1.
        return body.encode("iso-8859-1")
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if hasattr(body, "read"):
        return _to_bytes(body.read())
    return b"".join(_to_bytes(chunk) for chunk in typing.cast(typing.Iterable[Any], body))


def _to_bytes(data: Any) -> bytes:
    if isinstance(data, str):
        return data.encode("iso-8859-1")
    return bytes(data)


def invoke(handler: Handler, request: Request) -> Response:
    """Call ``handler`` synchronously; anything it raises propagates as is."""
    handle = getattr(handler, "handle", None)
    if callable(handle):
        result = handle(request)
    else:
        result = typing.cast(typing.Callable[[Request], Any], handler)(request)

    response = coerce_response(result)
    logger.debug("%s %s -> %s", request.method, request.url, response.status)
    return response
