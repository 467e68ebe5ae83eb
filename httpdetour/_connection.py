from __future__ import annotations

import http.client
import logging
from typing import Any, List, Optional, Tuple

from . import _state
from ._materialize import MessageSocket, serialize
from ._models import Selector
from ._translate import build_request, invoke, read_body

logger = logging.getLogger("httpdetour.connection")


class _PendingRequest:
    __slots__ = ("method", "url", "headers", "body", "sent", "ready")

    def __init__(self, method: str, url: str) -> None:
        self.method = method
        self.url = url
        self.headers: List[Tuple[bytes, bytes]] = []
        self.body: Optional[bytes] = None
        # Data written with send() after endheaders().
        self.sent: List[bytes] = []
        self.ready = False

    def sent_body(self) -> Optional[bytes]:
        return b"".join(self.sent) if self.sent else None


def _header_bytes(value: Any) -> bytes:
    # Same conversions http.client.HTTPConnection.putheader applies.
    if hasattr(value, "encode"):
        return value.encode("latin-1")
    if isinstance(value, int):
        return str(value).encode("ascii")
    return bytes(value)


class DetourMixin:
    """Routes a connection to the active handler instead of the network.

    Whether a connection is detoured is decided once, when it is created,
    from the selector active at that moment. Connections that are not
    detoured behave exactly like the class they extend.
    """

    scheme = "http"

    host: str
    port: int
    sock: Any

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)  # type: ignore[call-arg]
        selector = _state.current_selector()
        if selector is not None and selector.matches(self.host, self.port):
            self._selector: Optional[Selector] = selector
        else:
            self._selector = None
            logger.debug("Passing %s://%s:%s through", self.scheme, self.host, self.port)
        self._pending: Optional[_PendingRequest] = None
        self._swallow = False

    @property
    def detoured(self) -> bool:
        return self._selector is not None

    def connect(self) -> None:
        if self._selector is None:
            super().connect()  # type: ignore[misc]

    def putrequest(
        self,
        method: str,
        url: str,
        skip_host: bool = False,
        skip_accept_encoding: bool = False,
    ) -> None:
        if self._selector is not None:
            self._pending = _PendingRequest(method, url)
        super().putrequest(  # type: ignore[misc]
            method,
            url,
            skip_host=skip_host,
            skip_accept_encoding=skip_accept_encoding,
        )

    def putheader(self, header: Any, *values: Any) -> None:
        super().putheader(header, *values)  # type: ignore[misc]
        if self._selector is not None and self._pending is not None:
            value = b", ".join(_header_bytes(v) for v in values)
            self._pending.headers.append((_header_bytes(header), value))

    def endheaders(self, message_body: Any = None, *, encode_chunked: bool = False) -> None:
        if self._selector is None:
            super().endheaders(message_body, encode_chunked=encode_chunked)  # type: ignore[misc]
            return

        body = read_body(message_body)
        # Let http.client advance its own state; the bytes it writes are dropped.
        self._swallow = True
        try:
            super().endheaders(body, encode_chunked=encode_chunked)  # type: ignore[misc]
        finally:
            self._swallow = False
        if self._pending is not None:
            self._pending.body = body
            self._pending.ready = True

    def send(self, data: Any) -> None:
        if self._selector is None:
            super().send(data)  # type: ignore[misc]
        elif not self._swallow and self._pending is not None:
            self._pending.sent.append(read_body(data) or b"")

    def getresponse(self) -> Any:
        pending, self._pending = self._pending, None
        if self._selector is None or pending is None or not pending.ready:
            return super().getresponse()  # type: ignore[misc]

        request = build_request(
            self.scheme,
            self.host,
            self.port,
            pending.method,
            pending.url,
            pending.headers,
            pending.body,
            pending.sent_body(),
        )
        try:
            response = invoke(self._selector.handler, request)
            self.sock = MessageSocket(serialize(response))
        except BaseException:
            self.close()  # type: ignore[attr-defined]
            raise
        return super().getresponse()  # type: ignore[misc]


class DetourHTTPConnection(DetourMixin, _state.REAL_HTTP_CONNECTION):
    scheme = "http"


class DetourHTTPSConnection(DetourMixin, _state.REAL_HTTPS_CONNECTION):
    scheme = "https"

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        # HTTPSConnection.__init__ calls super(HTTPSConnection, self) with the
        # class looked up in http.client's globals, which may point here.
        installed = http.client.HTTPSConnection
        http.client.HTTPSConnection = _state.REAL_HTTPS_CONNECTION  # type: ignore[misc]
        try:
            super().__init__(*args, **kwargs)
        finally:
            http.client.HTTPSConnection = installed  # type: ignore[misc]
