from __future__ import annotations

import io
import sys
import typing
from typing import Any, Callable, Iterable, List, Optional, Tuple
from urllib.parse import unquote

from ._exceptions import InvalidResponse
from ._models import Request, Response

if typing.TYPE_CHECKING:
    from types import TracebackType

    ExcInfo = Tuple[type, BaseException, TracebackType]
    StartResponse = Callable[..., Callable[[bytes], Any]]
    WSGIApp = Callable[[dict, StartResponse], Iterable[bytes]]


class WSGIHandler:
    """Serve detoured requests with a WSGI application.

    >>> httpdetour.activate_globally(httpdetour.WSGIHandler(flask_app))
    """

    def __init__(self, app: WSGIApp, script_name: str = "") -> None:
        self.app = app
        self.script_name = script_name

    def environ(self, request: Request) -> dict:
        path, _, query = request.path.partition("?")
        path_info = unquote(path, "iso-8859-1")
        if self.script_name and path_info.startswith(self.script_name):
            path_info = path_info[len(self.script_name) :]

        environ = {
            "REQUEST_METHOD": request.method,
            "SCRIPT_NAME": self.script_name,
            "PATH_INFO": path_info,
            "QUERY_STRING": query,
            "SERVER_NAME": request.host,
            "SERVER_PORT": str(request.port),
            "SERVER_PROTOCOL": "HTTP/1.1",
            "wsgi.version": (1, 0),
            "wsgi.url_scheme": request.scheme,
            "wsgi.input": io.BytesIO(request.read()),
            "wsgi.errors": sys.stderr,
            "wsgi.multithread": False,
            "wsgi.multiprocess": False,
            "wsgi.run_once": False,
        }

        for raw_name, raw_value in request.headers.raw:
            name = raw_name.decode("latin-1").upper().replace("-", "_")
            value = raw_value.decode("latin-1")
            if name not in ("CONTENT_TYPE", "CONTENT_LENGTH"):
                name = "HTTP_" + name
            if name in environ:
                value = environ[name] + "," + value
            environ[name] = value
        return environ

    def handle(self, request: Request) -> Response:
        started: List[Any] = []
        body: List[bytes] = []

        def start_response(
            status: str,
            response_headers: List[Tuple[str, str]],
            exc_info: Optional[ExcInfo] = None,
        ) -> Callable[[bytes], Any]:
            if exc_info is not None:
                try:
                    if body:
                        raise exc_info[1].with_traceback(exc_info[2])
                finally:
                    exc_info = None
            elif started:
                raise AssertionError("start_response() was already called")
            started[:] = [status, response_headers]
            return body.append

        result = self.app(self.environ(request), start_response)
        try:
            for chunk in result:
                if chunk:
                    body.append(chunk)
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()

        if not started:
            raise InvalidResponse("The WSGI application never called start_response()")
        status, headers = started
        try:
            code = int(status.split(" ", 1)[0])
        except ValueError:
            raise InvalidResponse(f"Invalid WSGI status line: {status!r}") from None
        return Response(code, headers, b"".join(body))
