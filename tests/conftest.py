import io
import os
import socket
import threading
import time
import typing

import pytest
from uvicorn.config import Config
from uvicorn.server import Server

import httpdetour


@pytest.fixture
def anyio_backend():
    return "asyncio"


ENVIRONMENT_VARIABLES = {
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "ALL_PROXY",
    "NO_PROXY",
}


@pytest.fixture(scope="function", autouse=True)
def clean_environ():
    """Keeps proxy settings from rerouting urllib while a test runs"""
    original_environ = os.environ.copy()
    os.environ.clear()
    os.environ.update(
        {
            k: v
            for k, v in original_environ.items()
            if k not in ENVIRONMENT_VARIABLES and k.upper() not in ENVIRONMENT_VARIABLES
        }
    )
    yield
    os.environ.clear()
    os.environ.update(original_environ)


@pytest.fixture(autouse=True)
def inactive():
    httpdetour.deactivate()
    yield
    httpdetour.deactivate()


def echo_handler(request: httpdetour.Request) -> httpdetour.Response:
    """Reports what it was called with through response headers."""
    body = request.read()
    return httpdetour.Response(
        200,
        [
            ("Content-Type", "text/html"),
            ("X-Method", request.method),
            ("X-Scheme", request.scheme),
            ("X-Host", request.host),
            ("X-Port", str(request.port)),
            ("X-Path", request.path),
            ("X-Url", request.url),
            ("X-Input", body.decode("latin-1")),
            ("Content-Length", "11"),
        ],
        b"Hello world",
    )


class RecordingHandler:
    def __init__(self, response: typing.Any = None) -> None:
        self.requests: typing.List[httpdetour.Request] = []
        self.bodies: typing.List[bytes] = []
        self.response = response if response is not None else (200, [], b"ok")

    def handle(self, request: httpdetour.Request) -> typing.Any:
        self.requests.append(request)
        self.bodies.append(request.read())
        return self.response


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()


class FakeSocket:
    """Stands in for a network socket on the pass-through path."""

    def __init__(self, response: bytes) -> None:
        self.response = response
        self.sent = b""
        self.closed = False

    def setsockopt(self, *args: typing.Any) -> None:
        pass

    def sendall(self, data: bytes) -> None:
        self.sent += bytes(data)

    def makefile(self, mode: str = "rb", *args: typing.Any, **kwargs: typing.Any):
        return io.BufferedReader(io.BytesIO(self.response))

    def close(self) -> None:
        self.closed = True


class FakeNetwork:
    def __init__(self) -> None:
        self.addresses: typing.List[typing.Tuple[str, int]] = []
        self.sockets: typing.List[FakeSocket] = []
        self.response = b"HTTP/1.1 200 OK\r\nContent-Length: 7\r\n\r\nnetwork"

    def create_connection(self, address, *args, **kwargs) -> FakeSocket:
        self.addresses.append(address)
        sock = FakeSocket(self.response)
        self.sockets.append(sock)
        return sock


@pytest.fixture
def network(monkeypatch: pytest.MonkeyPatch) -> FakeNetwork:
    # http.client binds socket.create_connection when a connection is built.
    fake = FakeNetwork()
    monkeypatch.setattr(socket, "create_connection", fake.create_connection)
    return fake


Message = typing.Dict[str, typing.Any]
Receive = typing.Callable[[], typing.Awaitable[Message]]
Send = typing.Callable[
    [typing.Dict[str, typing.Any]], typing.Coroutine[None, None, None]
]
Scope = typing.Dict[str, typing.Any]


async def app(scope: Scope, receive: Receive, send: Send) -> None:
    assert scope["type"] == "http"
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [[b"content-type", b"text/plain"], [b"x-served-by", b"network"]],
        }
    )
    await send({"type": "http.response.body", "body": b"Hello, world!"})


class TestServer(Server):
    def install_signal_handlers(self) -> None:
        # Signal handlers can only be installed from the main thread.
        pass

    @property
    def address(self) -> typing.Tuple[str, int]:
        host, port = self.servers[0].sockets[0].getsockname()[:2]
        return host, port


def serve_in_thread(server: TestServer) -> typing.Iterator[TestServer]:
    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()
    try:
        deadline = time.monotonic() + 10
        while not server.started:
            if time.monotonic() > deadline:
                raise RuntimeError("Server failed to start within 10 seconds")
            time.sleep(1e-3)
        yield server
    finally:
        server.should_exit = True
        thread.join(timeout=5)


@pytest.fixture(scope="session")
def server() -> typing.Iterator[TestServer]:
    config = Config(app=app, lifespan="off", loop="asyncio", host="127.0.0.1", port=0)
    server = TestServer(config=config)
    yield from serve_in_thread(server)
