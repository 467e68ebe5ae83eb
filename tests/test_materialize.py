import http.client

import pytest

import httpdetour
from httpdetour import Response, materialize, reason_phrase, serialize


def test_reason_phrase_for_status_code():
    assert reason_phrase(200) == "OK"
    assert reason_phrase(404) == "Not Found"
    assert reason_phrase(418) == "I'm a teapot"


@pytest.mark.parametrize("status", [499, 1000, 0, -1])
def test_unknown_status_fails_loudly(status):
    with pytest.raises(httpdetour.InvalidResponse):
        reason_phrase(status)


@pytest.mark.parametrize("status", ["200", 200.0, None, True])
def test_non_integer_status_fails_loudly(status):
    with pytest.raises(httpdetour.InvalidResponse):
        serialize(Response(status, [], b""))


def test_serialize_literal_message():
    response = Response(
        200,
        [("Content-Type", "text/html"), ("X-Test", "a"), ("x-test", "b")],
        b"Hello world",
    )
    assert serialize(response) == (
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Type: text/html\r\n"
        b"X-Test: a\r\n"
        b"x-test: b\r\n"
        b"\r\n"
        b"Hello world"
    )


def test_serialize_without_headers():
    assert serialize(Response(204)) == b"HTTP/1.1 204 No Content\r\n\r\n"


def test_empty_header_value_is_still_a_header_line():
    response = materialize(Response(200, [("X-Empty", ""), ("Content-Length", "0")]))
    assert serialize(Response(200, [("X-Empty", "")])).startswith(
        b"HTTP/1.1 200 OK\r\nX-Empty: \r\n"
    )
    assert response.getheader("X-Empty") == ""
    assert response.read() == b""


@pytest.mark.parametrize(
    "headers",
    [
        [("Bad Name", "x")],
        [("Bad:Name", "x")],
        [("", "x")],
        [("X-Injected", "a\r\nSet-Cookie: b")],
        [("X-Newline", "a\nb")],
        [("X-Trailing-Newline\n", "v"), ("Content-Length", "2")],
        [("X-Escape", "a\x1bb")],
        [("X-Delete", "a\x7f")],
    ],
)
def test_illegal_headers_are_rejected(headers):
    with pytest.raises(httpdetour.InvalidResponse):
        serialize(Response(200, headers, b""))


def test_tab_is_allowed_in_header_values():
    assert serialize(Response(200, [("X-Tab", "a\tb")], b"")) == (
        b"HTTP/1.1 200 OK\r\nX-Tab: a\tb\r\n\r\n"
    )


def test_round_trip():
    headers = [
        ("Content-Type", "application/json"),
        ("X-Request-Id", "abc-123"),
        ("Set-Cookie", "a=1"),
        ("Set-Cookie", "b=2"),
        ("Content-Length", "13"),
    ]
    response = materialize(Response(201, headers, b'{"ok": true}\n'))

    assert isinstance(response, http.client.HTTPResponse)
    assert response.status == 201
    assert response.reason == "Created"
    assert response.version == 11
    assert response.getheader("content-type") == "application/json"
    assert response.getheader("X-Request-Id") == "abc-123"
    assert response.headers.get_all("Set-Cookie") == ["a=1", "b=2"]
    assert response.getheaders() == headers
    assert response.read() == b'{"ok": true}\n'
    assert response.isclosed()


def test_body_can_be_read_in_pieces():
    response = materialize(Response(200, [("Content-Length", "11")], b"Hello world"))
    assert response.read(5) == b"Hello"
    assert response.read1(1) == b" "
    assert response.read() == b"world"


def test_body_without_length_is_read_until_close():
    response = materialize(Response(200, [], b"no length"))
    assert response.length is None
    assert response.will_close
    assert response.read() == b"no length"


def test_content_length_frames_the_body():
    response = materialize(Response(200, [("Content-Length", "5")], b"Hello world"))
    assert response.read() == b"Hello"


def test_chunked_body_is_decoded():
    body = b"5\r\nHello\r\n6\r\n world\r\n0\r\n\r\n"
    response = materialize(Response(200, [("Transfer-Encoding", "chunked")], body))
    assert response.chunked
    assert response.read() == b"Hello world"


def test_head_response_has_no_body():
    response = materialize(
        Response(200, [("Content-Length", "11")], b"Hello world"), method="HEAD"
    )
    assert response.getheader("Content-Length") == "11"
    assert response.read() == b""


def test_on_ready_sees_readable_body():
    seen = []

    def on_ready(response):
        seen.append((response.status, response.read()))

    response = materialize(
        Response(200, [("Content-Length", "2")], b"hi"), on_ready=on_ready
    )
    assert seen == [(200, b"hi")]
    assert response.isclosed()


def test_on_ready_is_optional():
    response = materialize(Response(200, [("Content-Length", "2")], b"hi"))
    assert not response.isclosed()
    assert response.read() == b"hi"


def test_too_many_headers_is_invalid():
    headers = [(f"X-{i}", "v") for i in range(150)]
    with pytest.raises(httpdetour.InvalidResponse):
        materialize(Response(200, headers, b""))
