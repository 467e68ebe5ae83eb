"""
WSGI Applications
=================

Any WSGI application can serve detoured requests through ``WSGIHandler``,
which is handy for testing a client against the real server code.
"""

import urllib.request

import httpdetour


def app(environ, start_response):
    message = (
        f"{environ['REQUEST_METHOD']} {environ['wsgi.url_scheme']}://"
        f"{environ['SERVER_NAME']}:{environ['SERVER_PORT']}{environ['PATH_INFO']}"
    ).encode()
    start_response(
        "200 OK",
        [("Content-Type", "text/plain"), ("Content-Length", str(len(message)))],
    )
    return [message]


def main() -> None:
    print("── WSGIHandler ────────────────────────────────────────────────")

    def fetch() -> None:
        for url in ("http://service.test/health", "https://service.test:8443/items"):
            with urllib.request.urlopen(url) as response:
                print(f"  {url} → {response.read().decode()}")

    httpdetour.activate_for(httpdetour.WSGIHandler(app), "service.test", block=fetch)


if __name__ == "__main__":
    main()
