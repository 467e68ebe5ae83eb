"""
Basic Usage
===========

Routes urllib / http.client traffic to a plain Python handler.

A handler receives an ``httpdetour.Request`` and returns either an
``httpdetour.Response`` or a ``(status, headers, body)`` triple.
"""

import http.client
import json
import urllib.request

import httpdetour


def users_api(request: httpdetour.Request) -> httpdetour.Response:
    if request.path == "/users":
        body = json.dumps([{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}]).encode()
        return httpdetour.Response(
            200,
            [("Content-Type", "application/json"), ("Content-Length", str(len(body)))],
            body,
        )
    return 404, [("Content-Type", "text/plain")], b"Not Found"


def main() -> None:
    # ── Scoped activation ────────────────────────────────────────────────
    print("── Scoped activation ──────────────────────────────────────────")
    with httpdetour.activate_for(users_api, "api.example.test"):
        with urllib.request.urlopen("https://api.example.test/users") as response:
            print(f"  Status: {response.status} {response.reason}")
            print(f"  Content-Type: {response.headers['Content-Type']}")
            print(f"  Users: {json.loads(response.read())}")
    print(f"  Active after the block: {httpdetour.is_active()}")
    print()

    # ── Low-level http.client ────────────────────────────────────────────
    print("── http.client ────────────────────────────────────────────────")
    httpdetour.activate_globally(users_api)
    conn = http.client.HTTPConnection("anything.test", 8080)
    conn.request("GET", "/missing")
    response = conn.getresponse()
    print(f"  GET http://anything.test:8080/missing → {response.status} {response.read()!r}")
    httpdetour.deactivate()
    print()

    # ── Reactivation ─────────────────────────────────────────────────────
    print("── reactivate() ───────────────────────────────────────────────")
    with httpdetour.reactivate() as activation:
        print(f"  Restored: {activation.selector!r}")


if __name__ == "__main__":
    main()
