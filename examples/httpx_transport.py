"""
httpx Transports
================

httpx does not use http.client, so mount ``DetourTransport`` (or
``AsyncDetourTransport``) on the client. It follows the same activation
calls and passes anything that is not selected to the real transport.
"""

import asyncio

import httpx

import httpdetour


def echo(request: httpdetour.Request) -> httpdetour.Response:
    return httpdetour.Response(
        200,
        {"Content-Type": "application/json"},
        f'{{"method": "{request.method}", "url": "{request.url}"}}',
    )


def main() -> None:
    print("── DetourTransport ────────────────────────────────────────────")
    with httpx.Client(transport=httpdetour.DetourTransport()) as client:
        with httpdetour.activate_for(echo, "api.example.test"):
            response = client.post("https://api.example.test/items", json={"a": 1})
            print(f"  {response.status_code} {response.reason_phrase}: {response.json()}")
    print()

    print("── AsyncDetourTransport ───────────────────────────────────────")

    async def fetch() -> None:
        async with httpx.AsyncClient(transport=httpdetour.AsyncDetourTransport()) as client:
            with httpdetour.activate_globally(echo):
                response = await client.get("http://anywhere.test:8000/path?q=1")
                print(f"  {response.json()}")

    asyncio.run(fetch())


if __name__ == "__main__":
    main()
