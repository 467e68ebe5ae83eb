# ruff: noqa: I001
from ._exceptions import DetourError, InvalidResponse, NoPreviousActivation
from ._models import Request, Response, Selector, matches
from ._translate import build_request, invoke
from ._materialize import materialize, reason_phrase, serialize
from ._state import (
    Activation,
    activate,
    activate_for,
    activate_globally,
    connection_class,
    current_selector,
    deactivate,
    is_active,
    last_selector,
    reactivate,
)
from ._connection import DetourHTTPConnection, DetourHTTPSConnection
from . import transports, wsgi  # noqa: F401
from .transports import AsyncDetourTransport, DetourTransport, materialize_httpx
from .wsgi import WSGIHandler

__title__ = "httpdetour"
__description__ = "Route http.client and httpx traffic to in-process handlers"
__version__ = "0.1.0"

_EXCLUDED_FROM_ALL = {"testing"}

_members = [
    member
    for member in list(vars().keys())
    if (
        not member.startswith("_")
        or member in ["__description__", "__title__", "__version__"]
    )
    and member not in _EXCLUDED_FROM_ALL
]

__all__ = sorted(_members, key=str.casefold)  # pyright: ignore[reportUnsupportedDunderAll]
