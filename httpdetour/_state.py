"""
Process-wide activation state.

Activating swaps ``http.client.HTTPConnection`` and
``http.client.HTTPSConnection`` for the detouring subclasses; deactivating
puts the real classes back::

    import httpdetour

    httpdetour.activate_for(app, "api.example.test")
    ...
    httpdetour.deactivate()

    with httpdetour.activate_globally(app):
        ...

Only one selector is active at a time and activating again replaces it.
The most recently deactivated selector is remembered for :func:`reactivate`.
None of this is synchronised: activate and deactivate from one thread.
"""

from __future__ import annotations

import http.client
import logging
from typing import Any, Callable, Optional, Type, TypeVar, Union

from ._exceptions import NoPreviousActivation
from ._models import Handler, Selector

logger = logging.getLogger("httpdetour.state")

T = TypeVar("T")

REAL_HTTP_CONNECTION = http.client.HTTPConnection
REAL_HTTPS_CONNECTION = http.client.HTTPSConnection

_selector: Optional[Selector] = None
_last_selector: Optional[Selector] = None


class Activation:
    """Handle returned by the activation calls when no block is given.

    Using it as a context manager deactivates on exit.
    """

    def __init__(self, selector: Selector) -> None:
        self.selector = selector

    def __enter__(self) -> Activation:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        deactivate()

    def __repr__(self) -> str:
        return f"<Activation {self.selector!r}>"


def activate(
    selector: Selector, block: Optional[Callable[[], T]] = None
) -> Union[Activation, T]:
    """Make ``selector`` current and install the detouring connections.

    With ``block``, the activation only lasts while ``block()`` runs and the
    block's return value is returned.
    """
    global _selector

    _selector = selector
    _install()
    logger.info("httpdetour active: %r", selector)

    if block is None:
        return Activation(selector)
    try:
        return block()
    finally:
        deactivate()


def activate_globally(
    handler: Handler, block: Optional[Callable[[], T]] = None
) -> Union[Activation, T]:
    """Send every ``http.client`` request to ``handler``."""
    return activate(Selector(handler), block)


def activate_for(
    handler: Handler,
    host: str,
    port: Optional[int] = None,
    block: Optional[Callable[[], T]] = None,
) -> Union[Activation, T]:
    """Send requests for ``host`` (and ``port``, if given) to ``handler``.

    Connections to any other host keep using the network.
    """
    return activate(Selector(handler, host, port), block)


def deactivate() -> None:
    global _selector, _last_selector

    if _selector is not None:
        _last_selector = _selector
        logger.info("httpdetour deactivated: %r", _selector)
    _selector = None
    _uninstall()


def reactivate(block: Optional[Callable[[], T]] = None) -> Union[Activation, T]:
    """Activate again with the selector that was last deactivated."""
    if _last_selector is None:
        raise NoPreviousActivation()
    return activate(_last_selector, block)


def is_active() -> bool:
    return _selector is not None


def current_selector() -> Optional[Selector]:
    return _selector


def last_selector() -> Optional[Selector]:
    return _last_selector


def connection_class(scheme: str = "http") -> Type[http.client.HTTPConnection]:
    """The connection class to use for ``scheme`` right now.

    Lets code that builds its own connections opt into detouring without
    relying on the module attributes being swapped.
    """
    if scheme not in ("http", "https"):
        raise ValueError(f"Unsupported scheme: {scheme!r}")
    if _selector is None:
        return REAL_HTTPS_CONNECTION if scheme == "https" else REAL_HTTP_CONNECTION

    from ._connection import DetourHTTPConnection, DetourHTTPSConnection

    return DetourHTTPSConnection if scheme == "https" else DetourHTTPConnection


def _install() -> None:
    from ._connection import DetourHTTPConnection, DetourHTTPSConnection

    http.client.HTTPConnection = DetourHTTPConnection  # type: ignore[misc]
    http.client.HTTPSConnection = DetourHTTPSConnection  # type: ignore[misc]


def _uninstall() -> None:
    http.client.HTTPConnection = REAL_HTTP_CONNECTION  # type: ignore[misc]
    http.client.HTTPSConnection = REAL_HTTPS_CONNECTION  # type: ignore[misc]
