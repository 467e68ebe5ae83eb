from __future__ import annotations


class DetourError(Exception):
    """Base class for every error raised by httpdetour itself."""


class NoPreviousActivation(DetourError, RuntimeError):
    def __init__(
        self, message: str = "httpdetour was never activated, nothing to reactivate"
    ) -> None:
        super().__init__(message)


class InvalidResponse(DetourError, ValueError):
    """The handler returned something that cannot be sent as an HTTP response."""
