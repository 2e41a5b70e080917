"""Error taxonomy for the counter workflow."""

from __future__ import annotations

from typing import Any


class CounterError(Exception):
    """Base exception for all counter workflow errors."""

    def __init__(self, message: str = "Unexpected error", status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class ValidationError(CounterError):
    """A precondition was violated, either locally or as reported by the backend."""


class ServiceError(CounterError):
    """Network or backend fault; the same request may succeed on retry."""


class NotFoundError(CounterError):
    """The requested record does not exist on the backend."""

    def __init__(self, message: str = "Resource not found", payload: Any = None) -> None:
        super().__init__(message, 404, payload)


class AuthError(CounterError):
    """The session is missing, expired or rejected by the backend."""

    def __init__(self, message: str = "Session expired", payload: Any = None) -> None:
        super().__init__(message, 401, payload)
