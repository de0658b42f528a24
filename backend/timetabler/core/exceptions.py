from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that map onto an HTTP status and JSON body."""

    def __init__(self, message: str, status_code: int = 500, details: dict[str, Any] | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"message": self.message, "details": self.details}


class SchedulerError(AppError):
    """A generation run was rejected because its inputs cannot be scheduled at all."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, status_code=400, details=details)


class InvariantViolationError(AppError):
    """The engine reached a state its own construction rules forbid."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, status_code=500, details=details)


class ConfigurationError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
