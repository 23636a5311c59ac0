"""
Error taxonomy for task operations.

Every failure a caller can observe is one of the exceptions below. Each
carries a stable ``code`` so the HTTP layer (and any other caller) can tell
a validation failure from a missing record from a storage outage without
inspecting messages.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FieldErrorCode(str, Enum):
    """Kinds of field-level validation failure."""

    MISSING_FIELD = "MISSING_FIELD"
    FIELD_EMPTY = "FIELD_EMPTY"
    FIELD_TOO_LONG = "FIELD_TOO_LONG"
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_ENUM_VALUE = "INVALID_ENUM_VALUE"
    INVALID_DATE = "INVALID_DATE"
    EMPTY_UPDATE = "EMPTY_UPDATE"
    INVALID_QUERY = "INVALID_QUERY"


@dataclass(frozen=True)
class FieldError:
    """A single rejected field: which one, why, and a readable message."""

    field: str
    code: FieldErrorCode
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "code": self.code.value, "message": self.message}


class TaskError(Exception):
    """Base class for all task-operation failures."""

    code = "TASK_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error to a JSON-safe dictionary."""
        return {"error": self.message, "code": self.code}


class ValidationFailed(TaskError):
    """Client input was malformed. Raised before any storage access."""

    code = "VALIDATION_FAILED"

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(dict.fromkeys(error.field for error in self.errors))
        super().__init__(f"Validation failed: {fields}")

    @property
    def fields(self) -> list[str]:
        """Names of the offending fields, in report order."""
        return [error.field for error in self.errors]

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["details"] = [error.to_dict() for error in self.errors]
        return data


class TaskNotFound(TaskError):
    """The referenced task does not exist (or no longer exists)."""

    code = "NOT_FOUND"

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task with ID {task_id} not found")


class InvalidTransition(TaskError):
    """A status change skipped the task workflow while the guard is enabled."""

    code = "INVALID_TRANSITION"

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move task from {current} to {requested}")


class StorageError(TaskError):
    """The underlying store was unavailable or rejected the operation."""

    code = "STORAGE_ERROR"


class RequestTimeout(TaskError):
    """The request ran longer than the configured bound."""

    code = "TIMEOUT"

    def __init__(self, seconds: float):
        self.seconds = seconds
        super().__init__("Request timeout")
