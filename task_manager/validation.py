"""
Validation layer for task payloads.

Turns untyped request data into strongly-typed structures, or raises
``ValidationFailed`` listing every offending field in the order the fields
were checked. These functions never touch storage.

Update payloads become a ``TaskPatch`` where each field is one of:

* ``UNSET`` - not supplied, leave the stored value alone;
* ``None`` - supplied as null, clear the stored value (nullable fields only);
* a value - set it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any

from .errors import FieldError, FieldErrorCode, ValidationFailed
from .models import TITLE_MAX_LENGTH, TaskPriority, TaskStatus, ensure_utc, enum_values

TASK_FIELDS = ("title", "description", "status", "priority", "due_date")
SORTABLE_FIELDS = ("created_at", "updated_at", "due_date", "priority", "status", "title")
SORT_ORDERS = ("asc", "desc")
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class _Unset:
    """Marker type for fields absent from an update payload."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class NewTask:
    """Normalised fields for a task about to be created."""

    title: str
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority | None = None
    due_date: datetime | None = None


@dataclass(frozen=True)
class TaskPatch:
    """Normalised partial update; see the module docstring for field states."""

    title: Any = UNSET
    description: Any = UNSET
    status: Any = UNSET
    priority: Any = UNSET
    due_date: Any = UNSET

    def changes(self) -> dict[str, Any]:
        """Return only the supplied fields, keyed by column name."""
        return {
            field.name: getattr(self, field.name)
            for field in fields(self)
            if getattr(self, field.name) is not UNSET
        }


@dataclass(frozen=True)
class TaskFilter:
    """Narrowing, ordering and windowing options for listing tasks."""

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    search: str | None = None
    sort: str | None = None
    order: str = "asc"
    limit: int | None = None
    offset: int | None = None

    @property
    def paginated(self) -> bool:
        return self.limit is not None

    @property
    def page(self) -> int:
        if not self.limit:
            return 1
        return (self.offset or 0) // self.limit + 1


class _Invalid(Exception):
    """Internal signal raised by field cleaners."""

    def __init__(self, code: FieldErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# -----------------------------------------------------------------------------
# Field cleaners
# -----------------------------------------------------------------------------

def _clean_title(value: Any) -> str:
    if value is None:
        raise _Invalid(FieldErrorCode.FIELD_EMPTY, "Title cannot be empty")
    if not isinstance(value, str):
        raise _Invalid(FieldErrorCode.INVALID_TYPE, "Title must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise _Invalid(FieldErrorCode.FIELD_EMPTY, "Title cannot be empty")
    if len(trimmed) > TITLE_MAX_LENGTH:
        raise _Invalid(
            FieldErrorCode.FIELD_TOO_LONG,
            f"Title cannot exceed {TITLE_MAX_LENGTH} characters",
        )
    return trimmed


def _clean_description(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise _Invalid(FieldErrorCode.INVALID_TYPE, "Description must be a string")
    return value.strip() or None


def _clean_status(value: Any) -> TaskStatus:
    if not isinstance(value, str) or value not in enum_values(TaskStatus):
        raise _Invalid(
            FieldErrorCode.INVALID_ENUM_VALUE,
            f"Invalid status. Must be one of: {', '.join(enum_values(TaskStatus))}",
        )
    return TaskStatus(value)


def _clean_priority(value: Any) -> TaskPriority | None:
    if value is None:
        return None
    if not isinstance(value, str) or value not in enum_values(TaskPriority):
        raise _Invalid(
            FieldErrorCode.INVALID_ENUM_VALUE,
            f"Invalid priority. Must be one of: {', '.join(enum_values(TaskPriority))}",
        )
    return TaskPriority(value)


def parse_due_date(value: Any) -> datetime | None:
    """
    Parse an optional ISO-8601 date or timestamp into a UTC datetime.

    ``None`` and the empty string both mean "no due date". A trailing ``Z``
    is accepted as UTC.
    """
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise _Invalid(FieldErrorCode.INVALID_DATE, "Due date must be a string in ISO format")
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        raise _Invalid(
            FieldErrorCode.INVALID_DATE,
            "Invalid date format. Must be a valid ISO date string",
        ) from None
    return ensure_utc(parsed)


_CLEANERS = {
    "title": _clean_title,
    "description": _clean_description,
    "status": _clean_status,
    "priority": _clean_priority,
    "due_date": parse_due_date,
}


def _require_mapping(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationFailed([
            FieldError("body", FieldErrorCode.INVALID_TYPE, "Request body must be a JSON object")
        ])
    return payload


def _clean_present(payload: Mapping[str, Any], errors: list[FieldError]) -> dict[str, Any]:
    """Run the cleaner of every recognised field present in *payload*."""
    cleaned: dict[str, Any] = {}
    for name in TASK_FIELDS:
        if name not in payload:
            continue
        try:
            cleaned[name] = _CLEANERS[name](payload[name])
        except _Invalid as problem:
            errors.append(FieldError(name, problem.code, problem.message))
    return cleaned


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------

def validate_create(payload: Any) -> NewTask:
    """
    Validate a create payload.

    Args:
        payload: Deserialised request body.

    Returns:
        A ``NewTask`` with trimmed text, enum members and a UTC due date.
        ``status`` falls back to PENDING when not supplied.

    Raises:
        ValidationFailed: With one ``FieldError`` per rejected field.
    """
    data = _require_mapping(payload)
    errors: list[FieldError] = []

    if data.get("title") is None:
        errors.append(FieldError("title", FieldErrorCode.MISSING_FIELD, "'title' is required"))
        data = {key: value for key, value in data.items() if key != "title"}

    cleaned = _clean_present(data, errors)
    if errors:
        raise ValidationFailed(errors)
    return NewTask(**cleaned)


def validate_update(payload: Any) -> TaskPatch:
    """
    Validate a partial update payload.

    Every field is optional but at least one recognised field must be
    present. Unrecognised keys are ignored.

    Raises:
        ValidationFailed: With ``EMPTY_UPDATE`` when nothing recognisable
            was supplied, otherwise one ``FieldError`` per rejected field.
    """
    data = _require_mapping(payload)
    if not any(name in data for name in TASK_FIELDS):
        raise ValidationFailed([
            FieldError(
                "body",
                FieldErrorCode.EMPTY_UPDATE,
                f"At least one of {', '.join(TASK_FIELDS)} must be provided",
            )
        ])

    errors: list[FieldError] = []
    cleaned = _clean_present(data, errors)
    if errors:
        raise ValidationFailed(errors)
    return TaskPatch(**cleaned)


def _positive_int(args: Mapping[str, Any], name: str, errors: list[FieldError]) -> int | None:
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        value = 0
    if value < 1:
        errors.append(FieldError(
            name, FieldErrorCode.INVALID_QUERY, f"{name.capitalize()} must be a positive integer (minimum 1)"
        ))
        return None
    return value


def validate_list_query(args: Mapping[str, Any]) -> TaskFilter:
    """
    Validate list query parameters.

    Query Parameters:
        status: Exact status to match.
        priority: Exact priority to match.
        search: Case-insensitive text matched against title and description.
        sort: One of ``SORTABLE_FIELDS``; insertion order when absent.
        order: ``asc`` (default) or ``desc``.
        page, limit: Optional window; the full list is returned when both
            are absent.
    """
    errors: list[FieldError] = []
    options: dict[str, Any] = {}

    for name in ("status", "priority"):
        raw = args.get(name)
        if not raw:
            continue
        try:
            options[name] = _CLEANERS[name](raw)
        except _Invalid as problem:
            errors.append(FieldError(name, problem.code, problem.message))

    search = (args.get("search") or "").strip()
    if search:
        options["search"] = search

    sort = args.get("sort")
    if sort:
        if sort not in SORTABLE_FIELDS:
            errors.append(FieldError(
                "sort", FieldErrorCode.INVALID_QUERY,
                f"Invalid sort field. Must be one of: {', '.join(SORTABLE_FIELDS)}",
            ))
        else:
            options["sort"] = sort

    order = args.get("order")
    if order:
        if order not in SORT_ORDERS:
            errors.append(FieldError("order", FieldErrorCode.INVALID_QUERY, "Order must be 'asc' or 'desc'"))
        else:
            options["order"] = order

    page = _positive_int(args, "page", errors)
    limit = _positive_int(args, "limit", errors)
    if limit is not None and limit > MAX_PAGE_SIZE:
        errors.append(FieldError("limit", FieldErrorCode.INVALID_QUERY, f"Limit cannot exceed {MAX_PAGE_SIZE}"))

    if errors:
        raise ValidationFailed(errors)

    if page is not None or limit is not None:
        size = limit or DEFAULT_PAGE_SIZE
        options["limit"] = size
        options["offset"] = ((page or 1) - 1) * size

    return TaskFilter(**options)
