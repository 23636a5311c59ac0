"""
Database models for the Task Manager application.

This module defines the SQLAlchemy model representing a task, along with
the closed enumerations used for task status and priority. The enums are
the single source of truth for legal values: the validation layer checks
membership against them and the ``tasks`` columns persist them through
``db.Enum`` keyed on the same member values.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from . import db

TITLE_MAX_LENGTH = 255


class TaskStatus(str, Enum):
    """
    Enumeration of possible task lifecycle statuses.

    Inherits from ``str`` so that each member serialises directly to its
    value and compares equal to the raw string clients send.
    """

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TaskPriority(str, Enum):
    """Enumeration of task priority levels."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def enum_values(enum_class: type[Enum]) -> list[str]:
    """Return the persisted string values of an enum, in declaration order."""
    return [member.value for member in enum_class]


def utcnow() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalise a datetime to UTC.

    Naive datetimes (SQLite drops ``tzinfo`` on the way back out) are assumed
    to already represent UTC and get the timezone attached. Aware datetimes
    are converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Task(db.Model):
    """
    Task model representing a unit of work.

    Attributes:
        id: Storage-generated identifier. AUTOINCREMENT keeps ids from
            being reused after a delete.
        title: Short title describing the task (max 255 characters).
        description: Optional longer text.
        status: Current status (see ``TaskStatus``), never null.
        priority: Optional priority level (see ``TaskPriority``).
        due_date: Optional timezone-aware deadline.
        created_at: Timestamp when the task was created.
        updated_at: Timestamp when the task was last modified.
    """

    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}

    id: int = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title: str = db.Column(db.String(TITLE_MAX_LENGTH), nullable=False)
    description: str | None = db.Column(db.Text, nullable=True)
    status: TaskStatus = db.Column(
        db.Enum(
            TaskStatus,
            name="task_status",
            native_enum=False,
            length=20,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=TaskStatus.PENDING,
        index=True,
    )
    priority: TaskPriority | None = db.Column(
        db.Enum(
            TaskPriority,
            name="task_priority",
            native_enum=False,
            length=20,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=True,
        index=True,
    )
    due_date: datetime | None = db.Column(
        db.DateTime(timezone=True), nullable=True, index=True
    )
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    @staticmethod
    def _to_utc_iso(value: datetime | None) -> str | None:
        """
        Convert datetime to an ISO-8601 UTC string.

        SQLite commonly returns naive datetime values even when timezone-aware
        columns are declared. For API contracts, always normalize to UTC.
        """
        if value is None:
            return None
        return ensure_utc(value).isoformat()

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the task to a dictionary representation.

        Returns:
            Dictionary containing all task fields, enums as their string
            values and datetimes as UTC ISO-8601 strings.
        """
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value if self.status is not None else None,
            "priority": self.priority.value if self.priority is not None else None,
            "due_date": self._to_utc_iso(self.due_date),
            "created_at": self._to_utc_iso(self.created_at),
            "updated_at": self._to_utc_iso(self.updated_at),
        }

    def __repr__(self) -> str:
        """Return string representation of the task."""
        return f"<Task {self.id}: {self.title}>"
