"""
Task repository - database operations for Task.

Every method is a direct round-trip to the database through the SQLAlchemy
session; nothing is cached between calls. Each write commits on its own, so
a single record is the unit of atomicity. Driver and engine failures are
rolled back and surfaced as ``StorageError``; they are never retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import case, delete, func, or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.sql import Select

from .errors import StorageError, TaskNotFound
from .models import Task, TaskPriority, TaskStatus, ensure_utc, utcnow
from .validation import NewTask, TaskFilter, TaskPatch

logger = logging.getLogger(__name__)

_ENUM_SORTS = {"status": TaskStatus, "priority": TaskPriority}


def _sort_key(name: str):
    """Return the ORDER BY expression for sortable column *name*."""
    column = getattr(Task, name)
    enum_class = _ENUM_SORTS.get(name)
    if enum_class is None:
        return column
    # Stored as VARCHAR, so rank by declaration order instead of text.
    return case({member.value: rank for rank, member in enumerate(enum_class)}, value=column)


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _storage(self, action: str) -> Iterator[None]:
        """Roll back and translate driver errors raised while performing *action*."""
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Storage failure while trying to %s: %s", action, exc)
            raise StorageError(f"Could not {action}") from exc

    def create(self, fields: NewTask) -> Task:
        """Insert a new task and return the stored record."""
        now = utcnow()
        task = Task(
            title=fields.title,
            description=fields.description,
            status=fields.status,
            priority=fields.priority,
            due_date=fields.due_date,
            created_at=now,
            updated_at=now,
        )
        with self._storage("create task"):
            self.session.add(task)
            self.session.commit()
        return task

    def find_by_id(self, task_id: int) -> Task:
        """Return the task with *task_id* or raise ``TaskNotFound``."""
        with self._storage("load task"):
            task = self.session.get(Task, task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def _filtered(self, stmt: Select, task_filter: TaskFilter) -> Select:
        if task_filter.status is not None:
            stmt = stmt.where(Task.status == task_filter.status)
        if task_filter.priority is not None:
            stmt = stmt.where(Task.priority == task_filter.priority)
        if task_filter.search:
            pattern = f"%{task_filter.search}%"
            stmt = stmt.where(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))
        return stmt

    def find_all(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """
        List tasks matching *task_filter*.

        Tasks come back in insertion order unless a sort key is given; ties
        on the sort key keep insertion order. ``status`` and ``priority``
        sort in declaration order (PENDING before IN_PROGRESS, LOW before
        HIGH), not alphabetically. Tasks with no value for the sort key come
        last in either direction. No limit is applied unless the filter
        carries one.
        """
        task_filter = task_filter or TaskFilter()
        stmt = self._filtered(select(Task), task_filter)

        if task_filter.sort:
            column = getattr(Task, task_filter.sort)
            key = _sort_key(task_filter.sort)
            stmt = stmt.order_by(
                column.is_(None),
                key.desc() if task_filter.order == "desc" else key.asc(),
            )
        stmt = stmt.order_by(Task.id.asc())

        if task_filter.limit is not None:
            stmt = stmt.limit(task_filter.limit).offset(task_filter.offset or 0)

        with self._storage("list tasks"):
            return list(self.session.scalars(stmt).all())

    def count(self, task_filter: TaskFilter | None = None) -> int:
        """Count tasks matching *task_filter*, ignoring its window."""
        stmt = self._filtered(select(func.count()).select_from(Task), task_filter or TaskFilter())
        with self._storage("count tasks"):
            return self.session.scalar(stmt) or 0

    def update(self, task_id: int, patch: TaskPatch) -> Task:
        """
        Apply the supplied fields of *patch* and refresh ``updated_at``.

        Fields the patch leaves unset keep their stored values.
        """
        task = self.find_by_id(task_id)
        for name, value in patch.changes().items():
            setattr(task, name, value)
        # Never step backwards, even if the wall clock does.
        task.updated_at = max(utcnow(), ensure_utc(task.updated_at))

        try:
            with self._storage("update task"):
                self.session.commit()
        except StorageError as exc:
            if isinstance(exc.__cause__, StaleDataError):
                raise TaskNotFound(task_id) from None
            raise
        return task

    def delete(self, task_id: int) -> int:
        """
        Permanently remove a task and return its id.

        A second delete of the same id raises ``TaskNotFound``.
        """
        with self._storage("delete task"):
            result = self.session.execute(delete(Task).where(Task.id == task_id))
            if result.rowcount == 0:
                self.session.rollback()
                raise TaskNotFound(task_id)
            self.session.commit()
        return task_id

    def ping(self) -> None:
        """Run a trivial query to prove the database answers."""
        with self._storage("reach the database"):
            self.session.execute(text("SELECT 1"))
