"""
Task service - use-case orchestration.

Each public method validates its input first (so malformed requests never
reach the database), then makes the repository call for the use case.
``TaskNotFound`` and ``StorageError`` from the repository pass through
unchanged.

Status workflow::

    PENDING -> IN_PROGRESS -> COMPLETED
    PENDING -> CANCELLED
    IN_PROGRESS -> CANCELLED

The workflow is advisory. Any status may be set at any time unless the
service is built with ``enforce_transitions=True``, in which case a change
along any other edge raises ``InvalidTransition``.
"""

from __future__ import annotations

import logging
from typing import Any

from .errors import InvalidTransition
from .models import Task, TaskStatus
from .repository import TaskRepository
from .validation import TaskFilter, validate_create, validate_update

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}


class TaskService:
    """Orchestrates validation and repository calls per use case."""

    def __init__(self, repository: TaskRepository, *, enforce_transitions: bool = False):
        self.repository = repository
        self.enforce_transitions = enforce_transitions

    def create_task(self, payload: Any) -> Task:
        """Validate *payload* and store a new task."""
        fields = validate_create(payload)
        task = self.repository.create(fields)
        logger.info("Created task with ID: %s", task.id)
        return task

    def update_task(self, task_id: int, payload: Any) -> Task:
        """Validate a partial update and apply it to task *task_id*."""
        patch = validate_update(payload)
        if self.enforce_transitions and patch.status:
            current = self.repository.find_by_id(task_id).status
            self._check_transition(current, patch.status)
        task = self.repository.update(task_id, patch)
        logger.info("Updated task %s (%s)", task_id, ", ".join(patch.changes()))
        return task

    def update_status(self, task_id: int, status: Any) -> Task:
        """Change only the status of task *task_id*."""
        return self.update_task(task_id, {"status": status})

    def remove_task(self, task_id: int) -> dict[str, Any]:
        """Delete task *task_id* and return a confirmation naming it."""
        deleted_id = self.repository.delete(task_id)
        logger.info("Deleted task %s", deleted_id)
        return {"message": "Task deleted successfully", "id": deleted_id}

    def get_task_by_id(self, task_id: int) -> Task:
        return self.repository.find_by_id(task_id)

    def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        return self.repository.find_all(task_filter)

    def count_tasks(self, task_filter: TaskFilter | None = None) -> int:
        return self.repository.count(task_filter)

    @staticmethod
    def _check_transition(current: TaskStatus, requested: TaskStatus) -> None:
        if current == requested or requested in ALLOWED_TRANSITIONS[current]:
            return
        logger.warning("Rejected status change %s -> %s", current.value, requested.value)
        raise InvalidTransition(current.value, requested.value)
