"""
REST API endpoints for Task management.

Thin adapters over ``TaskService``: parse the request, call one service
method, serialise the result. All endpoints return JSON and run under the
request timeout guard.

Endpoints:
    GET    /api/v1/tasks              - List tasks (optional filters, sort, pages)
    GET    /api/v1/tasks/<id>         - Get a single task by ID
    POST   /api/v1/tasks              - Create a new task
    PUT    /api/v1/tasks/<id>         - Partially update a task
    PATCH  /api/v1/tasks/<id>         - Partially update a task
    PATCH  /api/v1/tasks/<id>/status  - Update task status only
    DELETE /api/v1/tasks/<id>         - Delete a task

Errors are returned as ``{"error": message, "code": CODE}``; validation
failures add a ``details`` list with one entry per rejected field.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from flask import Blueprint, Response, current_app, jsonify, request

from ..errors import (
    FieldError,
    FieldErrorCode,
    InvalidTransition,
    RequestTimeout,
    StorageError,
    TaskError,
    TaskNotFound,
    ValidationFailed,
)
from ..service import TaskService
from ..timeout import with_request_timeout
from ..validation import validate_list_query

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

ERROR_STATUS_CODES: dict[type[TaskError], int] = {
    ValidationFailed: 400,
    TaskNotFound: 404,
    RequestTimeout: 408,
    InvalidTransition: 409,
    StorageError: 500,
}


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def _service() -> TaskService:
    return current_app.extensions["task_service"]


def _json_body() -> Any:
    """Return the decoded JSON body or fail validation when there is none."""
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationFailed([
            FieldError("body", FieldErrorCode.INVALID_TYPE, "Request body must be JSON")
        ])
    return data


# -----------------------------------------------------------------------------
# API Endpoints
# -----------------------------------------------------------------------------

@api_bp.route("/tasks", methods=["GET"])
@with_request_timeout
def get_tasks() -> tuple[Response, int]:
    """
    List tasks with optional filtering, sorting and paging.

    Query Parameters:
        status: Filter by status (PENDING, IN_PROGRESS, COMPLETED, CANCELLED)
        priority: Filter by priority (LOW, MEDIUM, HIGH)
        search: Substring match on title or description
        sort: Sort field (created_at, updated_at, due_date, priority, status, title)
        order: Sort order (asc, desc)
        page, limit: Optional paging window (limit at most 100)

    Returns:
        JSON response with list of tasks and 200 status code. A ``meta``
        object is included when paging was requested.
    """
    task_filter = validate_list_query(request.args)
    service = _service()

    tasks = service.list_tasks(task_filter)
    body: dict[str, Any] = {
        "tasks": [task.to_dict() for task in tasks],
        "count": len(tasks),
    }
    if task_filter.paginated:
        total = service.count_tasks(task_filter)
        body["meta"] = {
            "page": task_filter.page,
            "limit": task_filter.limit,
            "total": total,
            "total_pages": math.ceil(total / task_filter.limit),
        }
    return jsonify(body), 200


@api_bp.route("/tasks/<int:task_id>", methods=["GET"])
@with_request_timeout
def get_task(task_id: int) -> tuple[Response, int]:
    """Get a single task by ID."""
    task = _service().get_task_by_id(task_id)
    return jsonify(task.to_dict()), 200


@api_bp.route("/tasks", methods=["POST"])
@with_request_timeout
def create_task() -> tuple[Response, int]:
    """
    Create a new task.

    Request Body (JSON):
        title: Task title (required, at most 255 characters)
        description: Task description (optional)
        status: Task status (optional, default: PENDING)
        priority: Task priority (optional, default: null)
        due_date: Due date in ISO format (optional)

    Returns:
        JSON response with created task and 201 status code.
    """
    task = _service().create_task(_json_body())
    return jsonify(task.to_dict()), 201


@api_bp.route("/tasks/<int:task_id>", methods=["PUT", "PATCH"])
@with_request_timeout
def update_task(task_id: int) -> tuple[Response, int]:
    """
    Update an existing task.

    Only the fields present in the body change. A field sent as ``null``
    is cleared (description, priority, due_date).
    """
    task = _service().update_task(task_id, _json_body())
    return jsonify(task.to_dict()), 200


@api_bp.route("/tasks/<int:task_id>/status", methods=["PATCH"])
@with_request_timeout
def update_task_status(task_id: int) -> tuple[Response, int]:
    """
    Update only the status of a task.

    Request Body (JSON):
        status: New status
    """
    data = _json_body()
    if not isinstance(data, dict) or "status" not in data:
        raise ValidationFailed([
            FieldError("status", FieldErrorCode.MISSING_FIELD, "'status' field is required")
        ])
    task = _service().update_status(task_id, data["status"])
    return jsonify(task.to_dict()), 200


@api_bp.route("/tasks/<int:task_id>", methods=["DELETE"])
@with_request_timeout
def delete_task(task_id: int) -> tuple[Response, int]:
    """Delete a task and confirm which one was removed."""
    return jsonify(_service().remove_task(task_id)), 200


# -----------------------------------------------------------------------------
# Error Handlers
# -----------------------------------------------------------------------------

@api_bp.errorhandler(TaskError)
def task_error(error: TaskError) -> tuple[Response, int]:
    """Map a task-operation failure to its HTTP status."""
    status_code = ERROR_STATUS_CODES.get(type(error), 500)
    if isinstance(error, ValidationFailed):
        logger.warning("Validation failed: %s", [e.to_dict() for e in error.errors])
    elif isinstance(error, TaskNotFound):
        logger.warning("Task %s not found", error.task_id)
    elif status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.path, error)
    return jsonify(error.to_dict()), status_code


@api_bp.app_errorhandler(400)
def bad_request(error: Exception) -> tuple[Response, int]:
    """Handle 400 Bad Request errors raised outside the validators."""
    return jsonify({"error": "Bad request", "code": "BAD_REQUEST"}), 400


@api_bp.app_errorhandler(404)
def not_found(error: Exception) -> tuple[Response, int]:
    """Handle 404 Not Found errors."""
    return jsonify({"error": "Resource not found", "code": "NOT_FOUND"}), 404


@api_bp.app_errorhandler(405)
def method_not_allowed(error: Exception) -> tuple[Response, int]:
    """Handle 405 Method Not Allowed errors."""
    return jsonify({"error": "Method not allowed", "code": "METHOD_NOT_ALLOWED"}), 405


@api_bp.app_errorhandler(500)
def internal_error(error: Exception) -> tuple[Response, int]:
    """Handle 500 Internal Server errors."""
    logger.error("Internal server error: %s", error)
    return jsonify({"error": "Internal server error", "code": "INTERNAL_ERROR"}), 500
