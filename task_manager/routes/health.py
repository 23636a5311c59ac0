"""
Health-check endpoints for deployment verification.

Endpoints:
    GET /api/health            - Service health (version, environment)
    GET /api/health/liveness   - Process is up
    GET /api/health/readiness  - Database answers a trivial query
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, jsonify

from ..errors import StorageError
from ..models import utcnow

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Health check endpoint for deployment verification."""
    return jsonify({
        "status": "healthy",
        "service": "tasks",
        "environment": current_app.config["ENVIRONMENT"],
        "version": current_app.config["APP_VERSION"],
    }), 200


@health_bp.route("/health/liveness", methods=["GET"])
def liveness() -> tuple[Response, int]:
    return jsonify({"status": "ok", "timestamp": utcnow().isoformat()}), 200


@health_bp.route("/health/readiness", methods=["GET"])
def readiness() -> tuple[Response, int]:
    """
    Report whether the service can reach its database.

    Returns 503 with ``database: down`` so orchestrators stop routing
    traffic while storage is unreachable.
    """
    try:
        current_app.extensions["task_service"].repository.ping()
    except StorageError:
        logger.warning("Readiness check failed: database unreachable")
        return jsonify({"status": "unavailable", "database": "down"}), 503
    return jsonify({"status": "ok", "database": "up"}), 200
