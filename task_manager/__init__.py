"""
Flask application factory module.

This module creates and configures the Flask application using
the factory pattern, allowing for different configurations
(development, testing, production).

Settings are resolved once here and handed explicitly to the objects that
need them: the ``TaskService`` gets the transition-guard flag and the
``RequestTimeoutGuard`` gets the timeout. Both are stored on
``app.extensions`` for the blueprints to use.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from flask import Flask, Response, g, request
from flask_sqlalchemy import SQLAlchemy

from config import get_config

# Initialize SQLAlchemy without binding to app
db = SQLAlchemy()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _ensure_sqlite_db_parent_exists(database_uri: str) -> None:
    """Create parent directories for file-based SQLite URIs when missing."""
    sqlite_prefix = "sqlite:///"
    if not database_uri.startswith(sqlite_prefix):
        return

    sqlite_path = database_uri[len(sqlite_prefix):].split("?", 1)[0]
    if not sqlite_path or sqlite_path == ":memory:":
        return

    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)


def _register_request_hooks(app: Flask) -> None:
    """Access logging and the CORS header for the browser client."""

    @app.before_request
    def _start_timer() -> None:
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_and_allow_origin(response: Response) -> Response:
        started = g.get("request_started")
        elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        logger.info(
            "%s %s %s - %.0fms", request.method, request.path, response.status_code, elapsed_ms
        )

        response.headers.setdefault("Access-Control-Allow-Origin", app.config["FRONTEND_URL"])
        response.headers.setdefault(
            "Access-Control-Allow-Methods", "GET, POST, PUT, PATCH, DELETE, OPTIONS"
        )
        response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type, Accept")
        return response


def create_app(
    config_name: str | None = None, overrides: Mapping[str, Any] | None = None
) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     If None, uses FLASK_ENV environment variable.
        overrides: Explicit settings applied on top of the configuration
                   class, e.g. ``{"REQUEST_TIMEOUT_SECONDS": 5}``.

    Returns:
        Configured Flask application instance.
    """
    from .repository import TaskRepository
    from .routes.api import api_bp
    from .routes.health import health_bp
    from .service import TaskService
    from .timeout import RequestTimeoutGuard

    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    logger.info("Creating app with config: %s", config_class.__name__)

    os.makedirs(app.instance_path, exist_ok=True)
    _ensure_sqlite_db_parent_exists(app.config.get("SQLALCHEMY_DATABASE_URI", ""))

    # Initialize extensions
    db.init_app(app)

    app.extensions["task_service"] = TaskService(
        TaskRepository(db.session),
        enforce_transitions=bool(app.config.get("ENFORCE_STATUS_TRANSITIONS")),
    )
    app.extensions["request_timeout"] = RequestTimeoutGuard(
        app.config.get("REQUEST_TIMEOUT_SECONDS")
    )

    # Register blueprints
    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(api_bp, url_prefix="/api/v1")
    _register_request_hooks(app)

    # Create database tables
    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

    return app
