"""
Routes package for the Task Manager application.

This package contains route blueprints:
- api: REST API endpoints for task CRUD
- health: liveness and readiness probes
"""
