"""
Helper utilities for Locust performance scenarios.

Provides the building blocks that every Locust user class relies on:
JSON parsing that tolerates error bodies, and randomised payload and
query factories.  Keeping these in a shared module avoids duplication
across scenario files and makes it easy to adjust data-generation
strategies in one place.

Key Concepts Demonstrated:
- Randomised payloads to defeat server-side caching and exercise
  varied code paths
- Query-string factories that cover the list endpoint's filters
"""

from __future__ import annotations

import random
import string
from datetime import datetime, timedelta, timezone
from typing import Any

STATUSES = ["PENDING", "IN_PROGRESS", "COMPLETED", "CANCELLED"]
PRIORITIES = ["LOW", "MEDIUM", "HIGH"]
SORT_FIELDS = ["created_at", "updated_at", "due_date", "priority", "status", "title"]

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def safe_json(response: Any) -> dict[str, Any]:
    """
    Return response JSON as dict, or an empty dict if parsing fails.

    Locust responses may contain non-JSON bodies (e.g. on 5xx errors or
    proxy timeouts).  Using this wrapper prevents ``ValueError`` from
    propagating into task methods where it would abort the virtual user.

    Args:
        response: A Locust/requests ``Response`` object.

    Returns:
        The parsed JSON body as a dictionary, or ``{}`` if parsing fails
        or the top-level value is not a dict.
    """
    try:
        data = response.json()
    except ValueError:
        return {}

    if isinstance(data, dict):
        return data
    return {}


def random_status() -> str:
    """Pick a random task status value from those the API accepts."""
    return random.choice(STATUSES)


def random_task_payload() -> dict[str, Any]:
    """
    Build a valid task-create payload with small randomised variance.

    Every field is populated with a random but schema-valid value so
    that the server processes a realistic spread of inputs rather than
    hitting the same cached/optimised path repeatedly.

    Returns:
        A JSON-serialisable dictionary matching the task-create schema.
    """
    now_utc = datetime.now(timezone.utc)
    due_date = (now_utc + timedelta(days=random.randint(1, 14))).isoformat()

    title_suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=5))
    return {
        "title": f"Perf task {title_suffix}",
        "description": "Created by Locust performance test",
        "priority": random.choice(PRIORITIES + [None]),
        "status": random_status(),
        "due_date": due_date,
    }


def random_task_update_payload() -> dict[str, Any]:
    """
    Build a valid task-update payload.

    Unlike creates, real updates usually touch only one or two fields at
    a time.  This function mirrors that pattern by selecting a single
    random field from the full payload.

    Returns:
        A JSON-serialisable dictionary containing exactly one mutable
        task field.
    """
    base = random_task_payload()

    candidates: list[dict[str, Any]] = [
        {"title": base["title"]},
        {"description": f"Updated at {datetime.now(timezone.utc).isoformat()}"},
        {"priority": base["priority"]},
        {"status": base["status"]},
        {"due_date": None},
    ]
    return random.choice(candidates)


def random_list_query() -> dict[str, str]:
    """Build a list query with a random mix of filter, sort, and paging."""
    query: dict[str, str] = {}
    if random.random() < 0.5:
        query["status"] = random_status()
    if random.random() < 0.3:
        query["priority"] = random.choice(PRIORITIES)
    if random.random() < 0.2:
        query["search"] = "perf"
    if random.random() < 0.5:
        query["sort"] = random.choice(SORT_FIELDS)
        query["order"] = random.choice(["asc", "desc"])
    if random.random() < 0.5:
        query["page"] = str(random.randint(1, 3))
        query["limit"] = str(random.choice([10, 25, 50]))
    return query
