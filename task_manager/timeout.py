"""
Request-level timeout guard.

Task endpoints run their body on a worker thread, carrying a copy of the
request context, while the request thread waits for at most the configured
number of seconds. When the bound is exceeded the request thread raises
``RequestTimeout``; the worker is abandoned and finishes (or fails) on its
own, with no compensating rollback beyond what the database itself does.

Under WSGI nothing reaches the client until the view returns, so a timeout
response can never follow a response that was already sent.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from functools import wraps
from typing import Any, Callable, TypeVar

from flask import copy_current_request_context, current_app

from .errors import RequestTimeout

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class RequestTimeoutGuard:
    """
    Run callables with an upper bound on wall-clock time.

    Args:
        seconds: The bound. ``0`` or ``None`` runs callables inline with no
            bound at all.
        max_workers: Size of the worker pool.
    """

    def __init__(self, seconds: float | None, max_workers: int | None = None):
        self.seconds = seconds or None
        self._executor: ThreadPoolExecutor | None = None
        if self.seconds:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="task-request"
            )

    def run(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        if self._executor is None:
            return func(*args, **kwargs)

        future = self._executor.submit(copy_current_request_context(func), *args, **kwargs)
        try:
            return future.result(timeout=self.seconds)
        except FutureTimeoutError:
            if future.done():
                # The callable itself raised TimeoutError.
                raise
            future.cancel()
            logger.warning("Request exceeded %ss, abandoning in-flight work", self.seconds)
            raise RequestTimeout(self.seconds) from None

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)


def with_request_timeout(view: F) -> F:
    """Decorate a view so it runs under the application's timeout guard."""

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        guard: RequestTimeoutGuard = current_app.extensions["request_timeout"]
        return guard.run(view, *args, **kwargs)

    return wrapper  # type: ignore[return-value]
