"""Explicit callback registration used by entities to report commands."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

_LOGGER = logging.getLogger(__name__)


class Signal:
    """A named list of callbacks.

    Callbacks are invoked in connection order. A callback returning a
    coroutine is scheduled on the running loop. Exceptions raised by a
    callback are logged and do not reach the emitter.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._callbacks: list[Callable[..., Any]] = []
        self._tasks: set[asyncio.Task] = set()

    def __repr__(self) -> str:
        return f"<Signal {self.name} callbacks={len(self._callbacks)}>"

    def __len__(self) -> int:
        return len(self._callbacks)

    def connect(self, callback: Callable[..., Any]) -> Callable[[], None]:
        """Register a callback and return a function that removes it."""
        self._callbacks.append(callback)

        def _remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _remove

    def emit(self, *args: Any) -> None:
        for callback in list(self._callbacks):
            try:
                result = callback(*args)
            except Exception:
                _LOGGER.exception("Error in %s handler %r", self.name, callback)
                continue
            if asyncio.iscoroutine(result):
                self._schedule(result)

    def _schedule(self, coro) -> None:
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            _LOGGER.error("Cannot run async %s handler without an event loop", self.name)
            return
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            _LOGGER.error(
                "Error in async %s handler: %s", self.name, error, exc_info=error
            )
