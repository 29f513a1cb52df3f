"""Listener fan-out for orchestrator events."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

from continuity.constants import CortexEventType

logger = logging.getLogger(__name__)


class CortexEventListener:
    """Observer of orchestrator events.

    Every callback is optional: subclass and override the ones you
    need, or pass any object that defines some of these methods. A
    callback may be a plain function or a coroutine function.
    """

    def on_file_operation(self, event: Any) -> Any: ...

    def on_analysis_start(self, file_info: Any) -> Any: ...

    def on_analysis_complete(self, result: Any) -> Any: ...

    def on_recommendation(self, recommendation: Any) -> Any: ...

    def on_error(self, error: Any) -> Any: ...

    def on_status_change(self, status: Any) -> Any: ...


class EventDispatcher:
    """Fan-out dispatcher -- delivers events to every registered listener.

    Best-effort delivery: a listener that raises is logged and counted,
    and the remaining listeners still receive the event.
    """

    def __init__(
        self, on_failure: Callable[[], None] | None = None
    ) -> None:
        self._listeners: list[object] = []
        self._on_failure = on_failure

    def add(self, listener: object) -> None:
        """Register a listener. Registering the same object twice is a no-op."""
        if not any(existing is listener for existing in self._listeners):
            self._listeners.append(listener)

    def remove(self, listener: object) -> None:
        self._listeners = [
            existing for existing in self._listeners if existing is not listener
        ]

    async def dispatch(
        self, event_type: CortexEventType, payload: Any
    ) -> None:
        for listener in list(self._listeners):
            handler = getattr(listener, event_type.value, None)
            if not callable(handler):
                continue
            try:
                outcome = handler(payload)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.warning(
                    "event=listener_error listener=%s callback=%s",
                    type(listener).__name__,
                    event_type.value,
                    exc_info=True,
                )
                if self._on_failure is not None:
                    self._on_failure()

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
