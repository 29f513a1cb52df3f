"""In-memory fake interceptor for testing and embedding.

No filesystem access: callers push events with :meth:`emit`.
"""

from __future__ import annotations

from collections.abc import Sequence

from continuity.interception.protocols import FileOperationHandler
from continuity.interception.schemas import (
    FileOperationEvent,
    MonitoringConfig,
)


class ManualInterceptor:
    """Records lifecycle calls and delivers events on demand."""

    def __init__(self, *, fail_on_start: Exception | None = None) -> None:
        self.handlers: list[FileOperationHandler] = []
        self.started_with: list[list[str]] = []
        self.configs: list[MonitoringConfig | None] = []
        self.stop_calls = 0
        self.running = False
        self.fail_on_start = fail_on_start

    def on_file_operation(self, handler: FileOperationHandler) -> None:
        if handler not in self.handlers:
            self.handlers.append(handler)

    def off_file_operation(self, handler: FileOperationHandler) -> None:
        if handler in self.handlers:
            self.handlers.remove(handler)

    async def start(
        self,
        paths: Sequence[str],
        config: MonitoringConfig | None = None,
    ) -> None:
        if self.fail_on_start is not None:
            raise self.fail_on_start
        self.started_with.append(list(paths))
        self.configs.append(config)
        self.running = True

    async def stop(self) -> None:
        self.stop_calls += 1
        self.running = False

    async def emit(self, event: FileOperationEvent) -> None:
        """Deliver *event* to every subscribed handler, in order."""
        for handler in list(self.handlers):
            await handler(event)
