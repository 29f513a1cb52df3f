"""Protocol for the external file-watch collaborator.

Implementations satisfy this protocol structurally (no inheritance).
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Protocol, TypeAlias

from continuity.interception.schemas import (
    FileOperationEvent,
    MonitoringConfig,
)

FileOperationHandler: TypeAlias = Callable[[FileOperationEvent], Awaitable[None]]


class FileOperationInterceptor(Protocol):
    def on_file_operation(self, handler: FileOperationHandler) -> None: ...
    def off_file_operation(self, handler: FileOperationHandler) -> None: ...
    async def start(
        self,
        paths: Sequence[str],
        config: MonitoringConfig | None = None,
    ) -> None:
        """Watch *paths*; *config* replaces the filters when given."""
        ...

    async def stop(self) -> None: ...
