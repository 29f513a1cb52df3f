"""File-operation interception, the watch side of the pipeline."""

from continuity.interception.interceptor import DebouncedInterceptor
from continuity.interception.protocols import (
    FileOperationHandler,
    FileOperationInterceptor,
)
from continuity.interception.schemas import (
    FileOperationEvent,
    MonitoringConfig,
)

__all__ = [
    "DebouncedInterceptor",
    "FileOperationEvent",
    "FileOperationHandler",
    "FileOperationInterceptor",
    "MonitoringConfig",
]
