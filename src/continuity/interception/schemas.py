"""Pydantic models for events emitted by the file interceptor."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from continuity.analysis.schemas import FileInfo, FileMetadata
from continuity.constants import (
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_MAX_FILE_SIZE,
    FileOperation,
)


class FileOperationEvent(BaseModel):
    """A debounced, filtered file operation."""

    model_config = ConfigDict(frozen=True)

    operation: FileOperation
    path: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    content: str | None = None
    content_hash: str | None = None
    metadata: FileMetadata = Field(default_factory=FileMetadata)

    def to_file_info(self) -> FileInfo:
        return FileInfo(
            path=self.path,
            content=self.content,
            content_hash=self.content_hash,
            metadata=self.metadata,
        )


class MonitoringConfig(BaseModel):
    """What the interceptor watches and which operations it reports."""

    model_config = ConfigDict(frozen=True)

    watch_paths: list[str] = Field(
        default_factory=lambda: [str(Path.cwd())]
    )
    ignore_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS)
    )
    debounce_ms: int = 300
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    enabled_operations: list[FileOperation] = Field(
        default_factory=lambda: list(FileOperation)
    )
