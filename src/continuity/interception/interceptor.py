"""Push-fed file interceptor with per-path debounce and ignore filtering.

A host (a filesystem watcher, an editor hook, a test) reports raw
operations through :meth:`DebouncedInterceptor.submit`. Bursts for the
same path collapse into one event after ``debounce_ms`` of quiet, and
the surviving event is enriched with metadata, text content and a
SHA-256 content hash before handlers see it.
"""

from __future__ import annotations

import asyncio
import functools
import hashlib
import logging
import mimetypes
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from pathlib import Path

import pathspec

from continuity.analysis.schemas import FileMetadata
from continuity.constants import (
    BINARY_DETECTION_BUFFER,
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_MIME_TYPE,
    FileOperation,
)
from continuity.interception.protocols import FileOperationHandler
from continuity.interception.schemas import (
    FileOperationEvent,
    MonitoringConfig,
)

logger = logging.getLogger(__name__)


def is_binary(data: bytes) -> bool:
    """Return True if the sample contains a null byte."""
    return b"\x00" in data[:BINARY_DETECTION_BUFFER]


@functools.lru_cache(maxsize=32)
def ignore_spec(patterns: tuple[str, ...]) -> pathspec.PathSpec:
    """Compiled gitignore-style matcher for *patterns*."""
    return pathspec.PathSpec.from_lines("gitwildmatch", patterns)


class DebouncedInterceptor:
    """FileOperationInterceptor fed by explicit ``submit`` calls.

    - Operations outside the watched roots, matching an ignore pattern
      (gitignore syntax) or not in ``enabled_operations`` are dropped.
    - Within the debounce window the latest operation wins, except that
      a ``write`` following a pending ``create`` keeps ``create``.
    - Handler errors are logged and never reach other handlers.
    """

    def __init__(
        self,
        *,
        ignore_patterns: Iterable[str] = DEFAULT_IGNORE_PATTERNS,
        debounce_ms: int = 300,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
        enabled_operations: Iterable[FileOperation] = tuple(FileOperation),
    ) -> None:
        self._ignore = ignore_spec(tuple(ignore_patterns))
        self.debounce_ms = debounce_ms
        self.max_file_size = max_file_size
        self._enabled = frozenset(enabled_operations)
        self._handlers: list[FileOperationHandler] = []
        self._roots: list[Path] = []
        self._pending: dict[str, FileOperation] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._running = False

    # ── FileOperationInterceptor ───────────────────────────

    def on_file_operation(self, handler: FileOperationHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def off_file_operation(self, handler: FileOperationHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def configure(self, config: MonitoringConfig) -> None:
        """Replace the filters, debounce window and size limit."""
        self._ignore = ignore_spec(tuple(config.ignore_patterns))
        self.debounce_ms = config.debounce_ms
        self.max_file_size = config.max_file_size
        self._enabled = frozenset(config.enabled_operations)

    async def start(
        self,
        paths: Sequence[str],
        config: MonitoringConfig | None = None,
    ) -> None:
        """Begin accepting operations under *paths*.

        Calling start again while running replaces the watched roots, and
        *config*, when given, replaces the filters.
        """
        if config is not None:
            self.configure(config)
        self._roots = [Path(p).absolute() for p in paths]
        self._running = True
        logger.info(
            "event=interceptor_started roots=%s",
            ",".join(str(r) for r in self._roots),
        )

    async def stop(self) -> None:
        """Stop accepting operations and drop pending debounced ones."""
        if not self._running:
            return
        self._running = False
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._pending.clear()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("event=interceptor_stopped")

    # ── intake ─────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._running

    @property
    def watched_paths(self) -> list[str]:
        return [str(r) for r in self._roots]

    def should_ignore(self, path: str) -> bool:
        """True when *path* is outside every root or matches a pattern."""
        target = Path(path).absolute()
        for root in self._roots:
            if target == root or target.is_relative_to(root):
                rel = target.relative_to(root).as_posix()
                return bool(rel) and self._ignore.match_file(rel)
        return True

    def submit(self, operation: FileOperation | str, path: str) -> bool:
        """Report a raw operation. Returns False if it was filtered out.

        Must be called from the event loop thread.
        """
        op = FileOperation(operation)
        if not self._running or op not in self._enabled:
            return False
        if self.should_ignore(path):
            logger.debug("event=operation_ignored path=%s", path)
            return False

        key = str(Path(path).absolute())
        previous = self._pending.get(key)
        if previous == FileOperation.CREATE and op == FileOperation.WRITE:
            op = FileOperation.CREATE
        self._pending[key] = op

        existing = self._timers.pop(key, None)
        if existing is not None:
            existing.cancel()
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(
            self.debounce_ms / 1000, self._fire, key
        )
        return True

    async def drain(self) -> None:
        """Fire every pending operation now and wait for handlers."""
        for key in list(self._timers):
            self._timers.pop(key).cancel()
            self._fire(key)
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # ── emission ───────────────────────────────────────────

    def _fire(self, key: str) -> None:
        self._timers.pop(key, None)
        op = self._pending.pop(key, None)
        if op is None or not self._running:
            return
        task = asyncio.create_task(self._emit(op, key))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _emit(self, operation: FileOperation, path: str) -> None:
        event = await asyncio.to_thread(self.read_event, operation, path)
        for handler in list(self._handlers):
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "event=interceptor_handler_error path=%s operation=%s",
                    path,
                    operation,
                )

    def read_event(
        self, operation: FileOperation, path: str
    ) -> FileOperationEvent:
        """Build the event for *path*, reading content when allowed."""
        file_path = Path(path)
        extension = file_path.suffix.lower()
        mime_type = (
            mimetypes.guess_type(file_path.name)[0] or DEFAULT_MIME_TYPE
        )
        if operation == FileOperation.DELETE:
            return FileOperationEvent(
                operation=operation,
                path=path,
                metadata=FileMetadata(
                    extension=extension, mime_type=mime_type
                ),
            )

        try:
            stat = file_path.stat()
        except OSError as exc:
            logger.debug("event=stat_failed path=%s error=%s", path, exc)
            return FileOperationEvent(
                operation=operation,
                path=path,
                metadata=FileMetadata(
                    extension=extension, mime_type=mime_type
                ),
            )

        content: str | None = None
        content_hash: str | None = None
        if stat.st_size <= self.max_file_size:
            try:
                data = file_path.read_bytes()
            except OSError as exc:
                logger.debug("event=read_failed path=%s error=%s", path, exc)
            else:
                if not is_binary(data):
                    content = data.decode("utf-8", errors="replace")
                    content_hash = hashlib.sha256(
                        content.encode("utf-8")
                    ).hexdigest()

        return FileOperationEvent(
            operation=operation,
            path=path,
            content=content,
            content_hash=content_hash,
            metadata=FileMetadata(
                size=stat.st_size,
                extension=extension,
                mime_type=mime_type,
                last_modified=datetime.fromtimestamp(stat.st_mtime, UTC),
                encoding="utf-8" if content is not None else None,
            ),
        )
