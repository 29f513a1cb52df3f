"""Bounded TTL cache of completed analyses.

Single-process, event-loop-confined: no locking, every method runs
between awaits. Every ``clear`` starts a new generation; a write tagged
with an older generation is dropped, so work that began before a clear
cannot repopulate the cache.
"""

from __future__ import annotations

import hashlib
import json
import time
from collections.abc import Callable
from dataclasses import dataclass

from continuity.analysis.schemas import FileInfo
from continuity.constants import CACHE_MAX_ENTRIES
from continuity.cortex.schemas import CortexAnalysisResult


def cache_key(file_info: FileInfo) -> str:
    """Fingerprint of path, content, size and modification time."""
    fingerprint = file_info.content_hash
    if fingerprint is None and file_info.content is not None:
        fingerprint = hashlib.sha256(
            file_info.content.encode("utf-8")
        ).hexdigest()
    payload = json.dumps(
        {
            "path": file_info.path,
            "content": fingerprint,
            "size": file_info.metadata.size,
            "last_modified": file_info.metadata.last_modified.isoformat(),
        },
        sort_keys=True,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class _Entry:
    result: CortexAnalysisResult
    stored_at: float
    ttl_ms: int


class AnalysisCache:
    """Insertion-ordered cache; the oldest entry is evicted when full."""

    def __init__(
        self,
        *,
        max_entries: int = CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, _Entry] = {}
        self._max_entries = max_entries
        self._clock = clock
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def get(self, key: str) -> CortexAnalysisResult | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        age_ms = (self._clock() - entry.stored_at) * 1000
        if age_ms > entry.ttl_ms:
            del self._entries[key]
            return None
        return entry.result

    def put(
        self,
        key: str,
        result: CortexAnalysisResult,
        ttl_ms: int,
        *,
        generation: int | None = None,
    ) -> bool:
        """Store *result*; returns False if *generation* is stale."""
        if generation is not None and generation != self._generation:
            return False
        self._entries.pop(key, None)
        self._entries[key] = _Entry(
            result=result, stored_at=self._clock(), ttl_ms=ttl_ms
        )
        while len(self._entries) > self._max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._generation += 1

    def __len__(self) -> int:
        return len(self._entries)
