"""ContinuityCortex: ties interception, similarity analysis and decisions.

Everything runs on one event loop. The only shared mutable state is
the active-analysis counter, the cache and the metrics; admission
control reads and increments the counter with no await in between, so
the concurrency ceiling holds without a lock.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from continuity.analysis.protocols import SimilarityAnalyzer
from continuity.analysis.schemas import FileInfo, SimilarityResult
from continuity.analysis.validation import validate_similarities
from continuity.constants import (
    COMPONENT_ANALYZER,
    COMPONENT_DECISION_ENGINE,
    COMPONENT_INTERCEPTOR,
    Action,
    CortexEventType,
    FileOperation,
    RunState,
)
from continuity.cortex.cache import AnalysisCache, cache_key
from continuity.cortex.config import CortexConfig, CortexConfigStore
from continuity.cortex.events import EventDispatcher
from continuity.cortex.metrics import CortexMetrics
from continuity.cortex.schemas import (
    AnalysisRunMetadata,
    ComponentStatuses,
    CortexAnalysisResult,
    CortexStatus,
)
from continuity.engine.decision_engine import FileDecisionEngine
from continuity.engine.rules import rank_similarities
from continuity.engine.schemas import (
    DecisionEngineConfig,
    DecisionThresholds,
    Recommendation,
    RecommendationMetadata,
)
from continuity.errors import (
    AnalysisError,
    AnalysisTimeoutError,
    ConcurrencyRejectedError,
    ContinuityError,
)
from continuity.interception.interceptor import ignore_spec
from continuity.interception.protocols import FileOperationInterceptor
from continuity.interception.schemas import (
    FileOperationEvent,
    MonitoringConfig,
)

logger = logging.getLogger(__name__)

ANALYSIS_DISABLED_REASON = "Analysis disabled"
DECISIONS_DISABLED_REASON = "Decisions disabled; no recommendation computed"


class ContinuityCortex:
    """Orchestrates file-change analysis.

    Usage::

        cortex = ContinuityCortex(interceptor, analyzer)
        cortex.add_event_listener(listener)
        await cortex.start()
        result = await cortex.analyze_file_operation(file_info)
        await cortex.stop()
    """

    def __init__(
        self,
        interceptor: FileOperationInterceptor,
        analyzer: SimilarityAnalyzer,
        config: CortexConfig | Mapping[str, Any] | None = None,
        decision_engine: FileDecisionEngine | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._interceptor = interceptor
        self._analyzer = analyzer
        self._config_store = CortexConfigStore(config)
        self._engine = decision_engine or FileDecisionEngine()
        if decision_engine is None or config is not None:
            self._push_decision_overrides(self._config_store.snapshot())
        self._clock = clock
        self._cache = AnalysisCache(clock=clock)
        self._metrics = CortexMetrics()
        self._dispatcher = EventDispatcher(
            on_failure=self._count_listener_failure
        )

        self._state = RunState.STOPPED
        self._interceptor_state = RunState.STOPPED
        self._monitored: list[str] = []
        self._started_at: float | None = None
        self._active = 0
        self._background: set[asyncio.Task[None]] = set()

    # ── lifecycle ──────────────────────────────────────────

    async def start(self) -> None:
        """Subscribe to the interceptor and start watching. Idempotent."""
        if self._state == RunState.RUNNING:
            return
        config = self._config_store.snapshot()
        paths = self._monitored or list(config.monitoring.watch_paths)

        self._interceptor.on_file_operation(self._handle_file_operation)
        try:
            await self._interceptor.start(paths, config.monitoring)
        except Exception:
            self._interceptor.off_file_operation(self._handle_file_operation)
            logger.exception("event=cortex_start_failed")
            raise

        self._state = RunState.RUNNING
        self._interceptor_state = RunState.RUNNING
        self._monitored = paths
        self._started_at = self._clock()
        logger.info(
            "event=cortex_started paths=%s", ",".join(self._monitored)
        )
        await self._dispatcher.dispatch(
            CortexEventType.STATUS_CHANGE, self.get_status()
        )

    async def stop(self) -> None:
        """Stop watching and wait for watch-triggered analyses. Idempotent.

        Cache and metrics survive a stop.
        """
        if self._state != RunState.RUNNING:
            return
        self._interceptor.off_file_operation(self._handle_file_operation)
        await self._interceptor.stop()
        await self._wait_for_background()

        self._state = RunState.STOPPED
        self._interceptor_state = RunState.STOPPED
        self._monitored = []
        self._started_at = None
        logger.info("event=cortex_stopped")
        await self._dispatcher.dispatch(
            CortexEventType.STATUS_CHANGE, self.get_status()
        )

    async def reset(self) -> None:
        """Clear the cache and zero metrics; config and state are kept."""
        await self._wait_for_background()
        self._cache.clear()
        self._metrics.reset()
        logger.info("event=cortex_reset")

    async def set_monitoring_enabled(
        self, enabled: bool, paths: Sequence[str] | None = None
    ) -> None:
        """Toggle only the interceptor; *paths* replaces the watched set."""
        if enabled:
            config = self._config_store.snapshot()
            if paths:
                self._monitored = list(paths)
            elif not self._monitored:
                self._monitored = list(config.monitoring.watch_paths)
            if self._state == RunState.RUNNING:
                self._interceptor.on_file_operation(
                    self._handle_file_operation
                )
                await self._interceptor.start(
                    self._monitored, config.monitoring
                )
                self._interceptor_state = RunState.RUNNING
        else:
            if self._interceptor_state == RunState.RUNNING:
                self._interceptor.off_file_operation(
                    self._handle_file_operation
                )
                await self._interceptor.stop()
            self._interceptor_state = RunState.STOPPED
            self._monitored = []
        logger.info(
            "event=monitoring_toggled enabled=%s paths=%s",
            enabled,
            ",".join(self._monitored),
        )
        await self._dispatcher.dispatch(
            CortexEventType.STATUS_CHANGE, self.get_status()
        )

    # ── analysis ───────────────────────────────────────────

    async def analyze_file_operation(
        self,
        file_info: FileInfo,
        *,
        triggering_event: FileOperationEvent | None = None,
    ) -> CortexAnalysisResult:
        """Analyze *file_info* and return similarities plus a recommendation.

        Raises:
            ConcurrencyRejectedError: ``max_concurrent_analyses`` are
                already running. Nothing is queued.
            AnalysisTimeoutError: the analyzer overran
                ``analysis_timeout_ms``.
            AnalysisError: the analyzer failed.
            InvalidSimilarityDataError: the analyzer returned malformed
                results.
            DecisionTimeoutError: the decision step overran its budget.

        Every error is also delivered to listeners through ``on_error``.
        """
        config = self._config_store.snapshot()
        limit = config.performance.max_concurrent_analyses
        if self._active >= limit:
            if config.performance.enable_metrics:
                self._metrics.analysis.rejections += 1
            msg = (
                "Maximum concurrent analyses limit reached "
                f"({self._active}/{limit})"
            )
            error = ConcurrencyRejectedError(
                msg, limit=limit, file_path=file_info.path
            )
            logger.warning(
                "event=analysis_rejected path=%s active=%d limit=%d",
                file_info.path,
                self._active,
                limit,
            )
            await self._dispatcher.dispatch(CortexEventType.ERROR, error)
            raise error

        self._active += 1
        try:
            return await self._run_analysis(
                file_info, config, triggering_event
            )
        except ContinuityError as exc:
            if config.performance.enable_metrics:
                if isinstance(exc, AnalysisTimeoutError):
                    self._metrics.analysis.timeouts += 1
                else:
                    self._metrics.analysis.failures += 1
            await self._dispatcher.dispatch(CortexEventType.ERROR, exc)
            raise
        finally:
            self._active -= 1

    async def _run_analysis(
        self,
        file_info: FileInfo,
        config: CortexConfig,
        triggering_event: FileOperationEvent | None,
    ) -> CortexAnalysisResult:
        started_at = datetime.now(UTC)
        start = self._clock()
        engine_config = self._engine.get_config()
        generation = self._cache.generation

        if not config.analysis.enabled:
            return self._minimal_result(
                file_info, started_at, start, triggering_event
            )

        await self._dispatcher.dispatch(
            CortexEventType.ANALYSIS_START, file_info
        )

        key = cache_key(file_info) if config.performance.enable_cache else None
        if key is not None:
            cached = self._cache.get(key)
            if cached is not None:
                if config.performance.enable_metrics:
                    self._metrics.analysis.cache_hits += 1
                logger.debug("event=cache_hit path=%s", file_info.path)
                result = cached.model_copy(
                    update={
                        "triggering_event": triggering_event,
                        "metadata": cached.metadata.model_copy(
                            update={"from_cache": True}
                        ),
                    }
                )
                await self._complete(result, config, start)
                return result
            if config.performance.enable_metrics:
                self._metrics.analysis.cache_misses += 1

        similarities = await self._find_similarities(file_info, config)

        if config.decisions.enabled:
            recommendation = self._engine.generate_recommendation(
                file_info, similarities, engine_config
            )
        else:
            recommendation = Recommendation(
                action=Action.CREATE,
                confidence=1.0,
                reasoning=DECISIONS_DISABLED_REASON,
                metadata=RecommendationMetadata(
                    similarity_inputs=similarities
                ),
            )

        components = [COMPONENT_ANALYZER, COMPONENT_DECISION_ENGINE]
        if triggering_event is not None:
            components.insert(0, COMPONENT_INTERCEPTOR)
        end = self._clock()
        result = CortexAnalysisResult(
            target_file=file_info,
            similarities=similarities,
            recommendation=recommendation,
            triggering_event=triggering_event,
            metadata=AnalysisRunMetadata(
                start_time=started_at,
                end_time=datetime.now(UTC),
                processing_time_ms=(end - start) * 1000,
                components_used=components,
            ),
        )
        if key is not None:
            stored = self._cache.put(
                key,
                result,
                config.performance.cache_ttl_ms,
                generation=generation,
            )
            if not stored:
                logger.debug(
                    "event=stale_result_not_cached path=%s", file_info.path
                )
        await self._complete(result, config, start)
        return result

    async def _find_similarities(
        self, file_info: FileInfo, config: CortexConfig
    ) -> list[SimilarityResult]:
        timeout_ms = config.analysis.analysis_timeout_ms
        try:
            async with asyncio.timeout(timeout_ms / 1000):
                raw = await self._analyzer.analyze(
                    file_info, config.analysis_options()
                )
        except TimeoutError as exc:
            logger.warning(
                "event=analysis_timeout path=%s timeout_ms=%d",
                file_info.path,
                timeout_ms,
            )
            msg = f"Analysis timeout exceeded {timeout_ms}ms"
            raise AnalysisTimeoutError(
                msg, timeout_ms=timeout_ms, file_path=file_info.path
            ) from exc
        except ContinuityError:
            raise
        except Exception as exc:
            logger.warning(
                "event=analyzer_error path=%s error_type=%s",
                file_info.path,
                type(exc).__name__,
            )
            msg = f"Similarity analysis failed: {exc}"
            raise AnalysisError(msg, file_path=file_info.path) from exc

        ranked = rank_similarities(validate_similarities(raw))
        return ranked[: config.analysis.max_comparison_files]

    async def _complete(
        self,
        result: CortexAnalysisResult,
        config: CortexConfig,
        start: float,
    ) -> None:
        if config.performance.enable_metrics:
            self._metrics.record_analysis((self._clock() - start) * 1000)
            if config.decisions.enabled:
                self._metrics.record_decision(
                    result.recommendation.metadata.processing_time_ms,
                    auto_apply=result.recommendation.auto_apply,
                )
        logger.info(
            "event=analysis_complete path=%s action=%s confidence=%.3f"
            " from_cache=%s",
            result.target_file.path,
            result.recommendation.action,
            result.recommendation.confidence,
            result.metadata.from_cache,
        )
        await self._dispatcher.dispatch(
            CortexEventType.ANALYSIS_COMPLETE, result
        )
        if config.decisions.enabled:
            await self._dispatcher.dispatch(
                CortexEventType.RECOMMENDATION, result.recommendation
            )

    def _minimal_result(
        self,
        file_info: FileInfo,
        started_at: datetime,
        start: float,
        triggering_event: FileOperationEvent | None,
    ) -> CortexAnalysisResult:
        return CortexAnalysisResult(
            target_file=file_info,
            recommendation=Recommendation(
                action=Action.CREATE,
                confidence=1.0,
                reasoning=ANALYSIS_DISABLED_REASON,
            ),
            triggering_event=triggering_event,
            metadata=AnalysisRunMetadata(
                start_time=started_at,
                end_time=datetime.now(UTC),
                processing_time_ms=(self._clock() - start) * 1000,
            ),
        )

    # ── watch-triggered work ───────────────────────────────

    async def _handle_file_operation(self, event: FileOperationEvent) -> None:
        start = self._clock()
        config = self._config_store.snapshot()
        await self._dispatcher.dispatch(CortexEventType.FILE_OPERATION, event)

        ignored = (
            event.operation == FileOperation.DELETE
            or not config.analysis.enabled
            or self._filtered_out(event, config.monitoring)
        )
        if ignored:
            logger.debug(
                "event=file_operation_ignored path=%s operation=%s",
                event.path,
                event.operation,
            )
        else:
            task = asyncio.create_task(
                self._analyze_in_background(event.to_file_info(), event)
            )
            self._background.add(task)
            task.add_done_callback(self._background.discard)

        if config.performance.enable_metrics:
            self._metrics.record_event(
                (self._clock() - start) * 1000, ignored=ignored
            )

    def _filtered_out(
        self, event: FileOperationEvent, monitoring: MonitoringConfig
    ) -> bool:
        """Apply the live monitoring filters to an incoming event."""
        if event.operation not in monitoring.enabled_operations:
            return True
        if event.metadata.size > monitoring.max_file_size:
            return True
        spec = ignore_spec(tuple(monitoring.ignore_patterns))
        return spec.match_file(self._relative_to_roots(event.path))

    def _relative_to_roots(self, path: str) -> str:
        target = Path(path)
        if not target.is_absolute():
            return target.as_posix()
        for root in self._monitored:
            base = Path(root).absolute()
            if target.is_relative_to(base):
                return target.relative_to(base).as_posix()
        return target.as_posix()

    async def _analyze_in_background(
        self, file_info: FileInfo, event: FileOperationEvent
    ) -> None:
        try:
            await self.analyze_file_operation(
                file_info, triggering_event=event
            )
        except ContinuityError as exc:
            # Already delivered through on_error.
            logger.debug(
                "event=background_analysis_failed path=%s code=%s",
                file_info.path,
                exc.code,
            )

    async def _wait_for_background(self) -> None:
        if self._background:
            await asyncio.gather(
                *list(self._background), return_exceptions=True
            )

    def _push_decision_overrides(self, config: CortexConfig) -> None:
        file_types = self._engine.get_config().rules.file_type_rules
        self._engine.update_config(config.decision_overrides(file_types))

    def _count_listener_failure(self) -> None:
        self._metrics.listeners.failures += 1

    # ── status, metrics, config ────────────────────────────

    @property
    def active_analyses(self) -> int:
        return self._active

    def get_status(self) -> CortexStatus:
        running = self._state == RunState.RUNNING
        uptime_ms = (
            (self._clock() - self._started_at) * 1000
            if self._started_at is not None
            else 0.0
        )
        return CortexStatus(
            status=self._state,
            components=ComponentStatuses(
                interceptor=(
                    self._interceptor_state if running else RunState.STOPPED
                ),
                analyzer=self._state,
                decision_engine=self._state,
            ),
            monitored_paths=list(self._monitored),
            uptime_ms=uptime_ms,
            active_analyses=self._active,
        )

    def get_metrics(self) -> CortexMetrics:
        return self._metrics.snapshot()

    def get_config(self) -> CortexConfig:
        return self._config_store.get_config()

    def get_decision_config(self) -> DecisionEngineConfig:
        return self._engine.get_config()

    def update_config(self, partial: Mapping[str, Any]) -> None:
        """Validate and apply *partial*; in-flight analyses keep their config.

        Monitoring filters apply to the next incoming event; the
        interceptor receives the new monitoring section on its next
        start or ``set_monitoring_enabled(True)``.

        Raises ConfigValidationError (nothing applied) on the first
        invalid field.
        """
        candidate = self._config_store.merged(partial)
        if "decisions" in partial:
            self._push_decision_overrides(candidate)
        self._config_store.replace(candidate)
        self._cache.clear()
        logger.info(
            "event=cortex_config_updated sections=%s",
            ",".join(sorted(partial)),
        )

    def update_thresholds(self, partial: Mapping[str, Any]) -> None:
        self._engine.update_thresholds(partial)
        self._cache.clear()

    def update_rules(self, partial: Mapping[str, Any]) -> None:
        self._engine.update_rules(partial)
        self._cache.clear()

    def thresholds_for(self, path: str) -> tuple[DecisionThresholds, str]:
        return self._engine.thresholds_for(path)

    def add_event_listener(self, listener: object) -> None:
        self._dispatcher.add(listener)

    def remove_event_listener(self, listener: object) -> None:
        self._dispatcher.remove(listener)
