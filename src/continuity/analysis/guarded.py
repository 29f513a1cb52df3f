"""Circuit-breaker and retry wrapper around a similarity collaborator."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from circuitbreaker import (  # pyright: ignore[reportUnknownVariableType]
    CircuitBreaker,
    CircuitBreakerError,
)
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)
from tenacity.wait import wait_base

from continuity.analysis.protocols import SimilarityAnalyzer
from continuity.analysis.schemas import (
    AnalysisOptions,
    FileInfo,
    SimilarityResult,
)
from continuity.constants import (
    CB_SIMILARITY_FAILURE_THRESHOLD,
    CB_SIMILARITY_RECOVERY_TIMEOUT,
    RETRY_INITIAL_WAIT,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_WAIT,
)
from continuity.resilience.errors import is_retryable

logger = logging.getLogger(__name__)


def _counts_as_failure(
    thrown_type: type, thrown_value: BaseException
) -> bool:
    """Only retryable faults trip the breaker; bad input does not.

    The circuitbreaker library calls this with (thrown_type, thrown_value).
    """
    return is_retryable(thrown_value)


class GuardedSimilarityAnalyzer:
    """Wraps any SimilarityAnalyzer with a circuit breaker and retries.

    - Transient, server and timeout errors are retried with jittered
      exponential backoff, up to ``max_attempts`` calls.
    - After ``failure_threshold`` consecutive retryable failures the
      circuit opens and calls fail fast with ``CircuitBreakerError``
      until ``recovery_timeout`` seconds have passed.
    """

    def __init__(
        self,
        inner: SimilarityAnalyzer,
        *,
        name: str = "similarity",
        failure_threshold: int = CB_SIMILARITY_FAILURE_THRESHOLD,
        recovery_timeout: int = CB_SIMILARITY_RECOVERY_TIMEOUT,
        max_attempts: int = RETRY_MAX_ATTEMPTS,
        wait: wait_base | None = None,
    ) -> None:
        self._inner = inner
        self._breaker = CircuitBreaker(  # pyright: ignore[reportUnknownMemberType]
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            expected_exception=_counts_as_failure,
            name=f"analyzer_{name}",
        )
        self._max_attempts = max_attempts
        self._wait = wait or wait_exponential_jitter(
            initial=RETRY_INITIAL_WAIT, max=RETRY_MAX_WAIT
        )

    @property
    def circuit_open(self) -> bool:
        return bool(self._breaker.opened)  # pyright: ignore[reportUnknownMemberType]

    async def analyze(
        self, file_info: FileInfo, options: AnalysisOptions
    ) -> Sequence[SimilarityResult | Mapping[str, Any]]:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=retry_if_exception(is_retryable),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.info(
                        "event=similarity_retry path=%s attempt=%d",
                        file_info.path,
                        attempt.retry_state.attempt_number,
                    )
                return await self._call(file_info, options)
        msg = "unreachable: retry loop exited without result"
        raise RuntimeError(msg)

    async def _call(
        self, file_info: FileInfo, options: AnalysisOptions
    ) -> Sequence[SimilarityResult | Mapping[str, Any]]:
        if self._breaker.opened:  # pyright: ignore[reportUnknownMemberType]
            logger.warning(
                "event=similarity_circuit_open path=%s", file_info.path
            )
            raise CircuitBreakerError(self._breaker)  # pyright: ignore[reportUnknownArgumentType]
        with self._breaker:  # pyright: ignore[reportUnknownMemberType]
            return await self._inner.analyze(file_info, options)
