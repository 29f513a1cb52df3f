"""Tests for the orchestrator event dispatcher."""

from __future__ import annotations

import logging

import pytest

from continuity.constants import CortexEventType
from continuity.cortex.events import CortexEventListener, EventDispatcher


class TestEventDispatcher:
    @pytest.mark.asyncio
    async def test_dispatch_calls_sync_and_async_handlers(self) -> None:
        received: list[str] = []

        class SyncListener:
            def on_error(self, error: object) -> None:
                received.append(f"sync:{error}")

        class AsyncListener:
            async def on_error(self, error: object) -> None:
                received.append(f"async:{error}")

        dispatcher = EventDispatcher()
        dispatcher.add(SyncListener())
        dispatcher.add(AsyncListener())

        await dispatcher.dispatch(CortexEventType.ERROR, "boom")

        assert received == ["sync:boom", "async:boom"]

    @pytest.mark.asyncio
    async def test_missing_handler_skipped(self) -> None:
        class OnlyStatus:
            def __init__(self) -> None:
                self.calls = 0

            def on_status_change(self, status: object) -> None:
                self.calls += 1

        listener = OnlyStatus()
        dispatcher = EventDispatcher()
        dispatcher.add(listener)

        await dispatcher.dispatch(CortexEventType.RECOMMENDATION, object())
        await dispatcher.dispatch(CortexEventType.STATUS_CHANGE, object())

        assert listener.calls == 1

    @pytest.mark.asyncio
    async def test_failure_logged_counted_and_isolated(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        failures: list[int] = []
        received: list[object] = []

        class Bad:
            async def on_recommendation(self, rec: object) -> None:
                msg = "bad listener"
                raise ValueError(msg)

        class Good:
            def on_recommendation(self, rec: object) -> None:
                received.append(rec)

        dispatcher = EventDispatcher(on_failure=lambda: failures.append(1))
        dispatcher.add(Bad())
        dispatcher.add(Good())

        with caplog.at_level(logging.WARNING):
            await dispatcher.dispatch(CortexEventType.RECOMMENDATION, "rec")

        assert received == ["rec"]
        assert failures == [1]
        assert "event=listener_error" in caplog.text

    def test_duplicate_listener_ignored(self) -> None:
        listener = CortexEventListener()
        dispatcher = EventDispatcher()
        dispatcher.add(listener)
        dispatcher.add(listener)

        assert dispatcher.listener_count == 1

        dispatcher.remove(listener)
        assert dispatcher.listener_count == 0

    @pytest.mark.asyncio
    async def test_base_listener_callbacks_are_noops(self) -> None:
        dispatcher = EventDispatcher()
        dispatcher.add(CortexEventListener())

        for event_type in CortexEventType:
            await dispatcher.dispatch(event_type, None)
