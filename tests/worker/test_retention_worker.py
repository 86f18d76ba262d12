# tests/worker/test_retention_worker.py
"""
Unit тесты для базового воркера и воркера очистки геолокации.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from safehome.core.locations.models import RetentionResult
from safehome.worker.base import BaseWorker
from safehome.worker.retention import RetentionWorker


class ConcreteWorker(BaseWorker):
    """Конкретная реализация воркера для тестирования."""

    def __init__(self, interval_seconds: float, fail: bool = False) -> None:
        super().__init__(interval_seconds)
        self.calls = 0
        self.fail = fail

    @property
    def name(self) -> str:
        return "test_worker"

    async def run_once(self) -> None:
        self.calls += 1
        if self.fail:
            raise RuntimeError("boom")


@pytest.fixture
def retention_service() -> MagicMock:
    service = MagicMock()
    service.run_cleanup = AsyncMock(
        return_value=RetentionResult(deleted_count=3, retention_days=30, cutoff=datetime.now(timezone.utc))
    )
    return service


class TestBaseWorkerLifecycle:
    """Тесты запуска и остановки."""

    @pytest.mark.asyncio
    async def test_disabled_with_zero_interval(self) -> None:
        worker = ConcreteWorker(0)

        await worker.start()

        assert worker.enabled is False
        assert worker.is_running is False

    @pytest.mark.asyncio
    async def test_start_runs_and_stop_cancels(self) -> None:
        worker = ConcreteWorker(0.01)

        await worker.start()
        await asyncio.sleep(0.05)
        await worker.stop()

        assert worker.calls >= 1
        assert worker.is_running is False

    @pytest.mark.asyncio
    async def test_start_twice_creates_one_task(self) -> None:
        worker = ConcreteWorker(10)

        await worker.start()
        await worker.start()

        assert len(worker._tasks) == 1
        await worker.stop()

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self) -> None:
        await ConcreteWorker(1).stop()

    @pytest.mark.asyncio
    async def test_error_is_logged_and_loop_continues(self) -> None:
        worker = ConcreteWorker(1, fail=True)

        with patch("safehome.worker.base.log_error", new_callable=AsyncMock) as mock_log:
            await worker._run_safely()
            await worker._run_safely()

        assert worker.calls == 2
        assert mock_log.await_count == 2


class TestRetentionWorker:
    """Тесты воркера очистки."""

    @pytest.mark.asyncio
    async def test_run_once_stores_result(self, retention_service: MagicMock) -> None:
        worker = RetentionWorker(retention_service, 3600)

        await worker.run_once()

        retention_service.run_cleanup.assert_awaited_once()
        assert worker.last_result.deleted_count == 3
        assert worker.name == "retention"
