# safehome/worker/retention.py
"""
Периодическая очистка устаревшей геолокации.
"""

from __future__ import annotations

from typing import Optional

from safehome.core.locations.models import RetentionResult
from safehome.core.locations.retention import RetentionService
from safehome.worker.base import BaseWorker


class RetentionWorker(BaseWorker):
    """Запускает проход хранения раз в RETENTION_SWEEP_INTERVAL_SECONDS."""

    def __init__(self, retention: RetentionService, interval_seconds: float) -> None:
        super().__init__(interval_seconds)
        self._retention = retention
        self.last_result: Optional[RetentionResult] = None

    @property
    def name(self) -> str:
        return "retention"

    async def run_once(self) -> None:
        self.last_result = await self._retention.run_cleanup()
