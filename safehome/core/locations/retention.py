# safehome/core/locations/retention.py
"""
Политика хранения геолокации.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from safehome.common.constants import TypeMsg
from safehome.common.exceptions import ValidationError
from safehome.common.logger import log_info
from safehome.core.locations.models import RetentionResult
from safehome.core.locations.repository import LocationRepository
from safehome.core.locations.service import LocationStore


class RetentionService:
    """
    Очистка устаревших пингов.

    Срок хранения берётся из записи retention_config, а при её
    отсутствии из настройки RETENTION_DAYS_DEFAULT.
    """

    def __init__(self, repository: LocationRepository, store: LocationStore, default_days: int) -> None:
        self._repo = repository
        self._store = store
        self._default_days = default_days

    async def get_retention_days(self) -> int:
        override = await self._repo.get_retention_days()
        return override if override is not None else self._default_days

    async def set_retention_days(self, days: int) -> int:
        """Сохраняет срок хранения в днях, не меньше одного."""
        if days < 1:
            raise ValidationError("Retention must be at least 1 day", details={"retentionDays": days})
        await self._repo.set_retention_days(days)
        await log_info(f"Срок хранения геолокации изменён: {days} дн.", type_msg=TypeMsg.INFO)
        return days

    async def run_cleanup(self, now: Optional[datetime] = None) -> RetentionResult:
        days = await self.get_retention_days()
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        deleted = await self._store.purge_older_than(cutoff)

        await log_info(
            f"Очистка геолокации: удалено {deleted} пингов старше {cutoff.isoformat()} ({days} дн.)",
            type_msg=TypeMsg.INFO,
        )
        return RetentionResult(deleted_count=deleted, retention_days=days, cutoff=cutoff)
