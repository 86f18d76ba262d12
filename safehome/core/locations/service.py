# safehome/core/locations/service.py
"""
Хранилище геолокации.

История пингов является источником истины; последняя позиция -
кэш, который обновляется после вставки и восстанавливается
следующим успешным пингом.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from safehome.common.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_HISTORY_WINDOW_HOURS
from safehome.common.exceptions import ValidationError
from safehome.common.logger import log_error
from safehome.core.locations.models import LatestLocation, LocationPing, as_utc
from safehome.core.locations.repository import LocationRepository


class LocationStore:
    """Сервис истории и последней позиции."""

    def __init__(
        self,
        repository: LocationRepository,
        *,
        monotonic_latest: bool = False,
        history_window_hours: int = DEFAULT_HISTORY_WINDOW_HOURS,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self._repo = repository
        self._monotonic_latest = monotonic_latest
        self._history_window = timedelta(hours=history_window_hours)
        self._history_limit = history_limit

    async def append_ping(self, ping: LocationPing) -> None:
        """
        Сохраняет пинг, затем обновляет последнюю позицию.

        Ошибка вставки пробрасывается. Ошибка обновления последней позиции
        логируется: пинг уже сохранён.
        """
        await self._repo.insert_ping(ping)

        try:
            await self._repo.upsert_latest(ping, monotonic=self._monotonic_latest)
        except Exception as e:
            await log_error(
                f"Не удалось обновить последнюю позицию ребёнка {ping.child_id}: {e}",
                extra={"child_id": str(ping.child_id), "ping_id": str(ping.id)},
                exc_info=True,
            )

    async def history(
        self,
        child_id: UUID,
        from_ts: Optional[datetime] = None,
        to_ts: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> list[LocationPing]:
        """
        История пингов, новые первыми. Границы включительные,
        время без зоны считается UTC. Без границ: последние сутки
        до текущего момента.

        Raises:
            ValidationError: from позже to или limit < 1
        """
        to_ts = as_utc(to_ts) if to_ts else datetime.now(timezone.utc)
        from_ts = as_utc(from_ts) if from_ts else to_ts - self._history_window
        limit = self._history_limit if limit is None else limit

        if from_ts > to_ts:
            raise ValidationError("'from' must not be after 'to'")
        if limit < 1:
            raise ValidationError("limit must be >= 1")

        return await self._repo.history(child_id, from_ts, to_ts, limit)

    async def latest(self, child_id: UUID) -> Optional[LatestLocation]:
        return await self._repo.latest(child_id)

    async def latest_many(self, child_ids: list[UUID]) -> dict[UUID, LatestLocation]:
        return await self._repo.latest_many(child_ids)

    async def all_for(self, child_id: UUID) -> list[LocationPing]:
        return await self._repo.all_for_child(child_id)

    async def recent(self, child_id: UUID, limit: int = 5) -> list[LocationPing]:
        return await self._repo.recent(child_id, limit)

    async def count_for(self, child_id: UUID) -> int:
        return await self._repo.count(child_id)

    async def purge_older_than(self, cutoff: datetime) -> int:
        """Удаляет пинги строго старше cutoff и возвращает их количество."""
        return await self._repo.purge_older_than(cutoff)

    async def delete_all_for(self, child_id: UUID) -> int:
        """Удаляет историю и последнюю позицию ребёнка."""
        return await self._repo.delete_for_child(child_id)
