# safehome/core/locations/repository.py
"""
Репозиторий истории пингов, последней позиции и настройки хранения.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from safehome.core.locations.models import LatestLocation, LocationPing
from safehome.infra.database import DatabaseManager, affected_rows

_PING_COLUMNS = "id, child_id, lat, lng, accuracy, speed, heading, ts"
_LATEST_COLUMNS = "child_id, lat, lng, accuracy, speed, heading, ts"

_UPSERT_LATEST = """
    INSERT INTO latest_locations (child_id, lat, lng, accuracy, speed, heading, ts, updated_at)
    VALUES ($1, $2, $3, $4, $5, $6, $7, NOW())
    ON CONFLICT (child_id) DO UPDATE SET
        lat = EXCLUDED.lat,
        lng = EXCLUDED.lng,
        accuracy = EXCLUDED.accuracy,
        speed = EXCLUDED.speed,
        heading = EXCLUDED.heading,
        ts = EXCLUDED.ts,
        updated_at = EXCLUDED.updated_at
"""


class LocationRepository:
    """Репозиторий геолокации."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def insert_ping(self, ping: LocationPing) -> None:
        await self._db.execute(
            f"""
            INSERT INTO location_pings ({_PING_COLUMNS})
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            """,
            ping.id,
            ping.child_id,
            ping.lat,
            ping.lng,
            ping.accuracy,
            ping.speed,
            ping.heading,
            ping.ts,
        )

    async def upsert_latest(self, ping: LocationPing, monotonic: bool = False) -> None:
        """
        Обновляет последнюю позицию.

        Args:
            ping: Сохранённый пинг
            monotonic: Обновлять только если ts пинга новее сохранённого
        """
        query = _UPSERT_LATEST
        if monotonic:
            query += " WHERE latest_locations.ts < EXCLUDED.ts"
        await self._db.execute(
            query,
            ping.child_id,
            ping.lat,
            ping.lng,
            ping.accuracy,
            ping.speed,
            ping.heading,
            ping.ts,
        )

    async def history(
        self,
        child_id: UUID,
        from_ts: datetime,
        to_ts: datetime,
        limit: int,
    ) -> list[LocationPing]:
        rows = await self._db.fetch(
            f"""
            SELECT {_PING_COLUMNS} FROM location_pings
            WHERE child_id = $1 AND ts >= $2 AND ts <= $3
            ORDER BY ts DESC
            LIMIT $4
            """,
            child_id,
            from_ts,
            to_ts,
            limit,
        )
        return [LocationPing.from_row(row) for row in rows]

    async def all_for_child(self, child_id: UUID) -> list[LocationPing]:
        rows = await self._db.fetch(
            f"SELECT {_PING_COLUMNS} FROM location_pings WHERE child_id = $1 ORDER BY ts DESC",
            child_id,
        )
        return [LocationPing.from_row(row) for row in rows]

    async def recent(self, child_id: UUID, limit: int) -> list[LocationPing]:
        rows = await self._db.fetch(
            f"SELECT {_PING_COLUMNS} FROM location_pings WHERE child_id = $1 ORDER BY ts DESC LIMIT $2",
            child_id,
            limit,
        )
        return [LocationPing.from_row(row) for row in rows]

    async def count(self, child_id: UUID) -> int:
        return await self._db.fetchval(
            "SELECT COUNT(*) FROM location_pings WHERE child_id = $1",
            child_id,
        ) or 0

    async def latest(self, child_id: UUID) -> Optional[LatestLocation]:
        row = await self._db.fetchrow(
            f"SELECT {_LATEST_COLUMNS} FROM latest_locations WHERE child_id = $1",
            child_id,
        )
        return LatestLocation.from_row(row) if row else None

    async def latest_many(self, child_ids: list[UUID]) -> dict[UUID, LatestLocation]:
        if not child_ids:
            return {}
        rows = await self._db.fetch(
            f"SELECT {_LATEST_COLUMNS} FROM latest_locations WHERE child_id = ANY($1::uuid[])",
            child_ids,
        )
        return {row["child_id"]: LatestLocation.from_row(row) for row in rows}

    async def purge_older_than(self, cutoff: datetime) -> int:
        """Удаляет пинги строго старше cutoff."""
        status = await self._db.execute("DELETE FROM location_pings WHERE ts < $1", cutoff)
        return affected_rows(status)

    async def delete_for_child(self, child_id: UUID) -> int:
        """Удаляет историю и последнюю позицию ребёнка одной транзакцией."""
        async with self._db.transaction() as conn:
            status = await conn.execute("DELETE FROM location_pings WHERE child_id = $1", child_id)
            await conn.execute("DELETE FROM latest_locations WHERE child_id = $1", child_id)
        return affected_rows(status)

    async def get_retention_days(self) -> Optional[int]:
        """Переопределение срока хранения (singleton-запись) или None."""
        return await self._db.fetchval(
            "SELECT location_retention_days FROM retention_config WHERE id = 1"
        )

    async def set_retention_days(self, days: int) -> None:
        await self._db.execute(
            """
            INSERT INTO retention_config (id, location_retention_days, updated_at)
            VALUES (1, $1, NOW())
            ON CONFLICT (id) DO UPDATE SET
                location_retention_days = EXCLUDED.location_retention_days,
                updated_at = EXCLUDED.updated_at
            """,
            days,
        )
