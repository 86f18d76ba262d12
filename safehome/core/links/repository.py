# safehome/core/links/repository.py
"""
Репозиторий связей родитель-ребёнок.

Переходы статусов выполняются условным UPDATE: строка меняется,
только если принадлежит ребёнку и находится в ожидаемом статусе.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from safehome.common.constants import LinkStatus
from safehome.core.links.models import ParentChildLink
from safehome.infra.database import DatabaseManager, affected_rows

_LINK_COLUMNS = "l.id, l.parent_id, l.child_id, l.status, l.created_at, l.updated_at"


class LinkRepository:
    """Репозиторий связей."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def upsert_pending(self, parent_id: UUID, child_id: UUID) -> ParentChildLink:
        """Создаёт связь в PENDING или сбрасывает существующую в PENDING на месте."""
        now = datetime.now(timezone.utc)
        row = await self._db.fetchrow(
            """
            INSERT INTO parent_child_links AS l (id, parent_id, child_id, status, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $5)
            ON CONFLICT (parent_id, child_id) DO UPDATE
            SET status = EXCLUDED.status, updated_at = EXCLUDED.updated_at
            RETURNING l.id, l.parent_id, l.child_id, l.status, l.created_at, l.updated_at
            """,
            uuid4(),
            parent_id,
            child_id,
            LinkStatus.PENDING.value,
            now,
        )
        return ParentChildLink.from_row(row)

    async def transition(
        self,
        link_id: UUID,
        child_id: UUID,
        from_status: LinkStatus,
        to_status: LinkStatus,
    ) -> Optional[ParentChildLink]:
        """Переводит связь ребёнка по id из from_status в to_status."""
        row = await self._db.fetchrow(
            """
            UPDATE parent_child_links AS l
            SET status = $4, updated_at = NOW()
            WHERE l.id = $1 AND l.child_id = $2 AND l.status = $3
            RETURNING l.id, l.parent_id, l.child_id, l.status, l.created_at, l.updated_at
            """,
            link_id,
            child_id,
            from_status.value,
            to_status.value,
        )
        return ParentChildLink.from_row(row) if row else None

    async def transition_pair(
        self,
        parent_id: UUID,
        child_id: UUID,
        from_status: LinkStatus,
        to_status: LinkStatus,
    ) -> Optional[ParentChildLink]:
        """Переводит связь пары (родитель, ребёнок) из from_status в to_status."""
        row = await self._db.fetchrow(
            """
            UPDATE parent_child_links AS l
            SET status = $4, updated_at = NOW()
            WHERE l.parent_id = $1 AND l.child_id = $2 AND l.status = $3
            RETURNING l.id, l.parent_id, l.child_id, l.status, l.created_at, l.updated_at
            """,
            parent_id,
            child_id,
            from_status.value,
            to_status.value,
        )
        return ParentChildLink.from_row(row) if row else None

    async def get_status(self, parent_id: UUID, child_id: UUID) -> Optional[LinkStatus]:
        value = await self._db.fetchval(
            "SELECT status FROM parent_child_links WHERE parent_id = $1 AND child_id = $2",
            parent_id,
            child_id,
        )
        return LinkStatus(value) if value else None

    async def list_for_parent(self, parent_id: UUID) -> list[ParentChildLink]:
        """Все связи родителя с данными детей."""
        rows = await self._db.fetch(
            f"""
            SELECT {_LINK_COLUMNS}, u.name AS child_name, u.email AS child_email,
                   u.consent_given AS child_consent
            FROM parent_child_links l
            JOIN users u ON u.id = l.child_id
            WHERE l.parent_id = $1
            ORDER BY l.created_at
            """,
            parent_id,
        )
        return [ParentChildLink.from_row(row) for row in rows]

    async def list_for_child(self, child_id: UUID, status: LinkStatus | None = None) -> list[ParentChildLink]:
        """Связи ребёнка с данными родителей, опционально по статусу."""
        if status is None:
            rows = await self._db.fetch(
                f"""
                SELECT {_LINK_COLUMNS}, u.name AS parent_name, u.email AS parent_email
                FROM parent_child_links l
                JOIN users u ON u.id = l.parent_id
                WHERE l.child_id = $1
                ORDER BY l.created_at
                """,
                child_id,
            )
        else:
            rows = await self._db.fetch(
                f"""
                SELECT {_LINK_COLUMNS}, u.name AS parent_name, u.email AS parent_email
                FROM parent_child_links l
                JOIN users u ON u.id = l.parent_id
                WHERE l.child_id = $1 AND l.status = $2
                ORDER BY l.created_at
                """,
                child_id,
                status.value,
            )
        return [ParentChildLink.from_row(row) for row in rows]

    async def delete_for_user(self, user_id: UUID) -> int:
        """Удаляет связи, где пользователь родитель или ребёнок."""
        status = await self._db.execute(
            "DELETE FROM parent_child_links WHERE parent_id = $1 OR child_id = $1",
            user_id,
        )
        return affected_rows(status)
