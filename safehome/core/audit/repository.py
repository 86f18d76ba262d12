# safehome/core/audit/repository.py
"""
Репозиторий журнала аудита (append-only).
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from safehome.common.constants import AuditAction
from safehome.core.audit.models import AuditLogEntry
from safehome.infra.database import DatabaseManager, affected_rows

_AUDIT_COLUMNS = "id, actor_id, actor_role, child_id, action, meta, created_at"


class AuditRepository:
    """Репозиторий записей аудита."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def insert(
        self,
        actor_id: Optional[UUID],
        actor_role: str,
        action: AuditAction,
        child_id: Optional[UUID] = None,
        meta: Optional[dict[str, Any]] = None,
    ) -> None:
        await self._db.execute(
            """
            INSERT INTO audit_logs (id, actor_id, actor_role, child_id, action, meta, created_at)
            VALUES ($1, $2, $3, $4, $5, $6::jsonb, $7)
            """,
            uuid4(),
            actor_id,
            actor_role,
            child_id,
            action.value,
            json.dumps(meta or {}, default=str),
            datetime.now(timezone.utc),
        )

    async def list_page(self, offset: int, limit: int) -> list[AuditLogEntry]:
        rows = await self._db.fetch(
            f"SELECT {_AUDIT_COLUMNS} FROM audit_logs ORDER BY created_at DESC OFFSET $1 LIMIT $2",
            offset,
            limit,
        )
        return [AuditLogEntry.from_row(row) for row in rows]

    async def count(self) -> int:
        return await self._db.fetchval("SELECT COUNT(*) FROM audit_logs") or 0

    async def list_for_children(self, child_ids: list[UUID], limit: int) -> list[AuditLogEntry]:
        rows = await self._db.fetch(
            f"""
            SELECT {_AUDIT_COLUMNS} FROM audit_logs
            WHERE child_id = ANY($1::uuid[])
            ORDER BY created_at DESC
            LIMIT $2
            """,
            child_ids,
            limit,
        )
        return [AuditLogEntry.from_row(row) for row in rows]

    async def delete_for_user(self, user_id: UUID) -> int:
        """Удаляет записи, где пользователь был действующим лицом или ребёнком."""
        status = await self._db.execute(
            "DELETE FROM audit_logs WHERE actor_id = $1 OR child_id = $1",
            user_id,
        )
        return affected_rows(status)
