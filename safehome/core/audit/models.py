# safehome/core/audit/models.py
"""
Модели журнала аудита.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from safehome.common.constants import AuditAction


class AuditLogEntry(BaseModel):
    """Неизменяемая запись журнала аудита."""

    id: UUID
    actor_id: Optional[UUID] = Field(None, description="Кто совершил действие")
    actor_role: str = Field(..., description="Роль действующего лица")
    child_id: Optional[UUID] = Field(None, description="Затронутый ребёнок")
    action: AuditAction
    meta: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_row(cls, row: Any) -> "AuditLogEntry":
        meta = row["meta"]
        if isinstance(meta, str):
            meta = json.loads(meta)
        return cls(
            id=row["id"],
            actor_id=row["actor_id"],
            actor_role=row["actor_role"],
            child_id=row["child_id"],
            action=AuditAction(row["action"]),
            meta=meta or {},
            timestamp=row["created_at"],
        )

    def public_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "actorId": str(self.actor_id) if self.actor_id else None,
            "actorRole": self.actor_role,
            "childId": str(self.child_id) if self.child_id else None,
            "action": self.action.value,
            "meta": self.meta,
            "timestamp": self.timestamp.isoformat(),
        }


class AuditPage(BaseModel):
    """Страница журнала для администратора."""

    logs: list[AuditLogEntry]
    page: int
    total: int
