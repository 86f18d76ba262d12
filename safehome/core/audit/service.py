# safehome/core/audit/service.py
"""
Журнал аудита чувствительных действий.

Запись ожидается вызывающим кодом; ошибка записи логируется
и не прерывает основное действие.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

from safehome.common.constants import AuditAction, UserRole
from safehome.common.exceptions import ValidationError
from safehome.common.logger import log_error
from safehome.core.audit.models import AuditLogEntry, AuditPage
from safehome.core.audit.repository import AuditRepository

MAX_PAGE_SIZE = 100


class AuditTrail:
    """Сервис журнала аудита."""

    def __init__(self, repository: AuditRepository) -> None:
        self._repo = repository

    async def record(
        self,
        actor_id: Optional[UUID],
        actor_role: UserRole | str,
        action: AuditAction,
        child_id: Optional[UUID] = None,
        meta: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Добавляет запись в журнал.

        Returns:
            True если запись сохранена, False если сохранить не удалось
            (ошибка уже залогирована)
        """
        role = actor_role.value if isinstance(actor_role, UserRole) else str(actor_role)
        try:
            await self._repo.insert(actor_id, role, action, child_id=child_id, meta=meta)
            return True
        except Exception as e:
            await log_error(
                f"Не удалось записать аудит {action.value}: {e}",
                extra={
                    "actor_id": str(actor_id) if actor_id else None,
                    "child_id": str(child_id) if child_id else None,
                    "action": action.value,
                },
                exc_info=True,
            )
            return False

    async def page(self, page_number: int = 1, page_size: int = 20) -> AuditPage:
        """
        Страница журнала, новые записи первыми.

        Raises:
            ValidationError: page < 1 или page_size вне [1, 100]
        """
        if page_number < 1:
            raise ValidationError("page must be >= 1")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        offset = (page_number - 1) * page_size
        logs = await self._repo.list_page(offset, page_size)
        total = await self._repo.count()
        return AuditPage(logs=logs, page=page_number, total=total)

    async def recent_for_children(self, child_ids: list[UUID], limit: int = 10) -> list[AuditLogEntry]:
        """Последние записи по указанным детям."""
        if not child_ids:
            return []
        return await self._repo.list_for_children(child_ids, limit)

    async def delete_for_user(self, user_id: UUID) -> int:
        return await self._repo.delete_for_user(user_id)
