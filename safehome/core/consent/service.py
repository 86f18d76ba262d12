# safehome/core/consent/service.py
"""
Шлюз согласия: ни одна точка приёма геолокации не пишет данные
ребёнка без его согласия.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from safehome.common.constants import DEFAULT_CONSENT_TEXT_VERSION, AuditAction, TypeMsg
from safehome.common.exceptions import NotFound
from safehome.common.logger import log_info
from safehome.core.audit.service import AuditTrail
from safehome.core.users.models import ChildUser
from safehome.core.users.repository import UserRepository


class ConsentGate:
    """Сервис согласия ребёнка на отслеживание."""

    def __init__(self, users: UserRepository, audit: AuditTrail) -> None:
        self._users = users
        self._audit = audit

    async def has_consented(self, child_id: UUID) -> bool:
        """Читает согласие из БД на каждый вызов, без кэша."""
        return await self._users.get_consent(child_id)

    async def set_consent(
        self,
        child: ChildUser,
        given: bool,
        text_version: str = DEFAULT_CONSENT_TEXT_VERSION,
    ) -> ChildUser:
        """
        Выдаёт или отзывает согласие.
        При отзыве версия текста и время согласия очищаются.

        Raises:
            NotFound: ребёнок удалён
        """
        consent_at = datetime.now(timezone.utc) if given else None
        updated = await self._users.update_consent(
            child.id,
            given,
            text_version if given else None,
            consent_at,
        )
        if not isinstance(updated, ChildUser):
            raise NotFound("Child account not found")

        await self._audit.record(
            child.id,
            child.role,
            AuditAction.CONSENT_GRANTED if given else AuditAction.CONSENT_REVOKED,
            child_id=child.id,
        )
        await log_info(
            f"Согласие ребёнка {child.id}: {'выдано' if given else 'отозвано'}",
            type_msg=TypeMsg.INFO,
        )
        return updated
