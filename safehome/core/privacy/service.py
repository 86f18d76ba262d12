# safehome/core/privacy/service.py
"""
Права ребёнка на данные: выгрузка и удаление аккаунта.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from safehome.common.constants import AuditAction, TypeMsg
from safehome.common.logger import log_info
from safehome.core.audit.service import AuditTrail
from safehome.core.links.service import LinkRegistry
from safehome.core.locations.service import LocationStore
from safehome.core.users.models import ChildUser
from safehome.core.users.repository import UserRepository


class PrivacyService:
    """Выгрузка и удаление данных ребёнка."""

    def __init__(
        self,
        users: UserRepository,
        links: LinkRegistry,
        store: LocationStore,
        audit: AuditTrail,
    ) -> None:
        self._users = users
        self._links = links
        self._store = store
        self._audit = audit

    async def export_data(self, child: ChildUser) -> dict[str, Any]:
        """Собирает связи и всю историю пингов ребёнка (новые первыми)."""
        links = await self._links.list_all_for_child(child.id)
        pings = await self._store.all_for(child.id)

        await self._audit.record(
            child.id,
            child.role,
            AuditAction.EXPORT_DATA,
            child_id=child.id,
            meta={"totalPings": len(pings)},
        )

        return {
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "user": {"id": str(child.id), "name": child.name, "email": child.email},
            "links": [link.public_dict() for link in links],
            "pings": [ping.public_dict() for ping in pings],
        }

    async def delete_account(self, child: ChildUser) -> None:
        """
        Удаляет связи, геолокацию, записи аудита и сам аккаунт,
        после чего фиксирует факт удаления в аудите.
        """
        links_deleted = await self._links.delete_for_user(child.id)
        pings_deleted = await self._store.delete_all_for(child.id)
        audit_deleted = await self._audit.delete_for_user(child.id)
        await self._users.delete(child.id)

        await self._audit.record(child.id, child.role, AuditAction.DELETE_ACCOUNT, child_id=child.id)
        await log_info(
            f"Аккаунт {child.id} удалён: связей {links_deleted}, пингов {pings_deleted}, аудита {audit_deleted}",
            type_msg=TypeMsg.INFO,
        )
