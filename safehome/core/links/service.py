# safehome/core/links/service.py
"""
Реестр связей родитель-ребёнок.

Ответственности:
- Запрос связи родителем (создание или сброс в PENDING)
- Принятие, отклонение и отзыв связи ребёнком
- Предикат авторизации is_accepted для остальных компонентов
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from uuid import UUID

from safehome.common.constants import AuditAction, LinkStatus, TypeMsg, UserRole
from safehome.common.exceptions import NotFound
from safehome.common.logger import log_info
from safehome.core.audit.service import AuditTrail
from safehome.core.links.models import ParentChildLink
from safehome.core.links.repository import LinkRepository
from safehome.core.links.state_machine import LinkStateMachine
from safehome.core.users.models import ChildUser, ParentUser, User
from safehome.core.users.repository import UserRepository

if TYPE_CHECKING:
    from safehome.realtime.hub import FanoutHub


def _parse_uuid(value: str) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except ValueError:
        return None


class LinkRegistry:
    """Сервис связей родитель-ребёнок."""

    def __init__(
        self,
        repository: LinkRepository,
        users: UserRepository,
        audit: AuditTrail,
    ) -> None:
        self._repo = repository
        self._users = users
        self._audit = audit
        self._hub: FanoutHub | None = None

    def bind_hub(self, hub: "FanoutHub") -> None:
        """Подключает хаб, из комнат которого выселяются родители при отзыве."""
        self._hub = hub

    async def _resolve_child(self, child_ref: str) -> ChildUser:
        user: User | None
        child_id = _parse_uuid(child_ref)
        if child_id is not None:
            user = await self._users.get_by_id(child_id)
        else:
            user = await self._users.get_by_email(child_ref, role=UserRole.CHILD)

        if not isinstance(user, ChildUser):
            raise NotFound("Child account not found")
        return user

    async def request(self, parent: ParentUser, child_ref: str) -> ParentChildLink:
        """
        Запрос связи от родителя.

        Args:
            parent: Родитель
            child_ref: Email или ID ребёнка

        Raises:
            NotFound: аккаунт ребёнка не найден
        """
        child = await self._resolve_child(child_ref)
        link = await self._repo.upsert_pending(parent.id, child.id)
        # Связь снова PENDING: подписки родителя на ребёнка больше не действуют
        await self._evict_parent(parent.id, child.id)

        await self._audit.record(
            parent.id,
            parent.role,
            AuditAction.LINK_REQUESTED,
            child_id=child.id,
        )
        await log_info(
            f"Связь {link.id}: родитель {parent.id} запросил ребёнка {child.id}",
            type_msg=TypeMsg.DEBUG,
        )
        return link

    async def _child_transition(
        self,
        child: ChildUser,
        link_id: UUID,
        new_status: LinkStatus,
        action: AuditAction,
    ) -> ParentChildLink:
        link = await self._repo.transition(
            link_id,
            child.id,
            LinkStateMachine.source_of(new_status),
            new_status,
        )
        if link is None:
            # Чужая связь и неверный статус не различаются
            raise NotFound("Link not found")

        await self._audit.record(
            child.id,
            child.role,
            action,
            child_id=child.id,
            meta={"linkId": str(link_id)},
        )
        return link

    async def accept(self, child: ChildUser, link_id: UUID) -> ParentChildLink:
        """PENDING -> ACCEPTED. Raises NotFound."""
        return await self._child_transition(child, link_id, LinkStatus.ACCEPTED, AuditAction.LINK_ACCEPTED)

    async def decline(self, child: ChildUser, link_id: UUID) -> ParentChildLink:
        """PENDING -> DECLINED. Raises NotFound."""
        return await self._child_transition(child, link_id, LinkStatus.DECLINED, AuditAction.LINK_DECLINED)

    async def revoke(self, child: ChildUser, parent_id: UUID) -> Optional[ParentChildLink]:
        """
        ACCEPTED -> REVOKED для пары (родитель, ребёнок).
        Отсутствие принятой связи не является ошибкой.
        """
        link = await self._repo.transition_pair(
            parent_id,
            child.id,
            LinkStatus.ACCEPTED,
            LinkStatus.REVOKED,
        )

        if link is not None:
            await self._evict_parent(parent_id, child.id)

        await self._audit.record(
            child.id,
            child.role,
            AuditAction.REVOKE_PARENT,
            child_id=child.id,
            meta={"parentId": str(parent_id)},
        )
        return link

    async def _evict_parent(self, parent_id: UUID, child_id: UUID) -> None:
        if self._hub is None:
            return
        evicted = await self._hub.evict(parent_id, child_id)
        if evicted:
            await log_info(
                f"Родитель {parent_id} выселен из комнаты ребёнка {child_id} ({evicted} соединений)",
                type_msg=TypeMsg.INFO,
            )

    async def list_for_parent(self, parent_id: UUID) -> list[ParentChildLink]:
        return await self._repo.list_for_parent(parent_id)

    async def list_pending_for_child(self, child_id: UUID) -> list[ParentChildLink]:
        return await self._repo.list_for_child(child_id, LinkStatus.PENDING)

    async def list_accepted_for_child(self, child_id: UUID) -> list[ParentChildLink]:
        return await self._repo.list_for_child(child_id, LinkStatus.ACCEPTED)

    async def list_all_for_child(self, child_id: UUID) -> list[ParentChildLink]:
        return await self._repo.list_for_child(child_id)

    async def accepted_child_ids(self, parent_id: UUID) -> list[UUID]:
        links = await self._repo.list_for_parent(parent_id)
        return [link.child_id for link in links if link.is_accepted]

    async def get_status(self, parent_id: UUID, child_id: UUID) -> Optional[LinkStatus]:
        return await self._repo.get_status(parent_id, child_id)

    async def is_accepted(self, parent_id: UUID, child_id: UUID) -> bool:
        """Может ли родитель видеть ребёнка. Читается из БД на каждый вызов."""
        return await self._repo.get_status(parent_id, child_id) == LinkStatus.ACCEPTED

    async def delete_for_user(self, user_id: UUID) -> int:
        return await self._repo.delete_for_user(user_id)
