# safehome/api/routes/children.py
"""
Данные детей для родителя: список, история и диагностика.
Каждое чтение заново проверяет связь.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from safehome.api.container import ServiceContainer
from safehome.api.dependencies import current_user, get_container, require_parent
from safehome.common.constants import AuditAction, LinkStatus
from safehome.common.exceptions import Unauthorized
from safehome.core.users.models import ChildUser, ParentUser, User

router = APIRouter(prefix="/children", tags=["Children"])


async def _check_access(
    container: ServiceContainer,
    requester: User,
    child_id: UUID,
) -> Optional[LinkStatus]:
    """
    Проверяет право смотреть данные ребёнка.

    Returns:
        Статус связи для родителя, None для остальных ролей

    Raises:
        Unauthorized: родитель без связи или чужой ребёнок
    """
    if isinstance(requester, ParentUser):
        link_status = await container.links.get_status(requester.id, child_id)
        if link_status is None:
            raise Unauthorized("Not linked to this child")
        return link_status
    if isinstance(requester, ChildUser) and requester.id != child_id:
        raise Unauthorized("Cannot view another child")
    return None


@router.get("")
async def list_children(
    parent: ParentUser = Depends(require_parent),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Принятые дети родителя с последней позицией."""
    links = [link for link in await container.links.list_for_parent(parent.id) if link.is_accepted]
    latest = await container.locations.latest_many([link.child_id for link in links])

    children = []
    for link in links:
        location = latest.get(link.child_id)
        summary = link.child
        children.append({
            "id": str(link.child_id),
            "name": summary.name if summary else None,
            "email": summary.email if summary else None,
            "consentGiven": summary.consent_given if summary else None,
            "lastLocation": location.public_dict() if location else None,
        })
    return {"children": children}


@router.get("/{child_id}/locations")
async def child_locations(
    child_id: UUID,
    from_: Optional[datetime] = Query(None, alias="from"),
    to: Optional[datetime] = Query(None),
    requester: User = Depends(current_user),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """История пингов ребёнка, новые первыми."""
    link_status = await _check_access(container, requester, child_id)

    if link_status is not None and link_status != LinkStatus.ACCEPTED:
        return {
            "pings": [],
            "error": f'Link exists but status is "{link_status.value}". Link must be ACCEPTED.',
        }

    pings = await container.locations.history(child_id, from_, to)
    consent_given = await container.consent.has_consented(child_id)

    await container.audit.record(
        requester.id,
        requester.role,
        AuditAction.VIEW_CHILD_LOCATION,
        child_id=child_id,
        meta={"count": len(pings)},
    )

    return {
        "pings": [ping.public_dict() for ping in pings],
        "debug": {
            "totalPings": len(pings),
            "childConsentGiven": consent_given,
            "linkStatus": link_status.value if link_status else None,
        },
    }


@router.get("/{child_id}/status")
async def child_status(
    child_id: UUID,
    requester: User = Depends(current_user),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Диагностика: почему родитель не видит геолокацию ребёнка."""
    link_status = await _check_access(container, requester, child_id)

    child = await container.users.get_by_id(child_id)
    consent_given = isinstance(child, ChildUser) and child.consent_given
    latest = await container.locations.latest(child_id)
    total_pings = await container.locations.count_for(child_id)
    recent = await container.locations.recent(child_id, 5)

    if link_status is None:
        child_links = await container.links.list_all_for_child(child_id)
        link_status = child_links[0].status if child_links else None

    return {
        "child": {
            "id": str(child_id),
            "name": child.name if child else None,
            "email": child.email if child else None,
            "consentGiven": consent_given,
        },
        "linkStatus": link_status.value if link_status else None,
        "location": {
            "hasLatestLocation": latest is not None,
            "latestLocation": latest.public_dict() if latest else None,
            "totalPings": total_pings,
            "recentPings": [
                {"lat": ping.lat, "lng": ping.lng, "ts": ping.ts.isoformat()} for ping in recent
            ],
        },
        "recommendations": {
            "needsConsent": not consent_given,
            "needsLinkAcceptance": link_status != LinkStatus.ACCEPTED,
            "needsLocationUpdates": (
                total_pings == 0 and consent_given and link_status == LinkStatus.ACCEPTED
            ),
        },
    }
