# safehome/api/routes/audit.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from safehome.api.container import ServiceContainer
from safehome.api.dependencies import get_container, require_parent
from safehome.core.users.models import ParentUser

router = APIRouter(prefix="/audit", tags=["Audit"])

PARENT_FEED_LIMIT = 10


@router.get("")
async def parent_audit_feed(
    parent: ParentUser = Depends(require_parent),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Последние действия по принятым детям родителя."""
    child_ids = await container.links.accepted_child_ids(parent.id)
    logs = await container.audit.recent_for_children(child_ids, PARENT_FEED_LIMIT)
    return {"logs": [entry.public_dict() for entry in logs]}
