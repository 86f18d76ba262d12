# safehome/api/routes/location.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from safehome.api.container import ServiceContainer
from safehome.api.dependencies import get_container, require_child
from safehome.api.routes.me import ingest_from_request
from safehome.core.users.models import ChildUser

router = APIRouter(prefix="/location", tags=["Location"])


@router.post("")
async def submit_location(
    payload: dict[str, Any] = Body(...),
    child: ChildUser = Depends(require_child),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Приём точки от устройства ребёнка."""
    return await ingest_from_request(container, child, payload)
