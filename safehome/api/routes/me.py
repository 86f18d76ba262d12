# safehome/api/routes/me.py
"""
Профиль текущего пользователя и права ребёнка на его данные.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, Response

from safehome.api.container import ServiceContainer
from safehome.api.csrf import set_csrf_cookie
from safehome.api.dependencies import current_user, get_container, require_child
from safehome.api.routes.auth import clear_auth_cookies
from safehome.api.schemas import ConsentRequest, RevokeParentRequest
from safehome.core.users.models import ChildUser, User

router = APIRouter(prefix="/me", tags=["Me"])


@router.get("")
async def me(response: Response, user: User = Depends(current_user)) -> dict[str, Any]:
    csrf_token = set_csrf_cookie(response)
    return {"user": user.public_dict(), "csrfToken": csrf_token}


@router.post("/consent")
async def set_consent(
    body: ConsentRequest,
    child: ChildUser = Depends(require_child),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Выдача или отзыв согласия на отслеживание."""
    updated = await container.consent.set_consent(child, body.consent_given, body.consent_text_version)
    return {
        "consentGiven": updated.consent_given,
        "consentAt": updated.consent_at.isoformat() if updated.consent_at else None,
    }


@router.post("/revoke-parent")
async def revoke_parent(
    body: RevokeParentRequest,
    child: ChildUser = Depends(require_child),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    await container.links.revoke(child, body.parent_id)
    return {"success": True}


@router.post("/export")
async def export_data(
    child: ChildUser = Depends(require_child),
    container: ServiceContainer = Depends(get_container),
) -> Response:
    """Выгрузка связей и истории геолокации файлом JSON."""
    payload = await container.privacy.export_data(child)
    return Response(
        content=json.dumps(payload, indent=2, ensure_ascii=False),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="safehome-{child.id}.json"'},
    )


@router.post("/delete-account")
async def delete_account(
    response: Response,
    child: ChildUser = Depends(require_child),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    await container.privacy.delete_account(child)
    clear_auth_cookies(response)
    return {"deleted": True}


@router.post("/location")
async def submit_location(
    payload: dict[str, Any] = Body(...),
    child: ChildUser = Depends(require_child),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    return await ingest_from_request(container, child, payload)


async def ingest_from_request(
    container: ServiceContainer,
    child: ChildUser,
    payload: dict[str, Any],
) -> dict[str, Any]:
    """Приём точки через HTTP: время наблюдения ставит сервер."""
    point = {key: value for key, value in payload.items() if key != "ts"}
    point["ts"] = datetime.now(timezone.utc)
    ping = await container.ingestion.submit_ping(child.id, point)
    return {
        "ok": True,
        "message": "Location updated successfully",
        "timestamp": ping.ts.isoformat(),
    }
