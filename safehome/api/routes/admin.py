# safehome/api/routes/admin.py
"""
Администрирование: срок хранения и очистка геолокации, журнал аудита.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from safehome.api.container import ServiceContainer
from safehome.api.dependencies import get_container, require_admin
from safehome.api.schemas import RetentionUpdateRequest
from safehome.core.users.models import AdminUser

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/retention")
async def get_retention(
    admin: AdminUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    return {"retentionDays": await container.retention.get_retention_days()}


@router.post("/retention")
async def set_retention(
    body: RetentionUpdateRequest,
    admin: AdminUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Переопределяет срок хранения пингов для следующих проходов очистки."""
    days = await container.retention.set_retention_days(body.retention_days)
    return {"retentionDays": days}


@router.post("/run-retention-cleanup")
async def run_retention_cleanup(
    admin: AdminUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    result = await container.retention.run_cleanup()
    return result.public_dict()


@router.get("/audit")
async def admin_audit(
    page: int = Query(1),
    limit: int = Query(20),
    admin: AdminUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Журнал аудита постранично, новые первыми."""
    audit_page = await container.audit.page(page, limit)
    return {
        "logs": [entry.public_dict() for entry in audit_page.logs],
        "page": audit_page.page,
        "total": audit_page.total,
    }
