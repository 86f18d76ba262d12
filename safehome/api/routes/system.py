# safehome/api/routes/system.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from safehome.api.container import ServiceContainer
from safehome.api.dependencies import get_container, require_admin
from safehome.api.schemas import HealthStatus
from safehome.config import settings
from safehome.core.users.models import AdminUser

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthStatus)
async def health_check(container: ServiceContainer = Depends(get_container)) -> HealthStatus:
    """Проверка здоровья сервиса."""
    deps = {"hub": "healthy" if container.hub.is_running else "unhealthy"}
    if container.db is not None:
        deps["postgres"] = "healthy" if await container.db.health_check() else "unhealthy"

    overall = "healthy" if all(v == "healthy" for v in deps.values()) else "degraded"
    return HealthStatus(
        service=settings.system.PROJECT_NAME,
        status=overall,
        version=settings.system.VERSION,
        dependencies=deps,
    )


@router.get("/stats")
async def get_stats(
    admin: AdminUser = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Статистика соединений и приёма геолокации (только администратор)."""
    return {
        "hub": container.hub.get_stats(),
        "ingestion": container.ingestion.get_stats(),
    }
