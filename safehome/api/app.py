# safehome/api/app.py
"""
FastAPI приложение SafeHome.

HTTP API, постоянное соединение /ws и фоновая очистка геолокации
в одном процессе.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from safehome import __version__
from safehome.api.container import ServiceContainer, build_container
from safehome.api.csrf import CSRFMiddleware
from safehome.api.errors import register_exception_handlers
from safehome.api.routes import ROUTERS
from safehome.api.ws import router as ws_router
from safehome.common.constants import TypeMsg
from safehome.common.logger import log_info, setup_logging
from safehome.config import settings
from safehome.infra.database import close_db, init_db


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Создаёт приложение.

    Args:
        container: Готовый граф сервисов. Если не передан, при старте
            подключается PostgreSQL и контейнер собирается поверх него.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()

        owns_db = container is None
        if owns_db:
            db = await init_db()
            app.state.container = build_container(db, settings)
        else:
            app.state.container = container

        services: ServiceContainer = app.state.container
        await services.hub.start()
        await services.retention_worker.start()
        await log_info(f"{settings.system.PROJECT_NAME} запущен", type_msg=TypeMsg.INFO)

        yield

        await services.retention_worker.stop()
        await services.hub.stop()
        if owns_db:
            await close_db()
        await log_info(f"{settings.system.PROJECT_NAME} остановлен", type_msg=TypeMsg.INFO)

    app = FastAPI(
        title=settings.system.PROJECT_NAME,
        description="Семейный обмен геолокацией с согласием ребёнка.",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(CSRFMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.deployment.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["Content-Type", "Authorization", settings.security.CSRF_HEADER_NAME],
    )

    register_exception_handlers(app)

    for router in ROUTERS:
        app.include_router(router)
    app.include_router(ws_router)

    return app


app = create_app()
