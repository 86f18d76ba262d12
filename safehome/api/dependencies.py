# safehome/api/dependencies.py
"""
Зависимости FastAPI: контейнер сервисов и текущий пользователь.
"""

from __future__ import annotations

from fastapi import Depends, Request

from safehome.api.container import ServiceContainer
from safehome.common.exceptions import Unauthorized
from safehome.core.users.models import AdminUser, ChildUser, ParentUser, User


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


async def current_user(
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> User:
    """Аутентифицированный пользователь или Unauthenticated (401)."""
    return await container.auth.authenticate_request(
        request.cookies,
        request.headers.get("authorization"),
    )


async def require_child(user: User = Depends(current_user)) -> ChildUser:
    if not isinstance(user, ChildUser):
        raise Unauthorized()
    return user


async def require_parent(user: User = Depends(current_user)) -> ParentUser:
    if not isinstance(user, ParentUser):
        raise Unauthorized()
    return user


async def require_admin(user: User = Depends(current_user)) -> AdminUser:
    if not isinstance(user, AdminUser):
        raise Unauthorized()
    return user
