# safehome/api/routes/auth.py
"""
Регистрация, вход, выход и выдача CSRF-токена.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response, status

from safehome.api.container import ServiceContainer
from safehome.api.csrf import set_csrf_cookie
from safehome.api.dependencies import get_container
from safehome.api.schemas import LoginRequest, SignupRequest
from safehome.common.constants import UserRole
from safehome.config import settings

router = APIRouter(prefix="/auth", tags=["Auth"])


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.security.COOKIE_NAME,
        token,
        httponly=True,
        samesite="none" if settings.security.COOKIE_SECURE else "lax",
        secure=settings.security.COOKIE_SECURE,
        max_age=settings.security.JWT_EXPIRES_DAYS * 24 * 60 * 60,
    )


def clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(settings.security.COOKIE_NAME)
    response.delete_cookie(settings.security.CSRF_COOKIE_NAME)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    body: SignupRequest,
    response: Response,
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    """Регистрация ребёнка или родителя."""
    user, token = await container.auth.register(body.name, body.email, body.password, UserRole(body.role))
    set_auth_cookie(response, token)
    csrf_token = set_csrf_cookie(response)
    return {"user": user.public_dict(), "csrfToken": csrf_token}


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    user, token = await container.auth.login(body.email, body.password)
    set_auth_cookie(response, token)
    csrf_token = set_csrf_cookie(response)
    return {"user": user.public_dict(), "csrfToken": csrf_token}


@router.post("/logout")
async def logout(response: Response) -> dict[str, Any]:
    clear_auth_cookies(response)
    return {"success": True}


@router.get("/csrf")
async def csrf(response: Response) -> dict[str, Any]:
    csrf_token = set_csrf_cookie(response)
    return {"csrfToken": csrf_token, "headerName": settings.security.CSRF_HEADER_NAME}
