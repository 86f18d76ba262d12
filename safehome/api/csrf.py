# safehome/api/csrf.py
"""
CSRF-защита по схеме double-submit: заголовок X-CSRF-Token
должен совпадать с cookie safehome_csrf.
"""

from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from safehome.api.errors import error_response
from safehome.core.auth.security import generate_csrf_token

_SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}


def set_csrf_cookie(response: Response, token: str | None = None) -> str:
    """Выставляет cookie с CSRF-токеном (читаемую из JS) и возвращает токен."""
    from safehome.config import settings

    value = token or generate_csrf_token()
    response.set_cookie(
        settings.security.CSRF_COOKIE_NAME,
        value,
        httponly=False,
        samesite="lax",
        secure=settings.security.COOKIE_SECURE,
    )
    return value


class CSRFMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        from safehome.config import settings

        security = settings.security
        if request.url.path in security.CSRF_EXEMPT_PATHS:
            return await call_next(request)

        cookie_token = request.cookies.get(security.CSRF_COOKIE_NAME)

        if request.method.upper() in _SAFE_METHODS:
            response = await call_next(request)
            if not cookie_token:
                set_csrf_cookie(response)
            return response

        header_token = request.headers.get(security.CSRF_HEADER_NAME)
        if not cookie_token or not header_token or header_token != cookie_token:
            return error_response(403, "CSRF_FAILED", "Invalid CSRF token")

        return await call_next(request)
