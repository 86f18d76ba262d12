# safehome/core/auth/security.py
"""
Криптографические примитивы аутентификации:
хэширование паролей (argon2), JWT и CSRF-токены.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from secrets import token_hex
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from safehome.common.constants import UserRole
from safehome.common.exceptions import Unauthenticated

_password_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def create_access_token(user_id: Any, role: UserRole) -> str:
    """
    Подписывает JWT с полезной нагрузкой {sub, role}.

    Args:
        user_id: ID пользователя
        role: Роль пользователя
    """
    from safehome.config import settings

    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "role": role.value,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=settings.security.JWT_EXPIRES_DAYS)).timestamp()),
    }
    return jwt.encode(payload, settings.security.JWT_SECRET, algorithm=settings.security.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """
    Проверяет подпись и срок действия токена.

    Raises:
        Unauthenticated: токен недействителен или истёк
    """
    from safehome.config import settings

    try:
        payload = jwt.decode(
            token,
            settings.security.JWT_SECRET,
            algorithms=[settings.security.JWT_ALGORITHM],
        )
    except jwt.PyJWTError as e:
        raise Unauthenticated("Invalid or expired token") from e

    if "sub" not in payload:
        raise Unauthenticated("Invalid or expired token")
    return payload


def generate_csrf_token() -> str:
    return token_hex(32)
