# safehome/core/auth/service.py
"""
Проверка учётных данных: токен -> аутентифицированный пользователь.
Используется и HTTP-зависимостями, и рукопожатием WebSocket.
"""

from __future__ import annotations

from typing import Mapping, Optional
from uuid import UUID

from safehome.common.constants import TypeMsg, UserRole
from safehome.common.exceptions import Conflict, Unauthenticated
from safehome.common.logger import log_info
from safehome.core.auth.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from safehome.core.users.models import User, UserCreateDTO
from safehome.core.users.repository import UserRepository


def extract_bearer(authorization: str | None) -> Optional[str]:
    """Достаёт токен из заголовка `Authorization: Bearer <token>`."""
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):].strip()
        return token or None
    return None


class CredentialVerifier:
    """
    Сервис аутентификации.

    Ответственности:
    - Регистрация и вход по email/паролю
    - Выпуск JWT
    - Разбор токена из cookie, заголовка или параметра рукопожатия
    """

    def __init__(self, users: UserRepository) -> None:
        self._users = users

    async def register(self, name: str, email: str, password: str, role: UserRole) -> tuple[User, str]:
        """
        Регистрирует ребёнка или родителя и выпускает токен.

        Raises:
            Conflict: email уже зарегистрирован
        """
        if await self._users.get_by_email(email) is not None:
            raise Conflict("Email already registered")

        user = await self._users.create(
            UserCreateDTO(name=name, email=email, password_hash=hash_password(password), role=role)
        )
        await log_info(f"Зарегистрирован пользователь {user.id} ({role.value})", type_msg=TypeMsg.INFO)
        return user, create_access_token(user.id, user.role)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """
        Проверяет пароль и выпускает токен.

        Raises:
            Unauthenticated: неверный email или пароль
        """
        found = await self._users.get_password_hash(email)
        if found is None:
            raise Unauthenticated("Invalid credentials")

        user, password_hash = found
        if not verify_password(password, password_hash):
            raise Unauthenticated("Invalid credentials")

        return user, create_access_token(user.id, user.role)

    async def verify_token(self, token: str | None) -> User:
        """
        Превращает токен в пользователя.

        Raises:
            Unauthenticated: токена нет, он недействителен или пользователь удалён
        """
        if not token:
            raise Unauthenticated()

        payload = decode_token(token)
        try:
            user_id = UUID(str(payload["sub"]))
        except ValueError as e:
            raise Unauthenticated("Invalid or expired token") from e

        user = await self._users.get_by_id(user_id)
        if user is None:
            raise Unauthenticated()
        return user

    async def authenticate_request(
        self,
        cookies: Mapping[str, str],
        authorization: str | None,
    ) -> User:
        """Аутентификация HTTP-запроса: сначала cookie, затем заголовок."""
        from safehome.config import settings

        token = cookies.get(settings.security.COOKIE_NAME) or extract_bearer(authorization)
        return await self.verify_token(token)

    async def authenticate_handshake(
        self,
        query_token: str | None,
        authorization: str | None,
        cookies: Mapping[str, str],
    ) -> User:
        """Аутентификация рукопожатия: параметр token, затем заголовок, затем cookie."""
        from safehome.config import settings

        token = query_token or extract_bearer(authorization) or cookies.get(settings.security.COOKIE_NAME)
        return await self.verify_token(token)
