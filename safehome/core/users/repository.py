# safehome/core/users/repository.py
"""
Репозиторий для работы с пользователями в БД.
Реализует паттерн Repository для абстракции доступа к данным.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

import asyncpg

from safehome.common.constants import TypeMsg, UserRole
from safehome.common.exceptions import Conflict
from safehome.common.logger import log_info
from safehome.core.users.models import User, UserCreateDTO, user_from_row
from safehome.infra.database import DatabaseManager, affected_rows

_USER_COLUMNS = """
    id, name, email, role, consent_given, consent_text_version, consent_at, created_at
"""


class UserRepository:
    """Репозиторий пользователей."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Инициализация репозитория.

        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        """Получает пользователя по ID."""
        row = await self._db.fetchrow(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1",
            user_id,
        )
        return user_from_row(row) if row else None

    async def get_by_email(self, email: str, role: UserRole | None = None) -> Optional[User]:
        """
        Получает пользователя по email, опционально фильтруя по роли.

        Args:
            email: Email (сравнивается без учёта регистра)
            role: Требуемая роль или None
        """
        if role is None:
            row = await self._db.fetchrow(
                f"SELECT {_USER_COLUMNS} FROM users WHERE email = $1",
                email.lower(),
            )
        else:
            row = await self._db.fetchrow(
                f"SELECT {_USER_COLUMNS} FROM users WHERE email = $1 AND role = $2",
                email.lower(),
                role.value,
            )
        return user_from_row(row) if row else None

    async def get_password_hash(self, email: str) -> Optional[tuple[User, str]]:
        """Возвращает пользователя и хэш пароля для проверки входа."""
        row = await self._db.fetchrow(
            f"SELECT {_USER_COLUMNS}, password_hash FROM users WHERE email = $1",
            email.lower(),
        )
        if row is None:
            return None
        return user_from_row(row), row["password_hash"]

    async def create(self, dto: UserCreateDTO) -> User:
        """
        Создаёт нового пользователя.

        Raises:
            Conflict: email уже зарегистрирован
        """
        now = datetime.now(timezone.utc)
        user_id = uuid4()
        try:
            row = await self._db.fetchrow(
                f"""
                INSERT INTO users (id, name, email, password_hash, role,
                                   consent_given, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, FALSE, $6, $6)
                RETURNING {_USER_COLUMNS}
                """,
                user_id,
                dto.name,
                dto.email.lower(),
                dto.password_hash,
                dto.role.value,
                now,
            )
        except asyncpg.UniqueViolationError:
            raise Conflict("Email already registered")

        await log_info(f"Пользователь {user_id} создан ({dto.role.value})", type_msg=TypeMsg.DEBUG)
        return user_from_row(row)

    async def get_consent(self, child_id: UUID) -> bool:
        """Читает флаг согласия ребёнка напрямую из БД."""
        value = await self._db.fetchval(
            "SELECT consent_given FROM users WHERE id = $1 AND role = $2",
            child_id,
            UserRole.CHILD.value,
        )
        return bool(value)

    async def update_consent(
        self,
        child_id: UUID,
        given: bool,
        text_version: str | None,
        consent_at: datetime | None,
    ) -> Optional[User]:
        """Обновляет состояние согласия и возвращает обновлённого ребёнка."""
        row = await self._db.fetchrow(
            f"""
            UPDATE users
            SET consent_given = $2, consent_text_version = $3, consent_at = $4, updated_at = NOW()
            WHERE id = $1 AND role = 'child'
            RETURNING {_USER_COLUMNS}
            """,
            child_id,
            given,
            text_version,
            consent_at,
        )
        return user_from_row(row) if row else None

    async def delete(self, user_id: UUID) -> bool:
        """Удаляет пользователя."""
        status = await self._db.execute("DELETE FROM users WHERE id = $1", user_id)
        return affected_rows(status) > 0
