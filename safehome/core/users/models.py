# safehome/core/users/models.py
"""
Модели данных пользователей.

Роль неизменна после создания, поэтому каждая роль представлена
отдельной моделью с общим базовым набором полей.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from safehome.common.constants import UserRole


class BaseUser(BaseModel):
    """Общие поля любой учётной записи."""

    id: UUID = Field(..., description="ID пользователя")
    name: str = Field(..., description="Имя")
    email: str = Field(..., description="Email (уникален)")
    role: UserRole = Field(..., description="Роль пользователя")
    created_at: Optional[datetime] = Field(None, description="Дата регистрации")

    class Config:
        from_attributes = True

    def public_dict(self) -> dict[str, Any]:
        """Представление для ответа API."""
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
        }


class ChildUser(BaseUser):
    """Ребёнок: единственная роль, несущая состояние согласия."""

    role: UserRole = Field(UserRole.CHILD, description="Роль пользователя")
    consent_given: bool = Field(False, description="Дано ли согласие на отслеживание")
    consent_text_version: Optional[str] = Field(None, description="Версия текста согласия")
    consent_at: Optional[datetime] = Field(None, description="Когда дано согласие")

    def public_dict(self) -> dict[str, Any]:
        data = super().public_dict()
        data.update(
            consentGiven=self.consent_given,
            consentTextVersion=self.consent_text_version,
            consentAt=self.consent_at.isoformat() if self.consent_at else None,
        )
        return data


class ParentUser(BaseUser):
    """Родитель."""

    role: UserRole = Field(UserRole.PARENT, description="Роль пользователя")


class AdminUser(BaseUser):
    """Администратор."""

    role: UserRole = Field(UserRole.ADMIN, description="Роль пользователя")


User = Union[ChildUser, ParentUser, AdminUser]

_MODEL_BY_ROLE: dict[UserRole, type[BaseUser]] = {
    UserRole.CHILD: ChildUser,
    UserRole.PARENT: ParentUser,
    UserRole.ADMIN: AdminUser,
}


def user_from_row(row: Any) -> User:
    """
    Собирает модель пользователя нужной роли из строки БД.

    Args:
        row: Запись asyncpg (или любой mapping) с колонками таблицы users

    Returns:
        ChildUser, ParentUser или AdminUser
    """
    role = UserRole(row["role"])
    base = {
        "id": row["id"],
        "name": row["name"],
        "email": row["email"],
        "role": role,
        "created_at": row["created_at"],
    }
    if role == UserRole.CHILD:
        return ChildUser(
            **base,
            consent_given=row["consent_given"],
            consent_text_version=row["consent_text_version"],
            consent_at=row["consent_at"],
        )
    return _MODEL_BY_ROLE[role](**base)  # type: ignore[return-value]


class UserCreateDTO(BaseModel):
    """DTO для создания пользователя."""

    name: str = Field(..., min_length=2)
    email: str
    password_hash: str
    role: UserRole
