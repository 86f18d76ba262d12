# safehome/api/schemas.py
"""
Модели запросов и ответов HTTP API.
"""

from __future__ import annotations

import re
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from safehome.common.constants import DEFAULT_CONSENT_TEXT_VERSION

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _check_email(value: str) -> str:
    value = value.strip().lower()
    if not _EMAIL_RE.match(value):
        raise ValueError("invalid email address")
    return value


class ErrorResponse(BaseModel):
    """Стандартный ответ с ошибкой."""

    error_code: str
    message: str
    details: Any | None = None
    request_id: str | None = None


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    service: str
    status: str = "healthy"  # healthy, degraded
    version: str | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)


class SignupRequest(BaseModel):
    name: str = Field(..., min_length=2)
    email: str
    password: str = Field(..., min_length=8)
    role: Literal["child", "parent"]

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("name must be at least 2 characters")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _check_email(v)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _check_email(v)


class ConsentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    consent_given: bool = Field(..., alias="consentGiven", strict=True)
    consent_text_version: str = Field(DEFAULT_CONSENT_TEXT_VERSION, alias="consentTextVersion")


class RevokeParentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    parent_id: UUID = Field(..., alias="parentId")


class LinkRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    child_email: str = Field(..., alias="childEmail")

    @field_validator("child_email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _check_email(v)


class LinkActionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    link_id: UUID = Field(..., alias="linkId")


class RetentionUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    retention_days: int = Field(..., alias="retentionDays", ge=1, strict=True)
