# safehome/common/exceptions.py
"""
Типизированные ошибки доменного ядра.

Ядро никогда не формирует ответ само: компоненты бросают эти исключения,
а граница (HTTP-обработчик или обработчик сообщений сокета) переводит их
в транспортный ответ.
"""

from __future__ import annotations

from typing import Any


class SafeHomeError(Exception):
    """Базовая ошибка приложения."""

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, details: Any | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(SafeHomeError):
    """Некорректный или выходящий за допустимые границы ввод."""
    status_code = 400
    error_code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class Unauthenticated(SafeHomeError):
    """Отсутствуют или недействительны учётные данные."""
    status_code = 401
    error_code = "UNAUTHENTICATED"
    default_message = "Authentication required"


class Unauthorized(SafeHomeError):
    """Пользователь аутентифицирован, но не имеет нужной роли или связи."""
    status_code = 403
    error_code = "UNAUTHORIZED"
    default_message = "Insufficient permissions"


class ConsentRequired(SafeHomeError):
    """Ребёнок не дал согласия на отслеживание."""
    status_code = 403
    error_code = "CONSENT_REQUIRED"
    default_message = "Consent required before sending location"


class NotFound(SafeHomeError):
    """Сущность или связь не найдена."""
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(SafeHomeError):
    """Нарушение уникальности (например, повторная регистрация email)."""
    status_code = 409
    error_code = "CONFLICT"
    default_message = "Conflict"
