# safehome/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Роли пользователей."""
    CHILD = "child"
    PARENT = "parent"
    ADMIN = "admin"


class LinkStatus(str, Enum):
    """Статусы связи родитель-ребёнок."""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    REVOKED = "REVOKED"


class AuditAction(str, Enum):
    """Действия, фиксируемые в журнале аудита."""
    VIEW_CHILD_LOCATION = "VIEW_CHILD_LOCATION"
    LOCATION_UPDATE = "LOCATION_UPDATE"
    LINK_REQUESTED = "LINK_REQUESTED"
    LINK_ACCEPTED = "LINK_ACCEPTED"
    LINK_DECLINED = "LINK_DECLINED"
    CONSENT_GRANTED = "CONSENT_GRANTED"
    CONSENT_REVOKED = "CONSENT_REVOKED"
    REVOKE_PARENT = "REVOKE_PARENT"
    EXPORT_DATA = "EXPORT_DATA"
    DELETE_ACCOUNT = "DELETE_ACCOUNT"


class SocketEvent(str, Enum):
    """События протокола постоянного соединения."""
    LOCATION_UPDATE = "location:update"
    PARENT_SUBSCRIBE = "parent:subscribe"
    LOCATION_PUSH = "location:push"
    ACK = "ack"
    ERROR = "error"


# Окно истории по умолчанию и лимит выборки
DEFAULT_HISTORY_WINDOW_HOURS = 24
DEFAULT_HISTORY_LIMIT = 500

# Версия текста согласия по умолчанию
DEFAULT_CONSENT_TEXT_VERSION = "v1"


def child_room(child_id: object) -> str:
    """Имя комнаты рассылки для ребёнка."""
    return f"child:{child_id}"
