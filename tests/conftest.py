# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.

Репозитории подменяются in-memory реализациями с теми же методами,
поэтому сервисы и HTTP-слой тестируются без PostgreSQL.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_for_safehome_tests_0123456789")

from safehome.common.constants import AuditAction, LinkStatus, UserRole  # noqa: E402
from safehome.common.exceptions import Conflict  # noqa: E402
from safehome.core.audit.models import AuditLogEntry  # noqa: E402
from safehome.core.links.models import ParentChildLink  # noqa: E402
from safehome.core.locations.models import LatestLocation, LocationPing  # noqa: E402
from safehome.core.users.models import User, UserCreateDTO, user_from_row  # noqa: E402


# =============================================================================
# IN-MEMORY РЕПОЗИТОРИИ
# =============================================================================

class InMemoryUserRepository:
    """Хранилище пользователей в памяти."""

    def __init__(self) -> None:
        self.rows: dict[UUID, dict[str, Any]] = {}

    def add(
        self,
        role: UserRole,
        name: str = "Test User",
        email: Optional[str] = None,
        consent_given: bool = False,
        password_hash: str = "",
    ) -> User:
        user_id = uuid4()
        self.rows[user_id] = {
            "id": user_id,
            "name": name,
            "email": (email or f"{user_id.hex[:8]}@example.com").lower(),
            "role": role.value,
            "password_hash": password_hash,
            "consent_given": consent_given,
            "consent_text_version": "v1" if consent_given else None,
            "consent_at": datetime.now(timezone.utc) if consent_given else None,
            "created_at": datetime.now(timezone.utc),
        }
        return user_from_row(self.rows[user_id])

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        row = self.rows.get(user_id)
        return user_from_row(row) if row else None

    async def get_by_email(self, email: str, role: UserRole | None = None) -> Optional[User]:
        for row in self.rows.values():
            if row["email"] == email.lower() and (role is None or row["role"] == role.value):
                return user_from_row(row)
        return None

    async def get_password_hash(self, email: str) -> Optional[tuple[User, str]]:
        for row in self.rows.values():
            if row["email"] == email.lower():
                return user_from_row(row), row["password_hash"]
        return None

    async def create(self, dto: UserCreateDTO) -> User:
        if await self.get_by_email(dto.email) is not None:
            raise Conflict("Email already registered")
        user = self.add(dto.role, name=dto.name, email=dto.email, password_hash=dto.password_hash)
        return user

    async def get_consent(self, child_id: UUID) -> bool:
        row = self.rows.get(child_id)
        return bool(row and row["role"] == UserRole.CHILD.value and row["consent_given"])

    async def update_consent(
        self,
        child_id: UUID,
        given: bool,
        text_version: str | None,
        consent_at: datetime | None,
    ) -> Optional[User]:
        row = self.rows.get(child_id)
        if row is None or row["role"] != UserRole.CHILD.value:
            return None
        row.update(consent_given=given, consent_text_version=text_version, consent_at=consent_at)
        return user_from_row(row)

    async def delete(self, user_id: UUID) -> bool:
        return self.rows.pop(user_id, None) is not None


class InMemoryLinkRepository:
    """Связи в памяти с уникальностью пары (родитель, ребёнок)."""

    def __init__(self, users: InMemoryUserRepository) -> None:
        self._users = users
        self.rows: dict[UUID, dict[str, Any]] = {}

    def _find_pair(self, parent_id: UUID, child_id: UUID) -> Optional[dict[str, Any]]:
        for row in self.rows.values():
            if row["parent_id"] == parent_id and row["child_id"] == child_id:
                return row
        return None

    def _with_user(self, row: dict[str, Any], prefix: str, user_id: UUID) -> dict[str, Any]:
        data = dict(row)
        user = self._users.rows.get(user_id)
        if user is not None:
            data[f"{prefix}_name"] = user["name"]
            data[f"{prefix}_email"] = user["email"]
            if prefix == "child":
                data["child_consent"] = user["consent_given"]
        return data

    async def upsert_pending(self, parent_id: UUID, child_id: UUID) -> ParentChildLink:
        now = datetime.now(timezone.utc)
        row = self._find_pair(parent_id, child_id)
        if row is None:
            row = {
                "id": uuid4(),
                "parent_id": parent_id,
                "child_id": child_id,
                "created_at": now,
            }
            self.rows[row["id"]] = row
        row.update(status=LinkStatus.PENDING.value, updated_at=now)
        return ParentChildLink.from_row(row)

    async def transition(
        self,
        link_id: UUID,
        child_id: UUID,
        from_status: LinkStatus,
        to_status: LinkStatus,
    ) -> Optional[ParentChildLink]:
        row = self.rows.get(link_id)
        if row is None or row["child_id"] != child_id or row["status"] != from_status.value:
            return None
        row.update(status=to_status.value, updated_at=datetime.now(timezone.utc))
        return ParentChildLink.from_row(row)

    async def transition_pair(
        self,
        parent_id: UUID,
        child_id: UUID,
        from_status: LinkStatus,
        to_status: LinkStatus,
    ) -> Optional[ParentChildLink]:
        row = self._find_pair(parent_id, child_id)
        if row is None or row["status"] != from_status.value:
            return None
        row.update(status=to_status.value, updated_at=datetime.now(timezone.utc))
        return ParentChildLink.from_row(row)

    async def get_status(self, parent_id: UUID, child_id: UUID) -> Optional[LinkStatus]:
        row = self._find_pair(parent_id, child_id)
        return LinkStatus(row["status"]) if row else None

    async def list_for_parent(self, parent_id: UUID) -> list[ParentChildLink]:
        return [
            ParentChildLink.from_row(self._with_user(row, "child", row["child_id"]))
            for row in self.rows.values()
            if row["parent_id"] == parent_id
        ]

    async def list_for_child(self, child_id: UUID, status: LinkStatus | None = None) -> list[ParentChildLink]:
        return [
            ParentChildLink.from_row(self._with_user(row, "parent", row["parent_id"]))
            for row in self.rows.values()
            if row["child_id"] == child_id and (status is None or row["status"] == status.value)
        ]

    async def delete_for_user(self, user_id: UUID) -> int:
        doomed = [
            link_id for link_id, row in self.rows.items()
            if user_id in (row["parent_id"], row["child_id"])
        ]
        for link_id in doomed:
            del self.rows[link_id]
        return len(doomed)


class InMemoryLocationRepository:
    """История пингов и последняя позиция в памяти."""

    def __init__(self) -> None:
        self.pings: list[LocationPing] = []
        self.latest_rows: dict[UUID, LatestLocation] = {}
        self.retention_days: Optional[int] = None

    async def insert_ping(self, ping: LocationPing) -> None:
        self.pings.append(ping)

    async def upsert_latest(self, ping: LocationPing, monotonic: bool = False) -> None:
        current = self.latest_rows.get(ping.child_id)
        if monotonic and current is not None and current.ts >= ping.ts:
            return
        self.latest_rows[ping.child_id] = LatestLocation(
            child_id=ping.child_id,
            lat=ping.lat,
            lng=ping.lng,
            accuracy=ping.accuracy,
            speed=ping.speed,
            heading=ping.heading,
            ts=ping.ts,
        )

    def _for_child(self, child_id: UUID) -> list[LocationPing]:
        return sorted(
            (p for p in self.pings if p.child_id == child_id),
            key=lambda p: p.ts,
            reverse=True,
        )

    async def history(
        self,
        child_id: UUID,
        from_ts: datetime,
        to_ts: datetime,
        limit: int,
    ) -> list[LocationPing]:
        return [p for p in self._for_child(child_id) if from_ts <= p.ts <= to_ts][:limit]

    async def all_for_child(self, child_id: UUID) -> list[LocationPing]:
        return self._for_child(child_id)

    async def recent(self, child_id: UUID, limit: int) -> list[LocationPing]:
        return self._for_child(child_id)[:limit]

    async def count(self, child_id: UUID) -> int:
        return len(self._for_child(child_id))

    async def latest(self, child_id: UUID) -> Optional[LatestLocation]:
        return self.latest_rows.get(child_id)

    async def latest_many(self, child_ids: list[UUID]) -> dict[UUID, LatestLocation]:
        return {cid: self.latest_rows[cid] for cid in child_ids if cid in self.latest_rows}

    async def purge_older_than(self, cutoff: datetime) -> int:
        before = len(self.pings)
        self.pings = [p for p in self.pings if p.ts >= cutoff]
        return before - len(self.pings)

    async def delete_for_child(self, child_id: UUID) -> int:
        before = len(self.pings)
        self.pings = [p for p in self.pings if p.child_id != child_id]
        self.latest_rows.pop(child_id, None)
        return before - len(self.pings)

    async def get_retention_days(self) -> Optional[int]:
        return self.retention_days

    async def set_retention_days(self, days: int) -> None:
        self.retention_days = days


class InMemoryAuditRepository:
    """Журнал аудита в памяти (новые записи в конце списка)."""

    def __init__(self) -> None:
        self.entries: list[AuditLogEntry] = []

    async def insert(
        self,
        actor_id: Optional[UUID],
        actor_role: str,
        action: AuditAction,
        child_id: Optional[UUID] = None,
        meta: Optional[dict[str, Any]] = None,
    ) -> None:
        self.entries.append(
            AuditLogEntry(
                id=uuid4(),
                actor_id=actor_id,
                actor_role=actor_role,
                child_id=child_id,
                action=action,
                meta=json.loads(json.dumps(meta or {}, default=str)),
                timestamp=datetime.now(timezone.utc),
            )
        )

    async def list_page(self, offset: int, limit: int) -> list[AuditLogEntry]:
        return list(reversed(self.entries))[offset:offset + limit]

    async def count(self) -> int:
        return len(self.entries)

    async def list_for_children(self, child_ids: list[UUID], limit: int) -> list[AuditLogEntry]:
        return [e for e in reversed(self.entries) if e.child_id in child_ids][:limit]

    async def delete_for_user(self, user_id: UUID) -> int:
        before = len(self.entries)
        self.entries = [e for e in self.entries if user_id not in (e.actor_id, e.child_id)]
        return before - len(self.entries)

    def actions(self) -> list[AuditAction]:
        return [e.action for e in self.entries]


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "safehome_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "API_HOST": "127.0.0.1",
        "API_PORT": 5050,
        "CORS_ORIGINS": ["http://localhost:3000", "http://localhost:5173"],
        "LOG_LEVEL": "DEBUG",
        "LOG_FORMAT": "json",
        "LOG_TO_FILE": False,
        "DB_HOST": "db.local",
        "DB_PORT": 5433,
        "DB_NAME": "safehome_test",
        "DB_USER": "tester",
        "JWT_EXPIRES_DAYS": 3,
        "RETENTION_DAYS_DEFAULT": 14,
        "RETENTION_SWEEP_INTERVAL_SECONDS": 3600,
        "LATEST_LOCATION_MONOTONIC": True,
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_db() -> AsyncMock:
    """Мок менеджера базы данных."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)
    return db


@pytest.fixture
def mock_hub() -> MagicMock:
    """Мок хаба рассылки."""
    hub = MagicMock()
    hub.publish_ping = AsyncMock(return_value=0)
    hub.evict = AsyncMock(return_value=0)
    return hub


# =============================================================================
# ФИКСТУРЫ РЕПОЗИТОРИЕВ И СЕРВИСОВ
# =============================================================================

@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def link_repo(user_repo: InMemoryUserRepository) -> InMemoryLinkRepository:
    return InMemoryLinkRepository(user_repo)


@pytest.fixture
def location_repo() -> InMemoryLocationRepository:
    return InMemoryLocationRepository()


@pytest.fixture
def audit_repo() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def container(
    user_repo: InMemoryUserRepository,
    link_repo: InMemoryLinkRepository,
    location_repo: InMemoryLocationRepository,
    audit_repo: InMemoryAuditRepository,
):
    """Полный граф сервисов поверх in-memory репозиториев."""
    from safehome.api.container import ServiceContainer
    from safehome.config import settings

    return ServiceContainer.from_repositories(
        settings,
        users=user_repo,
        links=link_repo,
        locations=location_repo,
        audit=audit_repo,
    )


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def child(user_repo: InMemoryUserRepository):
    """Ребёнок с данным согласием."""
    return user_repo.add(UserRole.CHILD, name="Маша", email="masha@example.com", consent_given=True)


@pytest.fixture
def child_without_consent(user_repo: InMemoryUserRepository):
    """Ребёнок без согласия."""
    return user_repo.add(UserRole.CHILD, name="Петя", email="petya@example.com")


@pytest.fixture
def parent(user_repo: InMemoryUserRepository):
    return user_repo.add(UserRole.PARENT, name="Анна", email="anna@example.com")


@pytest.fixture
def other_parent(user_repo: InMemoryUserRepository):
    return user_repo.add(UserRole.PARENT, name="Олег", email="oleg@example.com")


@pytest.fixture
def admin(user_repo: InMemoryUserRepository):
    return user_repo.add(UserRole.ADMIN, name="Админ", email="admin@example.com")


@pytest.fixture
def sample_ping_data() -> dict[str, Any]:
    """Пример входной точки."""
    return {
        "lat": 55.7558,
        "lng": 37.6173,
        "accuracy": 12.5,
        "speed": 1.2,
        "heading": 90.0,
        "ts": "2026-03-01T10:00:00Z",
    }
