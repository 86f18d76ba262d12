# safehome/api/container.py
"""
Сборка зависимостей приложения.

Все сервисы и хаб создаются здесь и хранятся в app.state.container.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from safehome.config.loader import Settings
from safehome.core.audit.repository import AuditRepository
from safehome.core.audit.service import AuditTrail
from safehome.core.auth.service import CredentialVerifier
from safehome.core.consent.service import ConsentGate
from safehome.core.ingestion.service import IngestionService
from safehome.core.links.repository import LinkRepository
from safehome.core.links.service import LinkRegistry
from safehome.core.locations.repository import LocationRepository
from safehome.core.locations.retention import RetentionService
from safehome.core.locations.service import LocationStore
from safehome.core.privacy.service import PrivacyService
from safehome.core.users.repository import UserRepository
from safehome.infra.database import DatabaseManager
from safehome.realtime.hub import FanoutHub
from safehome.worker.retention import RetentionWorker


@dataclass
class ServiceContainer:
    """Граф зависимостей одного процесса."""

    users: UserRepository
    auth: CredentialVerifier
    audit: AuditTrail
    links: LinkRegistry
    consent: ConsentGate
    locations: LocationStore
    retention: RetentionService
    hub: FanoutHub
    ingestion: IngestionService
    privacy: PrivacyService
    retention_worker: RetentionWorker
    db: Optional[DatabaseManager] = None

    @classmethod
    def from_repositories(
        cls,
        settings: Settings,
        users: UserRepository,
        links: LinkRepository,
        locations: LocationRepository,
        audit: AuditRepository,
        db: Optional[DatabaseManager] = None,
    ) -> "ServiceContainer":
        """Собирает сервисы поверх готовых репозиториев."""
        audit_trail = AuditTrail(audit)
        link_registry = LinkRegistry(links, users, audit_trail)
        consent = ConsentGate(users, audit_trail)
        store = LocationStore(
            locations,
            monotonic_latest=settings.location.LATEST_LOCATION_MONOTONIC,
            history_window_hours=settings.location.HISTORY_WINDOW_HOURS,
            history_limit=settings.location.HISTORY_LIMIT,
        )
        retention = RetentionService(locations, store, settings.location.RETENTION_DAYS_DEFAULT)

        hub = FanoutHub(link_registry)
        link_registry.bind_hub(hub)

        return cls(
            users=users,
            auth=CredentialVerifier(users),
            audit=audit_trail,
            links=link_registry,
            consent=consent,
            locations=store,
            retention=retention,
            hub=hub,
            ingestion=IngestionService(consent, store, audit_trail, hub),
            privacy=PrivacyService(users, link_registry, store, audit_trail),
            retention_worker=RetentionWorker(retention, settings.location.RETENTION_SWEEP_INTERVAL_SECONDS),
            db=db,
        )


def build_container(db: DatabaseManager, settings: Settings) -> ServiceContainer:
    """Собирает контейнер поверх PostgreSQL."""
    return ServiceContainer.from_repositories(
        settings,
        users=UserRepository(db),
        links=LinkRepository(db),
        locations=LocationRepository(db),
        audit=AuditRepository(db),
        db=db,
    )
