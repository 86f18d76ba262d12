# safehome/core/ingestion/service.py
"""
Приём геолокации ребёнка.

Единая точка входа для HTTP и WebSocket. Порядок шагов фиксирован:
1. Валидация точки
2. Проверка согласия (без согласия запись не выполняется)
3. Сохранение пинга
4. Запись аудита LOCATION_UPDATE
5. Рассылка в комнату ребёнка
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from pydantic import ValidationError as PydanticValidationError

from safehome.common.constants import AuditAction, TypeMsg, UserRole
from safehome.common.exceptions import ConsentRequired, ValidationError
from safehome.common.logger import log_error, log_info
from safehome.core.audit.service import AuditTrail
from safehome.core.consent.service import ConsentGate
from safehome.core.locations.models import LocationPing, LocationPoint
from safehome.core.locations.service import LocationStore

if TYPE_CHECKING:
    from safehome.realtime.hub import FanoutHub


def validation_details(error: PydanticValidationError) -> list[dict[str, str]]:
    """Переводит ошибки pydantic в сериализуемый список {field, message}."""
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in error.errors()
    ]


class IngestionService:
    """
    Сервис приёма геолокации.

    Статистика:
    - accepted: принятые пинги
    - rejected_validation / rejected_consent: отклонённые
    """

    def __init__(
        self,
        consent: ConsentGate,
        store: LocationStore,
        audit: AuditTrail,
        hub: "FanoutHub | None" = None,
    ) -> None:
        self._consent = consent
        self._store = store
        self._audit = audit
        self._hub = hub

        self._stats = {
            "accepted": 0,
            "rejected_validation": 0,
            "rejected_consent": 0,
        }

    def _validate(self, raw_point: Any) -> LocationPoint:
        if isinstance(raw_point, LocationPoint):
            return raw_point
        if not isinstance(raw_point, dict):
            raise ValidationError("Location payload must be an object")
        try:
            return LocationPoint.model_validate(raw_point)
        except PydanticValidationError as e:
            raise ValidationError("Invalid location payload", details=validation_details(e)) from e

    async def submit_ping(self, child_id: UUID, raw_point: Any) -> LocationPing:
        """
        Принимает пинг ребёнка.

        Args:
            child_id: ID ребёнка
            raw_point: Словарь {lat, lng, accuracy?, speed?, heading?, ts?}

        Returns:
            Сохранённый пинг

        Raises:
            ValidationError: некорректная точка
            ConsentRequired: ребёнок не дал согласия
        """
        try:
            point = self._validate(raw_point)
        except ValidationError:
            self._stats["rejected_validation"] += 1
            raise

        if not await self._consent.has_consented(child_id):
            self._stats["rejected_consent"] += 1
            await log_info(f"Пинг ребёнка {child_id} отклонён: нет согласия", type_msg=TypeMsg.WARNING)
            raise ConsentRequired()

        ping = LocationPing(
            id=uuid4(),
            child_id=child_id,
            lat=point.lat,
            lng=point.lng,
            accuracy=point.accuracy,
            speed=point.speed,
            heading=point.heading,
            ts=point.ts or datetime.now(timezone.utc),
        )
        await self._store.append_ping(ping)
        self._stats["accepted"] += 1

        await self._audit.record(
            child_id,
            UserRole.CHILD,
            AuditAction.LOCATION_UPDATE,
            child_id=child_id,
            meta={"lat": ping.lat, "lng": ping.lng},
        )

        if self._hub is not None:
            try:
                await self._hub.publish_ping(ping)
            except Exception as e:
                await log_error(
                    f"Не удалось разослать пинг ребёнка {child_id}: {e}",
                    extra={"child_id": str(child_id), "ping_id": str(ping.id)},
                    exc_info=True,
                )

        return ping

    def get_stats(self) -> dict[str, int]:
        return dict(self._stats)
