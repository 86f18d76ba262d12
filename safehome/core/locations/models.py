# safehome/core/locations/models.py
"""
Модели геолокации: входная точка, сохранённый пинг и последняя позиция.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LocationPoint(BaseModel):
    """
    Входная точка от устройства ребёнка.

    Координаты принимаются только числами: строки и bool отклоняются,
    NaN и бесконечность тоже. Без ts используется время сервера.
    """

    lat: float = Field(..., ge=-90, le=90, description="Широта")
    lng: float = Field(..., ge=-180, le=180, description="Долгота")
    accuracy: Optional[float] = Field(None, description="Точность, м")
    speed: Optional[float] = Field(None, description="Скорость, м/с")
    heading: Optional[float] = Field(None, description="Курс, градусы")
    ts: Optional[datetime] = Field(None, description="Время наблюдения")

    @field_validator("lat", "lng", "accuracy", "speed", "heading", mode="before")
    @classmethod
    def numbers_only(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("must be a number")
        if not math.isfinite(v):
            raise ValueError("must be a finite number")
        return v

    @field_validator("ts")
    @classmethod
    def normalize_ts(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else v


class LocationPing(BaseModel):
    """Сохранённое неизменяемое наблюдение."""

    id: UUID
    child_id: UUID
    lat: float
    lng: float
    accuracy: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None
    ts: datetime

    class Config:
        from_attributes = True

    @classmethod
    def from_row(cls, row: Any) -> "LocationPing":
        return cls(
            id=row["id"],
            child_id=row["child_id"],
            lat=row["lat"],
            lng=row["lng"],
            accuracy=row["accuracy"],
            speed=row["speed"],
            heading=row["heading"],
            ts=row["ts"],
        )

    def public_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "userId": str(self.child_id),
            "lat": self.lat,
            "lng": self.lng,
            "accuracy": self.accuracy,
            "speed": self.speed,
            "heading": self.heading,
            "ts": self.ts.isoformat(),
        }


class LatestLocation(BaseModel):
    """Кэш последней позиции ребёнка (одна строка на ребёнка)."""

    child_id: UUID
    lat: float
    lng: float
    accuracy: Optional[float] = None
    speed: Optional[float] = None
    heading: Optional[float] = None
    ts: datetime

    @classmethod
    def from_row(cls, row: Any) -> "LatestLocation":
        return cls(
            child_id=row["child_id"],
            lat=row["lat"],
            lng=row["lng"],
            accuracy=row["accuracy"],
            speed=row["speed"],
            heading=row["heading"],
            ts=row["ts"],
        )

    def public_dict(self) -> dict[str, Any]:
        return {
            "lat": self.lat,
            "lng": self.lng,
            "accuracy": self.accuracy,
            "ts": self.ts.isoformat(),
        }


class RetentionResult(BaseModel):
    """Итог прохода очистки."""

    deleted_count: int
    retention_days: int
    cutoff: datetime

    def public_dict(self) -> dict[str, Any]:
        return {
            "deletedCount": self.deleted_count,
            "retentionDays": self.retention_days,
            "cutoff": self.cutoff.isoformat(),
        }
