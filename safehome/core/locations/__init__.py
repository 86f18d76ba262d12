# safehome/core/locations/__init__.py
"""
Домен геолокации: пинги, последняя позиция, срок хранения.
"""

from safehome.core.locations.models import LatestLocation, LocationPing, LocationPoint, RetentionResult
from safehome.core.locations.repository import LocationRepository
from safehome.core.locations.retention import RetentionService
from safehome.core.locations.service import LocationStore

__all__ = [
    "LocationPoint",
    "LocationPing",
    "LatestLocation",
    "RetentionResult",
    "LocationRepository",
    "LocationStore",
    "RetentionService",
]
