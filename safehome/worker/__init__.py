# safehome/worker/__init__.py
"""
Фоновые воркеры.
"""

from safehome.worker.base import BaseWorker
from safehome.worker.retention import RetentionWorker

__all__ = ["BaseWorker", "RetentionWorker"]
