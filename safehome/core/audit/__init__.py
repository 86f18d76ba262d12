# safehome/core/audit/__init__.py
"""
Журнал аудита.
"""

from safehome.core.audit.models import AuditLogEntry, AuditPage
from safehome.core.audit.repository import AuditRepository
from safehome.core.audit.service import AuditTrail

__all__ = ["AuditLogEntry", "AuditPage", "AuditRepository", "AuditTrail"]
