# safehome/core/privacy/__init__.py
"""
Права ребёнка на его данные: выгрузка и удаление аккаунта.
"""

from safehome.core.privacy.service import PrivacyService

__all__ = ["PrivacyService"]
