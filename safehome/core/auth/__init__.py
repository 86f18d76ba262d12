# safehome/core/auth/__init__.py
"""
Аутентификация: пароли, JWT и проверка учётных данных.
"""

from safehome.core.auth.service import CredentialVerifier

__all__ = ["CredentialVerifier"]
