# safehome/core/users/__init__.py
"""
Домен пользователей.
Роли ребёнка, родителя и администратора.
"""

from safehome.core.users.models import AdminUser, ChildUser, ParentUser, User, UserCreateDTO
from safehome.core.users.repository import UserRepository

__all__ = [
    "User",
    "ChildUser",
    "ParentUser",
    "AdminUser",
    "UserCreateDTO",
    "UserRepository",
]
