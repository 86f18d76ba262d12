# safehome/infra/__init__.py
"""
Инфраструктурный слой.
Работа с PostgreSQL.
"""

from safehome.infra.database import DatabaseManager, close_db, get_db, init_db

__all__ = [
    "DatabaseManager",
    "get_db",
    "init_db",
    "close_db",
]
