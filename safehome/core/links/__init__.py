# safehome/core/links/__init__.py
"""
Домен связей родитель-ребёнок.
"""

from safehome.core.links.models import ParentChildLink
from safehome.core.links.repository import LinkRepository
from safehome.core.links.service import LinkRegistry
from safehome.core.links.state_machine import LinkStateMachine

__all__ = [
    "ParentChildLink",
    "LinkRepository",
    "LinkRegistry",
    "LinkStateMachine",
]
