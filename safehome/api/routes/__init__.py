# safehome/api/routes/__init__.py
"""
HTTP-маршруты.
"""

from safehome.api.routes import admin, audit, auth, children, links, location, me, system

ROUTERS = [
    system.router,
    auth.router,
    me.router,
    links.router,
    children.router,
    location.router,
    audit.router,
    admin.router,
]

__all__ = ["ROUTERS"]
