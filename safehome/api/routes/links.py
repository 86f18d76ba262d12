# safehome/api/routes/links.py
"""
Связи родитель-ребёнок.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, status

from safehome.api.container import ServiceContainer
from safehome.api.dependencies import get_container, require_child, require_parent
from safehome.api.schemas import LinkActionRequest, LinkRequest
from safehome.core.users.models import ChildUser, ParentUser

router = APIRouter(prefix="/links", tags=["Links"])


@router.post("/request", status_code=status.HTTP_201_CREATED)
async def request_link(
    body: LinkRequest,
    parent: ParentUser = Depends(require_parent),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    link = await container.links.request(parent, body.child_email)
    return link.public_dict()


@router.get("/pending")
async def pending_links(
    child: ChildUser = Depends(require_child),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    links = await container.links.list_pending_for_child(child.id)
    return {"links": [link.public_dict() for link in links]}


@router.post("/accept")
async def accept_link(
    body: LinkActionRequest,
    child: ChildUser = Depends(require_child),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    link = await container.links.accept(child, body.link_id)
    return link.public_dict()


@router.post("/decline")
async def decline_link(
    body: LinkActionRequest,
    child: ChildUser = Depends(require_child),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    link = await container.links.decline(child, body.link_id)
    return link.public_dict()


@router.get("")
async def parent_links(
    parent: ParentUser = Depends(require_parent),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    links = await container.links.list_for_parent(parent.id)
    return {"links": [link.public_dict() for link in links]}


@router.get("/child")
async def child_links(
    child: ChildUser = Depends(require_child),
    container: ServiceContainer = Depends(get_container),
) -> dict[str, Any]:
    links = await container.links.list_accepted_for_child(child.id)
    return {"links": [link.public_dict() for link in links]}
