# safehome/core/links/models.py
"""
Модели связи родитель-ребёнок.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from safehome.common.constants import LinkStatus


class UserSummary(BaseModel):
    """Краткие данные второй стороны связи."""

    id: UUID
    name: str
    email: str
    consent_given: Optional[bool] = None

    def public_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": str(self.id), "name": self.name, "email": self.email}
        if self.consent_given is not None:
            data["consentGiven"] = self.consent_given
        return data


class ParentChildLink(BaseModel):
    """Связь между одним родителем и одним ребёнком."""

    id: UUID
    parent_id: UUID
    child_id: UUID
    status: LinkStatus = Field(LinkStatus.PENDING)
    created_at: datetime
    updated_at: datetime

    # Заполняется при выборках списков
    parent: Optional[UserSummary] = None
    child: Optional[UserSummary] = None

    class Config:
        from_attributes = True

    @property
    def is_accepted(self) -> bool:
        return self.status == LinkStatus.ACCEPTED

    @classmethod
    def from_row(cls, row: Any) -> "ParentChildLink":
        keys = set(row.keys())
        parent = None
        child = None
        if "parent_name" in keys and row["parent_name"] is not None:
            parent = UserSummary(id=row["parent_id"], name=row["parent_name"], email=row["parent_email"])
        if "child_name" in keys and row["child_name"] is not None:
            child = UserSummary(
                id=row["child_id"],
                name=row["child_name"],
                email=row["child_email"],
                consent_given=row["child_consent"] if "child_consent" in keys else None,
            )
        return cls(
            id=row["id"],
            parent_id=row["parent_id"],
            child_id=row["child_id"],
            status=LinkStatus(row["status"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            parent=parent,
            child=child,
        )

    def public_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": str(self.id),
            "parentId": str(self.parent_id),
            "childId": str(self.child_id),
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if self.parent is not None:
            data["parent"] = self.parent.public_dict()
        if self.child is not None:
            data["child"] = self.child.public_dict()
        return data
