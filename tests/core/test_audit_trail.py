# tests/core/test_audit_trail.py
"""
Тесты журнала аудита.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from safehome.common.constants import AuditAction, UserRole
from safehome.common.exceptions import ValidationError
from safehome.core.audit.service import AuditTrail


class TestAuditRecord:
    """Тесты записи в журнал."""

    @pytest.mark.asyncio
    async def test_record(self, audit_repo) -> None:
        trail = AuditTrail(audit_repo)
        actor_id, child_id = uuid4(), uuid4()

        saved = await trail.record(actor_id, UserRole.PARENT, AuditAction.VIEW_CHILD_LOCATION, child_id, {"count": 2})

        assert saved is True
        entry = audit_repo.entries[0]
        assert entry.actor_role == "parent"
        assert entry.child_id == child_id
        assert entry.meta == {"count": 2}

    @pytest.mark.asyncio
    async def test_record_failure_is_logged_not_raised(self, audit_repo) -> None:
        """Ошибка записи аудита логируется и не прерывает действие."""
        audit_repo.insert = AsyncMock(side_effect=RuntimeError("db down"))
        trail = AuditTrail(audit_repo)

        with patch("safehome.core.audit.service.log_error", new_callable=AsyncMock) as mock_log:
            saved = await trail.record(uuid4(), UserRole.CHILD, AuditAction.LOCATION_UPDATE)

        assert saved is False
        mock_log.assert_awaited_once()
        assert mock_log.call_args.kwargs["extra"]["action"] == "LOCATION_UPDATE"


class TestAuditPage:
    """Тесты постраничного чтения."""

    @pytest.mark.asyncio
    async def test_page_newest_first(self, audit_repo) -> None:
        trail = AuditTrail(audit_repo)
        for action in (AuditAction.LINK_REQUESTED, AuditAction.LINK_ACCEPTED, AuditAction.LOCATION_UPDATE):
            await trail.record(uuid4(), UserRole.CHILD, action)

        page = await trail.page(1, 2)

        assert page.total == 3
        assert [e.action for e in page.logs] == [AuditAction.LOCATION_UPDATE, AuditAction.LINK_ACCEPTED]

        second = await trail.page(2, 2)
        assert [e.action for e in second.logs] == [AuditAction.LINK_REQUESTED]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page_number, page_size", [(0, 20), (1, 0), (1, 101)])
    async def test_page_validation(self, audit_repo, page_number: int, page_size: int) -> None:
        with pytest.raises(ValidationError):
            await AuditTrail(audit_repo).page(page_number, page_size)

    @pytest.mark.asyncio
    async def test_recent_for_children(self, audit_repo) -> None:
        trail = AuditTrail(audit_repo)
        mine, other = uuid4(), uuid4()
        await trail.record(mine, UserRole.CHILD, AuditAction.LOCATION_UPDATE, child_id=mine)
        await trail.record(other, UserRole.CHILD, AuditAction.LOCATION_UPDATE, child_id=other)

        entries = await trail.recent_for_children([mine])

        assert [e.child_id for e in entries] == [mine]
        assert await trail.recent_for_children([]) == []
