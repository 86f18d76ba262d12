# tests/core/test_ingestion_service.py
"""
Тесты сервиса приёма геолокации.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from safehome.common.constants import AuditAction
from safehome.common.exceptions import ConsentRequired, ValidationError
from safehome.core.audit.service import AuditTrail
from safehome.core.consent.service import ConsentGate
from safehome.core.ingestion.service import IngestionService
from safehome.core.locations.service import LocationStore


@pytest.fixture
def ingestion(user_repo, location_repo, audit_repo, mock_hub) -> IngestionService:
    audit = AuditTrail(audit_repo)
    return IngestionService(
        ConsentGate(user_repo, audit),
        LocationStore(location_repo),
        audit,
        mock_hub,
    )


class TestSubmitPing:
    """Тесты приёма пинга."""

    @pytest.mark.asyncio
    async def test_accepted_ping_is_stored_audited_and_published(
        self, ingestion, child, location_repo, audit_repo, mock_hub, sample_ping_data
    ) -> None:
        # Act
        ping = await ingestion.submit_ping(child.id, sample_ping_data)

        # Assert
        assert location_repo.pings == [ping]
        assert location_repo.latest_rows[child.id].ts == ping.ts
        assert audit_repo.actions() == [AuditAction.LOCATION_UPDATE]
        assert audit_repo.entries[0].meta == {"lat": ping.lat, "lng": ping.lng}
        mock_hub.publish_ping.assert_awaited_once_with(ping)
        assert ingestion.get_stats()["accepted"] == 1

    @pytest.mark.asyncio
    async def test_no_consent_no_write(
        self, ingestion, child_without_consent, location_repo, audit_repo, mock_hub, sample_ping_data
    ) -> None:
        with pytest.raises(ConsentRequired):
            await ingestion.submit_ping(child_without_consent.id, sample_ping_data)

        assert location_repo.pings == []
        assert location_repo.latest_rows == {}
        assert audit_repo.entries == []
        mock_hub.publish_ping.assert_not_awaited()
        assert ingestion.get_stats()["rejected_consent"] == 1

    @pytest.mark.asyncio
    async def test_invalid_point_checked_before_consent(
        self, ingestion, child_without_consent, location_repo
    ) -> None:
        """Валидация выполняется раньше проверки согласия."""
        with pytest.raises(ValidationError) as exc_info:
            await ingestion.submit_ping(child_without_consent.id, {"lat": 200, "lng": 0})

        assert exc_info.value.details[0]["field"] == "lat"
        assert location_repo.pings == []
        assert ingestion.get_stats()["rejected_validation"] == 1

    @pytest.mark.asyncio
    async def test_non_object_payload(self, ingestion, child) -> None:
        with pytest.raises(ValidationError):
            await ingestion.submit_ping(child.id, ["lat", "lng"])

    @pytest.mark.asyncio
    async def test_missing_ts_uses_server_time(self, ingestion, child) -> None:
        ping = await ingestion.submit_ping(child.id, {"lat": 1.5, "lng": 2.5})
        assert ping.ts.tzinfo is not None

    @pytest.mark.asyncio
    async def test_consent_revoked_between_pings(self, ingestion, child, user_repo, location_repo) -> None:
        await ingestion.submit_ping(child.id, {"lat": 1, "lng": 2})
        user_repo.rows[child.id]["consent_given"] = False

        with pytest.raises(ConsentRequired):
            await ingestion.submit_ping(child.id, {"lat": 3, "lng": 4})

        assert len(location_repo.pings) == 1

    @pytest.mark.asyncio
    async def test_publish_failure_does_not_fail_ingestion(self, ingestion, child, mock_hub, location_repo) -> None:
        mock_hub.publish_ping.side_effect = RuntimeError("socket gone")

        with patch("safehome.core.ingestion.service.log_error", new_callable=AsyncMock) as mock_log:
            ping = await ingestion.submit_ping(child.id, {"lat": 1, "lng": 2})

        assert location_repo.pings == [ping]
        mock_log.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_order_consent_store_audit_publish(self, child, sample_ping_data) -> None:
        """Шаги выполняются строго по порядку."""
        calls: list[str] = []

        consent = MagicMock()
        consent.has_consented = AsyncMock(side_effect=lambda _id: calls.append("consent") or True)
        store = MagicMock()
        store.append_ping = AsyncMock(side_effect=lambda _p: calls.append("store"))
        audit = MagicMock()
        audit.record = AsyncMock(side_effect=lambda *a, **kw: calls.append("audit") or True)
        hub = MagicMock()
        hub.publish_ping = AsyncMock(side_effect=lambda _p: calls.append("publish"))

        await IngestionService(consent, store, audit, hub).submit_ping(child.id, sample_ping_data)

        assert calls == ["consent", "store", "audit", "publish"]

    @pytest.mark.asyncio
    async def test_store_failure_skips_audit_and_publish(self, child, sample_ping_data) -> None:
        consent = MagicMock()
        consent.has_consented = AsyncMock(return_value=True)
        store = MagicMock()
        store.append_ping = AsyncMock(side_effect=RuntimeError("db down"))
        audit = MagicMock()
        audit.record = AsyncMock()
        hub = MagicMock()
        hub.publish_ping = AsyncMock()

        with pytest.raises(RuntimeError):
            await IngestionService(consent, store, audit, hub).submit_ping(child.id, sample_ping_data)

        audit.record.assert_not_awaited()
        hub.publish_ping.assert_not_awaited()
