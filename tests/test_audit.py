"""Tests for the audit logger."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from household_tracker.audit import AuditLogger
from household_tracker.models.audit import AuditEventBuilder, AuditEventType, AuditSeverity
from household_tracker.models.records import RateTable, ServiceItem
from household_tracker.services.storage import InMemoryStore


class TestAuditLogger:

    @pytest.mark.asyncio
    async def test_local_only_logging_succeeds(self):
        logger = AuditLogger()
        assert await logger.log(AuditEventBuilder.item_history_cleared("milk")) is True

    @pytest.mark.asyncio
    async def test_events_are_persisted(self):
        store = InMemoryStore()
        logger = AuditLogger(store)

        await logger.log_rates_updated(RateTable(milk=Decimal("240")))
        await logger.log_settlement_rejected(ServiceItem.WATER, Decimal("100"), "Rate is zero")

        events = await store.get_recent_events()
        assert [e.event_type for e in events] == [
            AuditEventType.SETTLEMENT_REJECTED,
            AuditEventType.RATES_UPDATED,
        ]
        assert events[1].details["rates"]["milk"] == "240"
        assert events[0].severity == AuditSeverity.WARNING

    @pytest.mark.asyncio
    async def test_storage_failure_is_swallowed(self):
        storage = MagicMock()
        storage.append_event = AsyncMock(side_effect=RuntimeError("sheet gone"))
        logger = AuditLogger(storage)

        result = await logger.log(AuditEventBuilder.item_history_cleared("milk"))

        assert result is False

    @pytest.mark.asyncio
    async def test_failure_events_are_errors(self):
        store = InMemoryStore()
        await AuditLogger(store).log_failure(
            AuditEventType.SAVE_FAILED,
            description="Failed to add the delivery record.",
            error_message="timeout",
        )
        event = (await store.get_recent_events())[0]
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "timeout"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
