"""Tests for the reorder reminder agent. The Gemini model is mocked."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import ValidationError

from household_tracker.agents import (
    ReminderGenerationError,
    ReminderRequest,
    ReorderReminderAgent,
)
from household_tracker.models.records import ServiceItem


def model_replying(text=None, error=None):
    model = MagicMock()
    if error is not None:
        model.generate_content_async = AsyncMock(side_effect=error)
    else:
        model.generate_content_async = AsyncMock(return_value=MagicMock(text=text))
    return model


@pytest.fixture
def request_():
    return ReminderRequest(
        delivery_schedule="Milk every day, water on Monday and Friday",
        consumption_patterns="About 1KG of milk daily",
        days_without_delivery_milk=2,
        days_without_delivery_water=5,
    )


class TestReminderRequest:

    def test_short_text_rejected(self):
        with pytest.raises(ValidationError):
            ReminderRequest(delivery_schedule="daily", consumption_patterns="About 1KG of milk daily")

    def test_from_days_treats_no_data_as_zero(self):
        request = ReminderRequest.from_days(
            "Milk every day, water weekly",
            "About 1KG of milk daily",
            {ServiceItem.MILK: None, ServiceItem.WATER: 4},
        )
        assert request.days_without_delivery_milk == 0
        assert request.days_without_delivery_water == 4


class TestReorderReminderAgent:

    @pytest.mark.asyncio
    async def test_parses_json_reply(self, request_):
        model = model_replying(
            '```json\n{"milkReorderReminder": "Milk is 2 days late.", '
            '"waterReorderReminder": "Order water today."}\n```'
        )
        agent = ReorderReminderAgent(model=model)

        reminders = await agent.generate(request_)

        assert reminders.milk_reorder_reminder == "Milk is 2 days late."
        assert reminders.water_reorder_reminder == "Order water today."
        prompt = model.generate_content_async.call_args.args[0]
        assert "Days Without Milk Delivery: 2" in prompt
        assert "Days Without Water Delivery: 5" in prompt

    @pytest.mark.asyncio
    async def test_reply_without_json_fails(self, request_):
        agent = ReorderReminderAgent(model=model_replying("Sorry, I can't help."))
        with pytest.raises(ReminderGenerationError, match="Failed to generate AI reminders"):
            await agent.generate(request_)

    @pytest.mark.asyncio
    async def test_reply_missing_field_fails(self, request_):
        agent = ReorderReminderAgent(model=model_replying('{"milkReorderReminder": "x"}'))
        with pytest.raises(ReminderGenerationError):
            await agent.generate(request_)

    @pytest.mark.asyncio
    async def test_api_error_fails(self, request_):
        agent = ReorderReminderAgent(model=model_replying(error=RuntimeError("429")))
        with pytest.raises(ReminderGenerationError):
            await agent.generate(request_)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
