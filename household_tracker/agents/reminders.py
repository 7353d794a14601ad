"""
Reorder Reminder Agent

Asks Gemini to draft short reorder reminders for milk and water from
the household's delivery schedule, consumption habits and the days
since the last delivery.

CRITICAL BOUNDARIES:
- CAN: Write reminder text
- CANNOT: Read or change deliveries, payments or rates
- CANNOT: Invent numbers; the day counts come from the ledger

The LLM is a COPYWRITER, not a BOOKKEEPER. A failed generation is
reported to the user and leaves everything else as it was.
"""

import json
from typing import Mapping, Optional

import google.generativeai as genai
import structlog
from pydantic import BaseModel, Field, ValidationError

from household_tracker.config import get_settings
from household_tracker.models.records import ServiceItem


logger = structlog.get_logger(__name__)


GENERATION_FAILED_MESSAGE = "Failed to generate AI reminders. Please try again."


class ReminderGenerationError(Exception):
    """The model call failed or returned something unusable."""

    def __init__(self, message: str = GENERATION_FAILED_MESSAGE):
        super().__init__(message)


class ReminderRequest(BaseModel):
    """What the household tells the model about their routine."""

    delivery_schedule: str = Field(
        ...,
        min_length=10,
        description="Days of the week and frequency for each service"
    )
    consumption_patterns: str = Field(
        ...,
        min_length=10,
        description="Typical daily usage of milk and water"
    )
    days_without_delivery_milk: int = Field(default=0, ge=0)
    days_without_delivery_water: int = Field(default=0, ge=0)

    @classmethod
    def from_days(
        cls,
        delivery_schedule: str,
        consumption_patterns: str,
        days_without_delivery: Mapping[ServiceItem, Optional[int]],
    ) -> "ReminderRequest":
        """Build from the ledger's days map. No data yet counts as zero days."""
        return cls(
            delivery_schedule=delivery_schedule,
            consumption_patterns=consumption_patterns,
            days_without_delivery_milk=days_without_delivery.get(ServiceItem.MILK) or 0,
            days_without_delivery_water=days_without_delivery.get(ServiceItem.WATER) or 0,
        )


class ReorderReminders(BaseModel):
    """One reminder message per reorderable item."""

    milk_reorder_reminder: str = Field(..., alias="milkReorderReminder")
    water_reorder_reminder: str = Field(..., alias="waterReorderReminder")

    model_config = {"populate_by_name": True}


class ReorderReminderAgent:
    """
    AI agent for the reminder card.

    RESPONSIBILITIES:
    - Turn a ReminderRequest into a prompt
    - Parse the JSON reply into ReorderReminders

    BOUNDARIES:
    - NEVER touches storage
    - NEVER retries; the user presses the button again
    """

    def __init__(self, model: Optional[genai.GenerativeModel] = None):
        self._settings = get_settings().gemini
        self._model = model or self._configure_genai()

    def _configure_genai(self) -> genai.GenerativeModel:
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        return genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
            }
        )

    def _build_prompt(self, request: ReminderRequest) -> str:
        return f"""You are a helpful assistant that generates reorder reminders for milk and water based on delivery schedule and consumption patterns. You also consider schedules for house cleaning and gardener.

Delivery Schedule: {request.delivery_schedule}
Consumption Patterns: {request.consumption_patterns}
Days Without Milk Delivery: {request.days_without_delivery_milk}
Days Without Water Delivery: {request.days_without_delivery_water}

Generate a reminder message for milk and water separately, considering the provided information.
The reminder messages should be concise and actionable.

Respond with ONLY a JSON object in this exact format:
{{"milkReorderReminder": "reminder message for reordering milk", "waterReorderReminder": "reminder message for reordering water"}}"""

    def _parse_response(self, text: str) -> ReorderReminders:
        # Models sometimes wrap JSON in prose or code fences
        start = text.find("{")
        end = text.rfind("}") + 1
        if start < 0 or end <= start:
            raise ValueError("No JSON object in model response")
        return ReorderReminders.model_validate(json.loads(text[start:end]))

    async def generate(self, request: ReminderRequest) -> ReorderReminders:
        """
        Generate both reminders.

        Raises:
            ReminderGenerationError: On any model or parsing failure
        """
        try:
            response = await self._model.generate_content_async(
                self._build_prompt(request)
            )
            reminders = self._parse_response(response.text.strip())
        except (ValueError, ValidationError) as e:
            logger.warning("reminder_response_unusable", error=str(e))
            raise ReminderGenerationError() from e
        except Exception as e:
            logger.error("reminder_generation_failed", error=str(e))
            raise ReminderGenerationError() from e

        logger.info(
            "reminders_generated",
            milk_days=request.days_without_delivery_milk,
            water_days=request.days_without_delivery_water,
        )
        return reminders
