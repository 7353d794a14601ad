"""
Core Data Models for Household Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Reject unknown service kinds at the boundary
3. Normalize every date to a calendar date
4. Be serializable for storage and logging

DESIGN DECISION: Records are frozen. State changes produce new objects,
never in-place edits, so a failed write can't leave half-applied data behind.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ServiceItem(str, Enum):
    """
    The four billable service kinds.

    DESIGN DECISION: A closed enum keys every total, bill and payment sum.
    Anything else is rejected when a record is built, not ignored later.
    """
    MILK = "milk"
    WATER = "water"
    HOUSE_CLEANING = "house-cleaning"
    GARDENER = "gardener"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()

    @property
    def unit(self) -> str:
        return _ITEM_UNITS[self]


_ITEM_UNITS = {
    ServiceItem.MILK: "KG",
    ServiceItem.WATER: "Bottles",
    ServiceItem.HOUSE_CLEANING: "visits",
    ServiceItem.GARDENER: "visits",
}


class DeliveryStatus(str, Enum):
    """Whether a delivery was received or sent back."""
    DELIVERED = "delivered"
    RETURNED = "returned"


def _to_calendar_date(value: Any) -> Any:
    """Normalize datetimes and ISO timestamps to a plain date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value.strip()) > 10:
        # Either "T" or a space may separate the date from the time
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    return value


# =============================================================================
# DELIVERY EVENTS
# =============================================================================

class DeliveryDetails(BaseModel):
    """
    A delivery or visit as entered by the user, before the store assigns an id.

    Quantity is liters/kilograms for milk, bottles for water and a visit
    count for the two services. It is always entered as a non-negative
    number; a RETURNED status negates it when totals are computed.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    date: date
    item: ServiceItem
    quantity: Decimal = Field(
        ...,
        ge=0,
        description="Quantity as entered (never negative)"
    )
    status: DeliveryStatus = Field(
        default=DeliveryStatus.DELIVERED,
    )
    billed_quantity: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Quantity the supplier actually billed, if it differs"
    )

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v: Any) -> Any:
        return _to_calendar_date(v)

    @property
    def signed_quantity(self) -> Decimal:
        """Net contribution of this event to the item's total."""
        if self.status == DeliveryStatus.RETURNED:
            return -self.quantity
        return self.quantity

    def with_id(self, record_id: str) -> "DeliveryEvent":
        return DeliveryEvent(id=record_id, **self.model_dump())


class DeliveryEvent(DeliveryDetails):
    """A stored delivery event."""

    id: str = Field(
        ...,
        min_length=1,
        description="Identifier assigned by the store"
    )

    def details(self) -> DeliveryDetails:
        return DeliveryDetails(**self.model_dump(exclude={"id"}))


# =============================================================================
# PAYMENTS
# =============================================================================

class PaymentDetails(BaseModel):
    """
    Money handed over for one service kind, before the store assigns an id.

    Payments are not tied to specific deliveries. They reduce the
    outstanding balance of their item as a whole.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    date: date
    item: ServiceItem
    amount: Decimal = Field(
        ...,
        ge=0,
        description="Amount paid"
    )
    reason: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free text note, e.g. 'Advance payment for June'"
    )
    attachment: Optional[str] = Field(
        default=None,
        description="URL of a receipt image"
    )

    @field_validator("date", mode="before")
    @classmethod
    def normalize_date(cls, v: Any) -> Any:
        return _to_calendar_date(v)

    @field_validator("reason", "attachment", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        """The store writes absent text fields as empty strings."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def with_id(self, record_id: str) -> "PaymentRecord":
        return PaymentRecord(id=record_id, **self.model_dump())


class PaymentRecord(PaymentDetails):
    """A stored payment."""

    id: str = Field(..., min_length=1)

    def details(self) -> PaymentDetails:
        return PaymentDetails(**self.model_dump(exclude={"id"}))


# =============================================================================
# RATES
# =============================================================================

class RateTable(BaseModel):
    """
    Unit price per service kind.

    A single global row. Rate changes apply to the whole history,
    there is no effective dating.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    milk: Decimal = Field(default=Decimal("220"), ge=0, description="Per KG")
    water: Decimal = Field(default=Decimal("150"), ge=0, description="Per bottle")
    house_cleaning: Decimal = Field(
        default=Decimal("500"),
        ge=0,
        alias="house-cleaning",
        description="Per visit",
    )
    gardener: Decimal = Field(default=Decimal("1000"), ge=0, description="Per visit")

    def rate_for(self, item: ServiceItem) -> Decimal:
        return self.as_mapping()[item]

    def as_mapping(self) -> dict[ServiceItem, Decimal]:
        return {
            ServiceItem.MILK: self.milk,
            ServiceItem.WATER: self.water,
            ServiceItem.HOUSE_CLEANING: self.house_cleaning,
            ServiceItem.GARDENER: self.gardener,
        }

    @classmethod
    def from_mapping(cls, rates: dict) -> "RateTable":
        """Build from a mapping keyed by ServiceItem or its string value."""
        values = {ServiceItem(key).value: value for key, value in rates.items()}
        return cls(**values)


DEFAULT_RATES = RateTable()


# =============================================================================
# FILTERS
# =============================================================================

class DateRange(BaseModel):
    """
    Inclusive calendar date range used to filter the dashboard.

    Either end may be open.
    """
    model_config = ConfigDict(frozen=True)

    start: Optional[date] = None
    end: Optional[date] = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def normalize_date(cls, v: Any) -> Any:
        return _to_calendar_date(v)

    @model_validator(mode='after')
    def validate_order(self) -> 'DateRange':
        if self.start and self.end and self.end < self.start:
            raise ValueError("Date range end cannot be before start")
        return self

    def contains(self, day: date) -> bool:
        if self.start and day < self.start:
            return False
        if self.end and day > self.end:
            return False
        return True

    @classmethod
    def current_month(cls, today: Optional[date] = None) -> "DateRange":
        """First of the month through today."""
        today = today or date.today()
        return cls(start=today.replace(day=1), end=today)


# =============================================================================
# VALIDATION RESULTS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'invalid_value', 'future_date', 'zero_rate')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (types, required fields)
    Stage 2: Semantic validation (form rules, settlement rules)
    """

    schema_valid: bool
    semantic_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.schema_valid and self.semantic_valid

    @property
    def errors(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "error"]
