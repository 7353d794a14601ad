"""
Two-Stage Entry Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Type checking and required fields (pydantic)
- Unknown service kinds are rejected here

STAGE 2 - SEMANTIC VALIDATION:
- Form rules: minimum quantity and amount
- Dates may not be in the future or before the earliest entry date
- Settlement rules: no payment against an item whose rate is zero

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and the caller decides not to write.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from household_tracker.config import get_settings
from household_tracker.models.records import (
    DeliveryDetails,
    PaymentDetails,
    RateTable,
    ServiceItem,
    ValidationIssue,
    ValidationResult,
)


class EntryValidator:
    """
    Validates delivery and payment entries before they reach the store.

    Stage 1: Schema validation (builds the pydantic model)
    Stage 2: Semantic validation (only runs if stage 1 passes)
    """

    def __init__(self):
        self._settings = get_settings().app

    def _schema_issues(self, error: ValidationError) -> list[ValidationIssue]:
        issues = []
        for detail in error.errors():
            field = ".".join(str(part) for part in detail["loc"]) or "entry"
            issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field}: {detail['msg']}",
                severity="error",
            ))
        return issues

    def _date_issues(self, day: date, today: date) -> list[ValidationIssue]:
        issues = []
        if day > today:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({day}) is in the future",
                severity="error",
            ))
        earliest = self._settings.earliest_entry_date
        if day < earliest:
            issues.append(ValidationIssue(
                field="date",
                issue_type="too_old",
                message=f"Date ({day}) is before {earliest}",
                severity="error",
            ))
        return issues

    def _result(self, schema_issues, semantic_issues) -> ValidationResult:
        return ValidationResult(
            schema_valid=not any(i.severity == "error" for i in schema_issues),
            semantic_valid=(
                not schema_issues
                and not any(i.severity == "error" for i in semantic_issues)
            ),
            issues=schema_issues + semantic_issues,
        )

    def validate_delivery(
        self,
        raw: Mapping[str, Any],
        today: Optional[date] = None,
    ) -> tuple[Optional[DeliveryDetails], ValidationResult]:
        """
        Validate a delivery form submission.

        Returns: (details or None, result)
        """
        try:
            details = DeliveryDetails.model_validate(dict(raw))
        except ValidationError as e:
            return None, self._result(self._schema_issues(e), [])

        issues = self._date_issues(details.date, today or date.today())
        if details.quantity < self._settings.min_entry_quantity:
            issues.append(ValidationIssue(
                field="quantity",
                issue_type="invalid_value",
                message="Quantity must be greater than 0.",
                severity="error",
            ))

        result = self._result([], issues)
        return (details if result.is_valid else None), result

    def validate_payment(
        self,
        raw: Mapping[str, Any],
        today: Optional[date] = None,
    ) -> tuple[Optional[PaymentDetails], ValidationResult]:
        """
        Validate a payment form submission.

        Returns: (details or None, result)
        """
        try:
            details = PaymentDetails.model_validate(dict(raw))
        except ValidationError as e:
            return None, self._result(self._schema_issues(e), [])

        issues = self._date_issues(details.date, today or date.today())
        if details.amount < self._settings.min_payment_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than 0.",
                severity="error",
            ))

        result = self._result([], issues)
        return (details if result.is_valid else None), result

    def validate_settlement(
        self,
        item: ServiceItem,
        amount: Decimal,
        rates: RateTable,
    ) -> ValidationResult:
        """
        A positive settlement against a zero-rate item is rejected.
        """
        issues = []
        if amount < 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Settlement amount cannot be negative.",
                severity="error",
            ))
        elif amount > 0 and rates.rate_for(item) == 0:
            issues.append(ValidationIssue(
                field="item",
                issue_type="zero_rate",
                message=f"Rate for {item.value} is zero. Cannot add payment.",
                severity="error",
            ))
        return ValidationResult(
            schema_valid=True,
            semantic_valid=not issues,
            issues=issues,
        )
