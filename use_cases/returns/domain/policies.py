"""
Return Policies - Pure Business Rules.

These policies encapsulate the business rules for returns.
They have NO dependencies on databases or external services.
All data needed for evaluation is passed in as parameters.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from config import settings
from core.domain import (
    PolicyEngine,
    PolicyDecision,
    PolicyResult,
    Validator,
    ValidationError,
    parse_date,
)

from .models import ALLOWED_REFUND_PERCENTAGES, parse_refund_percentage


# Order statuses from which a new return request may be filed
RETURNABLE_ORDER_STATUSES = [
    "delivered",
    "partially_returned",
    "return_requested",
]


# =============================================================================
# POLICIES
# =============================================================================

class ReturnWindowPolicy(PolicyEngine):
    """
    Policy for checking that a return is requested within the window.

    Context required:
        - delivered_at: ISO format date string or datetime
        - return_window_days: Optional, defaults to RETURN_WINDOW_DAYS
        - now: Optional reference time, defaults to the current time
    """

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        delivered_at = context.get("delivered_at")
        if isinstance(delivered_at, str):
            delivered_at = parse_date(delivered_at)

        if delivered_at is None:
            return PolicyDecision(
                result=PolicyResult.DENIED,
                reason="Delivery date is unknown",
                metadata={"delivered_at": None},
            )
        if delivered_at.tzinfo is None:
            delivered_at = delivered_at.replace(tzinfo=timezone.utc)

        window = context.get("return_window_days", settings.return_window_days)
        now = context.get("now") or datetime.now(timezone.utc)
        days_since_delivery = (now - delivered_at).days

        if days_since_delivery > window:
            return PolicyDecision(
                result=PolicyResult.DENIED,
                reason=f"Returns are only accepted within {window} days of delivery",
                metadata={
                    "days_since_delivery": days_since_delivery,
                    "return_window_days": window,
                },
            )

        return PolicyDecision(
            result=PolicyResult.APPROVED,
            reason=f"{window - days_since_delivery} days remaining in return window",
            metadata={
                "days_remaining": window - days_since_delivery,
                "return_window_days": window,
            },
        )


class ReturnEligibilityPolicy(PolicyEngine):
    """
    Composite policy deciding whether an order accepts a new return request.

    Context required:
        - order_status: Order status string
        - delivered_at: ISO format date string
        - return_window_days: Optional
        - now: Optional
    """

    def __init__(self):
        self.window_policy = ReturnWindowPolicy()

    def evaluate(self, context: Dict[str, Any]) -> PolicyDecision:
        order_status = (context.get("order_status") or "").lower()
        if order_status not in RETURNABLE_ORDER_STATUSES:
            return PolicyDecision(
                result=PolicyResult.DENIED,
                reason=f"Order status '{order_status}' is not eligible for returns. Order must be delivered or partially returned.",
                metadata={"order_status": order_status},
            )

        window_decision = self.window_policy.evaluate(context)
        if window_decision.is_denied:
            return window_decision

        return PolicyDecision(
            result=PolicyResult.APPROVED,
            reason="Order is eligible for return",
            metadata={**window_decision.metadata, "order_status": order_status},
        )


# =============================================================================
# VALIDATORS
# =============================================================================

class AdjudicationValidator(Validator):
    """
    Validates an operator's adjudication of a return request.

    Expected shape:
        {"items": [{"product_id": str, "accepted": bool,
                    "refund_percentage": int, "not_returned": bool}, ...]}
    """

    def validate(self, data: Dict[str, Any]) -> List[ValidationError]:
        errors = []

        items = data.get("items") or []
        if not items:
            errors.append(ValidationError(
                field="items",
                message="At least one item is required",
                code="min_length",
            ))
            return errors

        for i, item in enumerate(items):
            if not item.get("product_id"):
                errors.append(ValidationError(
                    field=f"items[{i}].product_id",
                    message="Product ID is required",
                    code="required",
                ))

            for flag in ("accepted", "not_returned"):
                if flag in item and not isinstance(item[flag], bool):
                    errors.append(ValidationError(
                        field=f"items[{i}].{flag}",
                        message=f"{flag} must be true or false",
                        code="invalid_type",
                    ))

            percentage = parse_refund_percentage(item.get("refund_percentage"))
            if isinstance(percentage, bool) or percentage not in ALLOWED_REFUND_PERCENTAGES:
                errors.append(ValidationError(
                    field=f"items[{i}].refund_percentage",
                    message=f"Invalid refund percentage. Must be one of: {', '.join(str(p) for p in ALLOWED_REFUND_PERCENTAGES)}",
                    code="invalid_choice",
                ))

        if not errors and not any(
            item.get("accepted") and not item.get("not_returned") for item in items
        ):
            errors.append(ValidationError(
                field="items",
                message="At least one item must be accepted",
                code="none_accepted",
            ))

        return errors
