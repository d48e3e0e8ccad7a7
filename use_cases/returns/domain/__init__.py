"""
Returns Domain Layer.

Contains pure business logic for refunding returned items.
No database access or I/O - just business rules.
"""

from .models import (
    Order,
    OrderLineItem,
    ReturnLineSelection,
    ReturnedLine,
    ReturnRecord,
)
from .points import points_tier_discount
from .policies import (
    AdjudicationValidator,
    ReturnEligibilityPolicy,
    ReturnWindowPolicy,
)
from .services import (
    CheckoutPricing,
    RefundProrationEngine,
    ReturnHistory,
    compute_effective_unit_refund,
    compute_return_refund_total,
)

__all__ = [
    "Order",
    "OrderLineItem",
    "ReturnLineSelection",
    "ReturnedLine",
    "ReturnRecord",
    "points_tier_discount",
    "AdjudicationValidator",
    "ReturnEligibilityPolicy",
    "ReturnWindowPolicy",
    "CheckoutPricing",
    "RefundProrationEngine",
    "ReturnHistory",
    "compute_effective_unit_refund",
    "compute_return_refund_total",
]
