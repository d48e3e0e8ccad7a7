"""
Returns Domain Models.

Value objects for orders, return requests and adjudicated return lines.
They are built fresh from stored documents for every refund computation
and never mutated afterwards. All amounts are integer cents.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from core.domain import as_int


# Refund tiers an operator may assign to a returned item:
# fully refundable, damaged goods, not refundable.
ALLOWED_REFUND_PERCENTAGES = (100, 60, 0)

MatchKey = Tuple[str, Tuple[Tuple[str, str], ...]]


# =============================================================================
# ERRORS
# =============================================================================

class ReturnsError(Exception):
    """Base class for returns errors."""


class InvalidRefundPercentageError(ReturnsError, ValueError):
    """Raised when a refund percentage is not one of the sanctioned tiers."""

    def __init__(self, value: Any):
        self.value = value
        allowed = ", ".join(str(p) for p in ALLOWED_REFUND_PERCENTAGES)
        super().__init__(f"Refund percentage {value!r} is not allowed. Must be one of: {allowed}")


class ReturnSubmissionError(ReturnsError):
    """Raised when a return adjudication cannot be submitted."""


class ReturnNotFoundError(ReturnsError):
    pass


class OrderNotFoundError(ReturnsError):
    pass


class ConcurrentReturnUpdateError(ReturnsError):
    """Raised when the order changed between reading and completing a return."""


# =============================================================================
# STATUSES
# =============================================================================

class ReturnStatus(Enum):
    """Lifecycle of a return request."""
    RECEIVED = "received"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ReturnStatus":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.RECEIVED


class OrderStatus(Enum):
    """Order statuses touched by the returns flow."""
    DELIVERED = "delivered"
    RETURN_REQUESTED = "return_requested"
    PARTIALLY_RETURNED = "partially_returned"
    RETURN_COMPLETED = "return_completed"


# =============================================================================
# VALUE OBJECTS
# =============================================================================

def variations_key(variations: Optional[Dict[str, Any]]) -> Tuple[Tuple[str, str], ...]:
    """Order-independent identity of a variations map."""
    if not variations:
        return ()
    return tuple(sorted((str(k), str(v)) for k, v in variations.items()))


def parse_refund_percentage(value: Any) -> Any:
    """
    Read a refund percentage from a stored document or payload.

    Missing values default to a full refund. Unparseable values are passed
    through unchanged so the selection constructor rejects them.
    """
    if value is None:
        return 100
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return value


@dataclass(frozen=True)
class OrderLineItem:
    """A line of the original order."""
    name: str
    unit_price_cents: int
    quantity: int
    variations: Dict[str, str] = field(default_factory=dict)
    product_id: str = ""

    @property
    def match_key(self) -> MatchKey:
        return (self.name, variations_key(self.variations))

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    @classmethod
    def from_record(cls, doc: Dict[str, Any]) -> "OrderLineItem":
        return cls(
            name=str(doc.get("name", "")),
            unit_price_cents=as_int(doc.get("price_cents")),
            quantity=as_int(doc.get("quantity")),
            variations=dict(doc.get("variations") or {}),
            product_id=str(doc.get("product_id", "")),
        )


@dataclass(frozen=True)
class Order:
    """
    The original order as read from the store.

    ``total_cents`` is what the customer was charged and caps every refund.
    ``returned_quantities`` maps each completed return ID to the quantity it
    took back, as recorded on the order document when the return completed.
    """
    line_items: Tuple[OrderLineItem, ...]
    discount_cents: int = 0
    bonus_points_redeemed: int = 0
    shipping_cost_cents: int = 0
    total_cents: int = 0
    id: str = ""
    order_number: str = ""
    returned_quantities: Dict[str, int] = field(default_factory=dict)

    @property
    def subtotal_cents(self) -> int:
        return sum(item.line_total_cents for item in self.line_items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.line_items)

    def find_line(self, key: MatchKey) -> Optional[OrderLineItem]:
        """Find the original line with the given (name, variations) identity."""
        for item in self.line_items:
            if item.match_key == key:
                return item
        return None

    @classmethod
    def from_record(cls, doc: Dict[str, Any]) -> "Order":
        recorded = doc.get("returned_quantities")
        if not isinstance(recorded, dict):
            recorded = {}
        return cls(
            line_items=tuple(OrderLineItem.from_record(i) for i in doc.get("items") or []),
            discount_cents=max(0, as_int(doc.get("discount_cents"))),
            bonus_points_redeemed=max(0, as_int(doc.get("bonus_points_redeemed"))),
            shipping_cost_cents=max(0, as_int(doc.get("shipping_cost_cents"))),
            total_cents=max(0, as_int(doc.get("total_cents"))),
            id=str(doc.get("id", "")),
            order_number=str(doc.get("order_number", "")),
            returned_quantities={
                str(return_id): max(0, as_int(quantity)) for return_id, quantity in recorded.items()
            },
        )


@dataclass(frozen=True)
class ReturnLineSelection:
    """
    One item adjudicated in a return request.

    A line marked ``not_returned`` can never be accepted or refunded: the
    constructor forces ``accepted=False`` and ``refund_percentage=0``.
    Refund percentages outside the allowed tiers are rejected.
    """
    name: str
    quantity: int
    unit_price_cents: int = 0
    variations: Dict[str, str] = field(default_factory=dict)
    accepted: bool = False
    not_returned: bool = False
    refund_percentage: int = 100
    product_id: str = ""

    def __post_init__(self):
        if self.refund_percentage not in ALLOWED_REFUND_PERCENTAGES or isinstance(self.refund_percentage, bool):
            raise InvalidRefundPercentageError(self.refund_percentage)
        object.__setattr__(self, "refund_percentage", int(self.refund_percentage))
        if self.not_returned:
            object.__setattr__(self, "accepted", False)
            object.__setattr__(self, "refund_percentage", 0)
        if self.quantity < 0:
            object.__setattr__(self, "quantity", 0)

    @property
    def match_key(self) -> MatchKey:
        return (self.name, variations_key(self.variations))

    @classmethod
    def from_record(cls, doc: Dict[str, Any]) -> "ReturnLineSelection":
        """Build a selection from a stored return line."""
        return cls(
            name=str(doc.get("name", "")),
            quantity=as_int(doc.get("quantity")),
            unit_price_cents=as_int(doc.get("price_cents")),
            variations=dict(doc.get("variations") or {}),
            accepted=bool(doc.get("accepted", False)),
            not_returned=bool(doc.get("not_returned", False)),
            refund_percentage=parse_refund_percentage(doc.get("refund_percentage")),
            product_id=str(doc.get("product_id", "")),
        )


@dataclass(frozen=True)
class ReturnedLine:
    """
    A line of an earlier return request, read only for its quantities.

    Refund percentages on historical records are not validated here, so
    a bad tier stored on an old return never blocks later refunds.
    """
    name: str
    quantity: int
    variations: Dict[str, str] = field(default_factory=dict)
    accepted: bool = False

    @property
    def match_key(self) -> MatchKey:
        return (self.name, variations_key(self.variations))

    @classmethod
    def from_record(cls, doc: Dict[str, Any]) -> "ReturnedLine":
        return cls(
            name=str(doc.get("name", "")),
            quantity=max(0, as_int(doc.get("quantity"))),
            variations=dict(doc.get("variations") or {}),
            accepted=bool(doc.get("accepted", False)) and not doc.get("not_returned", False),
        )


@dataclass
class ReturnRecord:
    """A return request with its lines, as read from the store."""
    id: str
    order_id: str
    status: ReturnStatus
    lines: List[ReturnedLine]

    @property
    def accepted_quantity(self) -> int:
        return sum(line.quantity for line in self.lines if line.accepted)

    @classmethod
    def from_record(cls, doc: Dict[str, Any]) -> "ReturnRecord":
        return cls(
            id=str(doc.get("id", "")),
            order_id=str(doc.get("order_id", "")),
            status=ReturnStatus.parse(doc.get("status")),
            lines=[ReturnedLine.from_record(i) for i in doc.get("items") or []],
        )
