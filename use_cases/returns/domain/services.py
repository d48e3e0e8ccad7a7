"""
Domain Services - Business Operations.

These services compute refunds, checkout totals and return history
without I/O dependencies. They work on the value objects in ``models``
and take the bonus-points tier table as an injected lookup.

Rounding: every division rounds to the nearest cent on its own, halves
up. No fractional remainder is carried between steps, so a multi-unit
line can drift by a cent or two.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from config import settings
from core.domain import DomainService, as_int, divide_rounded

from .models import (
    Order,
    OrderLineItem,
    ReturnLineSelection,
    ReturnRecord,
    ReturnStatus,
)
from .points import PointsTierLookup, affordable_points_discount, points_tier_discount


@dataclass
class LineRefund:
    """Refund owed for one accepted return line."""
    selection: ReturnLineSelection
    unit_refund_cents: int
    refund_cents: int
    matched: bool


@dataclass
class RefundBreakdown:
    """Result of a refund calculation."""
    lines: List[LineRefund]
    items_refund_cents: int
    shipping_refund_cents: int
    total_order_quantity: int
    total_returned_quantity: int
    is_full_return: bool
    refund_cents: int

    @property
    def raw_total_cents(self) -> int:
        return self.items_refund_cents + self.shipping_refund_cents

    @property
    def capped(self) -> bool:
        """True when the order total limited the refund."""
        return self.refund_cents < self.raw_total_cents


@dataclass
class CreditNoteLine:
    """One line of a reversal invoice."""
    name: str
    variations: Dict[str, str]
    quantity: int
    unit_price_cents: int
    line_total_cents: int
    discount_per_unit_cents: int
    bonus_points_discount_per_unit_cents: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "variations": self.variations,
            "quantity": self.quantity,
            "price_cents": self.unit_price_cents,
            "total_cents": self.line_total_cents,
            "discount_per_unit_cents": self.discount_per_unit_cents,
            "bonus_points_discount_per_unit_cents": self.bonus_points_discount_per_unit_cents,
        }


class RefundProrationEngine(DomainService):
    """
    Computes the refund owed for a return adjudication.

    Order-level discounts and the bonus-points discount are apportioned
    to each line by its share of the order subtotal, then spread over the
    line's ordered units. Shipping is refunded only once the cumulative
    returned quantity reaches the ordered quantity, and the refund never
    exceeds what the order was charged.

    This is pure business logic with no I/O.
    """

    def __init__(self, points_lookup: PointsTierLookup = points_tier_discount):
        self.points_lookup = points_lookup

    def per_unit_deductions(self, order: Order, original: OrderLineItem) -> Tuple[int, int]:
        """
        Discount and points discount apportioned to one unit of ``original``.

        Returns:
            (discount_per_unit_cents, points_discount_per_unit_cents)
        """
        subtotal = order.subtotal_cents
        if subtotal <= 0 or original.quantity <= 0:
            return 0, 0

        # share = line_total / subtotal, clamped to [0, 1]
        line_total = min(max(original.line_total_cents, 0), subtotal)
        points_discount = self.points_lookup(order.bonus_points_redeemed)

        prorated_discount = divide_rounded(order.discount_cents * line_total, subtotal)
        prorated_points = divide_rounded(points_discount * line_total, subtotal)

        return (
            divide_rounded(prorated_discount, original.quantity),
            divide_rounded(prorated_points, original.quantity),
        )

    def compute_effective_unit_refund(self, order: Order, line: ReturnLineSelection) -> int:
        """
        Refund for one unit of ``line`` after its share of order discounts.

        The unit price is the one charged on the original order line, the
        same basis the credit note uses. Falls back to the return line's own
        unit price when the original line cannot be found or the order
        subtotal is zero.
        """
        original = order.find_line(line.match_key)
        if original is None or order.subtotal_cents <= 0:
            return line.unit_price_cents

        discount_per_unit, points_per_unit = self.per_unit_deductions(order, original)
        return max(0, original.unit_price_cents - (discount_per_unit + points_per_unit))

    def execute(
        self,
        order: Order,
        selections: Sequence[ReturnLineSelection],
        prior_returned_quantity_total: int = 0,
    ) -> RefundBreakdown:
        """
        Calculate the refund for the current return request.

        Args:
            order: The original order
            selections: Lines adjudicated in the current return request
            prior_returned_quantity_total: Accepted quantity of earlier
                completed returns against the same order

        Returns:
            RefundBreakdown with per-line and total amounts
        """
        lines = []
        items_refund = 0
        selected_quantity = 0

        for selection in selections:
            if not selection.accepted:
                continue
            unit_refund = self.compute_effective_unit_refund(order, selection)
            line_refund = divide_rounded(
                unit_refund * selection.quantity * selection.refund_percentage, 100
            )
            lines.append(LineRefund(
                selection=selection,
                unit_refund_cents=unit_refund,
                refund_cents=line_refund,
                matched=order.find_line(selection.match_key) is not None,
            ))
            items_refund += line_refund
            selected_quantity += selection.quantity

        total_order_quantity = order.total_quantity
        total_returned = max(0, prior_returned_quantity_total) + selected_quantity
        is_full_return = total_returned >= total_order_quantity
        shipping_refund = order.shipping_cost_cents if is_full_return else 0

        return RefundBreakdown(
            lines=lines,
            items_refund_cents=items_refund,
            shipping_refund_cents=shipping_refund,
            total_order_quantity=total_order_quantity,
            total_returned_quantity=total_returned,
            is_full_return=is_full_return,
            refund_cents=min(items_refund + shipping_refund, order.total_cents),
        )

    def compute_return_refund_total(
        self,
        order: Order,
        selections: Sequence[ReturnLineSelection],
        prior_returned_quantity_total: int = 0,
    ) -> int:
        """Total refund in cents for the current return request."""
        return self.execute(order, selections, prior_returned_quantity_total).refund_cents

    def build_credit_note_lines(
        self, order: Order, selections: Iterable[ReturnLineSelection]
    ) -> List[CreditNoteLine]:
        """Reversal-invoice lines for the accepted selections."""
        credit_lines = []
        for selection in selections:
            if not selection.accepted:
                continue
            original = order.find_line(selection.match_key)
            if original is None or order.subtotal_cents <= 0:
                discount_per_unit, points_per_unit = 0, 0
                unit_price = selection.unit_price_cents
            else:
                discount_per_unit, points_per_unit = self.per_unit_deductions(order, original)
                unit_price = original.unit_price_cents
            credit_lines.append(CreditNoteLine(
                name=selection.name,
                variations=dict(selection.variations),
                quantity=selection.quantity,
                unit_price_cents=unit_price,
                line_total_cents=unit_price * selection.quantity,
                discount_per_unit_cents=discount_per_unit,
                bonus_points_discount_per_unit_cents=points_per_unit,
            ))
        return credit_lines


_default_engine = RefundProrationEngine()


def compute_effective_unit_refund(order: Order, line: ReturnLineSelection) -> int:
    """Module-level shortcut using the standard points tier table."""
    return _default_engine.compute_effective_unit_refund(order, line)


def compute_return_refund_total(
    order: Order,
    selections: Sequence[ReturnLineSelection],
    prior_returned_quantity_total: int = 0,
) -> int:
    """Module-level shortcut using the standard points tier table."""
    return _default_engine.compute_return_refund_total(order, selections, prior_returned_quantity_total)


def redeemed_points_credit(order: Order, selections: Iterable[ReturnLineSelection]) -> int:
    """
    Redeemed bonus points to give back for the accepted lines.

    Proportional to the returned share of the order subtotal, rounded to
    the nearest point.
    """
    if order.bonus_points_redeemed <= 0 or order.subtotal_cents <= 0:
        return 0
    returned_value = 0
    for selection in selections:
        if not selection.accepted:
            continue
        original = order.find_line(selection.match_key)
        if original is not None:
            returned_value += original.unit_price_cents * selection.quantity
    return divide_rounded(order.bonus_points_redeemed * returned_value, order.subtotal_cents)


# =============================================================================
# RETURN HISTORY
# =============================================================================

@dataclass
class LineAvailability:
    """How much of an order line can still be returned."""
    product_id: str
    name: str
    variations: Dict[str, str]
    original_quantity: int
    already_returned: int
    already_requested: int

    @property
    def available(self) -> int:
        return max(0, self.original_quantity - self.already_returned - self.already_requested)

    @property
    def is_available(self) -> bool:
        return self.available > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "variations": self.variations,
            "original_quantity": self.original_quantity,
            "already_returned": self.already_returned,
            "already_requested": self.already_requested,
            "available": self.available,
            "is_available": self.is_available,
        }


class ReturnHistory:
    """
    Aggregates the return requests already filed against one order.

    Completed returns count their accepted lines as returned. Returns
    still ``received`` or ``processing`` count every line as requested.
    Rejected returns are ignored.
    """

    def __init__(self, returns: Iterable[ReturnRecord]):
        self.returns = list(returns)

    def prior_returned_quantity(
        self,
        exclude_return_id: Optional[str] = None,
        recorded: Optional[Dict[str, int]] = None,
    ) -> int:
        """
        Accepted quantity across completed returns, optionally skipping one.

        ``recorded`` holds per-return quantities written on the order
        document. Those entries count even when the return itself is not
        yet marked completed, and replace the store's count for that return.
        """
        recorded = recorded or {}
        total = sum(
            quantity for return_id, quantity in recorded.items()
            if return_id != exclude_return_id
        )
        return total + sum(
            record.accepted_quantity
            for record in self.returns
            if record.status == ReturnStatus.COMPLETED
            and record.id != exclude_return_id
            and record.id not in recorded
        )

    def availability(self, order: Order) -> List[LineAvailability]:
        returned: Dict[Any, int] = {}
        requested: Dict[Any, int] = {}
        for record in self.returns:
            for line in record.lines:
                if record.status == ReturnStatus.COMPLETED and line.accepted:
                    returned[line.match_key] = returned.get(line.match_key, 0) + line.quantity
                elif record.status in (ReturnStatus.RECEIVED, ReturnStatus.PROCESSING):
                    requested[line.match_key] = requested.get(line.match_key, 0) + line.quantity

        return [
            LineAvailability(
                product_id=item.product_id,
                name=item.name,
                variations=dict(item.variations),
                original_quantity=item.quantity,
                already_returned=returned.get(item.match_key, 0),
                already_requested=requested.get(item.match_key, 0),
            )
            for item in order.line_items
        ]


# =============================================================================
# CHECKOUT PRICING
# =============================================================================

@dataclass
class CheckoutTotals:
    """Totals of a new order, all in cents except points."""
    subtotal_cents: int
    shipping_cents: int
    discount_cents: int
    points_discount_cents: int
    total_cents: int
    bonus_points_earned: int
    discount_code: Optional[str] = None


class CheckoutPricing(DomainService):
    """
    Prices a cart at checkout.

    Discount codes and the bonus-points tier discount each leave at least
    one cent payable. The points tier comes from the same table the
    refund engine prorates.
    """

    def __init__(self, points_per_euro: Optional[float] = None):
        self.points_per_euro = settings.bonus_points_per_euro if points_per_euro is None else points_per_euro

    def code_discount(self, subtotal_cents: int, discount_code: Optional[Dict[str, Any]]) -> int:
        """Discount in cents for a ``{"type": "percent"|"flat", "value": ...}`` code."""
        if not discount_code:
            return 0
        value = discount_code.get("value") or 0
        try:
            value = float(value)
        except (TypeError, ValueError):
            return 0
        if discount_code.get("type") == "percent":
            cents = math.floor(subtotal_cents * value / 100)
        else:
            cents = math.floor(value)
        return max(0, min(cents, max(0, subtotal_cents - 1)))

    def execute(
        self,
        subtotal_cents: int,
        shipping_cents: int = 0,
        discount_code: Optional[Dict[str, Any]] = None,
        points_to_redeem: int = 0,
    ) -> CheckoutTotals:
        """
        Calculate checkout totals.

        Args:
            subtotal_cents: Sum of line totals
            shipping_cents: Shipping charged
            discount_code: Applied code, or None
            points_to_redeem: Bonus points the customer chose to redeem

        Returns:
            CheckoutTotals
        """
        subtotal_cents = max(0, as_int(subtotal_cents))
        shipping_cents = max(0, as_int(shipping_cents))
        discount = self.code_discount(subtotal_cents, discount_code)

        payable = subtotal_cents + shipping_cents - discount
        points_discount = affordable_points_discount(as_int(points_to_redeem), payable) if points_to_redeem else 0

        return CheckoutTotals(
            subtotal_cents=subtotal_cents,
            shipping_cents=shipping_cents,
            discount_cents=discount,
            points_discount_cents=points_discount,
            total_cents=max(0, payable - points_discount),
            bonus_points_earned=math.floor(subtotal_cents / 100 * self.points_per_euro),
            discount_code=(discount_code or {}).get("code") if discount else None,
        )
