"""
Bonus Points Tier Table.

Redeeming bonus points unlocks a fixed euro discount. The discount is a
step function of the points redeemed, not a proportional rate. Checkout
and refund proration both read this single table.
"""

from typing import Callable, List, Tuple

# (minimum points, discount in cents), highest tier first
POINTS_TIERS: List[Tuple[int, int]] = [
    (5000, 5000),
    (4000, 3500),
    (3000, 2000),
    (2000, 1000),
    (1000, 500),
]

PointsTierLookup = Callable[[int], int]


def points_tier_discount(points: int) -> int:
    """Discount in cents unlocked by redeeming ``points`` bonus points."""
    for threshold, discount_cents in POINTS_TIERS:
        if points >= threshold:
            return discount_cents
    return 0


def affordable_points_discount(points: int, payable_cents: int) -> int:
    """
    Best tier discount that still leaves at least one cent to pay.

    Used at checkout, where a tier larger than the order is skipped in
    favour of the next lower one.
    """
    max_discount = payable_cents - 1
    for threshold, discount_cents in POINTS_TIERS:
        if points >= threshold and discount_cents <= max_discount:
            return discount_cents
    return 0
