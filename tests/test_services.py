from use_cases.returns.domain.models import Order, ReturnRecord
from use_cases.returns.domain.services import (
    CheckoutPricing,
    RefundProrationEngine,
    ReturnHistory,
    redeemed_points_credit,
)
from tests.factories import make_order, select


def _history():
    return ReturnHistory([
        ReturnRecord.from_record({
            "id": "RET-1", "order_id": "ORD-1", "status": "completed",
            "items": [
                {"name": "Shirt", "quantity": 1, "accepted": True},
                {"name": "Jacket", "quantity": 1, "accepted": False},
            ],
        }),
        ReturnRecord.from_record({
            "id": "RET-2", "order_id": "ORD-1", "status": "processing",
            "items": [{"name": "Shirt", "quantity": 1}],
        }),
        ReturnRecord.from_record({
            "id": "RET-3", "order_id": "ORD-1", "status": "rejected",
            "items": [{"name": "Jacket", "quantity": 1, "accepted": True}],
        }),
    ])


def test_prior_returned_quantity_counts_completed_accepted_lines():
    history = _history()
    assert history.prior_returned_quantity() == 1
    assert history.prior_returned_quantity(exclude_return_id="RET-1") == 0


def test_availability_per_line(two_line_order):
    shirt, jacket = _history().availability(two_line_order)

    assert shirt.already_returned == 1
    assert shirt.already_requested == 1
    assert shirt.available == 0
    assert not shirt.is_available

    assert jacket.already_returned == 0
    assert jacket.already_requested == 0
    assert jacket.available == 1
    assert jacket.to_dict()["is_available"] is True


def test_credit_note_lines(two_line_order):
    engine = RefundProrationEngine()
    lines = engine.build_credit_note_lines(
        two_line_order,
        [select("Shirt", 3000, 2), select("Jacket", 4000, 1, accepted=False)],
    )
    assert len(lines) == 1
    note = lines[0]
    assert note.unit_price_cents == 3000
    assert note.line_total_cents == 6000
    assert note.discount_per_unit_cents == 300
    assert note.bonus_points_discount_per_unit_cents == 0


def test_credit_note_lines_include_points_share():
    order = make_order([("Shirt", 3000, 2), ("Jacket", 4000, 1)], bonus_points_redeemed=2500, total_cents=9000)
    note = RefundProrationEngine().build_credit_note_lines(order, [select("Jacket", 4000, 1)])[0]
    assert note.discount_per_unit_cents == 0
    assert note.bonus_points_discount_per_unit_cents == 400
    assert note.to_dict()["price_cents"] == 4000


def test_redeemed_points_credit_proportional_to_returned_value():
    order = make_order([("Shirt", 3000, 2), ("Jacket", 4000, 1)], bonus_points_redeemed=2500, total_cents=9000)
    assert redeemed_points_credit(order, [select("Shirt", 3000, 2)]) == 1500
    assert redeemed_points_credit(order, [select("Jacket", 4000, 1)]) == 1000
    assert redeemed_points_credit(order, [select("Jacket", 4000, 1, accepted=False)]) == 0


def test_redeemed_points_credit_without_redemption(two_line_order):
    assert redeemed_points_credit(two_line_order, [select("Shirt", 3000, 2)]) == 0


def test_checkout_with_percent_code_and_points():
    totals = CheckoutPricing(points_per_euro=3.5).execute(
        subtotal_cents=10000,
        shipping_cents=495,
        discount_code={"code": "SAVE10", "type": "percent", "value": 10},
        points_to_redeem=2500,
    )
    assert totals.discount_cents == 1000
    assert totals.points_discount_cents == 1000
    assert totals.total_cents == 8495
    assert totals.bonus_points_earned == 350
    assert totals.discount_code == "SAVE10"


def test_checkout_flat_code_leaves_one_cent():
    totals = CheckoutPricing().execute(
        subtotal_cents=10000,
        discount_code={"code": "BIG", "type": "flat", "value": 20000},
    )
    assert totals.discount_cents == 9999
    assert totals.total_cents == 1


def test_checkout_points_fall_back_to_affordable_tier():
    totals = CheckoutPricing().execute(subtotal_cents=600, points_to_redeem=5000)
    assert totals.points_discount_cents == 500
    assert totals.total_cents == 100


def test_checkout_without_code_or_points():
    totals = CheckoutPricing(points_per_euro=3.5).execute(subtotal_cents=2999, shipping_cents=495)
    assert totals.discount_cents == 0
    assert totals.points_discount_cents == 0
    assert totals.total_cents == 3494
    assert totals.bonus_points_earned == 104
    assert totals.discount_code is None


def test_checkout_and_refund_share_points_table():
    order = Order.from_record({
        "items": [{"name": "Shirt", "price_cents": 5000, "quantity": 1}],
        "bonus_points_redeemed": 4200,
        "total_cents": 1500,
    })
    totals = CheckoutPricing().execute(subtotal_cents=5000, points_to_redeem=4200)
    unit_refund = RefundProrationEngine().compute_effective_unit_refund(order, select("Shirt", 5000, 1))
    assert totals.points_discount_cents == 3500
    assert unit_refund == 5000 - totals.points_discount_cents


def test_prior_quantity_merges_order_record_with_history():
    history = _history()
    # RET-1 is counted once, RET-9 only exists on the order document
    assert history.prior_returned_quantity(recorded={"RET-1": 1, "RET-9": 1}) == 2
    assert history.prior_returned_quantity(exclude_return_id="RET-9", recorded={"RET-1": 1, "RET-9": 1}) == 1


def test_refund_and_credit_note_share_original_price(two_line_order):
    engine = RefundProrationEngine()
    stale = select("Shirt", 2500, 1)
    note = engine.build_credit_note_lines(two_line_order, [stale])[0]

    unit_refund = engine.compute_effective_unit_refund(two_line_order, stale)

    assert unit_refund == 2700
    assert unit_refund == note.unit_price_cents - note.discount_per_unit_cents
