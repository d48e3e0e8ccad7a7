import pytest

from tests.factories import InMemoryReturnsStore, make_order


@pytest.fixture
def two_line_order():
    # A: 3000 x 2 = 6000, B: 4000 x 1 = 4000, subtotal 10000
    return make_order(
        [("Shirt", 3000, 2), ("Jacket", 4000, 1)],
        discount_cents=1000,
        shipping_cost_cents=495,
    )


@pytest.fixture
def order_doc():
    return {
        "id": "ORD-1",
        "order_number": "100001",
        "status": "delivered",
        "items": [
            {"product_id": "shirt", "name": "Shirt", "price_cents": 3000, "quantity": 2,
             "variations": {"size": "M", "color": "blue"}},
            {"product_id": "jacket", "name": "Jacket", "price_cents": 4000, "quantity": 1},
        ],
        "discount_cents": 1000,
        "bonus_points_redeemed": 0,
        "shipping_cost_cents": 495,
        "total_cents": 9495,
    }


@pytest.fixture
def return_doc():
    return {
        "id": "RET-1",
        "order_id": "ORD-1",
        "status": "received",
        "items": [
            {"product_id": "shirt", "name": "Shirt", "price_cents": 3000, "quantity": 2,
             "variations": {"color": "blue", "size": "M"}, "accepted": True, "refund_percentage": 100},
            {"product_id": "jacket", "name": "Jacket", "price_cents": 4000, "quantity": 1,
             "accepted": False, "refund_percentage": 100},
        ],
    }


@pytest.fixture
def store(order_doc, return_doc):
    return InMemoryReturnsStore(orders=[order_doc], returns=[return_doc])
