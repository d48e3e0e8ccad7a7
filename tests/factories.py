import copy
import uuid

from core.data import ReturnsStore
from use_cases.returns.domain.models import (
    ConcurrentReturnUpdateError,
    Order,
    OrderLineItem,
    ReturnLineSelection,
)


def make_order(lines, discount_cents=0, bonus_points_redeemed=0, shipping_cost_cents=0, total_cents=None):
    """Build an Order from (name, unit_price_cents, quantity) tuples."""
    items = tuple(OrderLineItem(name=name, unit_price_cents=price, quantity=qty) for name, price, qty in lines)
    if total_cents is None:
        subtotal = sum(i.line_total_cents for i in items)
        total_cents = subtotal + shipping_cost_cents - discount_cents
    return Order(
        line_items=items,
        discount_cents=discount_cents,
        bonus_points_redeemed=bonus_points_redeemed,
        shipping_cost_cents=shipping_cost_cents,
        total_cents=total_cents,
    )


def select(name, price, quantity, **kwargs):
    kwargs.setdefault("accepted", True)
    return ReturnLineSelection(name=name, unit_price_cents=price, quantity=quantity, **kwargs)


class InMemoryReturnsStore(ReturnsStore):
    """Dict-backed store with Cosmos-style ETags on orders."""

    def __init__(self, orders=None, returns=None):
        self.orders = {}
        self.returns = {}
        for order in orders or []:
            self.add_order(order)
        for return_doc in returns or []:
            self.returns[return_doc["id"]] = copy.deepcopy(return_doc)

    def add_order(self, order):
        order = copy.deepcopy(order)
        order.setdefault("_etag", uuid.uuid4().hex)
        self.orders[order["id"]] = order

    def get_order_by_id(self, order_id):
        doc = self.orders.get(order_id)
        return copy.deepcopy(doc) if doc else None

    def get_return_by_id(self, return_id):
        doc = self.returns.get(return_id)
        return copy.deepcopy(doc) if doc else None

    def get_returns_for_order(self, order_id):
        return [copy.deepcopy(r) for r in self.returns.values() if r.get("order_id") == order_id]

    def replace_return(self, return_record):
        self.returns[return_record["id"]] = copy.deepcopy(return_record)
        return return_record

    def replace_order(self, order, etag=None):
        stored = self.orders.get(order["id"])
        if etag and stored and stored.get("_etag") != etag:
            raise ConcurrentReturnUpdateError(f"Order {order['id']} was modified")
        order = copy.deepcopy(order)
        order["_etag"] = uuid.uuid4().hex
        self.orders[order["id"]] = order
        return order
