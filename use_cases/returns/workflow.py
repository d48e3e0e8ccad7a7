"""
Return Completion Workflow.

Wires the record store to the refund engine. An operator adjudicates a
return request item by item, reviews the quoted refund, and then
completes the return. Completing writes the refund block and moves the
order status. Paying the refund, restocking items and sending e-mail
are left to the caller.
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.data import ReturnsStore
from use_cases.returns.domain.models import (
    Order,
    OrderNotFoundError,
    OrderStatus,
    ReturnLineSelection,
    ReturnNotFoundError,
    ReturnRecord,
    ReturnStatus,
    ReturnSubmissionError,
)
from use_cases.returns.domain.policies import AdjudicationValidator
from use_cases.returns.domain.services import (
    CreditNoteLine,
    RefundBreakdown,
    RefundProrationEngine,
    ReturnHistory,
    redeemed_points_credit,
)

logger = logging.getLogger(__name__)


@dataclass
class RefundQuote:
    """Refund proposed for a return request, shown to the operator before completion."""
    return_id: str
    order_id: str
    breakdown: RefundBreakdown
    prior_returned_quantity: int
    credit_note_lines: List[CreditNoteLine]
    redeemed_points_credit: int
    items: List[Dict[str, Any]] = field(default_factory=list)
    order_etag: Optional[str] = None

    @property
    def refund_cents(self) -> int:
        return self.breakdown.refund_cents

    def to_dict(self) -> Dict[str, Any]:
        return {
            "return_id": self.return_id,
            "order_id": self.order_id,
            "refund_cents": self.breakdown.refund_cents,
            "items_refund_cents": self.breakdown.items_refund_cents,
            "shipping_refund_cents": self.breakdown.shipping_refund_cents,
            "is_full_return": self.breakdown.is_full_return,
            "capped": self.breakdown.capped,
            "prior_returned_quantity": self.prior_returned_quantity,
            "lines": [
                {
                    "name": line.selection.name,
                    "variations": line.selection.variations,
                    "quantity": line.selection.quantity,
                    "refund_percentage": line.selection.refund_percentage,
                    "unit_refund_cents": line.unit_refund_cents,
                    "refund_cents": line.refund_cents,
                }
                for line in self.breakdown.lines
            ],
            "credit_note": [line.to_dict() for line in self.credit_note_lines],
            "redeemed_points_credit": self.redeemed_points_credit,
        }


def apply_adjudications(
    items: List[Dict[str, Any]], adjudications: List[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """
    Merge operator decisions into stored return lines, matched by product ID.

    A quantity may only be lowered, never raised above what was requested.
    """
    decisions = {a.get("product_id"): a for a in adjudications}
    merged = []
    for item in items:
        item = copy.deepcopy(item)
        decision = decisions.get(item.get("product_id"))
        if decision:
            for key in ("accepted", "not_returned", "refund_percentage"):
                if key in decision:
                    item[key] = decision[key]
            quantity = decision.get("quantity")
            if isinstance(quantity, int) and not isinstance(quantity, bool) and quantity >= 0:
                item["quantity"] = min(quantity, item.get("quantity", 0))
        merged.append(item)
    return merged


class ReturnCompletionService:
    """
    Quotes and completes return requests.

    The prior returned quantity combines completed returns in the store
    with the per-return quantities recorded on the order document.
    ``complete`` records its own quantity on the order before it marks
    the return completed, and writes the order with an ETag check.
    A completion that runs between those two writes still sees the first
    return through the order document.
    """

    def __init__(
        self,
        store: ReturnsStore,
        engine: Optional[RefundProrationEngine] = None,
    ):
        self.store = store
        self.engine = engine or RefundProrationEngine()
        self.validator = AdjudicationValidator()

    def _load_return(self, return_id: str) -> Dict[str, Any]:
        doc = self.store.get_return_by_id(return_id)
        if not doc:
            raise ReturnNotFoundError(f"Return not found: {return_id}")
        return doc

    def _load_order(self, order_id: str) -> Dict[str, Any]:
        doc = self.store.get_order_by_id(order_id)
        if not doc:
            raise OrderNotFoundError(f"Order not found: {order_id}")
        return doc

    def quote(
        self,
        return_id: str,
        adjudications: Optional[List[Dict[str, Any]]] = None,
    ) -> RefundQuote:
        """
        Compute the refund for a return request without writing anything.

        Args:
            return_id: The return request to quote
            adjudications: Operator decisions per item. When omitted the
                decisions already stored on the return are used.

        Raises:
            ReturnNotFoundError, OrderNotFoundError
            ReturnSubmissionError: If the adjudication is invalid or no item is accepted
        """
        return_doc = self._load_return(return_id)
        items = return_doc.get("items") or []

        if adjudications is not None:
            errors = self.validator.validate({"items": adjudications})
            if errors:
                error_messages = [f"{e.field}: {e.message}" for e in errors]
                raise ReturnSubmissionError(f"Invalid adjudication: {'; '.join(error_messages)}")
            items = apply_adjudications(items, adjudications)

        selections = [ReturnLineSelection.from_record(item) for item in items]
        if not any(s.accepted and s.quantity > 0 for s in selections):
            raise ReturnSubmissionError(f"No items selected for return {return_id}")

        order_id = return_doc.get("order_id", "")
        order_doc = self._load_order(order_id)
        order = Order.from_record(order_doc)

        history = ReturnHistory(
            ReturnRecord.from_record(r) for r in self.store.get_returns_for_order(order_id)
        )
        prior = history.prior_returned_quantity(
            exclude_return_id=return_id, recorded=order.returned_quantities
        )

        breakdown = self.engine.execute(order, selections, prior)

        for line in breakdown.lines:
            if not line.matched:
                logger.warning(
                    f"Return {return_id}: line '{line.selection.name}' not found on order {order_id}, "
                    f"refunding its stated unit price"
                )
        if breakdown.capped:
            logger.info(
                f"Return {return_id}: refund {breakdown.raw_total_cents} capped at order total {order.total_cents}"
            )

        logger.info(
            f"Quoted return {return_id} for order {order_id}: {breakdown.refund_cents} cents "
            f"(full_return={breakdown.is_full_return}, prior_returned={prior})"
        )

        # Persist the normalized flags, not what the caller sent
        normalized_items = []
        for item, selection in zip(items, selections):
            item = dict(item)
            item["accepted"] = selection.accepted
            item["not_returned"] = selection.not_returned
            item["refund_percentage"] = selection.refund_percentage
            item["quantity"] = selection.quantity
            normalized_items.append(item)

        return RefundQuote(
            return_id=return_id,
            order_id=order_id,
            breakdown=breakdown,
            prior_returned_quantity=prior,
            credit_note_lines=self.engine.build_credit_note_lines(order, selections),
            redeemed_points_credit=redeemed_points_credit(order, selections),
            items=normalized_items,
            order_etag=order_doc.get("_etag"),
        )

    def complete(
        self,
        return_id: str,
        adjudications: Optional[List[Dict[str, Any]]] = None,
        refund_method: str = "",
        refund_reference: str = "",
    ) -> RefundQuote:
        """
        Complete a return request with the quoted refund.

        Raises:
            ReturnSubmissionError: If the return is already completed or rejected
            ConcurrentReturnUpdateError: If the order changed since it was read
        """
        return_doc = self._load_return(return_id)
        status = ReturnStatus.parse(return_doc.get("status"))
        if status in (ReturnStatus.COMPLETED, ReturnStatus.REJECTED):
            raise ReturnSubmissionError(f"Return {return_id} is already {status.value}")

        quote = self.quote(return_id, adjudications)
        now = datetime.now(timezone.utc).isoformat()

        order_doc = self._load_order(quote.order_id)
        order_doc["status"] = (
            OrderStatus.RETURN_COMPLETED.value
            if quote.breakdown.is_full_return
            else OrderStatus.PARTIALLY_RETURNED.value
        )
        recorded = order_doc.get("returned_quantities")
        recorded = dict(recorded) if isinstance(recorded, dict) else {}
        recorded[return_id] = quote.breakdown.total_returned_quantity - quote.prior_returned_quantity
        order_doc["returned_quantities"] = recorded
        order_doc["returned_quantity"] = quote.breakdown.total_returned_quantity
        order_doc["updated_at"] = now
        self.store.replace_order(order_doc, etag=quote.order_etag)

        return_doc = copy.deepcopy(return_doc)
        return_doc["items"] = quote.items
        return_doc["status"] = ReturnStatus.COMPLETED.value
        return_doc["refund"] = {
            "method": refund_method or (return_doc.get("refund") or {}).get("method", ""),
            "reference": refund_reference or (return_doc.get("refund") or {}).get("reference", ""),
            "amount_cents": quote.refund_cents,
        }
        return_doc["completed_at"] = now
        self.store.replace_return(return_doc)

        logger.info(
            f"Completed return {return_id} for order {quote.order_id}: refund {quote.refund_cents} cents, "
            f"order status {order_doc['status']}"
        )
        return quote

    def mark_processing(self, return_id: str, notes: Optional[str] = None) -> Dict[str, Any]:
        """Move a received return into processing, optionally with operator notes."""
        return self._update_status(return_id, ReturnStatus.PROCESSING, notes)

    def reject(self, return_id: str, notes: Optional[str] = None) -> Dict[str, Any]:
        """
        Reject a return request. No refund is written and the order is left as is.

        Raises:
            ReturnSubmissionError: If the return is already completed or rejected
        """
        return self._update_status(return_id, ReturnStatus.REJECTED, notes)

    def _update_status(
        self, return_id: str, status: ReturnStatus, notes: Optional[str]
    ) -> Dict[str, Any]:
        return_doc = self._load_return(return_id)
        current = ReturnStatus.parse(return_doc.get("status"))
        if current in (ReturnStatus.COMPLETED, ReturnStatus.REJECTED):
            raise ReturnSubmissionError(f"Return {return_id} is already {current.value}")

        return_doc["status"] = status.value
        if notes is not None:
            return_doc["notes"] = notes
        return_doc["updated_at"] = datetime.now(timezone.utc).isoformat()
        self.store.replace_return(return_doc)

        logger.info(f"Return {return_id} moved from {current.value} to {status.value}")
        return return_doc
