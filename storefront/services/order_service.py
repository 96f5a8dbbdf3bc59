# storefront/services/order_service.py
"""
Turns a validated checkout into one Order plus one OrderLine per cart line.

The order summary is snapshotted before anything is written, so later cart
changes cannot alter a submitted order. The Order and all of its lines go
into one session and are committed together; any failure rolls the whole
batch back and the caller only sees a generic failure. The cart is never
cleared here: on failure the customer keeps their items, on success the
caller clears it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from ..extensions import db
from ..model import Order, OrderLine
from ..utils.money import round_money
from .checkout import CheckoutSnapshot, CheckoutStep, Identity

log = logging.getLogger(__name__)

GENERIC_FAILURE = "Failed to process order"


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    order_id: str | None = None
    error: str | None = None

    @classmethod
    def failed(cls, error: str) -> "SubmissionResult":
        return cls(success=False, error=error)

    def as_api(self):
        if self.success:
            return {"success": True, "orderId": self.order_id}
        return {"success": False, "error": self.error}


def _order_line(item) -> OrderLine:
    unit_price = round_money(item.unit_price)
    return OrderLine(
        product_id=item.product_id,
        product_name=item.product.name,
        selected_options=item.selected_options,
        quantity=item.quantity,
        unit_price=unit_price,
        line_total=round_money(unit_price * item.quantity),
    )


class OrderSubmissionService:
    def __init__(self, session=None) -> None:
        self.session = session if session is not None else db.session

    def submit(self, checkout, cart, identity: Identity | None) -> SubmissionResult:
        if identity is None or identity.id is None:
            return SubmissionResult.failed("User not authenticated")
        if not cart.items:
            return SubmissionResult.failed("Cart is empty")
        if checkout.current_step != CheckoutStep.PAYMENT:
            return SubmissionResult.failed("Checkout is not at the payment step")
        if not checkout.validate_current_step():
            return SubmissionResult.failed("Please fix form errors")

        snapshot = checkout.snapshot()
        checkout.is_busy = True
        try:
            order = self._write(snapshot, identity)
        except Exception:
            self.session.rollback()
            log.exception("order submission failed for user %s", identity.id)
            return SubmissionResult.failed(GENERIC_FAILURE)
        finally:
            checkout.is_busy = False

        checkout.mark_submitted(order.id)
        log.info("order %s created for user %s (%d lines, total %s)",
                 order.id, identity.id, len(order.lines), order.total_amount)
        return SubmissionResult(success=True, order_id=order.id)

    def _write(self, snapshot: CheckoutSnapshot, identity: Identity) -> Order:
        summary = snapshot.summary
        shipping = snapshot.shipping_address
        now = datetime.now(timezone.utc)
        order = Order(
            user_id=identity.id,
            status="pending",
            payment_status="pending",
            status_history=[{
                "status": "pending",
                "updated_at": now.isoformat(),
                "updated_by": "system",
                "notes": "Order created",
            }],
            customer_name=shipping.full_name,
            customer_email=identity.email or shipping.email,
            customer_phone=shipping.phone,
            shipping_address=shipping.as_dict(),
            billing_address=snapshot.billing_address.as_dict(),
            payment_method=snapshot.payment_method.describe(),
            subtotal=summary.subtotal,
            shipping_cost=summary.shipping,
            tax_amount=summary.tax,
            total_amount=summary.total,
        )
        self.session.add(order)
        for item in summary.items:
            order.lines.append(_order_line(item))
        self.session.commit()
        return order
