import uuid as _uuid
from datetime import datetime, timezone

from ..extensions import db


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(_uuid.uuid4()))
    user_id = db.Column(db.Integer, nullable=False, index=True)
    status = db.Column(db.String(20), default="pending", index=True)
    payment_status = db.Column(db.String(20), default="pending", index=True)
    status_history = db.Column(db.JSON)

    # Customer snapshot
    customer_name = db.Column(db.String(255))
    customer_email = db.Column(db.String(255), index=True)
    customer_phone = db.Column(db.String(50))
    shipping_address = db.Column(db.JSON)
    billing_address = db.Column(db.JSON)
    payment_method = db.Column(db.JSON)   # masked descriptor only

    # Money snapshot
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    shipping_cost = db.Column(db.Numeric(12, 2), nullable=False)
    tax_amount = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    created_at = db.Column(db.DateTime, default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    lines = db.relationship(
        "OrderLine",
        backref="order",
        cascade="all, delete-orphan",
        lazy="joined",
        order_by="OrderLine.id.asc()",
    )

    def as_api(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "payment_status": self.payment_status,
            "status_history": self.status_history or [],
            "customer": {
                "name": self.customer_name,
                "email": self.customer_email,
                "phone": self.customer_phone,
            },
            "shipping_address": self.shipping_address,
            "billing_address": self.billing_address,
            "payment_method": self.payment_method,
            "money": {
                "subtotal": float(self.subtotal or 0),
                "shipping": float(self.shipping_cost or 0),
                "tax": float(self.tax_amount or 0),
                "total": float(self.total_amount or 0),
            },
            "items": [line.as_api() for line in self.lines],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class OrderLine(db.Model):
    __tablename__ = "order_lines"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id"), nullable=False, index=True)

    product_id = db.Column(db.String(64), nullable=False, index=True)
    product_name = db.Column(db.String(255))
    selected_options = db.Column(db.JSON)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)   # price at time of purchase
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    def as_api(self):
        return {
            "product_id": self.product_id,
            "name": self.product_name,
            "options": self.selected_options,
            "quantity": self.quantity,
            "unit_price": float(self.unit_price or 0),
            "line_total": float(self.line_total or 0),
        }
