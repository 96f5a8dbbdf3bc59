"""Server-side copy of a signed-in customer's cart."""
import uuid as _uuid

from sqlalchemy.sql import func

from ..extensions import db

class Cart(db.Model):
    __tablename__ = "cart"

    id = db.Column(db.Integer, primary_key=True)
    uuid = db.Column(db.String(36), unique=True, index=True, default=lambda: str(_uuid.uuid4()))
    user_id = db.Column(db.Integer, nullable=False, index=True)
    status = db.Column(db.String(16), default="active", index=True)
    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    items = db.relationship(
        "CartItem",
        backref="cart",
        cascade="all, delete-orphan",
        lazy="joined",
        order_by="CartItem.id.asc()"
    )


class CartItem(db.Model):
    __tablename__ = "cart_item"

    id = db.Column(db.Integer, primary_key=True)
    cart_id = db.Column(db.Integer, db.ForeignKey("cart.id"), nullable=False, index=True)
    line_id = db.Column(db.String(64), nullable=False)   # client-side LineItem id
    product_id = db.Column(db.String(36), db.ForeignKey("product.id"), nullable=False, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    product_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)   # price when synced
    quantity = db.Column(db.Integer, nullable=False, default=1)
    selected_options = db.Column(db.JSON)

    product = db.relationship("Product", lazy="joined")
