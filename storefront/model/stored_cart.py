#  --- storefront/model/stored_cart.py ---
from sqlalchemy.sql import func

from ..extensions import db


class StoredCart(db.Model):
    """Durable key/value slot holding one serialised cart (or checkout session)."""

    __tablename__ = "cart_storage"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    version = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())
