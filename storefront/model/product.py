# storefront/model/product.py
import uuid as _uuid

from sqlalchemy.sql import func

from ..extensions import db


class Product(db.Model):
    __tablename__ = "product"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(_uuid.uuid4()))
    name = db.Column(db.String(255), nullable=False, index=True)
    description = db.Column(db.Text, default="")
    category = db.Column(db.String(120), index=True)

    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    stock = db.Column(db.Integer, default=0)
    status = db.Column(db.String(16), default="active", index=True)   # "active" | "inactive"
    featured = db.Column(db.Boolean, default=False)

    image_url = db.Column(db.String(1024))
    flavors = db.Column(db.JSON)   # e.g. ["Chocolate", "Vanilla"]
    sizes = db.Column(db.JSON)     # e.g. ["1kg", "2kg"]

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    @property
    def is_active(self) -> bool:
        return (self.status or "active") == "active"
