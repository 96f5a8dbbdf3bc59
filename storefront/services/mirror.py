# storefront/services/mirror.py
"""Server-side copy of a signed-in customer's cart (cart / cart_item tables)."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from ..extensions import db
from ..model import Cart, CartItem, Product
from .cart_store import LineItem, ProductSnapshot, normalize_options

log = logging.getLogger(__name__)


class ServerCartMirror:
    def __init__(self, session=None) -> None:
        self.session = session if session is not None else db.session

    def _active_cart(self, user_id, create=False) -> Cart | None:
        cart = (self.session.query(Cart)
                .filter_by(user_id=user_id, status="active")
                .first())
        if not cart and create:
            cart = Cart(user_id=user_id, status="active")
            self.session.add(cart)
            self.session.flush()
        return cart

    def push(self, user_id, items) -> None:
        """Replace the server copy with `items`."""
        try:
            cart = self._active_cart(user_id, create=True)
            # because of cascade="all, delete-orphan", clearing the list deletes rows
            cart.items.clear()
            for item in items:
                cart.items.append(CartItem(
                    line_id=item.id,
                    product_id=item.product_id,
                    product_name=item.product.name,
                    product_price=item.unit_price,
                    quantity=item.quantity,
                    selected_options=item.selected_options,
                ))
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"cart mirror push failed for user {user_id}: {e}") from e

    def pull(self, user_id) -> list[LineItem]:
        try:
            cart = self._active_cart(user_id)
        except SQLAlchemyError as e:
            raise StorageError(f"cart mirror pull failed for user {user_id}: {e}") from e
        if not cart:
            return []
        items = []
        for row in cart.items:
            product: Product | None = row.product
            snapshot = ProductSnapshot.of(product) if product is not None else None
            if snapshot is None or snapshot.price <= 0 or row.quantity < 1:
                log.warning("skipping server cart line %s for user %s", row.line_id, user_id)
                continue
            items.append(LineItem(
                id=row.line_id,
                product_id=row.product_id,
                quantity=row.quantity,
                product=snapshot,
                selected_options=normalize_options(row.selected_options),
            ))
        return items
