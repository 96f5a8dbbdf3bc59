# storefront/cart/routes.py
from __future__ import annotations
from flask import request
from flask_jwt_extended import jwt_required

from ..extensions import db
from ..model import Product
from ..services.mirror import ServerCartMirror
from ..utils.api import ok, err
from ..utils.session import current_identity, open_cart, resolve_cart_id, with_cart_id
from . import bp

# ---- helpers ---------------------------------------------------------------

def _parse_quantity(raw, default=None):
    if raw is None:
        return default
    if isinstance(raw, bool):
        return None
    if isinstance(raw, float):
        # 2.9 is not a quantity; 2.0 is
        return int(raw) if raw.is_integer() else None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None

def _cart_response(msg, cart, cart_id, status=200):
    return with_cart_id(ok(msg, cart.as_api(), status=status), cart_id)

# ---- endpoints -------------------------------------------------------------

@bp.get("")
def get_cart():
    cart_id = resolve_cart_id()
    cart = open_cart(cart_id)
    return _cart_response("cart", cart, cart_id)

@bp.post("/items")
def add_item():
    """
    Body: { "product_id": str, "quantity": int, "options": {"flavor"?, "size"?} }
    Header: X-Cart-Id: <id>
    """
    cart_id = resolve_cart_id()
    data = request.get_json(silent=True) or {}
    product_id = data.get("product_id")
    qty = _parse_quantity(data.get("quantity"), default=1)

    if not product_id:
        return with_cart_id(err("product_id is required", 422), cart_id)
    if qty is None or qty < 1:
        return with_cart_id(err("quantity must be >= 1", 422), cart_id)
    options = data.get("options")
    if options is not None and not isinstance(options, dict):
        return with_cart_id(err("options must be an object", 422), cart_id)

    product: Product | None = db.session.get(Product, str(product_id))
    if not product or not product.is_active:
        return with_cart_id(err("product not found or inactive", 404), cart_id)

    cart = open_cart(cart_id)
    item = cart.add_item(product, qty, options)
    if item is None:
        return with_cart_id(err("product cannot be added to the cart", 422), cart_id)
    return _cart_response("item added", cart, cart_id, status=201)

@bp.put("/items/<item_id>")
@bp.patch("/items/<item_id>")
def update_item(item_id: str):
    """
    Body: { "quantity": int }
    A quantity of 0 or less removes the line.
    """
    cart_id = resolve_cart_id()
    data = request.get_json(silent=True) or {}
    if "quantity" not in data:
        return with_cart_id(err("quantity is required", 422), cart_id)
    qty = _parse_quantity(data.get("quantity"))
    if qty is None:
        return with_cart_id(err("quantity must be an integer", 422), cart_id)

    cart = open_cart(cart_id)
    if not cart.get_item(item_id):
        return with_cart_id(err("item not found in this cart", 404), cart_id)
    cart.update_quantity(item_id, qty)
    return _cart_response("item updated" if qty > 0 else "item removed", cart, cart_id)

@bp.delete("/items/<item_id>")
def remove_item(item_id: str):
    # removing an unknown id is a no-op, not an error
    cart_id = resolve_cart_id()
    cart = open_cart(cart_id)
    cart.remove_item(item_id)
    return _cart_response("item removed", cart, cart_id)

@bp.delete("/items")
def clear_cart_items():
    cart_id = resolve_cart_id()
    cart = open_cart(cart_id)
    cart.clear()
    return _cart_response("all items removed", cart, cart_id)

# ---- server copy for signed-in customers -----------------------------------

@bp.post("/sync")
@jwt_required()
def sync_cart():
    cart_id = resolve_cart_id()
    identity = current_identity()
    if not identity:
        return with_cart_id(err("Unauthorized", 401), cart_id)
    cart = open_cart(cart_id)
    synced = cart.sync_to_server(ServerCartMirror(), identity.id)
    return _cart_response("cart synced" if synced else "cart sync failed", cart, cart_id)

@bp.post("/restore")
@jwt_required()
def restore_cart():
    cart_id = resolve_cart_id()
    identity = current_identity()
    if not identity:
        return with_cart_id(err("Unauthorized", 401), cart_id)
    cart = open_cart(cart_id)
    if not cart.load_from_server(ServerCartMirror(), identity.id):
        return with_cart_id(err("could not load the saved cart", 503), cart_id)
    return _cart_response("cart restored", cart, cart_id)
