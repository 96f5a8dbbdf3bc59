# storefront/utils/session.py
"""Per-request wiring: which cart/checkout session a request belongs to, and who is calling."""
from __future__ import annotations

import json
import logging
import re
import uuid

from flask import current_app, request
from flask_jwt_extended import get_jwt_identity

from ..errors import StorageError
from ..extensions import db
from ..model import User
from ..services.cart_store import CartStore
from ..services.checkout import CheckoutStateMachine, Identity
from ..services.pricing import PricingRules
from ..services.storage import DatabaseStorage

log = logging.getLogger(__name__)

_CART_ID_RE = re.compile(r"^[A-Za-z0-9-]{8,64}$")


def resolve_cart_id() -> str:
    cart_id = (request.headers.get("X-Cart-Id") or "").strip()
    if cart_id and _CART_ID_RE.match(cart_id):
        return cart_id
    return str(uuid.uuid4())

def _cart_key(cart_id):
    return f"{current_app.config['CART_STORAGE_KEY']}:{cart_id}"

def _checkout_key(cart_id):
    return f"{current_app.config['CHECKOUT_STORAGE_KEY']}:{cart_id}"

def open_cart(cart_id: str) -> CartStore:
    cart = CartStore(
        DatabaseStorage(),
        key=_cart_key(cart_id),
        rules=PricingRules.from_config(current_app.config),
    )
    cart.load()
    return cart

def open_checkout(cart_id: str, cart: CartStore) -> CheckoutStateMachine:
    country = current_app.config["DEFAULT_COUNTRY"]
    try:
        raw = DatabaseStorage().read(_checkout_key(cart_id))
        state = json.loads(raw) if raw else None
    except (StorageError, ValueError):
        log.warning("checkout session %s unreadable; starting over", cart_id, exc_info=True)
        state = None
    try:
        checkout = CheckoutStateMachine.from_state(cart, state, default_country=country)
    except (AttributeError, TypeError, ValueError):
        log.warning("checkout session %s malformed; starting over", cart_id)
        return CheckoutStateMachine(cart, default_country=country)
    if checkout.is_submitted and len(cart):
        # items added after a completed order start a new checkout
        return CheckoutStateMachine(cart, default_country=country)
    return checkout

def save_checkout(cart_id: str, checkout: CheckoutStateMachine) -> None:
    try:
        DatabaseStorage().write(_checkout_key(cart_id), json.dumps(checkout.to_state()))
    except StorageError:
        log.exception("could not save checkout session %s", cart_id)

def current_identity() -> Identity | None:
    uid = get_jwt_identity()
    try:
        uid = int(uid)
    except (TypeError, ValueError):
        return None
    user = db.session.get(User, uid)
    if not user:
        return None
    return Identity(id=user.id, email=user.email)

def current_user() -> User | None:
    identity = current_identity()
    return db.session.get(User, identity.id) if identity else None

def with_cart_id(resp, cart_id: str):
    resp.headers["X-Cart-Id"] = cart_id
    return resp
