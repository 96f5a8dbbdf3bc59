# storefront/checkout/routes.py
from flask import request
from flask_jwt_extended import jwt_required

from ..services.order_service import OrderSubmissionService
from ..utils.api import ok, err
from ..utils.session import (
    current_identity, current_user, open_cart, open_checkout,
    resolve_cart_id, save_checkout, with_cart_id,
)
from . import bp

def _session():
    cart_id = resolve_cart_id()
    cart = open_cart(cart_id)
    return cart_id, cart, open_checkout(cart_id, cart)

def _checkout_response(msg, cart_id, checkout, status=200):
    save_checkout(cart_id, checkout)
    return with_cart_id(ok(msg, checkout.as_api(), status=status), cart_id)

def _fields():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        raise ValueError("body must be a JSON object")
    return data


@bp.get("")
def get_checkout():
    cart_id, _, checkout = _session()
    return _checkout_response("checkout", cart_id, checkout)

@bp.patch("/shipping")
def update_shipping():
    cart_id, _, checkout = _session()
    checkout.update_shipping(**_fields())
    return _checkout_response("shipping address updated", cart_id, checkout)

@bp.patch("/billing")
def update_billing():
    cart_id, _, checkout = _session()
    checkout.update_billing(**_fields())
    return _checkout_response("billing address updated", cart_id, checkout)

@bp.put("/same-address")
def set_same_address():
    """Body: { "enabled": bool }"""
    cart_id, _, checkout = _session()
    data = _fields()
    if not isinstance(data.get("enabled"), bool):
        return with_cart_id(err("enabled must be true or false", 422), cart_id)
    checkout.set_use_same_address(data["enabled"])
    return _checkout_response("billing address preference updated", cart_id, checkout)

@bp.post("/advance")
def advance():
    cart_id, _, checkout = _session()
    if not checkout.advance():
        save_checkout(cart_id, checkout)
        return with_cart_id(err("Please fix form errors", 422, checkout.as_api()), cart_id)
    return _checkout_response("step completed", cart_id, checkout)

@bp.post("/retreat")
def retreat():
    cart_id, _, checkout = _session()
    checkout.retreat()
    return _checkout_response("step changed", cart_id, checkout)

@bp.post("/prefill")
@jwt_required()
def prefill():
    cart_id, _, checkout = _session()
    user = current_user()
    if not user:
        return with_cart_id(err("Unauthorized", 401), cart_id)
    checkout.prefill(current_identity(), user.profile())
    return _checkout_response("addresses loaded from profile", cart_id, checkout)

@bp.post("/submit")
@jwt_required()
def submit():
    """
    Body: payment fields for the selected type, e.g.
      { "type": "card", "card_holder": .., "card_number": .., "card_expiry": .., "card_cvc": .. }
    Card details are used for validation only and never stored in the session.
    """
    cart_id, cart, checkout = _session()
    payment = _fields()
    if payment:
        checkout.update_payment(**payment)

    result = OrderSubmissionService().submit(checkout, cart, current_identity())
    if not result.success:
        save_checkout(cart_id, checkout)
        data = {**result.as_api(), "errors": checkout.errors}
        return with_cart_id(err(result.error, 422, data), cart_id)

    cart.clear()
    resp = _checkout_response("order created", cart_id, checkout, status=201)
    resp.headers["X-Order-Id"] = result.order_id
    return resp
