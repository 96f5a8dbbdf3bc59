# storefront/order/routes.py
from flask import request
from flask_jwt_extended import jwt_required

from ..errors import OrderNotFound
from ..extensions import db
from ..model import Order
from ..utils.api import ok, err
from ..utils.session import current_identity
from . import bp

@bp.get("")
@jwt_required()
def list_orders():
    """
    Query params:
      - page, per_page
      - status=pending|paid|fulfilled|cancelled
    """
    identity = current_identity()
    if not identity:
        return err("Unauthorized", 401)

    q = Order.query.filter(Order.user_id == identity.id)
    status = request.args.get("status")
    if status:
        q = q.filter(Order.status == status)

    try:
        page = max(int(request.args.get("page", 1)), 1)
        per = min(max(int(request.args.get("per_page", 20)), 1), 100)
    except ValueError:
        return err("page and per_page must be integers", 422)

    q = q.order_by(Order.created_at.desc(), Order.id.desc())
    paged = q.paginate(page=page, per_page=per, error_out=False)

    return ok("orders", {
        "page": page,
        "per_page": per,
        "total": paged.total,
        "items": [o.as_api() for o in paged.items],
    })

@bp.get("/<order_id>")
@jwt_required()
def get_order(order_id: str):
    identity = current_identity()
    if not identity:
        return err("Unauthorized", 401)
    order = db.session.get(Order, order_id)
    # other customers' orders are reported as missing
    if not order or order.user_id != identity.id:
        raise OrderNotFound(f"order {order_id} not found")
    return ok("order", order.as_api())
