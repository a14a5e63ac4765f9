from datetime import datetime, timedelta

from flask import Blueprint, jsonify, g, request

from models import db
from models.order import Order, ORDER_STATUSES, ORDER_TRANSITIONS, PAYMENT_STATUSES
from security.rbac import Permission, require_permission
from utils.audit import log_event
from utils.errors import NotFoundError, ValidationError
from utils.validation import json_body, paginate

store_admin_bp = Blueprint("store_admin", __name__, url_prefix="/store/admin")


@store_admin_bp.get("/orders")
@require_permission(Permission.MANAGE_STORE)
def list_orders():
    q = Order.query
    status = request.args.get("status")
    if status:
        if status not in ORDER_STATUSES:
            raise ValidationError("Unknown order status", details={"allowed": list(ORDER_STATUSES)})
        q = q.filter(Order.order_status == status)
    payment_status = request.args.get("payment_status")
    if payment_status:
        if payment_status not in PAYMENT_STATUSES:
            raise ValidationError("Unknown payment status", details={"allowed": list(PAYMENT_STATUSES)})
        q = q.filter(Order.payment_status == payment_status)
    return jsonify(paginate(q.order_by(Order.created_at.desc(), Order.id.desc()))), 200


@store_admin_bp.get("/orders/<int:order_id>")
@require_permission(Permission.MANAGE_STORE)
def get_order(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    out = order.to_dict(with_items=True)
    out["payments"] = [p.to_dict() for p in order.payments]
    return jsonify(out), 200


@store_admin_bp.patch("/orders/<int:order_id>/status")
@require_permission(Permission.MANAGE_STORE)
def update_order_status(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")

    new_status = (json_body().get("order_status") or "").strip().lower()
    if new_status not in ORDER_STATUSES:
        raise ValidationError("Unknown order status", details={"allowed": list(ORDER_STATUSES)})
    if new_status not in ORDER_TRANSITIONS[order.order_status]:
        raise ValidationError(
            f"Cannot move an order from {order.order_status} to {new_status}",
            details={"allowed": sorted(ORDER_TRANSITIONS[order.order_status])},
        )

    previous = order.order_status
    order.order_status = new_status
    db.session.commit()

    log_event("ORDER_STATUS_UPDATE", user_id=g.user.id, entity="order", entity_id=order.id,
              metadata={"from": previous, "to": new_status})
    return jsonify(order.to_dict()), 200


@store_admin_bp.get("/stats")
@require_permission(Permission.MANAGE_STORE)
def order_stats():
    by_status = dict(
        db.session.query(Order.order_status, db.func.count(Order.id)).group_by(Order.order_status).all()
    )
    revenue = (
        db.session.query(db.func.coalesce(db.func.sum(Order.total_amount), 0))
        .filter(Order.payment_status == "paid")
        .scalar()
    )
    since = datetime.utcnow() - timedelta(days=30)
    recent = Order.query.filter(Order.created_at >= since).count()

    return jsonify(
        total_orders=sum(by_status.values()),
        by_status={s: by_status.get(s, 0) for s in ORDER_STATUSES},
        paid_revenue=str(revenue),
        orders_last_30_days=recent,
    ), 200
