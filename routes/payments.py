from decimal import Decimal
from urllib.parse import urlencode, urlparse, parse_qsl, urlunparse

import stripe
from flask import Blueprint, jsonify, g, current_app

from models import db
from models.order import Order
from models.payment import Payment
from security.rbac import Permission, require_permission
from utils.audit import log_event
from utils.errors import ConflictError, NotFoundError, UpstreamError, ValidationError

payments_bp = Blueprint("payments", __name__, url_prefix="/store/orders")


def _append_query(url: str, params: dict) -> str:
    if not url:
        return url
    parts = urlparse(url)
    query = dict(parse_qsl(parts.query))
    query.update({k: v for k, v in params.items() if v is not None})
    new_query = urlencode(query)
    return urlunparse(parts._replace(query=new_query))


@payments_bp.post("/<int:order_id>/pay")
@require_permission(Permission.SHOP)
def start_payment(order_id):
    stripe.api_key = current_app.config.get("STRIPE_SECRET_KEY")
    success_url = current_app.config.get("STRIPE_SUCCESS_URL")
    cancel_url = current_app.config.get("STRIPE_CANCEL_URL")
    if not stripe.api_key:
        raise UpstreamError("Payments are not configured")
    if not success_url or not cancel_url:
        raise UpstreamError("Payment return URLs are not configured")

    order = Order.query.filter_by(id=order_id, user_id=g.user.id).first()
    if not order:
        raise NotFoundError("Order not found")
    if order.payment_status == "paid":
        raise ConflictError("Order already paid")
    if order.order_status == "cancelled":
        raise ValidationError("Order was cancelled")

    currency = current_app.config.get("STORE_CURRENCY", "INR")
    # Stripe expects the smallest currency unit
    amount = int((Decimal(order.total_amount) * 100).to_integral_value())

    payment = Payment(order_id=order.id, amount=amount, currency=currency, status="INIT")
    db.session.add(payment)
    db.session.commit()

    try:
        session = stripe.checkout.Session.create(
            mode="payment",
            line_items=[{
                "price_data": {
                    "currency": currency.lower(),
                    "product_data": {"name": f"Order #{order.id}"},
                    "unit_amount": amount,
                },
                "quantity": 1,
            }],
            success_url=_append_query(success_url, {"order_id": str(order.id)}),
            cancel_url=_append_query(cancel_url, {"order_id": str(order.id), "payment_id": str(payment.id)}),
            metadata={
                "order_id": str(order.id),
                "payment_id": str(payment.id),
                "user_id": str(g.user.id),
            },
        )
    except stripe.StripeError as exc:
        payment.status = "FAILED"
        db.session.commit()
        log_event("PAYMENT_SESSION_FAILED", user_id=g.user.id, entity="payment", entity_id=payment.id,
                  status="FAILURE", metadata={"error": str(exc)})
        raise UpstreamError("Could not start payment")

    payment.stripe_session_id = session["id"]
    db.session.commit()

    log_event("PAYMENT_SESSION_CREATED", user_id=g.user.id, entity="payment", entity_id=payment.id,
              metadata={"stripe_session_id": session["id"], "order_id": order.id})
    return jsonify(checkout_url=session["url"]), 200
