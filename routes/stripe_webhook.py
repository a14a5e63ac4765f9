from datetime import datetime

import stripe
from flask import Blueprint, request, jsonify, current_app

from models import db
from models.order import Order
from models.payment import Payment
from utils.audit import log_event, log_security_event

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


def _find_payment(session):
    meta = session.get("metadata", {}) or {}
    payment = None
    payment_id = meta.get("payment_id")
    if payment_id and str(payment_id).isdigit():
        payment = db.session.get(Payment, int(payment_id))
    if not payment and session.get("id"):
        payment = Payment.query.filter_by(stripe_session_id=session.get("id")).first()
    return payment


@webhook_bp.post("/stripe")
def stripe_webhook():
    endpoint_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    sig_header = request.headers.get("Stripe-Signature")
    payload = request.data

    if not endpoint_secret:
        return jsonify(error="Webhook secret not configured"), 500

    try:
        event = stripe.Webhook.construct_event(payload, sig_header, endpoint_secret)
    except (ValueError, stripe.SignatureVerificationError):
        log_security_event("INVALID_WEBHOOK_SIGNATURE", severity="MEDIUM")
        return jsonify(error="Invalid webhook signature"), 400

    event_type = event["type"]
    if event_type not in ("checkout.session.completed", "checkout.session.expired"):
        return jsonify(received=True), 200

    session = event["data"]["object"]
    payment = _find_payment(session)
    if not payment or payment.status == "PAID":
        return jsonify(received=True), 200

    order = db.session.get(Order, payment.order_id)
    if event_type == "checkout.session.completed":
        payment.status = "PAID"
        payment.paid_at = datetime.utcnow()
        order.payment_status = "paid"
        action = "PAYMENT_PAID"
    else:
        payment.status = "FAILED"
        if order.payment_status != "paid":
            order.payment_status = "failed"
        action = "PAYMENT_EXPIRED"
    db.session.commit()

    log_event(action, user_id=order.user_id, entity="payment", entity_id=payment.id,
              metadata={"stripe_session_id": session.get("id"), "order_id": order.id})
    return jsonify(received=True), 200
