import json
from decimal import Decimal, InvalidOperation

from flask import Blueprint, jsonify, g

from models import db
from models.cart_item import CartItem
from models.order import Order, OrderItem, OrderAddress
from models.shipping_type import ShippingType
from security.rbac import Permission, require_permission
from utils.audit import log_event
from utils.errors import NotFoundError, ValidationError
from utils.pricing import load_variation, parse_quantity, price_breakdown, to_money
from utils.validation import json_body, paginate, parse_bool, parse_int, require_fields
from routes.addresses import clean_address, owned_address
from routes.cart import apply_selection

orders_bp = Blueprint("orders", __name__, url_prefix="/store")


def _address_fields(value, field) -> dict:
    """Accepts a saved address id or an inline address object."""
    if isinstance(value, dict):
        return clean_address(value)
    if value in (None, ""):
        raise ValidationError("Missing required fields", details={field: "required"})
    address = owned_address(parse_int(value, field), g.user)
    return {k: v for k, v in address.to_dict().items() if k not in ("id", "is_default")}


def _lines_from_cart():
    items = CartItem.query.filter_by(user_id=g.user.id).order_by(CartItem.created_at.asc()).all()
    return [(item.variation, item.options(), item.quantity) for item in items]


def _lines_from_request(raw_items):
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")
    lines = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object")
        # validate exactly like a cart line, without saving it
        scratch = CartItem(user_id=g.user.id, quantity=parse_quantity(raw.get("quantity", 1)))
        apply_selection(scratch, raw)
        lines.append((load_variation(scratch.variation_id), scratch.options(), scratch.quantity))
    return lines


@orders_bp.post("/checkout")
@require_permission(Permission.SHOP)
def checkout():
    """
    Recomputes every line and the shipping charge server side and refuses
    the order when the client's total disagrees.
    """
    data = json_body()
    require_fields(data, "shipping_type_id", "shipping_address", "total_amount")

    from_cart = data.get("items") is None
    lines = _lines_from_cart() if from_cart else _lines_from_request(data.get("items"))
    if not lines:
        raise ValidationError("Cart is empty")

    shipping = ShippingType.query.filter_by(
        id=parse_int(data.get("shipping_type_id"), "shipping_type_id"), is_active=True
    ).first()
    if not shipping:
        raise NotFoundError("Shipping type not found")

    shipping_fields = _address_fields(data.get("shipping_address"), "shipping_address")
    same = parse_bool(data.get("is_same_billing_shipping", True))
    billing_fields = shipping_fields if same else _address_fields(data.get("billing_address"), "billing_address")

    priced = [(variation, options, price_breakdown(variation, options, qty)) for variation, options, qty in lines]
    items_total = sum((b["total_price"] for _, _, b in priced), Decimal("0"))
    expected = to_money(items_total + Decimal(shipping.price))

    try:
        received = to_money(data.get("total_amount"))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("Invalid total amount", details={"total_amount": data.get("total_amount")})
    if received != expected:
        log_event("CHECKOUT_TOTAL_MISMATCH", user_id=g.user.id, status="WARNING",
                  metadata={"expected": str(expected), "received": str(received)})
        raise ValidationError(
            "Order total does not match the current prices",
            details={"expected": str(expected), "received": str(received)},
        )

    order = Order(
        user_id=g.user.id,
        shipping_type_id=shipping.id,
        is_same_billing_shipping=same,
        shipping_amount=to_money(shipping.price),
        total_amount=expected,
    )
    db.session.add(order)
    db.session.flush()

    for variation, options, breakdown in priced:
        db.session.add(OrderItem(
            order_id=order.id,
            variation_id=variation.id,
            quantity=breakdown["quantity"],
            unit_price=breakdown["unit_price"],
            total_price=breakdown["total_price"],
            attributes_json=json.dumps(options),
        ))
    db.session.add(OrderAddress(order_id=order.id, kind="SHIPPING", **shipping_fields))
    db.session.add(OrderAddress(order_id=order.id, kind="BILLING", **billing_fields))

    if from_cart:
        CartItem.query.filter_by(user_id=g.user.id).delete()
    db.session.commit()

    log_event("ORDER_CREATE", user_id=g.user.id, entity="order", entity_id=order.id,
              metadata={"total": str(expected), "items": len(priced)})
    return jsonify(message="Order placed", order=order.to_dict(with_items=True)), 201


@orders_bp.get("/orders")
@require_permission(Permission.SHOP)
def my_orders():
    q = Order.query.filter_by(user_id=g.user.id).order_by(Order.created_at.desc(), Order.id.desc())
    return jsonify(paginate(q)), 200


@orders_bp.get("/orders/<int:order_id>")
@require_permission(Permission.SHOP)
def my_order(order_id):
    order = Order.query.filter_by(id=order_id, user_id=g.user.id).first()
    if not order:
        raise NotFoundError("Order not found")
    return jsonify(order.to_dict(with_items=True)), 200
