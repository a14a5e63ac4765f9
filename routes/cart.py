import json

from flask import Blueprint, jsonify, g

from models import db
from models.cart_item import CartItem
from security.rbac import Permission, require_permission
from utils.errors import AuthorizationError, NotFoundError, ValidationError
from utils.panel_layouts import get_layout
from utils.pricing import (
    OPTION_FIELDS, TOGGLE_FIELDS, breakdown_to_json, is_yes, load_variation, parse_quantity, price_breakdown, to_money,
)
from utils.storage import key_owner
from utils.validation import json_body, parse_int

cart_bp = Blueprint("cart", __name__, url_prefix="/store/cart")

MIN_ZOOM, MAX_ZOOM = 10, 500


def _own_key(key, field):
    if key in (None, ""):
        return None
    if not isinstance(key, str) or key_owner(key) != g.user.id:
        raise AuthorizationError("Image does not belong to you", details={field: key})
    return key


def apply_selection(item: CartItem, data: dict):
    variation = load_variation(data.get("variation_id", item.variation_id))
    item.variation_id = variation.id
    product_type = variation.product.type

    layout = None
    if product_type in ("multi", "split"):
        layout = get_layout(data.get("layout_id", item.layout_id) or "", product_type)
        if layout is None:
            raise ValidationError("Choose a layout for this product", details={"layout_id": data.get("layout_id")})
        item.layout_id = layout.id
    else:
        item.layout_id = None

    for field in OPTION_FIELDS:
        if field in data:
            value = data.get(field)
            setattr(item, field, parse_int(value, field) if value not in (None, "", 0) else None)
    for field in TOGGLE_FIELDS:
        if field in data:
            setattr(item, field, is_yes(data.get(field)))

    if "image_key" in data:
        item.image_key = _own_key(data.get("image_key"), "image_key")

    position = data.get("image_position")
    if position is not None:
        try:
            item.image_position_x = float(position.get("x", 0))
            item.image_position_y = float(position.get("y", 0))
        except (TypeError, ValueError, AttributeError):
            raise ValidationError("Invalid image position", details={"image_position": position})

    if "zoom_level" in data:
        try:
            zoom = int(data.get("zoom_level"))
        except (TypeError, ValueError):
            zoom = -1
        if not MIN_ZOOM <= zoom <= MAX_ZOOM:
            raise ValidationError(f"Zoom must be between {MIN_ZOOM} and {MAX_ZOOM}")
        item.zoom_level = zoom

    if "panel_images" in data:
        panels = data.get("panel_images") or {}
        if not isinstance(panels, dict):
            raise ValidationError("panel_images must be an object")
        valid_ids = {p.id for p in layout.panels} if layout else set()
        unknown = sorted(set(panels) - valid_ids)
        if unknown:
            raise ValidationError("Unknown panels for layout", details={"panels": unknown})
        item.panel_images_json = json.dumps({pid: _own_key(k, pid) for pid, k in panels.items()})

    # validates option ids and kinds as a side effect
    return price_breakdown(variation, item.options(), item.quantity)


def _line(item: CartItem, breakdown=None):
    breakdown = breakdown or price_breakdown(item.variation, item.options(), item.quantity)
    out = {
        "id": item.id,
        "variation": item.variation.to_dict(),
        "product": item.variation.product.to_dict(),
        "quantity": item.quantity,
    }
    out.update(item.options())
    out["price"] = breakdown_to_json(breakdown)
    return out, breakdown["total_price"]


def _get_item(item_id) -> CartItem:
    item = CartItem.query.filter_by(id=item_id, user_id=g.user.id).first()
    if not item:
        raise NotFoundError("Cart item not found")
    return item


@cart_bp.get("")
@require_permission(Permission.SHOP)
def list_cart():
    items = CartItem.query.filter_by(user_id=g.user.id).order_by(CartItem.created_at.asc()).all()
    lines = [_line(item) for item in items]
    subtotal = sum((total for _, total in lines), to_money(0))
    return jsonify(items=[line for line, _ in lines], subtotal=str(subtotal)), 200


@cart_bp.post("")
@require_permission(Permission.SHOP)
def add_to_cart():
    data = json_body()
    if data.get("variation_id") in (None, ""):
        raise ValidationError("Missing required fields", details={"variation_id": "required"})

    item = CartItem(user_id=g.user.id, quantity=parse_quantity(data.get("quantity", 1)))
    breakdown = apply_selection(item, data)
    db.session.add(item)
    db.session.commit()

    line, _ = _line(item, breakdown)
    return jsonify(line), 201


@cart_bp.patch("/<int:item_id>")
@require_permission(Permission.SHOP)
def update_cart_item(item_id):
    item = _get_item(item_id)
    data = json_body()
    if "quantity" in data:
        item.quantity = parse_quantity(data.get("quantity"))
    breakdown = apply_selection(item, data)
    db.session.commit()

    line, _ = _line(item, breakdown)
    return jsonify(line), 200


@cart_bp.delete("/<int:item_id>")
@require_permission(Permission.SHOP)
def remove_cart_item(item_id):
    item = _get_item(item_id)
    db.session.delete(item)
    db.session.commit()
    return jsonify(message="Removed"), 200


@cart_bp.delete("")
@require_permission(Permission.SHOP)
def clear_cart():
    removed = CartItem.query.filter_by(user_id=g.user.id).delete()
    db.session.commit()
    return jsonify(removed=removed), 200
