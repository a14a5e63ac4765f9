from flask import Blueprint, jsonify, g

from models import db
from models.address import Address, ADDRESS_FIELDS, REQUIRED_ADDRESS_FIELDS
from security.rbac import Permission, require_permission
from utils.errors import NotFoundError, ValidationError
from utils.validation import clean_str, is_valid_phone, json_body, parse_bool, require_fields

addresses_bp = Blueprint("addresses", __name__, url_prefix="/store/addresses")


def clean_address(data: dict) -> dict:
    """Validated address fields; raises ValidationError listing every bad field."""
    if not isinstance(data, dict):
        raise ValidationError("Address must be an object")
    require_fields(data, *REQUIRED_ADDRESS_FIELDS)
    out = {f: clean_str(data.get(f), 255) for f in ADDRESS_FIELDS}
    if not is_valid_phone(out["phone"]):
        raise ValidationError("Invalid phone number", details={"phone": "invalid"})
    return out


def owned_address(address_id, user) -> Address:
    address = Address.query.filter_by(id=address_id, user_id=user.id).first()
    if not address:
        raise NotFoundError("Address not found")
    return address


def _set_default(address: Address):
    Address.query.filter(Address.user_id == address.user_id, Address.id != address.id).update(
        {"is_default": False}
    )
    address.is_default = True


@addresses_bp.get("")
@require_permission(Permission.SHOP)
def list_addresses():
    rows = Address.query.filter_by(user_id=g.user.id).order_by(Address.is_default.desc(), Address.id.asc()).all()
    return jsonify([r.to_dict() for r in rows]), 200


@addresses_bp.post("")
@require_permission(Permission.SHOP)
def create_address():
    data = json_body()
    address = Address(user_id=g.user.id, **clean_address(data))
    db.session.add(address)
    db.session.flush()
    if parse_bool(data.get("is_default", False)) or Address.query.filter_by(user_id=g.user.id).count() == 1:
        _set_default(address)
    db.session.commit()
    return jsonify(address.to_dict()), 201


@addresses_bp.put("/<int:address_id>")
@require_permission(Permission.SHOP)
def update_address(address_id):
    address = owned_address(address_id, g.user)
    data = json_body()
    for field, value in clean_address(data).items():
        setattr(address, field, value)
    if parse_bool(data.get("is_default", False)):
        _set_default(address)
    db.session.commit()
    return jsonify(address.to_dict()), 200


@addresses_bp.delete("/<int:address_id>")
@require_permission(Permission.SHOP)
def delete_address(address_id):
    address = owned_address(address_id, g.user)
    db.session.delete(address)
    db.session.commit()
    return jsonify(message="Deleted"), 200
