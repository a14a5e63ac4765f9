"""
Print price calculator.

unit price = base size price + image effect + edge design
             + hanging mechanism (when chosen) + hanging variety
             + frame thickness, colour and type + floating frame colour
             + product type + acrylic cover (when chosen)
line total = unit price x quantity

All arithmetic is Decimal, quantized to paise/cents only at the end.
"""
from decimal import Decimal, ROUND_HALF_UP

from models.catalog_option import AcrylicCoverPrice, CatalogOption, OptionKind, VariationOptionPrice, HangingPrice
from models.product import ProductVariation
from utils.errors import ValidationError, NotFoundError

ZERO = Decimal("0")
CENTS = Decimal("0.01")

# selection field -> option kind it must reference
OPTION_FIELDS = {
    "image_effect_id": OptionKind.IMAGE_EFFECT,
    "edge_design_id": OptionKind.EDGE_DESIGN,
    "hanging_variety_id": OptionKind.HANGING_VARIETY,
    "frame_thickness_id": OptionKind.FRAME_THICKNESS,
    "frame_colour_id": OptionKind.FRAME_COLOUR,
    "frame_type_id": OptionKind.FRAME_TYPE,
    "floating_frame_colour_id": OptionKind.FLOATING_FRAME_COLOUR,
    "product_type_id": OptionKind.PRODUCT_TYPE,
}

# yes/no selections priced from their own tables
TOGGLE_FIELDS = ("hanging_mechanism", "acrylic_cover")

MAX_QUANTITY = 100


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def is_yes(value) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() in ("yes", "true", "1")


def _applies(applicability, product_id, product) -> bool:
    if applicability == "all":
        return True
    if applicability == "specific":
        return product_id is not None and product_id == product.id
    return applicability == product.category


def option_price(option: CatalogOption, variation: ProductVariation) -> Decimal:
    """Variation override, else the catalog price when it applies, else 0."""
    override = VariationOptionPrice.query.filter_by(
        variation_id=variation.id, option_id=option.id, status="active"
    ).first()
    if override is not None:
        return Decimal(override.price)

    if _applies(option.applicability, option.product_id, variation.product):
        return Decimal(option.price)
    return ZERO


def _tiered_price(model, variation: ProductVariation) -> Decimal:
    """variation-specific > product-specific > category > all."""
    rows = model.query.filter_by(status="active").all()
    product = variation.product

    def rank(row):
        if row.variation_id is not None:
            return 0 if row.variation_id == variation.id else None
        if row.applicability == "specific":
            return 1 if row.product_id == product.id else None
        if row.applicability == product.category:
            return 2
        if row.applicability == "all":
            return 3
        return None

    ranked = [(rank(r), r) for r in rows]
    ranked = [(k, r) for k, r in ranked if k is not None]
    if not ranked:
        return ZERO
    ranked.sort(key=lambda pair: (pair[0], pair[1].id))
    return Decimal(ranked[0][1].price)


def hanging_base_price(variation: ProductVariation) -> Decimal:
    return _tiered_price(HangingPrice, variation)


def acrylic_cover_price(variation: ProductVariation) -> Decimal:
    return _tiered_price(AcrylicCoverPrice, variation)


def _load_option(option_id, kind: OptionKind):
    if option_id in (None, "", 0):
        return None
    try:
        option_id = int(option_id)
    except (TypeError, ValueError):
        raise ValidationError("Invalid option id", details={kind.value: option_id})
    option = CatalogOption.query.filter_by(id=option_id, status="active").first()
    if option is None or option.kind != kind:
        raise ValidationError("Unknown option", details={kind.value: option_id})
    return option


def parse_quantity(value) -> int:
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Quantity must be a whole number")
    if quantity < 1 or quantity > MAX_QUANTITY:
        raise ValidationError(f"Quantity must be between 1 and {MAX_QUANTITY}")
    return quantity


def load_variation(variation_id) -> ProductVariation:
    variation = None
    if isinstance(variation_id, int) or (isinstance(variation_id, str) and variation_id.isdigit()):
        variation = ProductVariation.query.filter_by(id=int(variation_id), status="active").first()
    if variation is None or not variation.product.is_active:
        raise NotFoundError("Product variation not found")
    return variation


def unit_price(base, *extras) -> Decimal:
    return sum((Decimal(str(p)) for p in (base,) + extras), ZERO)


def line_total(unit, quantity: int) -> Decimal:
    return to_money(Decimal(str(unit)) * quantity)


def price_breakdown(variation: ProductVariation, selections: dict, quantity: int) -> dict:
    components = {"base": Decimal(variation.price)}

    for field, kind in OPTION_FIELDS.items():
        option = _load_option(selections.get(field), kind)
        components[kind.value.lower()] = option_price(option, variation) if option else ZERO

    components["hanging_mechanism"] = (
        hanging_base_price(variation) if is_yes(selections.get("hanging_mechanism")) else ZERO
    )
    components["acrylic_cover"] = (
        acrylic_cover_price(variation) if is_yes(selections.get("acrylic_cover")) else ZERO
    )

    unit = unit_price(*components.values())
    return {
        "components": {k: to_money(v) for k, v in components.items()},
        "unit_price": to_money(unit),
        "quantity": quantity,
        "total_price": line_total(unit, quantity),
    }


def breakdown_to_json(breakdown: dict) -> dict:
    return {
        "components": {k: str(v) for k, v in breakdown["components"].items()},
        "unit_price": str(breakdown["unit_price"]),
        "quantity": breakdown["quantity"],
        "total_price": str(breakdown["total_price"]),
    }
