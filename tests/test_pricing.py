from decimal import Decimal

import pytest

from models import (
    db, AcrylicCoverPrice, CatalogOption, OptionKind, VariationOptionPrice, HangingPrice, Product, ProductVariation,
)
from utils.errors import NotFoundError, ValidationError
from utils.pricing import line_total, parse_quantity, price_breakdown, unit_price, load_variation


def _option(kind, price, applicability="all", product_id=None):
    row = CatalogOption(kind=kind, name=f"{kind.value}-{price}", price=Decimal(price),
                        applicability=applicability, product_id=product_id)
    db.session.add(row)
    db.session.commit()
    return row


def test_unit_price_sums_components():
    assert unit_price(Decimal("950"), Decimal("100"), Decimal("50"), Decimal("200"), Decimal("25"), Decimal("75")) \
        == Decimal("1400")


def test_line_total_scales_with_quantity():
    unit = Decimal("123.45")
    assert line_total(unit, 2) == 2 * line_total(unit, 1)
    assert line_total(unit, 3) == Decimal("370.35")


@pytest.mark.parametrize("value", [0, -1, 101, "two", None])
def test_quantity_bounds(value):
    with pytest.raises(ValidationError):
        parse_quantity(value)


def test_breakdown_with_options(photo_variation):
    effect = _option(OptionKind.IMAGE_EFFECT, "100.00")
    edge = _option(OptionKind.EDGE_DESIGN, "50.00", applicability="photo")
    _option(OptionKind.FRAME_THICKNESS, "999.00", applicability="canvas")

    breakdown = price_breakdown(photo_variation, {"image_effect_id": effect.id, "edge_design_id": edge.id}, 2)
    assert breakdown["unit_price"] == Decimal("1100.00")
    assert breakdown["total_price"] == Decimal("2200.00")


def test_option_outside_category_is_free(photo_variation):
    thick = _option(OptionKind.FRAME_THICKNESS, "999.00", applicability="canvas")
    breakdown = price_breakdown(photo_variation, {"frame_thickness_id": thick.id}, 1)
    assert breakdown["components"]["frame_thickness"] == Decimal("0.00")


def test_variation_override_wins(photo_variation):
    effect = _option(OptionKind.IMAGE_EFFECT, "100.00")
    db.session.add(VariationOptionPrice(variation_id=photo_variation.id, option_id=effect.id, price=Decimal("40.00")))
    db.session.commit()

    breakdown = price_breakdown(photo_variation, {"image_effect_id": effect.id}, 1)
    assert breakdown["components"]["image_effect"] == Decimal("40.00")


def test_option_of_wrong_kind_rejected(photo_variation):
    edge = _option(OptionKind.EDGE_DESIGN, "50.00")
    with pytest.raises(ValidationError):
        price_breakdown(photo_variation, {"image_effect_id": edge.id}, 1)


def test_hanging_price_resolution_order(photo_variation):
    product = photo_variation.product
    db.session.add_all([
        HangingPrice(applicability="all", price=Decimal("10.00")),
        HangingPrice(applicability="photo", price=Decimal("20.00")),
    ])
    db.session.commit()
    selection = {"hanging_mechanism": "yes"}
    assert price_breakdown(photo_variation, selection, 1)["components"]["hanging_mechanism"] == Decimal("20.00")

    db.session.add(HangingPrice(applicability="specific", product_id=product.id, price=Decimal("30.00")))
    db.session.commit()
    assert price_breakdown(photo_variation, selection, 1)["components"]["hanging_mechanism"] == Decimal("30.00")

    db.session.add(HangingPrice(variation_id=photo_variation.id, price=Decimal("40.00")))
    db.session.commit()
    assert price_breakdown(photo_variation, selection, 1)["components"]["hanging_mechanism"] == Decimal("40.00")

    assert price_breakdown(photo_variation, {"hanging_mechanism": "no"}, 1)["components"]["hanging_mechanism"] \
        == Decimal("0.00")


def test_inactive_variation_not_found(app):
    product = Product(name="Canvas", category="canvas")
    db.session.add(product)
    db.session.flush()
    variation = ProductVariation(product_id=product.id, label="A", horizontal_length=1, vertical_length=1,
                                 price=Decimal("1"), status="inactive")
    db.session.add(variation)
    db.session.commit()
    with pytest.raises(NotFoundError):
        load_variation(variation.id)


def test_price_endpoint(client, photo_variation):
    resp = client.post("/store/price", json={"variation_id": photo_variation.id, "quantity": 3})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["unit_price"] == "950.00"
    assert body["total_price"] == "2850.00"


def test_frame_options_add_to_unit_price(photo_variation):
    colour = _option(OptionKind.FRAME_COLOUR, "120.00", applicability="photo")
    frame_type = _option(OptionKind.FRAME_TYPE, "80.00")
    floating = _option(OptionKind.FLOATING_FRAME_COLOUR, "60.00", applicability="specific",
                       product_id=photo_variation.product_id)
    print_type = _option(OptionKind.PRODUCT_TYPE, "40.00")

    selection = {
        "frame_colour_id": colour.id,
        "frame_type_id": frame_type.id,
        "floating_frame_colour_id": floating.id,
        "product_type_id": print_type.id,
    }
    breakdown = price_breakdown(photo_variation, selection, 1)
    assert breakdown["components"]["frame_colour"] == Decimal("120.00")
    assert breakdown["components"]["floating_frame_colour"] == Decimal("60.00")
    assert breakdown["unit_price"] == Decimal("1250.00")


def test_frame_colour_for_another_product_is_free(photo_variation):
    colour = _option(OptionKind.FRAME_COLOUR, "120.00", applicability="specific",
                     product_id=photo_variation.product_id + 1)
    breakdown = price_breakdown(photo_variation, {"frame_colour_id": colour.id}, 1)
    assert breakdown["components"]["frame_colour"] == Decimal("0.00")


def test_frame_type_variation_override(photo_variation):
    frame_type = _option(OptionKind.FRAME_TYPE, "80.00")
    db.session.add(VariationOptionPrice(variation_id=photo_variation.id, option_id=frame_type.id,
                                        price=Decimal("55.00")))
    db.session.commit()
    breakdown = price_breakdown(photo_variation, {"frame_type_id": frame_type.id}, 1)
    assert breakdown["components"]["frame_type"] == Decimal("55.00")


def test_acrylic_cover_resolution_order(photo_variation):
    product = photo_variation.product
    selection = {"acrylic_cover": "yes"}
    assert price_breakdown(photo_variation, selection, 1)["components"]["acrylic_cover"] == Decimal("0.00")

    db.session.add_all([
        AcrylicCoverPrice(applicability="all", price=Decimal("15.00")),
        AcrylicCoverPrice(applicability="canvas", price=Decimal("99.00")),
    ])
    db.session.commit()
    assert price_breakdown(photo_variation, selection, 1)["components"]["acrylic_cover"] == Decimal("15.00")

    db.session.add(AcrylicCoverPrice(applicability="photo", price=Decimal("25.00")))
    db.session.commit()
    assert price_breakdown(photo_variation, selection, 1)["components"]["acrylic_cover"] == Decimal("25.00")

    db.session.add(AcrylicCoverPrice(applicability="specific", product_id=product.id, price=Decimal("35.00")))
    db.session.commit()
    assert price_breakdown(photo_variation, selection, 1)["components"]["acrylic_cover"] == Decimal("35.00")

    db.session.add(AcrylicCoverPrice(variation_id=photo_variation.id, price=Decimal("45.00")))
    db.session.commit()
    breakdown = price_breakdown(photo_variation, selection, 2)
    assert breakdown["components"]["acrylic_cover"] == Decimal("45.00")
    assert breakdown["total_price"] == Decimal("1990.00")

    assert price_breakdown(photo_variation, {"acrylic_cover": "no"}, 1)["components"]["acrylic_cover"] \
        == Decimal("0.00")


def test_acrylic_cover_and_hanging_tables_are_separate(photo_variation):
    db.session.add(HangingPrice(applicability="all", price=Decimal("10.00")))
    db.session.commit()
    breakdown = price_breakdown(photo_variation, {"acrylic_cover": True}, 1)
    assert breakdown["components"]["acrylic_cover"] == Decimal("0.00")
    assert breakdown["components"]["hanging_mechanism"] == Decimal("0.00")


def test_cart_keeps_frame_selection(client, make_user, login_as, photo_variation):
    colour = _option(OptionKind.FRAME_COLOUR, "120.00")
    db.session.add(AcrylicCoverPrice(applicability="all", price=Decimal("30.00")))
    db.session.commit()
    login_as(make_user())

    resp = client.post("/store/cart", json={
        "variation_id": photo_variation.id, "quantity": 1, "frame_colour_id": colour.id, "acrylic_cover": "yes",
    })
    assert resp.status_code == 201
    cart = client.get("/store/cart").get_json()
    line = cart["items"][0]
    assert line["frame_colour_id"] == colour.id
    assert line["acrylic_cover"] is True
    assert line["price"]["unit_price"] == "1100.00"
    assert cart["subtotal"] == "1100.00"
