from decimal import Decimal

import pytest

from models import db, Role, Order, Payment, CartItem, Product, ProductVariation

ADDRESS = {
    "full_name": "Asha Rao",
    "phone": "+91 98450 12345",
    "line1": "12 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "postal_code": "560001",
    "country": "IN",
}


@pytest.fixture
def customer(make_user, login_as):
    user = make_user("buyer@example.com", role=Role.CUSTOMER)
    login_as(user)
    return user


def _checkout(client, shipping, total, **extra):
    body = {"shipping_type_id": shipping.id, "shipping_address": ADDRESS, "total_amount": total}
    body.update(extra)
    return client.post("/store/checkout", json=body)


def test_cart_line_is_priced(client, customer, photo_variation):
    resp = client.post("/store/cart", json={"variation_id": photo_variation.id, "quantity": 2})
    assert resp.status_code == 201
    assert resp.get_json()["price"]["total_price"] == "1900.00"

    cart = client.get("/store/cart").get_json()
    assert cart["subtotal"] == "1900.00"
    assert len(cart["items"]) == 1


def test_cart_requires_login(client, photo_variation):
    assert client.post("/store/cart", json={"variation_id": photo_variation.id}).status_code == 401


def test_multi_panel_product_needs_layout(client, customer):
    product = Product(name="Fabric Wall", category="fabric", type="multi")
    db.session.add(product)
    db.session.flush()
    variation = ProductVariation(product_id=product.id, label="Std", horizontal_length=72,
                                 vertical_length=36, price=Decimal("4000.00"))
    db.session.add(variation)
    db.session.commit()

    assert client.post("/store/cart", json={"variation_id": variation.id}).status_code == 400

    resp = client.post("/store/cart", json={
        "variation_id": variation.id,
        "layout_id": "3panel-2",
        "panel_images": {"panel-4": None},
    })
    assert resp.status_code == 400

    resp = client.post("/store/cart", json={"variation_id": variation.id, "layout_id": "3panel-2"})
    assert resp.status_code == 201
    assert resp.get_json()["layout_id"] == "3panel-2"


def test_cart_rejects_someone_elses_image(client, customer, photo_variation):
    resp = client.post("/store/cart", json={
        "variation_id": photo_variation.id,
        "image_key": f"profile/{customer.id + 1}/abc.png",
    })
    assert resp.status_code == 403


def test_checkout_total_mismatch_rejected(client, customer, photo_variation, shipping):
    client.post("/store/cart", json={"variation_id": photo_variation.id, "quantity": 2})

    resp = _checkout(client, shipping, "100.00")
    assert resp.status_code == 400
    assert resp.get_json()["details"] == {"expected": "2050.00", "received": "100.00"}
    assert Order.query.count() == 0
    assert CartItem.query.count() == 1


def test_checkout_places_order_and_empties_cart(client, customer, photo_variation, shipping):
    client.post("/store/cart", json={"variation_id": photo_variation.id, "quantity": 2})

    resp = _checkout(client, shipping, "2050.00")
    assert resp.status_code == 201
    order = resp.get_json()["order"]
    assert order["total_amount"] == "2050.00"
    assert order["order_status"] == "pending"
    assert order["payment_status"] == "pending"
    assert [i["total_price"] for i in order["items"]] == ["1900.00"]
    assert sorted(a["kind"] for a in order["addresses"]) == ["BILLING", "SHIPPING"]
    assert CartItem.query.count() == 0

    listed = client.get("/store/orders").get_json()
    assert listed["total"] == 1


def test_checkout_with_inline_items(client, customer, photo_variation, shipping):
    resp = _checkout(client, shipping, 1100, items=[{"variation_id": photo_variation.id, "quantity": 1}])
    assert resp.status_code == 201


def test_empty_cart_cannot_check_out(client, customer, shipping):
    assert _checkout(client, shipping, "150.00").status_code == 400


def test_payment_session_and_webhook(client, customer, photo_variation, shipping, monkeypatch):
    client.post("/store/cart", json={"variation_id": photo_variation.id})
    order_id = _checkout(client, shipping, "1100.00").get_json()["order"]["id"]

    created = {}

    def fake_create(**kwargs):
        created.update(kwargs)
        return {"id": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    monkeypatch.setattr("stripe.checkout.Session.create", fake_create)
    resp = client.post(f"/store/orders/{order_id}/pay")
    assert resp.status_code == 200
    assert resp.get_json()["checkout_url"].endswith("cs_test_1")
    assert created["line_items"][0]["price_data"]["unit_amount"] == 110000

    payment = Payment.query.filter_by(order_id=order_id).one()
    event = {
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_test_1", "metadata": {"payment_id": str(payment.id)}}},
    }
    monkeypatch.setattr("stripe.Webhook.construct_event", lambda payload, sig, secret: event)
    resp = client.post("/webhooks/stripe", data=b"{}", headers={"Stripe-Signature": "t=1,v1=x"})
    assert resp.status_code == 200

    assert db.session.get(Payment, payment.id).status == "PAID"
    assert db.session.get(Order, order_id).payment_status == "paid"


def test_store_admin_moves_order_forward_only(client, make_user, login_as, customer, photo_variation, shipping):
    client.post("/store/cart", json={"variation_id": photo_variation.id})
    order_id = _checkout(client, shipping, "1100.00").get_json()["order"]["id"]

    login_as(make_user("store@example.com", role=Role.STORE_ADMIN))
    path = f"/store/admin/orders/{order_id}/status"
    assert client.patch(path, json={"order_status": "shipped"}).status_code == 400
    assert client.patch(path, json={"order_status": "processing"}).status_code == 200
    assert client.patch(path, json={"order_status": "shipped"}).status_code == 200
    assert client.patch(path, json={"order_status": "pending"}).status_code == 400

    detail = client.get(f"/store/admin/orders/{order_id}").get_json()
    assert detail["order_status"] == "shipped"
    assert detail["payments"] == []


def test_catalog_is_public(client, photo_variation, shipping):
    products = client.get("/store/products").get_json()
    assert [p["name"] for p in products] == ["Photo Print"]

    detail = client.get(f"/store/products/{photo_variation.product_id}").get_json()
    assert detail["variations"][0]["label"] == "8x12"
    assert detail["layouts"] == []

    assert client.get("/store/shipping-types").get_json()[0]["name"] == "Express"
