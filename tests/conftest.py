import re
from datetime import date
from decimal import Decimal

import pytest

from app import create_app
from config import TestConfig
from models import db, User, Role, College, Department, Product, ProductVariation, ShippingType
from security.password import hash_password
from security.session import start_session

PASSWORD = "Str0ng!Passw0rd"
CSRF = "test-csrf-token"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(email="user@example.com", role=Role.CUSTOMER, **fields):
        user = User(email=email, password_hash=hash_password(PASSWORD), role=role, **fields)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def login_as(app, client):
    """Opens a session for the user and primes the CSRF double-submit cookie."""
    def _login(user):
        with app.test_request_context():
            token = start_session(user)
        client.set_cookie(app.config["AUTH_COOKIE_NAME"], token)
        client.set_cookie("csrf_token", CSRF)
        client.environ_base["HTTP_X_CSRF_TOKEN"] = CSRF
        return token
    return _login


@pytest.fixture
def college(app):
    college = College(
        name="Govt Polytechnic",
        name_normalized="govt polytechnic",
        address="Main Road",
        established_on=date(1990, 6, 1),
    )
    db.session.add(college)
    db.session.commit()
    return college


@pytest.fixture
def department(college):
    dept = Department(name="Civil", college_id=college.id)
    db.session.add(dept)
    db.session.commit()
    return dept


@pytest.fixture
def photo_variation(app):
    product = Product(name="Photo Print", category="photo", type="single")
    db.session.add(product)
    db.session.flush()
    variation = ProductVariation(
        product_id=product.id, label="8x12", horizontal_length=8, vertical_length=12, price=Decimal("950.00"),
    )
    db.session.add(variation)
    db.session.commit()
    return variation


@pytest.fixture
def shipping(app):
    row = ShippingType(name="Express", price=Decimal("150.00"))
    db.session.add(row)
    db.session.commit()
    return row


def solve_captcha(question: str) -> str:
    a, op, b = re.match(r"What is (\d+) (\S) (\d+)\?", question).groups()
    a, b = int(a), int(b)
    if op == "+":
        return str(a + b)
    if op == "-":
        return str(a - b)
    return str(a * b)


def captcha_fields(client) -> dict:
    challenge = client.get("/auth/captcha").get_json()
    return {
        "captcha_answer": solve_captcha(challenge["question"]),
        "captcha_hash": challenge["hash"],
        "captcha_expires_at": challenge["expires_at"],
    }
