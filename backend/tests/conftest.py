"""
Pytest fixtures for Aura backend tests.

Provides test database setup, catalog/offer fixtures, signed-in users and
test client.
"""

import pytest
from aura import create_app
from aura.extensions import db
from aura.models import User, Product, ProductVariant, InventoryOffer
from aura.services import session_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'OTP_DEMO_MODE': True,
        'ADMIN_EMAILS': ['admin@aura.com'],
        'ADMIN_PHONES': ['+919999999999'],
        'TRUST_CLIENT_OFFER_PRICE': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_user(db_session, email=None, phone=None, name="Test User", role="customer") -> User:
    user = User(
        email=email,
        phone=phone,
        name=name,
        role=role,
        preference_notes=[],
        preference_categories=[],
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def customer(db_session):
    return make_user(db_session, email="ana@example.com", name="Ana")


@pytest.fixture(scope='function')
def other_customer(db_session):
    return make_user(db_session, email="ben@example.com", name="Ben")


@pytest.fixture(scope='function')
def admin(db_session):
    return make_user(db_session, email="admin@aura.com", name="Admin", role="admin")


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def login(user: User) -> dict:
    """Open a session for the user and return request headers."""
    _, token = session_service.create_session(user_id=user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def customer_headers(customer):
    return login(customer)


@pytest.fixture(scope='function')
def other_customer_headers(other_customer):
    return login(other_customer)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return login(admin)


@pytest.fixture(scope='function')
def product(db_session):
    """Catalog product with two variants: 5 x 10000 and 2 x 4500."""
    product = Product(
        name="Oud Noir",
        description="Smoky oud with rose",
        category="Fine Fragrance",
        notes=["Oud", "Rose"],
        image="/img/oud-noir.jpg",
    )
    product.variants.append(ProductVariant(name="50ml", type="EDP", price_cents=10000, stock=5, sku="OUD-50"))
    product.variants.append(ProductVariant(name="10ml", type="Roll-on", price_cents=4500, stock=2, sku="OUD-10"))
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def offer(db_session):
    """Inventory offer: MRP 100.00, '180 for 2', 10 units."""
    offer = InventoryOffer(
        category="Agarbatti",
        item="Sandal Sticks",
        size="100g",
        quantity=10,
        mrp_cents=10000,
        offer="180 for 2",
    )
    db_session.add(offer)
    db_session.commit()
    return offer


def stock_of(variant_or_offer) -> int:
    """Fresh stock figure from the database."""
    db.session.refresh(variant_or_offer)
    if isinstance(variant_or_offer, InventoryOffer):
        return variant_or_offer.quantity
    return variant_or_offer.stock
