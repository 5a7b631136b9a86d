"""
Pytest fixtures for gymsales tests.

Provides an in-memory application, per-test table cleanup, two tenants and a
small catalog for each.
"""

from decimal import Decimal

import pytest

from gymsales import create_app
from gymsales.extensions import db
from gymsales.models import Gym, ProductCategory, Product, PaymentMethod, Client, Sale


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
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
    """Fresh tables for each test."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture(scope='function')
def gym_a(db_session):
    gym = Gym(name="Gym A - Iron Temple")
    db_session.add(gym)
    db_session.commit()
    return gym


@pytest.fixture(scope='function')
def gym_b(db_session):
    gym = Gym(name="Gym B - Flex Studio")
    db_session.add(gym)
    db_session.commit()
    return gym


@pytest.fixture(scope='function')
def category_a(db_session, gym_a):
    category = ProductCategory(gym_id=gym_a.id, name="Drinks", color="#1E88E5")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for products; defaults to a tracked, active product."""
    def _make(gym, name="Water", price="5.00", stock=10, track_inventory="simple", status="active", category=None):
        product = Product(
            gym_id=gym.id,
            category_id=category.id if category else None,
            name=name,
            price=Decimal(price),
            stock=stock,
            track_inventory=track_inventory,
            status=status,
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def product_a(make_product, gym_a, category_a):
    """Tracked product in Gym A: stock 10, price 5.00."""
    return make_product(gym_a, name="Water 500ml", category=category_a)


@pytest.fixture(scope='function')
def service_a(make_product, gym_a):
    """Untracked product (a service) in Gym A with a non-null stock value."""
    return make_product(gym_a, name="Towel rental", price="2.50", stock=3, track_inventory="none")


@pytest.fixture(scope='function')
def product_b(make_product, gym_b):
    return make_product(gym_b, name="Protein bar", price="3.00", stock=5)


@pytest.fixture(scope='function')
def cash_a(db_session, gym_a):
    method = PaymentMethod(gym_id=gym_a.id, name="Cash", code="cash", enabled=True)
    db_session.add(method)
    db_session.commit()
    return method


@pytest.fixture(scope='function')
def client_a(db_session, gym_a):
    gym_client = Client(gym_id=gym_a.id, client_number="C-0001", name="Ana Torres")
    db_session.add(gym_client)
    db_session.commit()
    return gym_client


def stock_of(product_id: int):
    """Current stock straight from the database."""
    return db.session.query(Product.stock).filter_by(id=product_id).scalar()


def sale_count(gym_id: int, include_deleted: bool = False) -> int:
    query = db.session.query(Sale).filter(Sale.gym_id == gym_id)
    if not include_deleted:
        query = query.filter(Sale.deleted_at.is_(None))
    return query.count()


def context_headers(gym, user_id: int = 7) -> dict:
    """Tenant and actor headers forwarded by the gateway."""
    return {'X-Gym-Id': str(gym.id), 'X-User-Id': str(user_id)}
