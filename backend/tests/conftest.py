"""
Pytest fixtures for ZnPOS backend tests.

Provides test database setup, two isolated tenants, principals and a test client.
"""

import pytest

from znpos import create_app
from znpos.extensions import db
from znpos.services.permission_service import Principal
from znpos.services.storage import Storage

PASSWORD_A = "secret-a1"
PASSWORD_B = "secret-b1"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BCRYPT_ROUNDS': 4,
        'EMPLOYEE_LIMIT': 10,
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
    # Clear all data (counters included) but keep schema
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def storage(app, db_session):
    return Storage(
        db_session,
        bcrypt_rounds=app.config['BCRYPT_ROUNDS'],
        employee_limit=app.config['EMPLOYEE_LIMIT'],
    )


@pytest.fixture(scope='function')
def tenant_a(storage):
    """Business A with its admin user, as (business, admin) dicts."""
    return storage.register_business(
        {"name": "Acme Corner Shop", "email": "shop@acme.test", "tax_rate": "0.0825"},
        {
            "username": "admin_a",
            "email": "admin@acme.test",
            "password": PASSWORD_A,
            "first_name": "Ada",
            "last_name": "Adams",
        },
    )


@pytest.fixture(scope='function')
def tenant_b(storage):
    """Business B with its admin user, as (business, admin) dicts."""
    return storage.register_business(
        {"name": "Beta Grocers", "email": "hello@beta.test", "tax_rate": "0.05"},
        {
            "username": "admin_b",
            "email": "admin@beta.test",
            "password": PASSWORD_B,
            "first_name": "Bo",
            "last_name": "Baker",
        },
    )


@pytest.fixture(scope='function')
def admin_a(storage, tenant_a):
    return storage.load_principal(tenant_a[1]["id"])


@pytest.fixture(scope='function')
def admin_b(storage, tenant_b):
    return storage.load_principal(tenant_b[1]["id"])


@pytest.fixture(scope='function')
def cashier_a(storage, admin_a):
    """Employee of business A with the default (pos only) permissions."""
    user = storage.create_employee(admin_a, {
        "username": "cashier_a",
        "email": "cashier@acme.test",
        "password": "till-pass",
        "first_name": "Cam",
        "last_name": "Cole",
    })
    return storage.load_principal(user["id"])


@pytest.fixture(scope='function')
def product_a(storage, admin_a):
    return storage.create_product(admin_a, {
        "name": "Green Tea",
        "price": "10.00",
        "cost": "4.00",
        "stock": 3,
        "low_stock_threshold": 5,
    })


@pytest.fixture(scope='function')
def product_b(storage, admin_b):
    return storage.create_product(admin_b, {
        "name": "Rye Bread",
        "price": "3.50",
        "stock": 40,
    })


@pytest.fixture
def make_principal():
    """Principal built in memory; the gate never consults the store."""
    return _make_principal


def _make_principal(business_id, role="employee", **flags):
    permissions = {code: False for code in ("pos", "inventory", "customers", "reports", "employees", "settings")}
    permissions.update(flags)
    return Principal(user_id=9999, business_id=business_id, role=role, permissions=permissions)


@pytest.fixture
def sale_payload():
    """Header and items for a one-line sale with consistent totals."""
    return _sale_payload


def _sale_payload(product, quantity=1, tax="0.00", **header):
    unit_cents = int(product["price"].replace(".", ""))
    line_cents = unit_cents * quantity
    tax_cents = int(tax.replace(".", ""))
    fmt = lambda cents: f"{cents // 100}.{cents % 100:02d}"
    txn = {
        "subtotal": fmt(line_cents),
        "tax_amount": tax,
        "total": fmt(line_cents + tax_cents),
        "payment_method": "cash",
        **header,
    }
    items = [{
        "product_id": product["id"],
        "quantity": quantity,
        "unit_price": product["price"],
        "total": fmt(line_cents),
    }]
    return txn, items
