"""
Pytest fixtures for the till and credit ledger backend tests.

Provides the test application (in-memory SQLite), a per-test table wipe,
business units, staff members and customers.
"""

import pytest
from tillcore import create_app
from tillcore.config import TestConfig
from tillcore.extensions import db
from tillcore.models import BusinessUnit, Staff, Customer


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

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


@pytest.fixture(scope='function')
def unit(db_session):
    """Main store front."""
    bu = BusinessUnit(name="Main Street Cafe", code="MAIN", is_active=True)
    db_session.add(bu)
    db_session.commit()
    return bu


@pytest.fixture(scope='function')
def other_unit(db_session):
    """Second store front in the same deployment."""
    bu = BusinessUnit(name="Harbour Kiosk", code="HARB", is_active=True)
    db_session.add(bu)
    db_session.commit()
    return bu


@pytest.fixture(scope='function')
def cashier(db_session, unit):
    staff = Staff(name="Dana Cashier", role="cashier", business_unit_id=unit.id)
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def other_cashier(db_session, unit):
    staff = Staff(name="Robin Cashier", role="cashier", business_unit_id=unit.id)
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def manager(db_session, unit):
    staff = Staff(name="Sam Manager", role="manager", business_unit_id=unit.id)
    db_session.add(staff)
    db_session.commit()
    return staff


@pytest.fixture(scope='function')
def customer(db_session, unit):
    """Customer C: no credit limit, zero balance."""
    c = Customer(business_unit_id=unit.id, name="Customer C", current_balance_cents=0)
    db_session.add(c)
    db_session.commit()
    return c


@pytest.fixture(scope='function')
def limited_customer(db_session, unit):
    """Customer with a 50.00 credit limit."""
    c = Customer(business_unit_id=unit.id, name="Limited Lee", credit_limit_cents=5000, current_balance_cents=0)
    db_session.add(c)
    db_session.commit()
    return c


def staff_headers(staff, business_unit_id: int | None = None) -> dict:
    """Identity headers as forwarded by the auth gateway."""
    headers = {"X-Staff-Id": str(staff.id)}
    if business_unit_id is not None:
        headers["X-Business-Unit-Id"] = str(business_unit_id)
    return headers


@pytest.fixture
def headers_for():
    return staff_headers
