"""
Pytest fixtures for pharmacy backend tests.

Provides the application on an in-memory database, a clean session per
test, and an item factory.
"""

from datetime import date, timedelta

import pytest
from pharmacy import create_app
from pharmacy.config import TestingConfig
from pharmacy.extensions import db
from pharmacy.models import Item, Sale


# Fixed business date so expiration boundaries are deterministic
TODAY = date(2026, 3, 15)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

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
    """Fresh tables for each test (schema is kept)."""
    # Clear all data but keep schema
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def make_item(db_session):
    """Factory writing Item rows directly (bypasses service rules on purpose)."""
    def _make(
        name="Paracetamol 500mg",
        unit_price_cents=350,
        stock=10,
        expiration_date=None,
        is_active=True,
        description=None,
    ) -> Item:
        item = Item(
            name=name,
            description=description,
            unit_price_cents=unit_price_cents,
            stock=stock,
            expiration_date=expiration_date,
            is_active=is_active,
        )
        db_session.add(item)
        db_session.commit()
        return item

    return _make


def reload_item(item_id: int) -> Item:
    """Read the current row, bypassing the identity map."""
    return db.session.get(Item, item_id, populate_existing=True)


def sale_count() -> int:
    return db.session.query(Sale).count()


def days(n: int) -> date:
    return TODAY + timedelta(days=n)
