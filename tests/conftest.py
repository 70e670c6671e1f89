import pytest
import uuid
from decimal import Decimal

import fakeredis

from linq import create_app
from linq.database import get_session
from linq.models import Sale, SaleDetail, DiscountType
from linq.services.cache_service import get_cache


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app('config.TestConfig')
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session; sales tables are emptied after each test."""
    session = get_session()
    yield session
    session.rollback()
    session.query(SaleDetail).delete()
    session.query(Sale).delete()
    session.commit()
    session.remove()


@pytest.fixture(scope='function')
def cache(app):
    """Cache service backed by an in-process fake Redis, emptied per test."""
    cache = get_cache()
    cache.client = fakeredis.FakeRedis(decode_responses=True)
    yield cache
    cache.client.flushall()


@pytest.fixture(scope='function')
def make_sale(session):
    """Insert a sale row directly, bypassing the repository."""
    def _make(note='counter sale', total='100.00', deleted=False, lines=0):
        sale = Sale(
            uid=str(uuid.uuid4()),
            customer=str(uuid.uuid4()),
            user=str(uuid.uuid4()),
            discount=Decimal('0'),
            discount_type=DiscountType.FIXED,
            total=Decimal(total),
            total_payment=Decimal(total),
            payment_type='cash',
            note=note,
            deleted=deleted,
        )
        session.add(sale)
        session.flush()
        for _ in range(lines):
            session.add(SaleDetail(
                sale_uid=sale.uid,
                product=str(uuid.uuid4()),
                quantity=Decimal('1'),
                price=Decimal('10.00'),
                subtotal=Decimal('10.00'),
            ))
        session.commit()
        return sale.uid
    return _make
