import os
import uuid
from decimal import Decimal

import pytest

from marketplace_checkout import create_app
from marketplace_checkout.database import get_database
from marketplace_checkout.models import (
    AddressType, AppUser, CartItem, Order, OrderItem, Product, UserAddress
)
from marketplace_checkout.services.notification_service import build_checkout_event


class RecordingNotifier:
    """Stands in for the Redis notifier; keeps published events in memory."""

    def __init__(self):
        self.events = []

    def publish_checkout_completed(self, order):
        self.events.append(build_checkout_event(order))
        return True


def _database_uri(tmp_path):
    # Point TEST_DATABASE_URL at PostgreSQL to run the suite against it
    return os.environ.get('TEST_DATABASE_URL') or f"sqlite:///{tmp_path / 'checkout.db'}"


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application instance backed by a fresh database."""
    app = create_app('config.TestConfig', overrides={
        'SQLALCHEMY_DATABASE_URI': _database_uri(tmp_path),
    })
    with app.app_context():
        database = get_database()
        database.drop_all()
        database.create_all()

    app.extensions['notifier'] = RecordingNotifier()
    yield app
    app.extensions['database'].dispose()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def database(app):
    return app.extensions['database']


@pytest.fixture(scope='function')
def notifier(app):
    return app.extensions['notifier']


@pytest.fixture(scope='function')
def session(database):
    """Standalone session for arranging and inspecting data."""
    session = database.new_session()
    yield session
    session.rollback()
    session.close()


def _make_user(session, prefix):
    suffix = str(uuid.uuid4())[:8]
    user = AppUser(username=f'{prefix}-{suffix}', email=f'{prefix}-{suffix}@test.com', active=True)
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def seller(session):
    """Create a seller."""
    return _make_user(session, 'seller')


@pytest.fixture(scope='function')
def buyer(session):
    """Create a buyer."""
    return _make_user(session, 'buyer')


@pytest.fixture(scope='function')
def other_buyer(session):
    """Create a second buyer for race scenarios."""
    return _make_user(session, 'buyer2')


@pytest.fixture(scope='function')
def make_user(session):
    """Factory: extra users beyond the default seller and buyers."""
    def _make(prefix='user'):
        return _make_user(session, prefix)
    return _make


@pytest.fixture(scope='function')
def make_addresses(session):
    """Factory: shipping and billing address for a user."""
    def _make(user):
        shipping = UserAddress(user_id=user.id, address_type=AddressType.SHIPPING.value,
                               line1='10 Shipping Rd', city='Portland', postal_code='97201')
        billing = UserAddress(user_id=user.id, address_type=AddressType.BILLING.value,
                              line1='20 Billing Ave', city='Portland', postal_code='97202')
        session.add_all([shipping, billing])
        session.commit()
        return shipping.id, billing.id
    return _make


@pytest.fixture(scope='function')
def addresses(make_addresses, buyer):
    """(shipping_id, billing_id) for the default buyer."""
    return make_addresses(buyer)


@pytest.fixture(scope='function')
def make_product(session, seller):
    """Factory: product with price/stock, listed by ``seller`` unless overridden."""
    def _make(price='10.00', quantity=5, owner=None, name=None, **kwargs):
        owner = owner or seller
        suffix = str(uuid.uuid4())[:6]
        product = Product(
            seller_id=owner.id,
            name=name or f'Product {suffix}',
            sku=f'SKU-{suffix}',
            price=Decimal(price),
            quantity=quantity,
            image_url=f'https://img.test/{suffix}.jpg',
            **kwargs
        )
        session.add(product)
        session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def put_in_cart(session):
    """Factory: insert a cart line directly, bypassing the advisory stock check."""
    def _put(user, product, quantity):
        line = CartItem(user_id=user.id, product_id=product.id, quantity=quantity)
        session.add(line)
        session.commit()
        return line
    return _put


@pytest.fixture(scope='function')
def inspect_db(session):
    """Fresh reads of the state a test asserts on."""
    class _Inspector:
        def stock(self, product_id):
            session.expire_all()
            return session.query(Product.quantity).filter(Product.id == product_id).scalar()

        def cart_lines(self, user_id):
            session.expire_all()
            return session.query(CartItem).filter(CartItem.user_id == user_id).count()

        def order_count(self, buyer_id=None):
            session.expire_all()
            query = session.query(Order)
            if buyer_id is not None:
                query = query.filter(Order.buyer_id == buyer_id)
            return query.count()

        def order_item_count(self):
            session.expire_all()
            return session.query(OrderItem).count()

    return _Inspector()
