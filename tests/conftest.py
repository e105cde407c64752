import os
import uuid
import pytest

from config import TestingConfig
from shoppos import create_app
from shoppos.database import get_session, init_schema, drop_schema
from shoppos.models import (
    Business, AppUser, Shop, ShopProduct, Customer, Debt
)


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application instance for testing (SQLite unless TEST_DATABASE_URL is set)."""
    db_path = tmp_path_factory.mktemp('db') / 'shoppos-test.db'

    class Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL') or f'sqlite:///{db_path}'

    return create_app(Config)


@pytest.fixture(scope='function')
def session(app):
    """Database session with a fresh schema; the app context stays pushed for the whole test."""
    with app.app_context():
        init_schema()
        db_session = get_session()
        yield db_session
        db_session.rollback()
        db_session.remove()
        drop_schema()


@pytest.fixture(scope='function')
def client(app, session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def business1(session):
    """Create first test business."""
    business = Business(name=f'Test Business 1 {str(uuid.uuid4())[:8]}')
    session.add(business)
    session.commit()
    return business


@pytest.fixture(scope='function')
def business2(session):
    """Create second test business for isolation tests."""
    business = Business(name=f'Test Business 2 {str(uuid.uuid4())[:8]}')
    session.add(business)
    session.commit()
    return business


@pytest.fixture(scope='function')
def user1(session, business1):
    """Create operator for business1."""
    suffix = str(uuid.uuid4())[:8]
    user = AppUser(
        email=f'user1-{suffix}@test.com',
        full_name='User One',
        business_id=business1.id,
        active=True
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def user2(session, business2):
    """Create operator for business2."""
    suffix = str(uuid.uuid4())[:8]
    user = AppUser(
        email=f'user2-{suffix}@test.com',
        full_name='User Two',
        business_id=business2.id,
        active=True
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def shop1(session, business1):
    """Create shop for business1."""
    shop = Shop(business_id=business1.id, name='Main Shop', location='Market Road')
    session.add(shop)
    session.commit()
    return shop


@pytest.fixture(scope='function')
def shop2(session, business2):
    """Create shop for business2."""
    shop = Shop(business_id=business2.id, name='Other Shop')
    session.add(shop)
    session.commit()
    return shop


@pytest.fixture(scope='function')
def make_product(session):
    """Factory inserting a stocked product into a shop."""
    def _make_product(shop, name, quantity, selling_price=500):
        product = ShopProduct(
            shop_id=shop.id,
            business_id=shop.business_id,
            name=name,
            quantity=quantity,
            selling_price=selling_price,
            cost_price=selling_price // 2
        )
        session.add(product)
        session.commit()
        return product
    return _make_product


@pytest.fixture(scope='function')
def product1(make_product, shop1):
    """Headlamp with 10 units in shop1."""
    return make_product(shop1, 'Headlamp H4', 10)


@pytest.fixture(scope='function')
def product2(make_product, shop1):
    """Tail lamp with 5 units in shop1."""
    return make_product(shop1, 'Tail Lamp', 5, selling_price=300)


@pytest.fixture(scope='function')
def product_business2(make_product, shop2):
    """Product owned by business2."""
    return make_product(shop2, 'Foreign Lamp', 20)


@pytest.fixture(scope='function')
def customer1(session, business1):
    """Customer of business1."""
    customer = Customer(business_id=business1.id, full_name='Ada Okafor', phone='0803000111')
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_business2(session, business2):
    """Customer of business2."""
    customer = Customer(business_id=business2.id, full_name='Bola Ade', phone='0803000222')
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def open_debt(session, customer1):
    """Existing open debt of 1500 for customer1."""
    debt = Debt(
        customer_id=customer1.id,
        business_id=customer1.business_id,
        total_amount=1500,
        amount_paid=0,
        balance=1500,
        is_cleared=False
    )
    session.add(debt)
    session.commit()
    return debt


@pytest.fixture(scope='function')
def authenticated_client(client, user1):
    """Create authenticated client for business1."""
    with client.session_transaction() as sess:
        sess['user_id'] = user1.id
    return client
