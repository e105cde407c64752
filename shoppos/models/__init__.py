"""Models package - exports all SQLAlchemy models."""
from shoppos.models.business import Business
from shoppos.models.app_user import AppUser
from shoppos.models.shop import Shop
from shoppos.models.shop_product import ShopProduct
from shoppos.models.customer import Customer
from shoppos.models.sale import Sale
from shoppos.models.sale_item import SaleItem
from shoppos.models.debt import Debt, OPEN_DEBT_PREDICATE

__all__ = [
    'Business', 'AppUser',
    'Shop', 'ShopProduct',
    'Customer', 'Debt', 'OPEN_DEBT_PREDICATE',
    'Sale', 'SaleItem',
]
