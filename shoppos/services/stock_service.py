"""
Inventory primitives used by the sale transaction - Multi-Tenant.

Stock is only ever reduced through decrement_stock(), a single guarded
UPDATE. Reads used for validation are taken inside the caller's
transaction with a row lock where the database supports one.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy import update, func
from shoppos.database import dialect_insert
from shoppos.models import Shop, ShopProduct
from shoppos.models.shop_product import misc_product_name
from shoppos.exceptions import NotFoundError


def get_shop(session, shop_id: int, business_id: int) -> Shop:
    """Get shop by ID with business validation."""
    shop = session.query(Shop).filter(
        Shop.id == shop_id,
        Shop.business_id == business_id
    ).first()

    if not shop:
        raise NotFoundError('Shop not found')
    return shop


def get_product_for_sale(session, shop_product_id: int, business_id: int, shop_id: Optional[int] = None) -> ShopProduct:
    """
    Re-read a product inside the current transaction and lock its row.

    The lookup is scoped to the business (and to the shop when given). A
    product from another business is reported exactly like a missing one.
    """
    query = session.query(ShopProduct).join(Shop, Shop.id == ShopProduct.shop_id).filter(
        ShopProduct.id == shop_product_id,
        Shop.business_id == business_id
    )
    if shop_id is not None:
        query = query.filter(ShopProduct.shop_id == shop_id)

    product = query.populate_existing().with_for_update(of=ShopProduct).first()
    if not product:
        raise NotFoundError('Product not found')
    return product


def decrement_stock(session, shop_product_id: int, quantity: int) -> bool:
    """
    Atomically take ``quantity`` units off a product.

    Issues ``UPDATE ... SET quantity = quantity - :n WHERE id = :id AND quantity >= :n``.

    Returns:
        True if the row was updated, False if there was not enough stock
    """
    stmt = (
        update(ShopProduct)
        .where(ShopProduct.id == shop_product_id, ShopProduct.quantity >= quantity)
        .values(quantity=ShopProduct.quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    return result.rowcount == 1


def get_or_create_misc_product(session, shop_id: int, business_id: int) -> int:
    """
    Return the ID of the shop's placeholder product, creating it if absent.

    Uses INSERT ... ON CONFLICT (shop_id, name) DO NOTHING so two concurrent
    sales never create it twice.
    """
    name = misc_product_name()
    stmt = dialect_insert(session, ShopProduct).values(
        shop_id=shop_id,
        business_id=business_id,
        name=name,
        quantity=0,
        selling_price=0,
        cost_price=0,
    ).on_conflict_do_nothing(index_elements=['shop_id', 'name'])
    session.execute(stmt)

    return session.query(ShopProduct.id).filter(
        ShopProduct.shop_id == shop_id,
        ShopProduct.name == name
    ).scalar()


def search_shop_goods(session, business_id: int, search_query: str, shop_id: Optional[int] = None,
                      limit: int = 20) -> List[Dict[str, Any]]:
    """Search in-stock products by name across the business's shops."""
    search_query = (search_query or '').strip()[:100]
    if not search_query:
        return []

    query = session.query(ShopProduct, Shop.name).join(Shop, Shop.id == ShopProduct.shop_id).filter(
        Shop.business_id == business_id,
        ShopProduct.quantity > 0,
        ShopProduct.name != misc_product_name(),
        func.lower(ShopProduct.name).like(f'%{search_query.lower()}%')
    )
    if shop_id is not None:
        query = query.filter(ShopProduct.shop_id == shop_id)

    rows = query.order_by(ShopProduct.name).limit(limit).all()

    return [
        {
            'shopProductId': product.id,
            'name': product.name,
            'shopId': product.shop_id,
            'shopName': shop_name,
            'price': product.selling_price,
            'quantity': product.quantity,
        }
        for product, shop_name in rows
    ]
