"""
Sales service with transactional logic - Multi-Tenant.
Handles sale completion: stock decrement, line items and debt accrual.
"""
import logging
from dataclasses import dataclass
from typing import List, Dict, Any
from sqlalchemy import func, or_
from sqlalchemy.orm import joinedload
from shoppos.database import transaction
from shoppos.models import Sale, SaleItem, Shop, Customer, ShopProduct
from shoppos.exceptions import NotFoundError, InsufficientStockError, ValidationError
from shoppos.services.sale_request import SaleRequest
from shoppos.services.stock_service import (
    get_shop, get_product_for_sale, decrement_stock, get_or_create_misc_product
)
from shoppos.services.debt_service import get_customer, accrue_debt, open_debt_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleResult:
    """Outcome of a committed sale."""
    sale_id: int
    total: int
    amount_paid: int
    balance: int

    def to_dict(self) -> Dict[str, int]:
        return {
            'saleId': self.sale_id,
            'total': self.total,
            'paid': self.amount_paid,
            'balance': self.balance,
        }


def complete_sale(request: SaleRequest, session, business_id: int, sold_by_id: int) -> SaleResult:
    """
    Complete a sale as one atomic unit of work (business-scoped).

    Steps:
    1. Resolve the shop (from the request, or from the product for legacy requests)
    2. Verify the customer belongs to the business
    3. Create the Sale with total/amount_paid/balance
    4. Resolve the placeholder product when outside items exist
    5. For each shop line: re-read product, check stock, conditional decrement, line item
    6. For each outside line: line item on the placeholder product
    7. Accrue the balance into the customer's open debt
    8. Commit

    Any failure rolls back every step.

    Raises:
        ValidationError: operator has no business
        NotFoundError: shop, customer or product missing or owned by another business
        InsufficientStockError: requested quantity exceeds stock on hand
        StoreError: database failure
    """
    if not business_id:
        raise ValidationError('User has no business')

    with transaction(session):
        shop_id = _resolve_shop_id(session, request, business_id)

        if request.customer_id is not None:
            get_customer(session, request.customer_id, business_id)

        sale = Sale(
            shop_id=shop_id,
            sold_by_id=sold_by_id,
            customer_id=request.customer_id,
            customer_name=request.customer_name,
            total=request.total,
            amount_paid=request.amount_paid,
            balance=request.balance
        )
        session.add(sale)
        session.flush()

        misc_product_id = None
        if request.outside_lines:
            misc_product_id = get_or_create_misc_product(session, shop_id, business_id)

        for line in request.shop_lines:
            product = get_product_for_sale(session, line.shop_product_id, business_id, shop_id)
            _take_stock(session, product, line.quantity)
            _add_line_item(session, sale.id, product.id, product.name, line.quantity, line.unit_price)

        for line in request.outside_lines:
            _add_line_item(session, sale.id, misc_product_id, line.name, line.quantity, line.unit_price)

        if request.balance > 0:
            accrue_debt(session, request.customer_id, business_id, request.balance)

        session.flush()
        result = SaleResult(
            sale_id=sale.id,
            total=sale.total,
            amount_paid=sale.amount_paid,
            balance=sale.balance
        )

    logger.info(
        f"Sale #{result.sale_id} completed in shop {shop_id}: "
        f"total={result.total} paid={result.amount_paid} balance={result.balance}"
    )
    return result


def get_receipt(session, sale_id: int, business_id: int) -> Dict[str, Any]:
    """Receipt for a sale, including the customer's outstanding debt."""
    sale = (session.query(Sale)
            .join(Shop, Shop.id == Sale.shop_id)
            .options(joinedload(Sale.shop), joinedload(Sale.sold_by), joinedload(Sale.items))
            .filter(Sale.id == sale_id, Shop.business_id == business_id)
            .first())

    if not sale:
        raise NotFoundError('Receipt not found')

    total_debt = open_debt_total(session, sale.customer_id) if sale.customer_id else 0

    return {
        'id': sale.id,
        'shop': sale.shop.name,
        'soldBy': sale.sold_by.full_name,
        'createdAt': sale.created_at.isoformat() if sale.created_at else None,
        'customerName': sale.customer_name,
        'items': [
            {
                'name': item.name,
                'quantity': item.quantity,
                'price': item.price,
                'subtotal': item.subtotal,
            }
            for item in sale.items
        ],
        'total': sale.total,
        'amountPaid': sale.amount_paid,
        'balance': sale.balance,
        'previousDebt': max(0, total_debt - sale.balance),
        'totalDebt': total_debt,
    }


def list_sales(session, business_id: int, search_query: str = '') -> List[Dict[str, Any]]:
    """List sales newest first, optionally filtered by customer name."""
    query = (session.query(Sale)
             .join(Shop, Shop.id == Sale.shop_id)
             .outerjoin(Customer, Customer.id == Sale.customer_id)
             .options(joinedload(Sale.shop), joinedload(Sale.sold_by), joinedload(Sale.customer))
             .filter(Shop.business_id == business_id))

    search_query = (search_query or '').strip()[:100]
    if search_query:
        pattern = f'%{search_query.lower()}%'
        query = query.filter(or_(
            func.lower(Sale.customer_name).like(pattern),
            func.lower(Customer.full_name).like(pattern)
        ))

    sales = query.order_by(Sale.created_at.desc(), Sale.id.desc()).all()

    return [
        {
            'id': sale.id,
            'shop': sale.shop.name,
            'soldBy': sale.sold_by.full_name,
            'customerName': sale.customer_name or (sale.customer.full_name if sale.customer else None),
            'total': sale.total,
            'amountPaid': sale.amount_paid,
            'balance': sale.balance,
            'createdAt': sale.created_at.isoformat() if sale.created_at else None,
        }
        for sale in sales
    ]


# =====================================================
# PRIVATE HELPERS
# =====================================================

def _resolve_shop_id(session, request: SaleRequest, business_id: int) -> int:
    """Shop for the sale. Legacy single-item requests take it from the product."""
    if request.shop_id is not None:
        return get_shop(session, request.shop_id, business_id).id

    product = get_product_for_sale(session, request.shop_lines[0].shop_product_id, business_id)
    return product.shop_id


def _take_stock(session, product: ShopProduct, quantity: int) -> None:
    """Check the freshly read quantity, then decrement with the guarded UPDATE."""
    if quantity > product.quantity:
        raise InsufficientStockError(product.name, quantity, product.quantity)

    if not decrement_stock(session, product.id, quantity):
        # Another transaction took the stock between the read and the update
        session.refresh(product)
        raise InsufficientStockError(product.name, quantity, product.quantity)


def _add_line_item(session, sale_id: int, shop_product_id: int, name: str, quantity: int, price: int) -> SaleItem:
    item = SaleItem(
        sale_id=sale_id,
        shop_product_id=shop_product_id,
        name=name,
        quantity=quantity,
        price=price
    )
    session.add(item)
    return item
