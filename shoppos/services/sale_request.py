"""
Sale request normalization.

Turns an untrusted JSON body into a validated SaleRequest before any
database work happens. Two wire shapes are accepted and both end up as
the same cart representation:

- cart shape: ``shopId``, ``shopItems``, ``outsideItems``, ``customerId``,
  ``customerName``, ``amountPaid``
- legacy single-item shape: ``shopProductId``, ``quantity``, ``price``,
  ``customerId``, ``customerName``, ``paymentStatus``
"""
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from shoppos.exceptions import ValidationError
from shoppos.utils.coercion import to_whole_number, is_blank, MAX_WHOLE_NUMBER, MAX_ID

CART_KEYS = frozenset({'shopId', 'shopItems', 'outsideItems', 'customerId', 'customerName', 'amountPaid'})
CART_MARKER_KEYS = frozenset({'shopId', 'shopItems', 'outsideItems'})
LEGACY_KEYS = frozenset({'shopProductId', 'quantity', 'price', 'customerId', 'customerName', 'paymentStatus'})
SHOP_LINE_KEYS = frozenset({'shopProductId', 'quantity', 'price'})
OUTSIDE_LINE_KEYS = frozenset({'name', 'quantity', 'price'})

PAYMENT_STATUS_PAID = 'paid'
PAYMENT_STATUS_CREDIT = 'credit'


@dataclass(frozen=True)
class ShopCartLine:
    """Cart line for a product tracked in shop stock."""
    shop_product_id: int
    quantity: int
    unit_price: int

    @property
    def line_total(self) -> int:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class OutsideCartLine:
    """Cart line for goods not tracked in stock (services, external parts)."""
    name: str
    quantity: int
    unit_price: int

    @property
    def line_total(self) -> int:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class SaleRequest:
    """Validated sale. ``shop_id`` is None when the shop comes from the product (legacy shape)."""
    shop_id: Optional[int]
    shop_lines: Tuple[ShopCartLine, ...]
    outside_lines: Tuple[OutsideCartLine, ...]
    amount_paid: int
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None

    @property
    def total(self) -> int:
        return sum(line.line_total for line in self.shop_lines) + \
            sum(line.line_total for line in self.outside_lines)

    @property
    def balance(self) -> int:
        return self.total - self.amount_paid


def normalize_sale_request(
    shop_id: Optional[int],
    shop_lines: Sequence[ShopCartLine],
    outside_lines: Sequence[OutsideCartLine],
    amount_paid: Optional[int] = None,
    customer_id: Optional[int] = None,
    customer_name: Optional[str] = None,
) -> SaleRequest:
    """
    Apply cart-level rules and resolve the amount paid.

    Rules:
    - the cart must hold at least one line
    - amount_paid defaults to the total (full payment)
    - total fits the money columns
    - 0 <= amount_paid <= total
    - a part payment (balance > 0) needs a customer to carry the debt

    Raises:
        ValidationError: when any rule is broken
    """
    if shop_id is not None and shop_id <= 0:
        raise ValidationError('Invalid shopId')

    if not shop_lines and not outside_lines:
        raise ValidationError('No items to sell')

    if customer_id is not None and customer_id <= 0:
        raise ValidationError('customerId must be greater than 0')

    total = sum(line.line_total for line in shop_lines) + sum(line.line_total for line in outside_lines)
    if total > MAX_WHOLE_NUMBER:
        raise ValidationError('Sale total is too large')

    if amount_paid is None:
        amount_paid = total
    if amount_paid < 0:
        raise ValidationError('amountPaid cannot be negative')
    if amount_paid > total:
        raise ValidationError('amountPaid cannot exceed total')

    if total - amount_paid > 0 and customer_id is None:
        raise ValidationError('Customer required for part payment')

    if customer_name is not None:
        customer_name = customer_name.strip() or None

    return SaleRequest(
        shop_id=shop_id,
        shop_lines=tuple(shop_lines),
        outside_lines=tuple(outside_lines),
        amount_paid=amount_paid,
        customer_id=customer_id,
        customer_name=customer_name,
    )


def parse_sale_request(payload) -> SaleRequest:
    """Validate a decoded JSON body in either wire shape."""
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')

    if payload.keys() & CART_MARKER_KEYS:
        return _parse_cart_payload(payload)
    return _parse_legacy_payload(payload)


def _parse_cart_payload(payload: dict) -> SaleRequest:
    _reject_unknown_keys(payload, CART_KEYS, 'Request')

    shop_id = to_whole_number(payload.get('shopId'), 'shopId', MAX_ID)
    if shop_id <= 0:
        raise ValidationError('Invalid shopId')

    shop_items = _as_list(payload.get('shopItems'), 'shopItems')
    outside_items = _as_list(payload.get('outsideItems'), 'outsideItems')

    shop_lines = [_parse_shop_line(item, index) for index, item in enumerate(shop_items, start=1)]
    outside_lines = [_parse_outside_line(item, index) for index, item in enumerate(outside_items, start=1)]

    amount_paid = payload.get('amountPaid')
    return normalize_sale_request(
        shop_id=shop_id,
        shop_lines=shop_lines,
        outside_lines=outside_lines,
        amount_paid=None if is_blank(amount_paid) else to_whole_number(amount_paid, 'amountPaid'),
        customer_id=_parse_customer_id(payload.get('customerId')),
        customer_name=_parse_customer_name(payload.get('customerName')),
    )


def _parse_legacy_payload(payload: dict) -> SaleRequest:
    _reject_unknown_keys(payload, LEGACY_KEYS, 'Request')

    line = ShopCartLine(
        shop_product_id=_positive(to_whole_number(payload.get('shopProductId'), 'shopProductId', MAX_ID),
                                  'shopProductId'),
        quantity=_positive(to_whole_number(payload.get('quantity'), 'quantity'), 'quantity'),
        unit_price=_positive(to_whole_number(payload.get('price'), 'price'), 'price'),
    )

    payment_status = payload.get('paymentStatus')
    if is_blank(payment_status):
        payment_status = PAYMENT_STATUS_PAID
    if payment_status not in (PAYMENT_STATUS_PAID, PAYMENT_STATUS_CREDIT):
        raise ValidationError("paymentStatus must be 'paid' or 'credit'")

    return normalize_sale_request(
        shop_id=None,
        shop_lines=[line],
        outside_lines=[],
        amount_paid=0 if payment_status == PAYMENT_STATUS_CREDIT else None,
        customer_id=_parse_customer_id(payload.get('customerId')),
        customer_name=_parse_customer_name(payload.get('customerName')),
    )


def _parse_shop_line(item, index: int) -> ShopCartLine:
    label = f'Shop item {index}'
    if not isinstance(item, dict):
        raise ValidationError(f'{label}: must be an object')
    _reject_unknown_keys(item, SHOP_LINE_KEYS, label)

    return ShopCartLine(
        shop_product_id=_positive(to_whole_number(item.get('shopProductId'), f'{label}: shopProductId', MAX_ID),
                                  f'{label}: shopProductId'),
        quantity=_positive(to_whole_number(item.get('quantity'), f'{label}: quantity'), f'{label}: quantity'),
        unit_price=_positive(to_whole_number(item.get('price'), f'{label}: price'), f'{label}: price'),
    )


def _parse_outside_line(item, index: int) -> OutsideCartLine:
    label = f'Outside item {index}'
    if not isinstance(item, dict):
        raise ValidationError(f'{label}: must be an object')
    _reject_unknown_keys(item, OUTSIDE_LINE_KEYS, label)

    name = item.get('name')
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f'{label}: Name is required')

    return OutsideCartLine(
        name=name.strip(),
        quantity=_positive(to_whole_number(item.get('quantity'), f'{label}: quantity'), f'{label}: quantity'),
        unit_price=_positive(to_whole_number(item.get('price'), f'{label}: price'), f'{label}: price'),
    )


def _parse_customer_id(value) -> Optional[int]:
    if is_blank(value):
        return None
    return _positive(to_whole_number(value, 'customerId', MAX_ID), 'customerId')


def _parse_customer_name(value) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError('customerName must be text')
    return value.strip() or None


def _positive(value: int, field: str) -> int:
    if value <= 0:
        raise ValidationError(f'{field} must be greater than 0')
    return value


def _as_list(value, field: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f'{field} must be a list')
    return value


def _reject_unknown_keys(data: dict, allowed: frozenset, label: str) -> None:
    unknown = sorted(set(data.keys()) - allowed)
    if unknown:
        raise ValidationError(f"{label}: unknown field(s) {', '.join(unknown)}")
