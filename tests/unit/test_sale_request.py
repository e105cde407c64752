"""
Unit tests for sale request parsing and normalization.
"""

import math
import pytest
from shoppos.exceptions import ValidationError
from shoppos.utils.coercion import to_whole_number, MAX_WHOLE_NUMBER
from shoppos.services.sale_request import (
    parse_sale_request, normalize_sale_request, ShopCartLine, OutsideCartLine
)


class TestToWholeNumber:
    """Tests for loose-input integer coercion."""

    @pytest.mark.parametrize('value,expected', [
        (5, 5),
        (5.0, 5),
        ('7', 7),
        (' 12 ', 12),
        ('3.0', 3),
        (0, 0),
        (-4, -4),
    ])
    def test_accepts_whole_numbers(self, value, expected):
        assert to_whole_number(value, 'quantity') == expected

    @pytest.mark.parametrize('value', [
        2.5, '2.5', 'abc', '', None, True, False, math.inf, math.nan, 'NaN', 'Infinity', [1], {'a': 1},
    ])
    def test_rejects_everything_else(self, value):
        with pytest.raises(ValidationError) as exc:
            to_whole_number(value, 'quantity')
        assert exc.value.message == 'quantity must be a whole number'
        assert exc.value.status_code == 400

    @pytest.mark.parametrize('value', [MAX_WHOLE_NUMBER + 1, 10**20, '1e30', float(2**40)])
    def test_rejects_values_above_maximum(self, value):
        with pytest.raises(ValidationError) as exc:
            to_whole_number(value, 'quantity')
        assert exc.value.message == 'quantity is too large'
        assert exc.value.status_code == 400

    def test_maximum_itself_is_accepted(self):
        assert to_whole_number(MAX_WHOLE_NUMBER, 'price') == MAX_WHOLE_NUMBER
        assert to_whole_number(2**40, 'shopId', maximum=2**63 - 1) == 2**40


class TestCartPayload:
    """Tests for the multi-line cart shape."""

    def test_full_payment_defaults_amount_paid_to_total(self):
        request = parse_sale_request({
            'shopId': 1,
            'shopItems': [{'shopProductId': 1, 'quantity': 2, 'price': 500}],
        })

        assert request.shop_id == 1
        assert request.shop_lines == (ShopCartLine(shop_product_id=1, quantity=2, unit_price=500),)
        assert request.total == 1000
        assert request.amount_paid == 1000
        assert request.balance == 0
        assert request.customer_id is None

    def test_part_payment_with_customer(self):
        request = parse_sale_request({
            'shopId': '1',
            'shopItems': [{'shopProductId': '1', 'quantity': '2', 'price': '500'}],
            'amountPaid': '400',
            'customerId': 7,
        })

        assert request.total == 1000
        assert request.amount_paid == 400
        assert request.balance == 600
        assert request.customer_id == 7

    def test_mixed_cart_total_is_exact(self):
        request = parse_sale_request({
            'shopId': 3,
            'shopItems': [
                {'shopProductId': 1, 'quantity': 3, 'price': 333},
                {'shopProductId': 2, 'quantity': 7, 'price': 1001},
            ],
            'outsideItems': [{'name': '  Misc Part ', 'quantity': 1, 'price': 200}],
        })

        assert request.total == 3 * 333 + 7 * 1001 + 200
        assert request.outside_lines == (OutsideCartLine(name='Misc Part', quantity=1, unit_price=200),)

    def test_outside_only_cart(self):
        request = parse_sale_request({
            'shopId': 1,
            'outsideItems': [{'name': 'Misc Part', 'quantity': 1, 'price': 200}],
        })

        assert request.shop_lines == ()
        assert request.total == 200

    @pytest.mark.parametrize('amount_paid', [None, '', '   '])
    def test_blank_amount_paid_means_full_payment(self, amount_paid):
        request = parse_sale_request({
            'shopId': 1,
            'outsideItems': [{'name': 'Fitting', 'quantity': 2, 'price': 150}],
            'amountPaid': amount_paid,
        })
        assert request.amount_paid == 300

    def test_customer_name_is_trimmed_label(self):
        request = parse_sale_request({
            'shopId': 1,
            'outsideItems': [{'name': 'Fitting', 'quantity': 1, 'price': 150}],
            'customerName': '  Walk-in Joe  ',
        })
        assert request.customer_name == 'Walk-in Joe'
        assert request.customer_id is None

    def test_blank_customer_name_becomes_none(self):
        request = parse_sale_request({
            'shopId': 1,
            'outsideItems': [{'name': 'Fitting', 'quantity': 1, 'price': 150}],
            'customerName': '   ',
        })
        assert request.customer_name is None

    @pytest.mark.parametrize('payload,message', [
        ({'shopId': 0, 'outsideItems': [{'name': 'x', 'quantity': 1, 'price': 1}]}, 'Invalid shopId'),
        ({'shopId': 'abc', 'outsideItems': [{'name': 'x', 'quantity': 1, 'price': 1}]},
         'shopId must be a whole number'),
        ({'shopId': 1}, 'No items to sell'),
        ({'shopId': 1, 'shopItems': [], 'outsideItems': []}, 'No items to sell'),
        ({'shopId': 1, 'shopItems': 'nope'}, 'shopItems must be a list'),
    ])
    def test_rejects_bad_cart(self, payload, message):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request(payload)
        assert exc.value.message == message

    def test_bad_line_is_addressed_by_position(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({
                'shopId': 1,
                'shopItems': [
                    {'shopProductId': 1, 'quantity': 1, 'price': 100},
                    {'shopProductId': 2, 'quantity': 1.5, 'price': 100},
                ],
            })
        assert exc.value.message == 'Shop item 2: quantity must be a whole number'

    @pytest.mark.parametrize('field', ['shopProductId', 'quantity', 'price'])
    def test_non_positive_shop_line_values_are_rejected(self, field):
        line = {'shopProductId': 1, 'quantity': 1, 'price': 100}
        line[field] = 0
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({'shopId': 1, 'shopItems': [line]})
        assert exc.value.message == f'Shop item 1: {field} must be greater than 0'

    def test_outside_line_requires_name(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({
                'shopId': 1,
                'outsideItems': [
                    {'name': 'Fitting', 'quantity': 1, 'price': 100},
                    {'name': '   ', 'quantity': 1, 'price': 100},
                ],
            })
        assert exc.value.message == 'Outside item 2: Name is required'

    def test_outside_line_rejects_negative_price(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({
                'shopId': 1,
                'outsideItems': [{'name': 'Fitting', 'quantity': 1, 'price': -5}],
            })
        assert exc.value.message == 'Outside item 1: price must be greater than 0'

    def test_overpayment_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({
                'shopId': 1,
                'outsideItems': [{'name': 'Fitting', 'quantity': 1, 'price': 100}],
                'amountPaid': 101,
            })
        assert exc.value.message == 'amountPaid cannot exceed total'

    def test_negative_payment_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({
                'shopId': 1,
                'outsideItems': [{'name': 'Fitting', 'quantity': 1, 'price': 100}],
                'amountPaid': -1,
            })
        assert exc.value.message == 'amountPaid cannot be negative'

    def test_part_payment_requires_customer(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({
                'shopId': 1,
                'shopItems': [{'shopProductId': 1, 'quantity': 2, 'price': 500}],
                'amountPaid': 400,
                'customerName': 'Only a label',
            })
        assert exc.value.message == 'Customer required for part payment'

    def test_oversized_line_value_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({
                'shopId': 1,
                'outsideItems': [{'name': 'x', 'quantity': 10**20, 'price': 1}],
            })
        assert exc.value.message == 'Outside item 1: quantity is too large'

    def test_total_above_maximum_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({
                'shopId': 1,
                'outsideItems': [{'name': 'Bulk order', 'quantity': 70000, 'price': 70000}],
            })
        assert exc.value.message == 'Sale total is too large'

    def test_unknown_fields_are_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({
                'shopId': 1,
                'warehouseItems': [],
                'outsideItems': [{'name': 'Fitting', 'quantity': 1, 'price': 100}],
            })
        assert 'warehouseItems' in exc.value.message

    def test_unknown_line_fields_are_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({
                'shopId': 1,
                'shopItems': [{'shopProductId': 1, 'quantity': 1, 'price': 100, 'discount': 5}],
            })
        assert exc.value.message == 'Shop item 1: unknown field(s) discount'

    def test_body_must_be_object(self):
        with pytest.raises(ValidationError):
            parse_sale_request([{'shopId': 1}])


class TestLegacyPayload:
    """Tests for the single-item shape."""

    def test_paid_single_item(self):
        request = parse_sale_request({'shopProductId': 4, 'quantity': 3, 'price': 250})

        assert request.shop_id is None
        assert request.shop_lines == (ShopCartLine(shop_product_id=4, quantity=3, unit_price=250),)
        assert request.total == 750
        assert request.amount_paid == 750
        assert request.balance == 0

    def test_credit_single_item_owes_everything(self):
        request = parse_sale_request({
            'shopProductId': 4, 'quantity': 3, 'price': 250,
            'paymentStatus': 'credit', 'customerId': 9,
        })

        assert request.amount_paid == 0
        assert request.balance == 750
        assert request.customer_id == 9

    def test_credit_without_customer_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({'shopProductId': 4, 'quantity': 3, 'price': 250, 'paymentStatus': 'credit'})
        assert exc.value.message == 'Customer required for part payment'

    def test_unknown_payment_status_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_sale_request({'shopProductId': 4, 'quantity': 3, 'price': 250, 'paymentStatus': 'layaway'})

    def test_zero_quantity_is_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_sale_request({'shopProductId': 4, 'quantity': 0, 'price': 250})
        assert exc.value.message == 'quantity must be greater than 0'


class TestNormalizeSaleRequest:
    """Tests for programmatic construction."""

    def test_builds_request_from_lines(self):
        request = normalize_sale_request(
            shop_id=2,
            shop_lines=[ShopCartLine(1, 2, 500)],
            outside_lines=[OutsideCartLine('Service fee', 1, 100)],
            amount_paid=600,
            customer_id=3,
        )
        assert request.total == 1100
        assert request.balance == 500
        assert request.amount_paid + request.balance == request.total

    def test_rejects_empty_cart(self):
        with pytest.raises(ValidationError):
            normalize_sale_request(shop_id=2, shop_lines=[], outside_lines=[])
