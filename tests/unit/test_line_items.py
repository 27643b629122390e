"""
Unit tests for mapping item payloads to engine inputs and row columns.
"""

import pytest
from decimal import Decimal

from invoicing.engine import Fixed, NO_DISCOUNT, Percentage, compute
from invoicing.exceptions import BusinessLogicError, InvalidDiscountError, InvalidLineItemError
from invoicing.services.line_items import (
    amount_columns, build_attachments, build_document_discount, build_line_items, item_columns,
)


class TestBuildLineItems:
    """Payload validation."""

    def test_orders_default_to_position(self, two_rate_items):
        items = build_line_items(two_rate_items)

        assert [item.order for item in items] == [1, 2]
        assert items[0].quantity == Decimal('2')
        assert items[1].tax_rate == Decimal('7')
        assert items[0].discount is NO_DISCOUNT

    def test_explicit_orders_are_kept(self):
        items = build_line_items([
            {'quantity': 1, 'unit_price': '5', 'order': 10},
            {'quantity': 1, 'unit_price': '5', 'order': 3},
        ])
        assert [item.order for item in items] == [10, 3]

    def test_duplicate_order_rejected(self):
        with pytest.raises(InvalidLineItemError):
            build_line_items([
                {'quantity': 1, 'unit_price': '5', 'order': 1},
                {'quantity': 1, 'unit_price': '5', 'order': 1},
            ])

    def test_item_discount(self):
        items = build_line_items([
            {'quantity': 1, 'unit_price': '80', 'discount_type': 'percentage', 'discount_value': '25'},
        ])
        assert items[0].discount == Percentage(Decimal('25'))

    def test_discounts_disabled(self):
        with pytest.raises(InvalidDiscountError):
            build_line_items(
                [{'quantity': 1, 'unit_price': '80', 'discount_type': 'fixed', 'discount_value': '5'}],
                discounts_enabled=False
            )

    def test_inputs_are_cut_to_the_stored_scale(self):
        items = build_line_items([{
            'quantity': '1.0000005', 'unit_price': '0.33333349', 'tax_rate': '7.12345',
            'discount_type': 'fixed', 'discount_value': '0.1234567',
        }])

        assert items[0].quantity == Decimal('1.000001')
        assert items[0].unit_price == Decimal('0.333333')
        assert items[0].tax_rate == Decimal('7.1235')
        assert items[0].discount == Fixed(Decimal('0.123457'))

    def test_items_must_be_a_list(self):
        with pytest.raises(InvalidLineItemError):
            build_line_items({'quantity': 1})

    def test_missing_items_is_empty(self):
        assert build_line_items(None) == []

    def test_document_discount(self):
        assert build_document_discount({'discount_type': 'fixed', 'discount_value': '20'}) == Fixed(Decimal('20'))
        assert build_document_discount({}) is NO_DISCOUNT
        with pytest.raises(InvalidDiscountError):
            build_document_discount({'discount_type': 'fixed', 'discount_value': '20'}, discounts_enabled=False)


class TestColumns:
    """Engine results as row values."""

    def test_item_and_amount_columns(self, two_rate_items):
        two_rate_items[0].update({'discount_type': 'fixed', 'discount_value': '10'})
        items = build_line_items(two_rate_items)
        discount = Percentage(Decimal('10'))
        result = compute(items, discount)

        rows = item_columns(items, result)
        assert rows[0]['total'] == Decimal('190.00')
        assert rows[0]['discount_type'] == 'fixed'
        assert rows[0]['discount_amount'] == Decimal('10.00')
        assert rows[1]['discount_type'] is None
        assert rows[1]['discount_amount'] is None
        assert rows[1]['item_order'] == 2

        columns = amount_columns(result, discount)
        assert columns['subtotal'] == Decimal('250.00')
        assert columns['discount_type'] == 'percentage'
        assert columns['discount_amount'] == Decimal('24.00')
        assert columns['total'] == result.total

    def test_attachments(self):
        attachments = build_attachments([{'name': 'plan.pdf', 'content': 'SGVsbG8=', 'content_type': 'application/pdf'}])
        assert attachments[0]['size'] == 8

        with pytest.raises(BusinessLogicError):
            build_attachments([{'name': 'empty.txt'}])
