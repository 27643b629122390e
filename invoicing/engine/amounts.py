"""
Amount Engine - subtotal, tax and total of a document.

Pure function with no I/O: line items and an optional document-level discount
go in, an ``AmountResult`` comes out.

Order of operations:
    1. Each item: raw = quantity * unit_price, minus its own discount
       (clamped to [0, raw]) gives the item's stored net total.
    2. Nets are pooled per tax rate before any tax is computed.
    3. The document discount applies to the subtotal after item discounts,
       clamped to [0, that subtotal]; a fixed amount above it is rejected.
    4. With a document discount, every tax bucket is scaled by the same ratio
       (subtotal after all discounts / subtotal after item discounts), i.e. the
       discount is spread over the buckets by their share.
    5. Everything is computed at full precision; each returned figure is
       rounded to cents exactly once.

The persisted ``subtotal`` is the pre-discount raw sum, so with any discount
``subtotal + tax_amount != total``. ``subtotal_after_discounts`` carries the
reconcilable figure.

Usage:
    from decimal import Decimal
    from invoicing.engine import LineItem, compute, Fixed

    result = compute(
        [LineItem(quantity=Decimal('2'), unit_price=Decimal('100'), tax_rate=Decimal('19')),
         LineItem(quantity=Decimal('1'), unit_price=Decimal('50'), tax_rate=Decimal('7'))],
        document_discount=Fixed(Decimal('20')),
    )
    result.tax_amount  # Decimal('38.18')
    result.total       # Decimal('268.18')
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, localcontext
from typing import Dict, Iterable, Optional, Tuple

from invoicing.engine.discounts import NO_DISCOUNT, DiscountClause
from invoicing.exceptions import InvalidDiscountError, InvalidLineItemError
from invoicing.utils.money import (
    ENGINE_PRECISION, HUNDRED, ZERO, clamp, percent_of, round_money, to_decimal,
)


@dataclass(frozen=True)
class LineItem:
    """One billable row as the engine sees it."""

    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal = ZERO
    discount: DiscountClause = NO_DISCOUNT
    order: Optional[int] = None
    description: str = ''

    def __post_init__(self) -> None:
        try:
            quantity = to_decimal(self.quantity, 'quantity')
            unit_price = to_decimal(self.unit_price, 'unit_price')
            tax_rate = to_decimal(ZERO if self.tax_rate is None else self.tax_rate, 'tax_rate')
        except ValueError as e:
            raise InvalidLineItemError(str(e))

        if quantity < ZERO:
            raise InvalidLineItemError(f'Quantity cannot be negative, got {quantity}')
        if tax_rate < ZERO or tax_rate > HUNDRED:
            raise InvalidLineItemError(f'Tax rate must be between 0 and 100, got {tax_rate}')

        object.__setattr__(self, 'quantity', quantity)
        object.__setattr__(self, 'unit_price', unit_price)
        object.__setattr__(self, 'tax_rate', tax_rate)
        if self.discount is None:
            object.__setattr__(self, 'discount', NO_DISCOUNT)

    @property
    def raw_total(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class LineItemResult:
    """Computed figures of one item, rounded to cents."""

    order: Optional[int]
    raw_total: Decimal
    discount_amount: Decimal
    total: Decimal  # net, tax-exclusive; stored on the item row


@dataclass(frozen=True)
class TaxBucket:
    """Items sharing one tax rate, rounded to cents."""

    rate: Decimal
    net_amount: Decimal  # sum of item nets
    taxable_amount: Decimal  # net after the document discount share
    tax_amount: Decimal


@dataclass(frozen=True)
class AmountResult:
    subtotal: Decimal  # pre-discount raw sum (persisted as-is)
    item_discount_total: Decimal
    subtotal_after_item_discounts: Decimal
    document_discount_amount: Decimal
    subtotal_after_discounts: Decimal
    tax_amount: Decimal
    total: Decimal
    tax_buckets: Tuple[TaxBucket, ...] = field(default_factory=tuple)
    items: Tuple[LineItemResult, ...] = field(default_factory=tuple)

    @property
    def per_bucket_tax(self) -> Dict[Decimal, Decimal]:
        """Tax amount per rate."""
        return {bucket.rate: bucket.tax_amount for bucket in self.tax_buckets}


def compute(items: Iterable[LineItem],
            document_discount: Optional[DiscountClause] = None) -> AmountResult:
    """
    Compute the amounts of a document.

    Raises:
        InvalidDiscountError: the document discount resolves to more than the
            subtotal after item discounts.
    """
    items = tuple(items)
    document_discount = document_discount or NO_DISCOUNT

    with localcontext() as ctx:
        ctx.prec = ENGINE_PRECISION

        subtotal_before = ZERO
        item_discounts = ZERO
        buckets: Dict[Decimal, Decimal] = {}
        item_results = []

        for item in items:
            raw = item.raw_total
            discount_amount = clamp(item.discount.amount_for(raw), ZERO, max(raw, ZERO))
            net = raw - discount_amount

            subtotal_before += raw
            item_discounts += discount_amount
            # Decimal('19') and Decimal('19.00') hash alike and share a bucket
            buckets[item.tax_rate] = buckets.get(item.tax_rate, ZERO) + net

            item_results.append(LineItemResult(
                order=item.order,
                raw_total=round_money(raw),
                discount_amount=round_money(discount_amount),
                total=round_money(net),
            ))

        after_items = subtotal_before - item_discounts

        # A percentage of a negative subtotal would raise it; never below zero
        doc_discount_amount = max(document_discount.amount_for(after_items), ZERO)
        if doc_discount_amount > ZERO and doc_discount_amount > after_items:
            raise InvalidDiscountError(
                f'Document discount {round_money(doc_discount_amount)} exceeds the '
                f'subtotal after item discounts {round_money(after_items)}',
                payload={'discount_amount': str(round_money(doc_discount_amount)),
                         'subtotal': str(round_money(after_items))}
            )
        after_all = after_items - doc_discount_amount

        if doc_discount_amount > ZERO and after_items > ZERO:
            ratio = after_all / after_items
        else:
            ratio = None

        tax_total = ZERO
        tax_buckets = []
        for rate in sorted(buckets):
            net_amount = buckets[rate]
            taxable = net_amount * ratio if ratio is not None else net_amount
            tax = percent_of(taxable, rate)
            tax_total += tax
            tax_buckets.append(TaxBucket(
                rate=rate,
                net_amount=round_money(net_amount),
                taxable_amount=round_money(taxable),
                tax_amount=round_money(tax),
            ))

        total = after_all + tax_total

        return AmountResult(
            subtotal=round_money(subtotal_before),
            item_discount_total=round_money(item_discounts),
            subtotal_after_item_discounts=round_money(after_items),
            document_discount_amount=round_money(doc_discount_amount),
            subtotal_after_discounts=round_money(after_all),
            tax_amount=round_money(tax_total),
            total=round_money(total),
            tax_buckets=tuple(tax_buckets),
            items=tuple(item_results),
        )
