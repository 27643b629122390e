"""Document financial engine - pure amount computation."""
from invoicing.engine.discounts import (
    DiscountClause, DiscountType, Fixed, NoDiscount, NO_DISCOUNT, Percentage,
    discount_from_payload, discount_to_columns,
)
from invoicing.engine.amounts import (
    AmountResult, LineItem, LineItemResult, TaxBucket, compute,
)

__all__ = [
    'DiscountClause', 'DiscountType', 'Fixed', 'NoDiscount', 'NO_DISCOUNT', 'Percentage',
    'discount_from_payload', 'discount_to_columns',
    'AmountResult', 'LineItem', 'LineItemResult', 'TaxBucket', 'compute',
]
