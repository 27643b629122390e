"""Mapping between document payloads, engine inputs and item/attachment rows."""
from dataclasses import replace
from typing import Any, Dict, Iterable, List

from invoicing.engine import (
    NO_DISCOUNT, AmountResult, DiscountClause, LineItem, NoDiscount,
    discount_from_payload, discount_to_columns,
)
from invoicing.exceptions import BusinessLogicError, InvalidDiscountError, InvalidLineItemError
from invoicing.utils.money import RATE_QUANTUM, to_stored_scale


def _discount(discount_type, discount_value, discounts_enabled: bool) -> DiscountClause:
    clause = discount_from_payload(discount_type, discount_value)
    if not discounts_enabled and not isinstance(clause, NoDiscount):
        raise InvalidDiscountError('Discounts are disabled in the company settings')
    if isinstance(clause, NoDiscount):
        return clause
    return replace(clause, value=to_stored_scale(clause.value))


def _at_stored_scale(line_item: LineItem) -> LineItem:
    return replace(
        line_item,
        quantity=to_stored_scale(line_item.quantity),
        unit_price=to_stored_scale(line_item.unit_price),
        tax_rate=to_stored_scale(line_item.tax_rate, RATE_QUANTUM),
    )


def build_line_items(items_payload, discounts_enabled: bool = True) -> List[LineItem]:
    """
    Validate item payloads and turn them into engine line items.

    Each payload is a dict with quantity, unit_price, tax_rate, description and
    optionally discount_type/discount_value and order. Items without an
    explicit order are numbered by position (1..N).

    Raises:
        InvalidLineItemError: malformed item, duplicate or non-positive order.
        InvalidDiscountError: malformed discount, or discounts are disabled.
    """
    if items_payload is None:
        return []
    if not isinstance(items_payload, (list, tuple)):
        raise InvalidLineItemError('items must be a list')

    line_items = []
    seen_orders = set()
    for index, item in enumerate(items_payload, start=1):
        if not isinstance(item, dict):
            raise InvalidLineItemError(f'Item {index} must be an object')

        order = item.get('order')
        if order is None:
            order = index
        try:
            order = int(order)
        except (TypeError, ValueError):
            raise InvalidLineItemError(f'Item {index}: order must be an integer')
        if order < 1:
            raise InvalidLineItemError(f'Item {index}: order must be >= 1')
        if order in seen_orders:
            raise InvalidLineItemError(f'Item {index}: order {order} is used twice')
        seen_orders.add(order)

        line_items.append(_at_stored_scale(LineItem(
            quantity=item.get('quantity'),
            unit_price=item.get('unit_price'),
            tax_rate=item.get('tax_rate', 0),
            discount=_discount(item.get('discount_type'), item.get('discount_value'), discounts_enabled),
            order=order,
            description=(item.get('description') or '').strip(),
        )))

    return line_items


def build_document_discount(payload: dict, discounts_enabled: bool = True) -> DiscountClause:
    """Document-level discount from ``discount_type``/``discount_value``."""
    return _discount(payload.get('discount_type'), payload.get('discount_value'), discounts_enabled)


def line_items_from_rows(rows: Iterable[Any]) -> List[LineItem]:
    """Rebuild engine line items from persisted invoice/quote item rows."""
    return [
        LineItem(
            quantity=row.quantity,
            unit_price=row.unit_price,
            tax_rate=row.tax_rate,
            discount=discount_from_payload(row.discount_type, row.discount_value),
            order=row.item_order,
            description=row.description or '',
        )
        for row in rows
    ]


def document_discount_from_row(document) -> DiscountClause:
    return discount_from_payload(document.discount_type, document.discount_value)


def item_columns(line_items: List[LineItem], result: AmountResult) -> List[Dict[str, Any]]:
    """Column values of the item rows, in input order."""
    rows = []
    for line_item, item_result in zip(line_items, result.items):
        discount_type, discount_value = discount_to_columns(line_item.discount)
        rows.append({
            'description': line_item.description,
            'quantity': line_item.quantity,
            'unit_price': line_item.unit_price,
            'tax_rate': line_item.tax_rate,
            'total': item_result.total,
            'item_order': line_item.order,
            'discount_type': discount_type,
            'discount_value': discount_value,
            'discount_amount': item_result.discount_amount if discount_type else None,
        })
    return rows


def amount_columns(result: AmountResult, document_discount: DiscountClause = NO_DISCOUNT) -> Dict[str, Any]:
    """Document-level column values (subtotal is the pre-discount sum)."""
    discount_type, discount_value = discount_to_columns(document_discount)
    return {
        'subtotal': result.subtotal,
        'tax_amount': result.tax_amount,
        'total': result.total,
        'discount_type': discount_type,
        'discount_value': discount_value,
        'discount_amount': result.document_discount_amount if discount_type else None,
    }


def build_attachments(attachments_payload) -> List[Dict[str, Any]]:
    """
    Validate attachment payloads ({name, content, content_type, size}).

    Raises:
        BusinessLogicError: missing name or content.
    """
    if not attachments_payload:
        return []
    if not isinstance(attachments_payload, (list, tuple)):
        raise BusinessLogicError('attachments must be a list')

    attachments = []
    for index, attachment in enumerate(attachments_payload, start=1):
        if not isinstance(attachment, dict) or not attachment.get('name') or not attachment.get('content'):
            raise BusinessLogicError(f'Attachment {index} needs a name and content')
        content = attachment['content']
        attachments.append({
            'name': attachment['name'],
            'content': content,
            'content_type': attachment.get('content_type'),
            'size': attachment.get('size') or len(content),
        })
    return attachments


def apply_amounts(document, result: AmountResult, document_discount: DiscountClause) -> None:
    for column, value in amount_columns(result, document_discount).items():
        setattr(document, column, value)


def replace_items(session, document, item_model, parent_column, line_items: List[LineItem],
                  result: AmountResult) -> None:
    """Delete every item row of ``document`` and insert the new set."""
    # Old rows must be gone before new ones reuse their item_order
    session.query(item_model).filter(parent_column == document.id).delete(synchronize_session=False)
    session.flush()
    session.expire(document, ['items'])
    document.items = [item_model(**columns) for columns in item_columns(line_items, result)]
