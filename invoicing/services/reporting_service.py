"""Reporting service - invoice journal and yearly statistics."""
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import case, func

from invoicing.exceptions import BusinessLogicError
from invoicing.models import Invoice, InvoiceStatus
from invoicing.utils.money import round_money

logger = logging.getLogger(__name__)


def _to_money(value) -> Decimal:
    # SQLite hands back floats for Numeric sums
    return round_money(Decimal(str(value))) if value is not None else Decimal('0.00')


def get_invoice_journal(session, date_from: date, date_to: date) -> Dict[str, Any]:
    """
    Invoices issued in [date_from, date_to] with column sums.

    Sums use the persisted amounts; subtotal is the pre-discount sum.

    Returns:
        Dict with keys:
        - invoices: list of Invoice, by issue date then number
        - count: int
        - subtotal, tax_amount, total: Decimal
    """
    if date_from > date_to:
        raise BusinessLogicError('date_from must not be after date_to')

    invoices = (session.query(Invoice)
                .filter(Invoice.issue_date >= date_from, Invoice.issue_date <= date_to)
                .order_by(Invoice.issue_date.asc(), Invoice.invoice_number.asc())
                .all())

    subtotal = sum((invoice.subtotal for invoice in invoices), Decimal('0.00'))
    tax_amount = sum((invoice.tax_amount for invoice in invoices), Decimal('0.00'))
    total = sum((invoice.total for invoice in invoices), Decimal('0.00'))

    logger.debug(f"Invoice journal {date_from} - {date_to}: {len(invoices)} invoices")
    return {
        'invoices': invoices,
        'count': len(invoices),
        'subtotal': _to_money(subtotal),
        'tax_amount': _to_money(tax_amount),
        'total': _to_money(total),
    }


def get_yearly_statistics(session, year: int) -> Dict[str, Any]:
    """
    Aggregate the invoices issued in ``year``.

    Returns:
        Dict with keys: year, count, subtotal, tax_amount, total,
        paid_total, overdue_total (Decimal sums)
    """
    paid_sum = func.sum(
        case(
            (Invoice.status == InvoiceStatus.PAID.value, Invoice.total),
            else_=0
        )
    ).label('paid_total')

    overdue_sum = func.sum(
        case(
            (Invoice.status == InvoiceStatus.OVERDUE.value, Invoice.total),
            else_=0
        )
    ).label('overdue_total')

    row = (session.query(
                func.count(Invoice.id).label('count'),
                func.sum(Invoice.subtotal).label('subtotal'),
                func.sum(Invoice.tax_amount).label('tax_amount'),
                func.sum(Invoice.total).label('total'),
                paid_sum,
                overdue_sum,
            )
           .filter(Invoice.issue_date >= date(year, 1, 1))
           .filter(Invoice.issue_date <= date(year, 12, 31))
           .one())

    return {
        'year': year,
        'count': row.count or 0,
        'subtotal': _to_money(row.subtotal),
        'tax_amount': _to_money(row.tax_amount),
        'total': _to_money(row.total),
        'paid_total': _to_money(row.paid_total),
        'overdue_total': _to_money(row.overdue_total),
    }
