"""Invoice service: creation with sequential numbers, updates and reminders."""
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from invoicing.engine import compute
from invoicing.exceptions import BusinessLogicError, DocumentStateError, NotFoundError
from invoicing.models import Invoice, InvoiceAttachment, InvoiceItem, InvoiceStatus
from invoicing.services.customer_service import get_customer_snapshot
from invoicing.services.line_items import (
    amount_columns, apply_amounts, build_attachments, build_document_discount, build_line_items,
    document_discount_from_row, item_columns, line_items_from_rows, replace_items,
)
from invoicing.services.numbering_service import (
    MAX_ALLOCATION_ATTEMPTS, DocumentKind, NumberAllocator, create_with_number,
)
from invoicing.services.settings_service import get_company_settings, get_year_start_number
from invoicing.utils.dates import parse_date

logger = logging.getLogger(__name__)

MAX_REMINDER_STAGE = 3

# Status an invoice must have before reminder stage N is recorded
REMINDER_SOURCE_STATUSES = {
    1: (InvoiceStatus.SENT.value, InvoiceStatus.OVERDUE.value),
    2: (InvoiceStatus.REMINDED_1X.value,),
    3: (InvoiceStatus.REMINDED_2X.value,),
}

_DISCOUNT_FIELDS = ('discount_type', 'discount_value')


def _validate_status(status: str) -> str:
    if status not in InvoiceStatus.values():
        raise BusinessLogicError(f'Invalid invoice status: {status!r}')
    return status


def _reminder_stage_of(status: str) -> int:
    for stage in range(1, MAX_REMINDER_STAGE + 1):
        if status == InvoiceStatus.for_reminder_stage(stage).value:
            return stage
    return 0


def get_invoice(session: Session, invoice_id: int, for_update: bool = False) -> Invoice:
    query = session.query(Invoice).filter(Invoice.id == invoice_id)
    if for_update:
        query = query.with_for_update()
    invoice = query.first()
    if not invoice:
        raise NotFoundError(f'Invoice {invoice_id} not found')
    return invoice


def list_invoices(session: Session, status: Optional[str] = None,
                  customer_id: Optional[int] = None, year: Optional[int] = None) -> List[Invoice]:
    """List invoices, newest issue date first."""
    query = session.query(Invoice)
    if status:
        query = query.filter(Invoice.status == _validate_status(status))
    if customer_id:
        query = query.filter(Invoice.customer_id == customer_id)
    if year:
        query = query.filter(Invoice.issue_date >= date(year, 1, 1), Invoice.issue_date <= date(year, 12, 31))
    return query.order_by(Invoice.issue_date.desc(), Invoice.id.desc()).all()


def create_invoice(session: Session, payload: Dict[str, Any], today: Optional[date] = None,
                   max_attempts: int = MAX_ALLOCATION_ATTEMPTS) -> Invoice:
    """
    Create an invoice with its items and attachments in one transaction.

    Dates, customer, items and discounts are validated before a number is
    reserved. The number (RE-YYYY-NNN) is allocated for the year of the
    issue date, honoring that year's configured start number.

    Args:
        session: Database session
        payload: customer_id, issue_date, due_date, items, discount_type,
            discount_value, notes, status, attachments
        today: Default issue date (date.today())
        max_attempts: Creation attempts on number conflicts

    Returns:
        The committed Invoice

    Raises:
        InvalidDateError, CustomerNotFoundError, InvalidLineItemError,
        InvalidDiscountError, BusinessLogicError: invalid input, nothing written
        NumberAllocationConflict: no free number after max_attempts
    """
    try:
        issue_date = parse_date(payload.get('issue_date'), 'issue_date', default=today or date.today())
        due_date = parse_date(payload.get('due_date'), 'due_date')
        customer_id, customer_name = get_customer_snapshot(session, payload.get('customer_id'))

        settings = get_company_settings(session)
        if due_date is None:
            due_date = issue_date + timedelta(days=settings.default_payment_days)
        if due_date < issue_date:
            raise BusinessLogicError('due_date cannot be before issue_date')

        line_items = build_line_items(payload.get('items'), settings.discounts_enabled)
        document_discount = build_document_discount(payload, settings.discounts_enabled)
        result = compute(line_items, document_discount)
        attachments = build_attachments(payload.get('attachments'))
        status = _validate_status(payload.get('status') or InvoiceStatus.DRAFT.value)
        notes = payload.get('notes')

        def _create(resync: bool) -> Invoice:
            start_number = get_year_start_number(session, issue_date.year)
            number = NumberAllocator(session).allocate(
                DocumentKind.INVOICE, issue_date, start_number, resync=resync
            )
            invoice = Invoice(
                invoice_number=number,
                customer_id=customer_id,
                customer_name=customer_name,
                issue_date=issue_date,
                due_date=due_date,
                status=status,
                notes=notes,
                max_reminder_stage=_reminder_stage_of(status),
                **amount_columns(result, document_discount)
            )
            invoice.items = [InvoiceItem(**columns) for columns in item_columns(line_items, result)]
            invoice.attachments = [InvoiceAttachment(**attachment) for attachment in attachments]
            session.add(invoice)
            session.flush()
            return invoice

        invoice = create_with_number(session, DocumentKind.INVOICE, _create, max_attempts)
    except Exception:
        session.rollback()
        raise

    logger.info(f"Invoice {invoice.invoice_number} created for customer {customer_id}, total {invoice.total}")
    return invoice


def update_invoice(session: Session, invoice_id: int, payload: Dict[str, Any]) -> Invoice:
    """
    Update an invoice.

    The invoice number never changes. Supplying ``items`` replaces all items;
    supplying ``items`` or a discount field recomputes the amounts. A status
    correction never lowers the reminder watermark.
    """
    try:
        invoice = get_invoice(session, invoice_id, for_update=True)

        if 'invoice_number' in payload and payload['invoice_number'] != invoice.invoice_number:
            raise BusinessLogicError('Invoice numbers cannot be changed')

        if 'customer_id' in payload:
            invoice.customer_id, invoice.customer_name = get_customer_snapshot(session, payload['customer_id'])
        if 'issue_date' in payload:
            invoice.issue_date = parse_date(payload['issue_date'], 'issue_date', default=invoice.issue_date)
        if 'due_date' in payload:
            invoice.due_date = parse_date(payload['due_date'], 'due_date', default=invoice.due_date)
        if invoice.due_date < invoice.issue_date:
            raise BusinessLogicError('due_date cannot be before issue_date')
        if 'notes' in payload:
            invoice.notes = payload['notes']

        if 'status' in payload:
            invoice.status = _validate_status(payload['status'])
            invoice.max_reminder_stage = max(invoice.max_reminder_stage or 0, _reminder_stage_of(invoice.status))

        items_supplied = 'items' in payload
        if items_supplied or any(field in payload for field in _DISCOUNT_FIELDS):
            settings = get_company_settings(session)
            if items_supplied:
                line_items = build_line_items(payload['items'], settings.discounts_enabled)
            else:
                line_items = line_items_from_rows(invoice.items)
            if any(field in payload for field in _DISCOUNT_FIELDS):
                document_discount = build_document_discount(payload, settings.discounts_enabled)
            else:
                document_discount = document_discount_from_row(invoice)

            result = compute(line_items, document_discount)
            apply_amounts(invoice, result, document_discount)
            if items_supplied:
                replace_items(session, invoice, InvoiceItem, InvoiceItem.invoice_id, line_items, result)

        session.commit()
        logger.info(f"Invoice {invoice.invoice_number} updated")
        return invoice
    except Exception:
        session.rollback()
        raise


def delete_invoice(session: Session, invoice_id: int) -> None:
    """Delete an invoice with its items and attachments. Its number is not reused."""
    try:
        invoice = get_invoice(session, invoice_id)
        number = invoice.invoice_number
        session.delete(invoice)
        session.commit()
        logger.info(f"Invoice {number} deleted")
    except Exception:
        session.rollback()
        raise


def record_reminder(session: Session, invoice_id: int, stage, update_status: bool = True,
                    today: Optional[date] = None) -> Invoice:
    """
    Record that payment reminder ``stage`` (1-3) was sent.

    With ``update_status`` the invoice must be in the status preceding the
    stage (sent/overdue for 1, reminded_1x for 2, reminded_2x for 3) and moves
    to reminded_Nx. Without it only the reminder date and the watermark move.

    Raises:
        BusinessLogicError: stage outside 1-3
        DocumentStateError: invoice not in the preceding status
    """
    try:
        stage = int(stage)
    except (TypeError, ValueError):
        raise BusinessLogicError('Reminder stage must be 1, 2 or 3')
    if stage < 1 or stage > MAX_REMINDER_STAGE:
        raise BusinessLogicError('Reminder stage must be 1, 2 or 3')

    try:
        invoice = get_invoice(session, invoice_id, for_update=True)

        if update_status and invoice.status not in REMINDER_SOURCE_STATUSES[stage]:
            raise DocumentStateError(
                f'Reminder {stage} cannot be recorded for invoice {invoice.invoice_number} '
                f'in status {invoice.status}',
                payload={'invoice_status': invoice.status, 'stage': stage}
            )

        invoice.last_reminder_date = today or date.today()
        invoice.last_reminder_sent_at = datetime.now(timezone.utc)
        invoice.max_reminder_stage = max(invoice.max_reminder_stage or 0, stage)
        if update_status:
            invoice.status = InvoiceStatus.for_reminder_stage(stage).value

        session.commit()
        logger.info(f"Reminder {stage} recorded for invoice {invoice.invoice_number}")
        return invoice
    except Exception:
        session.rollback()
        raise
