"""Quote service for managing quotes and converting them to invoices."""
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from invoicing.engine import compute
from invoicing.exceptions import BusinessLogicError, DocumentStateError, NotFoundError
from invoicing.models import (
    Invoice, InvoiceAttachment, InvoiceItem, InvoiceStatus,
    Quote, QuoteAttachment, QuoteItem, QuoteStatus,
)
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

DEFAULT_QUOTE_VALID_DAYS = 30

_DISCOUNT_FIELDS = ('discount_type', 'discount_value')


def _validate_status(status: str) -> str:
    if status not in QuoteStatus.values():
        raise BusinessLogicError(f'Invalid quote status: {status!r}')
    if status == QuoteStatus.BILLED.value:
        raise DocumentStateError('Quotes are billed only by converting them to an invoice')
    return status


def _ensure_not_billed(quote: Quote) -> None:
    if quote.status == QuoteStatus.BILLED.value or quote.converted_to_invoice_id is not None:
        raise DocumentStateError(
            f'Quote {quote.quote_number} is billed and can no longer be changed',
            payload={'converted_to_invoice_id': quote.converted_to_invoice_id}
        )


def get_quote(session: Session, quote_id: int, for_update: bool = False) -> Quote:
    query = session.query(Quote).filter(Quote.id == quote_id)
    if for_update:
        query = query.with_for_update()
    quote = query.first()
    if not quote:
        raise NotFoundError(f'Quote {quote_id} not found')
    return quote


def list_quotes(session: Session, status: Optional[str] = None,
                customer_id: Optional[int] = None) -> List[Quote]:
    query = session.query(Quote)
    if status:
        if status not in QuoteStatus.values():
            raise BusinessLogicError(f'Invalid quote status: {status!r}')
        query = query.filter(Quote.status == status)
    if customer_id:
        query = query.filter(Quote.customer_id == customer_id)
    return query.order_by(Quote.issue_date.desc(), Quote.id.desc()).all()


def create_quote(session: Session, payload: Dict[str, Any], today: Optional[date] = None,
                 valid_days: int = DEFAULT_QUOTE_VALID_DAYS,
                 max_attempts: int = MAX_ALLOCATION_ATTEMPTS) -> Quote:
    """
    Create a quote (AN-YYYY-NNN, year of the issue date).

    valid_until defaults to issue_date + valid_days. Quote numbers do not use
    the yearly invoice start numbers.
    """
    try:
        issue_date = parse_date(payload.get('issue_date'), 'issue_date', default=today or date.today())
        valid_until = parse_date(payload.get('valid_until'), 'valid_until',
                                 default=issue_date + timedelta(days=valid_days))
        if valid_until < issue_date:
            raise BusinessLogicError('valid_until cannot be before issue_date')
        customer_id, customer_name = get_customer_snapshot(session, payload.get('customer_id'))

        settings = get_company_settings(session)
        line_items = build_line_items(payload.get('items'), settings.discounts_enabled)
        document_discount = build_document_discount(payload, settings.discounts_enabled)
        result = compute(line_items, document_discount)
        attachments = build_attachments(payload.get('attachments'))
        status = _validate_status(payload.get('status') or QuoteStatus.DRAFT.value)
        notes = payload.get('notes')

        def _create(resync: bool) -> Quote:
            number = NumberAllocator(session).allocate(DocumentKind.QUOTE, issue_date, resync=resync)
            quote = Quote(
                quote_number=number,
                customer_id=customer_id,
                customer_name=customer_name,
                issue_date=issue_date,
                valid_until=valid_until,
                status=status,
                notes=notes,
                **amount_columns(result, document_discount)
            )
            quote.items = [QuoteItem(**columns) for columns in item_columns(line_items, result)]
            quote.attachments = [QuoteAttachment(**attachment) for attachment in attachments]
            session.add(quote)
            session.flush()
            return quote

        quote = create_with_number(session, DocumentKind.QUOTE, _create, max_attempts)
    except Exception:
        session.rollback()
        raise

    logger.info(f"Quote {quote.quote_number} created for customer {customer_id}, total {quote.total}")
    return quote


def update_quote(session: Session, quote_id: int, payload: Dict[str, Any]) -> Quote:
    """
    Update a quote that has not been billed.

    Supplying ``items`` replaces all items; items or discount fields trigger a
    recomputation. The number never changes.
    """
    try:
        quote = get_quote(session, quote_id, for_update=True)
        _ensure_not_billed(quote)

        if 'quote_number' in payload and payload['quote_number'] != quote.quote_number:
            raise BusinessLogicError('Quote numbers cannot be changed')

        if 'customer_id' in payload:
            quote.customer_id, quote.customer_name = get_customer_snapshot(session, payload['customer_id'])
        if 'issue_date' in payload:
            quote.issue_date = parse_date(payload['issue_date'], 'issue_date', default=quote.issue_date)
        if 'valid_until' in payload:
            quote.valid_until = parse_date(payload['valid_until'], 'valid_until')
        if quote.valid_until is not None and quote.valid_until < quote.issue_date:
            raise BusinessLogicError('valid_until cannot be before issue_date')
        if 'notes' in payload:
            quote.notes = payload['notes']
        if 'status' in payload:
            quote.status = _validate_status(payload['status'])

        items_supplied = 'items' in payload
        if items_supplied or any(field in payload for field in _DISCOUNT_FIELDS):
            settings = get_company_settings(session)
            if items_supplied:
                line_items = build_line_items(payload['items'], settings.discounts_enabled)
            else:
                line_items = line_items_from_rows(quote.items)
            if any(field in payload for field in _DISCOUNT_FIELDS):
                document_discount = build_document_discount(payload, settings.discounts_enabled)
            else:
                document_discount = document_discount_from_row(quote)

            result = compute(line_items, document_discount)
            apply_amounts(quote, result, document_discount)
            if items_supplied:
                replace_items(session, quote, QuoteItem, QuoteItem.quote_id, line_items, result)

        session.commit()
        logger.info(f"Quote {quote.quote_number} updated")
        return quote
    except Exception:
        session.rollback()
        raise


def delete_quote(session: Session, quote_id: int) -> None:
    """Delete a quote that has not been billed."""
    try:
        quote = get_quote(session, quote_id)
        _ensure_not_billed(quote)
        number = quote.quote_number
        session.delete(quote)
        session.commit()
        logger.info(f"Quote {number} deleted")
    except Exception:
        session.rollback()
        raise


def _ensure_convertible(quote: Quote) -> None:
    _ensure_not_billed(quote)
    if quote.status != QuoteStatus.ACCEPTED.value:
        raise DocumentStateError(
            f'Only accepted quotes can be converted, quote {quote.quote_number} is {quote.status}',
            payload={'quote_status': quote.status}
        )


def convert_quote_to_invoice(session: Session, quote_id: int, today: Optional[date] = None,
                             max_attempts: int = MAX_ALLOCATION_ATTEMPTS) -> Invoice:
    """
    Convert an accepted quote into a new invoice.

    The invoice is dated ``today``, numbered in today's year (honoring that
    year's start number) and due after the company's default payment days.
    Items with their discounts, the document discount and the attachments are
    copied and the amounts recomputed. The quote becomes billed in the same
    transaction.

    Raises:
        NotFoundError: unknown quote
        DocumentStateError: quote not accepted or already converted
        NumberAllocationConflict: no free invoice number after max_attempts
    """
    issue_date = today or date.today()
    try:
        # Fail fast before any number is reserved
        _ensure_convertible(get_quote(session, quote_id))
        payment_days = get_company_settings(session).default_payment_days

        def _create(resync: bool) -> Invoice:
            # Re-read under lock: a retry starts from a rolled back session
            quote = get_quote(session, quote_id, for_update=True)
            _ensure_convertible(quote)

            line_items = line_items_from_rows(quote.items)
            document_discount = document_discount_from_row(quote)
            result = compute(line_items, document_discount)

            number = NumberAllocator(session).allocate(
                DocumentKind.INVOICE, issue_date,
                get_year_start_number(session, issue_date.year), resync=resync
            )
            notes = f"Created from quote {quote.quote_number}"
            if quote.notes:
                notes = f"{notes}\n\n{quote.notes}"

            invoice = Invoice(
                invoice_number=number,
                customer_id=quote.customer_id,
                customer_name=quote.customer_name,
                issue_date=issue_date,
                due_date=issue_date + timedelta(days=payment_days),
                status=InvoiceStatus.DRAFT.value,
                notes=notes,
                max_reminder_stage=0,
                **amount_columns(result, document_discount)
            )
            invoice.items = [InvoiceItem(**columns) for columns in item_columns(line_items, result)]
            invoice.attachments = [
                InvoiceAttachment(
                    name=attachment.name,
                    content=attachment.content,
                    content_type=attachment.content_type,
                    size=attachment.size,
                )
                for attachment in quote.attachments
            ]
            session.add(invoice)
            session.flush()

            quote.status = QuoteStatus.BILLED.value
            quote.converted_to_invoice_id = invoice.id
            session.flush()
            return invoice

        invoice = create_with_number(session, DocumentKind.INVOICE, _create, max_attempts)
    except Exception:
        session.rollback()
        raise

    logger.info(f"Quote {quote_id} converted to invoice {invoice.invoice_number}")
    return invoice
