"""
Sequential document numbering: RE-YYYY-NNN (invoice), AN-YYYY-NNN (quote),
AB-YYYY-NNN (job).

The last number handed out per (kind, year) lives in a NumberSequence row
that is locked with SELECT ... FOR UPDATE and incremented in the caller's
transaction, so two concurrent creations can never compute the same number.
The first allocation of a (kind, year) seeds that row from the most recently
created document of the year, which keeps imported and hand-entered numbers
in sequence.

Unique constraints on the number columns stay as a backstop: a violation
rolls the whole creation back and ``create_with_number`` retries it with a
resynchronised counter.
"""
import enum
import logging
import re
import warnings
from datetime import date
from typing import Callable, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from invoicing.blueprints.metrics import (
    document_numbers_allocated_total, documents_created_total, number_allocation_conflicts_total,
)
from invoicing.exceptions import MalformedPriorNumberWarning, NumberAllocationConflict
from invoicing.models import Invoice, JobEntry, NumberSequence, Quote

logger = logging.getLogger(__name__)

T = TypeVar('T')

NUMBER_WIDTH = 3
MAX_ALLOCATION_ATTEMPTS = 5

# Integer parse of the suffix: leading digits count, "007" is 7
_SUFFIX_DIGITS = re.compile(r'\s*([0-9]+)')


class DocumentKind(enum.Enum):
    """Numbered document kinds."""
    INVOICE = "invoice"
    QUOTE = "quote"
    JOB = "job"

    @property
    def prefix(self):
        return _PREFIXES[self]


_PREFIXES = {
    DocumentKind.INVOICE: 'RE',
    DocumentKind.QUOTE: 'AN',
    DocumentKind.JOB: 'AB',
}


def _number_column(kind: DocumentKind):
    if kind is DocumentKind.INVOICE:
        return Invoice, Invoice.invoice_number
    if kind is DocumentKind.QUOTE:
        return Quote, Quote.quote_number
    return JobEntry, JobEntry.job_number


def year_prefix(kind: DocumentKind, year: int) -> str:
    return f"{kind.prefix}-{year}-"


def format_document_number(kind: DocumentKind, year: int, value: int) -> str:
    """Zero-pad to at least 3 digits; wider values are kept as they are."""
    return f"{year_prefix(kind, year)}{str(value).zfill(NUMBER_WIDTH)}"


def parse_number_suffix(number: str, kind: DocumentKind, year: int) -> Optional[int]:
    """
    Return the numeric suffix of ``number`` or None if it has none.

    Examples:
        parse_number_suffix('RE-2025-007', INVOICE, 2025) -> 7
        parse_number_suffix('RE-2025-0042', INVOICE, 2025) -> 42
        parse_number_suffix('RE-2025-ABC', INVOICE, 2025) -> None
    """
    prefix = year_prefix(kind, year)
    if not number or not number.startswith(prefix):
        return None
    match = _SUFFIX_DIGITS.match(number[len(prefix):])
    if not match:
        return None
    return int(match.group(1))


def find_last_number(session: Session, kind: DocumentKind, year: int) -> Optional[str]:
    """Most recently created number of the year, regardless of its numeric value."""
    model, column = _number_column(kind)
    return (session.query(column)
            .filter(column.like(f"{year_prefix(kind, year)}%"))
            .order_by(model.created_at.desc(), model.id.desc())
            .limit(1)
            .scalar())


class NumberAllocator:
    """
    Hands out the next document number of a kind for a reference year.

    Contract:
        - No document of the year yet: start at max(1, year_start_override).
        - Otherwise last + 1; for invoices the override is a floor, so raising
          it mid-year skips ahead and lowering it never goes backwards.
          Quotes and jobs ignore the floor.
        - Does NOT commit; the counter increment is rolled back with the
          caller's transaction.
    """

    def __init__(self, session: Session):
        self._session = session

    def allocate(self, kind: DocumentKind, reference_date: date,
                 year_start_override: Optional[int] = None, resync: bool = False) -> str:
        """
        Reserve and return the next number for ``kind`` in ``reference_date.year``.

        Args:
            kind: Document kind.
            reference_date: Date whose year scopes the sequence.
            year_start_override: Configured start number for the year (invoices).
            resync: Jump past the highest number issued in the year if the
                counter is behind (used when retrying after a conflict).
        """
        year = reference_date.year
        start = max(1, year_start_override or 1)

        sequence = self._lock_sequence(kind, year)
        last = sequence.last_value
        if resync:
            last = max(last, self._highest_issued_value(kind, year))

        if last:
            next_value = last + 1
            if kind is DocumentKind.INVOICE:
                next_value = max(next_value, start)
        else:
            next_value = start

        sequence.last_value = next_value
        self._session.flush()

        number = format_document_number(kind, year, next_value)
        document_numbers_allocated_total.labels(kind=kind.value).inc()
        logger.debug(f"Allocated {kind.value} number {number}")
        return number

    def _last_issued_value(self, kind: DocumentKind, year: int) -> int:
        """Numeric suffix of the last created document of the year, 0 if none or malformed."""
        last_number = find_last_number(self._session, kind, year)
        if last_number is None:
            return 0

        value = parse_number_suffix(last_number, kind, year)
        if value is None:
            message = (f"Ignoring malformed {kind.value} number {last_number!r}, "
                       f"restarting {year} at its start number")
            logger.warning(message)
            warnings.warn(message, MalformedPriorNumberWarning, stacklevel=3)
            return 0
        return value

    def _highest_issued_value(self, kind: DocumentKind, year: int) -> int:
        """Largest numeric suffix issued in the year; malformed numbers are skipped."""
        _, column = _number_column(kind)
        numbers = (self._session.query(column)
                   .filter(column.like(f"{year_prefix(kind, year)}%"))
                   .all())
        values = [parse_number_suffix(number, kind, year) for (number,) in numbers]
        return max((value for value in values if value is not None), default=0)

    def _lock_sequence(self, kind: DocumentKind, year: int) -> NumberSequence:
        stmt = (select(NumberSequence)
                .where(NumberSequence.kind == kind.value, NumberSequence.year == year)
                .with_for_update()
                .execution_options(populate_existing=True))

        sequence = self._session.execute(stmt).scalar_one_or_none()
        if sequence is not None:
            return sequence

        # First allocation of this (kind, year): seed from existing documents.
        # A savepoint keeps the caller's work if another transaction wins the insert.
        seed = self._last_issued_value(kind, year)
        savepoint = self._session.begin_nested()
        try:
            sequence = NumberSequence(kind=kind.value, year=year, last_value=seed)
            self._session.add(sequence)
            self._session.flush()
            savepoint.commit()
            logger.info(f"Started {kind.value} sequence for {year} at {seed}")
            return sequence
        except IntegrityError:
            savepoint.rollback()
            logger.debug(f"Concurrent creation of {kind.value} sequence for {year}, re-reading")
            return self._session.execute(stmt).scalar_one()


# Unique constraints backing each number column. PostgreSQL reports the
# constraint name (the _key name is its default for older schemas), SQLite
# reports table.column.
_NUMBER_CONSTRAINTS = {
    DocumentKind.INVOICE: ('uq_invoice_invoice_number', 'invoice_invoice_number_key', 'invoice.invoice_number'),
    DocumentKind.QUOTE: ('uq_quote_quote_number', 'quote_quote_number_key', 'quote.quote_number'),
    DocumentKind.JOB: ('uq_job_entry_job_number', 'job_entry_job_number_key', 'job_entry.job_number'),
}


def _is_number_conflict(error: IntegrityError, kind: DocumentKind) -> bool:
    """True if ``error`` is a uniqueness violation on the number column of ``kind``."""
    markers = _NUMBER_CONSTRAINTS[kind]
    constraint_name = getattr(getattr(error.orig, 'diag', None), 'constraint_name', None)
    if constraint_name:
        return constraint_name in markers
    message = str(error.orig)
    if 'unique' not in message.lower() and 'duplicate' not in message.lower():
        return False
    return any(re.search(rf'(?<![\w.]){re.escape(marker)}(?![\w.])', message) for marker in markers)


def create_with_number(session: Session, kind: DocumentKind, create: Callable[[bool], T],
                       max_attempts: int = MAX_ALLOCATION_ATTEMPTS) -> T:
    """
    Run ``create(resync)`` and commit, retrying on number conflicts.

    ``create`` must do all of its reads and writes inside the call (objects
    loaded before a rollback are expired), allocate through NumberAllocator
    and pass ``resync`` on. Any other error propagates; the caller rolls back.

    Raises:
        NumberAllocationConflict: every attempt hit a uniqueness violation.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            result = create(attempt > 1)
            session.commit()
            documents_created_total.labels(kind=kind.value).inc()
            return result
        except IntegrityError as e:
            session.rollback()
            if not _is_number_conflict(e, kind):
                raise
            number_allocation_conflicts_total.labels(kind=kind.value).inc()
            logger.warning(f"Number conflict for {kind.value} (attempt {attempt}/{max_attempts}): {e.orig}")

    raise NumberAllocationConflict(kind.value, max_attempts)
