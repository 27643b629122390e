"""Models package - exports all SQLAlchemy models."""
from invoicing.models.customer import Customer
from invoicing.models.company_settings import CompanySettings
from invoicing.models.yearly_start_number import YearlyStartNumber
from invoicing.models.number_sequence import NumberSequence

# Documents
from invoicing.models.invoice import Invoice, InvoiceStatus
from invoicing.models.invoice_item import InvoiceItem
from invoicing.models.invoice_attachment import InvoiceAttachment
from invoicing.models.quote import Quote, QuoteStatus
from invoicing.models.quote_item import QuoteItem
from invoicing.models.quote_attachment import QuoteAttachment
from invoicing.models.job_entry import JobEntry, JobStatus

__all__ = [
    'Customer', 'CompanySettings', 'YearlyStartNumber', 'NumberSequence',
    'Invoice', 'InvoiceStatus', 'InvoiceItem', 'InvoiceAttachment',
    'Quote', 'QuoteStatus', 'QuoteItem', 'QuoteAttachment',
    'JobEntry', 'JobStatus',
]
