"""Quote model (Angebot)."""
import enum
from sqlalchemy import Column, String, Numeric, DateTime, Date, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from invoicing.database import Base, BigId
from invoicing.utils.formatters import json_date, json_decimal


class QuoteStatus(enum.Enum):
    """Quote status enum."""
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    BILLED = "billed"

    @classmethod
    def values(cls):
        return [status.value for status in cls]


class Quote(Base):
    """
    Quote (Angebot).

    An accepted quote can be converted to an invoice once, at which point its
    status becomes billed and converted_to_invoice_id is populated.
    """

    __tablename__ = 'quote'
    __table_args__ = (
        UniqueConstraint('quote_number', name='uq_quote_quote_number'),
    )

    id = Column(BigId, primary_key=True, autoincrement=True)
    quote_number = Column(String(32), nullable=False)
    customer_id = Column(BigId, ForeignKey('customer.id'), nullable=False)
    customer_name = Column(String(200), nullable=False)
    issue_date = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=True)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    discount_type = Column(String(20), nullable=True)
    discount_value = Column(Numeric(18, 6), nullable=True)
    discount_amount = Column(Numeric(14, 2), nullable=True)
    status = Column(String(20), nullable=False, default='draft')
    notes = Column(Text, nullable=True)
    converted_to_invoice_id = Column(BigId, ForeignKey('invoice.id', ondelete='SET NULL'), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    customer = relationship('Customer')
    items = relationship('QuoteItem', back_populates='quote', cascade='all, delete-orphan',
                         order_by='QuoteItem.item_order')
    attachments = relationship('QuoteAttachment', back_populates='quote', cascade='all, delete-orphan')
    converted_to_invoice = relationship('Invoice', foreign_keys=[converted_to_invoice_id], uselist=False)

    def __repr__(self):
        return f"<Quote(id={self.id}, number='{self.quote_number}', status='{self.status}', total={self.total})>"

    @property
    def is_convertible(self):
        """Check if quote can be converted to an invoice."""
        return self.status == QuoteStatus.ACCEPTED.value and self.converted_to_invoice_id is None

    def to_dict(self, include_items=True):
        """Convert to dictionary for JSON serialization."""
        data = {
            'id': self.id,
            'quote_number': self.quote_number,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'issue_date': json_date(self.issue_date),
            'valid_until': json_date(self.valid_until),
            'subtotal': json_decimal(self.subtotal),
            'discount_type': self.discount_type,
            'discount_value': json_decimal(self.discount_value),
            'discount_amount': json_decimal(self.discount_amount),
            'tax_amount': json_decimal(self.tax_amount),
            'total': json_decimal(self.total),
            'status': self.status,
            'notes': self.notes,
            'converted_to_invoice_id': self.converted_to_invoice_id,
            'created_at': json_date(self.created_at),
            'updated_at': json_date(self.updated_at),
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
            data['attachments'] = [attachment.to_dict() for attachment in self.attachments]
        return data
