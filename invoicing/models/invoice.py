"""Invoice model (Rechnung)."""
import enum
from sqlalchemy import Column, String, Numeric, Date, DateTime, Text, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from invoicing.database import Base, BigId
from invoicing.utils.formatters import json_date, json_decimal


class InvoiceStatus(enum.Enum):
    """Invoice status enum."""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    REMINDED_1X = "reminded_1x"
    REMINDED_2X = "reminded_2x"
    REMINDED_3X = "reminded_3x"

    @classmethod
    def values(cls):
        return [status.value for status in cls]

    @classmethod
    def for_reminder_stage(cls, stage):
        return cls(f"reminded_{stage}x")


class Invoice(Base):
    """
    Invoice (Rechnung).

    invoice_number is assigned once at creation (RE-YYYY-NNN) and never
    changes. subtotal is the pre-discount sum of quantity * unit_price;
    total is the amount after all discounts plus tax_amount.
    """

    __tablename__ = 'invoice'
    __table_args__ = (
        UniqueConstraint('invoice_number', name='uq_invoice_invoice_number'),
    )

    id = Column(BigId, primary_key=True, autoincrement=True)
    invoice_number = Column(String(32), nullable=False)
    customer_id = Column(BigId, ForeignKey('customer.id'), nullable=False)
    customer_name = Column(String(200), nullable=False)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(14, 2), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False, default=0)
    discount_type = Column(String(20), nullable=True)
    discount_value = Column(Numeric(18, 6), nullable=True)
    discount_amount = Column(Numeric(14, 2), nullable=True)
    status = Column(String(20), nullable=False, default='draft')
    notes = Column(Text, nullable=True)
    last_reminder_date = Column(Date, nullable=True)
    last_reminder_sent_at = Column(DateTime(timezone=True), nullable=True)
    max_reminder_stage = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    # Relationships
    customer = relationship('Customer')
    items = relationship('InvoiceItem', back_populates='invoice', cascade='all, delete-orphan',
                         order_by='InvoiceItem.item_order')
    attachments = relationship('InvoiceAttachment', back_populates='invoice', cascade='all, delete-orphan')

    def __repr__(self):
        return f"<Invoice(id={self.id}, number='{self.invoice_number}', status='{self.status}', total={self.total})>"

    @property
    def subtotal_after_discounts(self):
        """Net amount the tax was computed on (total minus tax)."""
        if self.total is None or self.tax_amount is None:
            return None
        return self.total - self.tax_amount

    def to_dict(self, include_items=True):
        """Convert to dictionary for JSON serialization."""
        data = {
            'id': self.id,
            'invoice_number': self.invoice_number,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'issue_date': json_date(self.issue_date),
            'due_date': json_date(self.due_date),
            'subtotal': json_decimal(self.subtotal),
            'discount_type': self.discount_type,
            'discount_value': json_decimal(self.discount_value),
            'discount_amount': json_decimal(self.discount_amount),
            'subtotal_after_discounts': json_decimal(self.subtotal_after_discounts),
            'tax_amount': json_decimal(self.tax_amount),
            'total': json_decimal(self.total),
            'status': self.status,
            'notes': self.notes,
            'last_reminder_date': json_date(self.last_reminder_date),
            'max_reminder_stage': self.max_reminder_stage,
            'created_at': json_date(self.created_at),
            'updated_at': json_date(self.updated_at),
        }
        if include_items:
            data['items'] = [item.to_dict() for item in self.items]
            data['attachments'] = [attachment.to_dict() for attachment in self.attachments]
        return data
