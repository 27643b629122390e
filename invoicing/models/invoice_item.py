"""InvoiceItem model for invoice line items."""
from sqlalchemy import Column, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from invoicing.database import Base, BigId
from invoicing.models.mixins import LineItemColumns


class InvoiceItem(LineItemColumns, Base):
    """Invoice line (Rechnungsposition)."""

    __tablename__ = 'invoice_item'
    __table_args__ = (
        UniqueConstraint('invoice_id', 'item_order', name='uq_invoice_item_order'),
    )

    id = Column(BigId, primary_key=True, autoincrement=True)
    invoice_id = Column(BigId, ForeignKey('invoice.id', ondelete='CASCADE'), nullable=False)

    # Relationships
    invoice = relationship('Invoice', back_populates='items')

    def __repr__(self):
        return f"<InvoiceItem(id={self.id}, invoice_id={self.invoice_id}, order={self.item_order}, total={self.total})>"
