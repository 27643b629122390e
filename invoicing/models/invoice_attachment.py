"""InvoiceAttachment model."""
from sqlalchemy import Column, ForeignKey
from sqlalchemy.orm import relationship
from invoicing.database import Base, BigId
from invoicing.models.mixins import AttachmentColumns


class InvoiceAttachment(AttachmentColumns, Base):
    """File attached to an invoice."""

    __tablename__ = 'invoice_attachment'

    id = Column(BigId, primary_key=True, autoincrement=True)
    invoice_id = Column(BigId, ForeignKey('invoice.id', ondelete='CASCADE'), nullable=False)

    invoice = relationship('Invoice', back_populates='attachments')

    def __repr__(self):
        return f"<InvoiceAttachment(id={self.id}, invoice_id={self.invoice_id}, name='{self.name}')>"
