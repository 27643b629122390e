"""QuoteAttachment model."""
from sqlalchemy import Column, ForeignKey
from sqlalchemy.orm import relationship
from invoicing.database import Base, BigId
from invoicing.models.mixins import AttachmentColumns


class QuoteAttachment(AttachmentColumns, Base):
    """File attached to a quote; copied to the invoice on conversion."""

    __tablename__ = 'quote_attachment'

    id = Column(BigId, primary_key=True, autoincrement=True)
    quote_id = Column(BigId, ForeignKey('quote.id', ondelete='CASCADE'), nullable=False)

    quote = relationship('Quote', back_populates='attachments')

    def __repr__(self):
        return f"<QuoteAttachment(id={self.id}, quote_id={self.quote_id}, name='{self.name}')>"
