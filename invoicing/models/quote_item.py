"""QuoteItem model for quote line items."""
from sqlalchemy import Column, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from invoicing.database import Base, BigId
from invoicing.models.mixins import LineItemColumns


class QuoteItem(LineItemColumns, Base):
    """Quote line (Angebotsposition)."""

    __tablename__ = 'quote_item'
    __table_args__ = (
        UniqueConstraint('quote_id', 'item_order', name='uq_quote_item_order'),
    )

    id = Column(BigId, primary_key=True, autoincrement=True)
    quote_id = Column(BigId, ForeignKey('quote.id', ondelete='CASCADE'), nullable=False)

    # Relationships
    quote = relationship('Quote', back_populates='items')

    def __repr__(self):
        return f"<QuoteItem(id={self.id}, quote_id={self.quote_id}, order={self.item_order}, total={self.total})>"
