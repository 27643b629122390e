"""Column sets shared by invoice and quote child rows."""
from sqlalchemy import Column, String, Text, Numeric, Integer, DateTime
from sqlalchemy.sql import func

from invoicing.utils.formatters import json_date, json_decimal


class LineItemColumns:
    """Columns of a document line item (invoice_item, quote_item)."""

    description = Column(Text, nullable=False, default='')
    quantity = Column(Numeric(18, 6), nullable=False)
    unit_price = Column(Numeric(18, 6), nullable=False)
    tax_rate = Column(Numeric(7, 4), nullable=False, default=0)
    total = Column(Numeric(14, 2), nullable=False)  # net after item discount, tax-exclusive
    item_order = Column(Integer, nullable=False)
    discount_type = Column(String(20), nullable=True)  # percentage, fixed
    discount_value = Column(Numeric(18, 6), nullable=True)
    discount_amount = Column(Numeric(14, 2), nullable=True)

    def to_dict(self):
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'order': self.item_order,
            'description': self.description,
            'quantity': json_decimal(self.quantity),
            'unit_price': json_decimal(self.unit_price),
            'tax_rate': json_decimal(self.tax_rate),
            'discount_type': self.discount_type,
            'discount_value': json_decimal(self.discount_value),
            'discount_amount': json_decimal(self.discount_amount),
            'total': json_decimal(self.total),
        }


class AttachmentColumns:
    """Columns of a document attachment (content is base64 text)."""

    name = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    content_type = Column(String(100), nullable=True)
    size = Column(Integer, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def to_dict(self, include_content=False):
        data = {
            'id': self.id,
            'name': self.name,
            'content_type': self.content_type,
            'size': self.size,
            'uploaded_at': json_date(self.uploaded_at),
        }
        if include_content:
            data['content'] = self.content
        return data
