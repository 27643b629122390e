"""Customer model."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from invoicing.database import Base, BigId


class Customer(Base):
    """Customer (Kunde). Documents only read its display name."""

    __tablename__ = 'customer'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}')>"
