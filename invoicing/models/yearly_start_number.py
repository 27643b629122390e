"""Per-year minimum for invoice number suffixes."""
from sqlalchemy import Column, Integer, DateTime, CheckConstraint
from sqlalchemy.sql import func
from invoicing.database import Base, BigId


class YearlyStartNumber(Base):
    """
    Operator-configured floor for invoice numbers of one year.

    Years without a row start at 1.
    """

    __tablename__ = 'yearly_invoice_start_number'
    __table_args__ = (
        CheckConstraint('start_number >= 1', name='ck_yearly_start_number_positive'),
    )

    id = Column(BigId, primary_key=True, autoincrement=True)
    year = Column(Integer, nullable=False, unique=True)
    start_number = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<YearlyStartNumber(year={self.year}, start_number={self.start_number})>"

    def to_dict(self):
        return {'year': self.year, 'start_number': self.start_number}
