"""Explicit document number counter."""
from sqlalchemy import Column, String, Integer, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from invoicing.database import Base, BigId


class NumberSequence(Base):
    """
    Last number handed out for one document kind in one year.

    The row is locked (SELECT ... FOR UPDATE) and incremented inside the
    document-creation transaction; a rollback returns the number.
    """

    __tablename__ = 'number_sequence'
    __table_args__ = (
        UniqueConstraint('kind', 'year', name='uq_number_sequence_kind_year'),
    )

    id = Column(BigId, primary_key=True, autoincrement=True)
    kind = Column(String(16), nullable=False)
    year = Column(Integer, nullable=False)
    last_value = Column(Integer, nullable=False, default=0)  # 0 = nothing issued yet
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<NumberSequence(kind='{self.kind}', year={self.year}, last_value={self.last_value})>"
