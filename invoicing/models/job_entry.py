"""JobEntry model (Auftrag / Arbeitsbericht)."""
import enum
from sqlalchemy import Column, String, Date, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from invoicing.database import Base, BigId
from invoicing.utils.formatters import json_date


class JobStatus(enum.Enum):
    """Job entry status enum."""
    DRAFT = "draft"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    INVOICED = "invoiced"

    @classmethod
    def values(cls):
        return [status.value for status in cls]


class JobEntry(Base):
    """Job entry numbered AB-YYYY-NNN."""

    __tablename__ = 'job_entry'
    __table_args__ = (
        UniqueConstraint('job_number', name='uq_job_entry_job_number'),
    )

    id = Column(BigId, primary_key=True, autoincrement=True)
    job_number = Column(String(32), nullable=False)
    external_job_number = Column(String(100), nullable=True)
    customer_id = Column(BigId, ForeignKey('customer.id'), nullable=False)
    customer_name = Column(String(200), nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default='draft')
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    customer = relationship('Customer')

    def __repr__(self):
        return f"<JobEntry(id={self.id}, number='{self.job_number}', status='{self.status}')>"

    def to_dict(self):
        return {
            'id': self.id,
            'job_number': self.job_number,
            'external_job_number': self.external_job_number,
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'title': self.title,
            'description': self.description,
            'date': json_date(self.date),
            'status': self.status,
            'created_at': json_date(self.created_at),
        }
