"""Company settings model (single row)."""
from sqlalchemy import Column, String, Text, Boolean, Integer, DateTime
from sqlalchemy.sql import func
from invoicing.database import Base, BigId


class CompanySettings(Base):
    """
    Company profile and document defaults.

    There is exactly one row (id=1); see settings_service.get_company_settings.
    """

    __tablename__ = 'company_settings'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, default='')
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    tax_id = Column(String(50), nullable=True)

    discounts_enabled = Column(Boolean, nullable=False, default=True)
    default_payment_days = Column(Integer, nullable=False, default=30)

    reminders_enabled = Column(Boolean, nullable=False, default=False)
    reminder_days_after_due = Column(Integer, nullable=False, default=7)
    reminder_days_between = Column(Integer, nullable=False, default=7)

    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<CompanySettings(name='{self.name}', discounts_enabled={self.discounts_enabled})>"

    def to_dict(self):
        """Convert to dictionary for JSON serialization."""
        return {
            'name': self.name,
            'address': self.address,
            'phone': self.phone,
            'email': self.email,
            'tax_id': self.tax_id,
            'discounts_enabled': self.discounts_enabled,
            'default_payment_days': self.default_payment_days,
            'reminders_enabled': self.reminders_enabled,
            'reminder_days_after_due': self.reminder_days_after_due,
            'reminder_days_between': self.reminder_days_between,
        }
