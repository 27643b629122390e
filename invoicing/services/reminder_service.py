"""
Payment reminder eligibility.

Which unpaid invoices are due for their next reminder stage, based on the
reminder settings of the company.
"""
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from invoicing.models import CompanySettings, Invoice, InvoiceStatus
from invoicing.services.settings_service import COMPANY_SETTINGS_ID

# Next reminder stage by current status
NEXT_STAGE_BY_STATUS = {
    InvoiceStatus.SENT.value: 1,
    InvoiceStatus.OVERDUE.value: 1,
    InvoiceStatus.REMINDED_1X.value: 2,
    InvoiceStatus.REMINDED_2X.value: 3,
}


def next_eligible_date(invoice: Invoice, next_stage: int, settings: CompanySettings) -> date:
    """
    First day the next reminder may be sent.

    Stage 1 waits reminder_days_after_due after the due date; stages 2 and 3
    wait reminder_days_between after the last reminder.
    """
    if next_stage == 1:
        return invoice.due_date + timedelta(days=settings.reminder_days_after_due)
    last_reminder = invoice.last_reminder_date or invoice.due_date
    return last_reminder + timedelta(days=settings.reminder_days_between)


def get_reminder_candidates(session, today: date = None) -> List[Dict[str, Any]]:
    """
    List unpaid invoices that can receive another reminder.

    Args:
        session: SQLAlchemy session
        today: Date to use as reference (defaults to date.today())

    Returns:
        List of dicts (oldest due date first) with keys:
            - invoice: Invoice
            - next_stage: int (1-3)
            - days_overdue: int
            - eligible: bool
            - next_eligible_date: date
        Empty when reminders are disabled.
    """
    if today is None:
        today = date.today()

    settings: Optional[CompanySettings] = (session.query(CompanySettings)
                                           .filter(CompanySettings.id == COMPANY_SETTINGS_ID)
                                           .first())
    if settings is None or not settings.reminders_enabled:
        return []

    invoices = (session.query(Invoice)
                .filter(Invoice.status.in_(list(NEXT_STAGE_BY_STATUS)))
                .order_by(Invoice.due_date.asc(), Invoice.id.asc())
                .all())

    candidates = []
    for invoice in invoices:
        next_stage = NEXT_STAGE_BY_STATUS[invoice.status]
        eligible_from = next_eligible_date(invoice, next_stage, settings)
        candidates.append({
            'invoice': invoice,
            'next_stage': next_stage,
            'days_overdue': (today - invoice.due_date).days,
            'eligible': today >= eligible_from,
            'next_eligible_date': eligible_from,
        })
    return candidates
