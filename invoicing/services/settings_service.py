"""Company settings and yearly invoice start numbers."""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from invoicing.exceptions import BusinessLogicError, NotFoundError
from invoicing.models import CompanySettings, YearlyStartNumber

logger = logging.getLogger(__name__)

COMPANY_SETTINGS_ID = 1

_EDITABLE_COMPANY_FIELDS = {
    'name': str,
    'address': str,
    'phone': str,
    'email': str,
    'tax_id': str,
    'discounts_enabled': bool,
    'default_payment_days': int,
    'reminders_enabled': bool,
    'reminder_days_after_due': int,
    'reminder_days_between': int,
}


def get_company_settings(session, default_payment_days: Optional[int] = None) -> CompanySettings:
    """
    Get the company settings row, creating it with defaults if missing.

    ``default_payment_days`` only seeds a newly created row (DEFAULT_PAYMENT_DAYS
    from the config); an existing row keeps its value. Flushes but does not
    commit; the row is persisted with the caller's transaction.
    """
    settings = session.query(CompanySettings).filter(CompanySettings.id == COMPANY_SETTINGS_ID).first()
    if settings:
        return settings

    savepoint = session.begin_nested()
    try:
        settings = CompanySettings(id=COMPANY_SETTINGS_ID, name='')
        if default_payment_days is not None:
            settings.default_payment_days = default_payment_days
        session.add(settings)
        session.flush()
        savepoint.commit()
        return settings
    except IntegrityError:
        # Another request created it in the meantime
        savepoint.rollback()
        return session.query(CompanySettings).filter(CompanySettings.id == COMPANY_SETTINGS_ID).one()


def update_company_settings(session, payload: dict) -> CompanySettings:
    """Update the editable company fields present in ``payload``."""
    try:
        settings = get_company_settings(session)

        for field, cast in _EDITABLE_COMPANY_FIELDS.items():
            if field not in payload:
                continue
            value = payload[field]
            if cast is int:
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise BusinessLogicError(f'{field} must be an integer')
                if value < 0:
                    raise BusinessLogicError(f'{field} cannot be negative')
            elif cast is bool:
                if not isinstance(value, bool):
                    raise BusinessLogicError(f'{field} must be true or false')
            else:
                value = value.strip() if isinstance(value, str) else value

            setattr(settings, field, value)

        session.commit()
        logger.info("Company settings updated")
        return settings
    except Exception:
        session.rollback()
        raise


def get_year_start_number(session, year: int) -> Optional[int]:
    """Configured invoice start number for ``year``, None if not configured."""
    return (session.query(YearlyStartNumber.start_number)
            .filter(YearlyStartNumber.year == year)
            .scalar())


def list_yearly_start_numbers(session) -> List[YearlyStartNumber]:
    return session.query(YearlyStartNumber).order_by(YearlyStartNumber.year.asc()).all()


def _validate_year(year) -> int:
    try:
        year = int(year)
    except (TypeError, ValueError):
        raise BusinessLogicError('Year must be an integer')
    if year < 1900 or year > 9999:
        raise BusinessLogicError(f'Year {year} is out of range')
    return year


def set_year_start_number(session, year, start_number) -> YearlyStartNumber:
    """
    Create or update the start number of a year.

    Raising the value mid-year makes the next invoice jump to it; lowering it
    never renumbers or reuses issued numbers.
    """
    year = _validate_year(year)
    try:
        start_number = int(start_number)
    except (TypeError, ValueError):
        raise BusinessLogicError('Start number must be an integer')
    if start_number < 1:
        raise BusinessLogicError('Start number must be >= 1')

    try:
        entry = session.query(YearlyStartNumber).filter(YearlyStartNumber.year == year).first()
        if entry:
            entry.start_number = start_number
        else:
            entry = YearlyStartNumber(year=year, start_number=start_number)
            session.add(entry)
        session.commit()
        logger.info(f"Invoice start number for {year} set to {start_number}")
        return entry
    except Exception:
        session.rollback()
        raise


def delete_year_start_number(session, year) -> None:
    year = _validate_year(year)
    try:
        entry = session.query(YearlyStartNumber).filter(YearlyStartNumber.year == year).first()
        if not entry:
            raise NotFoundError(f'No start number configured for {year}')
        session.delete(entry)
        session.commit()
        logger.info(f"Invoice start number for {year} removed")
    except Exception:
        session.rollback()
        raise
