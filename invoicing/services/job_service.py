"""Job entries (AB-YYYY-NNN)."""
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from invoicing.exceptions import BusinessLogicError, NotFoundError
from invoicing.models import JobEntry, JobStatus
from invoicing.services.customer_service import get_customer_snapshot
from invoicing.services.numbering_service import (
    MAX_ALLOCATION_ATTEMPTS, DocumentKind, NumberAllocator, create_with_number,
)
from invoicing.utils.dates import parse_date

logger = logging.getLogger(__name__)


def get_job_entry(session: Session, job_id: int) -> JobEntry:
    job = session.query(JobEntry).filter(JobEntry.id == job_id).first()
    if not job:
        raise NotFoundError(f'Job entry {job_id} not found')
    return job


def list_job_entries(session: Session, status: Optional[str] = None) -> List[JobEntry]:
    query = session.query(JobEntry)
    if status:
        query = query.filter(JobEntry.status == status)
    return query.order_by(JobEntry.date.desc(), JobEntry.id.desc()).all()


def create_job_entry(session: Session, payload: Dict[str, Any], today: Optional[date] = None,
                     max_attempts: int = MAX_ALLOCATION_ATTEMPTS) -> JobEntry:
    """
    Create a job entry.

    The number is taken from the year of the creation day (``today``), not of
    the job date, so back-dated jobs are numbered in the current sequence.
    """
    today = today or date.today()
    try:
        title = (payload.get('title') or '').strip()
        if not title:
            raise BusinessLogicError('title is required')
        job_date = parse_date(payload.get('date'), 'date', default=today)
        customer_id, customer_name = get_customer_snapshot(session, payload.get('customer_id'))

        status = payload.get('status') or JobStatus.DRAFT.value
        if status not in JobStatus.values():
            raise BusinessLogicError(f'Invalid job status: {status!r}')

        def _create(resync: bool) -> JobEntry:
            number = NumberAllocator(session).allocate(DocumentKind.JOB, today, resync=resync)
            job = JobEntry(
                job_number=number,
                external_job_number=payload.get('external_job_number') or None,
                customer_id=customer_id,
                customer_name=customer_name,
                title=title,
                description=payload.get('description'),
                date=job_date,
                status=status,
            )
            session.add(job)
            session.flush()
            return job

        job = create_with_number(session, DocumentKind.JOB, _create, max_attempts)
    except Exception:
        session.rollback()
        raise

    logger.info(f"Job entry {job.job_number} created for customer {customer_id}")
    return job
