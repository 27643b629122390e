"""
Integration tests for job entries.
"""

import pytest
from datetime import date

from invoicing.exceptions import BusinessLogicError, CustomerNotFoundError, NotFoundError
from invoicing.services.job_service import create_job_entry, get_job_entry, list_job_entries
from invoicing.services.settings_service import set_year_start_number


class TestJobEntries:
    """AB-YYYY-NNN numbering and validation."""

    def test_numbered_by_creation_year(self, session, customer):
        job = create_job_entry(session, {
            'customer_id': customer.id,
            'title': 'Dachrinne reinigen',
            'date': '2024-11-20',
        }, today=date(2025, 1, 8))

        assert job.job_number == 'AB-2025-001'
        assert job.date == date(2024, 11, 20)
        assert job.status == 'draft'

    def test_sequence_ignores_invoice_start_numbers(self, session, customer):
        set_year_start_number(session, 2025, 300)
        payload = {'customer_id': customer.id, 'title': 'Wartung'}

        numbers = [create_job_entry(session, payload, today=date(2025, 2, 1)).job_number for _ in range(2)]

        assert numbers == ['AB-2025-001', 'AB-2025-002']

    def test_title_is_required(self, session, customer):
        with pytest.raises(BusinessLogicError):
            create_job_entry(session, {'customer_id': customer.id, 'title': '  '})

    def test_unknown_customer(self, session):
        with pytest.raises(CustomerNotFoundError):
            create_job_entry(session, {'customer_id': 12, 'title': 'Wartung'})

    def test_invalid_status(self, session, customer):
        with pytest.raises(BusinessLogicError):
            create_job_entry(session, {'customer_id': customer.id, 'title': 'Wartung', 'status': 'done'})

    def test_get_and_list(self, session, customer):
        job = create_job_entry(session, {'customer_id': customer.id, 'title': 'Wartung', 'status': 'in-progress'},
                               today=date(2025, 2, 1))

        assert get_job_entry(session, job.id).title == 'Wartung'
        assert [entry.id for entry in list_job_entries(session, status='in-progress')] == [job.id]
        with pytest.raises(NotFoundError):
            get_job_entry(session, 999)
