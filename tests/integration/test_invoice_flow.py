"""
Integration tests for invoice creation, updates and reminders.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from invoicing.exceptions import (
    BusinessLogicError, CustomerNotFoundError, DocumentStateError, InvalidDateError,
    InvalidDiscountError, InvalidLineItemError, NotFoundError,
)
from invoicing.models import Invoice, InvoiceItem, NumberSequence
from invoicing.services.invoice_service import (
    create_invoice, delete_invoice, get_invoice, list_invoices, record_reminder, update_invoice,
)
from invoicing.services.settings_service import set_year_start_number, update_company_settings


class TestCreateInvoice:
    """Creation: numbering, amounts, persisted rows."""

    def test_creates_numbered_invoice_with_amounts(self, session, company, invoice_payload):
        invoice = create_invoice(session, invoice_payload)

        assert invoice.invoice_number == 'RE-2025-001'
        assert invoice.customer_name == 'Muster GmbH'
        assert invoice.subtotal == Decimal('250.00')
        assert invoice.tax_amount == Decimal('41.50')
        assert invoice.total == Decimal('291.50')
        assert invoice.status == 'draft'
        assert [item.item_order for item in invoice.items] == [1, 2]
        assert invoice.items[0].total == Decimal('200.00')

    def test_due_date_defaults_to_payment_days(self, session, company, invoice_payload):
        invoice = create_invoice(session, invoice_payload)

        assert invoice.issue_date == date(2025, 3, 1)
        assert invoice.due_date == date(2025, 3, 1) + timedelta(days=company.default_payment_days)

    def test_issue_date_defaults_to_today(self, session, company, invoice_payload):
        del invoice_payload['issue_date']
        invoice = create_invoice(session, invoice_payload, today=date(2026, 2, 3))

        assert invoice.issue_date == date(2026, 2, 3)
        assert invoice.invoice_number == 'RE-2026-001'

    def test_works_without_company_settings_row(self, session, invoice_payload):
        invoice = create_invoice(session, invoice_payload)

        assert invoice.due_date == date(2025, 3, 31)

    def test_document_discount_is_persisted(self, session, company, invoice_payload):
        invoice_payload.update({'discount_type': 'fixed', 'discount_value': '20'})
        invoice = create_invoice(session, invoice_payload)

        assert invoice.subtotal == Decimal('250.00')
        assert invoice.discount_type == 'fixed'
        assert invoice.discount_amount == Decimal('20.00')
        assert invoice.subtotal_after_discounts == Decimal('230.00')
        assert invoice.tax_amount == Decimal('38.18')
        assert invoice.total == Decimal('268.18')

    def test_sequential_numbers_and_start_number(self, session, company, invoice_payload):
        numbers = [create_invoice(session, invoice_payload).invoice_number for _ in range(3)]
        set_year_start_number(session, 2025, 50)
        numbers.append(create_invoice(session, invoice_payload).invoice_number)

        assert numbers == ['RE-2025-001', 'RE-2025-002', 'RE-2025-003', 'RE-2025-050']

    def test_attachments_are_stored(self, session, company, invoice_payload):
        invoice_payload['attachments'] = [{'name': 'aufmass.pdf', 'content': 'JVBERi0=', 'content_type': 'application/pdf'}]
        invoice = create_invoice(session, invoice_payload)

        assert [attachment.name for attachment in invoice.attachments] == ['aufmass.pdf']


class TestCreateInvoiceValidation:
    """Invalid input never reserves a number or writes rows."""

    def _assert_nothing_written(self, session):
        assert session.query(Invoice).count() == 0
        assert session.query(NumberSequence).count() == 0

    def test_unknown_customer(self, session, company, invoice_payload):
        invoice_payload['customer_id'] = 9999
        with pytest.raises(CustomerNotFoundError):
            create_invoice(session, invoice_payload)
        self._assert_nothing_written(session)

    def test_invalid_issue_date(self, session, company, invoice_payload):
        invoice_payload['issue_date'] = '2025-13-01'
        with pytest.raises(InvalidDateError):
            create_invoice(session, invoice_payload)
        self._assert_nothing_written(session)

    def test_due_before_issue(self, session, company, invoice_payload):
        invoice_payload['due_date'] = '2025-02-01'
        with pytest.raises(BusinessLogicError):
            create_invoice(session, invoice_payload)
        self._assert_nothing_written(session)

    def test_document_discount_above_subtotal(self, session, company, invoice_payload):
        invoice_payload.update({'discount_type': 'fixed', 'discount_value': '300'})
        with pytest.raises(InvalidDiscountError):
            create_invoice(session, invoice_payload)
        self._assert_nothing_written(session)

    def test_negative_quantity(self, session, company, invoice_payload):
        invoice_payload['items'][0]['quantity'] = '-1'
        with pytest.raises(InvalidLineItemError):
            create_invoice(session, invoice_payload)
        self._assert_nothing_written(session)

    def test_discounts_disabled(self, session, company, invoice_payload):
        update_company_settings(session, {'discounts_enabled': False})
        invoice_payload.update({'discount_type': 'percentage', 'discount_value': '5'})

        with pytest.raises(InvalidDiscountError):
            create_invoice(session, invoice_payload)
        assert session.query(Invoice).count() == 0

    def test_invalid_status(self, session, company, invoice_payload):
        invoice_payload['status'] = 'archived'
        with pytest.raises(BusinessLogicError):
            create_invoice(session, invoice_payload)


class TestUpdateInvoice:
    """Updates keep the number and recompute amounts."""

    def test_replace_items(self, session, company, invoice_payload):
        invoice = create_invoice(session, invoice_payload)

        updated = update_invoice(session, invoice.id, {
            'items': [
                {'description': 'Pauschale', 'quantity': '1', 'unit_price': '400', 'tax_rate': '19'},
            ]
        })

        assert updated.invoice_number == 'RE-2025-001'
        assert updated.subtotal == Decimal('400.00')
        assert updated.tax_amount == Decimal('76.00')
        assert updated.total == Decimal('476.00')
        assert [item.description for item in updated.items] == ['Pauschale']
        assert session.query(InvoiceItem).count() == 1

    def test_reordered_items_reuse_orders(self, session, company, invoice_payload):
        invoice = create_invoice(session, invoice_payload)
        items = list(reversed(invoice_payload['items']))

        updated = update_invoice(session, invoice.id, {'items': items})

        assert [item.item_order for item in updated.items] == [1, 2]
        assert updated.items[0].description == 'Material'

    def test_discount_only_change_recomputes(self, session, company, invoice_payload):
        invoice = create_invoice(session, invoice_payload)

        updated = update_invoice(session, invoice.id, {'discount_type': 'fixed', 'discount_value': '20'})

        assert updated.total == Decimal('268.18')
        assert [item.total for item in updated.items] == [Decimal('200.00'), Decimal('50.00')]

    def test_recompute_from_rows_matches_creation(self, session, company, invoice_payload):
        """Sub-cent prices and fractional rates survive the round trip through the item rows."""
        invoice_payload['items'] = [
            {'quantity': '3', 'unit_price': '0.3333', 'tax_rate': '19'},
            {'quantity': '0.125', 'unit_price': '10.0049', 'tax_rate': '7.25'},
        ]
        invoice = create_invoice(session, invoice_payload)
        created = (invoice.subtotal, invoice.tax_amount, invoice.total)

        updated = update_invoice(session, invoice.id, {'discount_type': None})

        assert created == (Decimal('2.25'), Decimal('0.28'), Decimal('2.53'))
        assert (updated.subtotal, updated.tax_amount, updated.total) == created
        assert updated.items[0].unit_price == Decimal('0.3333')
        assert updated.items[1].tax_rate == Decimal('7.25')

    def test_number_is_immutable(self, session, company, invoice_payload):
        invoice = create_invoice(session, invoice_payload)

        with pytest.raises(BusinessLogicError):
            update_invoice(session, invoice.id, {'invoice_number': 'RE-2025-999'})
        assert get_invoice(session, invoice.id).invoice_number == 'RE-2025-001'

    def test_failed_update_rolls_back(self, session, company, invoice_payload):
        invoice = create_invoice(session, invoice_payload)

        with pytest.raises(InvalidDiscountError):
            update_invoice(session, invoice.id, {
                'notes': 'changed',
                'items': [{'quantity': 1, 'unit_price': '10'}],
                'discount_type': 'fixed',
                'discount_value': '11',
            })

        reloaded = get_invoice(session, invoice.id)
        assert reloaded.notes is None
        assert reloaded.total == Decimal('291.50')
        assert len(reloaded.items) == 2

    def test_status_correction(self, session, company, invoice_payload):
        invoice = create_invoice(session, invoice_payload)

        assert update_invoice(session, invoice.id, {'status': 'paid'}).status == 'paid'
        with pytest.raises(BusinessLogicError):
            update_invoice(session, invoice.id, {'status': 'lost'})

    def test_unknown_invoice(self, session):
        with pytest.raises(NotFoundError):
            update_invoice(session, 404, {'notes': 'x'})


class TestDeleteAndList:
    """Deleting never frees the number."""

    def test_delete_keeps_sequence(self, session, company, invoice_payload):
        first = create_invoice(session, invoice_payload)
        delete_invoice(session, first.id)

        assert session.query(InvoiceItem).count() == 0
        assert create_invoice(session, invoice_payload).invoice_number == 'RE-2025-002'

    def test_list_filters(self, session, company, invoice_payload):
        create_invoice(session, invoice_payload)
        create_invoice(session, dict(invoice_payload, issue_date='2024-12-30'))

        assert len(list_invoices(session)) == 2
        assert [i.invoice_number for i in list_invoices(session, year=2024)] == ['RE-2024-001']
        assert list_invoices(session, status='paid') == []


class TestReminders:
    """Reminder stages and the watermark."""

    def _sent_invoice(self, session, payload):
        payload['status'] = 'sent'
        return create_invoice(session, payload)

    def test_stages_advance_in_order(self, session, company, invoice_payload):
        invoice = self._sent_invoice(session, invoice_payload)

        record_reminder(session, invoice.id, 1, today=date(2025, 4, 1))
        record_reminder(session, invoice.id, 2, today=date(2025, 4, 15))
        invoice = record_reminder(session, invoice.id, 3, today=date(2025, 5, 1))

        assert invoice.status == 'reminded_3x'
        assert invoice.max_reminder_stage == 3
        assert invoice.last_reminder_date == date(2025, 5, 1)
        assert invoice.last_reminder_sent_at is not None

    def test_stage_from_overdue(self, session, company, invoice_payload):
        invoice_payload['status'] = 'overdue'
        invoice = create_invoice(session, invoice_payload)

        assert record_reminder(session, invoice.id, 1).status == 'reminded_1x'

    def test_cannot_skip_a_stage(self, session, company, invoice_payload):
        invoice = self._sent_invoice(session, invoice_payload)

        with pytest.raises(DocumentStateError):
            record_reminder(session, invoice.id, 2)
        assert get_invoice(session, invoice.id).status == 'sent'

    def test_draft_cannot_be_reminded(self, session, company, invoice_payload):
        invoice = create_invoice(session, invoice_payload)

        with pytest.raises(DocumentStateError):
            record_reminder(session, invoice.id, 1)

    def test_without_status_update_raises_watermark(self, session, company, invoice_payload):
        invoice = self._sent_invoice(session, invoice_payload)

        invoice = record_reminder(session, invoice.id, 2, update_status=False, today=date(2025, 4, 2))

        assert invoice.status == 'sent'
        assert invoice.max_reminder_stage == 2
        assert invoice.last_reminder_date == date(2025, 4, 2)

    def test_watermark_never_decreases(self, session, company, invoice_payload):
        invoice = self._sent_invoice(session, invoice_payload)
        record_reminder(session, invoice.id, 1)
        record_reminder(session, invoice.id, 2)

        invoice = update_invoice(session, invoice.id, {'status': 'sent'})
        assert invoice.max_reminder_stage == 2

        invoice = record_reminder(session, invoice.id, 1)
        assert invoice.status == 'reminded_1x'
        assert invoice.max_reminder_stage == 2

    @pytest.mark.parametrize('stage', [0, 4, 'x'])
    def test_invalid_stage(self, session, company, invoice_payload, stage):
        invoice = self._sent_invoice(session, invoice_payload)

        with pytest.raises(BusinessLogicError):
            record_reminder(session, invoice.id, stage)
