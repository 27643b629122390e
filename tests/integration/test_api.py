"""
Integration tests for the JSON API, the error mapping and the CLI.
"""

from datetime import date

from invoicing.exceptions import NumberAllocationConflict
from invoicing.models import YearlyStartNumber
from invoicing.services.invoice_service import create_invoice


class TestInvoiceEndpoints:
    """/invoices"""

    def test_create_returns_amounts_as_strings(self, client, company, invoice_payload):
        response = client.post('/invoices/', json=invoice_payload)

        assert response.status_code == 201
        data = response.get_json()
        assert data['invoice_number'] == 'RE-2025-001'
        assert data['subtotal'] == '250.00'
        assert data['tax_amount'] == '41.50'
        assert data['total'] == '291.50'
        assert data['subtotal_after_discounts'] == '250.00'
        assert data['due_date'] == '2025-03-15'
        assert [item['order'] for item in data['items']] == [1, 2]

    def test_show_and_list(self, client, company, invoice_payload):
        created = client.post('/invoices/', json=invoice_payload).get_json()

        shown = client.get(f"/invoices/{created['id']}")
        listed = client.get('/invoices/?year=2025')

        assert shown.status_code == 200
        assert shown.get_json()['invoice_number'] == 'RE-2025-001'
        assert [row['invoice_number'] for row in listed.get_json()['invoices']] == ['RE-2025-001']
        assert 'items' not in listed.get_json()['invoices'][0]

    def test_validation_error_is_400(self, client, company, invoice_payload):
        invoice_payload['items'][0]['tax_rate'] = '120'

        response = client.post('/invoices/', json=invoice_payload)

        assert response.status_code == 400
        assert response.get_json()['status'] == 'error'

    def test_unknown_customer_is_400(self, client, company, invoice_payload):
        invoice_payload['customer_id'] = 4711

        response = client.post('/invoices/', json=invoice_payload)

        assert response.status_code == 400
        assert response.get_json()['customer_id'] == 4711

    def test_body_must_be_an_object(self, client, company):
        response = client.post('/invoices/', json=[1, 2])

        assert response.status_code == 400

    def test_unknown_invoice_is_404(self, client):
        response = client.get('/invoices/999')

        assert response.status_code == 404
        assert response.get_json()['status'] == 'error'

    def test_update_and_delete(self, client, company, invoice_payload):
        created = client.post('/invoices/', json=invoice_payload).get_json()

        updated = client.put(f"/invoices/{created['id']}", json={'discount_type': 'fixed', 'discount_value': '20'})
        assert updated.status_code == 200
        assert updated.get_json()['total'] == '268.18'

        rejected = client.put(f"/invoices/{created['id']}", json={'invoice_number': 'RE-2025-777'})
        assert rejected.status_code == 400

        assert client.delete(f"/invoices/{created['id']}").status_code == 200
        assert client.get(f"/invoices/{created['id']}").status_code == 404

    def test_reminder_state_conflict_is_409(self, client, company, invoice_payload):
        created = client.post('/invoices/', json=invoice_payload).get_json()

        response = client.post(f"/invoices/{created['id']}/reminders", json={'stage': 1})

        assert response.status_code == 409
        assert response.get_json()['invoice_status'] == 'draft'

    def test_record_reminder(self, client, company, invoice_payload):
        invoice_payload['status'] = 'sent'
        created = client.post('/invoices/', json=invoice_payload).get_json()

        response = client.post(f"/invoices/{created['id']}/reminders", json={'stage': 1, 'date': '2025-04-01'})

        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'reminded_1x'
        assert data['last_reminder_date'] == '2025-04-01'
        assert data['max_reminder_stage'] == 1

    def test_number_conflict_is_503(self, client, company, invoice_payload, monkeypatch):
        def exhausted(*args, **kwargs):
            raise NumberAllocationConflict('invoice', 5)

        monkeypatch.setattr('invoicing.blueprints.invoices.create_invoice', exhausted)

        response = client.post('/invoices/', json=invoice_payload)

        assert response.status_code == 503
        assert response.get_json()['attempts'] == 5

    def test_pdf(self, client, company, invoice_payload):
        invoice_payload.update({'discount_type': 'percentage', 'discount_value': '10'})
        created = client.post('/invoices/', json=invoice_payload).get_json()

        response = client.get(f"/invoices/{created['id']}/pdf")

        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')


class TestQuoteEndpoints:
    """/quotes"""

    def test_create_accept_convert(self, client, company, invoice_payload):
        created = client.post('/quotes/', json=invoice_payload)
        assert created.status_code == 201
        quote = created.get_json()
        assert quote['quote_number'] == 'AN-2025-001'

        early = client.post(f"/quotes/{quote['id']}/convert")
        assert early.status_code == 409

        client.put(f"/quotes/{quote['id']}", json={'status': 'accepted'})
        converted = client.post(f"/quotes/{quote['id']}/convert")

        assert converted.status_code == 201
        invoice = converted.get_json()
        assert invoice['invoice_number'].startswith(f'RE-{date.today().year}-')
        assert invoice['total'] == quote['total']
        assert client.get(f"/quotes/{quote['id']}").get_json()['status'] == 'billed'

    def test_quote_pdf(self, client, company, invoice_payload):
        quote = client.post('/quotes/', json=invoice_payload).get_json()

        response = client.get(f"/quotes/{quote['id']}/pdf")

        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'


class TestJobEndpoints:
    """/jobs"""

    def test_create_job(self, client, customer):
        response = client.post('/jobs/', json={
            'customer_id': customer.id,
            'title': 'Heizung warten',
            'external_job_number': 'K-17',
        })

        assert response.status_code == 201
        data = response.get_json()
        assert data['job_number'] == f'AB-{date.today().year}-001'
        assert data['external_job_number'] == 'K-17'
        assert client.get(f"/jobs/{data['id']}").status_code == 200

    def test_title_required(self, client, customer):
        response = client.post('/jobs/', json={'customer_id': customer.id})

        assert response.status_code == 400


class TestSettingsEndpoints:
    """/settings"""

    def test_company_settings_are_created_on_read(self, client):
        response = client.get('/settings/company')

        assert response.status_code == 200
        assert response.get_json()['default_payment_days'] == 30

    def test_update_company_settings(self, client, company):
        response = client.put('/settings/company', json={'default_payment_days': 21, 'discounts_enabled': False})

        assert response.status_code == 200
        assert response.get_json()['default_payment_days'] == 21
        assert response.get_json()['discounts_enabled'] is False

    def test_invalid_company_setting(self, client, company):
        response = client.put('/settings/company', json={'reminder_days_between': 'soon'})

        assert response.status_code == 400

    def test_yearly_start_numbers(self, client, company, invoice_payload):
        assert client.post('/settings/yearly-start-numbers', json={'year': 2025, 'start_number': 40}).status_code == 200
        listed = client.get('/settings/yearly-start-numbers').get_json()['yearly_start_numbers']
        assert listed == [{'year': 2025, 'start_number': 40}]

        created = client.post('/invoices/', json=invoice_payload).get_json()
        assert created['invoice_number'] == 'RE-2025-040'

        assert client.delete('/settings/yearly-start-numbers/2025').status_code == 200
        assert client.delete('/settings/yearly-start-numbers/2025').status_code == 404

    def test_start_number_must_be_positive(self, client):
        response = client.post('/settings/yearly-start-numbers', json={'year': 2025, 'start_number': 0})

        assert response.status_code == 400


class TestReportingEndpoints:
    """/reminders and /reporting"""

    def test_eligible_reminders(self, client, session, company, invoice_payload):
        invoice_payload.update({'status': 'sent', 'due_date': '2025-03-10'})
        create_invoice(session, invoice_payload)

        response = client.get('/reminders/eligible?date=2025-03-20')

        rows = response.get_json()['reminders']
        assert rows[0]['invoice_number'] == 'RE-2025-001'
        assert rows[0]['next_stage'] == 1
        assert rows[0]['eligible'] is True
        assert rows[0]['next_eligible_date'] == '2025-03-17'

    def test_invoice_journal(self, client, session, company, invoice_payload):
        create_invoice(session, invoice_payload)

        response = client.get('/reporting/invoice-journal?date_from=2025-01-01&date_to=2025-12-31')

        data = response.get_json()
        assert data['count'] == 1
        assert data['total'] == '291.50'

    def test_invoice_journal_requires_dates(self, client):
        assert client.get('/reporting/invoice-journal?date_from=2025-01-01').status_code == 400

    def test_statistics(self, client, session, company, invoice_payload):
        create_invoice(session, dict(invoice_payload, status='paid'))

        data = client.get('/reporting/statistics?year=2025').get_json()

        assert data['count'] == 1
        assert data['paid_total'] == '291.50'
        assert data['overdue_total'] == '0.00'


class TestMetricsEndpoint:
    """/metrics"""

    def test_exposes_numbering_counters(self, client, company, invoice_payload):
        client.post('/invoices/', json=invoice_payload)

        response = client.get('/metrics')

        assert response.status_code == 200
        assert b'document_numbers_allocated_total' in response.data
        assert b'documents_created_total{kind="invoice"}' in response.data
        assert b'http_requests_total' in response.data


class TestCliCommands:
    """flask init-db / set-start-number"""

    def test_init_db(self, app, session):
        result = app.test_cli_runner().invoke(args=['init-db'])

        assert result.exit_code == 0
        assert 'Database initialized' in result.output

    def test_set_start_number(self, app, session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=['set-start-number', '--year', '2026', '--start', '500'])

        assert result.exit_code == 0
        assert session.query(YearlyStartNumber).filter_by(year=2026).one().start_number == 500

    def test_set_start_number_rejects_zero(self, app):
        result = app.test_cli_runner().invoke(args=['set-start-number', '--year', '2026', '--start', '0'])

        assert result.exit_code != 0
