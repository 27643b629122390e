"""Payment reminders blueprint (JSON API)."""
from flask import Blueprint, jsonify, request
from invoicing.database import get_session
from invoicing.services.reminder_service import get_reminder_candidates
from invoicing.utils.dates import parse_date
from invoicing.utils.formatters import json_date, json_decimal

reminders_bp = Blueprint('reminders', __name__, url_prefix='/reminders')


@reminders_bp.route('/eligible', methods=['GET'])
def eligible():
    """
    Invoices that can receive their next reminder stage.

    Query params:
        date: reference day (YYYY-MM-DD), defaults to today
    """
    today = parse_date(request.args.get('date'), 'date')
    candidates = get_reminder_candidates(get_session(), today)

    rows = []
    for candidate in candidates:
        invoice = candidate['invoice']
        rows.append({
            'invoice_id': invoice.id,
            'invoice_number': invoice.invoice_number,
            'customer_name': invoice.customer_name,
            'status': invoice.status,
            'due_date': json_date(invoice.due_date),
            'total': json_decimal(invoice.total),
            'last_reminder_date': json_date(invoice.last_reminder_date),
            'next_stage': candidate['next_stage'],
            'days_overdue': candidate['days_overdue'],
            'eligible': candidate['eligible'],
            'next_eligible_date': json_date(candidate['next_eligible_date']),
        })
    return jsonify({'reminders': rows})
