"""Reporting blueprint: invoice journal and yearly statistics."""
from datetime import date

from flask import Blueprint, jsonify, request
from invoicing.database import get_session
from invoicing.exceptions import BusinessLogicError
from invoicing.services.reporting_service import get_invoice_journal, get_yearly_statistics
from invoicing.utils.dates import parse_date
from invoicing.utils.formatters import json_date, json_decimal

reporting_bp = Blueprint('reporting', __name__, url_prefix='/reporting')


@reporting_bp.route('/invoice-journal', methods=['GET'])
def invoice_journal():
    """Invoices issued between date_from and date_to (both required, inclusive)."""
    date_from = parse_date(request.args.get('date_from'), 'date_from')
    date_to = parse_date(request.args.get('date_to'), 'date_to')
    if date_from is None or date_to is None:
        raise BusinessLogicError('date_from and date_to are required')

    journal = get_invoice_journal(get_session(), date_from, date_to)
    return jsonify({
        'date_from': json_date(date_from),
        'date_to': json_date(date_to),
        'invoices': [invoice.to_dict(include_items=False) for invoice in journal['invoices']],
        'count': journal['count'],
        'subtotal': json_decimal(journal['subtotal']),
        'tax_amount': json_decimal(journal['tax_amount']),
        'total': json_decimal(journal['total']),
    })


@reporting_bp.route('/statistics', methods=['GET'])
def statistics():
    year = request.args.get('year', type=int) or date.today().year
    stats = get_yearly_statistics(get_session(), year)
    return jsonify({
        key: json_decimal(value) if key not in ('year', 'count') else value
        for key, value in stats.items()
    })
