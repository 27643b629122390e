"""Invoices blueprint (JSON API)."""
from flask import Blueprint, jsonify, request, send_file
from invoicing.database import get_session
from invoicing.services.invoice_service import (
    create_invoice,
    delete_invoice,
    get_invoice,
    list_invoices,
    record_reminder,
    update_invoice,
)
from invoicing.services.pdf_service import generate_invoice_pdf
from invoicing.services.settings_service import get_company_settings
from invoicing.utils.dates import parse_date
from invoicing.utils.http import json_payload, max_allocation_attempts

invoices_bp = Blueprint('invoices', __name__, url_prefix='/invoices')


@invoices_bp.route('/', methods=['GET'])
def index():
    """List invoices, filterable by status, customer_id and year."""
    db_session = get_session()
    invoices = list_invoices(
        db_session,
        status=request.args.get('status') or None,
        customer_id=request.args.get('customer_id', type=int),
        year=request.args.get('year', type=int),
    )
    return jsonify({'invoices': [invoice.to_dict(include_items=False) for invoice in invoices]})


@invoices_bp.route('/', methods=['POST'])
def create():
    db_session = get_session()
    invoice = create_invoice(db_session, json_payload(), max_attempts=max_allocation_attempts())
    return jsonify(invoice.to_dict()), 201


@invoices_bp.route('/<int:invoice_id>', methods=['GET'])
def show(invoice_id):
    return jsonify(get_invoice(get_session(), invoice_id).to_dict())


@invoices_bp.route('/<int:invoice_id>', methods=['PUT'])
def update(invoice_id):
    invoice = update_invoice(get_session(), invoice_id, json_payload())
    return jsonify(invoice.to_dict())


@invoices_bp.route('/<int:invoice_id>', methods=['DELETE'])
def delete(invoice_id):
    delete_invoice(get_session(), invoice_id)
    return jsonify({'status': 'ok'})


@invoices_bp.route('/<int:invoice_id>/reminders', methods=['POST'])
def add_reminder(invoice_id):
    """Record a payment reminder: {"stage": 1-3, "update_status": true, "date": "YYYY-MM-DD"}."""
    payload = json_payload()
    invoice = record_reminder(
        get_session(),
        invoice_id,
        payload.get('stage'),
        update_status=payload.get('update_status', True) is not False,
        today=parse_date(payload.get('date'), 'date'),
    )
    return jsonify(invoice.to_dict(include_items=False))


@invoices_bp.route('/<int:invoice_id>/pdf', methods=['GET'])
def pdf(invoice_id):
    db_session = get_session()
    invoice = get_invoice(db_session, invoice_id)
    buffer = generate_invoice_pdf(invoice, get_company_settings(db_session))
    return send_file(
        buffer,
        mimetype='application/pdf',
        as_attachment=False,
        download_name=f"{invoice.invoice_number}.pdf"
    )
