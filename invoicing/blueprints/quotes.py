"""Quotes blueprint (JSON API)."""
from flask import Blueprint, current_app, jsonify, request, send_file
from invoicing.database import get_session
from invoicing.services.pdf_service import generate_quote_pdf
from invoicing.services.quote_service import (
    DEFAULT_QUOTE_VALID_DAYS,
    convert_quote_to_invoice,
    create_quote,
    delete_quote,
    get_quote,
    list_quotes,
    update_quote,
)
from invoicing.services.settings_service import get_company_settings
from invoicing.utils.http import json_payload, max_allocation_attempts

quotes_bp = Blueprint('quotes', __name__, url_prefix='/quotes')


@quotes_bp.route('/', methods=['GET'])
def index():
    db_session = get_session()
    quotes = list_quotes(
        db_session,
        status=request.args.get('status') or None,
        customer_id=request.args.get('customer_id', type=int),
    )
    return jsonify({'quotes': [quote.to_dict(include_items=False) for quote in quotes]})


@quotes_bp.route('/', methods=['POST'])
def create():
    quote = create_quote(
        get_session(),
        json_payload(),
        valid_days=current_app.config.get('QUOTE_VALID_DAYS', DEFAULT_QUOTE_VALID_DAYS),
        max_attempts=max_allocation_attempts(),
    )
    return jsonify(quote.to_dict()), 201


@quotes_bp.route('/<int:quote_id>', methods=['GET'])
def show(quote_id):
    return jsonify(get_quote(get_session(), quote_id).to_dict())


@quotes_bp.route('/<int:quote_id>', methods=['PUT'])
def update(quote_id):
    quote = update_quote(get_session(), quote_id, json_payload())
    return jsonify(quote.to_dict())


@quotes_bp.route('/<int:quote_id>', methods=['DELETE'])
def delete(quote_id):
    delete_quote(get_session(), quote_id)
    return jsonify({'status': 'ok'})


@quotes_bp.route('/<int:quote_id>/convert', methods=['POST'])
def convert(quote_id):
    """Convert an accepted quote into a new invoice."""
    invoice = convert_quote_to_invoice(get_session(), quote_id, max_attempts=max_allocation_attempts())
    return jsonify(invoice.to_dict()), 201


@quotes_bp.route('/<int:quote_id>/pdf', methods=['GET'])
def pdf(quote_id):
    db_session = get_session()
    quote = get_quote(db_session, quote_id)
    buffer = generate_quote_pdf(quote, get_company_settings(db_session))
    return send_file(
        buffer,
        mimetype='application/pdf',
        as_attachment=False,
        download_name=f"{quote.quote_number}.pdf"
    )
