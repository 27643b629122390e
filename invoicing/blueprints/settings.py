"""Settings blueprint: company settings and yearly invoice start numbers."""
from flask import Blueprint, current_app, jsonify
from invoicing.database import get_session
from invoicing.services.settings_service import (
    delete_year_start_number,
    get_company_settings,
    list_yearly_start_numbers,
    set_year_start_number,
    update_company_settings,
)
from invoicing.utils.http import json_payload

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')


@settings_bp.route('/company', methods=['GET'])
def company():
    db_session = get_session()
    settings = get_company_settings(db_session, current_app.config.get('DEFAULT_PAYMENT_DAYS'))
    db_session.commit()
    return jsonify(settings.to_dict())


@settings_bp.route('/company', methods=['PUT'])
def update_company():
    settings = update_company_settings(get_session(), json_payload())
    return jsonify(settings.to_dict())


@settings_bp.route('/yearly-start-numbers', methods=['GET'])
def yearly_start_numbers():
    entries = list_yearly_start_numbers(get_session())
    return jsonify({'yearly_start_numbers': [entry.to_dict() for entry in entries]})


@settings_bp.route('/yearly-start-numbers', methods=['POST'])
def set_yearly_start_number():
    """Create or update a start number: {"year": 2025, "start_number": 50}."""
    payload = json_payload()
    entry = set_year_start_number(get_session(), payload.get('year'), payload.get('start_number'))
    return jsonify(entry.to_dict())


@settings_bp.route('/yearly-start-numbers/<int:year>', methods=['DELETE'])
def delete_yearly_start_number(year):
    delete_year_start_number(get_session(), year)
    return jsonify({'status': 'ok'})
