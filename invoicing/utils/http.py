"""Request helpers shared by the JSON blueprints."""
from flask import current_app, request

from invoicing.exceptions import BusinessLogicError
from invoicing.services.numbering_service import MAX_ALLOCATION_ATTEMPTS


def json_payload() -> dict:
    """Body of the current request as a dict."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise BusinessLogicError('Request body must be a JSON object')
    return payload


def max_allocation_attempts() -> int:
    return current_app.config.get('NUMBER_ALLOCATION_MAX_ATTEMPTS', MAX_ALLOCATION_ATTEMPTS)
