"""Job entries blueprint (JSON API)."""
from flask import Blueprint, jsonify, request
from invoicing.database import get_session
from invoicing.services.job_service import create_job_entry, get_job_entry, list_job_entries
from invoicing.utils.http import json_payload, max_allocation_attempts

jobs_bp = Blueprint('jobs', __name__, url_prefix='/jobs')


@jobs_bp.route('/', methods=['GET'])
def index():
    jobs = list_job_entries(get_session(), status=request.args.get('status') or None)
    return jsonify({'jobs': [job.to_dict() for job in jobs]})


@jobs_bp.route('/', methods=['POST'])
def create():
    job = create_job_entry(get_session(), json_payload(), max_attempts=max_allocation_attempts())
    return jsonify(job.to_dict()), 201


@jobs_bp.route('/<int:job_id>', methods=['GET'])
def show(job_id):
    return jsonify(get_job_entry(get_session(), job_id).to_dict())
