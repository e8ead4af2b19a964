"""
Audit log routes for Brookfield School Information System
"""

from flask import Blueprint, request

from services.audit_service import AuditService
from utils.responses import api_errors, success_response, serialize
from utils.validators import parse_int

audit_bp = Blueprint('audit', __name__)

@audit_bp.route('', methods=['GET'])
@api_errors('search audit logs')
def search_logs():
    logs = AuditService.search(
        entity_type=request.args.get('entity_type'),
        entity_id=parse_int(request.args.get('entity_id'), 'entity_id', required=False),
        action=request.args.get('action'),
        limit=parse_int(request.args.get('limit', 100), 'limit', minimum=1, maximum=1000)
    )
    return success_response(logs=serialize(logs), count=len(logs))

@audit_bp.route('/recent', methods=['GET'])
@api_errors('get recent audit logs')
def recent_logs():
    logs = AuditService.search(limit=parse_int(request.args.get('limit', 20), 'limit', minimum=1, maximum=1000))
    return success_response(logs=serialize(logs), count=len(logs))
