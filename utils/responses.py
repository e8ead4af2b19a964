"""
JSON response helpers for Brookfield School Information System
Success/error envelopes and the exception-to-status mapping used by every API route
"""

import logging
from functools import wraps

from flask import jsonify, make_response, request

from database import db

logger = logging.getLogger(__name__)

class NotFoundError(ValueError):
    """Requested record does not exist"""
    pass

class StateError(Exception):
    """Operation is not allowed in the record's current state"""
    pass

def success_response(status=200, **payload):
    """Build a success envelope"""
    body = {'success': True}
    body.update(payload)
    return jsonify(body), status

def error_response(message, status):
    """Build an error envelope"""
    return jsonify({'success': False, 'error': message}), status

def api_errors(action):
    """Map exceptions raised by a route into the JSON error envelope.

    NotFoundError -> 404, other ValueError -> 400, StateError -> 409,
    anything else -> 500. The session is rolled back on every failure.
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except NotFoundError as e:
                db.session.rollback()
                return error_response(f'Not found: {e}', 404)
            except ValueError as e:
                db.session.rollback()
                return error_response(f'Validation error: {e}', 400)
            except StateError as e:
                db.session.rollback()
                return error_response(f'State error: {e}', 409)
            except Exception as e:
                db.session.rollback()
                logger.exception('Failed to %s', action)
                return error_response(f'Failed to {action}: {e}', 500)
        return wrapper
    return decorator

def get_json_body():
    """Request JSON body as a dict; empty dict when absent"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError('Request body must be a JSON object')
    return data

def serialize(items):
    """Serialize a list of models"""
    return [item.to_dict() for item in items]

def file_response(data, filename, content_type):
    """Attachment download for generated Excel or PDF bytes"""
    response = make_response(data)
    response.headers['Content-Type'] = content_type
    response.headers['Content-Disposition'] = f'attachment; filename={filename}'
    return response
