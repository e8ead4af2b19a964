"""
Database helper utilities for Brookfield School Information System
"""

import logging

from sqlalchemy.exc import IntegrityError

from database import db, handle_db_error
from utils.responses import NotFoundError, StateError

logger = logging.getLogger(__name__)

def _integrity_message(error, default):
    if 'UNIQUE constraint failed' in str(error) or 'Duplicate entry' in str(error):
        return "Record with this identifier already exists"
    return default

@handle_db_error
def safe_add_and_commit(obj):
    """Add object to the session and commit; duplicates raise StateError"""
    try:
        db.session.add(obj)
        db.session.commit()
        return obj
    except IntegrityError as e:
        db.session.rollback()
        raise StateError(_integrity_message(e, "Database constraint violation")) from e

@handle_db_error
def safe_add_and_flush(obj):
    """Add object and flush so it gets an id; the caller commits"""
    try:
        db.session.add(obj)
        db.session.flush()
        return obj
    except IntegrityError as e:
        db.session.rollback()
        raise StateError(_integrity_message(e, "Database constraint violation")) from e

@handle_db_error
def safe_add_all_and_commit(objects):
    """Add several objects in one transaction"""
    try:
        db.session.add_all(objects)
        db.session.commit()
        return objects
    except IntegrityError as e:
        db.session.rollback()
        raise StateError(_integrity_message(e, "Database constraint violation")) from e

@handle_db_error
def safe_delete_and_commit(obj):
    """Delete object; rows still referenced elsewhere raise StateError"""
    try:
        db.session.delete(obj)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise StateError("Record is still referenced by other records") from e

@handle_db_error
def safe_update_and_commit():
    """Commit pending changes"""
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise StateError(_integrity_message(e, "Database constraint violation")) from e

def get_or_raise(model, record_id, label=None):
    """Get object by primary key or raise NotFoundError"""
    obj = db.session.get(model, record_id)
    if obj is None:
        raise NotFoundError(f"{label or model.__name__} {record_id}")
    return obj
