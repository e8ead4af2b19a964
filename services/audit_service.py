"""
Audit service for Brookfield School Information System
"""

import logging

from database import db
from models.audit import AuditLog

logger = logging.getLogger(__name__)

class AuditService:
    """Writes and queries the audit trail"""

    @staticmethod
    def log(action, entity_type, entity_id=None, performed_by=None, details=None):
        """Stage an audit entry in the current session; the caller commits"""
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            performed_by=str(performed_by) if performed_by is not None else None,
            details=details
        )
        db.session.add(entry)
        logger.info("AUDIT %s %s:%s by %s", action, entity_type, entity_id, performed_by)
        return entry

    @staticmethod
    def search(entity_type=None, entity_id=None, action=None, limit=100):
        query = AuditLog.query
        if entity_type:
            query = query.filter_by(entity_type=entity_type.upper())
        if entity_id is not None:
            query = query.filter_by(entity_id=entity_id)
        if action:
            query = query.filter_by(action=action.upper())
        return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
