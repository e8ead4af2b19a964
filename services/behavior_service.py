"""
Behavior service for Brookfield School Information System
Business logic for positive and negative behavior incidents
"""

import logging
from datetime import date, timedelta

from flask import current_app

from models.behavior import (
    BehaviorIncident, BEHAVIOR_TYPES, SEVERITY_LEVELS, CRITICAL_SEVERITIES,
    CONTACT_METHODS, BEHAVIOR_CATEGORIES
)
from models.student import Student
from models.scheduling import Teacher
from services.audit_service import AuditService
from utils.db_helpers import safe_add_and_flush, safe_update_and_commit, safe_delete_and_commit, get_or_raise
from utils.validators import require_fields, parse_str, parse_date, parse_time, parse_int, parse_enum, parse_bool

logger = logging.getLogger(__name__)

# Ratio reported when a student has positive incidents and no negative ones
NO_NEGATIVE_RATIO = 999.0

class BehaviorService:
    """Behavior incident service class"""

    @staticmethod
    def get_incident(incident_id):
        return get_or_raise(BehaviorIncident, incident_id, 'Behavior incident')

    @staticmethod
    def _apply_fields(incident, data):
        if 'incident_date' in data:
            incident.incident_date = parse_date(data['incident_date'], 'incident_date')
        if 'incident_time' in data:
            incident.incident_time = parse_time(data['incident_time'], 'incident_time', required=False)
        if 'location' in data:
            incident.location = data['location']
        if 'behavior_type' in data:
            incident.behavior_type = parse_enum(data['behavior_type'], BEHAVIOR_TYPES, 'behavior_type')
        if 'behavior_category' in data:
            incident.behavior_category = parse_enum(data['behavior_category'], BEHAVIOR_CATEGORIES,
                                                    'behavior_category', required=False)
        if 'severity_level' in data:
            incident.severity_level = parse_enum(data['severity_level'], SEVERITY_LEVELS,
                                                 'severity_level', required=False)
        if 'description' in data:
            incident.description = parse_str(data['description'], 'description')
        if 'intervention_applied' in data:
            incident.intervention_applied = data['intervention_applied']
        if 'reporting_teacher_id' in data and data['reporting_teacher_id'] is not None:
            teacher = get_or_raise(Teacher, parse_int(data['reporting_teacher_id'], 'reporting_teacher_id'), 'Teacher')
            incident.reporting_teacher_id = teacher.id
        if 'admin_referral_required' in data:
            incident.admin_referral_required = parse_bool(data['admin_referral_required'])

        if incident.behavior_type == 'NEGATIVE' and not incident.severity_level:
            incident.severity_level = 'MINOR'
        if incident.behavior_type == 'POSITIVE':
            incident.severity_level = None

    @staticmethod
    def create_incident(data):
        """Create incident; negative incidents default to MINOR severity"""
        require_fields(data, 'student_id', 'behavior_type', 'description')
        student = get_or_raise(Student, parse_int(data['student_id'], 'student_id'), 'Student')

        incident = BehaviorIncident(student_id=student.id, incident_date=date.today())
        BehaviorService._apply_fields(incident, data)
        if incident.incident_date > date.today():
            raise ValueError("incident_date cannot be in the future")
        if incident.severity_level in CRITICAL_SEVERITIES:
            incident.admin_referral_required = True

        safe_add_and_flush(incident)
        AuditService.log('CREATE', 'BEHAVIOR_INCIDENT', incident.id, data.get('reporting_teacher_id'),
                         f"{incident.behavior_type} incident for student {student.student_number}")
        safe_update_and_commit()
        logger.info("Recorded %s behavior incident %s for student %s",
                    incident.behavior_type, incident.id, student.id)
        return incident

    @staticmethod
    def update_incident(incident_id, data):
        incident = BehaviorService.get_incident(incident_id)
        data = {k: v for k, v in data.items() if k != 'student_id'}
        BehaviorService._apply_fields(incident, data)
        safe_update_and_commit()
        return incident

    @staticmethod
    def delete_incident(incident_id):
        incident = BehaviorService.get_incident(incident_id)
        safe_delete_and_commit(incident)
        logger.info("Deleted behavior incident %s", incident_id)

    # --------------------------------------------------------------- queries

    @staticmethod
    def _student_query(student_id):
        get_or_raise(Student, student_id, 'Student')
        return BehaviorIncident.query.filter_by(student_id=student_id)

    @staticmethod
    def get_student_incidents(student_id):
        return BehaviorService._student_query(student_id).order_by(
            BehaviorIncident.incident_date.desc(), BehaviorIncident.id.desc()).all()

    @staticmethod
    def get_student_incidents_by_type(student_id, behavior_type):
        behavior_type = parse_enum(behavior_type, BEHAVIOR_TYPES, 'behavior_type')
        return BehaviorService._student_query(student_id).filter_by(behavior_type=behavior_type).order_by(
            BehaviorIncident.incident_date.desc()).all()

    @staticmethod
    def get_incidents_in_range(student_id, start_date, end_date):
        if end_date < start_date:
            raise ValueError("end_date must be on or after start_date")
        return BehaviorService._student_query(student_id).filter(
            BehaviorIncident.incident_date >= start_date,
            BehaviorIncident.incident_date <= end_date
        ).order_by(BehaviorIncident.incident_date).all()

    @staticmethod
    def get_all_incidents_in_range(start_date, end_date):
        if end_date < start_date:
            raise ValueError("end_date must be on or after start_date")
        return BehaviorIncident.query.filter(
            BehaviorIncident.incident_date >= start_date,
            BehaviorIncident.incident_date <= end_date
        ).order_by(BehaviorIncident.incident_date, BehaviorIncident.id).all()

    @staticmethod
    def get_critical_incidents(student_id, days_back=None):
        """Negative MAJOR/SEVERE incidents on or after today minus days_back"""
        if days_back is None:
            days_back = current_app.config['CRITICAL_INCIDENT_DAYS_BACK']
        if days_back < 0:
            raise ValueError("days_back must not be negative")
        since_date = date.today() - timedelta(days=days_back)
        incidents = BehaviorService._student_query(student_id).filter(
            BehaviorIncident.behavior_type == 'NEGATIVE',
            BehaviorIncident.severity_level.in_(CRITICAL_SEVERITIES),
            BehaviorIncident.incident_date >= since_date
        ).order_by(BehaviorIncident.incident_date.desc()).all()
        return since_date, incidents

    @staticmethod
    def get_uncontacted_incidents(student_id):
        return BehaviorService._student_query(student_id).filter(
            BehaviorIncident.behavior_type == 'NEGATIVE',
            BehaviorIncident.parent_contacted.is_(False)
        ).order_by(BehaviorIncident.incident_date).all()

    # ------------------------------------------------------------- workflow

    @staticmethod
    def record_parent_contact(incident_id, contact_date=None, contact_method=None):
        incident = BehaviorService.get_incident(incident_id)
        incident.parent_contacted = True
        incident.parent_contact_date = parse_date(contact_date, 'contact_date', required=False) or date.today()
        incident.parent_contact_method = parse_enum(contact_method, CONTACT_METHODS, 'contact_method')
        safe_update_and_commit()
        logger.info("Parent contact recorded for incident %s via %s", incident.id, incident.parent_contact_method)
        return incident

    @staticmethod
    def mark_admin_referral(incident_id):
        incident = BehaviorService.get_incident(incident_id)
        incident.admin_referral_required = True
        safe_update_and_commit()
        return incident

    @staticmethod
    def record_referral_outcome(incident_id, outcome):
        outcome = parse_str(outcome, 'outcome')
        incident = BehaviorService.get_incident(incident_id)
        incident.referral_outcome = outcome
        safe_update_and_commit()
        return incident

    @staticmethod
    def record_intervention(incident_id, intervention):
        intervention = parse_str(intervention, 'intervention')
        incident = BehaviorService.get_incident(incident_id)
        incident.intervention_applied = intervention
        safe_update_and_commit()
        return incident

    @staticmethod
    def attach_evidence(incident_id, file_path):
        file_path = parse_str(file_path, 'file_path')
        incident = BehaviorService.get_incident(incident_id)
        incident.evidence_attached = True
        incident.evidence_file_path = file_path
        safe_update_and_commit()
        return incident

    # ------------------------------------------------------------ reporting

    @staticmethod
    def calculate_behavior_ratio(positive_count, negative_count):
        if negative_count == 0:
            return NO_NEGATIVE_RATIO if positive_count > 0 else 0.0
        return round(positive_count / negative_count, 2)

    @staticmethod
    def get_behavior_statistics(student_id, start_date, end_date):
        incidents = BehaviorService.get_incidents_in_range(student_id, start_date, end_date)
        positive = sum(1 for i in incidents if i.is_positive())
        negative = sum(1 for i in incidents if i.is_negative())
        ratio = BehaviorService.calculate_behavior_ratio(positive, negative)
        if positive == 0 and negative == 0:
            trend = 'NEUTRAL'
        elif ratio > 1:
            trend = 'POSITIVE'
        elif ratio < 1:
            trend = 'NEGATIVE'
        else:
            trend = 'NEUTRAL'

        by_category = {}
        for incident in incidents:
            key = incident.behavior_category or 'UNCATEGORIZED'
            by_category[key] = by_category.get(key, 0) + 1

        return {
            'student_id': student_id,
            'start_date': start_date.isoformat(),
            'end_date': end_date.isoformat(),
            'positive_incidents': positive,
            'negative_incidents': negative,
            'total_incidents': len(incidents),
            'behavior_ratio': ratio,
            'behavior_trend': trend,
            'by_category': by_category
        }

    @staticmethod
    def get_dashboard():
        uncontacted = BehaviorIncident.query.filter(
            BehaviorIncident.behavior_type == 'NEGATIVE',
            BehaviorIncident.parent_contacted.is_(False)
        ).all()
        student_ids = sorted({i.student_id for i in uncontacted})
        return {
            'total_incidents': BehaviorIncident.query.count(),
            'positive_incidents': BehaviorIncident.query.filter_by(behavior_type='POSITIVE').count(),
            'negative_incidents': BehaviorIncident.query.filter_by(behavior_type='NEGATIVE').count(),
            'pending_admin_referrals': BehaviorIncident.query.filter(
                BehaviorIncident.admin_referral_required.is_(True),
                BehaviorIncident.referral_outcome.is_(None)
            ).count(),
            'students_needing_parent_contact': len(student_ids),
            'student_ids_needing_contact': student_ids
        }

    @staticmethod
    def get_reference_data():
        return {
            'behavior_types': list(BEHAVIOR_TYPES),
            'severity_levels': list(SEVERITY_LEVELS),
            'contact_methods': list(CONTACT_METHODS),
            'behavior_categories': list(BEHAVIOR_CATEGORIES)
        }
