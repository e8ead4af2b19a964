"""
Health office service for Brookfield School Information System
Student health records, screenings and nurse visits
"""

import logging
from collections import Counter
from datetime import date, datetime

from flask import current_app

from database import db
from models.health import (
    HealthRecord, NurseVisit, SCREENING_RESULTS, VISIT_DISPOSITIONS, PARENT_CONTACT_METHODS
)
from models.student import Student
from utils.db_helpers import safe_add_and_commit, safe_update_and_commit, get_or_raise
from utils.responses import NotFoundError, StateError
from utils.validators import (
    validate_name, validate_phone, ensure, require_fields, parse_str, parse_date, parse_int,
    parse_float, parse_enum, parse_bool
)

logger = logging.getLogger(__name__)

class HealthOfficeService:
    """Health office service class"""

    # --------------------------------------------------------- health records

    @staticmethod
    def get_record(record_id):
        return get_or_raise(HealthRecord, record_id, 'Health record')

    @staticmethod
    def get_record_by_student(student_id):
        record = HealthRecord.query.filter_by(student_id=student_id).first()
        if record is None:
            raise NotFoundError(f"Health record for student {student_id}")
        return record

    @staticmethod
    def create_record(data):
        """Create the health record for a student; one record per student"""
        require_fields(data, 'student_id', 'emergency_contact_name',
                       'emergency_contact_relationship', 'emergency_contact_phone')
        student = get_or_raise(Student, parse_int(data['student_id'], 'student_id'), 'Student')
        if HealthRecord.query.filter_by(student_id=student.id).first() is not None:
            raise StateError(f"Health record already exists for student {student.id}")
        ensure(validate_name(data['emergency_contact_name'], 'Emergency contact name'))
        ensure(validate_phone(data['emergency_contact_phone']))

        record = HealthRecord(
            student_id=student.id,
            emergency_contact_name=parse_str(data['emergency_contact_name'], 'emergency_contact_name'),
            emergency_contact_relationship=parse_str(data['emergency_contact_relationship'],
                                                     'emergency_contact_relationship'),
            emergency_contact_phone=parse_str(data['emergency_contact_phone'], 'emergency_contact_phone'),
            allergies=data.get('allergies'),
            chronic_conditions=data.get('chronic_conditions'),
            medications=data.get('medications'),
            physician_name=data.get('physician_name'),
            physician_phone=data.get('physician_phone'),
            high_risk=parse_bool(data.get('high_risk')),
            created_by_staff_id=parse_int(data.get('created_by_staff_id'), 'created_by_staff_id', required=False)
        )
        safe_add_and_commit(record)
        logger.info("Created health record %s for student %s", record.id, student.id)
        return record

    @staticmethod
    def update_record(record_id, data):
        record = HealthOfficeService.get_record(record_id)
        if 'emergency_contact_name' in data:
            ensure(validate_name(data['emergency_contact_name'], 'Emergency contact name'))
            record.emergency_contact_name = parse_str(data['emergency_contact_name'], 'emergency_contact_name')
        if 'emergency_contact_phone' in data:
            ensure(validate_phone(data['emergency_contact_phone']))
            record.emergency_contact_phone = parse_str(data['emergency_contact_phone'], 'emergency_contact_phone')
        for field in ('emergency_contact_relationship', 'allergies', 'chronic_conditions',
                      'medications', 'physician_name', 'physician_phone'):
            if field in data:
                setattr(record, field, data[field])
        if 'high_risk' in data:
            record.high_risk = parse_bool(data['high_risk'])
        safe_update_and_commit()
        return record

    @staticmethod
    def mark_complete(record_id):
        record = HealthOfficeService.get_record(record_id)
        record.record_complete = True
        safe_update_and_commit()
        return record

    @staticmethod
    def record_screening(record_id, screening, screening_date, result):
        """Record a vision or hearing screening"""
        record = HealthOfficeService.get_record(record_id)
        screening_date = parse_date(screening_date, 'screening_date', required=False) or date.today()
        result = parse_enum(result, SCREENING_RESULTS, 'result')
        if screening == 'vision':
            record.vision_screening_date = screening_date
            record.vision_screening_result = result
        elif screening == 'hearing':
            record.hearing_screening_date = screening_date
            record.hearing_screening_result = result
        else:
            raise ValueError(f"Unknown screening type: {screening}")
        safe_update_and_commit()
        logger.info("Recorded %s screening (%s) for student %s", screening, result, record.student_id)
        return record

    @staticmethod
    def get_needing_screening(screening):
        records = HealthRecord.query.all()
        if screening == 'vision':
            return [r for r in records if HealthRecord.screening_due(r.vision_screening_date)]
        return [r for r in records if HealthRecord.screening_due(r.hearing_screening_date)]

    @staticmethod
    def get_high_risk():
        return HealthRecord.query.filter_by(high_risk=True).all()

    @staticmethod
    def get_incomplete():
        return HealthRecord.query.filter_by(record_complete=False).all()

    # ----------------------------------------------------------- nurse visits

    @staticmethod
    def get_visit(visit_id):
        return get_or_raise(NurseVisit, visit_id, 'Nurse visit')

    @staticmethod
    def check_in(data):
        require_fields(data, 'student_id', 'visit_reason')
        student = get_or_raise(Student, parse_int(data['student_id'], 'student_id'), 'Student')
        now = datetime.now()
        visit = NurseVisit(
            student_id=student.id,
            visit_date=now.date(),
            check_in_time=now,
            visit_reason=parse_str(data['visit_reason'], 'visit_reason'),
            chief_complaint=data.get('chief_complaint'),
            nurse_staff_id=parse_int(data.get('nurse_staff_id'), 'nurse_staff_id', required=False)
        )
        safe_add_and_commit(visit)
        logger.info("Student %s checked in to health office (visit %s)", student.id, visit.id)
        return visit

    @staticmethod
    def check_out(visit_id, disposition, treatment_provided=None):
        visit = HealthOfficeService.get_visit(visit_id)
        if not visit.is_active():
            raise StateError(f"Visit {visit.id} is already checked out")
        visit.disposition = parse_enum(disposition, VISIT_DISPOSITIONS, 'disposition')
        if treatment_provided:
            visit.treatment_provided = treatment_provided
        visit.check_out_time = datetime.now()
        safe_update_and_commit()
        logger.info("Visit %s checked out: %s", visit.id, visit.disposition)
        return visit

    @staticmethod
    def record_temperature(visit_id, temperature):
        visit = HealthOfficeService.get_visit(visit_id)
        temperature = parse_float(temperature, 'temperature')
        if not 90.0 <= temperature <= 110.0:
            raise ValueError("temperature must be between 90.0 and 110.0 F")
        visit.temperature = temperature
        visit.has_fever = temperature >= current_app.config['FEVER_THRESHOLD_F']
        safe_update_and_commit()
        return visit

    @staticmethod
    def notify_parent(visit_id, contact_method, notes=None):
        visit = HealthOfficeService.get_visit(visit_id)
        visit.parent_notified = True
        visit.parent_notification_time = datetime.now()
        visit.parent_contact_method = parse_enum(contact_method, PARENT_CONTACT_METHODS, 'contact_method')
        if notes:
            visit.notes = f"{visit.notes}\n{notes}" if visit.notes else notes
        safe_update_and_commit()
        return visit

    @staticmethod
    def send_home(visit_id, reason=None):
        visit = HealthOfficeService.get_visit(visit_id)
        visit.disposition = 'SENT_HOME'
        if visit.check_out_time is None:
            visit.check_out_time = datetime.now()
        if reason:
            visit.notes = f"{visit.notes}\n{reason}" if visit.notes else reason
        safe_update_and_commit()
        logger.info("Student %s sent home (visit %s)", visit.student_id, visit.id)
        return visit

    @staticmethod
    def get_student_visits(student_id):
        get_or_raise(Student, student_id, 'Student')
        return NurseVisit.query.filter_by(student_id=student_id).order_by(NurseVisit.check_in_time.desc()).all()

    @staticmethod
    def get_visits_in_range(start_date, end_date):
        return NurseVisit.query.filter(
            NurseVisit.visit_date >= start_date,
            NurseVisit.visit_date <= end_date
        ).order_by(NurseVisit.check_in_time).all()

    @staticmethod
    def get_active_visits():
        return NurseVisit.query.filter(NurseVisit.check_out_time.is_(None)).order_by(NurseVisit.check_in_time).all()

    @staticmethod
    def get_pending_parent_notifications():
        candidates = NurseVisit.query.filter(NurseVisit.parent_notified.is_(False)).all()
        return [v for v in candidates if v.needs_parent_notification()]

    @staticmethod
    def get_sent_home_today():
        return NurseVisit.query.filter_by(visit_date=date.today(), disposition='SENT_HOME').all()

    @staticmethod
    def get_frequent_visitors(start_date, end_date, minimum_visits=None):
        """Students with at least minimum_visits visits in the range"""
        if minimum_visits is None:
            minimum_visits = current_app.config['FREQUENT_VISIT_MINIMUM']
        counts = Counter(v.student_id for v in HealthOfficeService.get_visits_in_range(start_date, end_date))
        visitors = []
        for student_id, visit_count in counts.most_common():
            if visit_count < minimum_visits:
                continue
            student = db.session.get(Student, student_id)
            visitors.append({
                'student_id': student_id,
                'student_name': student.full_name if student else None,
                'visit_count': visit_count
            })
        return visitors

    @staticmethod
    def get_dashboard_statistics():
        return {
            'total_health_records': HealthRecord.query.count(),
            'total_nurse_visits': NurseVisit.query.count(),
            'visits_today': NurseVisit.query.filter_by(visit_date=date.today()).count(),
            'active_visits': len(HealthOfficeService.get_active_visits()),
            'incomplete_records': HealthRecord.query.filter_by(record_complete=False).count(),
            'needing_vision_screening': len(HealthOfficeService.get_needing_screening('vision')),
            'needing_hearing_screening': len(HealthOfficeService.get_needing_screening('hearing')),
            'high_risk_students': HealthRecord.query.filter_by(high_risk=True).count(),
            'pending_parent_notifications': len(HealthOfficeService.get_pending_parent_notifications())
        }
