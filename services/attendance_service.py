"""
Attendance service for Brookfield School Information System
Recording attendance and the attendance reports used for state funding and truancy
"""

import logging
from collections import Counter, defaultdict
from datetime import date, timedelta

from flask import current_app

from database import db
from models.attendance import AttendanceRecord, ATTENDANCE_STATUSES, ABSENT_STATUSES
from models.student import Student
from utils.db_helpers import safe_add_and_commit, safe_update_and_commit, get_or_raise
from utils.responses import StateError
from utils.validators import require_fields, parse_date, parse_int, parse_enum

logger = logging.getLogger(__name__)

def count_school_days(start_date, end_date):
    """Weekdays between two dates, inclusive"""
    if end_date < start_date:
        return 0
    days = 0
    current = start_date
    while current <= end_date:
        if current.weekday() < 5:
            days += 1
        current += timedelta(days=1)
    return days

def _rate(part, whole):
    return round(part / whole * 100, 2) if whole else 0.0

class AttendanceService:
    """Attendance service class"""

    @staticmethod
    def get_record(record_id):
        return get_or_raise(AttendanceRecord, record_id, 'Attendance record')

    @staticmethod
    def record_attendance(data):
        """Create or update the record for a student, date and period"""
        require_fields(data, 'student_id', 'status')
        student = get_or_raise(Student, parse_int(data['student_id'], 'student_id'), 'Student')
        status = parse_enum(data['status'], ATTENDANCE_STATUSES, 'status')
        attendance_date = parse_date(data.get('attendance_date'), 'attendance_date', required=False) or date.today()
        period_number = parse_int(data.get('period_number'), 'period_number', required=False, minimum=0)

        query = AttendanceRecord.query.filter_by(student_id=student.id, attendance_date=attendance_date)
        if period_number is None:
            query = query.filter(AttendanceRecord.period_number.is_(None))
        else:
            query = query.filter_by(period_number=period_number)
        record = query.first()

        if record is None:
            record = AttendanceRecord(
                student_id=student.id,
                attendance_date=attendance_date,
                period_number=period_number
            )
            record.status = status
            record.course_id = parse_int(data.get('course_id'), 'course_id', required=False)
            record.notes = data.get('notes')
            record.recorded_by = parse_int(data.get('recorded_by'), 'recorded_by', required=False)
            safe_add_and_commit(record)
        else:
            record.status = status
            if 'notes' in data:
                record.notes = data.get('notes')
            if data.get('course_id') is not None:
                record.course_id = parse_int(data['course_id'], 'course_id')
            safe_update_and_commit()
        return record

    @staticmethod
    def bulk_record(entries, defaults=None):
        """Record many entries; invalid ones are logged and skipped"""
        if not isinstance(entries, list):
            raise ValueError("records must be a list")
        defaults = defaults or {}
        saved, errors = [], []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                logger.warning("Skipping attendance entry %s: not an object", index)
                errors.append(f"Entry {index}: must be an object")
                continue
            payload = dict(defaults)
            payload.update(entry)
            try:
                saved.append(AttendanceService.record_attendance(payload))
            except (ValueError, LookupError, StateError) as e:
                logger.warning("Skipping attendance entry %s: %s", index, e)
                errors.append(f"Entry {index}: {e}")
        return saved, errors

    @staticmethod
    def update_status(record_id, status, notes=None):
        record = AttendanceService.get_record(record_id)
        record.status = parse_enum(status, ATTENDANCE_STATUSES, 'status')
        if notes is not None:
            record.notes = notes
        safe_update_and_commit()
        return record

    @staticmethod
    def get_student_records(student_id, start_date=None, end_date=None):
        get_or_raise(Student, student_id, 'Student')
        query = AttendanceRecord.query.filter_by(student_id=student_id)
        if start_date:
            query = query.filter(AttendanceRecord.attendance_date >= start_date)
        if end_date:
            query = query.filter(AttendanceRecord.attendance_date <= end_date)
        return query.order_by(AttendanceRecord.attendance_date, AttendanceRecord.period_number).all()

    @staticmethod
    def get_records_for_date(attendance_date):
        return AttendanceRecord.query.filter_by(attendance_date=attendance_date).order_by(
            AttendanceRecord.student_id, AttendanceRecord.period_number).all()

    @staticmethod
    def get_records_in_range(start_date, end_date):
        return AttendanceRecord.query.filter(
            AttendanceRecord.attendance_date >= start_date,
            AttendanceRecord.attendance_date <= end_date
        ).order_by(AttendanceRecord.attendance_date, AttendanceRecord.student_id).all()

    @staticmethod
    def _status_counts(records):
        counts = Counter(r.status for r in records)
        return {status: counts.get(status, 0) for status in ATTENDANCE_STATUSES}

    @staticmethod
    def get_student_summary(student_id, start_date=None, end_date=None):
        """Per-status counts and attendance rate for a student"""
        records = AttendanceService.get_student_records(student_id, start_date, end_date)
        counts = AttendanceService._status_counts(records)
        attended = sum(1 for r in records if r.is_present())
        absences = sum(1 for r in records if r.is_absent())
        return {
            'student_id': student_id,
            'start_date': start_date.isoformat() if start_date else None,
            'end_date': end_date.isoformat() if end_date else None,
            'total_records': len(records),
            'status_counts': counts,
            'days_attended': attended,
            'days_absent': absences,
            'tardies': counts['TARDY'],
            'attendance_rate': _rate(attended, len(records))
        }

    @staticmethod
    def get_daily_summary(attendance_date):
        records = AttendanceService.get_records_for_date(attendance_date)
        counts = AttendanceService._status_counts(records)
        attended = sum(1 for r in records if r.is_present())
        return {
            'date': attendance_date.isoformat(),
            'total_records': len(records),
            'students_recorded': len({r.student_id for r in records}),
            'status_counts': counts,
            'attendance_rate': _rate(attended, len(records))
        }

    @staticmethod
    def calculate_ada(start_date, end_date):
        """Average daily attendance; a tardy earns half a day of credit"""
        records = AttendanceService.get_records_in_range(start_date, end_date)
        school_days = count_school_days(start_date, end_date)
        present = sum(1 for r in records if r.status == 'PRESENT')
        tardy_credit = sum(1 for r in records if r.status == 'TARDY') * 0.5
        days_present = present + tardy_credit
        days_absent = sum(1 for r in records if r.status in ABSENT_STATUSES)

        ada = round(days_present / school_days, 2) if school_days else 0.0
        return {
            'start_date': start_date.isoformat(),
            'end_date': end_date.isoformat(),
            'total_days_in_period': school_days,
            'total_days_present': days_present,
            'total_days_absent': days_absent,
            'ada': ada,
            'attendance_rate': _rate(days_present, days_present + days_absent)
        }

    @staticmethod
    def generate_truancy_report(start_date, end_date, threshold=None):
        """Students with at least threshold unexcused absences in the range"""
        threshold = threshold or current_app.config['TRUANCY_THRESHOLD']
        if threshold < 1:
            raise ValueError("threshold must be at least 1")
        records = AttendanceRecord.query.filter(
            AttendanceRecord.attendance_date >= start_date,
            AttendanceRecord.attendance_date <= end_date,
            AttendanceRecord.status == 'UNEXCUSED_ABSENT'
        ).all()
        per_student = Counter(r.student_id for r in records)

        cases = []
        for student_id, unexcused in per_student.items():
            if unexcused < threshold:
                continue
            student = db.session.get(Student, student_id)
            if unexcused >= threshold * 2:
                severity = 'SEVERE'
            elif unexcused >= threshold * 1.5:
                severity = 'MODERATE'
            else:
                severity = 'MILD'
            cases.append({
                'student_id': student_id,
                'student_name': student.full_name if student else None,
                'grade_level': student.grade_level if student else None,
                'unexcused_absences': unexcused,
                'severity': severity,
                'requires_intervention': True
            })
        cases.sort(key=lambda c: c['unexcused_absences'], reverse=True)
        return {
            'start_date': start_date.isoformat(),
            'end_date': end_date.isoformat(),
            'truancy_threshold': threshold,
            'total_truant_students': len(cases),
            'truancy_cases': cases,
            'report_generated_date': date.today().isoformat()
        }

    @staticmethod
    def get_chronic_absences(start_date, end_date, rate_threshold=None):
        """Students absent for at least rate_threshold percent of their records"""
        rate_threshold = rate_threshold or current_app.config['CHRONIC_ABSENCE_RATE']
        grouped = defaultdict(list)
        for record in AttendanceService.get_records_in_range(start_date, end_date):
            grouped[record.student_id].append(record)

        results = []
        for student_id, records in grouped.items():
            absences = sum(1 for r in records if r.is_absent())
            absence_rate = _rate(absences, len(records))
            if absence_rate >= rate_threshold:
                student = records[0].student
                results.append({
                    'student_id': student_id,
                    'student_name': student.full_name if student else None,
                    'total_records': len(records),
                    'absences': absences,
                    'absence_rate': absence_rate
                })
        results.sort(key=lambda r: r['absence_rate'], reverse=True)
        return results
