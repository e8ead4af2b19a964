"""
Immunization service for Brookfield School Information System
Vaccine records, exemptions and school-entry compliance
"""

import logging
from datetime import date, timedelta

from flask import current_app

from database import db
from models.immunization import Immunization, VACCINE_TYPES, typical_doses, required_vaccines
from models.student import Student
from utils.dates import add_months, add_years
from utils.db_helpers import safe_add_and_commit, safe_update_and_commit, get_or_raise
from utils.validators import require_fields, parse_date, parse_int, parse_enum, parse_bool

logger = logging.getLogger(__name__)

SERIES_VACCINES = ('DTAP', 'POLIO', 'HEPATITIS_B', 'HIB', 'PNEUMOCOCCAL')
SIX_MONTH_VACCINES = ('MMR', 'VARICELLA', 'HEPATITIS_A')

def calculate_next_dose_date(vaccine_type, dose_number, administration_date):
    """Recommended date for the dose after dose_number"""
    if vaccine_type in SERIES_VACCINES:
        if dose_number in (1, 2):
            return add_months(administration_date, 2)
        if dose_number == 3:
            return add_months(administration_date, 6)
        return add_years(administration_date, 1)
    if vaccine_type in SIX_MONTH_VACCINES:
        return add_months(administration_date, 6)
    if vaccine_type == 'MENINGOCOCCAL':
        return add_years(administration_date, 3)
    if vaccine_type == 'HPV':
        return add_months(administration_date, 2 if dose_number == 1 else 4)
    return add_months(administration_date, 3)

class ImmunizationService:
    """Immunization service class"""

    @staticmethod
    def get_immunization(immunization_id):
        return get_or_raise(Immunization, immunization_id, 'Immunization')

    @staticmethod
    def _vaccine(value):
        return parse_enum(value, tuple(VACCINE_TYPES), 'vaccine_type')

    @staticmethod
    def create_immunization(data):
        """Record a dose and schedule the next one while the series is incomplete"""
        require_fields(data, 'student_id', 'vaccine_type', 'dose_number', 'administration_date')
        student = get_or_raise(Student, parse_int(data['student_id'], 'student_id'), 'Student')
        vaccine_type = ImmunizationService._vaccine(data['vaccine_type'])
        dose_number = parse_int(data['dose_number'], 'dose_number', minimum=1, maximum=10)
        administration_date = parse_date(data['administration_date'], 'administration_date')
        if administration_date > date.today():
            raise ValueError("administration_date cannot be in the future")

        required = typical_doses(vaccine_type)
        immunization = Immunization(
            student_id=student.id,
            vaccine_type=vaccine_type,
            dose_number=dose_number,
            administration_date=administration_date,
            total_doses_required=required,
            lot_number=data.get('lot_number'),
            provider=data.get('provider'),
            notes=data.get('notes'),
            verified=parse_bool(data.get('verified')),
            meets_state_requirement=True
        )
        if dose_number < required:
            immunization.next_dose_due = calculate_next_dose_date(vaccine_type, dose_number, administration_date)

        safe_add_and_commit(immunization)
        logger.info("Recorded %s dose %s for student %s", vaccine_type, dose_number, student.id)
        return immunization

    @staticmethod
    def update_immunization(immunization_id, data):
        immunization = ImmunizationService.get_immunization(immunization_id)
        if 'administration_date' in data:
            immunization.administration_date = parse_date(data['administration_date'], 'administration_date')
        if 'dose_number' in data:
            immunization.dose_number = parse_int(data['dose_number'], 'dose_number', minimum=1, maximum=10)
        for field in ('lot_number', 'provider', 'notes'):
            if field in data:
                setattr(immunization, field, data[field])
        if not immunization.is_exemption() and immunization.administration_date:
            if immunization.dose_number < (immunization.total_doses_required or 0):
                immunization.next_dose_due = calculate_next_dose_date(
                    immunization.vaccine_type, immunization.dose_number, immunization.administration_date)
            else:
                immunization.next_dose_due = None
        safe_update_and_commit()
        return immunization

    @staticmethod
    def verify(immunization_id, verified_by=None):
        immunization = ImmunizationService.get_immunization(immunization_id)
        immunization.verified = True
        immunization.verified_by = parse_int(verified_by, 'verified_by', required=False)
        immunization.verification_date = date.today()
        safe_update_and_commit()
        return immunization

    @staticmethod
    def record_exemption(data, exemption_type):
        """Medical or religious exemption, stored as a verified dose 0"""
        require_fields(data, 'student_id', 'vaccine_type', 'reason')
        student = get_or_raise(Student, parse_int(data['student_id'], 'student_id'), 'Student')
        vaccine_type = ImmunizationService._vaccine(data['vaccine_type'])
        expiration = None
        if exemption_type == 'MEDICAL':
            expiration = parse_date(data.get('expiration_date'), 'expiration_date', required=False)
            if expiration and expiration <= date.today():
                raise ValueError("expiration_date must be in the future")

        exemption = Immunization(
            student_id=student.id,
            vaccine_type=vaccine_type,
            dose_number=0,
            total_doses_required=typical_doses(vaccine_type),
            exemption_type=exemption_type,
            exemption_reason=data['reason'],
            exemption_expiration_date=expiration,
            verified=True,
            verification_date=date.today(),
            meets_state_requirement=False
        )
        safe_add_and_commit(exemption)
        logger.info("Recorded %s exemption for %s, student %s", exemption_type, vaccine_type, student.id)
        return exemption

    @staticmethod
    def get_student_immunizations(student_id):
        get_or_raise(Student, student_id, 'Student')
        return Immunization.query.filter_by(student_id=student_id).order_by(
            Immunization.vaccine_type, Immunization.dose_number).all()

    @staticmethod
    def get_student_immunizations_by_type(student_id, vaccine_type):
        vaccine_type = ImmunizationService._vaccine(vaccine_type)
        get_or_raise(Student, student_id, 'Student')
        return Immunization.query.filter_by(student_id=student_id, vaccine_type=vaccine_type).order_by(
            Immunization.dose_number).all()

    # ------------------------------------------------------------ compliance

    @staticmethod
    def check_compliance(student_id):
        """Per required vaccine: missing, exempt, complete or incomplete"""
        student = get_or_raise(Student, student_id, 'Student')
        records = Immunization.query.filter_by(student_id=student.id).all()
        today = date.today()

        vaccine_compliance = {}
        missing = []
        for vaccine_type in required_vaccines():
            doses = [r for r in records if r.vaccine_type == vaccine_type]
            required = typical_doses(vaccine_type)
            if not doses:
                vaccine_compliance[vaccine_type] = {
                    'compliant': False,
                    'status': 'Missing - No doses recorded',
                    'doses_received': 0,
                    'doses_required': required
                }
                missing.append(vaccine_type)
                continue

            exemptions = [r for r in doses if r.is_exemption()]
            active_exemptions = [e for e in exemptions
                                 if e.exemption_expiration_date is None or e.exemption_expiration_date >= today]
            if active_exemptions:
                vaccine_compliance[vaccine_type] = {
                    'compliant': True,
                    'status': 'Exempt',
                    'exemption_type': active_exemptions[0].exemption_type,
                    'doses_required': required
                }
                continue

            highest = max((r.dose_number for r in doses if not r.is_exemption()), default=0)
            if highest >= required:
                vaccine_compliance[vaccine_type] = {
                    'compliant': True,
                    'status': f"Complete - {highest} of {required} doses",
                    'doses_received': highest,
                    'doses_required': required
                }
            else:
                due_dates = [r.next_dose_due for r in doses if r.next_dose_due]
                vaccine_compliance[vaccine_type] = {
                    'compliant': False,
                    'status': f"Incomplete - {highest} of {required} doses",
                    'doses_received': highest,
                    'doses_required': required,
                    'next_dose_due': min(due_dates).isoformat() if due_dates else None
                }
                missing.append(vaccine_type)

        return {
            'student_id': student.id,
            'student_name': student.full_name,
            'compliant': not missing,
            'vaccine_compliance': vaccine_compliance,
            'missing_vaccines': missing,
            'checked_date': today.isoformat()
        }

    @staticmethod
    def is_compliant(student_id):
        return ImmunizationService.check_compliance(student_id)['compliant']

    @staticmethod
    def get_non_compliant_students():
        students = Student.query.filter_by(is_active=True).order_by(Student.last_name, Student.first_name).all()
        results = []
        for student in students:
            report = ImmunizationService.check_compliance(student.id)
            if not report['compliant']:
                results.append({
                    'student_id': student.id,
                    'student_name': student.full_name,
                    'grade_level': student.grade_level,
                    'missing_vaccines': report['missing_vaccines']
                })
        return results

    # ---------------------------------------------------------------- alerts

    @staticmethod
    def _latest_pending_doses():
        """Latest non-exempt dose per (student, vaccine) still awaiting a follow-up"""
        latest = {}
        for record in Immunization.query.filter(Immunization.exemption_type == 'NONE').all():
            key = (record.student_id, record.vaccine_type)
            if key not in latest or record.dose_number > latest[key].dose_number:
                latest[key] = record
        return [r for r in latest.values() if r.next_dose_due is not None]

    @staticmethod
    def get_overdue():
        today = date.today()
        return sorted((r for r in ImmunizationService._latest_pending_doses() if r.next_dose_due < today),
                      key=lambda r: r.next_dose_due)

    @staticmethod
    def get_due_soon(days=None):
        if days is None:
            days = current_app.config['IMMUNIZATION_DUE_SOON_DAYS']
        today = date.today()
        horizon = today + timedelta(days=days)
        return sorted((r for r in ImmunizationService._latest_pending_doses()
                       if today <= r.next_dose_due <= horizon),
                      key=lambda r: r.next_dose_due)

    @staticmethod
    def get_incomplete_series():
        return [r for r in ImmunizationService._latest_pending_doses() if not r.is_series_complete()]

    @staticmethod
    def get_students_with_exemptions():
        student_ids = [row[0] for row in db.session.query(Immunization.student_id).filter(
            Immunization.exemption_type != 'NONE').distinct().all()]
        if not student_ids:
            return []
        return Student.query.filter(Student.id.in_(student_ids)).order_by(Student.last_name).all()

    @staticmethod
    def get_dashboard():
        non_compliant = ImmunizationService.get_non_compliant_students()
        active_students = Student.query.filter_by(is_active=True).count()
        compliant_count = active_students - len(non_compliant)
        return {
            'total_students': active_students,
            'compliant_students': compliant_count,
            'non_compliant_students': len(non_compliant),
            'compliance_rate': round(compliant_count / active_students * 100, 2) if active_students else 0.0,
            'overdue_doses': len(ImmunizationService.get_overdue()),
            'due_soon': len(ImmunizationService.get_due_soon()),
            'students_with_exemptions': len(ImmunizationService.get_students_with_exemptions()),
            'unverified_records': Immunization.query.filter_by(verified=False).count()
        }

    @staticmethod
    def get_vaccine_reference():
        return [
            {'vaccine_type': code, 'name': name, 'typical_doses': doses, 'required_for_school': required}
            for code, (name, doses, required) in VACCINE_TYPES.items()
        ]
