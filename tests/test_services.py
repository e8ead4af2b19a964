"""
Unit tests for student, academic, attendance, behavior and health services
"""

import unittest
from datetime import date, timedelta

from app import create_app
from config import TestingConfig
from database import db
from models.audit import AuditLog
from services.student_service import StudentService
from services.academic_service import AcademicService
from services.attendance_service import AttendanceService
from services.behavior_service import BehaviorService
from services.health_office_service import HealthOfficeService
from services.immunization_service import ImmunizationService
from utils.responses import NotFoundError, StateError

def make_student(number='S1001', grade_level=9, first_name='Maya', last_name='Lopez'):
    return StudentService.create_student({
        'student_number': number,
        'first_name': first_name,
        'last_name': last_name,
        'grade_level': grade_level
    })

class TestServices(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.app = create_app(TestingConfig)
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()

    def tearDown(self):
        """Clean up after tests"""
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    # -------------------------------------------------------------- students

    def test_create_student_validation(self):
        student = make_student()
        self.assertEqual(student.enrollment_status, 'ACTIVE')
        self.assertEqual(student.enrollment_date, date.today())

        with self.assertRaises(ValueError):
            StudentService.create_student({'student_number': 'S2', 'first_name': 'A', 'last_name': 'B'})
        with self.assertRaises(ValueError):
            make_student('BAD NUMBER!')
        with self.assertRaises(ValueError):
            make_student('S3', grade_level=13)
        with self.assertRaises(ValueError):
            make_student('S4', first_name='R2D2')

    def test_duplicate_student_number(self):
        make_student()
        with self.assertRaises(StateError):
            make_student()

    def test_graduate_and_withdraw(self):
        student = make_student()
        StudentService.graduate_student(student.id, '2025-06-12')
        self.assertEqual(student.enrollment_status, 'GRADUATED')
        with self.assertRaises(ValueError):
            StudentService.graduate_student(student.id)

        other = make_student('S1002')
        StudentService.withdraw_student(other.id, transferred=False)
        self.assertEqual(other.enrollment_status, 'WITHDRAWN')

    def test_list_and_promote(self):
        make_student('S1', grade_level=9, last_name='Adams')
        make_student('S2', grade_level=9, last_name='Baker')
        make_student('S3', grade_level=10, last_name='Clark')

        ninth = StudentService.list_students(grade_level=9)
        self.assertEqual([s.last_name for s in ninth], ['Adams', 'Baker'])
        self.assertEqual(len(StudentService.list_students(search='Clark')), 1)

        promoted = StudentService.promote_grade_level(9)
        self.assertEqual(promoted, 2)
        self.assertEqual(len(StudentService.list_students(grade_level=10)), 3)
        with self.assertRaises(ValueError):
            StudentService.promote_grade_level(12)

    def test_get_missing_student(self):
        with self.assertRaises(NotFoundError):
            StudentService.get_student(999)

    # -------------------------------------------------------------- academic

    def _year(self, name='2024-2025'):
        return AcademicService.create_year({'name': name, 'start_date': '2024-08-01', 'end_date': '2025-06-30'})

    def test_academic_year_rules(self):
        with self.assertRaises(ValueError):
            AcademicService.create_year({'name': 'Bad', 'start_date': '2025-06-30', 'end_date': '2024-08-01'})

        year = self._year()
        self.assertEqual(year.status, 'PLANNING')
        AcademicService.set_current_year(year.id)
        self.assertEqual(AcademicService.get_current_year().id, year.id)
        self.assertEqual(year.status, 'ACTIVE')

        other = self._year('2025-2026')
        AcademicService.set_current_year(other.id)
        self.assertFalse(year.is_current)

        AcademicService.close_year(year.id)
        with self.assertRaises(StateError):
            AcademicService.set_current_year(year.id)

    def test_grading_periods(self):
        year = self._year()
        q1 = AcademicService.create_period({'academic_year_id': year.id, 'name': 'Q1',
                                            'start_date': '2024-08-15', 'end_date': '2024-10-31'})
        self.assertEqual(q1.period_type, 'QUARTER')
        self.assertEqual(q1.period_number, 1)

        with self.assertRaises(ValueError):
            AcademicService.create_period({'academic_year_id': year.id, 'name': 'Overlap',
                                           'start_date': '2024-10-01', 'end_date': '2024-12-15'})
        with self.assertRaises(ValueError):
            AcademicService.create_period({'academic_year_id': year.id, 'name': 'Outside',
                                           'start_date': '2025-07-01', 'end_date': '2025-08-15'})

        # a semester may span quarters
        semester = AcademicService.create_period({'academic_year_id': year.id, 'name': 'Fall',
                                                  'period_type': 'SEMESTER',
                                                  'start_date': '2024-08-15', 'end_date': '2024-12-20'})
        current = AcademicService.get_current_period(date(2024, 9, 10))
        self.assertEqual(current.id, q1.id)
        self.assertEqual(AcademicService.get_current_period(date(2024, 12, 1)).id, semester.id)
        with self.assertRaises(NotFoundError):
            AcademicService.get_current_period(date(2025, 3, 1))

        with self.assertRaises(StateError):
            AcademicService.delete_year(year.id)

    def test_course_enrollment(self):
        course = AcademicService.create_course({'course_code': 'alg1', 'course_name': 'Algebra I', 'max_students': 1})
        self.assertEqual(course.course_code, 'ALG1')
        self.assertEqual(course.credits, 1.0)

        first = make_student('S1')
        second = make_student('S2')
        AcademicService.enroll_student(course.id, first.id)
        with self.assertRaises(StateError):
            AcademicService.enroll_student(course.id, first.id)
        with self.assertRaises(StateError):
            AcademicService.enroll_student(course.id, second.id)

        self.assertEqual([s.id for s in AcademicService.get_roster(course.id)], [first.id])
        AcademicService.drop_student(course.id, first.id)
        with self.assertRaises(NotFoundError):
            AcademicService.drop_student(course.id, first.id)

    # ------------------------------------------------------------ attendance

    def test_record_attendance_upserts(self):
        student = make_student()
        first = AttendanceService.record_attendance({'student_id': student.id, 'status': 'absent',
                                                     'attendance_date': '2024-09-03'})
        second = AttendanceService.record_attendance({'student_id': student.id, 'status': 'PRESENT',
                                                      'attendance_date': '2024-09-03'})
        self.assertEqual(first.id, second.id)
        self.assertEqual(second.status, 'PRESENT')

        period = AttendanceService.record_attendance({'student_id': student.id, 'status': 'TARDY',
                                                      'attendance_date': '2024-09-03', 'period_number': 2})
        self.assertNotEqual(period.id, first.id)

        with self.assertRaises(ValueError):
            AttendanceService.record_attendance({'student_id': student.id, 'status': 'SICK'})

    def test_bulk_record_skips_bad_entries(self):
        student = make_student()
        saved, errors = AttendanceService.bulk_record(
            [{'student_id': student.id, 'status': 'PRESENT'},
             {'student_id': 999, 'status': 'PRESENT'},
             {'student_id': student.id, 'status': 'NOPE', 'period_number': 3}],
            {'attendance_date': '2024-09-04'}
        )
        self.assertEqual(len(saved), 1)
        self.assertEqual(len(errors), 2)
        self.assertTrue(errors[0].startswith('Entry 1'))

        saved, errors = AttendanceService.bulk_record(
            [None, 'late', {'student_id': student.id, 'status': 'TARDY', 'course_id': 999}],
            {'attendance_date': '2024-09-05'}
        )
        self.assertEqual(saved, [])
        self.assertEqual(len(errors), 3)
        self.assertTrue(errors[0].startswith('Entry 0'))
        self.assertIn('constraint', errors[2])

    def test_student_summary_and_ada(self):
        student = make_student()
        # week of Monday 2024-09-02
        statuses = ['PRESENT', 'PRESENT', 'TARDY', 'EXCUSED_ABSENT', 'UNEXCUSED_ABSENT']
        for offset, status in enumerate(statuses):
            AttendanceService.record_attendance({
                'student_id': student.id, 'status': status,
                'attendance_date': (date(2024, 9, 2) + timedelta(days=offset)).isoformat()
            })

        summary = AttendanceService.get_student_summary(student.id)
        self.assertEqual(summary['total_records'], 5)
        self.assertEqual(summary['days_attended'], 3)
        self.assertEqual(summary['days_absent'], 2)
        self.assertEqual(summary['tardies'], 1)
        self.assertEqual(summary['attendance_rate'], 60.0)

        ada = AttendanceService.calculate_ada(date(2024, 9, 2), date(2024, 9, 8))
        self.assertEqual(ada['total_days_in_period'], 5)
        self.assertEqual(ada['total_days_present'], 2.5)
        self.assertEqual(ada['total_days_absent'], 2)
        self.assertEqual(ada['ada'], 0.5)
        self.assertEqual(ada['attendance_rate'], 55.56)

    def test_truancy_severity(self):
        mild = make_student('S1')
        severe = make_student('S2')
        start = date(2024, 9, 2)
        for offset in range(4):
            day = (start + timedelta(days=offset)).isoformat()
            AttendanceService.record_attendance({'student_id': severe.id, 'status': 'UNEXCUSED_ABSENT',
                                                 'attendance_date': day})
            if offset < 2:
                AttendanceService.record_attendance({'student_id': mild.id, 'status': 'UNEXCUSED_ABSENT',
                                                     'attendance_date': day})

        report = AttendanceService.generate_truancy_report(start, start + timedelta(days=10), threshold=2)
        self.assertEqual(report['total_truant_students'], 2)
        cases = {c['student_id']: c for c in report['truancy_cases']}
        self.assertEqual(cases[severe.id]['severity'], 'SEVERE')
        self.assertEqual(cases[mild.id]['severity'], 'MILD')
        self.assertEqual(report['truancy_cases'][0]['student_id'], severe.id)

        with self.assertRaises(ValueError):
            AttendanceService.generate_truancy_report(start, start, threshold=-1)

    def test_chronic_absences(self):
        student = make_student()
        AttendanceService.record_attendance({'student_id': student.id, 'status': 'ABSENT',
                                             'attendance_date': '2024-09-02'})
        AttendanceService.record_attendance({'student_id': student.id, 'status': 'PRESENT',
                                             'attendance_date': '2024-09-03'})
        chronic = AttendanceService.get_chronic_absences(date(2024, 9, 1), date(2024, 9, 30))
        self.assertEqual(len(chronic), 1)
        self.assertEqual(chronic[0]['absence_rate'], 50.0)
        self.assertEqual(AttendanceService.get_chronic_absences(date(2024, 9, 1), date(2024, 9, 30), 60.0), [])

    # -------------------------------------------------------------- behavior

    def test_behavior_incident_defaults(self):
        student = make_student()
        negative = BehaviorService.create_incident({'student_id': student.id, 'behavior_type': 'negative',
                                                    'description': 'Talking during test'})
        self.assertEqual(negative.severity_level, 'MINOR')
        self.assertFalse(negative.admin_referral_required)

        severe = BehaviorService.create_incident({'student_id': student.id, 'behavior_type': 'NEGATIVE',
                                                  'severity_level': 'SEVERE', 'description': 'Fight'})
        self.assertTrue(severe.admin_referral_required)

        positive = BehaviorService.create_incident({'student_id': student.id, 'behavior_type': 'POSITIVE',
                                                    'severity_level': 'MAJOR', 'description': 'Helped a peer'})
        self.assertIsNone(positive.severity_level)

        self.assertEqual(AuditLog.query.filter_by(entity_type='BEHAVIOR_INCIDENT').count(), 3)

        future = (date.today() + timedelta(days=2)).isoformat()
        with self.assertRaises(ValueError):
            BehaviorService.create_incident({'student_id': student.id, 'behavior_type': 'POSITIVE',
                                             'description': 'Later', 'incident_date': future})
        with self.assertRaises(NotFoundError):
            BehaviorService.create_incident({'student_id': 999, 'behavior_type': 'POSITIVE', 'description': 'x'})

    def test_critical_and_uncontacted(self):
        student = make_student()
        old = (date.today() - timedelta(days=60)).isoformat()
        BehaviorService.create_incident({'student_id': student.id, 'behavior_type': 'NEGATIVE',
                                         'severity_level': 'MAJOR', 'description': 'Old', 'incident_date': old})
        recent = BehaviorService.create_incident({'student_id': student.id, 'behavior_type': 'NEGATIVE',
                                                  'severity_level': 'SEVERE', 'description': 'Recent'})
        BehaviorService.create_incident({'student_id': student.id, 'behavior_type': 'NEGATIVE',
                                         'severity_level': 'MODERATE', 'description': 'Moderate'})

        since, critical = BehaviorService.get_critical_incidents(student.id)
        self.assertEqual(since, date.today() - timedelta(days=30))
        self.assertEqual([i.id for i in critical], [recent.id])
        _, longer = BehaviorService.get_critical_incidents(student.id, days_back=90)
        self.assertEqual(len(longer), 2)

        self.assertEqual(len(BehaviorService.get_uncontacted_incidents(student.id)), 3)
        BehaviorService.record_parent_contact(recent.id, contact_method='phone')
        self.assertEqual(recent.parent_contact_method, 'PHONE')
        self.assertEqual(recent.parent_contact_date, date.today())
        self.assertEqual(len(BehaviorService.get_uncontacted_incidents(student.id)), 2)

    def test_behavior_statistics(self):
        student = make_student()
        for _ in range(3):
            BehaviorService.create_incident({'student_id': student.id, 'behavior_type': 'POSITIVE',
                                             'behavior_category': 'LEADERSHIP', 'description': 'Led group'})
        BehaviorService.create_incident({'student_id': student.id, 'behavior_type': 'NEGATIVE',
                                         'description': 'Late'})
        stats = BehaviorService.get_behavior_statistics(student.id, date.today() - timedelta(days=7), date.today())
        self.assertEqual(stats['positive_incidents'], 3)
        self.assertEqual(stats['negative_incidents'], 1)
        self.assertEqual(stats['behavior_ratio'], 3.0)
        self.assertEqual(stats['behavior_trend'], 'POSITIVE')
        self.assertEqual(stats['by_category'], {'LEADERSHIP': 3, 'UNCATEGORIZED': 1})

    def test_behavior_workflow_requires_text(self):
        student = make_student()
        incident = BehaviorService.create_incident({'student_id': student.id, 'behavior_type': 'NEGATIVE',
                                                    'description': 'Phone in class'})
        with self.assertRaises(ValueError):
            BehaviorService.record_referral_outcome(incident.id, '  ')
        BehaviorService.record_intervention(incident.id, 'Lunch detention')
        BehaviorService.attach_evidence(incident.id, '/evidence/photo.jpg')
        self.assertTrue(incident.evidence_attached)
        self.assertEqual(incident.intervention_applied, 'Lunch detention')

    # ---------------------------------------------------------- health office

    def _health_record(self, student):
        return HealthOfficeService.create_record({
            'student_id': student.id,
            'emergency_contact_name': 'Ana Lopez',
            'emergency_contact_relationship': 'Mother',
            'emergency_contact_phone': '(555) 123-4567',
            'allergies': 'Peanuts'
        })

    def test_health_record_rules(self):
        student = make_student()
        record = self._health_record(student)
        self.assertFalse(record.record_complete)
        with self.assertRaises(StateError):
            self._health_record(student)
        with self.assertRaises(ValueError):
            HealthOfficeService.create_record({'student_id': make_student('S2').id,
                                               'emergency_contact_name': 'Bo',
                                               'emergency_contact_relationship': 'Father',
                                               'emergency_contact_phone': '12345'})

        self.assertEqual(len(HealthOfficeService.get_needing_screening('vision')), 1)
        HealthOfficeService.record_screening(record.id, 'vision', None, 'pass')
        self.assertEqual(record.vision_screening_result, 'PASS')
        self.assertEqual(HealthOfficeService.get_needing_screening('vision'), [])
        self.assertEqual(len(HealthOfficeService.get_needing_screening('hearing')), 1)
        with self.assertRaises(ValueError):
            HealthOfficeService.record_screening(record.id, 'dental', None, 'PASS')

    def test_nurse_visit_workflow(self):
        student = make_student()
        visit = HealthOfficeService.check_in({'student_id': student.id, 'visit_reason': 'Headache'})
        self.assertTrue(visit.is_active())
        self.assertEqual(len(HealthOfficeService.get_active_visits()), 1)

        HealthOfficeService.record_temperature(visit.id, 101.2)
        self.assertTrue(visit.has_fever)
        self.assertEqual(len(HealthOfficeService.get_pending_parent_notifications()), 1)
        with self.assertRaises(ValueError):
            HealthOfficeService.record_temperature(visit.id, 120)

        HealthOfficeService.check_out(visit.id, 'returned_to_class')
        self.assertFalse(visit.is_active())
        with self.assertRaises(StateError):
            HealthOfficeService.check_out(visit.id, 'SENT_HOME')

        HealthOfficeService.notify_parent(visit.id, 'PHONE', 'Mother informed')
        self.assertEqual(HealthOfficeService.get_pending_parent_notifications(), [])

        home = HealthOfficeService.check_in({'student_id': student.id, 'visit_reason': 'Nausea'})
        HealthOfficeService.send_home(home.id, 'Vomiting')
        self.assertEqual(home.disposition, 'SENT_HOME')
        self.assertIsNotNone(home.check_out_time)
        self.assertEqual(len(HealthOfficeService.get_sent_home_today()), 1)

        frequent = HealthOfficeService.get_frequent_visitors(date.today(), date.today(), minimum_visits=2)
        self.assertEqual(frequent[0]['visit_count'], 2)
        stats = HealthOfficeService.get_dashboard_statistics()
        self.assertEqual(stats['total_nurse_visits'], 2)
        self.assertEqual(stats['visits_today'], 2)

    # ---------------------------------------------------------- immunizations

    def test_immunization_next_dose(self):
        student = make_student()
        given = date.today() - timedelta(days=10)
        dose = ImmunizationService.create_immunization({'student_id': student.id, 'vaccine_type': 'mmr',
                                                        'dose_number': 1, 'administration_date': given.isoformat()})
        self.assertEqual(dose.total_doses_required, 2)
        self.assertIsNotNone(dose.next_dose_due)

        final = ImmunizationService.create_immunization({'student_id': student.id, 'vaccine_type': 'MMR',
                                                         'dose_number': 2,
                                                         'administration_date': date.today().isoformat()})
        self.assertIsNone(final.next_dose_due)

        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        with self.assertRaises(ValueError):
            ImmunizationService.create_immunization({'student_id': student.id, 'vaccine_type': 'MMR',
                                                     'dose_number': 1, 'administration_date': tomorrow})
        with self.assertRaises(ValueError):
            ImmunizationService.create_immunization({'student_id': student.id, 'vaccine_type': 'SMALLPOX',
                                                     'dose_number': 1, 'administration_date': given.isoformat()})

    def test_compliance_report(self):
        student = make_student()
        given = (date.today() - timedelta(days=400)).isoformat()
        report = ImmunizationService.check_compliance(student.id)
        self.assertFalse(report['compliant'])
        self.assertEqual(report['vaccine_compliance']['DTAP']['status'], 'Missing - No doses recorded')

        required = {'DTAP': 5, 'POLIO': 4, 'MMR': 2, 'HEPATITIS_B': 3, 'VARICELLA': 2, 'TDAP': 1}
        for vaccine, doses in required.items():
            ImmunizationService.create_immunization({'student_id': student.id, 'vaccine_type': vaccine,
                                                     'dose_number': doses, 'administration_date': given})
        ImmunizationService.create_immunization({'student_id': student.id, 'vaccine_type': 'MENINGOCOCCAL',
                                                 'dose_number': 1, 'administration_date': given})

        report = ImmunizationService.check_compliance(student.id)
        self.assertEqual(report['missing_vaccines'], ['MENINGOCOCCAL'])
        status = report['vaccine_compliance']['MENINGOCOCCAL']
        self.assertEqual(status['status'], 'Incomplete - 1 of 2 doses')
        self.assertIsNotNone(status['next_dose_due'])
        self.assertEqual(len(ImmunizationService.get_non_compliant_students()), 1)

        ImmunizationService.record_exemption({'student_id': student.id, 'vaccine_type': 'MENINGOCOCCAL',
                                              'reason': 'Religious belief'}, 'RELIGIOUS')
        self.assertTrue(ImmunizationService.is_compliant(student.id))
        self.assertEqual(len(ImmunizationService.get_students_with_exemptions()), 1)

    def test_expired_medical_exemption(self):
        student = make_student()
        with self.assertRaises(ValueError):
            ImmunizationService.record_exemption({'student_id': student.id, 'vaccine_type': 'DTAP',
                                                  'reason': 'Allergy', 'expiration_date': '2000-01-01'}, 'MEDICAL')
        exemption = ImmunizationService.record_exemption(
            {'student_id': student.id, 'vaccine_type': 'DTAP', 'reason': 'Allergy',
             'expiration_date': (date.today() + timedelta(days=90)).isoformat()}, 'MEDICAL')
        self.assertEqual(exemption.dose_number, 0)
        self.assertTrue(exemption.verified)
        self.assertEqual(ImmunizationService.check_compliance(student.id)['vaccine_compliance']['DTAP']['status'],
                         'Exempt')

    def test_overdue_and_due_soon(self):
        student = make_student()
        overdue_given = (date.today() - timedelta(days=200)).isoformat()
        soon_given = (date.today() - timedelta(days=50)).isoformat()
        ImmunizationService.create_immunization({'student_id': student.id, 'vaccine_type': 'HEPATITIS_B',
                                                 'dose_number': 1, 'administration_date': overdue_given})
        ImmunizationService.create_immunization({'student_id': student.id, 'vaccine_type': 'POLIO',
                                                 'dose_number': 1, 'administration_date': soon_given})

        overdue = ImmunizationService.get_overdue()
        self.assertEqual([r.vaccine_type for r in overdue], ['HEPATITIS_B'])
        due_soon = ImmunizationService.get_due_soon(30)
        self.assertEqual([r.vaccine_type for r in due_soon], ['POLIO'])
        self.assertEqual(len(ImmunizationService.get_incomplete_series()), 2)

        dashboard = ImmunizationService.get_dashboard()
        self.assertEqual(dashboard['total_students'], 1)
        self.assertEqual(dashboard['overdue_doses'], 1)
        self.assertEqual(dashboard['unverified_records'], 2)

if __name__ == '__main__':
    unittest.main()
