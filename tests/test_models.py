"""
Unit tests for database models and model-level helpers
"""

import unittest
from datetime import date, timedelta

from app import create_app
from config import TestingConfig
from database import db, reset_database
from init_db import parse_args
from models.student import Student
from models.academic import AcademicYear, GradingPeriod, Course
from models.scheduling import Teacher, Room, ScheduleSlot
from models.fees import Fee, StudentFee
from models.gradebook import GradeCategory, GradebookAssignment, StudentGrade
from models.health import HealthRecord
from models.immunization import required_vaccines, typical_doses
from services.attendance_service import count_school_days
from services.behavior_service import BehaviorService
from services.gradebook_service import category_average
from services.immunization_service import calculate_next_dose_date
from utils.dates import add_months, school_year_label, school_year_end
from utils.validators import (
    parse_str, parse_date, parse_int, parse_float, parse_amount, validate_name, validate_student_number
)

class TestModels(unittest.TestCase):

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

    def _student(self, number='S1001', grade_level=9):
        student = Student(student_number=number, first_name='Maya', last_name='Lopez', grade_level=grade_level)
        db.session.add(student)
        db.session.commit()
        return student

    def test_student_lifecycle(self):
        """Graduating and withdrawing deactivate the student"""
        student = self._student()
        self.assertEqual(student.full_name, 'Maya Lopez')
        self.assertEqual(student.enrollment_status, 'ACTIVE')
        self.assertTrue(student.is_active)

        student.graduate(date(2025, 6, 10))
        self.assertEqual(student.enrollment_status, 'GRADUATED')
        self.assertEqual(student.graduation_date, date(2025, 6, 10))
        self.assertFalse(student.is_active)

        other = self._student('S1002')
        other.withdraw(transferred=True)
        self.assertEqual(other.enrollment_status, 'TRANSFERRED')
        self.assertFalse(other.is_active)

    def test_student_to_dict(self):
        student = self._student()
        data = student.to_dict()
        self.assertEqual(data['student_number'], 'S1001')
        self.assertEqual(data['grade_level'], 9)
        self.assertEqual(data['enrollment_status'], 'ACTIVE')

    def test_grading_period_overlap(self):
        year = AcademicYear(name='2024-2025', start_date=date(2024, 8, 1), end_date=date(2025, 6, 30))
        db.session.add(year)
        db.session.commit()
        period = GradingPeriod(academic_year_id=year.id, name='Q1', start_date=date(2024, 8, 15),
                               end_date=date(2024, 10, 31))
        db.session.add(period)
        db.session.commit()

        self.assertTrue(year.contains(date(2024, 9, 1)))
        self.assertFalse(year.contains(date(2025, 7, 1)))
        self.assertTrue(period.overlaps(date(2024, 10, 1), date(2024, 11, 30)))
        self.assertFalse(period.overlaps(date(2024, 11, 1), date(2024, 12, 31)))

    def test_course_enrollment_count(self):
        course = Course(course_code='ALG1', course_name='Algebra I', max_students=2)
        db.session.add(course)
        course.students.append(self._student())
        db.session.commit()
        self.assertEqual(course.get_enrolled_count(), 1)

        gym = Course(course_code='PE9', course_name='Physical Education', subject_area='PE')
        self.assertTrue(gym.is_physical_education)
        self.assertFalse(course.is_physical_education)

    def test_teacher_certifications(self):
        teacher = Teacher(employee_id='T100', first_name='Ada', last_name='King', certifications='math, science')
        self.assertEqual(teacher.get_certifications(), ['MATH', 'SCIENCE'])
        self.assertTrue(teacher.is_certified_for('Math'))
        self.assertFalse(teacher.is_certified_for('History'))
        self.assertFalse(teacher.is_certified_for(None))

    def test_schedule_slot_assignment_state(self):
        course = Course(course_code='BIO', course_name='Biology')
        teacher = Teacher(employee_id='T200', first_name='Rosa', last_name='Park')
        room = Room(room_number='101', room_type='SCIENCE_LAB', capacity=24)
        db.session.add_all([course, teacher, room])
        db.session.commit()

        slot = ScheduleSlot(course_id=course.id)
        db.session.add(slot)
        db.session.commit()
        self.assertFalse(slot.has_time)
        self.assertFalse(slot.is_fully_assigned())

        slot.teacher_id = teacher.id
        slot.room_id = room.id
        slot.day_of_week = 'MONDAY'
        slot.period_number = 2
        db.session.commit()
        self.assertTrue(slot.is_fully_assigned())
        self.assertEqual(slot.time_key(), 'MONDAY_2')
        self.assertTrue(room.is_lab)
        self.assertFalse(room.is_gym)

    def test_student_fee_balance_and_status(self):
        """Status follows the amounts owed, paid and waived"""
        student = self._student()
        fee = Fee(fee_code='TECH', fee_name='Technology', fee_type='TECHNOLOGY', amount=100.0,
                  academic_year='2024-2025')
        db.session.add(fee)
        db.session.commit()
        student_fee = StudentFee(student_id=student.id, fee_id=fee.id, academic_year='2024-2025',
                                 amount_due=100.0, amount_paid=0.0, amount_waived=0.0,
                                 due_date=date.today() + timedelta(days=10))

        self.assertEqual(student_fee.refresh_status(), 'PENDING')
        student_fee.amount_paid = 40.0
        self.assertEqual(student_fee.balance, 60.0)
        self.assertEqual(student_fee.refresh_status(), 'PARTIAL')

        student_fee.due_date = date.today() - timedelta(days=1)
        self.assertTrue(student_fee.is_overdue())
        self.assertEqual(student_fee.refresh_status(), 'OVERDUE')

        student_fee.amount_waived = 60.0
        student_fee.waived = True
        self.assertEqual(student_fee.balance, 0.0)
        self.assertEqual(student_fee.refresh_status(), 'WAIVED')

        student_fee.amount_paid = 150.0
        self.assertEqual(student_fee.balance, 0.0)

    def test_fee_applies_to_grade(self):
        everyone = Fee(fee_code='REG', fee_name='Registration', fee_type='REGISTRATION', amount=50.0)
        seniors = Fee(fee_code='SR', fee_name='Senior Activities', fee_type='ACTIVITY', amount=75.0, grade_level=12)
        self.assertTrue(everyone.applies_to_grade(3))
        self.assertTrue(seniors.applies_to_grade(12))
        self.assertFalse(seniors.applies_to_grade(11))

    def test_letter_grades_and_gpa_points(self):
        self.assertEqual(StudentGrade.calculate_letter_grade(98), 'A+')
        self.assertEqual(StudentGrade.calculate_letter_grade(93), 'A')
        self.assertEqual(StudentGrade.calculate_letter_grade(85), 'B')
        self.assertEqual(StudentGrade.calculate_letter_grade(59.9), 'F')
        self.assertEqual(StudentGrade.calculate_gpa_points(95), 4.0)
        self.assertEqual(StudentGrade.calculate_gpa_points(81), 2.7)
        self.assertEqual(StudentGrade.calculate_gpa_points(40), 0.0)

    def test_late_penalty_and_adjusted_score(self):
        course = Course(course_code='ENG9', course_name='English 9')
        db.session.add(course)
        db.session.commit()
        category = GradeCategory(course_id=course.id, name='Homework', weight=100.0)
        db.session.add(category)
        db.session.commit()
        assignment = GradebookAssignment(course_id=course.id, category_id=category.id, title='Essay',
                                         max_points=50.0, late_penalty_per_day=10.0, max_late_penalty=25.0)
        db.session.add(assignment)
        db.session.commit()

        self.assertEqual(assignment.late_penalty(0), 0.0)
        self.assertEqual(assignment.late_penalty(2), 20.0)
        self.assertEqual(assignment.late_penalty(5), 25.0)

        grade = StudentGrade(student_id=self._student().id, assignment_id=assignment.id,
                             score=40.0, status='LATE', penalty_applied=20.0)
        db.session.add(grade)
        db.session.commit()
        self.assertAlmostEqual(grade.adjusted_score(), 32.0)
        self.assertAlmostEqual(grade.percentage(), 64.0)
        self.assertTrue(grade.counts_toward_grade())

        grade.status = 'EXCUSED'
        self.assertFalse(grade.counts_toward_grade())
        grade.status = 'MISSING'
        self.assertEqual(grade.adjusted_score(), 0.0)

    def test_category_average_drops_lowest(self):
        self.assertEqual(category_average([], 1), 0.0)
        self.assertEqual(category_average([50, 90, 100], 1), 95.0)
        # the last score is always kept
        self.assertEqual(category_average([70], 3), 70.0)

    def test_health_screening_due(self):
        today = date(2025, 3, 1)
        self.assertTrue(HealthRecord.screening_due(None, today))
        self.assertTrue(HealthRecord.screening_due(date(2024, 2, 1), today))
        self.assertFalse(HealthRecord.screening_due(date(2024, 9, 1), today))

    def test_vaccine_table(self):
        required = required_vaccines()
        self.assertIn('DTAP', required)
        self.assertIn('MMR', required)
        self.assertNotIn('INFLUENZA', required)
        self.assertEqual(typical_doses('DTAP'), 5)
        self.assertEqual(typical_doses('MMR'), 2)

    def test_next_dose_intervals(self):
        given = date(2024, 1, 31)
        self.assertEqual(calculate_next_dose_date('DTAP', 1, given), date(2024, 3, 31))
        self.assertEqual(calculate_next_dose_date('DTAP', 3, given), date(2024, 7, 31))
        self.assertEqual(calculate_next_dose_date('DTAP', 4, given), date(2025, 1, 31))
        self.assertEqual(calculate_next_dose_date('MMR', 1, given), date(2024, 7, 31))
        self.assertEqual(calculate_next_dose_date('MENINGOCOCCAL', 1, given), date(2027, 1, 31))
        self.assertEqual(calculate_next_dose_date('HPV', 1, given), date(2024, 3, 31))
        self.assertEqual(calculate_next_dose_date('COVID_19', 1, given), date(2024, 4, 30))

    def test_count_school_days(self):
        # Monday 2024-09-02 through Sunday 2024-09-15
        self.assertEqual(count_school_days(date(2024, 9, 2), date(2024, 9, 15)), 10)
        self.assertEqual(count_school_days(date(2024, 9, 7), date(2024, 9, 8)), 0)
        self.assertEqual(count_school_days(date(2024, 9, 10), date(2024, 9, 1)), 0)

    def test_behavior_ratio(self):
        self.assertEqual(BehaviorService.calculate_behavior_ratio(0, 0), 0.0)
        self.assertEqual(BehaviorService.calculate_behavior_ratio(3, 0), 999.0)
        self.assertEqual(BehaviorService.calculate_behavior_ratio(3, 2), 1.5)

    def test_date_helpers(self):
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2024, 11, 15), 3), date(2025, 2, 15))
        self.assertEqual(school_year_label(date(2024, 9, 1)), '2024-2025')
        self.assertEqual(school_year_label(date(2025, 3, 1)), '2024-2025')
        self.assertEqual(school_year_label(date(2025, 7, 15), start_month=7), '2025-2026')
        self.assertEqual(school_year_end('2024-2025'), date(2025, 6, 30))
        with self.assertRaises(ValueError):
            school_year_end('2024')

    def test_request_value_parsers(self):
        self.assertEqual(parse_date('2024-01-15'), date(2024, 1, 15))
        self.assertEqual(parse_date('2024-01-15T08:30:00'), date(2024, 1, 15))
        for bad in ('2024-01-15garbage', '2024-13-01', '01/15/2024'):
            with self.assertRaises(ValueError):
                parse_date(bad)

        for bad in ('nan', 'inf', float('-inf')):
            with self.assertRaises(ValueError):
                parse_float(bad, 'weight')
        with self.assertRaises(ValueError):
            parse_amount(float('nan'))
        with self.assertRaises(ValueError):
            parse_int(float('inf'), 'count')

        self.assertEqual(parse_str('  Lab Fee ', 'fee_name'), 'Lab Fee')
        self.assertIsNone(parse_str('   ', 'notes', required=False))
        with self.assertRaises(ValueError):
            parse_str(123, 'fee_code')
        with self.assertRaises(ValueError):
            parse_str('ABCDEF', 'fee_code', max_length=5)
        self.assertFalse(validate_name(42)[0])
        self.assertFalse(validate_student_number(1001)[0])

    def test_reset_database_and_cli_args(self):
        self._student()
        db.session.remove()
        reset_database(self.app)
        self.assertEqual(Student.query.count(), 0)

        args = parse_args(['--reset', '--yes'])
        self.assertTrue(args.reset)
        self.assertTrue(args.yes)
        self.assertFalse(parse_args([]).reset)

if __name__ == '__main__':
    unittest.main()
