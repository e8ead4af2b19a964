"""
Unit tests for the gradebook service
"""

import unittest

from app import create_app
from config import TestingConfig
from database import db
from services.academic_service import AcademicService
from services.gradebook_service import GradebookService
from services.student_service import StudentService
from utils.responses import StateError

class TestGradebook(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.app = create_app(TestingConfig)
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()

        self.student = StudentService.create_student({
            'student_number': 'S1001', 'first_name': 'Maya', 'last_name': 'Lopez', 'grade_level': 9
        })
        self.course = AcademicService.create_course({'course_code': 'ALG1', 'course_name': 'Algebra I'})
        AcademicService.enroll_student(self.course.id, self.student.id)
        self.categories = GradebookService.create_default_categories(self.course.id)
        self.tests, self.quizzes, self.homework = self.categories[:3]

    def tearDown(self):
        """Clean up after tests"""
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def _assignment(self, category, title='Assignment', **extra):
        data = {'course_id': self.course.id, 'category_id': category.id, 'title': title}
        data.update(extra)
        return GradebookService.create_assignment(data)

    def test_default_categories(self):
        names = [c.name for c in GradebookService.get_categories(self.course.id)]
        self.assertEqual(names, ['Tests', 'Quizzes', 'Homework', 'Projects', 'Participation'])
        self.assertEqual(sum(c.weight for c in self.categories), 100.0)
        self.assertEqual(self.quizzes.drop_lowest, 1)
        with self.assertRaises(StateError):
            GradebookService.create_default_categories(self.course.id)

    def test_update_category_weights(self):
        participation = self.categories[4]
        GradebookService.update_category_weights({str(self.tests.id): 40, str(participation.id): 0})
        self.assertEqual(self.tests.weight, 40.0)
        self.assertEqual(participation.weight, 0.0)

        with self.assertRaises(ValueError):
            GradebookService.update_category_weights({str(self.tests.id): 60})
        self.assertEqual(self.tests.weight, 40.0)
        with self.assertRaises(ValueError):
            GradebookService.update_category_weights([])

    def test_assignment_category_must_match_course(self):
        other = AcademicService.create_course({'course_code': 'BIO', 'course_name': 'Biology'})
        with self.assertRaises(ValueError):
            GradebookService.create_assignment({'course_id': other.id, 'category_id': self.tests.id,
                                                'title': 'Cells quiz'})
        assignment = self._assignment(self.tests, 'Unit 1 Test')
        self.assertFalse(assignment.published)
        self.assertEqual(assignment.max_points, 100.0)
        GradebookService.publish_assignment(assignment.id)
        self.assertTrue(assignment.published)
        self.assertEqual(len(GradebookService.get_assignments_by_category(self.tests.id)), 1)

    def test_enter_grade_late_penalty(self):
        assignment = self._assignment(self.homework, 'Worksheet', due_date='2024-09-10',
                                      late_penalty_per_day=10, max_late_penalty=25)
        with self.assertRaises(ValueError):
            GradebookService.enter_grade(self.student.id, assignment.id, 101)

        grade = GradebookService.enter_grade(self.student.id, assignment.id, 100, '2024-09-12')
        self.assertEqual(grade.status, 'LATE')
        self.assertEqual(grade.days_late, 2)
        self.assertEqual(grade.penalty_applied, 20.0)

        # re-entering replaces the grade
        grade = GradebookService.enter_grade(self.student.id, assignment.id, 100, '2024-09-20')
        self.assertEqual(grade.penalty_applied, 25.0)
        on_time = GradebookService.enter_grade(self.student.id, assignment.id, 90, '2024-09-09')
        self.assertEqual(on_time.id, grade.id)
        self.assertEqual(on_time.status, 'GRADED')
        self.assertEqual(on_time.penalty_applied, 0.0)

    def test_course_grade_weighting(self):
        empty = GradebookService.calculate_course_grade(self.student.id, self.course.id)
        self.assertEqual(empty['letter_grade'], '-')
        self.assertIsNone(empty['gpa_points'])

        test = self._assignment(self.tests, 'Unit Test', max_points=50)
        homework = self._assignment(self.homework, 'Worksheet', due_date='2024-09-10', late_penalty_per_day=10)
        GradebookService.enter_grade(self.student.id, test.id, 45, '2024-09-01')
        GradebookService.enter_grade(self.student.id, homework.id, 100, '2024-09-12')

        result = GradebookService.calculate_course_grade(self.student.id, self.course.id)
        self.assertEqual(result['final_percentage'], 86.0)
        self.assertEqual(result['letter_grade'], 'B')
        self.assertEqual(result['gpa_points'], 3.0)
        self.assertEqual(len(result['category_grades']), 2)

        # the lowest quiz is dropped
        quiz1 = self._assignment(self.quizzes, 'Quiz 1', max_points=10)
        quiz2 = self._assignment(self.quizzes, 'Quiz 2', max_points=10)
        GradebookService.enter_grade(self.student.id, quiz1.id, 5)
        GradebookService.enter_grade(self.student.id, quiz2.id, 10)
        result = GradebookService.calculate_course_grade(self.student.id, self.course.id)
        self.assertEqual(result['final_percentage'], 90.0)
        self.assertEqual(result['letter_grade'], 'A-')

    def test_excused_and_missing(self):
        test = self._assignment(self.tests, 'Unit Test')
        homework = self._assignment(self.homework, 'Reading log')
        GradebookService.enter_grade(self.student.id, test.id, 80)
        GradebookService.excuse_grade(self.student.id, homework.id, 'Absent for field trip')
        result = GradebookService.calculate_course_grade(self.student.id, self.course.id)
        self.assertEqual(result['final_percentage'], 80.0)
        self.assertEqual(result['excused_assignments'], 1)

        GradebookService.mark_missing(self.student.id, homework.id)
        result = GradebookService.calculate_course_grade(self.student.id, self.course.id)
        self.assertEqual(result['missing_assignments'], 1)
        # (80 * 30 + 0 * 20) / 50
        self.assertEqual(result['final_percentage'], 48.0)

    def test_bulk_enter_grades(self):
        other = StudentService.create_student({'student_number': 'S1002', 'first_name': 'Leo',
                                               'last_name': 'Chen', 'grade_level': 9})
        AcademicService.enroll_student(self.course.id, other.id)
        assignment = self._assignment(self.tests, 'Midterm')
        saved = GradebookService.bulk_enter_grades(assignment.id, {
            str(self.student.id): 95, str(other.id): 72, '999': 50, str(other.id + 1000): 10
        })
        self.assertEqual(saved, 2)
        with self.assertRaises(ValueError):
            GradebookService.bulk_enter_grades(assignment.id, {})

        gradebook = GradebookService.get_class_gradebook(self.course.id)
        self.assertEqual(gradebook['student_count'], 2)
        self.assertEqual(gradebook['class_high'], 95.0)
        self.assertEqual(gradebook['class_low'], 72.0)
        self.assertEqual(gradebook['class_average'], 83.5)

    def test_alerts_gpa_and_standing(self):
        test = self._assignment(self.tests, 'Unit Test')
        GradebookService.enter_grade(self.student.id, test.id, 86)

        biology = AcademicService.create_course({'course_code': 'BIO', 'course_name': 'Biology'})
        AcademicService.enroll_student(biology.id, self.student.id)
        bio_categories = GradebookService.create_default_categories(biology.id)
        lab = GradebookService.create_assignment({'course_id': biology.id, 'category_id': bio_categories[0].id,
                                                  'title': 'Lab report'})
        GradebookService.mark_missing(self.student.id, lab.id)

        alerts = GradebookService.get_student_alerts(self.student.id)
        self.assertEqual(sorted(a['alert_type'] for a in alerts), ['FAILING', 'MISSING_ASSIGNMENTS'])

        gpa = GradebookService.calculate_student_gpa(self.student.id)
        self.assertEqual(gpa['total_courses'], 2)
        self.assertEqual(gpa['current_gpa'], 1.5)

        standing = GradebookService.get_academic_standing(self.student.id)
        self.assertEqual(standing['standing'], 'ACADEMIC_PROBATION')
        self.assertEqual(standing['failing_courses'], 1)

    def test_standing_ignores_ungraded_courses(self):
        test = self._assignment(self.tests, 'Unit Test')
        GradebookService.enter_grade(self.student.id, test.id, 98)
        empty = AcademicService.create_course({'course_code': 'ART', 'course_name': 'Art'})
        AcademicService.enroll_student(empty.id, self.student.id)

        self.assertEqual(GradebookService.get_student_alerts(self.student.id), [])
        standing = GradebookService.get_academic_standing(self.student.id)
        self.assertEqual(standing['gpa'], 4.0)
        self.assertEqual(standing['standing'], 'HIGH_HONORS')

if __name__ == '__main__':
    unittest.main()
