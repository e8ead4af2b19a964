"""
Unit tests for scheduling, conflict analysis, schedule health and teacher assignment
"""

import unittest
from datetime import time

from app import create_app
from config import TestingConfig
from database import db
from services.academic_service import AcademicService
from services.audit_service import AuditService
from services.conflict_analysis_service import ConflictAnalysisService
from services.schedule_health_service import ScheduleHealthService, health_status
from services.scheduling_service import SchedulingService
from services.student_service import StudentService
from services.teacher_assignment_service import TeacherAssignmentService, score_teacher
from utils.responses import NotFoundError, StateError

class SchedulingTestCase(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.app = create_app(TestingConfig)
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()

        year = AcademicService.create_year({'name': '2024-2025', 'start_date': '2024-08-01',
                                            'end_date': '2025-06-30'})
        self.term = AcademicService.create_period({'academic_year_id': year.id, 'name': 'Fall',
                                                   'period_type': 'SEMESTER',
                                                   'start_date': '2024-08-15', 'end_date': '2024-12-20'})
        self.teacher = SchedulingService.create_teacher({
            'employee_id': 't100', 'first_name': 'Ada', 'last_name': 'King',
            'department': 'Math', 'certifications': ['math', 'physics']
        })
        self.room = SchedulingService.create_room({'room_number': '101a', 'capacity': 25})
        self.algebra = AcademicService.create_course({'course_code': 'ALG1', 'course_name': 'Algebra I',
                                                      'subject_area': 'MATH', 'teacher_id': self.teacher.id})
        self.geometry = AcademicService.create_course({'course_code': 'GEO', 'course_name': 'Geometry',
                                                       'subject_area': 'MATH', 'teacher_id': self.teacher.id})

    def tearDown(self):
        """Clean up after tests"""
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def _slot(self, course, **extra):
        data = {'course_id': course.id, 'term_id': self.term.id}
        data.update(extra)
        return SchedulingService.create_slot(data)

    def _student(self, number):
        return StudentService.create_student({'student_number': number, 'first_name': 'Maya',
                                              'last_name': 'Lopez', 'grade_level': 9})

class TestSchedulingService(SchedulingTestCase):

    def test_teacher_and_room_normalization(self):
        self.assertEqual(self.teacher.employee_id, 'T100')
        self.assertEqual(self.teacher.certifications, 'MATH,PHYSICS')
        self.assertEqual(self.room.room_number, '101A')
        self.assertEqual(self.room.room_type, 'CLASSROOM')
        with self.assertRaises(StateError):
            SchedulingService.create_teacher({'employee_id': 'T100', 'first_name': 'Bo', 'last_name': 'Diaz'})
        with self.assertRaises(StateError):
            SchedulingService.create_room({'room_number': '101A'})
        with self.assertRaises(ValueError):
            SchedulingService.create_room({'room_number': '102', 'room_type': 'CAFETERIA'})

    def test_slot_defaults(self):
        slot = self._slot(self.algebra, day_of_week='monday', period_number=1, room_id=self.room.id)
        self.assertEqual(slot.teacher_id, self.teacher.id)
        self.assertEqual(slot.day_of_week, 'MONDAY')
        self.assertEqual(slot.start_time, time(8, 0))
        self.assertEqual(slot.end_time, time(8, 50))
        self.assertTrue(slot.is_fully_assigned())

        custom = self._slot(self.geometry, day_of_week='TUESDAY', period_number=3,
                            start_time='10:00', end_time='10:45')
        self.assertEqual(custom.start_time, time(10, 0))

        with self.assertRaises(ValueError):
            self._slot(self.algebra, start_time='10:00', end_time='09:00')
        with self.assertRaises(ValueError):
            self._slot(self.algebra, period_number=9)
        with self.assertRaises(NotFoundError):
            self._slot(self.algebra, term_id=999)

    def test_slot_enrollment(self):
        slot = self._slot(self.algebra)
        first, second = self._student('S1'), self._student('S2')
        self.assertEqual(SchedulingService.enroll_students(slot.id, [first.id, second.id]), 2)
        self.assertEqual(SchedulingService.enroll_students(slot.id, [first.id]), 0)
        self.assertEqual(len(SchedulingService.get_student_slots(first.id, self.term.id)), 1)

        SchedulingService.unenroll_student(slot.id, first.id)
        with self.assertRaises(StateError):
            SchedulingService.unenroll_student(slot.id, first.id)
        self.assertEqual([s.id for s in SchedulingService.get_slot_students(slot.id)], [second.id])

    def test_delete_teacher_and_room(self):
        free = SchedulingService.create_teacher({'employee_id': 'T200', 'first_name': 'Bo', 'last_name': 'Diaz'})
        self.assertTrue(SchedulingService.delete_teacher(free.id))
        with self.assertRaises(NotFoundError):
            SchedulingService.get_teacher(free.id)

        self._slot(self.algebra, room_id=self.room.id)
        self.assertFalse(SchedulingService.delete_teacher(self.teacher.id))
        self.assertFalse(self.teacher.is_active)
        with self.assertRaises(StateError):
            SchedulingService.delete_room(self.room.id)

class TestConflictAnalysis(SchedulingTestCase):

    def _double_booked(self):
        first = self._slot(self.algebra, room_id=self.room.id, day_of_week='MONDAY', period_number=2)
        second = self._slot(self.geometry, room_id=self.room.id, day_of_week='MONDAY', period_number=2)
        return first, second

    def test_double_bookings(self):
        self._double_booked()
        analysis = ConflictAnalysisService.analyze_term(self.term.id)
        self.assertEqual(analysis['total_slots'], 2)
        self.assertEqual(analysis['fully_assigned'], 2)
        self.assertEqual(analysis['completion_percentage'], 100.0)
        types = sorted(c['type'] for c in analysis['conflicts'])
        self.assertEqual(types, ['ROOM_DOUBLE_BOOKING', 'TEACHER_DOUBLE_BOOKING'])
        self.assertEqual(analysis['blocking_count'], 2)

        summary = ConflictAnalysisService.all_conflicts(self.term.id)
        self.assertEqual(summary['total'], 2)
        self.assertEqual(summary['critical'], 2)
        self.assertEqual(summary['high'], 0)
        self.assertEqual(ConflictAnalysisService.all_conflicts(self.term.id, 'high')['total'], 0)

        dashboard = ConflictAnalysisService.dashboard(self.term.id)
        self.assertEqual(dashboard['by_entity_type'], {'TEACHER': 1, 'ROOM': 1})

    def test_unassigned_slot_reasons(self):
        art = AcademicService.create_course({'course_code': 'ART', 'course_name': 'Art'})
        self._slot(art)
        conflicts = ConflictAnalysisService.analyze_term(self.term.id)['conflicts']
        by_type = {c['type']: c for c in conflicts}
        self.assertEqual(by_type['NO_TEACHER']['severity'], 'CRITICAL')
        self.assertEqual(by_type['NO_ROOM']['severity'], 'HIGH')
        self.assertEqual(by_type['NO_TIME_SLOT']['severity'], 'HIGH')
        # critical issues sort first
        self.assertEqual(conflicts[0]['type'], 'NO_TEACHER')

        lab_course = AcademicService.create_course({'course_code': 'CHEM', 'course_name': 'Chemistry',
                                                    'requires_lab': True, 'teacher_id': self.teacher.id})
        slot = self._slot(lab_course, day_of_week='FRIDAY', period_number=4)
        analysis = ConflictAnalysisService.analyze_slot_conflicts([slot])
        self.assertEqual(analysis['conflicts'][0]['type'], 'NO_ROOM')
        self.assertEqual(analysis['conflicts'][0]['severity'], 'CRITICAL')

    def test_capacity_exceeded(self):
        small = SchedulingService.create_room({'room_number': '5', 'capacity': 1})
        slot = self._slot(self.algebra, room_id=small.id, day_of_week='MONDAY', period_number=1)
        SchedulingService.enroll_students(slot.id, [self._student('S1').id, self._student('S2').id])

        analysis = ConflictAnalysisService.analyze_term(self.term.id)
        self.assertEqual(analysis['conflicts'][0]['type'], 'CAPACITY_EXCEEDED')
        self.assertEqual(analysis['blocking_count'], 0)
        self.assertTrue(ConflictAnalysisService.room_conflicts(small.id, self.term.id)['has_conflicts'])

        violations = ConflictAnalysisService.constraint_violations(self.term.id, 'capacity')
        self.assertEqual(violations['count'], 1)
        self.assertEqual(ConflictAnalysisService.constraint_violations(self.term.id, 'TEACHER_LOAD')['count'], 0)

    def test_student_and_teacher_conflicts(self):
        first, second = self._double_booked()
        student = self._student('S1')
        SchedulingService.enroll_students(first.id, [student.id])
        SchedulingService.enroll_students(second.id, [student.id])

        result = ConflictAnalysisService.student_conflicts(student.id, self.term.id)
        self.assertTrue(result['has_conflicts'])
        self.assertEqual(result['conflicts'][0]['type'], 'TIME_OVERLAP')
        self.assertEqual(sorted(result['conflicts'][0]['courses']), ['Algebra I', 'Geometry'])

        SchedulingService.update_teacher(self.teacher.id, {'max_periods_per_day': 1})
        teacher_result = ConflictAnalysisService.teacher_conflicts(self.teacher.id, self.term.id)
        self.assertEqual([c['type'] for c in teacher_result['conflicts']], ['DOUBLE_BOOKING', 'OVERLOAD'])
        self.assertEqual(teacher_result['total_periods_per_week'], 2)
        self.assertEqual(ConflictAnalysisService.constraint_violations(self.term.id)['count'], 1)

    def test_availability(self):
        self._double_booked()
        availability = ConflictAnalysisService.teacher_availability(self.teacher.id, self.term.id)
        self.assertEqual(availability['count'], 39)
        monday = ConflictAnalysisService.room_availability(self.room.id, self.term.id, 'monday')
        self.assertEqual(monday['count'], 7)
        self.assertNotIn(2, [p['period_number'] for p in monday['available_periods']])

        alternatives = ConflictAnalysisService.alternative_slots(
            self.algebra.id, self.teacher.id, self.term.id, room_id=self.room.id, preferred_days=['monday', 'friday'])
        self.assertEqual(alternatives['count'], 15)
        self.assertTrue(all(slot['teacher_available'] for slot in alternatives['alternative_slots']))

    def test_check_course_addition(self):
        current = self._slot(self.algebra, day_of_week='MONDAY', period_number=2)
        clash = self._slot(self.geometry, day_of_week='MONDAY', period_number=2)
        open_section = self._slot(self.geometry, day_of_week='TUESDAY', period_number=3)
        student = self._student('S1')
        SchedulingService.enroll_students(current.id, [student.id])

        result = ConflictAnalysisService.check_course_addition(student.id, self.geometry.id, clash.id, self.term.id)
        self.assertFalse(result['can_enroll'])
        self.assertEqual(result['conflicts'][0]['type'], 'TIME_CONFLICT')
        self.assertEqual([s['id'] for s in result['alternative_sections']], [open_section.id])

        ok = ConflictAnalysisService.check_course_addition(student.id, self.geometry.id, open_section.id,
                                                           self.term.id)
        self.assertTrue(ok['can_enroll'])
        with self.assertRaises(ValueError):
            ConflictAnalysisService.check_course_addition(student.id, self.algebra.id, clash.id, self.term.id)

    def test_resolution_suggestions(self):
        room = ConflictAnalysisService.resolution_suggestions('room_double_booking')
        self.assertEqual([s['type'] for s in room], ['REASSIGN_ROOM', 'RESCHEDULE'])
        self.assertEqual(room[0]['id'], 1)
        self.assertEqual(len(ConflictAnalysisService.resolution_suggestions('ALIENS')), 4)

    def test_optimization_and_quality(self):
        self._slot(self.algebra, room_id=self.room.id, day_of_week='MONDAY', period_number=1)
        opportunities = ConflictAnalysisService.optimization_opportunities(self.term.id)
        self.assertEqual(opportunities['opportunities'][0]['type'], 'LOW_ROOM_UTILIZATION')

        metrics = ConflictAnalysisService.quality_metrics(self.term.id)
        self.assertEqual(metrics['total_slots'], 1)
        self.assertEqual(metrics['total_conflicts'], 0)
        self.assertEqual(metrics['room_utilization'], 2.5)
        self.assertEqual(metrics['teacher_load_balance'], 100.0)

class TestScheduleHealth(SchedulingTestCase):

    def test_empty_term_is_critical(self):
        health = ScheduleHealthService.calculate_health(self.term.id)
        self.assertEqual(health['score'], 0)
        self.assertEqual(health['status'], 'CRITICAL')
        self.assertEqual(health['issues'][0]['category'], 'COMPLETION')

    def test_clean_schedule_scores_high(self):
        self._slot(self.algebra, room_id=self.room.id, day_of_week='MONDAY', period_number=1)
        health = ScheduleHealthService.calculate_health(self.term.id)
        self.assertEqual(health['components']['conflicts'], 100)
        self.assertEqual(health['components']['completion'], 100.0)
        # 40 + 30 + 20 + 0.25
        self.assertEqual(health['score'], 90)
        self.assertEqual(health['status'], 'EXCELLENT')

    def test_conflicts_lower_the_score(self):
        self._slot(self.algebra, room_id=self.room.id, day_of_week='MONDAY', period_number=2)
        self._slot(self.geometry, room_id=self.room.id, day_of_week='MONDAY', period_number=2)
        health = ScheduleHealthService.calculate_health(self.term.id)
        self.assertEqual(health['components']['conflicts'], 70)
        self.assertEqual(health['conflict_count'], 2)
        self.assertEqual(health['issues'][0]['severity'], 'CRITICAL')

    def test_health_status_bands(self):
        self.assertEqual(health_status(95), 'EXCELLENT')
        self.assertEqual(health_status(75), 'GOOD')
        self.assertEqual(health_status(60), 'FAIR')
        self.assertEqual(health_status(40), 'POOR')
        self.assertEqual(health_status(39), 'CRITICAL')

class TestTeacherAssignment(SchedulingTestCase):

    def test_score_teacher(self):
        score, reasons = score_teacher(self.teacher, self.algebra, 0, 8)
        self.assertEqual(score, 90.0)
        self.assertEqual(reasons, ['certified', 'department'])
        score, _ = score_teacher(self.teacher, self.algebra, 4, 8)
        self.assertEqual(score, 72.0)

    def test_assign_teachers(self):
        science = SchedulingService.create_teacher({'employee_id': 'T300', 'first_name': 'Rosa',
                                                    'last_name': 'Park', 'department': 'Science'})
        calculus = AcademicService.create_course({'course_code': 'CALC', 'course_name': 'Calculus',
                                                  'subject_area': 'math'})
        AcademicService.create_course({'course_code': 'POT', 'course_name': 'Pottery', 'subject_area': 'ART'})
        homeroom = AcademicService.create_course({'course_code': 'HR', 'course_name': 'Homeroom'})
        slot = self._slot(calculus)

        preview = TeacherAssignmentService.assign_teachers(preview=True)
        self.assertTrue(preview['preview'])
        self.assertEqual(preview['courses_processed'], 3)
        self.assertEqual(preview['assigned'], 0)
        self.assertEqual(preview['unassigned'], 1)
        self.assertEqual(preview['unassigned_courses'][0]['course_code'], 'POT')
        proposals = {p['course_code']: p['teacher_id'] for p in preview['proposals']}
        self.assertEqual(proposals, {'CALC': self.teacher.id, 'HR': science.id})
        self.assertIsNone(calculus.teacher_id)

        result = TeacherAssignmentService.assign_teachers()
        self.assertEqual(result['assigned'], 2)
        self.assertEqual(calculus.teacher_id, self.teacher.id)
        self.assertEqual(homeroom.teacher_id, science.id)
        self.assertEqual(slot.teacher_id, self.teacher.id)
        self.assertEqual([c.course_code for c in TeacherAssignmentService.unassigned_courses()], ['POT'])

class TestAuditService(SchedulingTestCase):

    def test_search_filters(self):
        AuditService.log('CREATE', 'COURSE', self.algebra.id, 'admin', 'Created ALG1')
        AuditService.log('UPDATE', 'COURSE', self.algebra.id, 7)
        AuditService.log('CREATE', 'ROOM', self.room.id)
        db.session.commit()

        self.assertEqual(len(AuditService.search(entity_type='course')), 2)
        self.assertEqual(len(AuditService.search(action='create')), 2)
        entries = AuditService.search(entity_type='COURSE', entity_id=self.algebra.id, action='UPDATE')
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].performed_by, '7')
        self.assertEqual(len(AuditService.search(limit=1)), 1)

if __name__ == '__main__':
    unittest.main()
