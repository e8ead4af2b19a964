"""
Integration tests for routes and workflows
"""

import unittest
from datetime import date

from app import create_app
from config import TestingConfig
from database import db
from services.academic_service import AcademicService

XLSX = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

class TestRoutes(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.app = create_app(TestingConfig)
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()
        self.client = self.app.test_client()

    def tearDown(self):
        """Clean up after tests"""
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def _create_student(self, number='S1001', grade_level=9):
        response = self.client.post('/api/students', json={
            'student_number': number, 'first_name': 'Maya', 'last_name': 'Lopez', 'grade_level': grade_level
        })
        self.assertEqual(response.status_code, 201)
        return response.get_json()['student']

    def test_student_crud(self):
        student = self._create_student()
        self.assertEqual(student['student_number'], 'S1001')
        self.assertEqual(student['enrollment_status'], 'ACTIVE')

        response = self.client.get(f"/api/students/{student['id']}")
        body = response.get_json()
        self.assertTrue(body['success'])
        self.assertEqual(body['student']['full_name'], 'Maya Lopez')

        response = self.client.get('/api/students', query_string={'grade_level': 9})
        self.assertEqual(response.get_json()['count'], 1)

        response = self.client.put(f"/api/students/{student['id']}", json={'grade_level': 10})
        self.assertEqual(response.get_json()['student']['grade_level'], 10)

    def test_error_envelopes(self):
        self._create_student()

        response = self.client.post('/api/students', json={'first_name': 'Maya'})
        self.assertEqual(response.status_code, 400)
        body = response.get_json()
        self.assertFalse(body['success'])
        self.assertIn('student_number', body['error'])

        response = self.client.post('/api/students', json={
            'student_number': 'S1001', 'first_name': 'Leo', 'last_name': 'Chen', 'grade_level': 9
        })
        self.assertEqual(response.status_code, 409)

        response = self.client.get('/api/students/999')
        self.assertEqual(response.status_code, 404)
        self.assertTrue(response.get_json()['error'].startswith('Not found'))

        response = self.client.post('/api/students', data='[1, 2]', content_type='application/json')
        self.assertEqual(response.status_code, 400)

    def test_unknown_route_and_wrong_method(self):
        response = self.client.get('/api/nowhere')
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()['success'])

        response = self.client.delete('/api/students')
        self.assertEqual(response.status_code, 405)
        self.assertFalse(response.get_json()['success'])

    def test_student_lifecycle(self):
        student = self._create_student(grade_level=12)
        response = self.client.post('/api/students/promote', json={'grade_level': 12})
        self.assertEqual(response.status_code, 400)

        response = self.client.post(f"/api/students/{student['id']}/graduate", json={'graduation_date': '2025-06-01'})
        self.assertEqual(response.get_json()['student']['enrollment_status'], 'GRADUATED')

        response = self.client.post(f"/api/students/{student['id']}/graduate", json={})
        self.assertEqual(response.status_code, 400)

    def test_academic_year_rules(self):
        response = self.client.post('/api/academic-years', json={
            'name': '2024-2025', 'start_date': '2024-08-01', 'end_date': '2025-06-30'
        })
        self.assertEqual(response.status_code, 201)
        year_id = response.get_json()['academic_year']['id']

        response = self.client.post(f'/api/academic-years/{year_id}/grading-periods', json={
            'name': 'Q1', 'start_date': '2024-07-01', 'end_date': '2024-10-15'
        })
        self.assertEqual(response.status_code, 400)

        response = self.client.post(f'/api/academic-years/{year_id}/close')
        self.assertEqual(response.status_code, 200)
        response = self.client.post(f'/api/academic-years/{year_id}/set-current')
        self.assertEqual(response.status_code, 409)

    def test_attendance_and_export(self):
        student = self._create_student()
        response = self.client.post('/api/attendance', json={
            'student_id': student['id'], 'status': 'absent', 'attendance_date': '2024-09-03'
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()['record']['status'], 'ABSENT')

        response = self.client.post('/api/attendance', json={'student_id': student['id'], 'status': 'NAPPING'})
        self.assertEqual(response.status_code, 400)

        response = self.client.get('/api/attendance/ada')
        self.assertEqual(response.status_code, 400)

        response = self.client.get('/api/attendance/export', query_string={
            'start_date': '2024-09-01', 'end_date': '2024-09-30'
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers['Content-Type'],
                         'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')
        self.assertIn('attachment', response.headers['Content-Disposition'])
        self.assertTrue(response.data.startswith(b'PK'))

    def test_fee_workflow(self):
        self.assertEqual(self.client.get('/api/fees/health').get_json()['status'], 'UP')

        student = self._create_student()
        response = self.client.post('/api/fees', json={
            'fee_code': 'tech', 'fee_name': 'Technology Fee', 'fee_type': 'TECHNOLOGY',
            'amount': 100, 'academic_year': '2024-2025'
        })
        self.assertEqual(response.status_code, 201)
        fee = response.get_json()['fee']

        response = self.client.post('/api/fees/assign', json={'student_id': student['id'], 'fee_id': fee['id']})
        self.assertEqual(response.status_code, 201)
        student_fee = response.get_json()['student_fee']

        response = self.client.post(f"/api/fees/student-fees/{student_fee['id']}/payments", json={
            'amount': 250, 'payment_method': 'CASH'
        })
        self.assertEqual(response.status_code, 400)

        response = self.client.post(f"/api/fees/student-fees/{student_fee['id']}/payments", json={
            'amount': 40, 'payment_method': 'cash'
        })
        self.assertEqual(response.status_code, 201)
        self.assertTrue(response.get_json()['confirmation_number'])

        response = self.client.get(f"/api/fees/student/{student['id']}/balance")
        self.assertEqual(response.get_json()['balance'], 60.0)

        response = self.client.get(f"/api/fees/student/{student['id']}/statement/pdf")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers['Content-Type'], 'application/pdf')
        self.assertTrue(response.data.startswith(b'%PDF'))

        response = self.client.get('/api/audit-logs', query_string={'entity_type': 'fee'})
        self.assertEqual(response.get_json()['count'], 1)

    def test_cafeteria_insufficient_balance(self):
        student = self._create_student()
        response = self.client.post('/api/cafeteria/accounts', json={
            'student_id': student['id'], 'academic_year': '2024-2025', 'initial_balance': 5
        })
        self.assertEqual(response.status_code, 201)
        account = response.get_json()['account']

        response = self.client.post(f"/api/cafeteria/accounts/{account['id']}/purchase", json={'amount': 10})
        self.assertEqual(response.status_code, 409)

        response = self.client.post('/api/cafeteria/accounts', json={
            'student_id': student['id'], 'academic_year': '2024-2025'
        })
        self.assertEqual(response.status_code, 409)

    def test_scheduling_and_conflicts(self):
        year = AcademicService.create_year({'name': '2024-2025', 'start_date': '2024-08-01',
                                            'end_date': '2025-06-30'})
        term = AcademicService.create_period({'academic_year_id': year.id, 'name': 'Fall',
                                              'period_type': 'SEMESTER',
                                              'start_date': '2024-08-15', 'end_date': '2024-12-20'})
        response = self.client.post('/api/scheduling/teachers', json={
            'employee_id': 't100', 'first_name': 'Ada', 'last_name': 'King', 'certifications': 'MATH'
        })
        self.assertEqual(response.status_code, 201)
        teacher = response.get_json()['teacher']
        room = self.client.post('/api/scheduling/rooms', json={'room_number': '101'}).get_json()['room']
        course = AcademicService.create_course({'course_code': 'ALG1', 'course_name': 'Algebra I',
                                                'teacher_id': teacher['id']})

        for _ in range(2):
            response = self.client.post('/api/scheduling/slots', json={
                'course_id': course.id, 'term_id': term.id, 'room_id': room['id'],
                'day_of_week': 'MONDAY', 'period_number': 1
            })
            self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()['slot']['start_time'], '08:00')

        response = self.client.get(f'/api/conflict-analysis/terms/{term.id}/all-conflicts')
        body = response.get_json()
        self.assertEqual(body['total'], 2)
        self.assertEqual(body['critical'], 2)

        response = self.client.get(f"/api/conflict-analysis/teachers/{teacher['id']}/conflicts")
        self.assertEqual(response.status_code, 400)

        response = self.client.get('/api/scheduling/health', query_string={'term_id': term.id})
        self.assertEqual(response.get_json()['health']['conflict_count'], 2)

        response = self.client.delete(f"/api/scheduling/rooms/{room['id']}")
        self.assertEqual(response.status_code, 409)

        response = self.client.get('/api/conflict-analysis/conflicts/NO_ROOM/resolution-suggestions')
        self.assertEqual(response.status_code, 200)

    def test_bulk_attendance_skips_bad_entries(self):
        first = self._create_student()
        second = self._create_student(number='S1002')
        response = self.client.post('/api/attendance/bulk', json={
            'attendance_date': '2024-09-04',
            'records': [
                {'student_id': first['id'], 'status': 'PRESENT'},
                {'student_id': second['id'], 'status': 'PRESENT', 'course_id': 999},
                'not-an-entry',
                {'student_id': second['id'], 'status': 'TARDY'}
            ]
        })
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertEqual(body['count'], 2)
        self.assertEqual(len(body['errors']), 2)
        self.assertTrue(body['errors'][0].startswith('Entry 1'))
        self.assertTrue(body['errors'][1].startswith('Entry 2'))

    def test_non_text_and_non_finite_values_rejected(self):
        response = self.client.post('/api/fees', json={
            'fee_code': 123, 'fee_name': 'Technology Fee', 'fee_type': 'TECHNOLOGY', 'amount': 100
        })
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.get_json()['success'])
        self.assertIn('fee_code', response.get_json()['error'])

        response = self.client.post('/api/students', json={
            'student_number': 'S2001', 'first_name': 42, 'last_name': 'Lopez', 'grade_level': 9
        })
        self.assertEqual(response.status_code, 400)

        response = self.client.post('/api/fees', data=(
            '{"fee_code": "LAB", "fee_name": "Lab Fee", "fee_type": "LAB", "amount": NaN}'
        ), content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('finite', response.get_json()['error'])

        response = self.client.get('/api/attendance/export', query_string={
            'start_date': '2024-09-01garbage', 'end_date': '2024-09-30'
        })
        self.assertEqual(response.status_code, 400)

    def test_behavior_incidents_and_export(self):
        student = self._create_student()
        response = self.client.post('/api/behavior-incidents', json={
            'student_id': student['id'], 'behavior_type': 'negative', 'description': 'Disrupted class'
        })
        self.assertEqual(response.status_code, 201)
        incident = response.get_json()['incident']
        self.assertEqual(incident['severity_level'], 'MINOR')

        response = self.client.post('/api/behavior-incidents', json={
            'student_id': student['id'], 'behavior_type': 'POSITIVE', 'description': ['not', 'text']
        })
        self.assertEqual(response.status_code, 400)

        response = self.client.get('/api/audit-logs', query_string={'entity_type': 'behavior_incident'})
        self.assertEqual(response.get_json()['count'], 1)

        today = date.today().isoformat()
        response = self.client.get(f"/api/behavior-incidents/student/{student['id']}/export",
                                   query_string={'start_date': '2024-01-01', 'end_date': today})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers['Content-Type'], XLSX)
        self.assertTrue(response.data.startswith(b'PK'))

        response = self.client.get('/api/behavior-incidents/export',
                                   query_string={'start_date': '2024-01-01', 'end_date': today})
        self.assertEqual(response.status_code, 200)
        self.assertIn('attachment', response.headers['Content-Disposition'])

        response = self.client.get('/api/behavior-incidents/export', query_string={'start_date': '2024-01-01'})
        self.assertEqual(response.status_code, 400)

    def test_fee_collection_export(self):
        response = self.client.get('/api/fees/reports/collection/export', query_string={
            'start_date': '2024-08-01', 'end_date': '2024-08-31'
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers['Content-Type'], XLSX)
        self.assertTrue(response.data.startswith(b'PK'))

        response = self.client.get('/api/fees/reports/collection/export', query_string={
            'start_date': '2024-08-31', 'end_date': '2024-08-01'
        })
        self.assertEqual(response.status_code, 400)

    def test_immunization_record_and_compliance_pdf(self):
        student = self._create_student()
        response = self.client.post('/api/immunization', json={
            'student_id': student['id'], 'vaccine_type': 'mmr', 'dose_number': 1,
            'administration_date': '2015-03-10'
        })
        self.assertEqual(response.status_code, 201)
        immunization = response.get_json()['immunization']
        self.assertEqual(immunization['vaccine_type'], 'MMR')
        self.assertIsNotNone(immunization['next_dose_due'])

        response = self.client.get(f"/api/immunization/student/{student['id']}/compliance-status")
        self.assertFalse(response.get_json()['compliant'])

        response = self.client.get(f"/api/immunization/student/{student['id']}/compliance/pdf")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers['Content-Type'], 'application/pdf')
        self.assertTrue(response.data.startswith(b'%PDF'))

        response = self.client.get('/api/immunization/student/999/compliance/pdf')
        self.assertEqual(response.status_code, 404)

    def test_gifted_referral(self):
        student = self._create_student()
        response = self.client.post('/api/gifted/students', json={
            'student_id': student['id'], 'primary_gifted_area': 'math'
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.get_json()['gifted_student']['gifted_status'], 'REFERRED')

        response = self.client.post('/api/gifted/students', json={'student_id': student['id']})
        self.assertEqual(response.status_code, 409)
        self.assertTrue(response.get_json()['error'].startswith('State error'))

        response = self.client.post('/api/gifted/students', json={'student_id': 999})
        self.assertEqual(response.status_code, 404)

    def test_gradebook_category_weights(self):
        course = AcademicService.create_course({'course_code': 'BIO1', 'course_name': 'Biology'})
        response = self.client.post(f'/api/gradebook/courses/{course.id}/categories/defaults')
        self.assertEqual(response.status_code, 201)
        categories = {c['name']: c['id'] for c in response.get_json()['categories']}

        response = self.client.post(f'/api/gradebook/courses/{course.id}/categories/defaults')
        self.assertEqual(response.status_code, 409)

        response = self.client.put('/api/gradebook/categories/weights', json={
            'weights': {str(categories['Tests']): 50}
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('total 100', response.get_json()['error'])

        response = self.client.put('/api/gradebook/categories/weights', json={
            'weights': {str(categories['Tests']): 'nan'}
        })
        self.assertEqual(response.status_code, 400)

        response = self.client.put('/api/gradebook/categories/weights', json={
            'weights': {str(categories['Tests']): 20, str(categories['Quizzes']): 30}
        })
        self.assertEqual(response.status_code, 200)

    def test_health_office_records_and_visits(self):
        student = self._create_student()
        record = {
            'student_id': student['id'], 'emergency_contact_name': 'Rosa Lopez',
            'emergency_contact_relationship': 'Mother', 'emergency_contact_phone': '555-123-4567'
        }
        response = self.client.post('/api/health-office/records', json=record)
        self.assertEqual(response.status_code, 201)

        response = self.client.post('/api/health-office/records', json=record)
        self.assertEqual(response.status_code, 409)

        response = self.client.post('/api/health-office/visits', json={
            'student_id': student['id'], 'visit_reason': 'Headache'
        })
        self.assertEqual(response.status_code, 201)
        visit = response.get_json()['visit']

        response = self.client.post(f"/api/health-office/visits/{visit['id']}/check-out",
                                    json={'disposition': 'returned_to_class'})
        self.assertEqual(response.status_code, 200)

        response = self.client.post(f"/api/health-office/visits/{visit['id']}/check-out",
                                    json={'disposition': 'SENT_HOME'})
        self.assertEqual(response.status_code, 409)

        response = self.client.post('/api/health-office/visits', json={
            'student_id': student['id'], 'visit_reason': 7
        })
        self.assertEqual(response.status_code, 400)

if __name__ == '__main__':
    unittest.main()
