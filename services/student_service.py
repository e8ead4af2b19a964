"""
Student service for Brookfield School Information System
Business logic for student records
"""

import logging
from datetime import date

from database import db
from models.student import Student, ENROLLMENT_STATUSES
from utils.db_helpers import safe_add_and_commit, safe_update_and_commit, safe_delete_and_commit, get_or_raise
from utils.sorting_helpers import SortingHelpers
from utils.validators import (
    validate_student_number, validate_name, validate_grade_level, ensure,
    require_fields, parse_date, parse_int, parse_float, parse_enum
)

logger = logging.getLogger(__name__)

class StudentService:
    """Student service class"""

    @staticmethod
    def get_student(student_id):
        return get_or_raise(Student, student_id, 'Student')

    @staticmethod
    def create_student(data):
        """Create a student from request data"""
        require_fields(data, 'student_number', 'first_name', 'last_name', 'grade_level')
        student_number = str(data['student_number']).strip()
        ensure(validate_student_number(student_number))
        ensure(validate_name(data['first_name'], 'First name'))
        ensure(validate_name(data['last_name'], 'Last name'))
        ensure(validate_grade_level(data['grade_level']))

        student = Student(
            student_number=student_number,
            first_name=data['first_name'].strip(),
            last_name=data['last_name'].strip(),
            grade_level=int(data['grade_level']),
            date_of_birth=parse_date(data.get('date_of_birth'), 'date_of_birth', required=False),
            email=data.get('email'),
            enrollment_date=parse_date(data.get('enrollment_date'), 'enrollment_date', required=False) or date.today(),
            gpa=parse_float(data.get('gpa'), 'gpa', required=False, minimum=0)
        )
        safe_add_and_commit(student)
        logger.info("Created student %s", student.student_number)
        return student

    @staticmethod
    def list_students(grade_level=None, status=None, search='', active_only=False):
        """List students sorted by grade then name"""
        query = Student.query
        if grade_level is not None:
            query = query.filter_by(grade_level=grade_level)
        if status:
            query = query.filter_by(enrollment_status=parse_enum(status, ENROLLMENT_STATUSES, 'status'))
        if active_only:
            query = query.filter_by(is_active=True)
        if search:
            query = query.filter(
                db.or_(
                    Student.first_name.contains(search),
                    Student.last_name.contains(search),
                    Student.student_number.contains(search)
                )
            )
        return SortingHelpers.sort_students(query.all())

    @staticmethod
    def update_student(student_id, data):
        student = StudentService.get_student(student_id)
        if 'first_name' in data:
            ensure(validate_name(data['first_name'], 'First name'))
            student.first_name = data['first_name'].strip()
        if 'last_name' in data:
            ensure(validate_name(data['last_name'], 'Last name'))
            student.last_name = data['last_name'].strip()
        if 'grade_level' in data:
            ensure(validate_grade_level(data['grade_level']))
            student.grade_level = int(data['grade_level'])
        if 'date_of_birth' in data:
            student.date_of_birth = parse_date(data['date_of_birth'], 'date_of_birth', required=False)
        if 'email' in data:
            student.email = data['email']
        if 'gpa' in data:
            student.gpa = parse_float(data['gpa'], 'gpa', required=False, minimum=0)
        safe_update_and_commit()
        return student

    @staticmethod
    def graduate_student(student_id, graduation_date=None):
        student = StudentService.get_student(student_id)
        if student.enrollment_status != 'ACTIVE':
            raise ValueError(f"Only active students can graduate (status is {student.enrollment_status})")
        student.graduate(parse_date(graduation_date, 'graduation_date', required=False) or date.today())
        safe_update_and_commit()
        logger.info("Student %s graduated", student.student_number)
        return student

    @staticmethod
    def withdraw_student(student_id, transferred=False):
        student = StudentService.get_student(student_id)
        student.withdraw(transferred=transferred)
        safe_update_and_commit()
        logger.info("Student %s withdrawn (%s)", student.student_number, student.enrollment_status)
        return student

    @staticmethod
    def delete_student(student_id):
        student = StudentService.get_student(student_id)
        safe_delete_and_commit(student)
        logger.info("Deleted student %s", student.student_number)

    @staticmethod
    def promote_grade_level(grade_level):
        """Move every active student in a grade up one level; returns count"""
        grade_level = parse_int(grade_level, 'grade_level', minimum=0, maximum=11)
        students = Student.query.filter_by(grade_level=grade_level, is_active=True).all()
        for student in students:
            student.grade_level = grade_level + 1
        safe_update_and_commit()
        return len(students)
