"""
Academic service for Brookfield School Information System
Academic years, grading periods and courses
"""

import logging
from datetime import date

from models.academic import (
    AcademicYear, GradingPeriod, Course, ACADEMIC_YEAR_STATUSES, GRADING_PERIOD_TYPES
)
from models.student import Student
from utils.db_helpers import safe_add_and_commit, safe_update_and_commit, safe_delete_and_commit, get_or_raise
from utils.responses import NotFoundError, StateError
from utils.sorting_helpers import SortingHelpers
from utils.validators import require_fields, parse_str, parse_date, parse_int, parse_float, parse_enum, parse_bool

logger = logging.getLogger(__name__)

class AcademicService:
    """Academic years, grading periods and courses"""

    # ---------------------------------------------------------------- years

    @staticmethod
    def get_year(year_id):
        return get_or_raise(AcademicYear, year_id, 'Academic year')

    @staticmethod
    def list_years():
        return AcademicYear.query.order_by(AcademicYear.start_date.desc()).all()

    @staticmethod
    def create_year(data):
        require_fields(data, 'name', 'start_date', 'end_date')
        start_date = parse_date(data['start_date'], 'start_date')
        end_date = parse_date(data['end_date'], 'end_date')
        if end_date <= start_date:
            raise ValueError("end_date must be after start_date")

        year = AcademicYear(
            name=parse_str(data['name'], 'name'),
            start_date=start_date,
            end_date=end_date,
            status=parse_enum(data.get('status'), ACADEMIC_YEAR_STATUSES, 'status', required=False, default='PLANNING')
        )
        safe_add_and_commit(year)
        if parse_bool(data.get('is_current')):
            AcademicService.set_current_year(year.id)
        logger.info("Created academic year %s", year.name)
        return year

    @staticmethod
    def update_year(year_id, data):
        year = AcademicService.get_year(year_id)
        if 'name' in data:
            year.name = parse_str(data['name'], 'name')
        if 'start_date' in data:
            year.start_date = parse_date(data['start_date'], 'start_date')
        if 'end_date' in data:
            year.end_date = parse_date(data['end_date'], 'end_date')
        if year.end_date <= year.start_date:
            raise ValueError("end_date must be after start_date")
        if 'status' in data:
            year.status = parse_enum(data['status'], ACADEMIC_YEAR_STATUSES, 'status')
        safe_update_and_commit()
        return year

    @staticmethod
    def delete_year(year_id):
        year = AcademicService.get_year(year_id)
        if year.grading_periods.count() > 0:
            raise StateError("Academic year has grading periods; delete them first")
        safe_delete_and_commit(year)

    @staticmethod
    def get_current_year():
        year = AcademicYear.query.filter_by(is_current=True).first()
        if year is None:
            raise NotFoundError("No current academic year is set")
        return year

    @staticmethod
    def set_current_year(year_id):
        """Make one year current and clear the flag on all others"""
        year = AcademicService.get_year(year_id)
        if year.status == 'CLOSED':
            raise StateError("A closed academic year cannot be made current")
        AcademicYear.query.filter(AcademicYear.id != year.id).update({'is_current': False})
        year.is_current = True
        year.status = 'ACTIVE'
        safe_update_and_commit()
        logger.info("Academic year %s is now current", year.name)
        return year

    @staticmethod
    def close_year(year_id):
        year = AcademicService.get_year(year_id)
        year.status = 'CLOSED'
        year.is_current = False
        for period in year.grading_periods:
            period.is_active = False
        safe_update_and_commit()
        return year

    # ------------------------------------------------------- grading periods

    @staticmethod
    def get_period(period_id):
        return get_or_raise(GradingPeriod, period_id, 'Grading period')

    @staticmethod
    def list_periods(year_id):
        year = AcademicService.get_year(year_id)
        return year.grading_periods.all()

    @staticmethod
    def _check_period_dates(year, period_type, start_date, end_date, exclude_id=None):
        if end_date < start_date:
            raise ValueError("end_date must be on or after start_date")
        if not (year.contains(start_date) and year.contains(end_date)):
            raise ValueError(f"Grading period must fall within academic year {year.name}")
        siblings = year.grading_periods.filter_by(period_type=period_type).all()
        for other in siblings:
            if other.id != exclude_id and other.overlaps(start_date, end_date):
                raise ValueError(f"Dates overlap grading period '{other.name}'")

    @staticmethod
    def create_period(data):
        require_fields(data, 'academic_year_id', 'name', 'start_date', 'end_date')
        year = AcademicService.get_year(parse_int(data['academic_year_id'], 'academic_year_id'))
        period_type = parse_enum(data.get('period_type'), GRADING_PERIOD_TYPES, 'period_type',
                                 required=False, default='QUARTER')
        start_date = parse_date(data['start_date'], 'start_date')
        end_date = parse_date(data['end_date'], 'end_date')
        AcademicService._check_period_dates(year, period_type, start_date, end_date)

        period_number = parse_int(data.get('period_number'), 'period_number', required=False, minimum=1)
        if period_number is None:
            period_number = year.grading_periods.filter_by(period_type=period_type).count() + 1

        period = GradingPeriod(
            academic_year_id=year.id,
            name=parse_str(data['name'], 'name'),
            period_type=period_type,
            period_number=period_number,
            start_date=start_date,
            end_date=end_date,
            is_active=parse_bool(data.get('is_active'), default=True)
        )
        return safe_add_and_commit(period)

    @staticmethod
    def update_period(period_id, data):
        period = AcademicService.get_period(period_id)
        start_date = parse_date(data.get('start_date'), 'start_date', required=False) or period.start_date
        end_date = parse_date(data.get('end_date'), 'end_date', required=False) or period.end_date
        AcademicService._check_period_dates(period.academic_year, period.period_type,
                                            start_date, end_date, exclude_id=period.id)
        period.start_date = start_date
        period.end_date = end_date
        if 'name' in data:
            period.name = parse_str(data['name'], 'name')
        if 'is_active' in data:
            period.is_active = parse_bool(data['is_active'])
        safe_update_and_commit()
        return period

    @staticmethod
    def delete_period(period_id):
        safe_delete_and_commit(AcademicService.get_period(period_id))

    @staticmethod
    def get_current_period(today=None):
        """Active grading period containing today; shortest period wins"""
        today = today or date.today()
        periods = GradingPeriod.query.filter(
            GradingPeriod.is_active.is_(True),
            GradingPeriod.start_date <= today,
            GradingPeriod.end_date >= today
        ).all()
        if not periods:
            raise NotFoundError(f"No grading period contains {today.isoformat()}")
        return min(periods, key=lambda p: (p.end_date - p.start_date))

    # --------------------------------------------------------------- courses

    @staticmethod
    def get_course(course_id):
        return get_or_raise(Course, course_id, 'Course')

    @staticmethod
    def list_courses(active_only=True, subject_area=None):
        query = Course.query
        if active_only:
            query = query.filter_by(is_active=True)
        if subject_area:
            query = query.filter_by(subject_area=subject_area)
        return query.order_by(Course.course_code).all()

    @staticmethod
    def create_course(data):
        require_fields(data, 'course_code', 'course_name')
        course = Course(
            course_code=parse_str(data['course_code'], 'course_code').upper(),
            course_name=parse_str(data['course_name'], 'course_name'),
            subject_area=parse_str(data.get('subject_area'), 'subject_area', required=False),
            grade_level=parse_int(data.get('grade_level'), 'grade_level', required=False, minimum=0, maximum=12),
            credits=parse_float(data.get('credits'), 'credits', required=False, minimum=0) or 1.0,
            max_students=parse_int(data.get('max_students'), 'max_students', required=False, minimum=1) or 30,
            requires_lab=parse_bool(data.get('requires_lab')),
            teacher_id=parse_int(data.get('teacher_id'), 'teacher_id', required=False)
        )
        safe_add_and_commit(course)
        logger.info("Created course %s", course.course_code)
        return course

    @staticmethod
    def update_course(course_id, data):
        course = AcademicService.get_course(course_id)
        if 'course_name' in data:
            course.course_name = parse_str(data['course_name'], 'course_name')
        if 'subject_area' in data:
            course.subject_area = parse_str(data['subject_area'], 'subject_area', required=False)
        if 'grade_level' in data:
            course.grade_level = parse_int(data['grade_level'], 'grade_level', required=False, minimum=0, maximum=12)
        if 'max_students' in data:
            course.max_students = parse_int(data['max_students'], 'max_students', minimum=1)
        if 'requires_lab' in data:
            course.requires_lab = parse_bool(data['requires_lab'])
        if 'teacher_id' in data:
            course.teacher_id = parse_int(data['teacher_id'], 'teacher_id', required=False)
        if 'is_active' in data:
            course.is_active = parse_bool(data['is_active'])
        safe_update_and_commit()
        return course

    @staticmethod
    def enroll_student(course_id, student_id):
        course = AcademicService.get_course(course_id)
        student = get_or_raise(Student, student_id, 'Student')
        if course.students.filter_by(id=student.id).first() is not None:
            raise StateError(f"Student {student.student_number} is already enrolled in {course.course_code}")
        if course.max_students and course.get_enrolled_count() >= course.max_students:
            raise StateError(f"Course {course.course_code} is full ({course.max_students} students)")
        course.students.append(student)
        safe_update_and_commit()
        return course

    @staticmethod
    def drop_student(course_id, student_id):
        course = AcademicService.get_course(course_id)
        student = course.students.filter_by(id=student_id).first()
        if student is None:
            raise NotFoundError(f"Student {student_id} is not enrolled in {course.course_code}")
        course.students.remove(student)
        safe_update_and_commit()
        return course

    @staticmethod
    def get_roster(course_id):
        course = AcademicService.get_course(course_id)
        return SortingHelpers.sort_students(course.students.all())
