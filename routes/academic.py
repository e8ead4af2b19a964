"""
Academic structure routes for Brookfield School Information System
Academic years, grading periods and courses
"""

from flask import Blueprint, request

from services.academic_service import AcademicService
from utils.responses import api_errors, success_response, get_json_body, serialize
from utils.validators import parse_int, parse_bool

academic_bp = Blueprint('academic', __name__)

# ------------------------------------------------------------ academic years

@academic_bp.route('/academic-years', methods=['POST'])
@api_errors('create academic year')
def create_year():
    year = AcademicService.create_year(get_json_body())
    return success_response(201, message='Academic year created', academic_year=year.to_dict())

@academic_bp.route('/academic-years', methods=['GET'])
@api_errors('list academic years')
def list_years():
    years = AcademicService.list_years()
    return success_response(academic_years=serialize(years), count=len(years))

@academic_bp.route('/academic-years/current', methods=['GET'])
@api_errors('get current academic year')
def current_year():
    return success_response(academic_year=AcademicService.get_current_year().to_dict())

@academic_bp.route('/academic-years/<int:year_id>', methods=['GET'])
@api_errors('get academic year')
def get_year(year_id):
    return success_response(academic_year=AcademicService.get_year(year_id).to_dict())

@academic_bp.route('/academic-years/<int:year_id>', methods=['PUT'])
@api_errors('update academic year')
def update_year(year_id):
    year = AcademicService.update_year(year_id, get_json_body())
    return success_response(message='Academic year updated', academic_year=year.to_dict())

@academic_bp.route('/academic-years/<int:year_id>', methods=['DELETE'])
@api_errors('delete academic year')
def delete_year(year_id):
    AcademicService.delete_year(year_id)
    return success_response(message='Academic year deleted')

@academic_bp.route('/academic-years/<int:year_id>/set-current', methods=['POST'])
@api_errors('set current academic year')
def set_current_year(year_id):
    year = AcademicService.set_current_year(year_id)
    return success_response(message=f'{year.name} is now the current year', academic_year=year.to_dict())

@academic_bp.route('/academic-years/<int:year_id>/close', methods=['POST'])
@api_errors('close academic year')
def close_year(year_id):
    year = AcademicService.close_year(year_id)
    return success_response(message='Academic year closed', academic_year=year.to_dict())

# ----------------------------------------------------------- grading periods

@academic_bp.route('/academic-years/<int:year_id>/grading-periods', methods=['POST'])
@api_errors('create grading period')
def create_period(year_id):
    data = get_json_body()
    data['academic_year_id'] = year_id
    period = AcademicService.create_period(data)
    return success_response(201, message='Grading period created', grading_period=period.to_dict())

@academic_bp.route('/academic-years/<int:year_id>/grading-periods', methods=['GET'])
@api_errors('list grading periods')
def list_periods(year_id):
    periods = AcademicService.list_periods(year_id)
    return success_response(grading_periods=serialize(periods), count=len(periods))

@academic_bp.route('/grading-periods/current', methods=['GET'])
@api_errors('get current grading period')
def current_period():
    return success_response(grading_period=AcademicService.get_current_period().to_dict())

@academic_bp.route('/grading-periods/<int:period_id>', methods=['GET'])
@api_errors('get grading period')
def get_period(period_id):
    return success_response(grading_period=AcademicService.get_period(period_id).to_dict())

@academic_bp.route('/grading-periods/<int:period_id>', methods=['PUT'])
@api_errors('update grading period')
def update_period(period_id):
    period = AcademicService.update_period(period_id, get_json_body())
    return success_response(message='Grading period updated', grading_period=period.to_dict())

@academic_bp.route('/grading-periods/<int:period_id>', methods=['DELETE'])
@api_errors('delete grading period')
def delete_period(period_id):
    AcademicService.delete_period(period_id)
    return success_response(message='Grading period deleted')

# ------------------------------------------------------------------- courses

@academic_bp.route('/courses', methods=['POST'])
@api_errors('create course')
def create_course():
    course = AcademicService.create_course(get_json_body())
    return success_response(201, message='Course created', course=course.to_dict())

@academic_bp.route('/courses', methods=['GET'])
@api_errors('list courses')
def list_courses():
    courses = AcademicService.list_courses(
        active_only=parse_bool(request.args.get('active_only'), default=True),
        subject_area=request.args.get('subject_area')
    )
    return success_response(courses=serialize(courses), count=len(courses))

@academic_bp.route('/courses/<int:course_id>', methods=['GET'])
@api_errors('get course')
def get_course(course_id):
    return success_response(course=AcademicService.get_course(course_id).to_dict())

@academic_bp.route('/courses/<int:course_id>', methods=['PUT'])
@api_errors('update course')
def update_course(course_id):
    course = AcademicService.update_course(course_id, get_json_body())
    return success_response(message='Course updated', course=course.to_dict())

@academic_bp.route('/courses/<int:course_id>/students', methods=['POST'])
@api_errors('enroll student')
def enroll_student(course_id):
    data = get_json_body()
    course = AcademicService.enroll_student(course_id, parse_int(data.get('student_id'), 'student_id'))
    return success_response(message='Student enrolled', course=course.to_dict())

@academic_bp.route('/courses/<int:course_id>/students/<int:student_id>', methods=['DELETE'])
@api_errors('drop student')
def drop_student(course_id, student_id):
    course = AcademicService.drop_student(course_id, student_id)
    return success_response(message='Student dropped', course=course.to_dict())

@academic_bp.route('/courses/<int:course_id>/roster', methods=['GET'])
@api_errors('get course roster')
def course_roster(course_id):
    students = AcademicService.get_roster(course_id)
    return success_response(course_id=course_id, students=serialize(students), count=len(students))
