"""
Student routes for Brookfield School Information System
"""

from flask import Blueprint, request

from services.student_service import StudentService
from utils.responses import api_errors, success_response, get_json_body, serialize
from utils.validators import parse_int, parse_bool

students_bp = Blueprint('students', __name__)

@students_bp.route('', methods=['POST'])
@api_errors('create student')
def create_student():
    student = StudentService.create_student(get_json_body())
    return success_response(201, message='Student created', student=student.to_dict())

@students_bp.route('', methods=['GET'])
@api_errors('list students')
def list_students():
    students = StudentService.list_students(
        grade_level=parse_int(request.args.get('grade_level'), 'grade_level', required=False),
        status=request.args.get('status'),
        search=request.args.get('search', ''),
        active_only=parse_bool(request.args.get('active_only'))
    )
    return success_response(students=serialize(students), count=len(students))

@students_bp.route('/<int:student_id>', methods=['GET'])
@api_errors('get student')
def get_student(student_id):
    return success_response(student=StudentService.get_student(student_id).to_dict())

@students_bp.route('/<int:student_id>', methods=['PUT'])
@api_errors('update student')
def update_student(student_id):
    student = StudentService.update_student(student_id, get_json_body())
    return success_response(message='Student updated', student=student.to_dict())

@students_bp.route('/<int:student_id>', methods=['DELETE'])
@api_errors('delete student')
def delete_student(student_id):
    StudentService.delete_student(student_id)
    return success_response(message='Student deleted')

@students_bp.route('/<int:student_id>/graduate', methods=['POST'])
@api_errors('graduate student')
def graduate_student(student_id):
    data = get_json_body()
    student = StudentService.graduate_student(student_id, data.get('graduation_date'))
    return success_response(message='Student graduated', student=student.to_dict())

@students_bp.route('/<int:student_id>/withdraw', methods=['POST'])
@api_errors('withdraw student')
def withdraw_student(student_id):
    data = get_json_body()
    student = StudentService.withdraw_student(student_id, transferred=parse_bool(data.get('transferred')))
    return success_response(message='Student withdrawn', student=student.to_dict())

@students_bp.route('/promote', methods=['POST'])
@api_errors('promote students')
def promote_students():
    data = get_json_body()
    count = StudentService.promote_grade_level(data.get('grade_level'))
    return success_response(message=f'{count} students promoted', promoted=count)
