"""
Scheduling routes for Brookfield School Information System
Teachers, rooms, schedule slots, schedule health and teacher assignment
"""

from flask import Blueprint, request

from services.scheduling_service import SchedulingService
from services.schedule_health_service import ScheduleHealthService
from services.teacher_assignment_service import TeacherAssignmentService
from utils.responses import api_errors, success_response, get_json_body, serialize
from utils.validators import parse_bool, parse_int, parse_id_list

scheduling_bp = Blueprint('scheduling', __name__)

def _term_arg(required=False):
    return parse_int(request.args.get('term_id'), 'term_id', required=required)

# ---------------------------------------------------------------- teachers

@scheduling_bp.route('/teachers', methods=['POST'])
@api_errors('create teacher')
def create_teacher():
    teacher = SchedulingService.create_teacher(get_json_body())
    return success_response(201, message='Teacher created', teacher=teacher.to_dict())

@scheduling_bp.route('/teachers', methods=['GET'])
@api_errors('list teachers')
def list_teachers():
    teachers = SchedulingService.list_teachers(
        department=request.args.get('department'),
        active_only=parse_bool(request.args.get('active_only'))
    )
    return success_response(teachers=serialize(teachers), count=len(teachers))

@scheduling_bp.route('/teachers/<int:teacher_id>', methods=['GET'])
@api_errors('get teacher')
def get_teacher(teacher_id):
    return success_response(teacher=SchedulingService.get_teacher(teacher_id).to_dict())

@scheduling_bp.route('/teachers/<int:teacher_id>', methods=['PUT'])
@api_errors('update teacher')
def update_teacher(teacher_id):
    teacher = SchedulingService.update_teacher(teacher_id, get_json_body())
    return success_response(message='Teacher updated', teacher=teacher.to_dict())

@scheduling_bp.route('/teachers/<int:teacher_id>', methods=['DELETE'])
@api_errors('delete teacher')
def delete_teacher(teacher_id):
    deleted = SchedulingService.delete_teacher(teacher_id)
    message = 'Teacher deleted' if deleted else 'Teacher has a schedule and was deactivated'
    return success_response(message=message, deleted=deleted)

@scheduling_bp.route('/teachers/<int:teacher_id>/slots', methods=['GET'])
@api_errors('get teacher schedule')
def teacher_slots(teacher_id):
    SchedulingService.get_teacher(teacher_id)
    slots = SchedulingService.list_slots(term_id=_term_arg(), teacher_id=teacher_id)
    return success_response(teacher_id=teacher_id, slots=serialize(slots), count=len(slots))

# ------------------------------------------------------------------- rooms

@scheduling_bp.route('/rooms', methods=['POST'])
@api_errors('create room')
def create_room():
    room = SchedulingService.create_room(get_json_body())
    return success_response(201, message='Room created', room=room.to_dict())

@scheduling_bp.route('/rooms', methods=['GET'])
@api_errors('list rooms')
def list_rooms():
    rooms = SchedulingService.list_rooms(
        room_type=request.args.get('room_type'),
        active_only=parse_bool(request.args.get('active_only'))
    )
    return success_response(rooms=serialize(rooms), count=len(rooms))

@scheduling_bp.route('/rooms/<int:room_id>', methods=['GET'])
@api_errors('get room')
def get_room(room_id):
    return success_response(room=SchedulingService.get_room(room_id).to_dict())

@scheduling_bp.route('/rooms/<int:room_id>', methods=['PUT'])
@api_errors('update room')
def update_room(room_id):
    room = SchedulingService.update_room(room_id, get_json_body())
    return success_response(message='Room updated', room=room.to_dict())

@scheduling_bp.route('/rooms/<int:room_id>', methods=['DELETE'])
@api_errors('delete room')
def delete_room(room_id):
    SchedulingService.delete_room(room_id)
    return success_response(message='Room deleted')

# ------------------------------------------------------------------- slots

@scheduling_bp.route('/slots', methods=['POST'])
@api_errors('create schedule slot')
def create_slot():
    slot = SchedulingService.create_slot(get_json_body())
    return success_response(201, message='Schedule slot created', slot=slot.to_dict())

@scheduling_bp.route('/slots', methods=['GET'])
@api_errors('list schedule slots')
def list_slots():
    slots = SchedulingService.list_slots(
        term_id=_term_arg(),
        course_id=parse_int(request.args.get('course_id'), 'course_id', required=False),
        teacher_id=parse_int(request.args.get('teacher_id'), 'teacher_id', required=False),
        room_id=parse_int(request.args.get('room_id'), 'room_id', required=False),
        day_of_week=request.args.get('day_of_week')
    )
    return success_response(slots=serialize(slots), count=len(slots))

@scheduling_bp.route('/slots/<int:slot_id>', methods=['GET'])
@api_errors('get schedule slot')
def get_slot(slot_id):
    return success_response(slot=SchedulingService.get_slot(slot_id).to_dict())

@scheduling_bp.route('/slots/<int:slot_id>', methods=['PUT'])
@api_errors('update schedule slot')
def update_slot(slot_id):
    slot = SchedulingService.update_slot(slot_id, get_json_body())
    return success_response(message='Schedule slot updated', slot=slot.to_dict())

@scheduling_bp.route('/slots/<int:slot_id>', methods=['DELETE'])
@api_errors('delete schedule slot')
def delete_slot(slot_id):
    SchedulingService.delete_slot(slot_id)
    return success_response(message='Schedule slot deleted')

@scheduling_bp.route('/slots/<int:slot_id>/students', methods=['GET'])
@api_errors('get slot students')
def slot_students(slot_id):
    students = SchedulingService.get_slot_students(slot_id)
    return success_response(slot_id=slot_id, students=serialize(students), count=len(students))

@scheduling_bp.route('/slots/<int:slot_id>/students', methods=['POST'])
@api_errors('enroll students')
def enroll_students(slot_id):
    student_ids = parse_id_list(get_json_body().get('student_ids'), 'student_ids')
    added = SchedulingService.enroll_students(slot_id, student_ids)
    return success_response(message=f'{added} students enrolled', added=added)

@scheduling_bp.route('/slots/<int:slot_id>/students/<int:student_id>', methods=['DELETE'])
@api_errors('unenroll student')
def unenroll_student(slot_id, student_id):
    SchedulingService.unenroll_student(slot_id, student_id)
    return success_response(message='Student removed from slot')

@scheduling_bp.route('/students/<int:student_id>/slots', methods=['GET'])
@api_errors('get student schedule')
def student_slots(student_id):
    slots = SchedulingService.get_student_slots(student_id, _term_arg())
    return success_response(student_id=student_id, slots=serialize(slots), count=len(slots))

# ----------------------------------------------------- health & assignment

@scheduling_bp.route('/health', methods=['GET'])
@api_errors('calculate schedule health')
def schedule_health():
    return success_response(health=ScheduleHealthService.calculate_health(_term_arg()))

@scheduling_bp.route('/unassigned-courses', methods=['GET'])
@api_errors('get unassigned courses')
def unassigned_courses():
    courses = TeacherAssignmentService.unassigned_courses()
    return success_response(courses=serialize(courses), count=len(courses))

@scheduling_bp.route('/assign-teachers', methods=['POST'])
@api_errors('assign teachers')
def assign_teachers():
    data = get_json_body()
    preview = parse_bool(data.get('preview', request.args.get('preview')))
    return success_response(result=TeacherAssignmentService.assign_teachers(preview=preview))
