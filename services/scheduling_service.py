"""
Scheduling service for Brookfield School Information System
Teachers, rooms and schedule slots
"""

import logging
from datetime import time

from flask import current_app

from models.academic import Course, GradingPeriod
from models.scheduling import Teacher, Room, ScheduleSlot, DAYS_OF_WEEK, ROOM_TYPES
from models.student import Student
from utils.db_helpers import safe_add_and_commit, safe_update_and_commit, safe_delete_and_commit, get_or_raise
from utils.responses import StateError
from utils.sorting_helpers import SortingHelpers
from utils.validators import require_fields, parse_str, parse_int, parse_enum, parse_bool, parse_time, ensure, validate_name

logger = logging.getLogger(__name__)

# 50 minute periods with 5 minutes passing time, first bell at 08:00
DEFAULT_PERIOD_TIMES = {
    1: (time(8, 0), time(8, 50)),
    2: (time(8, 55), time(9, 45)),
    3: (time(9, 50), time(10, 40)),
    4: (time(10, 45), time(11, 35)),
    5: (time(11, 40), time(12, 30)),
    6: (time(12, 35), time(13, 25)),
    7: (time(13, 30), time(14, 20)),
    8: (time(14, 25), time(15, 15)),
}

def period_times(period_number):
    """Default (start, end) for a period; unknown periods fall back to period 1"""
    return DEFAULT_PERIOD_TIMES.get(period_number, DEFAULT_PERIOD_TIMES[1])

class SchedulingService:
    """Teacher, room and schedule slot management"""

    # ------------------------------------------------------------- teachers

    @staticmethod
    def get_teacher(teacher_id):
        return get_or_raise(Teacher, teacher_id, 'Teacher')

    @staticmethod
    def list_teachers(department=None, active_only=False):
        query = Teacher.query
        if department:
            query = query.filter(Teacher.department == department)
        if active_only:
            query = query.filter(Teacher.is_active.is_(True))
        return SortingHelpers.sort_teachers(query.all())

    @staticmethod
    def _certifications(value):
        if value is None:
            return None
        if isinstance(value, list):
            value = ','.join(str(v) for v in value)
        return ','.join(c.strip().upper() for c in str(value).split(',') if c.strip()) or None

    @staticmethod
    def create_teacher(data):
        require_fields(data, 'employee_id', 'first_name', 'last_name')
        ensure(validate_name(data['first_name'], 'First name'))
        ensure(validate_name(data['last_name'], 'Last name'))
        employee_id = parse_str(data['employee_id'], 'employee_id').upper()
        if Teacher.query.filter_by(employee_id=employee_id).first():
            raise StateError(f"Employee ID {employee_id} already exists")

        teacher = Teacher(
            employee_id=employee_id,
            first_name=data['first_name'].strip(),
            last_name=data['last_name'].strip(),
            email=data.get('email'),
            department=parse_str(data.get('department'), 'department', required=False),
            certifications=SchedulingService._certifications(data.get('certifications')),
            max_periods_per_day=parse_int(data.get('max_periods_per_day'), 'max_periods_per_day',
                                          required=False, minimum=1, maximum=12),
            is_active=parse_bool(data.get('is_active'), default=True)
        )
        safe_add_and_commit(teacher)
        logger.info("Created teacher %s", teacher.employee_id)
        return teacher

    @staticmethod
    def update_teacher(teacher_id, data):
        teacher = SchedulingService.get_teacher(teacher_id)
        for field, label in (('first_name', 'First name'), ('last_name', 'Last name')):
            if field in data:
                ensure(validate_name(data[field], label))
                setattr(teacher, field, data[field].strip())
        if 'email' in data:
            teacher.email = data['email']
        if 'department' in data:
            teacher.department = parse_str(data['department'], 'department', required=False)
        if 'certifications' in data:
            teacher.certifications = SchedulingService._certifications(data['certifications'])
        if 'max_periods_per_day' in data:
            teacher.max_periods_per_day = parse_int(data['max_periods_per_day'], 'max_periods_per_day',
                                                    required=False, minimum=1, maximum=12)
        if 'is_active' in data:
            teacher.is_active = parse_bool(data['is_active'])
        safe_update_and_commit()
        return teacher

    @staticmethod
    def delete_teacher(teacher_id):
        """Deactivate a teacher that still has slots, delete otherwise"""
        teacher = SchedulingService.get_teacher(teacher_id)
        if teacher.schedule_slots.count() > 0 or teacher.courses.count() > 0:
            teacher.is_active = False
            safe_update_and_commit()
            logger.info("Deactivated teacher %s (has schedule)", teacher.employee_id)
            return False
        safe_delete_and_commit(teacher)
        return True

    @staticmethod
    def max_periods_for(teacher):
        return teacher.max_periods_per_day or current_app.config.get('MAX_PERIODS_PER_DAY', 8)

    # ---------------------------------------------------------------- rooms

    @staticmethod
    def get_room(room_id):
        return get_or_raise(Room, room_id, 'Room')

    @staticmethod
    def list_rooms(room_type=None, active_only=False):
        query = Room.query
        if room_type:
            query = query.filter(Room.room_type == parse_enum(room_type, ROOM_TYPES, 'room_type'))
        if active_only:
            query = query.filter(Room.is_active.is_(True))
        return SortingHelpers.sort_rooms(query.all())

    @staticmethod
    def create_room(data):
        require_fields(data, 'room_number')
        room_number = str(data['room_number']).strip().upper()
        if Room.query.filter_by(room_number=room_number).first():
            raise StateError(f"Room {room_number} already exists")

        room = Room(
            room_number=room_number,
            room_type=parse_enum(data.get('room_type'), ROOM_TYPES, 'room_type', required=False, default='CLASSROOM'),
            capacity=parse_int(data.get('capacity'), 'capacity', required=False, minimum=1),
            building=data.get('building'),
            is_active=parse_bool(data.get('is_active'), default=True)
        )
        return safe_add_and_commit(room)

    @staticmethod
    def update_room(room_id, data):
        room = SchedulingService.get_room(room_id)
        if 'room_type' in data:
            room.room_type = parse_enum(data['room_type'], ROOM_TYPES, 'room_type')
        if 'capacity' in data:
            room.capacity = parse_int(data['capacity'], 'capacity', required=False, minimum=1)
        if 'building' in data:
            room.building = data['building']
        if 'is_active' in data:
            room.is_active = parse_bool(data['is_active'])
        safe_update_and_commit()
        return room

    @staticmethod
    def delete_room(room_id):
        room = SchedulingService.get_room(room_id)
        if room.schedule_slots.count() > 0:
            raise StateError("Room is used by schedule slots")
        safe_delete_and_commit(room)

    # ---------------------------------------------------------------- slots

    @staticmethod
    def get_slot(slot_id):
        return get_or_raise(ScheduleSlot, slot_id, 'Schedule slot')

    @staticmethod
    def list_slots(term_id=None, course_id=None, teacher_id=None, room_id=None, day_of_week=None):
        query = ScheduleSlot.query
        if term_id is not None:
            query = query.filter(ScheduleSlot.term_id == term_id)
        if course_id is not None:
            query = query.filter(ScheduleSlot.course_id == course_id)
        if teacher_id is not None:
            query = query.filter(ScheduleSlot.teacher_id == teacher_id)
        if room_id is not None:
            query = query.filter(ScheduleSlot.room_id == room_id)
        if day_of_week:
            query = query.filter(ScheduleSlot.day_of_week == parse_enum(day_of_week, DAYS_OF_WEEK, 'day_of_week'))
        return query.order_by(ScheduleSlot.day_of_week, ScheduleSlot.period_number).all()

    @staticmethod
    def _apply_slot_fields(slot, data):
        if 'teacher_id' in data:
            teacher_id = parse_int(data['teacher_id'], 'teacher_id', required=False)
            slot.teacher = SchedulingService.get_teacher(teacher_id) if teacher_id else None
        if 'room_id' in data:
            room_id = parse_int(data['room_id'], 'room_id', required=False)
            slot.room = SchedulingService.get_room(room_id) if room_id else None
        if 'term_id' in data:
            term_id = parse_int(data['term_id'], 'term_id', required=False)
            slot.term_id = get_or_raise(GradingPeriod, term_id, 'Term').id if term_id else None
        if 'day_of_week' in data:
            slot.day_of_week = parse_enum(data['day_of_week'], DAYS_OF_WEEK, 'day_of_week', required=False)
        if 'period_number' in data:
            periods = current_app.config.get('PERIODS_PER_DAY', 8)
            slot.period_number = parse_int(data['period_number'], 'period_number', required=False,
                                           minimum=1, maximum=periods)
        if 'start_time' in data:
            slot.start_time = parse_time(data['start_time'], 'start_time', required=False)
        if 'end_time' in data:
            slot.end_time = parse_time(data['end_time'], 'end_time', required=False)

        if slot.period_number and slot.start_time is None and slot.end_time is None:
            slot.start_time, slot.end_time = period_times(slot.period_number)
        if slot.start_time and slot.end_time and slot.end_time <= slot.start_time:
            raise ValueError("end_time must be after start_time")

    @staticmethod
    def create_slot(data):
        require_fields(data, 'course_id')
        course = get_or_raise(Course, parse_int(data['course_id'], 'course_id'), 'Course')
        slot = ScheduleSlot(course=course)
        SchedulingService._apply_slot_fields(slot, data)
        if slot.teacher is None and course.teacher is not None and 'teacher_id' not in data:
            slot.teacher = course.teacher
        safe_add_and_commit(slot)
        logger.info("Created slot %s for course %s", slot.id, course.course_code)
        return slot

    @staticmethod
    def update_slot(slot_id, data):
        slot = SchedulingService.get_slot(slot_id)
        SchedulingService._apply_slot_fields(slot, data)
        safe_update_and_commit()
        return slot

    @staticmethod
    def delete_slot(slot_id):
        slot = SchedulingService.get_slot(slot_id)
        safe_delete_and_commit(slot)

    @staticmethod
    def get_slot_students(slot_id):
        slot = SchedulingService.get_slot(slot_id)
        return SortingHelpers.sort_students(slot.students)

    @staticmethod
    def enroll_students(slot_id, student_ids):
        """Add students to a slot; students already enrolled are left alone"""
        slot = SchedulingService.get_slot(slot_id)
        added = 0
        for student_id in student_ids:
            student = get_or_raise(Student, student_id, 'Student')
            if student not in slot.students:
                slot.students.append(student)
                added += 1
        safe_update_and_commit()
        logger.info("Enrolled %d students in slot %s", added, slot.id)
        return added

    @staticmethod
    def unenroll_student(slot_id, student_id):
        slot = SchedulingService.get_slot(slot_id)
        student = get_or_raise(Student, student_id, 'Student')
        if student not in slot.students:
            raise StateError("Student is not enrolled in this slot")
        slot.students.remove(student)
        safe_update_and_commit()

    @staticmethod
    def get_student_slots(student_id, term_id=None):
        student = get_or_raise(Student, student_id, 'Student')
        query = student.schedule_slots
        if term_id is not None:
            query = query.filter(ScheduleSlot.term_id == term_id)
        return query.all()
