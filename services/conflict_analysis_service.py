"""
Conflict analysis service for Brookfield School Information System
Detects double bookings, capacity problems and unassigned schedule slots
"""

import logging
import statistics
from collections import defaultdict
from datetime import date

from models.academic import Course
from models.scheduling import Room, ScheduleSlot, SCHOOL_DAYS
from models.student import Student
from services.scheduling_service import SchedulingService, DEFAULT_PERIOD_TIMES, period_times
from utils.db_helpers import get_or_raise
from utils.validators import parse_enum

logger = logging.getLogger(__name__)

SEVERITIES = ('CRITICAL', 'HIGH', 'MEDIUM', 'LOW')
SEVERITY_ORDER = {severity: rank for rank, severity in enumerate(SEVERITIES)}
SLOTS_PER_WEEK = 40  # 8 periods x 5 days
LOW_UTILIZATION_PERCENT = 30
LOAD_IMBALANCE_FACTOR = 1.5

RESOLUTION_STRATEGIES = {
    'RESCHEDULE': ("Move one of the conflicting items to a different time slot", 'EASY', True),
    'REASSIGN_ROOM': ("Assign a different room to resolve the conflict", 'EASY', True),
    'REASSIGN_TEACHER': ("Assign a different teacher to one of the sections", 'MEDIUM', False),
    'SPLIT_SECTION': ("Split the class into multiple sections", 'HARD', False),
}

STRATEGIES_BY_CONFLICT = {
    'TEACHER_DOUBLE_BOOKING': ('RESCHEDULE', 'REASSIGN_TEACHER'),
    'ROOM_DOUBLE_BOOKING': ('REASSIGN_ROOM', 'RESCHEDULE'),
    'DOUBLE_BOOKING': ('RESCHEDULE', 'REASSIGN_ROOM', 'REASSIGN_TEACHER'),
    'TIME_OVERLAP': ('RESCHEDULE',),
    'TIME_CONFLICT': ('RESCHEDULE',),
    'CAPACITY_EXCEEDED': ('REASSIGN_ROOM', 'SPLIT_SECTION'),
    'NO_TEACHER': ('REASSIGN_TEACHER',),
    'NO_ROOM': ('REASSIGN_ROOM', 'RESCHEDULE'),
    'NO_TIME_SLOT': ('RESCHEDULE',),
    'OVERLOAD': ('REASSIGN_TEACHER', 'RESCHEDULE'),
}

def _by_severity(conflicts):
    return sorted(conflicts, key=lambda c: SEVERITY_ORDER.get(c['severity'], len(SEVERITIES)))

def _slot_label(slot):
    return f"{slot.day_of_week} period {slot.period_number}"

def _times_overlap(first, second):
    if not (first.start_time and first.end_time and second.start_time and second.end_time):
        return first.period_number == second.period_number
    return first.start_time < second.end_time and second.start_time < first.end_time

def _group_by_time(slots):
    groups = defaultdict(list)
    for slot in slots:
        if slot.has_time:
            groups[slot.time_key()].append(slot)
    return groups

class ConflictAnalysisService:
    """Schedule conflict detection and analysis"""

    @staticmethod
    def term_slots(term_id=None):
        query = ScheduleSlot.query
        if term_id is not None:
            query = query.filter(ScheduleSlot.term_id == term_id)
        return query.all()

    # ------------------------------------------------------ slot analysis

    @staticmethod
    def _unassigned_conflicts(slot, lab_rooms, gyms, max_capacity):
        conflicts = []
        course = slot.course
        base = {
            'slot_id': slot.id,
            'course_id': slot.course_id,
            'course_name': course.course_name if course else None,
            'blocking': True,
        }

        if slot.teacher_id is None:
            if course is None or course.teacher is None:
                conflicts.append(dict(base, type='NO_TEACHER', severity='CRITICAL',
                                      description="No teacher assigned to course",
                                      possible_solutions=["Assign a qualified teacher to the course",
                                                          "Hire or reassign staff for this subject"]))
            else:
                conflicts.append(dict(base, type='NO_TEACHER', severity='HIGH',
                                      description="All qualified teachers are at maximum capacity",
                                      possible_solutions=["Increase a teacher's maximum load",
                                                          "Reduce the number of sections"]))

        if slot.room_id is None:
            enrolled = slot.student_count()
            if course is not None and course.requires_lab and not lab_rooms:
                description, severity = "Course requires a lab but no lab rooms exist", 'CRITICAL'
                solutions = ["Add a lab room", "Remove the lab requirement from the course"]
            elif course is not None and course.is_physical_education and not gyms:
                description, severity = "Physical education course requires a gym but none exists", 'CRITICAL'
                solutions = ["Add a gym", "Use an alternative facility"]
            elif enrolled > max_capacity:
                description, severity = f"No room has capacity for {enrolled} students", 'HIGH'
                solutions = ["Split the section", "Use a larger facility"]
            else:
                description, severity = "Room availability exhausted at this time", 'HIGH'
                solutions = ["Move the section to another period", "Free a room at this time"]
            conflicts.append(dict(base, type='NO_ROOM', severity=severity, description=description,
                                  possible_solutions=solutions))

        if not slot.has_time:
            conflicts.append(dict(base, type='NO_TIME_SLOT', severity='HIGH',
                                  description="No day and period assigned",
                                  possible_solutions=["Assign a free period for both teacher and room"]))
        return conflicts

    @staticmethod
    def analyze_slot_conflicts(slots):
        """Explain why slots are unassigned and find double bookings between them"""
        rooms = Room.query.filter(Room.is_active.is_(True)).all()
        lab_rooms = [r for r in rooms if r.is_lab]
        gyms = [r for r in rooms if r.is_gym]
        max_capacity = max((r.capacity or 0 for r in rooms), default=0)

        conflicts = []
        fully_assigned = 0
        for slot in slots:
            if slot.is_fully_assigned():
                fully_assigned += 1
                capacity = slot.room.capacity
                enrolled = slot.student_count()
                if capacity and enrolled > capacity:
                    conflicts.append({
                        'slot_id': slot.id,
                        'course_id': slot.course_id,
                        'course_name': slot.course.course_name if slot.course else None,
                        'type': 'CAPACITY_EXCEEDED',
                        'severity': 'MEDIUM',
                        'blocking': False,
                        'description': f"{enrolled} students enrolled in room {slot.room.room_number} "
                                       f"with capacity {capacity}",
                        'possible_solutions': ["Move to a larger room", "Split the section"],
                    })
            else:
                conflicts.extend(ConflictAnalysisService._unassigned_conflicts(slot, lab_rooms, gyms, max_capacity))

        conflicts.extend(ConflictAnalysisService._double_bookings(slots))

        total = len(slots)
        return {
            'total_slots': total,
            'fully_assigned': fully_assigned,
            'completion_percentage': round(fully_assigned / total * 100, 2) if total else 0.0,
            'conflicts': _by_severity(conflicts),
            'conflict_count': len(conflicts),
            'blocking_count': sum(1 for c in conflicts if c['blocking']),
        }

    @staticmethod
    def analyze_term(term_id):
        return ConflictAnalysisService.analyze_slot_conflicts(ConflictAnalysisService.term_slots(term_id))

    @staticmethod
    def _double_bookings(slots):
        conflicts = []
        for attribute, conflict_type, label in (('teacher', 'TEACHER_DOUBLE_BOOKING', 'Teacher'),
                                                ('room', 'ROOM_DOUBLE_BOOKING', 'Room')):
            by_owner = defaultdict(list)
            for slot in slots:
                owner_id = getattr(slot, f'{attribute}_id')
                if owner_id is not None and slot.has_time:
                    by_owner[(owner_id, slot.time_key())].append(slot)
            for (owner_id, _), group in by_owner.items():
                if len(group) < 2:
                    continue
                owner = getattr(group[0], attribute)
                name = owner.full_name if attribute == 'teacher' else owner.room_number
                conflicts.append({
                    'type': conflict_type,
                    'severity': 'CRITICAL',
                    'blocking': True,
                    'entity_type': attribute.upper(),
                    'entity_id': owner_id,
                    'entity_name': name,
                    'slot_ids': [s.id for s in group],
                    'affected_slots': [s.to_dict() for s in group],
                    'description': f"{label} {name} is booked {len(group)} times on {_slot_label(group[0])}",
                    'possible_solutions': [RESOLUTION_STRATEGIES[s][0] for s in STRATEGIES_BY_CONFLICT[conflict_type]],
                })
        return conflicts

    # --------------------------------------------------- entity conflicts

    @staticmethod
    def student_conflicts(student_id, term_id):
        student = get_or_raise(Student, student_id, 'Student')
        slots = SchedulingService.get_student_slots(student.id, term_id)
        conflicts = []
        for key, group in _group_by_time(slots).items():
            if len(group) > 1:
                conflicts.append({
                    'type': 'TIME_OVERLAP',
                    'severity': 'CRITICAL',
                    'day_of_week': group[0].day_of_week,
                    'period_number': group[0].period_number,
                    'courses': [s.course.course_name for s in group if s.course],
                    'slot_ids': [s.id for s in group],
                    'description': f"{len(group)} classes scheduled on {_slot_label(group[0])}",
                })
        return {
            'student_id': student.id,
            'student_name': student.full_name,
            'term_id': term_id,
            'conflicts': conflicts,
            'has_conflicts': bool(conflicts),
            'count': len(conflicts),
        }

    @staticmethod
    def teacher_conflicts(teacher_id, term_id):
        teacher = SchedulingService.get_teacher(teacher_id)
        slots = teacher.schedule_slots.filter(ScheduleSlot.term_id == term_id).all()
        conflicts = []
        for group in _group_by_time(slots).values():
            if len(group) > 1:
                conflicts.append({
                    'type': 'DOUBLE_BOOKING',
                    'severity': 'CRITICAL',
                    'day_of_week': group[0].day_of_week,
                    'period_number': group[0].period_number,
                    'slot_ids': [s.id for s in group],
                    'description': f"Teaching {len(group)} classes on {_slot_label(group[0])}",
                })

        max_periods = SchedulingService.max_periods_for(teacher)
        per_day = defaultdict(int)
        for slot in slots:
            if slot.day_of_week:
                per_day[slot.day_of_week] += 1
        for day, count in sorted(per_day.items()):
            if count > max_periods:
                conflicts.append({
                    'type': 'OVERLOAD',
                    'severity': 'HIGH',
                    'day_of_week': day,
                    'periods': count,
                    'max_periods': max_periods,
                    'description': f"{count} periods on {day} exceeds the maximum of {max_periods}",
                })

        return {
            'teacher_id': teacher.id,
            'teacher_name': teacher.full_name,
            'term_id': term_id,
            'conflicts': _by_severity(conflicts),
            'has_conflicts': bool(conflicts),
            'total_periods_per_week': len(slots),
        }

    @staticmethod
    def room_conflicts(room_id, term_id):
        room = SchedulingService.get_room(room_id)
        slots = room.schedule_slots.filter(ScheduleSlot.term_id == term_id).all()
        conflicts = []
        for group in _group_by_time(slots).values():
            if len(group) > 1:
                conflicts.append({
                    'type': 'DOUBLE_BOOKING',
                    'severity': 'CRITICAL',
                    'day_of_week': group[0].day_of_week,
                    'period_number': group[0].period_number,
                    'slot_ids': [s.id for s in group],
                    'description': f"Room booked {len(group)} times on {_slot_label(group[0])}",
                })
        if room.capacity:
            for slot in slots:
                if slot.student_count() > room.capacity:
                    conflicts.append({
                        'type': 'CAPACITY_EXCEEDED',
                        'severity': 'MEDIUM',
                        'slot_ids': [slot.id],
                        'enrolled': slot.student_count(),
                        'capacity': room.capacity,
                        'description': f"{slot.student_count()} students exceed capacity {room.capacity}",
                    })
        return {
            'room_id': room.id,
            'room_number': room.room_number,
            'term_id': term_id,
            'conflicts': _by_severity(conflicts),
            'has_conflicts': bool(conflicts),
        }

    # -------------------------------------------------------- availability

    @staticmethod
    def _free_periods(occupied, days):
        periods = []
        for day in days:
            for period in sorted(DEFAULT_PERIOD_TIMES):
                if f"{day}_{period}" in occupied:
                    continue
                start, end = period_times(period)
                periods.append({
                    'day_of_week': day,
                    'period_number': period,
                    'start_time': start.strftime('%H:%M'),
                    'end_time': end.strftime('%H:%M'),
                })
        return periods

    @staticmethod
    def _days(day_of_week=None):
        if day_of_week:
            return [parse_enum(day_of_week, SCHOOL_DAYS, 'day_of_week')]
        return list(SCHOOL_DAYS)

    @staticmethod
    def teacher_availability(teacher_id, term_id, day_of_week=None):
        teacher = SchedulingService.get_teacher(teacher_id)
        occupied = {s.time_key() for s in teacher.schedule_slots.filter(ScheduleSlot.term_id == term_id) if s.has_time}
        free = ConflictAnalysisService._free_periods(occupied, ConflictAnalysisService._days(day_of_week))
        return {
            'teacher_id': teacher.id,
            'teacher_name': teacher.full_name,
            'term_id': term_id,
            'available_periods': free,
            'count': len(free),
        }

    @staticmethod
    def room_availability(room_id, term_id, day_of_week=None):
        room = SchedulingService.get_room(room_id)
        occupied = {s.time_key() for s in room.schedule_slots.filter(ScheduleSlot.term_id == term_id) if s.has_time}
        free = ConflictAnalysisService._free_periods(occupied, ConflictAnalysisService._days(day_of_week))
        return {
            'room_id': room.id,
            'room_number': room.room_number,
            'term_id': term_id,
            'available_periods': free,
            'count': len(free),
        }

    # ---------------------------------------------------- course addition

    @staticmethod
    def check_course_addition(student_id, course_id, section_id, term_id):
        """Check whether adding a course section would clash with a student's schedule"""
        student = get_or_raise(Student, student_id, 'Student')
        course = get_or_raise(Course, course_id, 'Course')
        section = SchedulingService.get_slot(section_id)
        if section.course_id != course.id:
            raise ValueError("Section does not belong to the course")

        current = [s for s in SchedulingService.get_student_slots(student.id, term_id) if s.id != section.id]
        conflicts = []
        for slot in current:
            if slot.has_time and section.has_time and slot.day_of_week == section.day_of_week \
                    and _times_overlap(slot, section):
                conflicts.append({
                    'type': 'TIME_CONFLICT',
                    'severity': 'CRITICAL',
                    'conflicting_slot_id': slot.id,
                    'conflicting_course': slot.course.course_name if slot.course else None,
                    'description': f"Overlaps with {slot.course.course_name if slot.course else 'a class'} "
                                   f"on {_slot_label(slot)}",
                })
        if section.room and section.room.capacity and section.student_count() >= section.room.capacity:
            conflicts.append({
                'type': 'CAPACITY_EXCEEDED',
                'severity': 'MEDIUM',
                'description': f"Section is at room capacity ({section.room.capacity})",
            })

        occupied = {s.time_key() for s in current if s.has_time}
        alternatives = [
            s.to_dict() for s in course.schedule_slots.all()
            if s.id != section.id and s.has_time and s.time_key() not in occupied
        ]
        return {
            'student_id': student.id,
            'course_id': course.id,
            'section_id': section.id,
            'can_enroll': not any(c['severity'] == 'CRITICAL' for c in conflicts),
            'conflicts': conflicts,
            'alternative_sections': alternatives,
        }

    # ------------------------------------------------------- term overview

    @staticmethod
    def all_conflicts(term_id, severity=None):
        conflicts = ConflictAnalysisService._double_bookings(ConflictAnalysisService.term_slots(term_id))
        if severity:
            severity = parse_enum(severity, SEVERITIES, 'severity')
            conflicts = [c for c in conflicts if c['severity'] == severity]
        counts = {s.lower(): sum(1 for c in conflicts if c['severity'] == s) for s in SEVERITIES}
        return dict(term_id=term_id, conflicts=_by_severity(conflicts), total=len(conflicts), **counts)

    @staticmethod
    def dashboard(term_id):
        conflicts = ConflictAnalysisService.all_conflicts(term_id)['conflicts']
        by_entity = defaultdict(int)
        for conflict in conflicts:
            by_entity[conflict['entity_type']] += 1
        return {
            'term_id': term_id,
            'total_conflicts': len(conflicts),
            'by_entity_type': dict(by_entity),
            'by_severity': {s: sum(1 for c in conflicts if c['severity'] == s) for s in SEVERITIES},
            'recent_conflicts': conflicts[:10],
            'generated_date': date.today().isoformat(),
        }

    @staticmethod
    def resolution_suggestions(conflict_type=None):
        """Strategies for a conflict type; all strategies when the type is unknown"""
        names = STRATEGIES_BY_CONFLICT.get((conflict_type or '').upper(), tuple(RESOLUTION_STRATEGIES))
        suggestions = []
        for number, name in enumerate(names, start=1):
            description, difficulty, automatic = RESOLUTION_STRATEGIES[name]
            suggestions.append({
                'id': number,
                'type': name,
                'description': description,
                'difficulty': difficulty,
                'automatic_resolution': automatic,
            })
        return suggestions

    @staticmethod
    def alternative_slots(course_id, teacher_id, term_id, room_id=None, preferred_days=None):
        """Periods where both the teacher and the room are free"""
        course = get_or_raise(Course, course_id, 'Course')
        teacher = SchedulingService.get_teacher(teacher_id)
        occupied = {s.time_key() for s in teacher.schedule_slots.filter(ScheduleSlot.term_id == term_id) if s.has_time}
        room = None
        if room_id is not None:
            room = SchedulingService.get_room(room_id)
            occupied |= {s.time_key() for s in room.schedule_slots.filter(ScheduleSlot.term_id == term_id)
                         if s.has_time}
        days = [parse_enum(d, SCHOOL_DAYS, 'preferred_days') for d in preferred_days] if preferred_days \
            else list(SCHOOL_DAYS)
        free = ConflictAnalysisService._free_periods(occupied, days)
        for entry in free:
            entry['teacher_available'] = True
            entry['room_available'] = True
        return {
            'course_id': course.id,
            'teacher_id': teacher.id,
            'room_id': room.id if room else None,
            'term_id': term_id,
            'alternative_slots': free,
            'count': len(free),
        }

    @staticmethod
    def constraint_violations(term_id, violation_type=None):
        if violation_type:
            violation_type = parse_enum(violation_type, ('CAPACITY', 'TEACHER_LOAD'), 'type')
        slots = ConflictAnalysisService.term_slots(term_id)
        violations = []
        if violation_type in (None, 'CAPACITY'):
            for slot in slots:
                if slot.room and slot.room.capacity and slot.student_count() > slot.room.capacity:
                    violations.append({
                        'type': 'CAPACITY',
                        'severity': 'MEDIUM',
                        'slot_id': slot.id,
                        'description': f"Room {slot.room.room_number} holds {slot.room.capacity} "
                                       f"but {slot.student_count()} are enrolled",
                    })
        if violation_type in (None, 'TEACHER_LOAD'):
            per_teacher_day = defaultdict(int)
            for slot in slots:
                if slot.teacher_id is not None and slot.day_of_week:
                    per_teacher_day[(slot.teacher, slot.day_of_week)] += 1
            for (teacher, day), count in per_teacher_day.items():
                max_periods = SchedulingService.max_periods_for(teacher)
                if count > max_periods:
                    violations.append({
                        'type': 'TEACHER_LOAD',
                        'severity': 'HIGH',
                        'teacher_id': teacher.id,
                        'day_of_week': day,
                        'description': f"{teacher.full_name} teaches {count} periods on {day} "
                                       f"(maximum {max_periods})",
                    })
        return {
            'term_id': term_id,
            'violation_type': violation_type,
            'violations': _by_severity(violations),
            'count': len(violations),
        }

    # -------------------------------------------------------- optimization

    @staticmethod
    def _teacher_loads(slots):
        loads = defaultdict(int)
        for slot in slots:
            if slot.teacher_id is not None:
                loads[slot.teacher_id] += 1
        return loads

    @staticmethod
    def _room_utilization(slots):
        """Percent of the weekly periods each active room is in use"""
        usage = defaultdict(int)
        for slot in slots:
            if slot.room_id is not None:
                usage[slot.room_id] += 1
        rooms = Room.query.filter(Room.is_active.is_(True)).all()
        return {room: usage.get(room.id, 0) / SLOTS_PER_WEEK * 100 for room in rooms}

    @staticmethod
    def optimization_opportunities(term_id):
        slots = ConflictAnalysisService.term_slots(term_id)
        opportunities = []
        for room, utilization in ConflictAnalysisService._room_utilization(slots).items():
            if utilization < LOW_UTILIZATION_PERCENT:
                opportunities.append({
                    'type': 'LOW_ROOM_UTILIZATION',
                    'impact': 'MEDIUM',
                    'room_id': room.id,
                    'utilization': round(utilization, 2),
                    'description': f"Room {room.room_number} is used {utilization:.0f}% of the week",
                })

        loads = ConflictAnalysisService._teacher_loads(slots)
        if loads:
            average = sum(loads.values()) / len(loads)
            for teacher_id, load in loads.items():
                if load > average * LOAD_IMBALANCE_FACTOR:
                    opportunities.append({
                        'type': 'UNBALANCED_TEACHER_LOAD',
                        'impact': 'HIGH',
                        'teacher_id': teacher_id,
                        'load': load,
                        'average_load': round(average, 2),
                        'description': f"Teacher load of {load} is well above the average of {average:.1f}",
                    })
        return {'term_id': term_id, 'opportunities': opportunities, 'count': len(opportunities)}

    @staticmethod
    def quality_metrics(term_id):
        slots = ConflictAnalysisService.term_slots(term_id)
        conflicts = ConflictAnalysisService._double_bookings(slots)
        conflict_rate = len(conflicts) / len(slots) * 100 if slots else 0.0

        utilization = list(ConflictAnalysisService._room_utilization(slots).values())
        room_utilization = statistics.mean(utilization) if utilization else 0.0

        loads = list(ConflictAnalysisService._teacher_loads(slots).values())
        spread = statistics.pstdev(loads) if len(loads) > 1 else 0.0
        load_balance = 100 - min(100, spread * 10)

        overall = round((100 - min(conflict_rate, 100)) * 0.4 + room_utilization * 0.3 + load_balance * 0.3)
        return {
            'term_id': term_id,
            'total_slots': len(slots),
            'total_conflicts': len(conflicts),
            'conflict_rate': round(conflict_rate, 2),
            'room_utilization': round(room_utilization, 2),
            'teacher_load_balance': round(load_balance, 2),
            'overall_score': overall,
        }
