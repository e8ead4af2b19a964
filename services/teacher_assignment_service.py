"""
Smart teacher assignment for Brookfield School Information System
Greedy matching of unstaffed courses to the best available teacher
"""

import logging

from models.academic import Course
from models.scheduling import Teacher
from services.scheduling_service import SchedulingService
from utils.db_helpers import safe_update_and_commit

logger = logging.getLogger(__name__)

CERTIFICATION_POINTS = 50
DEPARTMENT_POINTS = 20
REMAINING_LOAD_POINTS = 20
COURSE_COUNT_PENALTY = 2

def _matches_department(teacher, course):
    if not teacher.department or not course.subject_area:
        return False
    return teacher.department.strip().upper() == course.subject_area.strip().upper()

def score_teacher(teacher, course, current_courses, max_courses):
    """
    Score a teacher for a course
    Certification match outweighs department match; spare capacity and a
    light course list break ties
    """
    score = 0.0
    reasons = []
    if teacher.is_certified_for(course.subject_area):
        score += CERTIFICATION_POINTS
        reasons.append('certified')
    if _matches_department(teacher, course):
        score += DEPARTMENT_POINTS
        reasons.append('department')
    remaining = max(0, max_courses - current_courses)
    score += REMAINING_LOAD_POINTS * remaining / max_courses if max_courses else 0
    score -= COURSE_COUNT_PENALTY * current_courses
    return round(score, 2), reasons

class TeacherAssignmentService:
    """Assign teachers to courses that have none"""

    @staticmethod
    def unassigned_courses():
        return Course.query.filter(Course.teacher_id.is_(None), Course.is_active.is_(True)) \
            .order_by(Course.course_code).all()

    @staticmethod
    def _best_teacher(course, teachers, loads):
        best = None
        for teacher in teachers:
            max_courses = SchedulingService.max_periods_for(teacher)
            current = loads[teacher.id]
            if current >= max_courses:
                continue
            score, reasons = score_teacher(teacher, course, current, max_courses)
            # a course with a subject needs a certified or same-department teacher
            if course.subject_area and not reasons:
                continue
            if best is None or score > best[1]:
                best = (teacher, score, reasons)
        return best

    @staticmethod
    def assign_teachers(preview=False):
        """
        Assign the highest scoring teacher below maximum load to every course
        without one. Preview returns the proposals without saving anything.
        """
        teachers = Teacher.query.filter(Teacher.is_active.is_(True)).order_by(Teacher.id).all()
        loads = {t.id: t.courses.filter(Course.is_active.is_(True)).count() for t in teachers}
        courses = TeacherAssignmentService.unassigned_courses()

        proposals = []
        unassigned = []
        for course in courses:
            best = TeacherAssignmentService._best_teacher(course, teachers, loads)
            if best is None:
                unassigned.append({
                    'course_id': course.id,
                    'course_code': course.course_code,
                    'reason': "No qualified teacher below maximum load",
                })
                continue
            teacher, score, reasons = best
            loads[teacher.id] += 1
            proposals.append({
                'course_id': course.id,
                'course_code': course.course_code,
                'teacher_id': teacher.id,
                'teacher_name': teacher.full_name,
                'score': score,
                'reasons': reasons,
            })
            if not preview:
                course.teacher = teacher
                for slot in course.schedule_slots.filter_by(teacher_id=None):
                    slot.teacher = teacher

        if proposals and not preview:
            safe_update_and_commit()
            logger.info("Assigned teachers to %d of %d courses", len(proposals), len(courses))

        return {
            'preview': preview,
            'courses_processed': len(courses),
            'assigned': 0 if preview else len(proposals),
            'unassigned': len(unassigned),
            'proposals': proposals,
            'unassigned_courses': unassigned,
        }
