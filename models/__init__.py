"""
Database models package for Brookfield School Information System
"""

from .student import Student
from .academic import AcademicYear, GradingPeriod, Course, course_enrollment
from .scheduling import Teacher, Room, ScheduleSlot, slot_enrollment
from .attendance import AttendanceRecord
from .behavior import BehaviorIncident
from .health import HealthRecord, NurseVisit
from .immunization import Immunization
from .fees import Fee, StudentFee, FeePayment
from .cafeteria import MealPlan, CafeteriaAccount, MealTransaction, Menu, MenuItem
from .gifted import GiftedStudent, GiftedAssessment, GiftedEducationPlan, GiftedServiceRecord
from .gradebook import GradeCategory, GradebookAssignment, StudentGrade
from .audit import AuditLog

__all__ = [
    'Student', 'AcademicYear', 'GradingPeriod', 'Course', 'course_enrollment',
    'Teacher', 'Room', 'ScheduleSlot', 'slot_enrollment', 'AttendanceRecord',
    'BehaviorIncident', 'HealthRecord', 'NurseVisit', 'Immunization',
    'Fee', 'StudentFee', 'FeePayment', 'MealPlan', 'CafeteriaAccount',
    'MealTransaction', 'Menu', 'MenuItem', 'GiftedStudent', 'GiftedAssessment',
    'GiftedEducationPlan', 'GiftedServiceRecord', 'GradeCategory',
    'GradebookAssignment', 'StudentGrade', 'AuditLog'
]
