"""
Sorting helper utilities for Brookfield School Information System
Provides consistent sorting logic for students, teachers and rosters
"""

import re

class SortingHelpers:
    """Helper class for sorting operations"""

    @staticmethod
    def _natural_key(value):
        """Split digits out of an identifier so S2 sorts before S10"""
        parts = re.split(r'(\d+)', (value or '').upper())
        return [int(p) if p.isdigit() else p for p in parts]

    @staticmethod
    def get_student_sort_key(student):
        """
        Get sort key for student
        Priority: grade level, last name, first name, then student number
        """
        return (
            student.grade_level if student.grade_level is not None else 99,
            (student.last_name or '').upper(),
            (student.first_name or '').upper(),
            SortingHelpers._natural_key(student.student_number)
        )

    @staticmethod
    def get_teacher_sort_key(teacher):
        """Department first, then last name"""
        return (
            (teacher.department or '~').upper(),
            (teacher.last_name or '').upper(),
            (teacher.first_name or '').upper()
        )

    @staticmethod
    def sort_students(students):
        return sorted(students, key=SortingHelpers.get_student_sort_key)

    @staticmethod
    def sort_teachers(teachers):
        return sorted(teachers, key=SortingHelpers.get_teacher_sort_key)

    @staticmethod
    def sort_rooms(rooms):
        return sorted(rooms, key=lambda r: SortingHelpers._natural_key(r.room_number))
