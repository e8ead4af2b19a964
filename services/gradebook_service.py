"""
Gradebook service for Brookfield School Information System
Weighted categories, assignments, grade entry and grade calculations
"""

import logging
from datetime import date, datetime

from models.academic import Course
from models.gradebook import GradeCategory, GradebookAssignment, StudentGrade, DEFAULT_CATEGORIES
from models.student import Student
from utils.db_helpers import safe_add_and_commit, safe_add_all_and_commit, safe_update_and_commit, get_or_raise
from utils.responses import StateError
from utils.validators import require_fields, parse_str, parse_date, parse_int, parse_float

logger = logging.getLogger(__name__)

FAILING_PERCENTAGE = 60.0
WARNING_PERCENTAGE = 70.0

# minimum GPA -> standing, highest first
ACADEMIC_STANDINGS = (
    (3.75, 'HIGH_HONORS', 'Student is on the High Honor Roll'),
    (3.5, 'HONORS', 'Student is on the Honor Roll'),
    (3.0, 'GOOD_STANDING', 'Student is in good academic standing'),
    (2.0, 'ACADEMIC_WARNING', 'Student is on academic warning - GPA below 3.0'),
    (0.0, 'ACADEMIC_PROBATION', 'Student is on academic probation - GPA below 2.0'),
)

def category_average(percentages, drop_lowest):
    """Mean of percentages after dropping the lowest N, always keeping one"""
    if not percentages:
        return 0.0
    ordered = sorted(percentages)
    to_drop = min(drop_lowest or 0, len(ordered) - 1)
    remaining = ordered[to_drop:]
    return sum(remaining) / len(remaining)

class GradebookService:
    """Gradebook service class"""

    # ------------------------------------------------------------ categories

    @staticmethod
    def get_categories(course_id):
        get_or_raise(Course, course_id, 'Course')
        return GradeCategory.query.filter_by(course_id=course_id).order_by(
            GradeCategory.display_order, GradeCategory.id).all()

    @staticmethod
    def create_default_categories(course_id):
        course = get_or_raise(Course, course_id, 'Course')
        if GradeCategory.query.filter_by(course_id=course.id).count() > 0:
            raise StateError(f"Course {course.course_code} already has grade categories")
        categories = [
            GradeCategory(course_id=course.id, name=name, weight=weight, drop_lowest=drop, color=color,
                          display_order=index)
            for index, (name, weight, drop, color) in enumerate(DEFAULT_CATEGORIES)
        ]
        safe_add_all_and_commit(categories)
        logger.info("Created default grade categories for course %s", course.course_code)
        return categories

    @staticmethod
    def update_category_weights(weights):
        """weights maps category id to percent; a course's weights must total 100"""
        if not isinstance(weights, dict) or not weights:
            raise ValueError("weights must be a non-empty object of category id to weight")
        proposed = {}
        for category_id, weight in weights.items():
            category = get_or_raise(GradeCategory, parse_int(category_id, 'category_id'), 'Grade category')
            proposed[category] = parse_float(weight, 'weight', minimum=0)

        for course_id in {c.course_id for c in proposed}:
            total = sum(proposed.get(c, c.weight) for c in GradeCategory.query.filter_by(course_id=course_id).all())
            if abs(total - 100.0) > 0.01:
                raise ValueError(f"Category weights must total 100 (got {total:.2f})")
        for category, weight in proposed.items():
            category.weight = weight
        safe_update_and_commit()
        return list(proposed)

    # ----------------------------------------------------------- assignments

    @staticmethod
    def get_assignment(assignment_id):
        return get_or_raise(GradebookAssignment, assignment_id, 'Assignment')

    @staticmethod
    def create_assignment(data):
        require_fields(data, 'course_id', 'category_id', 'title')
        course = get_or_raise(Course, parse_int(data['course_id'], 'course_id'), 'Course')
        category = get_or_raise(GradeCategory, parse_int(data['category_id'], 'category_id'), 'Grade category')
        if category.course_id != course.id:
            raise ValueError(f"Category {category.name} does not belong to course {course.course_code}")

        assignment = GradebookAssignment(
            course_id=course.id,
            category_id=category.id,
            title=parse_str(data['title'], 'title'),
            description=data.get('description'),
            max_points=parse_float(data.get('max_points', 100), 'max_points', minimum=0.01),
            assigned_date=parse_date(data.get('assigned_date'), 'assigned_date', required=False) or date.today(),
            due_date=parse_date(data.get('due_date'), 'due_date', required=False),
            late_penalty_per_day=parse_float(data.get('late_penalty_per_day', 0), 'late_penalty_per_day', minimum=0),
            max_late_penalty=parse_float(data.get('max_late_penalty', 50), 'max_late_penalty', minimum=0),
            published=False
        )
        safe_add_and_commit(assignment)
        logger.info("Created assignment '%s' in course %s", assignment.title, course.course_code)
        return assignment

    @staticmethod
    def publish_assignment(assignment_id):
        assignment = GradebookService.get_assignment(assignment_id)
        assignment.published = True
        safe_update_and_commit()
        return assignment

    @staticmethod
    def get_assignments_for_course(course_id):
        get_or_raise(Course, course_id, 'Course')
        return GradebookAssignment.query.filter_by(course_id=course_id).order_by(
            GradebookAssignment.due_date, GradebookAssignment.id).all()

    @staticmethod
    def get_assignments_by_category(category_id):
        category = get_or_raise(GradeCategory, category_id, 'Grade category')
        return category.assignments.order_by(GradebookAssignment.due_date).all()

    # ----------------------------------------------------------------- grades

    @staticmethod
    def _grade_for(student_id, assignment_id):
        student = get_or_raise(Student, student_id, 'Student')
        assignment = GradebookService.get_assignment(assignment_id)
        grade = StudentGrade.query.filter_by(student_id=student.id, assignment_id=assignment.id).first()
        if grade is None:
            grade = StudentGrade(student_id=student.id, assignment_id=assignment.id)
        return grade, assignment

    @staticmethod
    def enter_grade(student_id, assignment_id, score, submitted_date=None, comments=None):
        """Enter or replace a grade; work submitted after the due date is LATE"""
        grade, assignment = GradebookService._grade_for(student_id, assignment_id)
        score = parse_float(score, 'score', minimum=0)
        if score > assignment.max_points:
            raise ValueError(f"score must be at most {assignment.max_points}")
        submitted_date = parse_date(submitted_date, 'submitted_date', required=False) or date.today()

        days_late = 0
        if assignment.due_date is not None and submitted_date > assignment.due_date:
            days_late = (submitted_date - assignment.due_date).days
        grade.score = score
        grade.days_late = days_late
        grade.penalty_applied = assignment.late_penalty(days_late)
        grade.status = 'LATE' if days_late > 0 else 'GRADED'
        grade.comments = comments
        grade.graded_date = datetime.now()
        safe_add_and_commit(grade)
        logger.info("Entered grade %s for student %s on assignment %s", score, grade.student_id, assignment.id)
        return grade

    @staticmethod
    def bulk_enter_grades(assignment_id, scores):
        """scores maps student id to score; returns the number saved"""
        if not isinstance(scores, dict) or not scores:
            raise ValueError("scores must be a non-empty object of student id to score")
        GradebookService.get_assignment(assignment_id)
        saved = 0
        for student_id, score in scores.items():
            try:
                GradebookService.enter_grade(parse_int(student_id, 'student_id'), assignment_id, score)
                saved += 1
            except (ValueError, StateError) as e:
                logger.warning("Skipped grade for student %s: %s", student_id, e)
        return saved

    @staticmethod
    def excuse_grade(student_id, assignment_id, reason=None):
        grade, _ = GradebookService._grade_for(student_id, assignment_id)
        grade.status = 'EXCUSED'
        grade.score = None
        grade.penalty_applied = 0.0
        grade.comments = reason
        return safe_add_and_commit(grade)

    @staticmethod
    def mark_missing(student_id, assignment_id):
        grade, _ = GradebookService._grade_for(student_id, assignment_id)
        grade.status = 'MISSING'
        grade.score = 0.0
        return safe_add_and_commit(grade)

    # ----------------------------------------------------------- calculations

    @staticmethod
    def calculate_course_grade(student_id, course_id):
        """Weighted course grade; categories without graded work are left out of the weighting"""
        course = get_or_raise(Course, course_id, 'Course')
        categories = GradebookService.get_categories(course.id)
        grades = StudentGrade.query.join(GradebookAssignment).filter(
            StudentGrade.student_id == student_id,
            GradebookAssignment.course_id == course.id
        ).all()

        by_category = {}
        for grade in grades:
            if grade.counts_toward_grade():
                by_category.setdefault(grade.assignment.category_id, []).append(grade.percentage())

        category_grades = []
        weighted_total = 0.0
        weight_total = 0.0
        for category in categories:
            percentages = by_category.get(category.id)
            if not percentages:
                continue
            average = category_average(percentages, category.drop_lowest)
            category_grades.append({
                'category_id': category.id,
                'category_name': category.name,
                'weight': category.weight,
                'average': round(average, 2),
                'assignment_count': len(percentages)
            })
            weighted_total += average * category.weight
            weight_total += category.weight

        final = weighted_total / weight_total if weight_total else 0.0
        has_grades = bool(category_grades)
        return {
            'student_id': student_id,
            'course_id': course.id,
            'course_name': course.course_name,
            'category_grades': category_grades,
            'final_percentage': round(final, 2),
            'letter_grade': StudentGrade.calculate_letter_grade(final) if has_grades else '-',
            'gpa_points': StudentGrade.calculate_gpa_points(final) if has_grades else None,
            'total_assignments': len(grades),
            'graded_assignments': sum(1 for g in grades if g.score is not None),
            'missing_assignments': sum(1 for g in grades if g.status == 'MISSING'),
            'excused_assignments': sum(1 for g in grades if g.status == 'EXCUSED')
        }

    @staticmethod
    def get_class_gradebook(course_id):
        course = get_or_raise(Course, course_id, 'Course')
        students = course.students.order_by(Student.last_name, Student.first_name).all()
        student_grades = [GradebookService.calculate_course_grade(s.id, course.id) for s in students]
        finals = [g['final_percentage'] for g in student_grades]
        return {
            'course_id': course.id,
            'course_name': course.course_name,
            'categories': [c.to_dict() for c in GradebookService.get_categories(course.id)],
            'assignments': [a.to_dict() for a in GradebookService.get_assignments_for_course(course.id)],
            'student_grades': student_grades,
            'class_average': round(sum(finals) / len(finals), 2) if finals else 0.0,
            'class_high': max(finals) if finals else 0.0,
            'class_low': min(finals) if finals else 0.0,
            'student_count': len(finals)
        }

    @staticmethod
    def _course_grades(student_id):
        student = get_or_raise(Student, student_id, 'Student')
        return [GradebookService.calculate_course_grade(student.id, c.id) for c in student.courses]

    @staticmethod
    def get_student_alerts(student_id):
        alerts = []
        for grade in GradebookService._course_grades(student_id):
            final = grade['final_percentage']
            if grade['gpa_points'] is not None:
                if final < FAILING_PERCENTAGE:
                    alerts.append({
                        'alert_type': 'FAILING', 'severity': 'HIGH',
                        'course_id': grade['course_id'], 'course_name': grade['course_name'],
                        'current_grade': final,
                        'message': f"Failing grade in {grade['course_name']}: {final:.1f}%"
                    })
                elif final < WARNING_PERCENTAGE:
                    alerts.append({
                        'alert_type': 'WARNING', 'severity': 'MEDIUM',
                        'course_id': grade['course_id'], 'course_name': grade['course_name'],
                        'current_grade': final,
                        'message': f"Grade warning in {grade['course_name']}: {final:.1f}%"
                    })
            if grade['missing_assignments'] > 0:
                alerts.append({
                    'alert_type': 'MISSING_ASSIGNMENTS', 'severity': 'MEDIUM',
                    'course_id': grade['course_id'], 'course_name': grade['course_name'],
                    'message': f"{grade['missing_assignments']} missing assignment(s) in {grade['course_name']}"
                })
        return alerts

    @staticmethod
    def calculate_student_gpa(student_id):
        course_grades = GradebookService._course_grades(student_id)
        points = [g['gpa_points'] for g in course_grades if g['gpa_points'] is not None]
        gpa = round(sum(points) / len(points), 2) if points else 0.0
        return {
            'student_id': student_id,
            'current_gpa': gpa,
            'total_courses': len(points),
            'course_grades': course_grades
        }

    @staticmethod
    def get_academic_standing(student_id):
        gpa_data = GradebookService.calculate_student_gpa(student_id)
        gpa = gpa_data['current_gpa']
        for minimum, standing, message in ACADEMIC_STANDINGS:
            if gpa >= minimum:
                break
        return {
            'student_id': student_id,
            'standing': standing,
            'gpa': gpa,
            'message': message,
            'failing_courses': sum(1 for g in gpa_data['course_grades']
                                   if g['gpa_points'] is not None and g['final_percentage'] < FAILING_PERCENTAGE)
        }

