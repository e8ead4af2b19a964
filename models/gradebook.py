"""
Gradebook models for Brookfield School Information System
GradeCategory, GradebookAssignment and StudentGrade models
"""

from database import db
from datetime import datetime

GRADE_STATUSES = ('PENDING', 'GRADED', 'LATE', 'MISSING', 'EXCUSED')

# name, weight, drop lowest, color
DEFAULT_CATEGORIES = (
    ('Tests', 30.0, 0, '#F44336'),
    ('Quizzes', 20.0, 1, '#FF9800'),
    ('Homework', 20.0, 0, '#4CAF50'),
    ('Projects', 20.0, 0, '#9C27B0'),
    ('Participation', 10.0, 0, '#03A9F4'),
)

LETTER_GRADE_SCALE = (
    (97, 'A+'), (93, 'A'), (90, 'A-'),
    (87, 'B+'), (83, 'B'), (80, 'B-'),
    (77, 'C+'), (73, 'C'), (70, 'C-'),
    (67, 'D+'), (63, 'D'), (60, 'D-'),
)

GPA_POINT_SCALE = (
    (93, 4.0), (90, 3.7), (87, 3.3), (83, 3.0), (80, 2.7), (77, 2.3),
    (73, 2.0), (70, 1.7), (67, 1.3), (63, 1.0), (60, 0.7),
)

class GradeCategory(db.Model):
    """Weighted assignment category for a course"""
    __tablename__ = 'grade_category'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    name = db.Column(db.String(50), nullable=False)
    weight = db.Column(db.Float, nullable=False)
    drop_lowest = db.Column(db.Integer, nullable=False, default=0)
    color = db.Column(db.String(7), nullable=True)
    display_order = db.Column(db.Integer, default=0)

    __table_args__ = (db.UniqueConstraint('course_id', 'name', name='unique_course_category'),)

    assignments = db.relationship('GradebookAssignment', backref='category', lazy='dynamic')

    def to_dict(self):
        """Convert category to dictionary"""
        return {
            'id': self.id,
            'course_id': self.course_id,
            'name': self.name,
            'weight': self.weight,
            'drop_lowest': self.drop_lowest,
            'color': self.color,
            'display_order': self.display_order
        }

    def __repr__(self):
        return f'<GradeCategory {self.name} {self.weight}%>'

class GradebookAssignment(db.Model):
    """Gradable assignment in a course"""
    __tablename__ = 'gradebook_assignment'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey('grade_category.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    max_points = db.Column(db.Float, nullable=False, default=100.0)
    assigned_date = db.Column(db.Date, nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    published = db.Column(db.Boolean, default=False)
    late_penalty_per_day = db.Column(db.Float, nullable=False, default=0.0)  # percent per day
    max_late_penalty = db.Column(db.Float, nullable=False, default=50.0)  # percent cap
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    course = db.relationship('Course')
    grades = db.relationship('StudentGrade', backref='assignment', lazy='dynamic')

    def late_penalty(self, days_late):
        """Percent deducted for a submission days_late days past due"""
        if not days_late or days_late <= 0:
            return 0.0
        return min(days_late * self.late_penalty_per_day, self.max_late_penalty)

    def to_dict(self):
        """Convert assignment to dictionary"""
        return {
            'id': self.id,
            'course_id': self.course_id,
            'category_id': self.category_id,
            'category_name': self.category.name if self.category else None,
            'title': self.title,
            'description': self.description,
            'max_points': self.max_points,
            'assigned_date': self.assigned_date.isoformat() if self.assigned_date else None,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'published': self.published,
            'late_penalty_per_day': self.late_penalty_per_day,
            'max_late_penalty': self.max_late_penalty
        }

    def __repr__(self):
        return f'<GradebookAssignment {self.title}>'

class StudentGrade(db.Model):
    """Score earned by a student on an assignment"""
    __tablename__ = 'student_grade'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    assignment_id = db.Column(db.Integer, db.ForeignKey('gradebook_assignment.id'), nullable=False)
    score = db.Column(db.Float, nullable=True)
    status = db.Column(db.String(10), nullable=False, default='PENDING')
    days_late = db.Column(db.Integer, default=0)
    penalty_applied = db.Column(db.Float, default=0.0)
    comments = db.Column(db.Text, nullable=True)
    graded_date = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('student_id', 'assignment_id', name='unique_student_assignment_grade'),)

    student = db.relationship('Student')

    def counts_toward_grade(self):
        """Graded, late and missing work count; excused and pending do not"""
        return self.status in ('GRADED', 'LATE', 'MISSING')

    def adjusted_score(self):
        """Score after late penalty; missing work counts as zero"""
        if self.status == 'MISSING' or self.score is None:
            return 0.0
        return self.score * (1 - (self.penalty_applied or 0) / 100.0)

    def percentage(self):
        max_points = self.assignment.max_points if self.assignment else 0
        if not max_points:
            return 0.0
        return self.adjusted_score() / max_points * 100.0

    @staticmethod
    def calculate_letter_grade(percentage):
        """Letter grade for a percentage"""
        for threshold, letter in LETTER_GRADE_SCALE:
            if percentage >= threshold:
                return letter
        return 'F'

    @staticmethod
    def calculate_gpa_points(percentage):
        """4.0-scale points for a percentage"""
        for threshold, points in GPA_POINT_SCALE:
            if percentage >= threshold:
                return points
        return 0.0

    def to_dict(self):
        """Convert grade to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'assignment_id': self.assignment_id,
            'assignment_title': self.assignment.title if self.assignment else None,
            'score': self.score,
            'status': self.status,
            'days_late': self.days_late,
            'penalty_applied': self.penalty_applied,
            'adjusted_score': round(self.adjusted_score(), 2) if self.counts_toward_grade() else None,
            'comments': self.comments,
            'graded_date': self.graded_date.isoformat() if self.graded_date else None
        }

    def __repr__(self):
        return f'<StudentGrade student={self.student_id} assignment={self.assignment_id} {self.status}>'
