"""
Academic structure models for Brookfield School Information System
AcademicYear, GradingPeriod and Course models
"""

from database import db
from datetime import datetime, date

ACADEMIC_YEAR_STATUSES = ('PLANNING', 'ACTIVE', 'CLOSED')
GRADING_PERIOD_TYPES = ('QUARTER', 'SEMESTER', 'TRIMESTER', 'FULL_YEAR')

course_enrollment = db.Table(
    'course_enrollment',
    db.Column('course_id', db.Integer, db.ForeignKey('course.id'), primary_key=True),
    db.Column('student_id', db.Integer, db.ForeignKey('student.id'), primary_key=True)
)

class AcademicYear(db.Model):
    """Academic year model"""
    __tablename__ = 'academic_year'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(20), unique=True, nullable=False)  # e.g., "2024-2025"
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    is_current = db.Column(db.Boolean, default=False)
    status = db.Column(db.String(20), nullable=False, default='PLANNING')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    grading_periods = db.relationship('GradingPeriod', backref='academic_year', lazy='dynamic',
                                      order_by='GradingPeriod.start_date')

    def contains(self, day):
        return self.start_date <= day <= self.end_date

    def to_dict(self):
        """Convert academic year to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'is_current': self.is_current,
            'status': self.status,
            'grading_period_count': self.grading_periods.count(),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<AcademicYear {self.name}>'

class GradingPeriod(db.Model):
    """Quarter, semester or trimester within an academic year"""
    __tablename__ = 'grading_period'

    id = db.Column(db.Integer, primary_key=True)
    academic_year_id = db.Column(db.Integer, db.ForeignKey('academic_year.id'), nullable=False)
    name = db.Column(db.String(50), nullable=False)
    period_type = db.Column(db.String(20), nullable=False, default='QUARTER')
    period_number = db.Column(db.Integer, nullable=False, default=1)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('academic_year_id', 'period_type', 'period_number',
                                          name='unique_year_period_number'),)

    def overlaps(self, start_date, end_date):
        return self.start_date <= end_date and start_date <= self.end_date

    def is_current(self, today=None):
        today = today or date.today()
        return self.start_date <= today <= self.end_date

    def to_dict(self):
        """Convert grading period to dictionary"""
        return {
            'id': self.id,
            'academic_year_id': self.academic_year_id,
            'academic_year': self.academic_year.name if self.academic_year else None,
            'name': self.name,
            'period_type': self.period_type,
            'period_number': self.period_number,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'is_active': self.is_active,
            'is_current': self.is_current()
        }

    def __repr__(self):
        return f'<GradingPeriod {self.name}>'

class Course(db.Model):
    """Course offered to students"""
    __tablename__ = 'course'

    id = db.Column(db.Integer, primary_key=True)
    course_code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    course_name = db.Column(db.String(100), nullable=False)
    subject_area = db.Column(db.String(50), nullable=True)
    grade_level = db.Column(db.Integer, nullable=True)
    credits = db.Column(db.Float, default=1.0)
    max_students = db.Column(db.Integer, default=30)
    requires_lab = db.Column(db.Boolean, default=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    students = db.relationship('Student', secondary=course_enrollment, lazy='dynamic',
                               backref=db.backref('courses', lazy='dynamic'))
    teacher = db.relationship('Teacher', backref=db.backref('courses', lazy='dynamic'))

    @property
    def is_physical_education(self):
        area = (self.subject_area or '').upper()
        return area in ('PE', 'PHYSICAL EDUCATION', 'PHYSICAL_EDUCATION')

    def get_enrolled_count(self):
        return self.students.count()

    def to_dict(self):
        """Convert course to dictionary"""
        return {
            'id': self.id,
            'course_code': self.course_code,
            'course_name': self.course_name,
            'subject_area': self.subject_area,
            'grade_level': self.grade_level,
            'credits': self.credits,
            'max_students': self.max_students,
            'requires_lab': self.requires_lab,
            'teacher_id': self.teacher_id,
            'teacher_name': self.teacher.full_name if self.teacher else None,
            'enrolled_count': self.get_enrolled_count(),
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<Course {self.course_code}: {self.course_name}>'
