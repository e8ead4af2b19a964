"""
Student models for Brookfield School Information System
Student model and enrollment status values
"""

from database import db
from datetime import datetime

ENROLLMENT_STATUSES = ('ACTIVE', 'GRADUATED', 'WITHDRAWN', 'TRANSFERRED')

class Student(db.Model):
    """Student model"""
    __tablename__ = 'student'

    id = db.Column(db.Integer, primary_key=True)
    student_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    grade_level = db.Column(db.Integer, nullable=False)
    date_of_birth = db.Column(db.Date, nullable=True)
    email = db.Column(db.String(120), nullable=True)
    enrollment_status = db.Column(db.String(20), nullable=False, default='ACTIVE')
    enrollment_date = db.Column(db.Date, nullable=True)
    graduation_date = db.Column(db.Date, nullable=True)
    gpa = db.Column(db.Float, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    is_active = db.Column(db.Boolean, default=True)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def graduate(self, graduation_date):
        """Mark student as graduated"""
        self.enrollment_status = 'GRADUATED'
        self.graduation_date = graduation_date
        self.is_active = False

    def withdraw(self, transferred=False):
        """Withdraw student from the school"""
        self.enrollment_status = 'TRANSFERRED' if transferred else 'WITHDRAWN'
        self.is_active = False

    def to_dict(self):
        """Convert student to dictionary"""
        return {
            'id': self.id,
            'student_number': self.student_number,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'grade_level': self.grade_level,
            'date_of_birth': self.date_of_birth.isoformat() if self.date_of_birth else None,
            'email': self.email,
            'enrollment_status': self.enrollment_status,
            'enrollment_date': self.enrollment_date.isoformat() if self.enrollment_date else None,
            'graduation_date': self.graduation_date.isoformat() if self.graduation_date else None,
            'gpa': self.gpa,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<Student {self.student_number}: {self.full_name}>'
