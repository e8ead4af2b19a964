"""
Attendance models for Brookfield School Information System
Daily and period attendance records
"""

from database import db
from datetime import datetime, date

ATTENDANCE_STATUSES = ('PRESENT', 'ABSENT', 'TARDY', 'EXCUSED_ABSENT', 'UNEXCUSED_ABSENT', 'REMOTE')
PRESENT_STATUSES = ('PRESENT', 'TARDY', 'REMOTE')
ABSENT_STATUSES = ('ABSENT', 'EXCUSED_ABSENT', 'UNEXCUSED_ABSENT')

class AttendanceRecord(db.Model):
    """Attendance record for a student on a date (optionally for one period)"""
    __tablename__ = 'attendance_record'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=True)
    attendance_date = db.Column(db.Date, nullable=False, default=date.today)
    period_number = db.Column(db.Integer, nullable=True)
    status = db.Column(db.String(20), nullable=False)
    notes = db.Column(db.String(255), nullable=True)
    recorded_by = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Prevent duplicate attendance for same student, date and period
    __table_args__ = (db.UniqueConstraint('student_id', 'attendance_date', 'period_number',
                                          name='unique_student_date_period_attendance'),)

    student = db.relationship('Student', backref=db.backref('attendance_records', lazy='dynamic'))
    course = db.relationship('Course')

    def is_present(self):
        """Present, tardy and remote all count toward attendance"""
        return self.status in PRESENT_STATUSES

    def is_absent(self):
        return self.status in ABSENT_STATUSES

    def to_dict(self):
        """Convert attendance record to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'course_id': self.course_id,
            'course_code': self.course.course_code if self.course else None,
            'attendance_date': self.attendance_date.isoformat() if self.attendance_date else None,
            'period_number': self.period_number,
            'status': self.status,
            'notes': self.notes,
            'recorded_by': self.recorded_by,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self):
        return f'<AttendanceRecord {self.student_id} - {self.attendance_date} - {self.status}>'
