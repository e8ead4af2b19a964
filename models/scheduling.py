"""
Scheduling models for Brookfield School Information System
Teacher, Room and ScheduleSlot models
"""

from database import db
from datetime import datetime

DAYS_OF_WEEK = ('MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', 'SATURDAY', 'SUNDAY')
SCHOOL_DAYS = DAYS_OF_WEEK[:5]
ROOM_TYPES = ('CLASSROOM', 'LAB', 'SCIENCE_LAB', 'COMPUTER_LAB', 'GYM', 'AUDITORIUM', 'LIBRARY')
LAB_ROOM_TYPES = ('LAB', 'SCIENCE_LAB', 'COMPUTER_LAB')

slot_enrollment = db.Table(
    'slot_enrollment',
    db.Column('slot_id', db.Integer, db.ForeignKey('schedule_slot.id'), primary_key=True),
    db.Column('student_id', db.Integer, db.ForeignKey('student.id'), primary_key=True)
)

class Teacher(db.Model):
    """Teacher model"""
    __tablename__ = 'teacher'

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.String(20), unique=True, nullable=False, index=True)
    first_name = db.Column(db.String(50), nullable=False)
    last_name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    department = db.Column(db.String(50), nullable=True)
    certifications = db.Column(db.String(255), nullable=True)  # comma separated subject areas
    max_periods_per_day = db.Column(db.Integer, nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def get_certifications(self):
        """Certification subject areas as an upper-cased list"""
        if not self.certifications:
            return []
        return [c.strip().upper() for c in self.certifications.split(',') if c.strip()]

    def is_certified_for(self, subject_area):
        return bool(subject_area) and subject_area.strip().upper() in self.get_certifications()

    def to_dict(self):
        """Convert teacher to dictionary"""
        return {
            'id': self.id,
            'employee_id': self.employee_id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'email': self.email,
            'department': self.department,
            'certifications': self.get_certifications(),
            'max_periods_per_day': self.max_periods_per_day,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<Teacher {self.employee_id}: {self.full_name}>'

class Room(db.Model):
    """Room model"""
    __tablename__ = 'room'

    id = db.Column(db.Integer, primary_key=True)
    room_number = db.Column(db.String(20), unique=True, nullable=False)
    room_type = db.Column(db.String(20), nullable=False, default='CLASSROOM')
    capacity = db.Column(db.Integer, nullable=True)
    building = db.Column(db.String(50), nullable=True)
    is_active = db.Column(db.Boolean, default=True)

    @property
    def is_lab(self):
        return self.room_type in LAB_ROOM_TYPES

    @property
    def is_gym(self):
        return self.room_type == 'GYM'

    def to_dict(self):
        """Convert room to dictionary"""
        return {
            'id': self.id,
            'room_number': self.room_number,
            'room_type': self.room_type,
            'capacity': self.capacity,
            'building': self.building,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<Room {self.room_number}>'

class ScheduleSlot(db.Model):
    """A course section meeting at a day and period"""
    __tablename__ = 'schedule_slot'

    id = db.Column(db.Integer, primary_key=True)
    course_id = db.Column(db.Integer, db.ForeignKey('course.id'), nullable=False)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=True)
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'), nullable=True)
    term_id = db.Column(db.Integer, db.ForeignKey('grading_period.id'), nullable=True)
    day_of_week = db.Column(db.String(10), nullable=True)
    period_number = db.Column(db.Integer, nullable=True)
    start_time = db.Column(db.Time, nullable=True)
    end_time = db.Column(db.Time, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    course = db.relationship('Course', backref=db.backref('schedule_slots', lazy='dynamic'))
    teacher = db.relationship('Teacher', backref=db.backref('schedule_slots', lazy='dynamic'))
    room = db.relationship('Room', backref=db.backref('schedule_slots', lazy='dynamic'))
    students = db.relationship('Student', secondary=slot_enrollment, lazy='select',
                               backref=db.backref('schedule_slots', lazy='dynamic'))

    @property
    def has_time(self):
        return self.day_of_week is not None and self.period_number is not None

    def is_fully_assigned(self):
        """Teacher, room and meeting time are all set"""
        return self.teacher_id is not None and self.room_id is not None and self.has_time

    def time_key(self):
        return f"{self.day_of_week}_{self.period_number}"

    def student_count(self):
        return len(self.students)

    def to_dict(self):
        """Convert slot to dictionary"""
        return {
            'id': self.id,
            'course_id': self.course_id,
            'course_code': self.course.course_code if self.course else None,
            'course_name': self.course.course_name if self.course else None,
            'teacher_id': self.teacher_id,
            'teacher_name': self.teacher.full_name if self.teacher else None,
            'room_id': self.room_id,
            'room_number': self.room.room_number if self.room else None,
            'term_id': self.term_id,
            'day_of_week': self.day_of_week,
            'period_number': self.period_number,
            'start_time': self.start_time.strftime('%H:%M') if self.start_time else None,
            'end_time': self.end_time.strftime('%H:%M') if self.end_time else None,
            'student_count': self.student_count()
        }

    def __repr__(self):
        return f'<ScheduleSlot {self.id} course={self.course_id} {self.day_of_week} P{self.period_number}>'
