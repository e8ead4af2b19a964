"""
Health office models for Brookfield School Information System
HealthRecord and NurseVisit models
"""

from database import db
from datetime import datetime, date, timedelta

SCREENING_RESULTS = ('PASS', 'FAIL', 'REFER')
VISIT_DISPOSITIONS = ('RETURNED_TO_CLASS', 'SENT_HOME', 'CALLED_911', 'REFERRED_TO_PHYSICIAN', 'STAYED_IN_OFFICE')
PARENT_CONTACT_METHODS = ('PHONE', 'EMAIL', 'IN_PERSON', 'TEXT_MESSAGE')

class HealthRecord(db.Model):
    """Health record, one per student"""
    __tablename__ = 'health_record'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), unique=True, nullable=False)
    allergies = db.Column(db.Text, nullable=True)
    chronic_conditions = db.Column(db.Text, nullable=True)
    medications = db.Column(db.Text, nullable=True)
    emergency_contact_name = db.Column(db.String(100), nullable=False)
    emergency_contact_relationship = db.Column(db.String(50), nullable=False)
    emergency_contact_phone = db.Column(db.String(20), nullable=False)
    physician_name = db.Column(db.String(100), nullable=True)
    physician_phone = db.Column(db.String(20), nullable=True)
    vision_screening_date = db.Column(db.Date, nullable=True)
    vision_screening_result = db.Column(db.String(10), nullable=True)
    hearing_screening_date = db.Column(db.Date, nullable=True)
    hearing_screening_result = db.Column(db.String(10), nullable=True)
    high_risk = db.Column(db.Boolean, default=False)
    record_complete = db.Column(db.Boolean, default=False)
    created_by_staff_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = db.relationship('Student', backref=db.backref('health_record', uselist=False))

    @staticmethod
    def screening_due(screening_date, today=None):
        """Screenings are due when never done or older than a year"""
        today = today or date.today()
        return screening_date is None or screening_date < today - timedelta(days=365)

    def to_dict(self):
        """Convert health record to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'allergies': self.allergies,
            'chronic_conditions': self.chronic_conditions,
            'medications': self.medications,
            'emergency_contact_name': self.emergency_contact_name,
            'emergency_contact_relationship': self.emergency_contact_relationship,
            'emergency_contact_phone': self.emergency_contact_phone,
            'physician_name': self.physician_name,
            'physician_phone': self.physician_phone,
            'vision_screening_date': self.vision_screening_date.isoformat() if self.vision_screening_date else None,
            'vision_screening_result': self.vision_screening_result,
            'hearing_screening_date': self.hearing_screening_date.isoformat() if self.hearing_screening_date else None,
            'hearing_screening_result': self.hearing_screening_result,
            'high_risk': self.high_risk,
            'record_complete': self.record_complete,
            'created_by_staff_id': self.created_by_staff_id,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self):
        return f'<HealthRecord student={self.student_id}>'

class NurseVisit(db.Model):
    """Health office visit"""
    __tablename__ = 'nurse_visit'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    visit_date = db.Column(db.Date, nullable=False, default=date.today)
    check_in_time = db.Column(db.DateTime, nullable=False, default=datetime.now)
    check_out_time = db.Column(db.DateTime, nullable=True)
    visit_reason = db.Column(db.String(100), nullable=False)
    chief_complaint = db.Column(db.Text, nullable=True)
    temperature = db.Column(db.Float, nullable=True)
    has_fever = db.Column(db.Boolean, default=False)
    treatment_provided = db.Column(db.Text, nullable=True)
    disposition = db.Column(db.String(30), nullable=True)
    nurse_staff_id = db.Column(db.Integer, nullable=True)
    parent_notified = db.Column(db.Boolean, default=False)
    parent_notification_time = db.Column(db.DateTime, nullable=True)
    parent_contact_method = db.Column(db.String(20), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    student = db.relationship('Student', backref=db.backref('nurse_visits', lazy='dynamic'))

    def is_active(self):
        """Checked in and not yet checked out"""
        return self.check_out_time is None

    def needs_parent_notification(self):
        return not self.parent_notified and (self.disposition == 'SENT_HOME' or self.has_fever)

    def duration_minutes(self):
        if not self.check_out_time:
            return None
        return int((self.check_out_time - self.check_in_time).total_seconds() // 60)

    def to_dict(self):
        """Convert nurse visit to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'visit_date': self.visit_date.isoformat() if self.visit_date else None,
            'check_in_time': self.check_in_time.isoformat() if self.check_in_time else None,
            'check_out_time': self.check_out_time.isoformat() if self.check_out_time else None,
            'visit_reason': self.visit_reason,
            'chief_complaint': self.chief_complaint,
            'temperature': self.temperature,
            'has_fever': self.has_fever,
            'treatment_provided': self.treatment_provided,
            'disposition': self.disposition,
            'nurse_staff_id': self.nurse_staff_id,
            'parent_notified': self.parent_notified,
            'parent_notification_time': self.parent_notification_time.isoformat() if self.parent_notification_time else None,
            'parent_contact_method': self.parent_contact_method,
            'notes': self.notes,
            'active': self.is_active(),
            'duration_minutes': self.duration_minutes()
        }

    def __repr__(self):
        return f'<NurseVisit {self.id} student={self.student_id} {self.visit_date}>'
