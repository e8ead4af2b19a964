"""
Behavior models for Brookfield School Information System
"""

from database import db
from datetime import datetime, date

BEHAVIOR_TYPES = ('POSITIVE', 'NEGATIVE')
SEVERITY_LEVELS = ('MINOR', 'MODERATE', 'MAJOR', 'SEVERE')
CRITICAL_SEVERITIES = ('MAJOR', 'SEVERE')
CONTACT_METHODS = ('PHONE', 'EMAIL', 'IN_PERSON', 'TEXT_MESSAGE', 'LETTER')
BEHAVIOR_CATEGORIES = (
    'ACADEMIC_EXCELLENCE', 'HELPING_OTHERS', 'LEADERSHIP', 'IMPROVEMENT',
    'DISRUPTION', 'DEFIANCE', 'TARDINESS', 'BULLYING', 'FIGHTING',
    'DISRESPECT', 'ACADEMIC_DISHONESTY', 'TECHNOLOGY_MISUSE', 'OTHER'
)

class BehaviorIncident(db.Model):
    """Positive or negative behavior observed for a student"""
    __tablename__ = 'behavior_incident'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    incident_date = db.Column(db.Date, nullable=False, default=date.today)
    incident_time = db.Column(db.Time, nullable=True)
    location = db.Column(db.String(100), nullable=True)
    behavior_type = db.Column(db.String(10), nullable=False)
    behavior_category = db.Column(db.String(30), nullable=True)
    severity_level = db.Column(db.String(10), nullable=True)
    description = db.Column(db.Text, nullable=False)
    intervention_applied = db.Column(db.Text, nullable=True)
    reporting_teacher_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=True)
    parent_contacted = db.Column(db.Boolean, default=False)
    parent_contact_date = db.Column(db.Date, nullable=True)
    parent_contact_method = db.Column(db.String(20), nullable=True)
    admin_referral_required = db.Column(db.Boolean, default=False)
    referral_outcome = db.Column(db.Text, nullable=True)
    evidence_attached = db.Column(db.Boolean, default=False)
    evidence_file_path = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = db.relationship('Student', backref=db.backref('behavior_incidents', lazy='dynamic'))
    reporting_teacher = db.relationship('Teacher')

    def is_positive(self):
        return self.behavior_type == 'POSITIVE'

    def is_negative(self):
        return self.behavior_type == 'NEGATIVE'

    def is_critical(self):
        return self.is_negative() and self.severity_level in CRITICAL_SEVERITIES

    def to_dict(self):
        """Convert incident to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'incident_date': self.incident_date.isoformat() if self.incident_date else None,
            'incident_time': self.incident_time.strftime('%H:%M') if self.incident_time else None,
            'location': self.location,
            'behavior_type': self.behavior_type,
            'behavior_category': self.behavior_category,
            'severity_level': self.severity_level,
            'description': self.description,
            'intervention_applied': self.intervention_applied,
            'reporting_teacher_id': self.reporting_teacher_id,
            'parent_contacted': self.parent_contacted,
            'parent_contact_date': self.parent_contact_date.isoformat() if self.parent_contact_date else None,
            'parent_contact_method': self.parent_contact_method,
            'admin_referral_required': self.admin_referral_required,
            'referral_outcome': self.referral_outcome,
            'evidence_attached': self.evidence_attached,
            'evidence_file_path': self.evidence_file_path,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<BehaviorIncident {self.id} {self.behavior_type} student={self.student_id}>'
