"""
Immunization models for Brookfield School Information System
"""

from database import db
from datetime import datetime

# code -> (display name, typical dose count, required for school entry)
VACCINE_TYPES = {
    'DTAP': ('Diphtheria, Tetanus, Pertussis', 5, True),
    'POLIO': ('Polio (IPV)', 4, True),
    'MMR': ('Measles, Mumps, Rubella', 2, True),
    'HEPATITIS_B': ('Hepatitis B', 3, True),
    'VARICELLA': ('Varicella (Chickenpox)', 2, True),
    'HEPATITIS_A': ('Hepatitis A', 2, False),
    'HIB': ('Haemophilus influenzae type b', 4, False),
    'PNEUMOCOCCAL': ('Pneumococcal', 4, False),
    'MENINGOCOCCAL': ('Meningococcal', 2, True),
    'TDAP': ('Tetanus, Diphtheria, Pertussis booster', 1, True),
    'HPV': ('Human Papillomavirus', 2, False),
    'INFLUENZA': ('Influenza', 1, False),
    'COVID_19': ('COVID-19', 2, False),
}
EXEMPTION_TYPES = ('NONE', 'MEDICAL', 'RELIGIOUS')

def typical_doses(vaccine_type):
    return VACCINE_TYPES[vaccine_type][1]

def required_vaccines():
    """Vaccine codes required for school attendance, in table order"""
    return [code for code, (_, _, required) in VACCINE_TYPES.items() if required]

class Immunization(db.Model):
    """A single vaccine dose, or an exemption recorded as dose 0"""
    __tablename__ = 'immunization'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    vaccine_type = db.Column(db.String(20), nullable=False)
    dose_number = db.Column(db.Integer, nullable=False, default=1)
    administration_date = db.Column(db.Date, nullable=True)
    total_doses_required = db.Column(db.Integer, nullable=True)
    next_dose_due = db.Column(db.Date, nullable=True)
    exemption_type = db.Column(db.String(10), nullable=False, default='NONE')
    exemption_reason = db.Column(db.Text, nullable=True)
    exemption_expiration_date = db.Column(db.Date, nullable=True)
    verified = db.Column(db.Boolean, default=False)
    verified_by = db.Column(db.Integer, nullable=True)
    verification_date = db.Column(db.Date, nullable=True)
    meets_state_requirement = db.Column(db.Boolean, default=True)
    lot_number = db.Column(db.String(50), nullable=True)
    provider = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = db.relationship('Student', backref=db.backref('immunizations', lazy='dynamic'))

    def is_exemption(self):
        return self.exemption_type != 'NONE'

    def is_series_complete(self):
        return self.total_doses_required is not None and self.dose_number >= self.total_doses_required

    def to_dict(self):
        """Convert immunization to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'vaccine_type': self.vaccine_type,
            'vaccine_name': VACCINE_TYPES[self.vaccine_type][0] if self.vaccine_type in VACCINE_TYPES else None,
            'dose_number': self.dose_number,
            'administration_date': self.administration_date.isoformat() if self.administration_date else None,
            'total_doses_required': self.total_doses_required,
            'next_dose_due': self.next_dose_due.isoformat() if self.next_dose_due else None,
            'exemption_type': self.exemption_type,
            'exemption_reason': self.exemption_reason,
            'exemption_expiration_date': self.exemption_expiration_date.isoformat() if self.exemption_expiration_date else None,
            'verified': self.verified,
            'verified_by': self.verified_by,
            'meets_state_requirement': self.meets_state_requirement,
            'lot_number': self.lot_number,
            'provider': self.provider
        }

    def __repr__(self):
        return f'<Immunization {self.vaccine_type} dose {self.dose_number} student={self.student_id}>'
