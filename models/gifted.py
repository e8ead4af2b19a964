"""
Gifted program models for Brookfield School Information System
GiftedStudent, GiftedAssessment, GiftedEducationPlan and GiftedServiceRecord models
"""

from database import db
from datetime import datetime

GIFTED_STATUSES = ('REFERRED', 'SCREENING_IN_PROGRESS', 'ASSESSMENT_IN_PROGRESS', 'ELIGIBLE',
                   'NOT_ELIGIBLE', 'ACTIVE', 'INACTIVE', 'EXITED')
GIFTED_AREAS = ('INTELLECTUAL', 'ACADEMIC', 'CREATIVE', 'LEADERSHIP', 'VISUAL_ARTS',
                'PERFORMING_ARTS', 'MATH', 'SCIENCE', 'LANGUAGE_ARTS')
PLAN_STATUSES = ('DRAFT', 'ACTIVE', 'EXPIRED')
ENGAGEMENT_LEVELS = ('LOW', 'MEDIUM', 'HIGH')

HIGHLY_GIFTED_SCORE = 130
EXCEPTIONALLY_GIFTED_SCORE = 145

class GiftedStudent(db.Model):
    """Student referred to or served by the gifted program"""
    __tablename__ = 'gifted_student'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), unique=True, nullable=False)
    gifted_status = db.Column(db.String(30), nullable=False, default='REFERRED')
    primary_gifted_area = db.Column(db.String(20), nullable=True)
    secondary_areas = db.Column(db.String(255), nullable=True)
    referral_date = db.Column(db.Date, nullable=True)
    referral_source = db.Column(db.String(50), nullable=True)
    identification_date = db.Column(db.Date, nullable=True)
    annual_review_date = db.Column(db.Date, nullable=True)
    last_progress_review = db.Column(db.Date, nullable=True)
    parent_notified = db.Column(db.Boolean, default=False)
    parent_consent = db.Column(db.Boolean, default=False)
    current_gpa = db.Column(db.Float, nullable=True)
    ap_course_count = db.Column(db.Integer, default=0)
    honors_course_count = db.Column(db.Integer, default=0)
    dual_enrollment = db.Column(db.Boolean, default=False)
    grade_accelerated = db.Column(db.Boolean, default=False)
    talent_development_plan = db.Column(db.Boolean, default=False)
    mentorship_program = db.Column(db.Boolean, default=False)
    cluster_group = db.Column(db.String(50), nullable=True)
    has_concerns = db.Column(db.Boolean, default=False)
    case_manager_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    student = db.relationship('Student', backref=db.backref('gifted_profile', uselist=False))
    assessments = db.relationship('GiftedAssessment', backref='gifted_student', lazy='dynamic')
    plans = db.relationship('GiftedEducationPlan', backref='gifted_student', lazy='dynamic')
    services = db.relationship('GiftedServiceRecord', backref='gifted_student', lazy='dynamic')

    def get_areas(self):
        areas = [self.primary_gifted_area] if self.primary_gifted_area else []
        if self.secondary_areas:
            areas.extend(a.strip() for a in self.secondary_areas.split(',') if a.strip())
        return areas

    def to_dict(self):
        """Convert gifted student to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'grade_level': self.student.grade_level if self.student else None,
            'gifted_status': self.gifted_status,
            'primary_gifted_area': self.primary_gifted_area,
            'gifted_areas': self.get_areas(),
            'referral_date': self.referral_date.isoformat() if self.referral_date else None,
            'referral_source': self.referral_source,
            'identification_date': self.identification_date.isoformat() if self.identification_date else None,
            'annual_review_date': self.annual_review_date.isoformat() if self.annual_review_date else None,
            'last_progress_review': self.last_progress_review.isoformat() if self.last_progress_review else None,
            'parent_notified': self.parent_notified,
            'parent_consent': self.parent_consent,
            'current_gpa': self.current_gpa,
            'ap_course_count': self.ap_course_count,
            'honors_course_count': self.honors_course_count,
            'dual_enrollment': self.dual_enrollment,
            'grade_accelerated': self.grade_accelerated,
            'talent_development_plan': self.talent_development_plan,
            'mentorship_program': self.mentorship_program,
            'cluster_group': self.cluster_group,
            'has_concerns': self.has_concerns,
            'case_manager_id': self.case_manager_id
        }

    def __repr__(self):
        return f'<GiftedStudent student={self.student_id} {self.gifted_status}>'

class GiftedAssessment(db.Model):
    """Screening or eligibility assessment"""
    __tablename__ = 'gifted_assessment'

    id = db.Column(db.Integer, primary_key=True)
    gifted_student_id = db.Column(db.Integer, db.ForeignKey('gifted_student.id'), nullable=False)
    assessment_type = db.Column(db.String(50), nullable=False)  # e.g. COGNITIVE, ACHIEVEMENT, CREATIVITY
    assessment_name = db.Column(db.String(100), nullable=True)
    assessment_date = db.Column(db.Date, nullable=False)
    overall_score = db.Column(db.Float, nullable=True)
    percentile = db.Column(db.Float, nullable=True)
    results_received = db.Column(db.Boolean, default=False)
    parent_notified = db.Column(db.Boolean, default=False)
    eligible = db.Column(db.Boolean, nullable=True)
    administered_by = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def is_highly_gifted(self):
        return self.overall_score is not None and self.overall_score >= HIGHLY_GIFTED_SCORE

    def is_exceptionally_gifted(self):
        return self.overall_score is not None and self.overall_score >= EXCEPTIONALLY_GIFTED_SCORE

    def to_dict(self):
        """Convert assessment to dictionary"""
        return {
            'id': self.id,
            'gifted_student_id': self.gifted_student_id,
            'assessment_type': self.assessment_type,
            'assessment_name': self.assessment_name,
            'assessment_date': self.assessment_date.isoformat() if self.assessment_date else None,
            'overall_score': self.overall_score,
            'percentile': self.percentile,
            'results_received': self.results_received,
            'parent_notified': self.parent_notified,
            'eligible': self.eligible,
            'highly_gifted': self.is_highly_gifted(),
            'exceptionally_gifted': self.is_exceptionally_gifted(),
            'administered_by': self.administered_by
        }

    def __repr__(self):
        return f'<GiftedAssessment {self.assessment_type} {self.overall_score}>'

class GiftedEducationPlan(db.Model):
    """Written education plan for a gifted student"""
    __tablename__ = 'gifted_education_plan'

    id = db.Column(db.Integer, primary_key=True)
    plan_number = db.Column(db.String(30), unique=True, nullable=False)
    gifted_student_id = db.Column(db.Integer, db.ForeignKey('gifted_student.id'), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    review_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(10), nullable=False, default='DRAFT')
    goals = db.Column(db.Text, nullable=True)
    parent_consent = db.Column(db.Boolean, default=False)
    parent_consent_date = db.Column(db.Date, nullable=True)
    case_manager_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=True)
    last_progress_review = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Convert plan to dictionary"""
        return {
            'id': self.id,
            'plan_number': self.plan_number,
            'gifted_student_id': self.gifted_student_id,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'review_date': self.review_date.isoformat() if self.review_date else None,
            'status': self.status,
            'goals': self.goals,
            'parent_consent': self.parent_consent,
            'parent_consent_date': self.parent_consent_date.isoformat() if self.parent_consent_date else None,
            'case_manager_id': self.case_manager_id,
            'last_progress_review': self.last_progress_review.isoformat() if self.last_progress_review else None
        }

    def __repr__(self):
        return f'<GiftedEducationPlan {self.plan_number}>'

class GiftedServiceRecord(db.Model):
    """Delivered gifted service session"""
    __tablename__ = 'gifted_service'

    id = db.Column(db.Integer, primary_key=True)
    gifted_student_id = db.Column(db.Integer, db.ForeignKey('gifted_student.id'), nullable=False)
    service_type = db.Column(db.String(50), nullable=False)  # PULL_OUT, CLUSTER, ENRICHMENT, MENTORSHIP
    service_date = db.Column(db.Date, nullable=False)
    minutes = db.Column(db.Integer, nullable=False, default=0)
    provider_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=True)
    documented = db.Column(db.Boolean, default=False)
    followup_needed = db.Column(db.Boolean, default=False)
    engagement_level = db.Column(db.String(10), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Convert service record to dictionary"""
        return {
            'id': self.id,
            'gifted_student_id': self.gifted_student_id,
            'service_type': self.service_type,
            'service_date': self.service_date.isoformat() if self.service_date else None,
            'minutes': self.minutes,
            'provider_id': self.provider_id,
            'documented': self.documented,
            'followup_needed': self.followup_needed,
            'engagement_level': self.engagement_level,
            'notes': self.notes
        }

    def __repr__(self):
        return f'<GiftedServiceRecord {self.service_type} {self.service_date}>'
