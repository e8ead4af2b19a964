"""
Fee models for Brookfield School Information System
Fee definitions, per-student fee assignments and payments
"""

from database import db
from datetime import datetime, date

FEE_TYPES = ('TUITION', 'REGISTRATION', 'TECHNOLOGY', 'LAB', 'ACTIVITY', 'TRANSPORTATION',
             'FIELD_TRIP', 'ATHLETIC', 'OTHER')
FEE_FREQUENCIES = ('ONE_TIME', 'ANNUAL', 'SEMESTER', 'MONTHLY')
FEE_STATUSES = ('PENDING', 'PARTIAL', 'PAID', 'WAIVED', 'OVERDUE')
PAYMENT_METHODS = ('CASH', 'CHECK', 'CREDIT_CARD', 'DEBIT_CARD', 'ONLINE', 'BANK_TRANSFER')

class Fee(db.Model):
    """Fee definition"""
    __tablename__ = 'fee'

    id = db.Column(db.Integer, primary_key=True)
    fee_code = db.Column(db.String(30), unique=True, nullable=False, index=True)
    fee_name = db.Column(db.String(100), nullable=False)
    fee_type = db.Column(db.String(20), nullable=False)
    description = db.Column(db.Text, nullable=True)
    amount = db.Column(db.Float, nullable=False)
    frequency = db.Column(db.String(20), nullable=False, default='ANNUAL')
    academic_year = db.Column(db.String(9), nullable=False)
    grade_level = db.Column(db.Integer, nullable=True)  # None applies to all grades
    is_mandatory = db.Column(db.Boolean, default=False)
    is_waivable = db.Column(db.Boolean, default=True)
    due_date = db.Column(db.Date, nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def applies_to_grade(self, grade_level):
        return self.grade_level is None or self.grade_level == grade_level

    def to_dict(self):
        """Convert fee to dictionary"""
        return {
            'id': self.id,
            'fee_code': self.fee_code,
            'fee_name': self.fee_name,
            'fee_type': self.fee_type,
            'description': self.description,
            'amount': self.amount,
            'frequency': self.frequency,
            'academic_year': self.academic_year,
            'grade_level': self.grade_level,
            'is_mandatory': self.is_mandatory,
            'is_waivable': self.is_waivable,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<Fee {self.fee_code}: {self.amount}>'

class StudentFee(db.Model):
    """Fee assigned to a student"""
    __tablename__ = 'student_fee'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    fee_id = db.Column(db.Integer, db.ForeignKey('fee.id'), nullable=False)
    academic_year = db.Column(db.String(9), nullable=False)
    amount_due = db.Column(db.Float, nullable=False)
    amount_paid = db.Column(db.Float, nullable=False, default=0.0)
    amount_waived = db.Column(db.Float, nullable=False, default=0.0)
    due_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(10), nullable=False, default='PENDING')
    waived = db.Column(db.Boolean, default=False)
    waiver_reason = db.Column(db.Text, nullable=True)
    waived_by = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('student_id', 'fee_id', 'academic_year', name='unique_student_fee_year'),)

    student = db.relationship('Student', backref=db.backref('student_fees', lazy='dynamic'))
    fee = db.relationship('Fee', backref=db.backref('student_fees', lazy='dynamic'))
    payments = db.relationship('FeePayment', backref='student_fee', lazy='dynamic')

    @property
    def balance(self):
        """Amount still owed; never negative"""
        return max(round((self.amount_due or 0) - (self.amount_paid or 0) - (self.amount_waived or 0), 2), 0.0)

    def is_overdue(self, today=None):
        today = today or date.today()
        return self.balance > 0 and self.due_date is not None and self.due_date < today

    def refresh_status(self, today=None):
        """Recompute status from amounts and due date"""
        if self.waived and self.balance == 0:
            self.status = 'WAIVED'
        elif self.balance == 0:
            self.status = 'PAID'
        elif self.is_overdue(today):
            self.status = 'OVERDUE'
        elif (self.amount_paid or 0) > 0 or (self.amount_waived or 0) > 0:
            self.status = 'PARTIAL'
        else:
            self.status = 'PENDING'
        return self.status

    def to_dict(self):
        """Convert student fee to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'fee_id': self.fee_id,
            'fee_code': self.fee.fee_code if self.fee else None,
            'fee_name': self.fee.fee_name if self.fee else None,
            'fee_type': self.fee.fee_type if self.fee else None,
            'academic_year': self.academic_year,
            'amount_due': self.amount_due,
            'amount_paid': self.amount_paid,
            'amount_waived': self.amount_waived,
            'balance': self.balance,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'status': self.status,
            'waived': self.waived,
            'waiver_reason': self.waiver_reason
        }

    def __repr__(self):
        return f'<StudentFee student={self.student_id} fee={self.fee_id} balance={self.balance}>'

class FeePayment(db.Model):
    """Payment against a student fee"""
    __tablename__ = 'fee_payment'

    id = db.Column(db.Integer, primary_key=True)
    student_fee_id = db.Column(db.Integer, db.ForeignKey('student_fee.id'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    amount = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(20), nullable=False)
    payment_date = db.Column(db.Date, nullable=False, default=date.today)
    confirmation_number = db.Column(db.String(40), unique=True, nullable=False)
    reference_number = db.Column(db.String(50), nullable=True)
    recorded_by = db.Column(db.Integer, nullable=True)
    refunded = db.Column(db.Boolean, default=False)
    refund_reason = db.Column(db.Text, nullable=True)
    refund_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Convert payment to dictionary"""
        return {
            'id': self.id,
            'student_fee_id': self.student_fee_id,
            'student_id': self.student_id,
            'fee_name': self.student_fee.fee.fee_name if self.student_fee and self.student_fee.fee else None,
            'amount': self.amount,
            'payment_method': self.payment_method,
            'payment_date': self.payment_date.isoformat() if self.payment_date else None,
            'confirmation_number': self.confirmation_number,
            'reference_number': self.reference_number,
            'refunded': self.refunded,
            'refund_reason': self.refund_reason,
            'refund_date': self.refund_date.isoformat() if self.refund_date else None
        }

    def __repr__(self):
        return f'<FeePayment {self.confirmation_number}: {self.amount}>'
