"""
Fee service for Brookfield School Information System
Fee definitions, student assignments, payments, refunds and waivers
"""

import logging
import random
import time
from collections import defaultdict
from datetime import date

from flask import current_app

from models.fees import Fee, StudentFee, FeePayment, FEE_TYPES, FEE_FREQUENCIES, PAYMENT_METHODS
from models.student import Student
from services.audit_service import AuditService
from utils.dates import school_year_label
from utils.db_helpers import safe_add_and_commit, safe_add_and_flush, safe_update_and_commit, safe_delete_and_commit, get_or_raise
from utils.responses import StateError
from utils.validators import (
    require_fields, parse_str, parse_date, parse_int, parse_amount, parse_enum, parse_bool, parse_id_list
)

logger = logging.getLogger(__name__)

def generate_confirmation_number():
    """PAY-<epoch millis>-<4 random digits>"""
    return f"PAY-{int(time.time() * 1000)}-{random.randint(1000, 9999)}"

class FeeService:
    """Fee service class"""

    @staticmethod
    def current_academic_year(today=None):
        return school_year_label(today, current_app.config['FEE_YEAR_START_MONTH'])

    # ------------------------------------------------------------------ fees

    @staticmethod
    def get_fee(fee_id):
        return get_or_raise(Fee, fee_id, 'Fee')

    @staticmethod
    def list_fees(active_only=True):
        query = Fee.query
        if active_only:
            query = query.filter_by(is_active=True)
        return query.order_by(Fee.fee_code).all()

    @staticmethod
    def get_fees_by_type(fee_type):
        fee_type = parse_enum(fee_type, FEE_TYPES, 'fee_type')
        return Fee.query.filter_by(fee_type=fee_type, is_active=True).order_by(Fee.fee_code).all()

    @staticmethod
    def get_fees_by_year(academic_year):
        return Fee.query.filter_by(academic_year=academic_year, is_active=True).order_by(Fee.fee_code).all()

    @staticmethod
    def create_fee(data, performed_by=None):
        require_fields(data, 'fee_code', 'fee_name', 'fee_type', 'amount')
        fee = Fee(
            fee_code=parse_str(data['fee_code'], 'fee_code', max_length=30).upper(),
            fee_name=parse_str(data['fee_name'], 'fee_name'),
            fee_type=parse_enum(data['fee_type'], FEE_TYPES, 'fee_type'),
            description=data.get('description'),
            amount=parse_amount(data['amount'], 'amount', allow_zero=False),
            frequency=parse_enum(data.get('frequency'), FEE_FREQUENCIES, 'frequency', required=False, default='ANNUAL'),
            academic_year=data.get('academic_year') or FeeService.current_academic_year(),
            grade_level=parse_int(data.get('grade_level'), 'grade_level', required=False, minimum=0, maximum=12),
            is_mandatory=parse_bool(data.get('is_mandatory')),
            is_waivable=parse_bool(data.get('is_waivable'), default=True),
            due_date=parse_date(data.get('due_date'), 'due_date', required=False)
        )
        safe_add_and_flush(fee)
        AuditService.log('CREATE', 'FEE', fee.id, performed_by, f"Created fee {fee.fee_code} ({fee.amount:.2f})")
        safe_update_and_commit()
        logger.info("Created fee %s for %s", fee.fee_code, fee.academic_year)
        return fee

    @staticmethod
    def update_fee(fee_id, data):
        fee = FeeService.get_fee(fee_id)
        for field in ('fee_name', 'description', 'academic_year'):
            if field in data:
                setattr(fee, field, data[field])
        if 'fee_type' in data:
            fee.fee_type = parse_enum(data['fee_type'], FEE_TYPES, 'fee_type')
        if 'amount' in data:
            fee.amount = parse_amount(data['amount'], 'amount', allow_zero=False)
        if 'frequency' in data:
            fee.frequency = parse_enum(data['frequency'], FEE_FREQUENCIES, 'frequency')
        if 'grade_level' in data:
            fee.grade_level = parse_int(data['grade_level'], 'grade_level', required=False, minimum=0, maximum=12)
        if 'is_mandatory' in data:
            fee.is_mandatory = parse_bool(data['is_mandatory'])
        if 'is_waivable' in data:
            fee.is_waivable = parse_bool(data['is_waivable'])
        if 'due_date' in data:
            fee.due_date = parse_date(data['due_date'], 'due_date', required=False)
        safe_update_and_commit()
        return fee

    @staticmethod
    def deactivate_fee(fee_id):
        fee = FeeService.get_fee(fee_id)
        fee.is_active = False
        safe_update_and_commit()
        logger.info("Deactivated fee %s", fee.fee_code)
        return fee

    # ------------------------------------------------------------ assignment

    @staticmethod
    def get_student_fee(student_fee_id):
        return get_or_raise(StudentFee, student_fee_id, 'Student fee')

    @staticmethod
    def assign_fee(student_id, fee_id, amount=None, due_date=None):
        """Assign a fee to a student; an existing assignment for the year is returned unchanged"""
        student = get_or_raise(Student, student_id, 'Student')
        fee = FeeService.get_fee(fee_id)
        if not fee.is_active:
            raise StateError(f"Fee {fee.fee_code} is not active")

        existing = StudentFee.query.filter_by(student_id=student.id, fee_id=fee.id,
                                              academic_year=fee.academic_year).first()
        if existing is not None:
            return existing

        student_fee = StudentFee(
            student_id=student.id,
            fee_id=fee.id,
            academic_year=fee.academic_year,
            amount_due=parse_amount(amount, 'amount', required=False) if amount is not None else fee.amount,
            due_date=parse_date(due_date, 'due_date', required=False) or fee.due_date
        )
        student_fee.refresh_status()
        safe_add_and_commit(student_fee)
        logger.info("Assigned fee %s to student %s", fee.fee_code, student.id)
        return student_fee

    @staticmethod
    def _assign_many(students, fee_ids):
        assigned = []
        for student in students:
            for fee_id in fee_ids:
                try:
                    assigned.append(FeeService.assign_fee(student.id, fee_id))
                except (ValueError, StateError) as e:
                    logger.warning("Skipped fee %s for student %s: %s", fee_id, student.id, e)
        return assigned

    @staticmethod
    def bulk_assign(student_ids, fee_id):
        student_ids = parse_id_list(student_ids, 'student_ids')
        students = [get_or_raise(Student, sid, 'Student') for sid in student_ids]
        return FeeService._assign_many(students, [fee_id])

    @staticmethod
    def assign_to_grade_level(grade_level, fee_id):
        grade_level = parse_int(grade_level, 'grade_level', minimum=0, maximum=12)
        FeeService.get_fee(fee_id)
        students = Student.query.filter_by(grade_level=grade_level, is_active=True).all()
        return FeeService._assign_many(students, [fee_id])

    @staticmethod
    def assign_mandatory_fees(student_id):
        """Assign every active mandatory fee that applies to the student's grade"""
        student = get_or_raise(Student, student_id, 'Student')
        fees = [f for f in Fee.query.filter_by(is_active=True, is_mandatory=True).all()
                if f.applies_to_grade(student.grade_level)]
        return FeeService._assign_many([student], [f.id for f in fees])

    @staticmethod
    def assign_annual_fees(student_id, academic_year=None):
        student = get_or_raise(Student, student_id, 'Student')
        academic_year = academic_year or FeeService.current_academic_year()
        fees = [f for f in Fee.query.filter_by(is_active=True, frequency='ANNUAL', academic_year=academic_year).all()
                if f.applies_to_grade(student.grade_level)]
        return FeeService._assign_many([student], [f.id for f in fees])

    @staticmethod
    def remove_student_fee(student_fee_id):
        student_fee = FeeService.get_student_fee(student_fee_id)
        if student_fee.payments.filter_by(refunded=False).count() > 0:
            raise StateError("Student fee has payments; refund them first")
        for payment in student_fee.payments.all():
            safe_delete_and_commit(payment)
        safe_delete_and_commit(student_fee)

    # -------------------------------------------------------------- payments

    @staticmethod
    def get_payment(payment_id):
        return get_or_raise(FeePayment, payment_id, 'Payment')

    @staticmethod
    def record_payment(student_fee_id, data, performed_by=None):
        """Record a payment; amount must be positive and no more than the balance"""
        student_fee = FeeService.get_student_fee(student_fee_id)
        require_fields(data, 'amount', 'payment_method')
        amount = parse_amount(data['amount'], 'amount', allow_zero=False)
        method = parse_enum(data['payment_method'], PAYMENT_METHODS, 'payment_method')
        if amount > student_fee.balance:
            raise ValueError(f"Payment amount {amount:.2f} exceeds balance {student_fee.balance:.2f}")

        payment = FeePayment(
            student_fee_id=student_fee.id,
            student_id=student_fee.student_id,
            amount=amount,
            payment_method=method,
            payment_date=parse_date(data.get('payment_date'), 'payment_date', required=False) or date.today(),
            confirmation_number=generate_confirmation_number(),
            reference_number=data.get('reference_number'),
            recorded_by=parse_int(data.get('recorded_by'), 'recorded_by', required=False),
            notes=data.get('notes')
        )
        student_fee.amount_paid = round((student_fee.amount_paid or 0) + amount, 2)
        student_fee.refresh_status()
        AuditService.log('PAYMENT', 'STUDENT_FEE', student_fee.id, performed_by,
                         f"Payment {payment.confirmation_number} of {amount:.2f} by {method}")
        safe_add_and_commit(payment)
        logger.info("Recorded payment %s of %.2f for student fee %s",
                    payment.confirmation_number, amount, student_fee.id)
        return payment

    @staticmethod
    def refund_payment(payment_id, reason, performed_by=None):
        reason = parse_str(reason, 'reason')
        payment = FeeService.get_payment(payment_id)
        if payment.refunded:
            raise StateError(f"Payment {payment.confirmation_number} has already been refunded")

        payment.refunded = True
        payment.refund_reason = reason
        payment.refund_date = date.today()
        student_fee = payment.student_fee
        student_fee.amount_paid = max(round((student_fee.amount_paid or 0) - payment.amount, 2), 0.0)
        student_fee.refresh_status()
        AuditService.log('REFUND', 'FEE_PAYMENT', payment.id, performed_by,
                         f"Refunded {payment.amount:.2f}: {payment.refund_reason}")
        safe_update_and_commit()
        logger.info("Refunded payment %s", payment.confirmation_number)
        return payment

    # --------------------------------------------------------------- waivers

    @staticmethod
    def waive_fee(student_fee_id, reason, waived_by=None, amount=None):
        """Waive the remaining balance, or part of it when amount is given"""
        reason = parse_str(reason, 'reason')
        student_fee = FeeService.get_student_fee(student_fee_id)
        if not student_fee.fee.is_waivable:
            raise StateError(f"Fee {student_fee.fee.fee_code} cannot be waived")

        balance = student_fee.balance
        if amount is None:
            waive_amount = balance
        else:
            waive_amount = parse_amount(amount, 'amount', allow_zero=False)
            if waive_amount > balance:
                raise ValueError(f"Waiver amount {waive_amount:.2f} exceeds balance {balance:.2f}")

        student_fee.amount_waived = round((student_fee.amount_waived or 0) + waive_amount, 2)
        student_fee.waived = True
        student_fee.waiver_reason = reason
        student_fee.waived_by = parse_int(waived_by, 'waived_by', required=False)
        student_fee.refresh_status()
        AuditService.log('WAIVE', 'STUDENT_FEE', student_fee.id, waived_by,
                         f"Waived {waive_amount:.2f}: {student_fee.waiver_reason}")
        safe_update_and_commit()
        logger.info("Waived %.2f on student fee %s", waive_amount, student_fee.id)
        return student_fee

    @staticmethod
    def remove_waiver(student_fee_id, performed_by=None):
        student_fee = FeeService.get_student_fee(student_fee_id)
        if not student_fee.waived:
            raise StateError(f"Student fee {student_fee.id} has no waiver")
        student_fee.amount_waived = 0.0
        student_fee.waived = False
        student_fee.waiver_reason = None
        student_fee.waived_by = None
        student_fee.refresh_status()
        AuditService.log('REMOVE_WAIVER', 'STUDENT_FEE', student_fee.id, performed_by)
        safe_update_and_commit()
        return student_fee

    # --------------------------------------------------------------- queries

    @staticmethod
    def _refreshed(student_fees):
        for student_fee in student_fees:
            student_fee.refresh_status()
        return student_fees

    @staticmethod
    def get_student_fees(student_id, academic_year=None):
        get_or_raise(Student, student_id, 'Student')
        query = StudentFee.query.filter_by(student_id=student_id)
        if academic_year:
            query = query.filter_by(academic_year=academic_year)
        return FeeService._refreshed(query.order_by(StudentFee.due_date).all())

    @staticmethod
    def get_outstanding_fees(student_id):
        return [f for f in FeeService.get_student_fees(student_id) if f.balance > 0]

    @staticmethod
    def get_overdue_fees(student_id):
        return [f for f in FeeService.get_student_fees(student_id) if f.is_overdue()]

    @staticmethod
    def get_student_balance(student_id):
        return round(sum(f.balance for f in FeeService.get_student_fees(student_id)), 2)

    @staticmethod
    def get_student_payments(student_id):
        get_or_raise(Student, student_id, 'Student')
        return FeePayment.query.filter_by(student_id=student_id).order_by(
            FeePayment.payment_date.desc(), FeePayment.id.desc()).all()

    @staticmethod
    def get_payment_history(student_fee_id):
        student_fee = FeeService.get_student_fee(student_fee_id)
        return student_fee.payments.order_by(FeePayment.payment_date, FeePayment.id).all()

    @staticmethod
    def get_payments_in_range(start_date, end_date):
        return FeePayment.query.filter(
            FeePayment.payment_date >= start_date,
            FeePayment.payment_date <= end_date
        ).order_by(FeePayment.payment_date, FeePayment.id).all()

    @staticmethod
    def get_all_overdue():
        candidates = StudentFee.query.filter(StudentFee.due_date < date.today()).all()
        return [f for f in FeeService._refreshed(candidates) if f.is_overdue()]

    # --------------------------------------------------------------- reports

    @staticmethod
    def get_total_outstanding(academic_year=None):
        query = StudentFee.query
        if academic_year:
            query = query.filter_by(academic_year=academic_year)
        return round(sum(f.balance for f in query.all()), 2)

    @staticmethod
    def get_collection_report(start_date, end_date):
        payments = FeeService.get_payments_in_range(start_date, end_date)
        collected = [p for p in payments if not p.refunded]
        by_method = defaultdict(float)
        for payment in collected:
            by_method[payment.payment_method] += payment.amount
        return {
            'start_date': start_date.isoformat(),
            'end_date': end_date.isoformat(),
            'total_payments': len(payments),
            'total_amount': round(sum(p.amount for p in collected), 2),
            'refund_count': len(payments) - len(collected),
            'by_payment_method': {k: round(v, 2) for k, v in sorted(by_method.items())}
        }

    @staticmethod
    def get_collection_by_type(academic_year=None):
        academic_year = academic_year or FeeService.current_academic_year()
        totals = {}
        for student_fee in StudentFee.query.filter_by(academic_year=academic_year).all():
            entry = totals.setdefault(student_fee.fee.fee_type, {
                'assigned': 0, 'amount_due': 0.0, 'amount_paid': 0.0, 'amount_waived': 0.0, 'outstanding': 0.0
            })
            entry['assigned'] += 1
            entry['amount_due'] += student_fee.amount_due or 0
            entry['amount_paid'] += student_fee.amount_paid or 0
            entry['amount_waived'] += student_fee.amount_waived or 0
            entry['outstanding'] += student_fee.balance
        for entry in totals.values():
            for key in ('amount_due', 'amount_paid', 'amount_waived', 'outstanding'):
                entry[key] = round(entry[key], 2)
        return {'academic_year': academic_year, 'by_fee_type': totals}

    @staticmethod
    def get_student_statement(student_id, academic_year=None):
        student = get_or_raise(Student, student_id, 'Student')
        fees = FeeService.get_student_fees(student.id, academic_year)
        fee_ids = {f.id for f in fees}
        payments = [p for p in FeeService.get_student_payments(student.id) if p.student_fee_id in fee_ids]
        return {
            'student_id': student.id,
            'student_number': student.student_number,
            'student_name': student.full_name,
            'academic_year': academic_year,
            'fees': [f.to_dict() for f in fees],
            'payments': [p.to_dict() for p in payments],
            'total_due': round(sum(f.amount_due or 0 for f in fees), 2),
            'total_paid': round(sum(f.amount_paid or 0 for f in fees), 2),
            'total_waived': round(sum(f.amount_waived or 0 for f in fees), 2),
            'outstanding_balance': round(sum(f.balance for f in fees), 2),
            'generated_date': date.today().isoformat()
        }
