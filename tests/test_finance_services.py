"""
Unit tests for fee and cafeteria services
"""

import unittest
from datetime import date, timedelta

from app import create_app
from config import TestingConfig
from database import db
from models.audit import AuditLog
from models.cafeteria import MealTransaction
from services.fee_service import FeeService, generate_confirmation_number
from services.cafeteria_service import CafeteriaService
from services.student_service import StudentService
from utils.dates import school_year_end
from utils.responses import NotFoundError, StateError

class TestFinanceServices(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.app = create_app(TestingConfig)
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()
        self.student = StudentService.create_student({
            'student_number': 'S1001', 'first_name': 'Maya', 'last_name': 'Lopez', 'grade_level': 9
        })

    def tearDown(self):
        """Clean up after tests"""
        db.session.remove()
        db.drop_all()
        self.app_context.pop()

    def _fee(self, code='tech', amount=100.0, **extra):
        data = {'fee_code': code, 'fee_name': 'Technology Fee', 'fee_type': 'TECHNOLOGY',
                'amount': amount, 'academic_year': '2024-2025'}
        data.update(extra)
        return FeeService.create_fee(data)

    # ------------------------------------------------------------------ fees

    def test_create_fee_defaults(self):
        fee = FeeService.create_fee({'fee_code': 'reg', 'fee_name': 'Registration',
                                     'fee_type': 'registration', 'amount': '75.5'})
        self.assertEqual(fee.fee_code, 'REG')
        self.assertEqual(fee.fee_type, 'REGISTRATION')
        self.assertEqual(fee.amount, 75.5)
        self.assertEqual(fee.frequency, 'ANNUAL')
        self.assertTrue(fee.is_waivable)
        self.assertEqual(fee.academic_year, FeeService.current_academic_year())
        self.assertEqual(AuditLog.query.filter_by(action='CREATE', entity_type='FEE').count(), 1)

        with self.assertRaises(ValueError):
            self._fee('ZERO', amount=0)
        with self.assertRaises(ValueError):
            self._fee('BAD', fee_type='PARKING')
        with self.assertRaises(StateError):
            self._fee('REG')
        self.assertEqual(AuditLog.query.filter_by(entity_type='FEE').count(), 1)
        with self.assertRaises(ValueError):
            self._fee(['lab'])

    def test_assign_fee_is_idempotent(self):
        fee = self._fee()
        first = FeeService.assign_fee(self.student.id, fee.id)
        second = FeeService.assign_fee(self.student.id, fee.id)
        self.assertEqual(first.id, second.id)
        self.assertEqual(first.amount_due, 100.0)
        self.assertEqual(first.status, 'PENDING')

        custom = FeeService.assign_fee(self.student.id, self._fee('LAB', fee_type='LAB').id, amount=40)
        self.assertEqual(custom.amount_due, 40.0)

        FeeService.deactivate_fee(fee.id)
        other = StudentService.create_student({'student_number': 'S1002', 'first_name': 'Leo',
                                               'last_name': 'Chen', 'grade_level': 9})
        with self.assertRaises(StateError):
            FeeService.assign_fee(other.id, fee.id)

    def test_bulk_and_grade_assignment(self):
        fee = self._fee()
        other = StudentService.create_student({'student_number': 'S1002', 'first_name': 'Leo',
                                               'last_name': 'Chen', 'grade_level': 10})
        self.assertEqual(len(FeeService.bulk_assign([self.student.id, other.id], fee.id)), 2)
        with self.assertRaises(NotFoundError):
            FeeService.bulk_assign([self.student.id, 999], fee.id)

        lab = self._fee('LAB', fee_type='LAB')
        assigned = FeeService.assign_to_grade_level(10, lab.id)
        self.assertEqual([sf.student_id for sf in assigned], [other.id])

    def test_mandatory_and_annual_fees(self):
        self._fee('REG', fee_type='REGISTRATION', is_mandatory=True)
        self._fee('SR', fee_type='ACTIVITY', is_mandatory=True, grade_level=12)
        self._fee('BUS', fee_type='TRANSPORTATION', frequency='SEMESTER')

        mandatory = FeeService.assign_mandatory_fees(self.student.id)
        self.assertEqual([sf.fee.fee_code for sf in mandatory], ['REG'])

        annual = FeeService.assign_annual_fees(self.student.id, '2024-2025')
        self.assertEqual(sorted(sf.fee.fee_code for sf in annual), ['REG'])
        self.assertEqual(len(FeeService.get_student_fees(self.student.id)), 1)

    def test_payments_and_balance(self):
        student_fee = FeeService.assign_fee(self.student.id, self._fee().id)
        payment = FeeService.record_payment(student_fee.id, {'amount': 40, 'payment_method': 'cash'})
        self.assertTrue(payment.confirmation_number.startswith('PAY-'))
        self.assertEqual(payment.payment_method, 'CASH')
        self.assertEqual(student_fee.status, 'PARTIAL')
        self.assertEqual(FeeService.get_student_balance(self.student.id), 60.0)

        with self.assertRaises(ValueError):
            FeeService.record_payment(student_fee.id, {'amount': 70, 'payment_method': 'CASH'})
        with self.assertRaises(ValueError):
            FeeService.record_payment(student_fee.id, {'amount': 10, 'payment_method': 'BITCOIN'})

        FeeService.record_payment(student_fee.id, {'amount': 60, 'payment_method': 'ONLINE'})
        self.assertEqual(student_fee.status, 'PAID')
        self.assertEqual(FeeService.get_outstanding_fees(self.student.id), [])
        self.assertEqual(len(FeeService.get_student_payments(self.student.id)), 2)

    def test_refund_and_remove(self):
        student_fee = FeeService.assign_fee(self.student.id, self._fee().id)
        payment = FeeService.record_payment(student_fee.id, {'amount': 100, 'payment_method': 'CHECK'})
        with self.assertRaises(StateError):
            FeeService.remove_student_fee(student_fee.id)
        with self.assertRaises(ValueError):
            FeeService.refund_payment(payment.id, '')

        FeeService.refund_payment(payment.id, 'Duplicate charge')
        self.assertTrue(payment.refunded)
        self.assertEqual(student_fee.amount_paid, 0.0)
        self.assertEqual(student_fee.status, 'PENDING')
        with self.assertRaises(StateError):
            FeeService.refund_payment(payment.id, 'Again')

        FeeService.remove_student_fee(student_fee.id)
        with self.assertRaises(NotFoundError):
            FeeService.get_student_fee(student_fee.id)

    def test_waivers(self):
        student_fee = FeeService.assign_fee(self.student.id, self._fee().id)
        FeeService.waive_fee(student_fee.id, 'Financial hardship', amount=30)
        self.assertEqual(student_fee.balance, 70.0)
        self.assertEqual(student_fee.status, 'PARTIAL')
        with self.assertRaises(ValueError):
            FeeService.waive_fee(student_fee.id, 'Too much', amount=500)

        FeeService.waive_fee(student_fee.id, 'Full waiver')
        self.assertEqual(student_fee.status, 'WAIVED')

        FeeService.remove_waiver(student_fee.id)
        self.assertEqual(student_fee.balance, 100.0)
        with self.assertRaises(StateError):
            FeeService.remove_waiver(student_fee.id)

        locked = FeeService.assign_fee(self.student.id, self._fee('TUIT', fee_type='TUITION', is_waivable=False).id)
        with self.assertRaises(StateError):
            FeeService.waive_fee(locked.id, 'No')

    def test_overdue_and_reports(self):
        past_due = (date.today() - timedelta(days=5)).isoformat()
        overdue = FeeService.assign_fee(self.student.id, self._fee().id, due_date=past_due)
        self.assertEqual(overdue.status, 'OVERDUE')
        self.assertEqual(len(FeeService.get_overdue_fees(self.student.id)), 1)
        self.assertEqual(len(FeeService.get_all_overdue()), 1)

        first = FeeService.record_payment(overdue.id, {'amount': 20, 'payment_method': 'CASH'})
        FeeService.record_payment(overdue.id, {'amount': 30, 'payment_method': 'CREDIT_CARD'})
        FeeService.refund_payment(first.id, 'Bounced')

        report = FeeService.get_collection_report(date.today(), date.today())
        self.assertEqual(report['total_payments'], 2)
        self.assertEqual(report['refund_count'], 1)
        self.assertEqual(report['total_amount'], 30.0)
        self.assertEqual(report['by_payment_method'], {'CREDIT_CARD': 30.0})

        by_type = FeeService.get_collection_by_type('2024-2025')['by_fee_type']
        self.assertEqual(by_type['TECHNOLOGY']['outstanding'], 70.0)
        self.assertEqual(FeeService.get_total_outstanding('2024-2025'), 70.0)

        statement = FeeService.get_student_statement(self.student.id)
        self.assertEqual(statement['total_due'], 100.0)
        self.assertEqual(statement['total_paid'], 30.0)
        self.assertEqual(statement['outstanding_balance'], 70.0)
        self.assertEqual(len(statement['payments']), 2)

    def test_confirmation_number_format(self):
        parts = generate_confirmation_number().split('-')
        self.assertEqual(parts[0], 'PAY')
        self.assertTrue(parts[1].isdigit())
        self.assertEqual(len(parts[2]), 4)

    # ------------------------------------------------------------- cafeteria

    def _account(self, **extra):
        data = {'student_id': self.student.id}
        data.update(extra)
        return CafeteriaService.create_account(data)

    def test_meal_plans(self):
        plan = CafeteriaService.create_plan({'plan_name': 'Lunch Plus', 'plan_type': 'full_year', 'price': 450})
        self.assertEqual(plan.plan_type, 'FULL_YEAR')
        self.assertEqual(plan.meals_per_week, 5)
        with self.assertRaises(ValueError):
            CafeteriaService.create_plan({'plan_name': 'Bad', 'plan_type': 'DAILY', 'price': 1})

        account = self._account()
        CafeteriaService.assign_meal_plan(account.id, plan.id)
        self.assertEqual(account.meals_remaining, 200)
        self.assertEqual(account.plan_end_date, school_year_end(account.academic_year))

        CafeteriaService.deactivate_plan(plan.id)
        self.assertEqual(CafeteriaService.get_active_plans(), [])
        with self.assertRaises(StateError):
            CafeteriaService.assign_meal_plan(account.id, plan.id)

    def test_account_creation(self):
        account = self._account()
        self.assertEqual(account.eligibility_status, 'PENDING_VERIFICATION')
        self.assertEqual(account.balance, 0.0)
        self.assertEqual(CafeteriaService.get_account_by_student(self.student.id).id, account.id)
        self.assertEqual(len(CafeteriaService.get_pending_verification()), 1)
        with self.assertRaises(StateError):
            self._account()

        CafeteriaService.update_eligibility(account.id, 'free')
        self.assertEqual(account.eligibility_status, 'FREE')
        self.assertEqual(account.eligibility_verified_date, date.today())

    def test_purchase_and_auto_reload(self):
        account = self._account()
        deposit = CafeteriaService.add_balance(account.id, 10, 'CASH')
        self.assertEqual(deposit.transaction_type, 'DEPOSIT')
        self.assertEqual(deposit.balance_after, 10.0)

        CafeteriaService.configure_auto_reload(account.id, True, threshold=5, amount=20)
        purchase = CafeteriaService.purchase_meal(account.id, 6, 'lunch')
        self.assertEqual(purchase.balance_before, 10.0)
        self.assertEqual(purchase.balance_after, 4.0)
        self.assertEqual(account.balance, 24.0)
        reload = MealTransaction.query.filter_by(payment_method='AUTO_RELOAD').one()
        self.assertEqual(reload.amount, 20.0)

        with self.assertRaises(StateError):
            CafeteriaService.purchase_meal(account.id, 50)

    def test_purchase_decrements_meals_and_requires_active(self):
        plan = CafeteriaService.create_plan({'plan_name': 'Weekly', 'plan_type': 'WEEKLY', 'price': 20,
                                             'meals_per_week': 1})
        account = self._account(initial_balance=10)
        CafeteriaService.assign_meal_plan(account.id, plan.id)
        CafeteriaService.purchase_meal(account.id, 3)
        self.assertEqual(account.meals_remaining, 39)

        with self.assertRaises(ValueError):
            CafeteriaService.suspend_account(account.id, ' ')
        CafeteriaService.suspend_account(account.id, 'Negative balance history')
        with self.assertRaises(StateError):
            CafeteriaService.purchase_meal(account.id, 1)
        CafeteriaService.activate_account(account.id)
        CafeteriaService.purchase_meal(account.id, 1)
        self.assertEqual(account.balance, 6.0)

    def test_refund_transaction_once(self):
        account = self._account(initial_balance=10)
        purchase = CafeteriaService.purchase_meal(account.id, 4)
        refund = CafeteriaService.refund_transaction(purchase.id)
        self.assertEqual(refund.reference_number, f"TXN-{purchase.id}")
        self.assertEqual(account.balance, 10.0)
        with self.assertRaises(StateError):
            CafeteriaService.refund_transaction(purchase.id)
        with self.assertRaises(StateError):
            CafeteriaService.refund_transaction(refund.id)

        stats = CafeteriaService.get_daily_statistics()
        self.assertEqual(stats['meals_served'], 1)
        self.assertEqual(stats['revenue'], 0.0)
        self.assertEqual(stats['by_meal_type'], {'LUNCH': 1})

    def test_low_balance_and_statistics(self):
        account = self._account(initial_balance=2)
        self.assertEqual([a.id for a in CafeteriaService.get_low_balance_accounts()], [account.id])
        self.assertEqual(CafeteriaService.get_low_balance_accounts(1.0), [])
        stats = CafeteriaService.get_account_statistics()
        self.assertEqual(stats['total_accounts'], 1)
        self.assertEqual(stats['low_balance_accounts'], 1)
        eligibility = CafeteriaService.get_eligibility_statistics()
        self.assertEqual(eligibility['counts']['PENDING_VERIFICATION'], 1)
        self.assertEqual(eligibility['percentages']['PENDING_VERIFICATION'], 100.0)

    def test_menus_and_items(self):
        menu = CafeteriaService.create_menu({
            'menu_date': '2024-09-03', 'meal_type': 'LUNCH',
            'items': [{'item_name': 'Veggie Wrap', 'category': 'Entree', 'price': 3.5, 'vegetarian': True},
                      {'item_name': 'Rice Bowl', 'category': 'Entree', 'gluten_free': True}]
        })
        self.assertEqual(len(menu.items), 2)
        self.assertFalse(menu.published)
        with self.assertRaises(StateError):
            CafeteriaService.create_menu({'menu_date': '2024-09-03', 'meal_type': 'lunch'})

        CafeteriaService.set_published(menu.id, True)
        published = CafeteriaService.get_menus_in_range(date(2024, 9, 1), date(2024, 9, 7), published_only=True)
        self.assertEqual(len(published), 1)

        self.assertEqual([i.item_name for i in CafeteriaService.get_vegetarian_items()], ['Veggie Wrap'])
        self.assertEqual([i.item_name for i in CafeteriaService.get_gluten_free_items()], ['Rice Bowl'])
        self.assertEqual(len(CafeteriaService.search_items('entree')), 2)
        with self.assertRaises(ValueError):
            CafeteriaService.search_items('   ')

        item = CafeteriaService.add_menu_item(menu.id, {'item_name': 'Apple'})
        CafeteriaService.remove_menu_item(item.id)
        self.assertEqual(len(CafeteriaService.get_menu(menu.id).items), 2)

if __name__ == '__main__':
    unittest.main()
