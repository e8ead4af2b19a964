"""
Cafeteria service for Brookfield School Information System
Meal plans, student meal accounts, transactions and menus
"""

import logging
from collections import Counter
from datetime import date, datetime, time, timedelta

from flask import current_app
from sqlalchemy import or_

from database import db
from models.cafeteria import (
    MealPlan, CafeteriaAccount, MealTransaction, Menu, MenuItem,
    PLAN_TYPES, ELIGIBILITY_STATUSES, MEAL_TYPES, CAFETERIA_PAYMENT_METHODS
)
from models.student import Student
from utils.dates import school_year_label, school_year_end, add_months
from utils.db_helpers import safe_add_and_commit, safe_update_and_commit, safe_delete_and_commit, get_or_raise
from utils.responses import NotFoundError, StateError
from utils.validators import require_fields, parse_str, parse_date, parse_int, parse_amount, parse_enum, parse_bool

logger = logging.getLogger(__name__)

def _day_bounds(start_date, end_date):
    return datetime.combine(start_date, time.min), datetime.combine(end_date, time.max)

class CafeteriaService:
    """Cafeteria service class"""

    @staticmethod
    def current_academic_year(today=None):
        return school_year_label(today, current_app.config['CAFETERIA_YEAR_START_MONTH'])

    # ------------------------------------------------------------- meal plans

    @staticmethod
    def get_plan(plan_id):
        return get_or_raise(MealPlan, plan_id, 'Meal plan')

    @staticmethod
    def create_plan(data):
        require_fields(data, 'plan_name', 'plan_type', 'price')
        plan = MealPlan(
            plan_name=parse_str(data['plan_name'], 'plan_name'),
            plan_type=parse_enum(data['plan_type'], PLAN_TYPES, 'plan_type'),
            description=data.get('description'),
            price=parse_amount(data['price'], 'price'),
            meals_per_week=parse_int(data.get('meals_per_week', 5), 'meals_per_week', minimum=0, maximum=21),
            includes_breakfast=parse_bool(data.get('includes_breakfast')),
            includes_lunch=parse_bool(data.get('includes_lunch'), default=True),
            academic_year=data.get('academic_year') or CafeteriaService.current_academic_year()
        )
        safe_add_and_commit(plan)
        logger.info("Created meal plan %s", plan.plan_name)
        return plan

    @staticmethod
    def update_plan(plan_id, data):
        plan = CafeteriaService.get_plan(plan_id)
        for field in ('plan_name', 'description', 'academic_year'):
            if field in data:
                setattr(plan, field, data[field])
        if 'plan_type' in data:
            plan.plan_type = parse_enum(data['plan_type'], PLAN_TYPES, 'plan_type')
        if 'price' in data:
            plan.price = parse_amount(data['price'], 'price')
        if 'meals_per_week' in data:
            plan.meals_per_week = parse_int(data['meals_per_week'], 'meals_per_week', minimum=0, maximum=21)
        for flag in ('includes_breakfast', 'includes_lunch', 'is_active'):
            if flag in data:
                setattr(plan, flag, parse_bool(data[flag]))
        safe_update_and_commit()
        return plan

    @staticmethod
    def deactivate_plan(plan_id):
        plan = CafeteriaService.get_plan(plan_id)
        plan.is_active = False
        safe_update_and_commit()
        return plan

    @staticmethod
    def get_active_plans():
        return MealPlan.query.filter_by(is_active=True).order_by(MealPlan.price).all()

    @staticmethod
    def get_plans_by_type(plan_type):
        plan_type = parse_enum(plan_type, PLAN_TYPES, 'plan_type')
        return MealPlan.query.filter_by(plan_type=plan_type, is_active=True).all()

    @staticmethod
    def get_plans_by_year(academic_year):
        return MealPlan.query.filter_by(academic_year=academic_year).order_by(MealPlan.plan_name).all()

    # --------------------------------------------------------------- accounts

    @staticmethod
    def get_account(account_id):
        return get_or_raise(CafeteriaAccount, account_id, 'Cafeteria account')

    @staticmethod
    def get_account_by_student(student_id, academic_year=None):
        academic_year = academic_year or CafeteriaService.current_academic_year()
        account = CafeteriaAccount.query.filter_by(student_id=student_id, academic_year=academic_year).first()
        if account is None:
            raise NotFoundError(f"Cafeteria account for student {student_id} in {academic_year}")
        return account

    @staticmethod
    def create_account(data):
        require_fields(data, 'student_id')
        student = get_or_raise(Student, parse_int(data['student_id'], 'student_id'), 'Student')
        academic_year = data.get('academic_year') or CafeteriaService.current_academic_year()
        if CafeteriaAccount.query.filter_by(student_id=student.id, academic_year=academic_year).first():
            raise StateError(f"Student {student.id} already has a cafeteria account for {academic_year}")

        account = CafeteriaAccount(
            student_id=student.id,
            academic_year=academic_year,
            balance=parse_amount(data.get('initial_balance'), 'initial_balance', required=False) or 0.0,
            eligibility_status=parse_enum(data.get('eligibility_status'), ELIGIBILITY_STATUSES,
                                          'eligibility_status', required=False, default='PENDING_VERIFICATION')
        )
        safe_add_and_commit(account)
        logger.info("Opened cafeteria account %s for student %s (%s)", account.id, student.id, academic_year)
        return account

    @staticmethod
    def assign_meal_plan(account_id, plan_id, start_date=None):
        """Attach a plan; it runs until June 30 of the account's year"""
        account = CafeteriaService.get_account(account_id)
        plan = CafeteriaService.get_plan(plan_id)
        if not plan.is_active:
            raise StateError(f"Meal plan {plan.plan_name} is not active")
        account.meal_plan_id = plan.id
        account.plan_start_date = parse_date(start_date, 'start_date', required=False) or date.today()
        account.plan_end_date = school_year_end(account.academic_year)
        account.meals_remaining = plan.meals_per_week * current_app.config['MEAL_PLAN_WEEKS']
        safe_update_and_commit()
        logger.info("Assigned meal plan %s to account %s", plan.plan_name, account.id)
        return account

    @staticmethod
    def _apply_transaction(account, transaction_type, amount, meal_type=None, payment_method=None,
                           reference_number=None, description=None, processed_by=None):
        before = round(account.balance or 0, 2)
        if transaction_type == 'PURCHASE':
            after = round(before - amount, 2)
        else:
            after = round(before + amount, 2)
        account.balance = after
        transaction = MealTransaction(
            account_id=account.id,
            student_id=account.student_id,
            transaction_type=transaction_type,
            meal_type=meal_type,
            amount=amount,
            balance_before=before,
            balance_after=after,
            payment_method=payment_method,
            reference_number=reference_number,
            description=description,
            processed_by=processed_by,
            transaction_date=datetime.now()
        )
        db.session.add(transaction)
        return transaction

    @staticmethod
    def add_balance(account_id, amount, payment_method='CASH', reference_number=None, processed_by=None):
        account = CafeteriaService.get_account(account_id)
        amount = parse_amount(amount, 'amount', allow_zero=False)
        method = parse_enum(payment_method, CAFETERIA_PAYMENT_METHODS, 'payment_method')
        if account.account_status == 'CLOSED':
            raise StateError(f"Account {account.id} is closed")
        transaction = CafeteriaService._apply_transaction(
            account, 'DEPOSIT', amount, payment_method=method, reference_number=reference_number,
            description='Account deposit', processed_by=processed_by)
        safe_update_and_commit()
        logger.info("Deposited %.2f to cafeteria account %s", amount, account.id)
        return transaction

    @staticmethod
    def configure_auto_reload(account_id, enabled, threshold=None, amount=None):
        account = CafeteriaService.get_account(account_id)
        enabled = parse_bool(enabled)
        if enabled:
            account.auto_reload_threshold = parse_amount(threshold, 'threshold')
            account.auto_reload_amount = parse_amount(amount, 'amount', allow_zero=False)
        account.auto_reload_enabled = enabled
        safe_update_and_commit()
        return account

    @staticmethod
    def update_eligibility(account_id, eligibility_status):
        account = CafeteriaService.get_account(account_id)
        account.eligibility_status = parse_enum(eligibility_status, ELIGIBILITY_STATUSES, 'eligibility_status')
        if account.eligibility_status != 'PENDING_VERIFICATION':
            account.eligibility_verified_date = date.today()
        safe_update_and_commit()
        return account

    @staticmethod
    def suspend_account(account_id, reason):
        reason = parse_str(reason, 'reason')
        account = CafeteriaService.get_account(account_id)
        if account.account_status == 'CLOSED':
            raise StateError(f"Account {account.id} is closed")
        account.account_status = 'SUSPENDED'
        account.suspension_reason = reason
        safe_update_and_commit()
        logger.info("Suspended cafeteria account %s: %s", account.id, account.suspension_reason)
        return account

    @staticmethod
    def activate_account(account_id):
        account = CafeteriaService.get_account(account_id)
        account.account_status = 'ACTIVE'
        account.suspension_reason = None
        safe_update_and_commit()
        return account

    @staticmethod
    def get_low_balance_accounts(threshold=None):
        if threshold is None:
            threshold = current_app.config['LOW_BALANCE_THRESHOLD']
        return CafeteriaAccount.query.filter(
            CafeteriaAccount.account_status == 'ACTIVE',
            CafeteriaAccount.balance < threshold
        ).order_by(CafeteriaAccount.balance).all()

    @staticmethod
    def get_accounts_needing_reload():
        return [a for a in CafeteriaAccount.query.filter_by(auto_reload_enabled=True).all() if a.needs_reload()]

    @staticmethod
    def get_pending_verification():
        return CafeteriaAccount.query.filter_by(eligibility_status='PENDING_VERIFICATION').all()

    # ----------------------------------------------------------- transactions

    @staticmethod
    def purchase_meal(account_id, amount, meal_type='LUNCH', processed_by=None):
        """Charge a meal; auto-reload runs afterwards when the balance dips below threshold"""
        account = CafeteriaService.get_account(account_id)
        amount = parse_amount(amount, 'amount', allow_zero=False)
        meal_type = parse_enum(meal_type, MEAL_TYPES, 'meal_type')
        if not account.can_purchase(amount):
            raise StateError("Insufficient balance or account not active")

        transaction = CafeteriaService._apply_transaction(
            account, 'PURCHASE', amount, meal_type=meal_type, payment_method='ACCOUNT_BALANCE',
            description=f"{meal_type.title()} purchase", processed_by=processed_by)
        if account.meals_remaining:
            account.meals_remaining -= 1
        if account.needs_reload():
            CafeteriaService._apply_transaction(
                account, 'DEPOSIT', account.auto_reload_amount, payment_method='AUTO_RELOAD',
                description='Automatic reload')
            logger.info("Auto-reloaded %.2f on account %s", account.auto_reload_amount, account.id)
        safe_update_and_commit()
        return transaction

    @staticmethod
    def refund_transaction(transaction_id, reason=None, processed_by=None):
        original = CafeteriaService.get_transaction(transaction_id)
        if original.transaction_type != 'PURCHASE':
            raise StateError("Only purchases can be refunded")
        already = MealTransaction.query.filter_by(transaction_type='REFUND',
                                                  reference_number=f"TXN-{original.id}").first()
        if already is not None:
            raise StateError(f"Transaction {original.id} has already been refunded")
        refund = CafeteriaService._apply_transaction(
            original.account, 'REFUND', original.amount, meal_type=original.meal_type,
            payment_method='ACCOUNT_BALANCE', reference_number=f"TXN-{original.id}",
            description=reason or 'Purchase refund', processed_by=processed_by)
        safe_update_and_commit()
        logger.info("Refunded transaction %s (%.2f)", original.id, original.amount)
        return refund

    @staticmethod
    def get_transaction(transaction_id):
        return get_or_raise(MealTransaction, transaction_id, 'Transaction')

    @staticmethod
    def get_account_transactions(account_id, limit=None):
        account = CafeteriaService.get_account(account_id)
        query = account.transactions.order_by(MealTransaction.transaction_date.desc(), MealTransaction.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def get_transactions_in_range(start_date, end_date, transaction_type=None):
        start, end = _day_bounds(start_date, end_date)
        query = MealTransaction.query.filter(
            MealTransaction.transaction_date >= start,
            MealTransaction.transaction_date <= end
        )
        if transaction_type:
            query = query.filter_by(transaction_type=transaction_type)
        return query.order_by(MealTransaction.transaction_date).all()

    # ------------------------------------------------------------------ menus

    @staticmethod
    def get_menu(menu_id):
        return get_or_raise(Menu, menu_id, 'Menu')

    @staticmethod
    def create_menu(data):
        require_fields(data, 'menu_date', 'meal_type')
        menu = Menu(
            menu_date=parse_date(data['menu_date'], 'menu_date'),
            meal_type=parse_enum(data['meal_type'], MEAL_TYPES, 'meal_type'),
            title=data.get('title')
        )
        for item in data.get('items') or []:
            menu.items.append(CafeteriaService._build_item(item))
        return safe_add_and_commit(menu)

    @staticmethod
    def update_menu(menu_id, data):
        menu = CafeteriaService.get_menu(menu_id)
        if 'menu_date' in data:
            menu.menu_date = parse_date(data['menu_date'], 'menu_date')
        if 'meal_type' in data:
            menu.meal_type = parse_enum(data['meal_type'], MEAL_TYPES, 'meal_type')
        if 'title' in data:
            menu.title = data['title']
        safe_update_and_commit()
        return menu

    @staticmethod
    def delete_menu(menu_id):
        safe_delete_and_commit(CafeteriaService.get_menu(menu_id))

    @staticmethod
    def set_published(menu_id, published):
        menu = CafeteriaService.get_menu(menu_id)
        menu.published = published
        safe_update_and_commit()
        return menu

    @staticmethod
    def get_menus_in_range(start_date, end_date, published_only=False):
        query = Menu.query.filter(Menu.menu_date >= start_date, Menu.menu_date <= end_date)
        if published_only:
            query = query.filter_by(published=True)
        return query.order_by(Menu.menu_date, Menu.meal_type).all()

    @staticmethod
    def _build_item(data):
        require_fields(data, 'item_name')
        return MenuItem(
            item_name=parse_str(data['item_name'], 'item_name'),
            category=data.get('category'),
            price=parse_amount(data.get('price'), 'price', required=False) or 0.0,
            calories=parse_int(data.get('calories'), 'calories', required=False, minimum=0),
            vegetarian=parse_bool(data.get('vegetarian')),
            gluten_free=parse_bool(data.get('gluten_free')),
            allergens=data.get('allergens'),
            available=parse_bool(data.get('available'), default=True)
        )

    @staticmethod
    def add_menu_item(menu_id, data):
        menu = CafeteriaService.get_menu(menu_id)
        item = CafeteriaService._build_item(data)
        menu.items.append(item)
        safe_update_and_commit()
        return item

    @staticmethod
    def remove_menu_item(item_id):
        safe_delete_and_commit(get_or_raise(MenuItem, item_id, 'Menu item'))

    @staticmethod
    def get_vegetarian_items():
        return MenuItem.query.filter_by(vegetarian=True, available=True).order_by(MenuItem.item_name).all()

    @staticmethod
    def get_gluten_free_items():
        return MenuItem.query.filter_by(gluten_free=True, available=True).order_by(MenuItem.item_name).all()

    @staticmethod
    def search_items(term):
        pattern = f"%{parse_str(term, 'q')}%"
        return MenuItem.query.filter(or_(MenuItem.item_name.ilike(pattern),
                                         MenuItem.category.ilike(pattern))).order_by(MenuItem.item_name).all()

    # ------------------------------------------------------------- statistics

    @staticmethod
    def _revenue(start_date, end_date):
        purchases = CafeteriaService.get_transactions_in_range(start_date, end_date, 'PURCHASE')
        refunds = CafeteriaService.get_transactions_in_range(start_date, end_date, 'REFUND')
        return purchases, round(sum(t.amount for t in purchases) - sum(t.amount for t in refunds), 2)

    @staticmethod
    def get_daily_statistics(day=None):
        day = day or date.today()
        purchases, revenue = CafeteriaService._revenue(day, day)
        by_meal = Counter(t.meal_type for t in purchases)
        return {
            'date': day.isoformat(),
            'meals_served': len(purchases),
            'revenue': revenue,
            'by_meal_type': dict(by_meal),
            'unique_students': len({t.student_id for t in purchases})
        }

    @staticmethod
    def get_weekly_revenue(week_start=None):
        week_start = week_start or (date.today() - timedelta(days=date.today().weekday()))
        week_end = week_start + timedelta(days=6)
        purchases, revenue = CafeteriaService._revenue(week_start, week_end)
        return {'start_date': week_start.isoformat(), 'end_date': week_end.isoformat(),
                'meals_served': len(purchases), 'revenue': revenue}

    @staticmethod
    def get_monthly_revenue(year=None, month=None):
        today = date.today()
        month_start = date(year or today.year, month or today.month, 1)
        month_end = add_months(month_start, 1) - timedelta(days=1)
        purchases, revenue = CafeteriaService._revenue(month_start, month_end)
        return {'start_date': month_start.isoformat(), 'end_date': month_end.isoformat(),
                'meals_served': len(purchases), 'revenue': revenue}

    @staticmethod
    def get_eligibility_statistics(academic_year=None):
        academic_year = academic_year or CafeteriaService.current_academic_year()
        accounts = CafeteriaAccount.query.filter_by(academic_year=academic_year).all()
        counts = Counter(a.eligibility_status for a in accounts)
        total = len(accounts)
        return {
            'academic_year': academic_year,
            'total_accounts': total,
            'counts': {status: counts.get(status, 0) for status in ELIGIBILITY_STATUSES},
            'percentages': {status: round(counts.get(status, 0) / total * 100, 2) if total else 0.0
                            for status in ELIGIBILITY_STATUSES}
        }

    @staticmethod
    def get_account_statistics():
        accounts = CafeteriaAccount.query.all()
        statuses = Counter(a.account_status for a in accounts)
        threshold = current_app.config['LOW_BALANCE_THRESHOLD']
        return {
            'total_accounts': len(accounts),
            'active_accounts': statuses.get('ACTIVE', 0),
            'suspended_accounts': statuses.get('SUSPENDED', 0),
            'closed_accounts': statuses.get('CLOSED', 0),
            'total_balance': round(sum(a.balance or 0 for a in accounts), 2),
            'low_balance_accounts': sum(1 for a in accounts
                                        if a.account_status == 'ACTIVE' and (a.balance or 0) < threshold),
            'auto_reload_enabled': sum(1 for a in accounts if a.auto_reload_enabled),
            'with_meal_plan': sum(1 for a in accounts if a.meal_plan_id)
        }
