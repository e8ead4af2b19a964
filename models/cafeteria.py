"""
Cafeteria models for Brookfield School Information System
Meal plans, student accounts, transactions and menus
"""

from database import db
from datetime import datetime, date

PLAN_TYPES = ('FULL_YEAR', 'SEMESTER', 'MONTHLY', 'WEEKLY', 'PAY_AS_YOU_GO')
ACCOUNT_STATUSES = ('ACTIVE', 'SUSPENDED', 'CLOSED')
ELIGIBILITY_STATUSES = ('FREE', 'REDUCED_PRICE', 'FULL_PRICE', 'PENDING_VERIFICATION')
TRANSACTION_TYPES = ('PURCHASE', 'DEPOSIT', 'REFUND', 'ADJUSTMENT')
MEAL_TYPES = ('BREAKFAST', 'LUNCH', 'SNACK', 'OTHER')
CAFETERIA_PAYMENT_METHODS = ('ACCOUNT_BALANCE', 'CASH', 'CHECK', 'CREDIT_CARD', 'ONLINE', 'AUTO_RELOAD')

class MealPlan(db.Model):
    """Meal plan offered for an academic year"""
    __tablename__ = 'meal_plan'

    id = db.Column(db.Integer, primary_key=True)
    plan_name = db.Column(db.String(100), nullable=False)
    plan_type = db.Column(db.String(20), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Float, nullable=False, default=0.0)
    meals_per_week = db.Column(db.Integer, nullable=False, default=5)
    includes_breakfast = db.Column(db.Boolean, default=False)
    includes_lunch = db.Column(db.Boolean, default=True)
    academic_year = db.Column(db.String(9), nullable=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Convert meal plan to dictionary"""
        return {
            'id': self.id,
            'plan_name': self.plan_name,
            'plan_type': self.plan_type,
            'description': self.description,
            'price': self.price,
            'meals_per_week': self.meals_per_week,
            'includes_breakfast': self.includes_breakfast,
            'includes_lunch': self.includes_lunch,
            'academic_year': self.academic_year,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<MealPlan {self.plan_name}>'

class CafeteriaAccount(db.Model):
    """Student meal account for one academic year"""
    __tablename__ = 'cafeteria_account'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    academic_year = db.Column(db.String(9), nullable=False)
    balance = db.Column(db.Float, nullable=False, default=0.0)
    account_status = db.Column(db.String(20), nullable=False, default='ACTIVE')
    eligibility_status = db.Column(db.String(25), nullable=False, default='PENDING_VERIFICATION')
    meal_plan_id = db.Column(db.Integer, db.ForeignKey('meal_plan.id'), nullable=True)
    plan_start_date = db.Column(db.Date, nullable=True)
    plan_end_date = db.Column(db.Date, nullable=True)
    meals_remaining = db.Column(db.Integer, nullable=True)
    auto_reload_enabled = db.Column(db.Boolean, default=False)
    auto_reload_threshold = db.Column(db.Float, nullable=True)
    auto_reload_amount = db.Column(db.Float, nullable=True)
    suspension_reason = db.Column(db.Text, nullable=True)
    eligibility_verified_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint('student_id', 'academic_year', name='unique_student_cafeteria_year'),)

    student = db.relationship('Student', backref=db.backref('cafeteria_accounts', lazy='dynamic'))
    meal_plan = db.relationship('MealPlan')
    transactions = db.relationship('MealTransaction', backref='account', lazy='dynamic')

    def can_purchase(self, amount):
        return self.account_status == 'ACTIVE' and (self.balance or 0) >= amount

    def needs_reload(self):
        return (self.auto_reload_enabled and self.auto_reload_threshold is not None
                and (self.balance or 0) < self.auto_reload_threshold)

    def to_dict(self):
        """Convert account to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.full_name if self.student else None,
            'academic_year': self.academic_year,
            'balance': round(self.balance or 0, 2),
            'account_status': self.account_status,
            'eligibility_status': self.eligibility_status,
            'meal_plan_id': self.meal_plan_id,
            'meal_plan_name': self.meal_plan.plan_name if self.meal_plan else None,
            'plan_start_date': self.plan_start_date.isoformat() if self.plan_start_date else None,
            'plan_end_date': self.plan_end_date.isoformat() if self.plan_end_date else None,
            'meals_remaining': self.meals_remaining,
            'auto_reload_enabled': self.auto_reload_enabled,
            'auto_reload_threshold': self.auto_reload_threshold,
            'auto_reload_amount': self.auto_reload_amount,
            'suspension_reason': self.suspension_reason
        }

    def __repr__(self):
        return f'<CafeteriaAccount student={self.student_id} {self.academic_year} balance={self.balance}>'

class MealTransaction(db.Model):
    """Balance movement on a cafeteria account"""
    __tablename__ = 'meal_transaction'

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey('cafeteria_account.id'), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    transaction_type = db.Column(db.String(15), nullable=False)
    meal_type = db.Column(db.String(15), nullable=True)
    amount = db.Column(db.Float, nullable=False)
    balance_before = db.Column(db.Float, nullable=False)
    balance_after = db.Column(db.Float, nullable=False)
    payment_method = db.Column(db.String(20), nullable=True)
    reference_number = db.Column(db.String(50), nullable=True)
    transaction_date = db.Column(db.DateTime, nullable=False, default=datetime.now)
    description = db.Column(db.String(255), nullable=True)
    processed_by = db.Column(db.Integer, nullable=True)

    def to_dict(self):
        """Convert transaction to dictionary"""
        return {
            'id': self.id,
            'account_id': self.account_id,
            'student_id': self.student_id,
            'transaction_type': self.transaction_type,
            'meal_type': self.meal_type,
            'amount': self.amount,
            'balance_before': self.balance_before,
            'balance_after': self.balance_after,
            'payment_method': self.payment_method,
            'reference_number': self.reference_number,
            'transaction_date': self.transaction_date.isoformat() if self.transaction_date else None,
            'description': self.description
        }

    def __repr__(self):
        return f'<MealTransaction {self.transaction_type} {self.amount}>'

class Menu(db.Model):
    """Published menu for a date and meal"""
    __tablename__ = 'menu'

    id = db.Column(db.Integer, primary_key=True)
    menu_date = db.Column(db.Date, nullable=False, default=date.today)
    meal_type = db.Column(db.String(15), nullable=False)
    title = db.Column(db.String(100), nullable=True)
    published = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    items = db.relationship('MenuItem', backref='menu', lazy='select', cascade='all, delete-orphan')

    __table_args__ = (db.UniqueConstraint('menu_date', 'meal_type', name='unique_menu_date_meal'),)

    def to_dict(self):
        """Convert menu to dictionary"""
        return {
            'id': self.id,
            'menu_date': self.menu_date.isoformat() if self.menu_date else None,
            'meal_type': self.meal_type,
            'title': self.title,
            'published': self.published,
            'items': [item.to_dict() for item in self.items]
        }

    def __repr__(self):
        return f'<Menu {self.menu_date} {self.meal_type}>'

class MenuItem(db.Model):
    """Item served on a menu"""
    __tablename__ = 'menu_item'

    id = db.Column(db.Integer, primary_key=True)
    menu_id = db.Column(db.Integer, db.ForeignKey('menu.id'), nullable=False)
    item_name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(30), nullable=True)  # ENTREE, SIDE, DRINK, DESSERT
    price = db.Column(db.Float, nullable=False, default=0.0)
    calories = db.Column(db.Integer, nullable=True)
    vegetarian = db.Column(db.Boolean, default=False)
    gluten_free = db.Column(db.Boolean, default=False)
    allergens = db.Column(db.String(255), nullable=True)
    available = db.Column(db.Boolean, default=True)

    def to_dict(self):
        """Convert menu item to dictionary"""
        return {
            'id': self.id,
            'menu_id': self.menu_id,
            'item_name': self.item_name,
            'category': self.category,
            'price': self.price,
            'calories': self.calories,
            'vegetarian': self.vegetarian,
            'gluten_free': self.gluten_free,
            'allergens': self.allergens,
            'available': self.available
        }

    def __repr__(self):
        return f'<MenuItem {self.item_name}>'
