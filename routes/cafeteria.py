"""
Cafeteria routes for Brookfield School Information System
"""

from flask import Blueprint, request

from services.cafeteria_service import CafeteriaService
from utils.responses import api_errors, success_response, get_json_body, serialize
from utils.validators import parse_amount, parse_bool, parse_date, parse_date_range, parse_int

cafeteria_bp = Blueprint('cafeteria', __name__)

# -------------------------------------------------------------- meal plans

@cafeteria_bp.route('/plans', methods=['POST'])
@api_errors('create meal plan')
def create_plan():
    plan = CafeteriaService.create_plan(get_json_body())
    return success_response(201, message='Meal plan created', plan=plan.to_dict())

@cafeteria_bp.route('/plans', methods=['GET'])
@api_errors('list meal plans')
def active_plans():
    plans = CafeteriaService.get_active_plans()
    return success_response(plans=serialize(plans), count=len(plans))

@cafeteria_bp.route('/plans/<int:plan_id>', methods=['GET'])
@api_errors('get meal plan')
def get_plan(plan_id):
    return success_response(plan=CafeteriaService.get_plan(plan_id).to_dict())

@cafeteria_bp.route('/plans/<int:plan_id>', methods=['PUT'])
@api_errors('update meal plan')
def update_plan(plan_id):
    plan = CafeteriaService.update_plan(plan_id, get_json_body())
    return success_response(message='Meal plan updated', plan=plan.to_dict())

@cafeteria_bp.route('/plans/<int:plan_id>', methods=['DELETE'])
@api_errors('deactivate meal plan')
def deactivate_plan(plan_id):
    plan = CafeteriaService.deactivate_plan(plan_id)
    return success_response(message='Meal plan deactivated', plan=plan.to_dict())

@cafeteria_bp.route('/plans/type/<plan_type>', methods=['GET'])
@api_errors('get meal plans by type')
def plans_by_type(plan_type):
    plans = CafeteriaService.get_plans_by_type(plan_type)
    return success_response(plans=serialize(plans), count=len(plans))

@cafeteria_bp.route('/plans/year/<academic_year>', methods=['GET'])
@api_errors('get meal plans by year')
def plans_by_year(academic_year):
    plans = CafeteriaService.get_plans_by_year(academic_year)
    return success_response(academic_year=academic_year, plans=serialize(plans), count=len(plans))

# ---------------------------------------------------------------- accounts

@cafeteria_bp.route('/accounts', methods=['POST'])
@api_errors('create cafeteria account')
def create_account():
    account = CafeteriaService.create_account(get_json_body())
    return success_response(201, message='Cafeteria account created', account=account.to_dict())

@cafeteria_bp.route('/accounts/<int:account_id>', methods=['GET'])
@api_errors('get cafeteria account')
def get_account(account_id):
    return success_response(account=CafeteriaService.get_account(account_id).to_dict())

@cafeteria_bp.route('/accounts/student/<int:student_id>', methods=['GET'])
@api_errors('get cafeteria account')
def account_by_student(student_id):
    account = CafeteriaService.get_account_by_student(student_id, request.args.get('academic_year'))
    return success_response(account=account.to_dict())

@cafeteria_bp.route('/accounts/<int:account_id>/meal-plan', methods=['POST'])
@api_errors('assign meal plan')
def assign_meal_plan(account_id):
    data = get_json_body()
    account = CafeteriaService.assign_meal_plan(account_id, parse_int(data.get('plan_id'), 'plan_id'),
                                                data.get('start_date'))
    return success_response(message='Meal plan assigned', account=account.to_dict())

@cafeteria_bp.route('/accounts/<int:account_id>/deposit', methods=['POST'])
@api_errors('add balance')
def add_balance(account_id):
    data = get_json_body()
    transaction = CafeteriaService.add_balance(
        account_id, data.get('amount'),
        payment_method=data.get('payment_method', 'CASH'),
        reference_number=data.get('reference_number'),
        processed_by=data.get('processed_by')
    )
    return success_response(201, message='Balance added', transaction=transaction.to_dict(),
                            balance=transaction.balance_after)

@cafeteria_bp.route('/accounts/<int:account_id>/auto-reload', methods=['PUT'])
@api_errors('configure auto-reload')
def configure_auto_reload(account_id):
    data = get_json_body()
    account = CafeteriaService.configure_auto_reload(account_id, data.get('enabled'),
                                                     data.get('threshold'), data.get('amount'))
    return success_response(message='Auto-reload updated', account=account.to_dict())

@cafeteria_bp.route('/accounts/<int:account_id>/eligibility', methods=['PUT'])
@api_errors('update eligibility')
def update_eligibility(account_id):
    account = CafeteriaService.update_eligibility(account_id, get_json_body().get('eligibility_status'))
    return success_response(message='Eligibility updated', account=account.to_dict())

@cafeteria_bp.route('/accounts/<int:account_id>/suspend', methods=['POST'])
@api_errors('suspend account')
def suspend_account(account_id):
    account = CafeteriaService.suspend_account(account_id, get_json_body().get('reason'))
    return success_response(message='Account suspended', account=account.to_dict())

@cafeteria_bp.route('/accounts/<int:account_id>/activate', methods=['POST'])
@api_errors('activate account')
def activate_account(account_id):
    account = CafeteriaService.activate_account(account_id)
    return success_response(message='Account activated', account=account.to_dict())

@cafeteria_bp.route('/accounts/low-balance', methods=['GET'])
@api_errors('get low balance accounts')
def low_balance_accounts():
    threshold = request.args.get('threshold')
    if threshold is not None:
        threshold = parse_amount(threshold, 'threshold')
    accounts = CafeteriaService.get_low_balance_accounts(threshold)
    return success_response(accounts=serialize(accounts), count=len(accounts))

@cafeteria_bp.route('/accounts/needing-reload', methods=['GET'])
@api_errors('get accounts needing reload')
def accounts_needing_reload():
    accounts = CafeteriaService.get_accounts_needing_reload()
    return success_response(accounts=serialize(accounts), count=len(accounts))

@cafeteria_bp.route('/accounts/pending-verification', methods=['GET'])
@api_errors('get pending verification')
def pending_verification():
    accounts = CafeteriaService.get_pending_verification()
    return success_response(accounts=serialize(accounts), count=len(accounts))

# ------------------------------------------------------------ transactions

@cafeteria_bp.route('/accounts/<int:account_id>/purchase', methods=['POST'])
@api_errors('purchase meal')
def purchase_meal(account_id):
    data = get_json_body()
    transaction = CafeteriaService.purchase_meal(account_id, data.get('amount'),
                                                 meal_type=data.get('meal_type', 'LUNCH'),
                                                 processed_by=data.get('processed_by'))
    return success_response(201, message='Meal purchased', transaction=transaction.to_dict())

@cafeteria_bp.route('/accounts/<int:account_id>/transactions', methods=['GET'])
@api_errors('get transactions')
def account_transactions(account_id):
    limit = parse_int(request.args.get('limit'), 'limit', required=False, minimum=1)
    transactions = CafeteriaService.get_account_transactions(account_id, limit)
    return success_response(transactions=serialize(transactions), count=len(transactions))

@cafeteria_bp.route('/transactions/<int:transaction_id>', methods=['GET'])
@api_errors('get transaction')
def get_transaction(transaction_id):
    return success_response(transaction=CafeteriaService.get_transaction(transaction_id).to_dict())

@cafeteria_bp.route('/transactions/<int:transaction_id>/refund', methods=['POST'])
@api_errors('refund transaction')
def refund_transaction(transaction_id):
    data = get_json_body()
    refund = CafeteriaService.refund_transaction(transaction_id, data.get('reason'), data.get('processed_by'))
    return success_response(201, message='Transaction refunded', transaction=refund.to_dict())

@cafeteria_bp.route('/transactions/date-range', methods=['GET'])
@api_errors('get transactions in range')
def transactions_in_range():
    start_date, end_date = parse_date_range(request.args)
    transactions = CafeteriaService.get_transactions_in_range(start_date, end_date,
                                                              request.args.get('transaction_type'))
    return success_response(transactions=serialize(transactions), count=len(transactions))

# ------------------------------------------------------------------- menus

@cafeteria_bp.route('/menus', methods=['POST'])
@api_errors('create menu')
def create_menu():
    menu = CafeteriaService.create_menu(get_json_body())
    return success_response(201, message='Menu created', menu=menu.to_dict())

@cafeteria_bp.route('/menus', methods=['GET'])
@api_errors('get menus')
def menus_in_range():
    start_date, end_date = parse_date_range(request.args)
    menus = CafeteriaService.get_menus_in_range(start_date, end_date,
                                                parse_bool(request.args.get('published_only')))
    return success_response(menus=serialize(menus), count=len(menus))

@cafeteria_bp.route('/menus/<int:menu_id>', methods=['GET'])
@api_errors('get menu')
def get_menu(menu_id):
    return success_response(menu=CafeteriaService.get_menu(menu_id).to_dict())

@cafeteria_bp.route('/menus/<int:menu_id>', methods=['PUT'])
@api_errors('update menu')
def update_menu(menu_id):
    menu = CafeteriaService.update_menu(menu_id, get_json_body())
    return success_response(message='Menu updated', menu=menu.to_dict())

@cafeteria_bp.route('/menus/<int:menu_id>', methods=['DELETE'])
@api_errors('delete menu')
def delete_menu(menu_id):
    CafeteriaService.delete_menu(menu_id)
    return success_response(message='Menu deleted')

@cafeteria_bp.route('/menus/<int:menu_id>/publish', methods=['POST'])
@api_errors('publish menu')
def publish_menu(menu_id):
    menu = CafeteriaService.set_published(menu_id, True)
    return success_response(message='Menu published', menu=menu.to_dict())

@cafeteria_bp.route('/menus/<int:menu_id>/unpublish', methods=['POST'])
@api_errors('unpublish menu')
def unpublish_menu(menu_id):
    menu = CafeteriaService.set_published(menu_id, False)
    return success_response(message='Menu unpublished', menu=menu.to_dict())

@cafeteria_bp.route('/menus/<int:menu_id>/items', methods=['POST'])
@api_errors('add menu item')
def add_menu_item(menu_id):
    item = CafeteriaService.add_menu_item(menu_id, get_json_body())
    return success_response(201, message='Menu item added', item=item.to_dict())

@cafeteria_bp.route('/menu-items/<int:item_id>', methods=['DELETE'])
@api_errors('remove menu item')
def remove_menu_item(item_id):
    CafeteriaService.remove_menu_item(item_id)
    return success_response(message='Menu item removed')

@cafeteria_bp.route('/menu-items/vegetarian', methods=['GET'])
@api_errors('get vegetarian items')
def vegetarian_items():
    items = CafeteriaService.get_vegetarian_items()
    return success_response(items=serialize(items), count=len(items))

@cafeteria_bp.route('/menu-items/gluten-free', methods=['GET'])
@api_errors('get gluten-free items')
def gluten_free_items():
    items = CafeteriaService.get_gluten_free_items()
    return success_response(items=serialize(items), count=len(items))

@cafeteria_bp.route('/menu-items/search', methods=['GET'])
@api_errors('search menu items')
def search_items():
    items = CafeteriaService.search_items(request.args.get('q'))
    return success_response(items=serialize(items), count=len(items))

# -------------------------------------------------------------- statistics

@cafeteria_bp.route('/statistics/daily', methods=['GET'])
@api_errors('get daily statistics')
def daily_statistics():
    day = parse_date(request.args.get('date'), 'date', required=False)
    return success_response(statistics=CafeteriaService.get_daily_statistics(day))

@cafeteria_bp.route('/statistics/weekly', methods=['GET'])
@api_errors('get weekly revenue')
def weekly_revenue():
    week_start = parse_date(request.args.get('week_start'), 'week_start', required=False)
    return success_response(statistics=CafeteriaService.get_weekly_revenue(week_start))

@cafeteria_bp.route('/statistics/monthly', methods=['GET'])
@api_errors('get monthly revenue')
def monthly_revenue():
    year = parse_int(request.args.get('year'), 'year', required=False, minimum=1900)
    month = parse_int(request.args.get('month'), 'month', required=False, minimum=1, maximum=12)
    return success_response(statistics=CafeteriaService.get_monthly_revenue(year, month))

@cafeteria_bp.route('/statistics/eligibility', methods=['GET'])
@api_errors('get eligibility statistics')
def eligibility_statistics():
    return success_response(statistics=CafeteriaService.get_eligibility_statistics(request.args.get('academic_year')))

@cafeteria_bp.route('/statistics/accounts', methods=['GET'])
@api_errors('get account statistics')
def account_statistics():
    return success_response(statistics=CafeteriaService.get_account_statistics())
