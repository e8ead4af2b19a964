"""
Fee routes for Brookfield School Information System
"""

from flask import Blueprint, request

from services.fee_service import FeeService
from services.excel_export_service import ExcelExportService
from services.reporting_service import ReportingService
from utils.responses import api_errors, success_response, get_json_body, serialize, file_response
from utils.validators import parse_bool, parse_date_range, parse_int

fees_bp = Blueprint('fees', __name__)

XLSX = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

@fees_bp.route('/health', methods=['GET'])
def health():
    return success_response(status='UP', service='fees')

# -------------------------------------------------------------------- fees

@fees_bp.route('', methods=['POST'])
@api_errors('create fee')
def create_fee():
    data = get_json_body()
    fee = FeeService.create_fee(data, performed_by=data.get('performed_by'))
    return success_response(201, message='Fee created', fee=fee.to_dict())

@fees_bp.route('', methods=['GET'])
@api_errors('list fees')
def list_fees():
    fees = FeeService.list_fees(active_only=parse_bool(request.args.get('active_only'), default=True))
    return success_response(fees=serialize(fees), count=len(fees))

@fees_bp.route('/<int:fee_id>', methods=['GET'])
@api_errors('get fee')
def get_fee(fee_id):
    return success_response(fee=FeeService.get_fee(fee_id).to_dict())

@fees_bp.route('/<int:fee_id>', methods=['PUT'])
@api_errors('update fee')
def update_fee(fee_id):
    fee = FeeService.update_fee(fee_id, get_json_body())
    return success_response(message='Fee updated', fee=fee.to_dict())

@fees_bp.route('/<int:fee_id>', methods=['DELETE'])
@api_errors('deactivate fee')
def deactivate_fee(fee_id):
    fee = FeeService.deactivate_fee(fee_id)
    return success_response(message='Fee deactivated', fee=fee.to_dict())

@fees_bp.route('/type/<fee_type>', methods=['GET'])
@api_errors('get fees by type')
def fees_by_type(fee_type):
    fees = FeeService.get_fees_by_type(fee_type)
    return success_response(fees=serialize(fees), count=len(fees))

@fees_bp.route('/year/<academic_year>', methods=['GET'])
@api_errors('get fees by year')
def fees_by_year(academic_year):
    fees = FeeService.get_fees_by_year(academic_year)
    return success_response(academic_year=academic_year, fees=serialize(fees), count=len(fees))

# -------------------------------------------------------------- assignment

@fees_bp.route('/assign', methods=['POST'])
@api_errors('assign fee')
def assign_fee():
    data = get_json_body()
    student_fee = FeeService.assign_fee(
        parse_int(data.get('student_id'), 'student_id'),
        parse_int(data.get('fee_id'), 'fee_id'),
        amount=data.get('amount'),
        due_date=data.get('due_date')
    )
    return success_response(201, message='Fee assigned', student_fee=student_fee.to_dict())

@fees_bp.route('/assign/bulk', methods=['POST'])
@api_errors('assign fees')
def bulk_assign():
    data = get_json_body()
    assigned = FeeService.bulk_assign(data.get('student_ids'), parse_int(data.get('fee_id'), 'fee_id'))
    return success_response(message=f'{len(assigned)} fees assigned', student_fees=serialize(assigned),
                            count=len(assigned))

@fees_bp.route('/assign/grade/<int:grade_level>', methods=['POST'])
@api_errors('assign fees')
def assign_to_grade(grade_level):
    fee_id = parse_int(get_json_body().get('fee_id'), 'fee_id')
    assigned = FeeService.assign_to_grade_level(grade_level, fee_id)
    return success_response(message=f'{len(assigned)} fees assigned', student_fees=serialize(assigned),
                            count=len(assigned))

@fees_bp.route('/assign/student/<int:student_id>/mandatory', methods=['POST'])
@api_errors('assign mandatory fees')
def assign_mandatory(student_id):
    assigned = FeeService.assign_mandatory_fees(student_id)
    return success_response(student_id=student_id, student_fees=serialize(assigned), count=len(assigned))

@fees_bp.route('/assign/student/<int:student_id>/annual', methods=['POST'])
@api_errors('assign annual fees')
def assign_annual(student_id):
    assigned = FeeService.assign_annual_fees(student_id, request.args.get('academic_year'))
    return success_response(student_id=student_id, student_fees=serialize(assigned), count=len(assigned))

@fees_bp.route('/student-fees/<int:student_fee_id>', methods=['GET'])
@api_errors('get student fee')
def get_student_fee(student_fee_id):
    student_fee = FeeService.get_student_fee(student_fee_id)
    student_fee.refresh_status()
    return success_response(student_fee=student_fee.to_dict())

@fees_bp.route('/student-fees/<int:student_fee_id>', methods=['DELETE'])
@api_errors('remove student fee')
def remove_student_fee(student_fee_id):
    FeeService.remove_student_fee(student_fee_id)
    return success_response(message='Student fee removed')

# ---------------------------------------------------------------- payments

@fees_bp.route('/student-fees/<int:student_fee_id>/payments', methods=['POST'])
@api_errors('record payment')
def record_payment(student_fee_id):
    data = get_json_body()
    payment = FeeService.record_payment(student_fee_id, data, performed_by=data.get('recorded_by'))
    return success_response(201, message='Payment recorded', payment=payment.to_dict(),
                            confirmation_number=payment.confirmation_number)

@fees_bp.route('/student-fees/<int:student_fee_id>/payments', methods=['GET'])
@api_errors('get payment history')
def payment_history(student_fee_id):
    payments = FeeService.get_payment_history(student_fee_id)
    return success_response(payments=serialize(payments), count=len(payments))

@fees_bp.route('/payments/<int:payment_id>', methods=['GET'])
@api_errors('get payment')
def get_payment(payment_id):
    return success_response(payment=FeeService.get_payment(payment_id).to_dict())

@fees_bp.route('/payments/<int:payment_id>/refund', methods=['POST'])
@api_errors('refund payment')
def refund_payment(payment_id):
    data = get_json_body()
    payment = FeeService.refund_payment(payment_id, data.get('reason'), performed_by=data.get('performed_by'))
    return success_response(message='Payment refunded', payment=payment.to_dict())

@fees_bp.route('/payments/date-range', methods=['GET'])
@api_errors('get payments in range')
def payments_in_range():
    start_date, end_date = parse_date_range(request.args)
    payments = FeeService.get_payments_in_range(start_date, end_date)
    return success_response(payments=serialize(payments), count=len(payments))

# ----------------------------------------------------------------- waivers

@fees_bp.route('/student-fees/<int:student_fee_id>/waive', methods=['POST'])
@api_errors('waive fee')
def waive_fee(student_fee_id):
    data = get_json_body()
    student_fee = FeeService.waive_fee(student_fee_id, data.get('reason'),
                                       waived_by=data.get('waived_by'), amount=data.get('amount'))
    return success_response(message='Fee waived', student_fee=student_fee.to_dict())

@fees_bp.route('/student-fees/<int:student_fee_id>/waive', methods=['DELETE'])
@api_errors('remove waiver')
def remove_waiver(student_fee_id):
    student_fee = FeeService.remove_waiver(student_fee_id, performed_by=request.args.get('performed_by'))
    return success_response(message='Waiver removed', student_fee=student_fee.to_dict())

# -------------------------------------------------------- student queries

@fees_bp.route('/student/<int:student_id>', methods=['GET'])
@api_errors('get student fees')
def student_fees(student_id):
    fees = FeeService.get_student_fees(student_id, request.args.get('academic_year'))
    return success_response(student_id=student_id, student_fees=serialize(fees), count=len(fees))

@fees_bp.route('/student/<int:student_id>/outstanding', methods=['GET'])
@api_errors('get outstanding fees')
def outstanding_fees(student_id):
    fees = FeeService.get_outstanding_fees(student_id)
    return success_response(student_id=student_id, student_fees=serialize(fees), count=len(fees))

@fees_bp.route('/student/<int:student_id>/overdue', methods=['GET'])
@api_errors('get overdue fees')
def overdue_fees(student_id):
    fees = FeeService.get_overdue_fees(student_id)
    return success_response(student_id=student_id, student_fees=serialize(fees), count=len(fees))

@fees_bp.route('/student/<int:student_id>/balance', methods=['GET'])
@api_errors('get student balance')
def student_balance(student_id):
    return success_response(student_id=student_id, balance=FeeService.get_student_balance(student_id))

@fees_bp.route('/student/<int:student_id>/payments', methods=['GET'])
@api_errors('get student payments')
def student_payments(student_id):
    payments = FeeService.get_student_payments(student_id)
    return success_response(student_id=student_id, payments=serialize(payments), count=len(payments))

@fees_bp.route('/student/<int:student_id>/statement', methods=['GET'])
@api_errors('get student statement')
def student_statement(student_id):
    return success_response(statement=FeeService.get_student_statement(student_id, request.args.get('academic_year')))

@fees_bp.route('/student/<int:student_id>/statement/pdf', methods=['GET'])
@api_errors('generate fee statement')
def student_statement_pdf(student_id):
    pdf_bytes = ReportingService.generate_fee_statement_pdf(student_id, request.args.get('academic_year'))
    return file_response(pdf_bytes, f'fee_statement_{student_id}.pdf', 'application/pdf')

# ----------------------------------------------------------------- reports

@fees_bp.route('/overdue', methods=['GET'])
@api_errors('get overdue fees')
def all_overdue():
    fees = FeeService.get_all_overdue()
    return success_response(student_fees=serialize(fees), count=len(fees))

@fees_bp.route('/reports/outstanding', methods=['GET'])
@api_errors('get total outstanding')
def total_outstanding():
    academic_year = request.args.get('academic_year')
    return success_response(academic_year=academic_year,
                            total_outstanding=FeeService.get_total_outstanding(academic_year))

@fees_bp.route('/reports/collection', methods=['GET'])
@api_errors('generate collection report')
def collection_report():
    start_date, end_date = parse_date_range(request.args)
    return success_response(report=FeeService.get_collection_report(start_date, end_date))

@fees_bp.route('/reports/collection/export', methods=['GET'])
@api_errors('export collection report')
def export_collection():
    start_date, end_date = parse_date_range(request.args)
    data = ExcelExportService.export_fee_collection(start_date, end_date)
    return file_response(data, f'fee_collection_{start_date.isoformat()}_{end_date.isoformat()}.xlsx', XLSX)

@fees_bp.route('/reports/by-type', methods=['GET'])
@api_errors('generate collection report')
def collection_by_type():
    return success_response(report=FeeService.get_collection_by_type(request.args.get('academic_year')))
