"""
Attendance routes for Brookfield School Information System
"""

from datetime import date

from flask import Blueprint, request

from services.attendance_service import AttendanceService
from services.excel_export_service import ExcelExportService
from utils.responses import api_errors, success_response, get_json_body, serialize, file_response
from utils.validators import parse_date, parse_date_range, parse_int, parse_float

attendance_bp = Blueprint('attendance', __name__)

XLSX = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

@attendance_bp.route('', methods=['POST'])
@api_errors('record attendance')
def record_attendance():
    record = AttendanceService.record_attendance(get_json_body())
    return success_response(201, message='Attendance recorded', record=record.to_dict())

@attendance_bp.route('/bulk', methods=['POST'])
@api_errors('record attendance')
def bulk_record():
    data = get_json_body()
    defaults = {k: data[k] for k in ('attendance_date', 'course_id', 'period_number', 'recorded_by') if k in data}
    saved, errors = AttendanceService.bulk_record(data.get('records'), defaults)
    return success_response(message=f'{len(saved)} records saved', count=len(saved), errors=errors)

@attendance_bp.route('/<int:record_id>', methods=['GET'])
@api_errors('get attendance record')
def get_record(record_id):
    return success_response(record=AttendanceService.get_record(record_id).to_dict())

@attendance_bp.route('/<int:record_id>/status', methods=['PUT'])
@api_errors('update attendance')
def update_status(record_id):
    data = get_json_body()
    record = AttendanceService.update_status(record_id, data.get('status'), data.get('notes'))
    return success_response(message='Attendance updated', record=record.to_dict())

@attendance_bp.route('/student/<int:student_id>', methods=['GET'])
@api_errors('get student attendance')
def student_records(student_id):
    records = AttendanceService.get_student_records(
        student_id,
        parse_date(request.args.get('start_date'), 'start_date', required=False),
        parse_date(request.args.get('end_date'), 'end_date', required=False)
    )
    return success_response(student_id=student_id, records=serialize(records), count=len(records))

@attendance_bp.route('/student/<int:student_id>/summary', methods=['GET'])
@api_errors('get attendance summary')
def student_summary(student_id):
    summary = AttendanceService.get_student_summary(
        student_id,
        parse_date(request.args.get('start_date'), 'start_date', required=False),
        parse_date(request.args.get('end_date'), 'end_date', required=False)
    )
    return success_response(summary=summary)

@attendance_bp.route('/date/<attendance_date>', methods=['GET'])
@api_errors('get attendance for date')
def records_for_date(attendance_date):
    day = parse_date(attendance_date, 'date')
    records = AttendanceService.get_records_for_date(day)
    return success_response(date=day.isoformat(), records=serialize(records), count=len(records))

@attendance_bp.route('/daily-summary', methods=['GET'])
@api_errors('get daily summary')
def daily_summary():
    day = parse_date(request.args.get('date'), 'date', required=False) or date.today()
    return success_response(summary=AttendanceService.get_daily_summary(day))

@attendance_bp.route('/ada', methods=['GET'])
@api_errors('calculate ADA')
def average_daily_attendance():
    start_date, end_date = parse_date_range(request.args)
    return success_response(report=AttendanceService.calculate_ada(start_date, end_date))

@attendance_bp.route('/truancy', methods=['GET'])
@api_errors('generate truancy report')
def truancy_report():
    start_date, end_date = parse_date_range(request.args)
    threshold = parse_int(request.args.get('threshold'), 'threshold', required=False)
    return success_response(report=AttendanceService.generate_truancy_report(start_date, end_date, threshold))

@attendance_bp.route('/chronic-absences', methods=['GET'])
@api_errors('get chronic absences')
def chronic_absences():
    start_date, end_date = parse_date_range(request.args)
    rate = parse_float(request.args.get('rate_threshold'), 'rate_threshold', required=False, minimum=0)
    students = AttendanceService.get_chronic_absences(start_date, end_date, rate)
    return success_response(students=students, count=len(students))

@attendance_bp.route('/export', methods=['GET'])
@api_errors('export attendance')
def export_attendance():
    start_date, end_date = parse_date_range(request.args)
    data = ExcelExportService.export_attendance_report(start_date, end_date)
    return file_response(data, f'attendance_{start_date.isoformat()}_{end_date.isoformat()}.xlsx', XLSX)
