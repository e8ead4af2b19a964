"""
Health office routes for Brookfield School Information System
Student health records and nurse visits
"""

from flask import Blueprint, request

from services.health_office_service import HealthOfficeService
from utils.responses import api_errors, success_response, get_json_body, serialize
from utils.validators import parse_date_range, parse_int

health_office_bp = Blueprint('health_office', __name__)

SCREENINGS = ('vision', 'hearing')

# ---------------------------------------------------------- health records

@health_office_bp.route('/records', methods=['POST'])
@api_errors('create health record')
def create_record():
    record = HealthOfficeService.create_record(get_json_body())
    return success_response(201, message='Health record created', record=record.to_dict())

@health_office_bp.route('/records/<int:record_id>', methods=['GET'])
@api_errors('get health record')
def get_record(record_id):
    return success_response(record=HealthOfficeService.get_record(record_id).to_dict())

@health_office_bp.route('/records/student/<int:student_id>', methods=['GET'])
@api_errors('get health record')
def get_record_by_student(student_id):
    return success_response(record=HealthOfficeService.get_record_by_student(student_id).to_dict())

@health_office_bp.route('/records/<int:record_id>', methods=['PUT'])
@api_errors('update health record')
def update_record(record_id):
    record = HealthOfficeService.update_record(record_id, get_json_body())
    return success_response(message='Health record updated', record=record.to_dict())

@health_office_bp.route('/records/<int:record_id>/complete', methods=['POST'])
@api_errors('complete health record')
def mark_complete(record_id):
    record = HealthOfficeService.mark_complete(record_id)
    return success_response(message='Health record marked complete', record=record.to_dict())

@health_office_bp.route('/records/<int:record_id>/screenings/<screening>', methods=['POST'])
@api_errors('record screening')
def record_screening(record_id, screening):
    if screening not in SCREENINGS:
        raise ValueError(f"screening must be one of: {', '.join(SCREENINGS)}")
    data = get_json_body()
    record = HealthOfficeService.record_screening(record_id, screening, data.get('screening_date'), data.get('result'))
    return success_response(message=f'{screening.title()} screening recorded', record=record.to_dict())

@health_office_bp.route('/records/needing-screening/<screening>', methods=['GET'])
@api_errors('get students needing screening')
def needing_screening(screening):
    if screening not in SCREENINGS:
        raise ValueError(f"screening must be one of: {', '.join(SCREENINGS)}")
    records = HealthOfficeService.get_needing_screening(screening)
    return success_response(screening=screening, records=serialize(records), count=len(records))

@health_office_bp.route('/records/high-risk', methods=['GET'])
@api_errors('get high-risk students')
def high_risk():
    records = HealthOfficeService.get_high_risk()
    return success_response(records=serialize(records), count=len(records))

@health_office_bp.route('/records/incomplete', methods=['GET'])
@api_errors('get incomplete records')
def incomplete_records():
    records = HealthOfficeService.get_incomplete()
    return success_response(records=serialize(records), count=len(records))

# ------------------------------------------------------------ nurse visits

@health_office_bp.route('/visits', methods=['POST'])
@api_errors('check in student')
def check_in():
    visit = HealthOfficeService.check_in(get_json_body())
    return success_response(201, message='Student checked in', visit=visit.to_dict())

@health_office_bp.route('/visits/<int:visit_id>', methods=['GET'])
@api_errors('get visit')
def get_visit(visit_id):
    return success_response(visit=HealthOfficeService.get_visit(visit_id).to_dict())

@health_office_bp.route('/visits/<int:visit_id>/check-out', methods=['POST'])
@api_errors('check out student')
def check_out(visit_id):
    data = get_json_body()
    visit = HealthOfficeService.check_out(visit_id, data.get('disposition'), data.get('treatment_provided'))
    return success_response(message='Student checked out', visit=visit.to_dict())

@health_office_bp.route('/visits/<int:visit_id>/temperature', methods=['POST'])
@api_errors('record temperature')
def record_temperature(visit_id):
    visit = HealthOfficeService.record_temperature(visit_id, get_json_body().get('temperature'))
    return success_response(message='Temperature recorded', visit=visit.to_dict())

@health_office_bp.route('/visits/<int:visit_id>/notify-parent', methods=['POST'])
@api_errors('notify parent')
def notify_parent(visit_id):
    data = get_json_body()
    visit = HealthOfficeService.notify_parent(visit_id, data.get('contact_method'), data.get('notes'))
    return success_response(message='Parent notified', visit=visit.to_dict())

@health_office_bp.route('/visits/<int:visit_id>/send-home', methods=['POST'])
@api_errors('send student home')
def send_home(visit_id):
    visit = HealthOfficeService.send_home(visit_id, get_json_body().get('reason'))
    return success_response(message='Student sent home', visit=visit.to_dict())

@health_office_bp.route('/visits/student/<int:student_id>', methods=['GET'])
@api_errors('get student visits')
def student_visits(student_id):
    visits = HealthOfficeService.get_student_visits(student_id)
    return success_response(student_id=student_id, visits=serialize(visits), count=len(visits))

@health_office_bp.route('/visits/date-range', methods=['GET'])
@api_errors('get visits in range')
def visits_in_range():
    start_date, end_date = parse_date_range(request.args)
    visits = HealthOfficeService.get_visits_in_range(start_date, end_date)
    return success_response(visits=serialize(visits), count=len(visits))

@health_office_bp.route('/visits/active', methods=['GET'])
@api_errors('get active visits')
def active_visits():
    visits = HealthOfficeService.get_active_visits()
    return success_response(visits=serialize(visits), count=len(visits))

@health_office_bp.route('/visits/pending-notifications', methods=['GET'])
@api_errors('get pending notifications')
def pending_notifications():
    visits = HealthOfficeService.get_pending_parent_notifications()
    return success_response(visits=serialize(visits), count=len(visits))

@health_office_bp.route('/visits/sent-home-today', methods=['GET'])
@api_errors('get students sent home')
def sent_home_today():
    visits = HealthOfficeService.get_sent_home_today()
    return success_response(visits=serialize(visits), count=len(visits))

@health_office_bp.route('/visits/frequent-visitors', methods=['GET'])
@api_errors('get frequent visitors')
def frequent_visitors():
    start_date, end_date = parse_date_range(request.args)
    minimum = parse_int(request.args.get('minimum_visits'), 'minimum_visits', required=False, minimum=1)
    visitors = HealthOfficeService.get_frequent_visitors(start_date, end_date, minimum)
    return success_response(visitors=visitors, count=len(visitors))

@health_office_bp.route('/dashboard', methods=['GET'])
@api_errors('load health office dashboard')
def dashboard():
    return success_response(statistics=HealthOfficeService.get_dashboard_statistics())
