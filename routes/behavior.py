"""
Behavior incident routes for Brookfield School Information System
"""

from flask import Blueprint, request

from services.behavior_service import BehaviorService
from services.excel_export_service import ExcelExportService
from utils.responses import api_errors, success_response, get_json_body, serialize, file_response
from utils.validators import parse_date_range, parse_int

behavior_bp = Blueprint('behavior', __name__)

XLSX = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

@behavior_bp.route('', methods=['POST'])
@api_errors('create incident')
def create_incident():
    incident = BehaviorService.create_incident(get_json_body())
    return success_response(201, message='Incident recorded', incident=incident.to_dict())

@behavior_bp.route('/<int:incident_id>', methods=['GET'])
@api_errors('get incident')
def get_incident(incident_id):
    return success_response(incident=BehaviorService.get_incident(incident_id).to_dict())

@behavior_bp.route('/<int:incident_id>', methods=['PUT'])
@api_errors('update incident')
def update_incident(incident_id):
    incident = BehaviorService.update_incident(incident_id, get_json_body())
    return success_response(message='Incident updated', incident=incident.to_dict())

@behavior_bp.route('/<int:incident_id>', methods=['DELETE'])
@api_errors('delete incident')
def delete_incident(incident_id):
    BehaviorService.delete_incident(incident_id)
    return success_response(message='Incident deleted')

# ----------------------------------------------------------------- queries

@behavior_bp.route('/student/<int:student_id>', methods=['GET'])
@api_errors('get student incidents')
def student_incidents(student_id):
    incidents = BehaviorService.get_student_incidents(student_id)
    return success_response(student_id=student_id, incidents=serialize(incidents), count=len(incidents))

@behavior_bp.route('/student/<int:student_id>/type/<behavior_type>', methods=['GET'])
@api_errors('get incidents by type')
def incidents_by_type(student_id, behavior_type):
    incidents = BehaviorService.get_student_incidents_by_type(student_id, behavior_type)
    return success_response(student_id=student_id, incidents=serialize(incidents), count=len(incidents))

@behavior_bp.route('/student/<int:student_id>/positive', methods=['GET'])
@api_errors('get positive incidents')
def positive_incidents(student_id):
    incidents = BehaviorService.get_student_incidents_by_type(student_id, 'POSITIVE')
    return success_response(student_id=student_id, incidents=serialize(incidents), count=len(incidents))

@behavior_bp.route('/student/<int:student_id>/negative', methods=['GET'])
@api_errors('get negative incidents')
def negative_incidents(student_id):
    incidents = BehaviorService.get_student_incidents_by_type(student_id, 'NEGATIVE')
    return success_response(student_id=student_id, incidents=serialize(incidents), count=len(incidents))

@behavior_bp.route('/student/<int:student_id>/date-range', methods=['GET'])
@api_errors('get incidents in range')
def incidents_in_range(student_id):
    start_date, end_date = parse_date_range(request.args)
    incidents = BehaviorService.get_incidents_in_range(student_id, start_date, end_date)
    return success_response(student_id=student_id, incidents=serialize(incidents), count=len(incidents))

@behavior_bp.route('/student/<int:student_id>/critical', methods=['GET'])
@api_errors('get critical incidents')
def critical_incidents(student_id):
    days_back = parse_int(request.args.get('days_back'), 'days_back', required=False)
    since_date, incidents = BehaviorService.get_critical_incidents(student_id, days_back)
    return success_response(student_id=student_id, since_date=since_date.isoformat(),
                            incidents=serialize(incidents), count=len(incidents))

@behavior_bp.route('/student/<int:student_id>/uncontacted', methods=['GET'])
@api_errors('get uncontacted incidents')
def uncontacted_incidents(student_id):
    incidents = BehaviorService.get_uncontacted_incidents(student_id)
    return success_response(student_id=student_id, incidents=serialize(incidents), count=len(incidents))

@behavior_bp.route('/student/<int:student_id>/statistics', methods=['GET'])
@api_errors('get behavior statistics')
def behavior_statistics(student_id):
    start_date, end_date = parse_date_range(request.args)
    return success_response(statistics=BehaviorService.get_behavior_statistics(student_id, start_date, end_date))

@behavior_bp.route('/student/<int:student_id>/export', methods=['GET'])
@api_errors('export incidents')
def export_student_incidents(student_id):
    start_date, end_date = parse_date_range(request.args)
    data = ExcelExportService.export_behavior_incidents(start_date, end_date, student_id=student_id)
    return file_response(data, f'behavior_student_{student_id}.xlsx', XLSX)

@behavior_bp.route('/export', methods=['GET'])
@api_errors('export incidents')
def export_incidents():
    start_date, end_date = parse_date_range(request.args)
    data = ExcelExportService.export_behavior_incidents(start_date, end_date)
    return file_response(data, f'behavior_{start_date.isoformat()}_{end_date.isoformat()}.xlsx', XLSX)

# ---------------------------------------------------------------- workflow

@behavior_bp.route('/<int:incident_id>/parent-contact', methods=['POST'])
@api_errors('record parent contact')
def record_parent_contact(incident_id):
    data = get_json_body()
    incident = BehaviorService.record_parent_contact(incident_id, data.get('contact_date'), data.get('contact_method'))
    return success_response(message='Parent contact recorded', incident=incident.to_dict())

@behavior_bp.route('/<int:incident_id>/admin-referral', methods=['POST'])
@api_errors('mark admin referral')
def mark_admin_referral(incident_id):
    incident = BehaviorService.mark_admin_referral(incident_id)
    return success_response(message='Marked for admin referral', incident=incident.to_dict())

@behavior_bp.route('/<int:incident_id>/referral-outcome', methods=['POST'])
@api_errors('record referral outcome')
def record_referral_outcome(incident_id):
    incident = BehaviorService.record_referral_outcome(incident_id, get_json_body().get('outcome'))
    return success_response(message='Referral outcome recorded', incident=incident.to_dict())

@behavior_bp.route('/<int:incident_id>/intervention', methods=['POST'])
@api_errors('record intervention')
def record_intervention(incident_id):
    incident = BehaviorService.record_intervention(incident_id, get_json_body().get('intervention'))
    return success_response(message='Intervention recorded', incident=incident.to_dict())

@behavior_bp.route('/<int:incident_id>/evidence', methods=['POST'])
@api_errors('attach evidence')
def attach_evidence(incident_id):
    incident = BehaviorService.attach_evidence(incident_id, get_json_body().get('file_path'))
    return success_response(message='Evidence attached', incident=incident.to_dict())

# --------------------------------------------------------------- reporting

@behavior_bp.route('/dashboard', methods=['GET'])
@api_errors('load behavior dashboard')
def dashboard():
    return success_response(dashboard=BehaviorService.get_dashboard())

@behavior_bp.route('/reference-data', methods=['GET'])
@api_errors('load reference data')
def reference_data():
    return success_response(**BehaviorService.get_reference_data())
