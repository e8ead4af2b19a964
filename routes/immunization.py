"""
Immunization routes for Brookfield School Information System
"""

from flask import Blueprint, request

from services.immunization_service import ImmunizationService
from services.reporting_service import ReportingService
from utils.responses import api_errors, success_response, get_json_body, serialize, file_response
from utils.validators import parse_int

immunization_bp = Blueprint('immunization', __name__)

@immunization_bp.route('', methods=['POST'])
@api_errors('record immunization')
def create_immunization():
    immunization = ImmunizationService.create_immunization(get_json_body())
    return success_response(201, message='Immunization recorded', immunization=immunization.to_dict())

@immunization_bp.route('/<int:immunization_id>', methods=['GET'])
@api_errors('get immunization')
def get_immunization(immunization_id):
    return success_response(immunization=ImmunizationService.get_immunization(immunization_id).to_dict())

@immunization_bp.route('/<int:immunization_id>', methods=['PUT'])
@api_errors('update immunization')
def update_immunization(immunization_id):
    immunization = ImmunizationService.update_immunization(immunization_id, get_json_body())
    return success_response(message='Immunization updated', immunization=immunization.to_dict())

@immunization_bp.route('/<int:immunization_id>/verify', methods=['POST'])
@api_errors('verify immunization')
def verify(immunization_id):
    immunization = ImmunizationService.verify(immunization_id, get_json_body().get('verified_by'))
    return success_response(message='Immunization verified', immunization=immunization.to_dict())

@immunization_bp.route('/exemptions/medical', methods=['POST'])
@api_errors('record medical exemption')
def medical_exemption():
    exemption = ImmunizationService.record_exemption(get_json_body(), 'MEDICAL')
    return success_response(201, message='Medical exemption recorded', immunization=exemption.to_dict())

@immunization_bp.route('/exemptions/religious', methods=['POST'])
@api_errors('record religious exemption')
def religious_exemption():
    exemption = ImmunizationService.record_exemption(get_json_body(), 'RELIGIOUS')
    return success_response(201, message='Religious exemption recorded', immunization=exemption.to_dict())

@immunization_bp.route('/student/<int:student_id>', methods=['GET'])
@api_errors('get student immunizations')
def student_immunizations(student_id):
    records = ImmunizationService.get_student_immunizations(student_id)
    return success_response(student_id=student_id, immunizations=serialize(records), count=len(records))

@immunization_bp.route('/student/<int:student_id>/vaccine/<vaccine_type>', methods=['GET'])
@api_errors('get student immunizations')
def student_immunizations_by_type(student_id, vaccine_type):
    records = ImmunizationService.get_student_immunizations_by_type(student_id, vaccine_type)
    return success_response(student_id=student_id, immunizations=serialize(records), count=len(records))

@immunization_bp.route('/student/<int:student_id>/compliance', methods=['GET'])
@api_errors('check compliance')
def compliance_report(student_id):
    return success_response(report=ImmunizationService.check_compliance(student_id))

@immunization_bp.route('/student/<int:student_id>/compliance-status', methods=['GET'])
@api_errors('check compliance')
def compliance_status(student_id):
    return success_response(student_id=student_id, compliant=ImmunizationService.is_compliant(student_id))

@immunization_bp.route('/student/<int:student_id>/compliance/pdf', methods=['GET'])
@api_errors('generate compliance report')
def compliance_pdf(student_id):
    pdf_bytes = ReportingService.generate_immunization_compliance_pdf(student_id)
    return file_response(pdf_bytes, f'immunization_compliance_{student_id}.pdf', 'application/pdf')

@immunization_bp.route('/non-compliant', methods=['GET'])
@api_errors('get non-compliant students')
def non_compliant():
    students = ImmunizationService.get_non_compliant_students()
    return success_response(students=students, count=len(students))

@immunization_bp.route('/overdue', methods=['GET'])
@api_errors('get overdue immunizations')
def overdue():
    records = ImmunizationService.get_overdue()
    return success_response(immunizations=serialize(records), count=len(records))

@immunization_bp.route('/due-soon', methods=['GET'])
@api_errors('get immunizations due soon')
def due_soon():
    days = parse_int(request.args.get('days'), 'days', required=False, minimum=0)
    records = ImmunizationService.get_due_soon(days)
    return success_response(immunizations=serialize(records), count=len(records))

@immunization_bp.route('/incomplete-series', methods=['GET'])
@api_errors('get incomplete series')
def incomplete_series():
    records = ImmunizationService.get_incomplete_series()
    return success_response(immunizations=serialize(records), count=len(records))

@immunization_bp.route('/exemptions', methods=['GET'])
@api_errors('get students with exemptions')
def students_with_exemptions():
    students = ImmunizationService.get_students_with_exemptions()
    return success_response(students=serialize(students), count=len(students))

@immunization_bp.route('/dashboard', methods=['GET'])
@api_errors('load immunization dashboard')
def dashboard():
    return success_response(dashboard=ImmunizationService.get_dashboard())

@immunization_bp.route('/vaccines', methods=['GET'])
@api_errors('load vaccine reference')
def vaccines():
    return success_response(vaccines=ImmunizationService.get_vaccine_reference())
