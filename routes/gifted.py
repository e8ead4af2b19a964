"""
Gifted program routes for Brookfield School Information System
"""

from flask import Blueprint, request

from services.gifted_service import GiftedService
from utils.responses import api_errors, success_response, get_json_body, serialize
from utils.validators import parse_date_range, parse_int

gifted_bp = Blueprint('gifted', __name__)

def _students(students):
    return success_response(students=serialize(students), count=len(students))

def _assessments(assessments):
    return success_response(assessments=serialize(assessments), count=len(assessments))

def _plans(plans):
    return success_response(plans=serialize(plans), count=len(plans))

def _services(services):
    return success_response(services=serialize(services), count=len(services))

# ---------------------------------------------------------------- students

@gifted_bp.route('/students', methods=['POST'])
@api_errors('refer student')
def create_gifted_student():
    gifted = GiftedService.create_gifted_student(get_json_body())
    return success_response(201, message='Student referred', gifted_student=gifted.to_dict())

@gifted_bp.route('/students', methods=['GET'])
@api_errors('list gifted students')
def list_gifted_students():
    return _students(GiftedService.list_gifted_students())

@gifted_bp.route('/students/<int:gifted_student_id>', methods=['GET'])
@api_errors('get gifted student')
def get_gifted_student(gifted_student_id):
    return success_response(gifted_student=GiftedService.get_gifted_student(gifted_student_id).to_dict())

@gifted_bp.route('/students/<int:gifted_student_id>', methods=['PUT'])
@api_errors('update gifted student')
def update_gifted_student(gifted_student_id):
    gifted = GiftedService.update_gifted_student(gifted_student_id, get_json_body())
    return success_response(message='Gifted student updated', gifted_student=gifted.to_dict())

@gifted_bp.route('/students/by-student/<int:student_id>', methods=['GET'])
@api_errors('get gifted student')
def get_by_student_id(student_id):
    return success_response(gifted_student=GiftedService.get_by_student_id(student_id).to_dict())

@gifted_bp.route('/students/status/<status>', methods=['GET'])
@api_errors('get gifted students by status')
def students_by_status(status):
    return _students(GiftedService.get_by_status(status))

@gifted_bp.route('/students/area/<area>', methods=['GET'])
@api_errors('get gifted students by area')
def students_by_area(area):
    return _students(GiftedService.get_by_area(area))

@gifted_bp.route('/students/awaiting-screening', methods=['GET'])
@api_errors('get students awaiting screening')
def awaiting_screening():
    return _students(GiftedService.get_awaiting_screening())

@gifted_bp.route('/students/in-assessment', methods=['GET'])
@api_errors('get students in assessment')
def in_assessment():
    return _students(GiftedService.get_in_assessment())

@gifted_bp.route('/students/eligible', methods=['GET'])
@api_errors('get eligible students')
def eligible():
    return _students(GiftedService.get_eligible())

@gifted_bp.route('/students/needing-progress-review', methods=['GET'])
@api_errors('get students needing progress review')
def needing_progress_review():
    days = parse_int(request.args.get('days_overdue', 90), 'days_overdue', minimum=0)
    return _students(GiftedService.get_needing_progress_review(days))

@gifted_bp.route('/students/needing-annual-review', methods=['GET'])
@api_errors('get students needing annual review')
def needing_annual_review():
    return _students(GiftedService.get_needing_annual_review())

@gifted_bp.route('/students/upcoming-annual-review', methods=['GET'])
@api_errors('get upcoming annual reviews')
def upcoming_annual_review():
    days = parse_int(request.args.get('days_ahead', 30), 'days_ahead', minimum=0)
    return _students(GiftedService.get_upcoming_annual_review(days))

@gifted_bp.route('/students/needing-parent-notification', methods=['GET'])
@api_errors('get students needing parent notification')
def needing_parent_notification():
    return _students(GiftedService.get_needing_parent_notification())

@gifted_bp.route('/students/needing-parent-consent', methods=['GET'])
@api_errors('get students needing parent consent')
def needing_parent_consent():
    return _students(GiftedService.get_needing_parent_consent())

@gifted_bp.route('/students/underperforming', methods=['GET'])
@api_errors('get underperforming students')
def underperforming():
    return _students(GiftedService.get_underperforming())

@gifted_bp.route('/students/below-gpa', methods=['GET'])
@api_errors('get students below GPA')
def below_gpa():
    return _students(GiftedService.get_below_gpa(request.args.get('min_gpa')))

@gifted_bp.route('/students/with-concerns', methods=['GET'])
@api_errors('get students with concerns')
def with_concerns():
    return _students(GiftedService.get_with_concerns())

@gifted_bp.route('/students/cluster-group/<group_name>', methods=['GET'])
@api_errors('get cluster group')
def cluster_group(group_name):
    return _students(GiftedService.get_by_cluster_group(group_name))

@gifted_bp.route('/students/list/<flag>', methods=['GET'])
@api_errors('get student list')
def students_with_flag(flag):
    return _students(GiftedService.get_with_flag(flag))

# ------------------------------------------------------------- assessments

@gifted_bp.route('/assessments', methods=['POST'])
@api_errors('create assessment')
def create_assessment():
    assessment = GiftedService.create_assessment(get_json_body())
    return success_response(201, message='Assessment recorded', assessment=assessment.to_dict())

@gifted_bp.route('/assessments', methods=['GET'])
@api_errors('list assessments')
def list_assessments():
    return _assessments(GiftedService.list_assessments())

@gifted_bp.route('/assessments/<int:assessment_id>', methods=['GET'])
@api_errors('get assessment')
def get_assessment(assessment_id):
    return success_response(assessment=GiftedService.get_assessment(assessment_id).to_dict())

@gifted_bp.route('/assessments/<int:assessment_id>', methods=['PUT'])
@api_errors('update assessment')
def update_assessment(assessment_id):
    assessment = GiftedService.update_assessment(assessment_id, get_json_body())
    return success_response(message='Assessment updated', assessment=assessment.to_dict())

@gifted_bp.route('/students/<int:gifted_student_id>/assessments', methods=['GET'])
@api_errors('get student assessments')
def assessments_by_student(gifted_student_id):
    return _assessments(GiftedService.get_assessments_by_student(gifted_student_id))

@gifted_bp.route('/assessments/highly-gifted', methods=['GET'])
@api_errors('get highly gifted assessments')
def highly_gifted():
    return _assessments(GiftedService.get_highly_gifted())

@gifted_bp.route('/assessments/exceptionally-gifted', methods=['GET'])
@api_errors('get exceptionally gifted assessments')
def exceptionally_gifted():
    return _assessments(GiftedService.get_exceptionally_gifted())

@gifted_bp.route('/assessments/pending-results', methods=['GET'])
@api_errors('get assessments pending results')
def pending_results():
    return _assessments(GiftedService.get_assessments_pending_results())

@gifted_bp.route('/assessments/needing-parent-notification', methods=['GET'])
@api_errors('get assessments needing parent notification')
def assessments_needing_notification():
    return _assessments(GiftedService.get_assessments_needing_parent_notification())

# ------------------------------------------------------------------- plans

@gifted_bp.route('/plans', methods=['POST'])
@api_errors('create education plan')
def create_plan():
    plan = GiftedService.create_plan(get_json_body())
    return success_response(201, message='Education plan created', plan=plan.to_dict())

@gifted_bp.route('/plans', methods=['GET'])
@api_errors('list education plans')
def list_plans():
    return _plans(GiftedService.list_plans())

@gifted_bp.route('/plans/<int:plan_id>', methods=['GET'])
@api_errors('get education plan')
def get_plan(plan_id):
    return success_response(plan=GiftedService.get_plan(plan_id).to_dict())

@gifted_bp.route('/plans/number/<plan_number>', methods=['GET'])
@api_errors('get education plan')
def get_plan_by_number(plan_number):
    return success_response(plan=GiftedService.get_plan_by_number(plan_number).to_dict())

@gifted_bp.route('/plans/<int:plan_id>', methods=['PUT'])
@api_errors('update education plan')
def update_plan(plan_id):
    plan = GiftedService.update_plan(plan_id, get_json_body())
    return success_response(message='Education plan updated', plan=plan.to_dict())

@gifted_bp.route('/students/<int:gifted_student_id>/plans', methods=['GET'])
@api_errors('get student plans')
def plans_by_student(gifted_student_id):
    return _plans(GiftedService.get_plans_by_student(gifted_student_id))

@gifted_bp.route('/plans/due-for-review', methods=['GET'])
@api_errors('get plans due for review')
def plans_due_for_review():
    return _plans(GiftedService.get_plans_due_for_review())

@gifted_bp.route('/plans/expiring-soon', methods=['GET'])
@api_errors('get plans expiring soon')
def plans_expiring_soon():
    days = parse_int(request.args.get('days', 30), 'days', minimum=0)
    return _plans(GiftedService.get_plans_expiring_soon(days))

@gifted_bp.route('/plans/needing-consent', methods=['GET'])
@api_errors('get plans needing consent')
def plans_needing_consent():
    return _plans(GiftedService.get_plans_needing_consent())

@gifted_bp.route('/plans/case-manager/<int:case_manager_id>', methods=['GET'])
@api_errors('get plans by case manager')
def plans_by_case_manager(case_manager_id):
    return _plans(GiftedService.get_plans_by_case_manager(case_manager_id))

@gifted_bp.route('/plans/overdue-progress-review', methods=['GET'])
@api_errors('get plans overdue for progress review')
def plans_overdue_progress_review():
    days = parse_int(request.args.get('days', 90), 'days', minimum=0)
    return _plans(GiftedService.get_plans_overdue_progress_review(days))

# ---------------------------------------------------------------- services

@gifted_bp.route('/services', methods=['POST'])
@api_errors('record service')
def create_service():
    record = GiftedService.create_service(get_json_body())
    return success_response(201, message='Service recorded', service=record.to_dict())

@gifted_bp.route('/services', methods=['GET'])
@api_errors('list services')
def list_services():
    return _services(GiftedService.list_services())

@gifted_bp.route('/services/<int:service_id>', methods=['GET'])
@api_errors('get service')
def get_service(service_id):
    return success_response(service=GiftedService.get_service(service_id).to_dict())

@gifted_bp.route('/services/<int:service_id>', methods=['PUT'])
@api_errors('update service')
def update_service(service_id):
    record = GiftedService.update_service(service_id, get_json_body())
    return success_response(message='Service updated', service=record.to_dict())

@gifted_bp.route('/students/<int:gifted_student_id>/services', methods=['GET'])
@api_errors('get student services')
def services_by_student(gifted_student_id):
    return _services(GiftedService.get_services_by_student(gifted_student_id))

@gifted_bp.route('/services/upcoming', methods=['GET'])
@api_errors('get upcoming services')
def upcoming_services():
    return _services(GiftedService.get_upcoming_services())

@gifted_bp.route('/services/needing-documentation', methods=['GET'])
@api_errors('get services needing documentation')
def services_needing_documentation():
    return _services(GiftedService.get_services_needing_documentation())

@gifted_bp.route('/services/provider/<int:provider_id>', methods=['GET'])
@api_errors('get services by provider')
def services_by_provider(provider_id):
    return _services(GiftedService.get_services_by_provider(provider_id))

@gifted_bp.route('/services/needing-followup', methods=['GET'])
@api_errors('get services needing follow-up')
def services_needing_followup():
    return _services(GiftedService.get_services_needing_followup())

@gifted_bp.route('/services/engagement/<level>', methods=['GET'])
@api_errors('get services by engagement')
def services_by_engagement(level):
    return _services(GiftedService.get_services_by_engagement(level.upper()))

@gifted_bp.route('/students/<int:gifted_student_id>/service-minutes', methods=['GET'])
@api_errors('calculate service minutes')
def service_minutes(gifted_student_id):
    start_date, end_date = parse_date_range(request.args)
    minutes = GiftedService.calculate_service_minutes(gifted_student_id, start_date, end_date)
    return success_response(gifted_student_id=gifted_student_id, total_minutes=minutes)

@gifted_bp.route('/services/minutes-by-student', methods=['GET'])
@api_errors('calculate service minutes')
def service_minutes_by_student():
    start_date, end_date = parse_date_range(request.args)
    minutes = GiftedService.calculate_service_minutes_by_student(start_date, end_date)
    return success_response(minutes_by_student={str(k): v for k, v in minutes.items()})

# -------------------------------------------------------------- statistics

@gifted_bp.route('/statistics/program', methods=['GET'])
@api_errors('get program statistics')
def program_statistics():
    return success_response(statistics=GiftedService.get_program_statistics())

@gifted_bp.route('/statistics/assessments', methods=['GET'])
@api_errors('get assessment statistics')
def assessment_statistics():
    return success_response(statistics=GiftedService.get_assessment_statistics())

@gifted_bp.route('/statistics/services', methods=['GET'])
@api_errors('get service statistics')
def service_statistics():
    start_date, end_date = parse_date_range(request.args)
    return success_response(statistics=GiftedService.get_service_statistics(start_date, end_date))

@gifted_bp.route('/compliance-alerts', methods=['GET'])
@api_errors('get compliance alerts')
def compliance_alerts():
    alerts = GiftedService.get_compliance_alerts()
    return success_response(alerts={name: serialize(items) for name, items in alerts.items()})

# -------------------------------------------------------------- dashboards

@gifted_bp.route('/dashboard/overview', methods=['GET'])
@api_errors('load gifted dashboard')
def overview_dashboard():
    return success_response(dashboard=GiftedService.get_overview_dashboard())

@gifted_bp.route('/dashboard/student/<int:gifted_student_id>', methods=['GET'])
@api_errors('load gifted dashboard')
def student_dashboard(gifted_student_id):
    return success_response(dashboard=GiftedService.get_student_dashboard(gifted_student_id))

@gifted_bp.route('/dashboard/compliance', methods=['GET'])
@api_errors('load gifted dashboard')
def compliance_dashboard():
    return success_response(dashboard=GiftedService.get_compliance_dashboard())

@gifted_bp.route('/dashboard/performance', methods=['GET'])
@api_errors('load gifted dashboard')
def performance_dashboard():
    return success_response(dashboard=GiftedService.get_performance_dashboard())
