"""
Conflict analysis routes for Brookfield School Information System
"""

from flask import Blueprint, request

from services.conflict_analysis_service import ConflictAnalysisService
from utils.responses import api_errors, success_response, get_json_body
from utils.validators import require_fields, parse_int

conflict_analysis_bp = Blueprint('conflict_analysis', __name__)

def _term_arg():
    return parse_int(request.args.get('term_id'), 'term_id')

# ---------------------------------------------------------------- students

@conflict_analysis_bp.route('/students/<int:student_id>/conflicts', methods=['GET'])
@api_errors('analyze student conflicts')
def student_conflicts(student_id):
    return success_response(**ConflictAnalysisService.student_conflicts(student_id, _term_arg()))

@conflict_analysis_bp.route('/students/<int:student_id>/check-course-addition', methods=['POST'])
@api_errors('check course addition')
def check_course_addition(student_id):
    data = get_json_body()
    require_fields(data, 'course_id', 'section_id', 'term_id')
    result = ConflictAnalysisService.check_course_addition(
        student_id,
        parse_int(data['course_id'], 'course_id'),
        parse_int(data['section_id'], 'section_id'),
        parse_int(data['term_id'], 'term_id')
    )
    return success_response(**result)

# ---------------------------------------------------------- teachers/rooms

@conflict_analysis_bp.route('/teachers/<int:teacher_id>/conflicts', methods=['GET'])
@api_errors('analyze teacher conflicts')
def teacher_conflicts(teacher_id):
    return success_response(**ConflictAnalysisService.teacher_conflicts(teacher_id, _term_arg()))

@conflict_analysis_bp.route('/teachers/<int:teacher_id>/availability', methods=['GET'])
@api_errors('get teacher availability')
def teacher_availability(teacher_id):
    result = ConflictAnalysisService.teacher_availability(teacher_id, _term_arg(), request.args.get('day_of_week'))
    return success_response(**result)

@conflict_analysis_bp.route('/rooms/<int:room_id>/conflicts', methods=['GET'])
@api_errors('analyze room conflicts')
def room_conflicts(room_id):
    return success_response(**ConflictAnalysisService.room_conflicts(room_id, _term_arg()))

@conflict_analysis_bp.route('/rooms/<int:room_id>/availability', methods=['GET'])
@api_errors('get room availability')
def room_availability(room_id):
    result = ConflictAnalysisService.room_availability(room_id, _term_arg(), request.args.get('day_of_week'))
    return success_response(**result)

# ------------------------------------------------------------------- terms

@conflict_analysis_bp.route('/terms/<int:term_id>/analysis', methods=['GET'])
@api_errors('analyze schedule')
def term_analysis(term_id):
    return success_response(term_id=term_id, **ConflictAnalysisService.analyze_term(term_id))

@conflict_analysis_bp.route('/terms/<int:term_id>/all-conflicts', methods=['GET'])
@api_errors('get term conflicts')
def all_conflicts(term_id):
    return success_response(**ConflictAnalysisService.all_conflicts(term_id, request.args.get('severity')))

@conflict_analysis_bp.route('/terms/<int:term_id>/dashboard', methods=['GET'])
@api_errors('load conflict dashboard')
def dashboard(term_id):
    return success_response(dashboard=ConflictAnalysisService.dashboard(term_id))

@conflict_analysis_bp.route('/terms/<int:term_id>/constraint-violations', methods=['GET'])
@api_errors('get constraint violations')
def constraint_violations(term_id):
    return success_response(**ConflictAnalysisService.constraint_violations(term_id, request.args.get('type')))

@conflict_analysis_bp.route('/terms/<int:term_id>/optimization-opportunities', methods=['GET'])
@api_errors('get optimization opportunities')
def optimization_opportunities(term_id):
    return success_response(**ConflictAnalysisService.optimization_opportunities(term_id))

@conflict_analysis_bp.route('/terms/<int:term_id>/quality-metrics', methods=['GET'])
@api_errors('get quality metrics')
def quality_metrics(term_id):
    return success_response(metrics=ConflictAnalysisService.quality_metrics(term_id))

# -------------------------------------------------------------- resolution

@conflict_analysis_bp.route('/conflicts/<conflict_type>/resolution-suggestions', methods=['GET'])
@api_errors('get resolution suggestions')
def resolution_suggestions(conflict_type):
    suggestions = ConflictAnalysisService.resolution_suggestions(conflict_type)
    return success_response(conflict_type=conflict_type.upper(), suggestions=suggestions, count=len(suggestions))

@conflict_analysis_bp.route('/find-alternative-slots', methods=['POST'])
@api_errors('find alternative slots')
def find_alternative_slots():
    data = get_json_body()
    require_fields(data, 'course_id', 'teacher_id', 'term_id')
    preferred_days = data.get('preferred_days')
    if preferred_days is not None and not isinstance(preferred_days, list):
        raise ValueError("preferred_days must be a list")
    result = ConflictAnalysisService.alternative_slots(
        parse_int(data['course_id'], 'course_id'),
        parse_int(data['teacher_id'], 'teacher_id'),
        parse_int(data['term_id'], 'term_id'),
        room_id=parse_int(data.get('room_id'), 'room_id', required=False),
        preferred_days=preferred_days
    )
    return success_response(**result)
