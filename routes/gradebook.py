"""
Gradebook routes for Brookfield School Information System
"""

from flask import Blueprint

from services.gradebook_service import GradebookService
from utils.responses import api_errors, success_response, get_json_body, serialize

gradebook_bp = Blueprint('gradebook', __name__)

# -------------------------------------------------------------- categories

@gradebook_bp.route('/courses/<int:course_id>/categories', methods=['GET'])
@api_errors('get grade categories')
def get_categories(course_id):
    categories = GradebookService.get_categories(course_id)
    return success_response(course_id=course_id, categories=serialize(categories), count=len(categories))

@gradebook_bp.route('/courses/<int:course_id>/categories/defaults', methods=['POST'])
@api_errors('create grade categories')
def create_default_categories(course_id):
    categories = GradebookService.create_default_categories(course_id)
    return success_response(201, message='Default categories created', categories=serialize(categories))

@gradebook_bp.route('/categories/weights', methods=['PUT'])
@api_errors('update category weights')
def update_category_weights():
    categories = GradebookService.update_category_weights(get_json_body().get('weights'))
    return success_response(message='Category weights updated', categories=serialize(categories))

# ------------------------------------------------------------- assignments

@gradebook_bp.route('/assignments', methods=['POST'])
@api_errors('create assignment')
def create_assignment():
    assignment = GradebookService.create_assignment(get_json_body())
    return success_response(201, message='Assignment created', assignment=assignment.to_dict())

@gradebook_bp.route('/assignments/<int:assignment_id>', methods=['GET'])
@api_errors('get assignment')
def get_assignment(assignment_id):
    return success_response(assignment=GradebookService.get_assignment(assignment_id).to_dict())

@gradebook_bp.route('/assignments/<int:assignment_id>/publish', methods=['POST'])
@api_errors('publish assignment')
def publish_assignment(assignment_id):
    assignment = GradebookService.publish_assignment(assignment_id)
    return success_response(message='Assignment published', assignment=assignment.to_dict())

@gradebook_bp.route('/courses/<int:course_id>/assignments', methods=['GET'])
@api_errors('get assignments')
def assignments_for_course(course_id):
    assignments = GradebookService.get_assignments_for_course(course_id)
    return success_response(course_id=course_id, assignments=serialize(assignments), count=len(assignments))

@gradebook_bp.route('/categories/<int:category_id>/assignments', methods=['GET'])
@api_errors('get assignments')
def assignments_by_category(category_id):
    assignments = GradebookService.get_assignments_by_category(category_id)
    return success_response(category_id=category_id, assignments=serialize(assignments), count=len(assignments))

# ------------------------------------------------------------------ grades

@gradebook_bp.route('/assignments/<int:assignment_id>/grades/<int:student_id>', methods=['PUT'])
@api_errors('enter grade')
def enter_grade(assignment_id, student_id):
    data = get_json_body()
    grade = GradebookService.enter_grade(student_id, assignment_id, data.get('score'),
                                         data.get('submitted_date'), data.get('comments'))
    return success_response(message='Grade entered', grade=grade.to_dict())

@gradebook_bp.route('/assignments/<int:assignment_id>/grades', methods=['POST'])
@api_errors('enter grades')
def bulk_enter_grades(assignment_id):
    saved = GradebookService.bulk_enter_grades(assignment_id, get_json_body().get('scores'))
    return success_response(message=f'{saved} grades entered', count=saved)

@gradebook_bp.route('/assignments/<int:assignment_id>/grades/<int:student_id>/excuse', methods=['POST'])
@api_errors('excuse grade')
def excuse_grade(assignment_id, student_id):
    grade = GradebookService.excuse_grade(student_id, assignment_id, get_json_body().get('reason'))
    return success_response(message='Assignment excused', grade=grade.to_dict())

@gradebook_bp.route('/assignments/<int:assignment_id>/grades/<int:student_id>/missing', methods=['POST'])
@api_errors('mark assignment missing')
def mark_missing(assignment_id, student_id):
    grade = GradebookService.mark_missing(student_id, assignment_id)
    return success_response(message='Assignment marked missing', grade=grade.to_dict())

# ------------------------------------------------------------ calculations

@gradebook_bp.route('/students/<int:student_id>/courses/<int:course_id>/grade', methods=['GET'])
@api_errors('calculate course grade')
def course_grade(student_id, course_id):
    return success_response(grade=GradebookService.calculate_course_grade(student_id, course_id))

@gradebook_bp.route('/courses/<int:course_id>/gradebook', methods=['GET'])
@api_errors('load class gradebook')
def class_gradebook(course_id):
    return success_response(gradebook=GradebookService.get_class_gradebook(course_id))

@gradebook_bp.route('/students/<int:student_id>/alerts', methods=['GET'])
@api_errors('get grade alerts')
def student_alerts(student_id):
    alerts = GradebookService.get_student_alerts(student_id)
    return success_response(student_id=student_id, alerts=alerts, count=len(alerts))

@gradebook_bp.route('/students/<int:student_id>/gpa', methods=['GET'])
@api_errors('calculate GPA')
def student_gpa(student_id):
    return success_response(**GradebookService.calculate_student_gpa(student_id))

@gradebook_bp.route('/students/<int:student_id>/standing', methods=['GET'])
@api_errors('get academic standing')
def academic_standing(student_id):
    return success_response(standing=GradebookService.get_academic_standing(student_id))
