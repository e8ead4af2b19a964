"""
Gifted program service for Brookfield School Information System
Referral, assessment, education plans, services and program reporting
"""

import logging
from collections import Counter, defaultdict
from datetime import date, timedelta

from models.gifted import (
    GiftedStudent, GiftedAssessment, GiftedEducationPlan, GiftedServiceRecord,
    GIFTED_STATUSES, GIFTED_AREAS, PLAN_STATUSES, ENGAGEMENT_LEVELS
)
from models.scheduling import Teacher
from models.student import Student
from utils.dates import add_years
from utils.db_helpers import safe_add_and_commit, safe_update_and_commit, get_or_raise
from utils.responses import NotFoundError, StateError
from utils.validators import require_fields, parse_date, parse_int, parse_float, parse_enum, parse_bool

logger = logging.getLogger(__name__)

UNDERPERFORMING_GPA = 3.0
PROGRESS_REVIEW_DAYS = 90
SCREENING_STATUSES = ('REFERRED', 'SCREENING_IN_PROGRESS')
SERVED_STATUSES = ('ELIGIBLE', 'ACTIVE')

class GiftedService:
    """Gifted program service class"""

    # --------------------------------------------------------------- students

    @staticmethod
    def get_gifted_student(gifted_student_id):
        return get_or_raise(GiftedStudent, gifted_student_id, 'Gifted student')

    @staticmethod
    def get_by_student_id(student_id):
        gifted = GiftedStudent.query.filter_by(student_id=student_id).first()
        if gifted is None:
            raise NotFoundError(f"Gifted record for student {student_id}")
        return gifted

    @staticmethod
    def list_gifted_students():
        return GiftedStudent.query.order_by(GiftedStudent.id).all()

    @staticmethod
    def get_by_status(status):
        status = parse_enum(status, GIFTED_STATUSES, 'status')
        return GiftedStudent.query.filter_by(gifted_status=status).all()

    @staticmethod
    def get_by_area(area):
        area = parse_enum(area, GIFTED_AREAS, 'area')
        return [g for g in GiftedStudent.query.all() if area in g.get_areas()]

    @staticmethod
    def _apply_student_fields(gifted, data):
        if 'gifted_status' in data:
            gifted.gifted_status = parse_enum(data['gifted_status'], GIFTED_STATUSES, 'gifted_status')
        if 'primary_gifted_area' in data:
            gifted.primary_gifted_area = parse_enum(data['primary_gifted_area'], GIFTED_AREAS,
                                                    'primary_gifted_area', required=False)
        if 'secondary_areas' in data:
            areas = data['secondary_areas'] or []
            if isinstance(areas, str):
                areas = areas.split(',')
            gifted.secondary_areas = ','.join(parse_enum(a, GIFTED_AREAS, 'secondary_areas') for a in areas) or None
        for field in ('referral_date', 'identification_date', 'annual_review_date', 'last_progress_review'):
            if field in data:
                setattr(gifted, field, parse_date(data[field], field, required=False))
        for field in ('referral_source', 'cluster_group'):
            if field in data:
                setattr(gifted, field, data[field] or None)
        for flag in ('parent_notified', 'parent_consent', 'dual_enrollment', 'grade_accelerated',
                     'talent_development_plan', 'mentorship_program', 'has_concerns'):
            if flag in data:
                setattr(gifted, flag, parse_bool(data[flag]))
        if 'current_gpa' in data:
            gifted.current_gpa = parse_float(data['current_gpa'], 'current_gpa', required=False, minimum=0)
        for field in ('ap_course_count', 'honors_course_count'):
            if field in data:
                setattr(gifted, field, parse_int(data[field], field, minimum=0))
        if 'case_manager_id' in data:
            manager_id = parse_int(data['case_manager_id'], 'case_manager_id', required=False)
            if manager_id is not None:
                get_or_raise(Teacher, manager_id, 'Teacher')
            gifted.case_manager_id = manager_id

    @staticmethod
    def create_gifted_student(data):
        require_fields(data, 'student_id')
        student = get_or_raise(Student, parse_int(data['student_id'], 'student_id'), 'Student')
        if GiftedStudent.query.filter_by(student_id=student.id).first() is not None:
            raise StateError(f"Student {student.id} already has a gifted record")
        gifted = GiftedStudent(student_id=student.id, referral_date=date.today(), current_gpa=student.gpa)
        GiftedService._apply_student_fields(gifted, data)
        safe_add_and_commit(gifted)
        logger.info("Referred student %s to gifted program (%s)", student.id, gifted.gifted_status)
        return gifted

    @staticmethod
    def update_gifted_student(gifted_student_id, data):
        gifted = GiftedService.get_gifted_student(gifted_student_id)
        previous = gifted.gifted_status
        GiftedService._apply_student_fields(gifted, data)
        if gifted.gifted_status in SERVED_STATUSES and gifted.identification_date is None:
            gifted.identification_date = date.today()
            if gifted.annual_review_date is None:
                gifted.annual_review_date = add_years(gifted.identification_date, 1)
        safe_update_and_commit()
        if previous != gifted.gifted_status:
            logger.info("Gifted student %s status %s -> %s", gifted.id, previous, gifted.gifted_status)
        return gifted

    @staticmethod
    def get_awaiting_screening():
        return GiftedStudent.query.filter(GiftedStudent.gifted_status.in_(SCREENING_STATUSES)).all()

    @staticmethod
    def get_in_assessment():
        return GiftedStudent.query.filter_by(gifted_status='ASSESSMENT_IN_PROGRESS').all()

    @staticmethod
    def get_eligible():
        return GiftedStudent.query.filter(GiftedStudent.gifted_status.in_(SERVED_STATUSES)).all()

    # ------------------------------------------------------------ assessments

    @staticmethod
    def get_assessment(assessment_id):
        return get_or_raise(GiftedAssessment, assessment_id, 'Assessment')

    @staticmethod
    def list_assessments():
        return GiftedAssessment.query.order_by(GiftedAssessment.assessment_date.desc()).all()

    @staticmethod
    def _apply_assessment_fields(assessment, data):
        for field in ('assessment_type', 'assessment_name', 'administered_by', 'notes'):
            if field in data:
                setattr(assessment, field, data[field])
        if 'assessment_date' in data:
            assessment.assessment_date = parse_date(data['assessment_date'], 'assessment_date')
        if 'overall_score' in data:
            assessment.overall_score = parse_float(data['overall_score'], 'overall_score', required=False, minimum=0)
        if 'percentile' in data:
            percentile = parse_float(data['percentile'], 'percentile', required=False, minimum=0)
            if percentile is not None and percentile > 100:
                raise ValueError("percentile must be at most 100")
            assessment.percentile = percentile
        for flag in ('results_received', 'parent_notified'):
            if flag in data:
                setattr(assessment, flag, parse_bool(data[flag]))
        if 'eligible' in data:
            assessment.eligible = None if data['eligible'] is None else parse_bool(data['eligible'])

    @staticmethod
    def create_assessment(data):
        require_fields(data, 'gifted_student_id', 'assessment_type', 'assessment_date')
        gifted = GiftedService.get_gifted_student(parse_int(data['gifted_student_id'], 'gifted_student_id'))
        assessment = GiftedAssessment(gifted_student_id=gifted.id)
        GiftedService._apply_assessment_fields(assessment, data)
        if gifted.gifted_status in SCREENING_STATUSES:
            gifted.gifted_status = 'ASSESSMENT_IN_PROGRESS'
        safe_add_and_commit(assessment)
        return assessment

    @staticmethod
    def update_assessment(assessment_id, data):
        assessment = GiftedService.get_assessment(assessment_id)
        GiftedService._apply_assessment_fields(assessment, data)
        safe_update_and_commit()
        return assessment

    @staticmethod
    def get_assessments_by_student(gifted_student_id):
        gifted = GiftedService.get_gifted_student(gifted_student_id)
        return gifted.assessments.order_by(GiftedAssessment.assessment_date.desc()).all()

    @staticmethod
    def get_highly_gifted():
        return [a for a in GiftedAssessment.query.all() if a.is_highly_gifted()]

    @staticmethod
    def get_exceptionally_gifted():
        return [a for a in GiftedAssessment.query.all() if a.is_exceptionally_gifted()]

    @staticmethod
    def get_assessments_pending_results():
        return GiftedAssessment.query.filter(GiftedAssessment.results_received.is_(False)).all()

    @staticmethod
    def get_assessments_needing_parent_notification():
        return GiftedAssessment.query.filter(
            GiftedAssessment.results_received.is_(True),
            GiftedAssessment.parent_notified.is_(False)
        ).all()

    # ------------------------------------------------------------------ plans

    @staticmethod
    def get_plan(plan_id):
        return get_or_raise(GiftedEducationPlan, plan_id, 'Education plan')

    @staticmethod
    def get_plan_by_number(plan_number):
        plan = GiftedEducationPlan.query.filter_by(plan_number=plan_number).first()
        if plan is None:
            raise NotFoundError(f"Education plan {plan_number}")
        return plan

    @staticmethod
    def list_plans():
        return GiftedEducationPlan.query.order_by(GiftedEducationPlan.start_date.desc()).all()

    @staticmethod
    def create_plan(data):
        """Create a plan; one year long and reviewed at the end unless dates are given"""
        require_fields(data, 'gifted_student_id')
        gifted = GiftedService.get_gifted_student(parse_int(data['gifted_student_id'], 'gifted_student_id'))
        start_date = parse_date(data.get('start_date'), 'start_date', required=False) or date.today()
        end_date = parse_date(data.get('end_date'), 'end_date', required=False) or add_years(start_date, 1)
        if end_date <= start_date:
            raise ValueError("end_date must be after start_date")
        plan = GiftedEducationPlan(
            gifted_student_id=gifted.id,
            plan_number=data.get('plan_number') or f"GEP-{start_date.year}-{gifted.id:05d}-{gifted.plans.count() + 1}",
            start_date=start_date,
            end_date=end_date,
            review_date=parse_date(data.get('review_date'), 'review_date', required=False) or end_date,
            status=parse_enum(data.get('status'), PLAN_STATUSES, 'status', required=False, default='DRAFT'),
            goals=data.get('goals'),
            parent_consent=parse_bool(data.get('parent_consent')),
            case_manager_id=parse_int(data.get('case_manager_id'), 'case_manager_id', required=False)
                or gifted.case_manager_id
        )
        if plan.parent_consent:
            plan.parent_consent_date = date.today()
        safe_add_and_commit(plan)
        logger.info("Created education plan %s", plan.plan_number)
        return plan

    @staticmethod
    def update_plan(plan_id, data):
        plan = GiftedService.get_plan(plan_id)
        for field in ('start_date', 'end_date', 'review_date', 'last_progress_review'):
            if field in data:
                setattr(plan, field, parse_date(data[field], field, required=field in ('start_date', 'end_date')))
        if plan.end_date <= plan.start_date:
            raise ValueError("end_date must be after start_date")
        if 'status' in data:
            plan.status = parse_enum(data['status'], PLAN_STATUSES, 'status')
        if 'goals' in data:
            plan.goals = data['goals']
        if 'parent_consent' in data:
            plan.parent_consent = parse_bool(data['parent_consent'])
            plan.parent_consent_date = date.today() if plan.parent_consent else None
        if 'case_manager_id' in data:
            plan.case_manager_id = parse_int(data['case_manager_id'], 'case_manager_id', required=False)
        safe_update_and_commit()
        return plan

    @staticmethod
    def get_plans_by_student(gifted_student_id):
        gifted = GiftedService.get_gifted_student(gifted_student_id)
        return gifted.plans.order_by(GiftedEducationPlan.start_date.desc()).all()

    @staticmethod
    def get_plans_due_for_review(today=None):
        today = today or date.today()
        return GiftedEducationPlan.query.filter(
            GiftedEducationPlan.status == 'ACTIVE',
            GiftedEducationPlan.review_date <= today
        ).order_by(GiftedEducationPlan.review_date).all()

    @staticmethod
    def get_plans_expiring_soon(days=30):
        today = date.today()
        return GiftedEducationPlan.query.filter(
            GiftedEducationPlan.status == 'ACTIVE',
            GiftedEducationPlan.end_date >= today,
            GiftedEducationPlan.end_date <= today + timedelta(days=days)
        ).order_by(GiftedEducationPlan.end_date).all()

    @staticmethod
    def get_plans_needing_consent():
        return GiftedEducationPlan.query.filter(
            GiftedEducationPlan.status != 'EXPIRED',
            GiftedEducationPlan.parent_consent.is_(False)
        ).all()

    @staticmethod
    def get_plans_by_case_manager(case_manager_id):
        return GiftedEducationPlan.query.filter_by(case_manager_id=case_manager_id).all()

    @staticmethod
    def get_plans_overdue_progress_review(days=PROGRESS_REVIEW_DAYS):
        cutoff = date.today() - timedelta(days=days)
        plans = GiftedEducationPlan.query.filter_by(status='ACTIVE').all()
        return [p for p in plans if (p.last_progress_review or p.start_date) < cutoff]

    # --------------------------------------------------------------- services

    @staticmethod
    def get_service(service_id):
        return get_or_raise(GiftedServiceRecord, service_id, 'Gifted service')

    @staticmethod
    def list_services():
        return GiftedServiceRecord.query.order_by(GiftedServiceRecord.service_date.desc()).all()

    @staticmethod
    def _apply_service_fields(record, data):
        if 'service_type' in data:
            record.service_type = str(data['service_type']).strip().upper()
        if 'service_date' in data:
            record.service_date = parse_date(data['service_date'], 'service_date')
        if 'minutes' in data:
            record.minutes = parse_int(data['minutes'], 'minutes', minimum=0)
        if 'provider_id' in data:
            record.provider_id = parse_int(data['provider_id'], 'provider_id', required=False)
        for flag in ('documented', 'followup_needed'):
            if flag in data:
                setattr(record, flag, parse_bool(data[flag]))
        if 'engagement_level' in data:
            record.engagement_level = parse_enum(data['engagement_level'], ENGAGEMENT_LEVELS,
                                                 'engagement_level', required=False)
        if 'notes' in data:
            record.notes = data['notes']

    @staticmethod
    def create_service(data):
        require_fields(data, 'gifted_student_id', 'service_type', 'service_date')
        gifted = GiftedService.get_gifted_student(parse_int(data['gifted_student_id'], 'gifted_student_id'))
        record = GiftedServiceRecord(gifted_student_id=gifted.id)
        GiftedService._apply_service_fields(record, data)
        return safe_add_and_commit(record)

    @staticmethod
    def update_service(service_id, data):
        record = GiftedService.get_service(service_id)
        GiftedService._apply_service_fields(record, data)
        safe_update_and_commit()
        return record

    @staticmethod
    def get_services_by_student(gifted_student_id):
        gifted = GiftedService.get_gifted_student(gifted_student_id)
        return gifted.services.order_by(GiftedServiceRecord.service_date.desc()).all()

    @staticmethod
    def get_upcoming_services():
        return GiftedServiceRecord.query.filter(GiftedServiceRecord.service_date > date.today()).order_by(
            GiftedServiceRecord.service_date).all()

    @staticmethod
    def get_services_needing_documentation():
        return GiftedServiceRecord.query.filter(
            GiftedServiceRecord.service_date <= date.today(),
            GiftedServiceRecord.documented.is_(False)
        ).all()

    @staticmethod
    def get_services_by_provider(provider_id):
        return GiftedServiceRecord.query.filter_by(provider_id=provider_id).all()

    @staticmethod
    def get_services_needing_followup():
        return GiftedServiceRecord.query.filter(GiftedServiceRecord.followup_needed.is_(True)).all()

    @staticmethod
    def get_services_by_engagement(level):
        return GiftedServiceRecord.query.filter_by(engagement_level=level).all()

    @staticmethod
    def _services_in_range(start_date, end_date):
        return GiftedServiceRecord.query.filter(
            GiftedServiceRecord.service_date >= start_date,
            GiftedServiceRecord.service_date <= end_date
        ).all()

    @staticmethod
    def calculate_service_minutes(gifted_student_id, start_date, end_date):
        GiftedService.get_gifted_student(gifted_student_id)
        return sum(s.minutes or 0 for s in GiftedService._services_in_range(start_date, end_date)
                   if s.gifted_student_id == gifted_student_id)

    @staticmethod
    def calculate_service_minutes_by_student(start_date, end_date):
        minutes = defaultdict(int)
        for record in GiftedService._services_in_range(start_date, end_date):
            minutes[record.gifted_student_id] += record.minutes or 0
        return dict(minutes)

    # ------------------------------------------------------------- monitoring

    @staticmethod
    def _served():
        return GiftedService.get_eligible()

    @staticmethod
    def get_needing_progress_review(days_overdue=PROGRESS_REVIEW_DAYS):
        cutoff = date.today() - timedelta(days=days_overdue)
        return [g for g in GiftedService._served()
                if g.last_progress_review is None or g.last_progress_review < cutoff]

    @staticmethod
    def get_needing_annual_review(today=None):
        today = today or date.today()
        return [g for g in GiftedService._served()
                if g.annual_review_date is not None and g.annual_review_date <= today]

    @staticmethod
    def get_upcoming_annual_review(days_ahead=30):
        today = date.today()
        horizon = today + timedelta(days=days_ahead)
        return [g for g in GiftedService._served()
                if g.annual_review_date is not None and today < g.annual_review_date <= horizon]

    @staticmethod
    def get_needing_parent_notification():
        return GiftedStudent.query.filter(GiftedStudent.parent_notified.is_(False)).all()

    @staticmethod
    def get_needing_parent_consent():
        return [g for g in GiftedService._served() if not g.parent_consent]

    @staticmethod
    def get_underperforming():
        return GiftedService.get_below_gpa(UNDERPERFORMING_GPA)

    @staticmethod
    def get_below_gpa(min_gpa):
        min_gpa = parse_float(min_gpa, 'min_gpa', minimum=0)
        return [g for g in GiftedService._served() if g.current_gpa is not None and g.current_gpa < min_gpa]

    @staticmethod
    def get_with_concerns():
        return GiftedStudent.query.filter(GiftedStudent.has_concerns.is_(True)).all()

    @staticmethod
    def get_with_flag(flag):
        """Advanced coursework and talent development lists"""
        lists = {
            'ap-courses': lambda g: (g.ap_course_count or 0) > 0,
            'honors-courses': lambda g: (g.honors_course_count or 0) > 0,
            'dual-enrollment': lambda g: g.dual_enrollment,
            'grade-accelerated': lambda g: g.grade_accelerated,
            'active-talent-plan': lambda g: g.talent_development_plan,
            'mentorship-program': lambda g: g.mentorship_program,
            'multi-talented': lambda g: len(g.get_areas()) > 1,
            'cluster-grouped': lambda g: bool(g.cluster_group),
        }
        if flag not in lists:
            raise NotFoundError(f"Student list '{flag}'")
        return [g for g in GiftedStudent.query.all() if lists[flag](g)]

    @staticmethod
    def get_by_cluster_group(group_name):
        return GiftedStudent.query.filter_by(cluster_group=group_name).all()

    # ------------------------------------------------------------- statistics

    @staticmethod
    def get_program_statistics():
        students = GiftedStudent.query.all()
        statuses = Counter(g.gifted_status for g in students)
        areas = Counter(g.primary_gifted_area for g in students if g.primary_gifted_area)
        gpas = [g.current_gpa for g in students if g.current_gpa is not None]
        return {
            'total_students': len(students),
            'active_students': statuses.get('ACTIVE', 0),
            'eligible_students': statuses.get('ELIGIBLE', 0),
            'by_status': dict(statuses),
            'by_area': dict(areas),
            'average_gpa': round(sum(gpas) / len(gpas), 2) if gpas else None,
            'active_plans': GiftedEducationPlan.query.filter_by(status='ACTIVE').count()
        }

    @staticmethod
    def get_assessment_statistics():
        assessments = GiftedAssessment.query.all()
        scores = [a.overall_score for a in assessments if a.overall_score is not None]
        return {
            'total_assessments': len(assessments),
            'pending_results': sum(1 for a in assessments if not a.results_received),
            'eligible_count': sum(1 for a in assessments if a.eligible),
            'highly_gifted_count': sum(1 for a in assessments if a.is_highly_gifted()),
            'exceptionally_gifted_count': sum(1 for a in assessments if a.is_exceptionally_gifted()),
            'average_score': round(sum(scores) / len(scores), 1) if scores else None,
            'by_type': dict(Counter(a.assessment_type for a in assessments))
        }

    @staticmethod
    def get_service_statistics(start_date, end_date):
        records = GiftedService._services_in_range(start_date, end_date)
        total_minutes = sum(r.minutes or 0 for r in records)
        students = {r.gifted_student_id for r in records}
        return {
            'start_date': start_date.isoformat(),
            'end_date': end_date.isoformat(),
            'total_services': len(records),
            'total_minutes': total_minutes,
            'students_served': len(students),
            'average_minutes_per_student': round(total_minutes / len(students), 1) if students else 0.0,
            'by_service_type': dict(Counter(r.service_type for r in records)),
            'by_engagement': dict(Counter(r.engagement_level for r in records if r.engagement_level)),
            'undocumented': sum(1 for r in records if not r.documented)
        }

    @staticmethod
    def get_compliance_alerts():
        return {
            'needing_annual_review': GiftedService.get_needing_annual_review(),
            'needing_parent_consent': GiftedService.get_needing_parent_consent(),
            'plans_due_for_review': GiftedService.get_plans_due_for_review(),
            'plans_needing_consent': GiftedService.get_plans_needing_consent(),
            'services_needing_documentation': GiftedService.get_services_needing_documentation(),
            'assessments_pending_results': GiftedService.get_assessments_pending_results()
        }

    # ------------------------------------------------------------- dashboards

    @staticmethod
    def _listing(**lists):
        summary = {}
        for name, items in lists.items():
            summary[name] = [item.to_dict() for item in items]
            summary[f'{name}_count'] = len(items)
        return summary

    @staticmethod
    def get_overview_dashboard():
        dashboard = {'program_statistics': GiftedService.get_program_statistics()}
        dashboard.update(GiftedService._listing(
            awaiting_screening=GiftedService.get_awaiting_screening(),
            needing_annual_review=GiftedService.get_needing_annual_review(),
            plans_due_for_review=GiftedService.get_plans_due_for_review(),
            services_needing_documentation=GiftedService.get_services_needing_documentation()
        ))
        return dashboard

    @staticmethod
    def get_student_dashboard(gifted_student_id):
        gifted = GiftedService.get_gifted_student(gifted_student_id)
        dashboard = {
            'gifted_student': gifted.to_dict(),
            'student_id': gifted.student_id,
            'gifted_status': gifted.gifted_status,
            'primary_area': gifted.primary_gifted_area
        }
        dashboard.update(GiftedService._listing(
            assessments=GiftedService.get_assessments_by_student(gifted.id),
            plans=GiftedService.get_plans_by_student(gifted.id),
            services=GiftedService.get_services_by_student(gifted.id)
        ))
        return dashboard

    @staticmethod
    def get_compliance_dashboard():
        return GiftedService._listing(
            awaiting_screening=GiftedService.get_awaiting_screening(),
            plans_expiring_soon=GiftedService.get_plans_expiring_soon(30),
            **GiftedService.get_compliance_alerts()
        )

    @staticmethod
    def get_performance_dashboard():
        return GiftedService._listing(
            underperforming=GiftedService.get_underperforming(),
            with_concerns=GiftedService.get_with_concerns(),
            ap_students=GiftedService.get_with_flag('ap-courses'),
            honors_students=GiftedService.get_with_flag('honors-courses'),
            dual_enrollment=GiftedService.get_with_flag('dual-enrollment'),
            grade_accelerated=GiftedService.get_with_flag('grade-accelerated')
        )
