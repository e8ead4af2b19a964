"""
Schedule health service for Brookfield School Information System
Scores a term's schedule and lists the issues dragging it down
"""

import logging
import statistics

from services.conflict_analysis_service import ConflictAnalysisService

logger = logging.getLogger(__name__)

# Minimum score for each status, checked in order
HEALTH_STATUSES = (
    (90, 'EXCELLENT'),
    (75, 'GOOD'),
    (60, 'FAIR'),
    (40, 'POOR'),
    (0, 'CRITICAL'),
)

CONFLICT_PENALTIES = {'CRITICAL': 15, 'HIGH': 8, 'MEDIUM': 3, 'LOW': 1}

WEIGHTS = {
    'conflicts': 0.4,
    'completion': 0.3,
    'load_balance': 0.2,
    'room_utilization': 0.1,
}

def health_status(score):
    for minimum, status in HEALTH_STATUSES:
        if score >= minimum:
            return status
    return 'CRITICAL'

class ScheduleHealthService:
    """Overall schedule quality score"""

    @staticmethod
    def calculate_health(term_id=None):
        slots = ConflictAnalysisService.term_slots(term_id)
        if not slots:
            return {
                'term_id': term_id,
                'score': 0,
                'status': 'CRITICAL',
                'components': {},
                'issues': [{'category': 'COMPLETION', 'severity': 'CRITICAL',
                            'message': "No schedule slots exist for this term"}],
                'total_slots': 0,
                'conflict_count': 0,
            }

        analysis = ConflictAnalysisService.analyze_slot_conflicts(slots)
        conflicts = analysis['conflicts']
        penalty = sum(CONFLICT_PENALTIES.get(c['severity'], 0) for c in conflicts)
        conflict_score = max(0, 100 - penalty)

        utilization = list(ConflictAnalysisService._room_utilization(slots).values())
        room_utilization = min(100.0, statistics.mean(utilization)) if utilization else 0.0

        loads = list(ConflictAnalysisService._teacher_loads(slots).values())
        spread = statistics.pstdev(loads) if len(loads) > 1 else 0.0
        load_balance = 100 - min(100, spread * 10)

        components = {
            'conflicts': conflict_score,
            'completion': analysis['completion_percentage'],
            'load_balance': round(load_balance, 2),
            'room_utilization': round(room_utilization, 2),
        }
        score = round(sum(components[name] * weight for name, weight in WEIGHTS.items()))
        score = max(0, min(100, score))

        issues = ScheduleHealthService._issues(analysis, components)
        logger.info("Schedule health for term %s: %s (%s)", term_id, score, health_status(score))
        return {
            'term_id': term_id,
            'score': score,
            'status': health_status(score),
            'components': components,
            'issues': issues,
            'total_slots': len(slots),
            'conflict_count': len(conflicts),
        }

    @staticmethod
    def _issues(analysis, components):
        issues = []
        by_severity = {}
        for conflict in analysis['conflicts']:
            by_severity[conflict['severity']] = by_severity.get(conflict['severity'], 0) + 1
        for severity in ('CRITICAL', 'HIGH', 'MEDIUM'):
            if by_severity.get(severity):
                issues.append({
                    'category': 'CONFLICTS',
                    'severity': severity,
                    'message': f"{by_severity[severity]} {severity.lower()} scheduling conflicts",
                })

        unassigned = analysis['total_slots'] - analysis['fully_assigned']
        if unassigned:
            issues.append({
                'category': 'COMPLETION',
                'severity': 'HIGH' if components['completion'] < 75 else 'MEDIUM',
                'message': f"{unassigned} slots are missing a teacher, room or time",
            })
        if components['load_balance'] < 70:
            issues.append({
                'category': 'LOAD_BALANCE',
                'severity': 'MEDIUM',
                'message': "Teaching load is unevenly spread across teachers",
            })
        if components['room_utilization'] < 30:
            issues.append({
                'category': 'ROOM_UTILIZATION',
                'severity': 'LOW',
                'message': "Rooms are used for less than 30% of the week",
            })
        return issues
