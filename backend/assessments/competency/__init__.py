"""
Competency assessment module.

Timed hotel staff assessments: sessions move from created to in_progress to
completed, answers are graded on submission and completed sessions yield a
competency report with a proficiency level.
"""

from backend.assessments.competency.answer_evaluation import AnswerEvaluator
from backend.assessments.competency.lifecycle import SessionLifecycleController
from backend.assessments.competency.scoring import ReportAggregator, percent
from backend.assessments.competency.session_service import SessionService

__all__ = [
    'AnswerEvaluator',
    'SessionLifecycleController',
    'ReportAggregator',
    'percent',
    'SessionService',
]
