"""
Scoring & Report Aggregation

Turns a completed session into a competency report. Scores are computed
against the full question set of the assessment, so unanswered questions
count as incorrect. Percentages use round-half-up on exact fractions.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Union

from backend.assessments.base.models import (
    AssessmentDefinition,
    Question,
    Session,
    SessionStatus,
    Answer,
    CompetencyResult,
    Report,
    ProficiencyLevel,
    LevelSource
)
from backend.common.error_handling import SessionNotCompletedError
from backend.common.logger import app_logger

# Module logger
logger = app_logger.getChild("competency.scoring")

DEFAULT_SENIOR_THRESHOLD = 90
DEFAULT_MIDDLE_THRESHOLD = 70


def percent(numerator: int, denominator: int) -> int:
    """
    Integer percentage rounded half up.

    Returns 0 for an empty denominator.
    """
    if denominator <= 0:
        return 0
    value = Decimal(numerator) * 100 / Decimal(denominator)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ReportAggregator:
    """
    Computes reports from stored session state.

    The aggregator is pure: the same session, answers and questions always
    give the same report.
    """

    def __init__(
        self,
        senior_threshold: int = DEFAULT_SENIOR_THRESHOLD,
        middle_threshold: int = DEFAULT_MIDDLE_THRESHOLD
    ):
        if not 0 <= middle_threshold <= senior_threshold <= 100:
            raise ValueError(
                f"Invalid level thresholds: middle={middle_threshold}, senior={senior_threshold}"
            )
        self.senior_threshold = senior_threshold
        self.middle_threshold = middle_threshold

    def derive_level(self, score_percent: int) -> ProficiencyLevel:
        """Default level heuristic based on the overall score."""
        if score_percent >= self.senior_threshold:
            return ProficiencyLevel.SENIOR
        if score_percent >= self.middle_threshold:
            return ProficiencyLevel.MIDDLE
        return ProficiencyLevel.JUNIOR

    def competency_breakdown(
        self,
        questions: List[Question],
        correct_question_ids: set
    ) -> List[CompetencyResult]:
        """
        Per-competency totals in order of first appearance in the question list.
        """
        totals: Dict[str, int] = {}
        correct: Dict[str, int] = {}
        for question in questions:
            totals[question.competency_id] = totals.get(question.competency_id, 0) + 1
            if question.id in correct_question_ids:
                correct[question.competency_id] = correct.get(question.competency_id, 0) + 1

        return [
            CompetencyResult(
                competency_id=competency_id,
                total=total,
                correct=correct.get(competency_id, 0),
                percent=percent(correct.get(competency_id, 0), total)
            )
            for competency_id, total in totals.items()
        ]

    def aggregate(
        self,
        session: Session,
        assessment: AssessmentDefinition,
        questions: List[Question],
        answers: List[Answer],
        external_level: Optional[Union[ProficiencyLevel, str]] = None
    ) -> Report:
        """
        Build the report for a completed session.

        Args:
            session: The completed session
            assessment: Its assessment definition
            questions: The assessment's questions
            answers: The session's stored answers
            external_level: Level from a richer analysis, used instead of
                the score heuristic when given

        Returns:
            The competency report

        Raises:
            SessionNotCompletedError: If the session is not completed
        """
        if session.status != SessionStatus.COMPLETED:
            raise SessionNotCompletedError(session.id, session.status.value)

        question_ids = {q.id for q in questions}
        relevant = [a for a in answers if a.question_id in question_ids]
        correct_ids = {a.question_id for a in relevant if a.is_correct}

        total = len(questions)
        correct_count = len(correct_ids)
        score_percent = percent(correct_count, total)

        if external_level is not None:
            level = ProficiencyLevel(external_level) if isinstance(external_level, str) else external_level
            level_source = LevelSource.EXTERNAL
        else:
            level = self.derive_level(score_percent)
            level_source = LevelSource.SCORE

        time_spent = None
        if session.started_at is not None and session.completed_at is not None:
            time_spent = int((session.completed_at - session.started_at).total_seconds())

        report = Report(
            session_id=session.id,
            assessment_id=assessment.id,
            user_id=session.user_id,
            total_questions=total,
            answered_count=len(relevant),
            correct_count=correct_count,
            score_percent=score_percent,
            passing_score_percent=assessment.passing_score_percent,
            passed=score_percent >= assessment.passing_score_percent,
            competencies=self.competency_breakdown(questions, correct_ids),
            level=level,
            level_source=level_source,
            started_at=session.started_at,
            completed_at=session.completed_at,
            time_spent_seconds=time_spent
        )
        logger.debug(
            f"Report for session {session.id}: {correct_count}/{total} correct, "
            f"{score_percent}% ({level.value})"
        )
        return report
