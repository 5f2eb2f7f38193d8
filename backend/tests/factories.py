"""
Builders shared by the competency assessment tests.
"""

import datetime
from typing import List, Optional

from backend.assessments.base.models import AssessmentDefinition, Question, QuestionType
from backend.assessments.competency.memory_repository import (
    MemoryQuestionRepository,
    MemorySessionRepository
)
from backend.assessments.competency.session_service import SessionService

START = datetime.datetime(2026, 3, 2, 9, 0, 0)
OPTIONS = ["A", "B", "C", "D"]


class FakeClock:
    """Manually advanced clock returning naive UTC datetimes."""

    def __init__(self, start: datetime.datetime = START):
        self.current = start

    def __call__(self) -> datetime.datetime:
        return self.current

    def advance(self, seconds: float) -> datetime.datetime:
        self.current += datetime.timedelta(seconds=seconds)
        return self.current


def make_question(
    question_id: str,
    competency_id: str = "front_desk",
    correct: str = "A"
) -> Question:
    return Question(
        id=question_id,
        type=QuestionType.MULTIPLE_CHOICE,
        text=f"Question {question_id}",
        correct_answer=correct,
        competency_id=competency_id,
        options=list(OPTIONS)
    )


def make_questions(count: int, competencies: Optional[List[str]] = None) -> List[Question]:
    """Questions q1..qN, all answered correctly with "A"."""
    competencies = competencies or ["front_desk"] * count
    return [make_question(f"q{i + 1}", competencies[i]) for i in range(count)]


def make_assessment(
    questions: List[Question],
    assessment_id: str = "assessment-1",
    passing_score_percent: int = 70,
    time_limit_minutes: Optional[int] = None
) -> AssessmentDefinition:
    return AssessmentDefinition(
        id=assessment_id,
        title="Front office basics",
        question_ids=[q.id for q in questions],
        passing_score_percent=passing_score_percent,
        time_limit_minutes=time_limit_minutes
    )


def build_service(
    assessment: AssessmentDefinition,
    questions: List[Question],
    clock: Optional[FakeClock] = None,
    session_repository: Optional[MemorySessionRepository] = None,
    **kwargs
) -> SessionService:
    """Session service over in-memory stores holding one assessment."""
    question_repository = MemoryQuestionRepository()
    question_repository.add_assessment(assessment, questions)
    return SessionService(
        question_repository,
        session_repository or MemorySessionRepository(),
        clock=clock or FakeClock(),
        **kwargs
    )
