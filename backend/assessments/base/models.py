"""
Base Assessment Models

This module defines the core data models for competency assessments,
including assessment definitions, questions, sessions, answers and the
derived competency report.
"""

import uuid
import enum
import json
import datetime
from typing import Dict, List, Any, Optional, FrozenSet, Union
from dataclasses import dataclass, field


class QuestionType(enum.Enum):
    """Question types supported by the evaluator."""
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_FALSE = "true_false"
    TEXT_ANSWER = "text_answer"
    IMAGE_BASED = "image_based"


class QuestionDifficulty(enum.Enum):
    """Difficulty levels for assessment questions."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class SessionStatus(enum.Enum):
    """
    Status of an assessment session.

    Statuses are ordered; a session only ever moves to a higher rank.
    """
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {
    SessionStatus.CREATED: 0,
    SessionStatus.IN_PROGRESS: 1,
    SessionStatus.COMPLETED: 2,
}


class ProficiencyLevel(enum.Enum):
    """Seniority label derived from an assessment score."""
    JUNIOR = "junior"
    MIDDLE = "middle"
    SENIOR = "senior"


class LevelSource(enum.Enum):
    """Where the level in a report came from."""
    SCORE = "score"
    EXTERNAL = "external"


def _parse_datetime(value: Union[str, datetime.datetime, None]) -> Optional[datetime.datetime]:
    if value is None or isinstance(value, datetime.datetime):
        return value
    return datetime.datetime.fromisoformat(value)


def _format_datetime(value: Optional[datetime.datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class AssessmentDefinition:
    """
    Immutable definition of a competency assessment.

    Attributes:
        id: Assessment identifier
        title: Human readable title
        question_ids: Ordered question identifiers
        passing_score_percent: Minimum score percent needed to pass
        time_limit_minutes: Time limit, None for unlimited
        target_level: Optional level the assessment is aimed at
    """
    id: str
    title: str
    question_ids: List[str]
    passing_score_percent: int
    time_limit_minutes: Optional[int] = None
    target_level: Optional[ProficiencyLevel] = None

    def __post_init__(self):
        if not 0 <= self.passing_score_percent <= 100:
            raise ValueError(f"Invalid passing score: {self.passing_score_percent}")
        if self.time_limit_minutes is not None and self.time_limit_minutes <= 0:
            raise ValueError(f"Invalid time limit: {self.time_limit_minutes}")
        if isinstance(self.target_level, str):
            object.__setattr__(self, "target_level", ProficiencyLevel(self.target_level))

    @property
    def time_limit_seconds(self) -> Optional[int]:
        if self.time_limit_minutes is None:
            return None
        return self.time_limit_minutes * 60

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "question_ids": list(self.question_ids),
            "passing_score_percent": self.passing_score_percent,
            "time_limit_minutes": self.time_limit_minutes,
            "target_level": self.target_level.value if self.target_level else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AssessmentDefinition':
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            question_ids=list(data.get("question_ids", [])),
            passing_score_percent=data["passing_score_percent"],
            time_limit_minutes=data.get("time_limit_minutes"),
            target_level=data.get("target_level"),
        )


@dataclass(frozen=True)
class Question:
    """
    An immutable assessment question.

    The ``type`` field is the discriminant the answer evaluator dispatches
    on. ``correct_answer`` holds either a single canonical value or a set of
    accepted values.
    """
    id: str
    type: QuestionType
    text: str
    correct_answer: Union[str, FrozenSet[str]]
    competency_id: str
    difficulty: QuestionDifficulty = QuestionDifficulty.MEDIUM
    options: Optional[List[str]] = None
    explanation: Optional[str] = None
    image_url: Optional[str] = None

    def __post_init__(self):
        """Normalize enum and answer-set fields and validate the variant."""
        if isinstance(self.type, str):
            try:
                object.__setattr__(self, "type", QuestionType(self.type))
            except ValueError:
                raise ValueError(f"Invalid question type: {self.type}")

        if isinstance(self.difficulty, str):
            try:
                object.__setattr__(self, "difficulty", QuestionDifficulty(self.difficulty))
            except ValueError:
                raise ValueError(f"Invalid difficulty: {self.difficulty}")

        if isinstance(self.correct_answer, (list, set, tuple)):
            object.__setattr__(self, "correct_answer", frozenset(self.correct_answer))

        if not self.text:
            raise ValueError("Question text is required")

        if self.type == QuestionType.MULTIPLE_CHOICE and not self.options:
            raise ValueError(f"Multiple choice question {self.id} requires options")

    @property
    def accepted_answers(self) -> FrozenSet[str]:
        """All values graded as correct."""
        if isinstance(self.correct_answer, frozenset):
            return self.correct_answer
        return frozenset([self.correct_answer])

    def to_public_dict(self) -> Dict[str, Any]:
        """Question as shown to the person taking the assessment."""
        result = {
            "id": self.id,
            "type": self.type.value,
            "text": self.text,
            "competency_id": self.competency_id,
            "difficulty": self.difficulty.value,
        }
        if self.options:
            result["options"] = list(self.options)
        if self.image_url:
            result["image_url"] = self.image_url
        return result

    def to_dict(self) -> Dict[str, Any]:
        result = self.to_public_dict()
        if isinstance(self.correct_answer, frozenset):
            result["correct_answer"] = sorted(self.correct_answer)
        else:
            result["correct_answer"] = self.correct_answer
        if self.explanation:
            result["explanation"] = self.explanation
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Question':
        return cls(
            id=data["id"],
            type=data["type"],
            text=data["text"],
            correct_answer=data["correct_answer"],
            competency_id=data["competency_id"],
            difficulty=data.get("difficulty", QuestionDifficulty.MEDIUM.value),
            options=data.get("options"),
            explanation=data.get("explanation"),
            image_url=data.get("image_url"),
        )


@dataclass(frozen=True)
class Session:
    """
    One attempt by a user at an assessment.

    Instances are snapshots; status changes produce a new snapshot through
    the session store.
    """
    id: str
    assessment_id: str
    user_id: str
    status: SessionStatus = SessionStatus.CREATED
    created_at: datetime.datetime = field(default_factory=datetime.datetime.utcnow)
    started_at: Optional[datetime.datetime] = None
    completed_at: Optional[datetime.datetime] = None

    def __post_init__(self):
        if isinstance(self.status, str):
            try:
                object.__setattr__(self, "status", SessionStatus(self.status))
            except ValueError:
                raise ValueError(f"Invalid session status: {self.status}")
        for name in ("created_at", "started_at", "completed_at"):
            object.__setattr__(self, name, _parse_datetime(getattr(self, name)))

    @classmethod
    def new(cls, assessment_id: str, user_id: str,
            created_at: Optional[datetime.datetime] = None) -> 'Session':
        """Create a fresh session in the created state with a generated ID."""
        return cls(
            id=str(uuid.uuid4()),
            assessment_id=assessment_id,
            user_id=user_id,
            created_at=created_at or datetime.datetime.utcnow(),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "assessment_id": self.assessment_id,
            "user_id": self.user_id,
            "status": self.status.value,
            "created_at": _format_datetime(self.created_at),
            "started_at": _format_datetime(self.started_at),
            "completed_at": _format_datetime(self.completed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Session':
        return cls(
            id=data["id"],
            assessment_id=data["assessment_id"],
            user_id=data["user_id"],
            status=data.get("status", SessionStatus.CREATED.value),
            created_at=data.get("created_at") or datetime.datetime.utcnow(),
            started_at=data.get("started_at"),
            completed_at=data.get("completed_at"),
        )


@dataclass(frozen=True)
class Answer:
    """An append-only record of a submitted answer and its grading."""
    id: str
    session_id: str
    question_id: str
    value: str
    is_correct: bool
    answered_at: datetime.datetime

    def __post_init__(self):
        object.__setattr__(self, "answered_at", _parse_datetime(self.answered_at))

    @classmethod
    def new(cls, session_id: str, question_id: str, value: str,
            is_correct: bool, answered_at: datetime.datetime) -> 'Answer':
        return cls(
            id=str(uuid.uuid4()),
            session_id=session_id,
            question_id=question_id,
            value=value,
            is_correct=is_correct,
            answered_at=answered_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "question_id": self.question_id,
            "value": self.value,
            "is_correct": self.is_correct,
            "answered_at": _format_datetime(self.answered_at),
        }


@dataclass(frozen=True)
class CompetencyResult:
    """Score breakdown for the questions tagged with one competency."""
    competency_id: str
    total: int
    correct: int
    percent: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "competency_id": self.competency_id,
            "total": self.total,
            "correct": self.correct,
            "percent": self.percent,
        }


@dataclass(frozen=True)
class Report:
    """
    Competency report for a completed session.

    Derived data: it is recomputed from the session, its answers and the
    question set on every request and never stored.
    """
    session_id: str
    assessment_id: str
    user_id: str
    total_questions: int
    answered_count: int
    correct_count: int
    score_percent: int
    passing_score_percent: int
    passed: bool
    competencies: List[CompetencyResult]
    level: ProficiencyLevel
    level_source: LevelSource
    started_at: Optional[datetime.datetime]
    completed_at: Optional[datetime.datetime]
    time_spent_seconds: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "assessment_id": self.assessment_id,
            "user_id": self.user_id,
            "total_questions": self.total_questions,
            "answered_count": self.answered_count,
            "correct_count": self.correct_count,
            "score_percent": self.score_percent,
            "passing_score_percent": self.passing_score_percent,
            "passed": self.passed,
            "competencies": [c.to_dict() for c in self.competencies],
            "level": self.level.value,
            "level_source": self.level_source.value,
            "started_at": _format_datetime(self.started_at),
            "completed_at": _format_datetime(self.completed_at),
            "time_spent_seconds": self.time_spent_seconds,
        }

    def to_json(self) -> str:
        """Canonical JSON encoding, stable across recomputation."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True)
class SessionProgress:
    """Snapshot of a session with its resume point and clock."""
    session: Session
    total_questions: int
    answered_count: int
    next_question_index: int
    next_question: Optional[Question] = None
    remaining_seconds: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session": self.session.to_dict(),
            "total_questions": self.total_questions,
            "answered_count": self.answered_count,
            "next_question_index": self.next_question_index,
            "next_question": self.next_question.to_public_dict() if self.next_question else None,
            "remaining_seconds": self.remaining_seconds,
        }


@dataclass(frozen=True)
class AnswerResult:
    """Outcome of a submitted answer."""
    answer: Answer
    session: Session

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer.to_dict(),
            "session_status": self.session.status.value,
            "session": self.session.to_dict(),
        }


@dataclass
class AssessmentStatistics:
    """Aggregate results across every session of one assessment."""
    assessment_id: str
    total_sessions: int = 0
    completed_sessions: int = 0
    average_score: float = 0.0
    level_distribution: Dict[str, int] = field(default_factory=dict)
    competency_averages: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "assessment_id": self.assessment_id,
            "total_sessions": self.total_sessions,
            "completed_sessions": self.completed_sessions,
            "average_score": self.average_score,
            "level_distribution": dict(self.level_distribution),
            "competency_averages": dict(self.competency_averages),
        }
