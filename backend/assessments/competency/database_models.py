"""
SQLAlchemy ORM models for competency assessments.

This module defines the database models for competency assessments:
- AssessmentModel: assessment definitions (read-only to the session engine)
- AssessmentQuestionModel: ordered questions of an assessment
- AssessmentSessionModel: one attempt by a user at an assessment
- AssessmentAnswerModel: answers, at most one per session and question
"""

import datetime
from typing import List

from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Index, Integer, JSON, String, Text
)
from sqlalchemy.orm import relationship
from sqlalchemy.schema import UniqueConstraint

from backend.assessments.base.models import (
    AssessmentDefinition,
    Question,
    Session,
    SessionStatus,
    Answer
)
from backend.database.base import ModelBase


class AssessmentModel(ModelBase):
    """Assessment definition row."""
    __tablename__ = "assessments"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    passing_score_percent = Column(Integer, nullable=False)
    time_limit_minutes = Column(Integer, nullable=True)
    target_level = Column(String(16), nullable=True)

    questions = relationship(
        "AssessmentQuestionModel",
        back_populates="assessment",
        order_by="AssessmentQuestionModel.position",
        lazy="selectin"
    )

    def to_domain(self) -> AssessmentDefinition:
        return AssessmentDefinition(
            id=self.id,
            title=self.title,
            question_ids=[q.id for q in self.questions],
            passing_score_percent=self.passing_score_percent,
            time_limit_minutes=self.time_limit_minutes,
            target_level=self.target_level
        )


class AssessmentQuestionModel(ModelBase):
    """Question row; ``position`` gives the assessment's question order."""
    __tablename__ = "assessment_questions"

    id = Column(String(64), primary_key=True)
    assessment_id = Column(String(64), ForeignKey("assessments.id"), nullable=False)
    position = Column(Integer, nullable=False)
    type = Column(String(32), nullable=False)
    text = Column(Text, nullable=False)
    options = Column(JSON, nullable=True)
    correct_answer = Column(JSON, nullable=False)
    competency_id = Column(String(64), nullable=False)
    difficulty = Column(String(16), nullable=False, default="medium")
    explanation = Column(Text, nullable=True)
    image_url = Column(String(1024), nullable=True)

    assessment = relationship("AssessmentModel", back_populates="questions")

    __table_args__ = (
        UniqueConstraint("assessment_id", "position", name="uq_assessment_questions_position"),
        Index("idx_assessment_questions_assessment", "assessment_id", "position"),
    )

    def to_domain(self) -> Question:
        return Question(
            id=self.id,
            type=self.type,
            text=self.text,
            correct_answer=self.correct_answer,
            competency_id=self.competency_id,
            difficulty=self.difficulty,
            options=self.options,
            explanation=self.explanation,
            image_url=self.image_url
        )

    @classmethod
    def from_domain(cls, question: Question, assessment_id: str, position: int) -> "AssessmentQuestionModel":
        correct = question.correct_answer
        if isinstance(correct, frozenset):
            correct = sorted(correct)
        return cls(
            id=question.id,
            assessment_id=assessment_id,
            position=position,
            type=question.type.value,
            text=question.text,
            options=list(question.options) if question.options else None,
            correct_answer=correct,
            competency_id=question.competency_id,
            difficulty=question.difficulty.value,
            explanation=question.explanation,
            image_url=question.image_url
        )


class AssessmentSessionModel(ModelBase):
    """Session row; ``status`` is only changed through conditional updates."""
    __tablename__ = "assessment_sessions"

    id = Column(String(64), primary_key=True)
    assessment_id = Column(String(64), ForeignKey("assessments.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    status = Column(String(16), nullable=False, default=SessionStatus.CREATED.value, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.datetime.utcnow)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("idx_assessment_sessions_user_assessment", "user_id", "assessment_id"),
    )

    def to_domain(self) -> Session:
        return Session(
            id=self.id,
            assessment_id=self.assessment_id,
            user_id=self.user_id,
            status=self.status,
            created_at=self.created_at,
            started_at=self.started_at,
            completed_at=self.completed_at
        )

    @classmethod
    def from_domain(cls, session: Session) -> "AssessmentSessionModel":
        return cls(
            id=session.id,
            assessment_id=session.assessment_id,
            user_id=session.user_id,
            status=session.status.value,
            created_at=session.created_at,
            started_at=session.started_at,
            completed_at=session.completed_at
        )


class AssessmentAnswerModel(ModelBase):
    """Answer row; the unique constraint rejects a second answer to a question."""
    __tablename__ = "assessment_answers"

    id = Column(String(64), primary_key=True)
    session_id = Column(String(64), ForeignKey("assessment_sessions.id"), nullable=False)
    question_id = Column(String(64), nullable=False)
    value = Column(Text, nullable=False)
    is_correct = Column(Boolean, nullable=False)
    answered_at = Column(DateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("session_id", "question_id", name="uq_assessment_answers_session_question"),
        Index("idx_assessment_answers_session", "session_id", "answered_at"),
    )

    def to_domain(self) -> Answer:
        return Answer(
            id=self.id,
            session_id=self.session_id,
            question_id=self.question_id,
            value=self.value,
            is_correct=bool(self.is_correct),
            answered_at=self.answered_at
        )

    @classmethod
    def from_domain(cls, answer: Answer) -> "AssessmentAnswerModel":
        return cls(
            id=answer.id,
            session_id=answer.session_id,
            question_id=answer.question_id,
            value=answer.value,
            is_correct=answer.is_correct,
            answered_at=answer.answered_at
        )


def assessment_rows(assessment: AssessmentDefinition, questions: List[Question]) -> list:
    """
    Rows for seeding an assessment and its questions, in assessment order.
    """
    by_id = {q.id: q for q in questions}
    rows = [AssessmentModel(
        id=assessment.id,
        title=assessment.title,
        passing_score_percent=assessment.passing_score_percent,
        time_limit_minutes=assessment.time_limit_minutes,
        target_level=assessment.target_level.value if assessment.target_level else None
    )]
    for position, question_id in enumerate(assessment.question_ids):
        rows.append(AssessmentQuestionModel.from_domain(by_id[question_id], assessment.id, position))
    return rows
