"""
Memory Repository Module

This module provides in-memory implementations of the question and session
repositories for development and testing purposes.
"""

import asyncio
import dataclasses
import datetime
import logging
from typing import Dict, List, Optional, Tuple

from backend.assessments.base.models import (
    AssessmentDefinition,
    Question,
    Session,
    SessionStatus,
    Answer
)
from backend.assessments.base.repositories import QuestionRepository, SessionRepository
from backend.common.error_handling import DuplicateAnswerError, SessionNotFoundError

# Setup logging
logger = logging.getLogger(__name__)


class MemoryQuestionRepository(QuestionRepository):
    """
    In-memory implementation of the QuestionRepository.

    Questions are stored once and served in the order given by each
    assessment's ``question_ids``.
    """

    def __init__(
        self,
        assessments: Optional[List[AssessmentDefinition]] = None,
        questions: Optional[List[Question]] = None
    ):
        """
        Initialize the repository with optional initial data.

        Args:
            assessments: Assessment definitions to serve
            questions: Questions referenced by the assessments
        """
        self._assessments: Dict[str, AssessmentDefinition] = {}
        self._questions: Dict[str, Question] = {}

        for question in questions or []:
            self._questions[question.id] = question
        for assessment in assessments or []:
            self.add_assessment(assessment)

    def add_assessment(
        self,
        assessment: AssessmentDefinition,
        questions: Optional[List[Question]] = None
    ) -> None:
        """
        Register an assessment and, optionally, its questions.

        This method is specific to the memory implementation and not part of
        the QuestionRepository interface.
        """
        for question in questions or []:
            self._questions[question.id] = question

        missing = [qid for qid in assessment.question_ids if qid not in self._questions]
        if missing:
            raise ValueError(f"Assessment {assessment.id} references unknown questions: {missing}")

        self._assessments[assessment.id] = assessment

    async def get_assessment(self, assessment_id: str) -> Optional[AssessmentDefinition]:
        return self._assessments.get(assessment_id)

    async def get_questions(self, assessment_id: str) -> List[Question]:
        assessment = self._assessments.get(assessment_id)
        if assessment is None:
            return []
        return [self._questions[qid] for qid in assessment.question_ids]


class MemorySessionRepository(SessionRepository):
    """
    In-memory implementation of the SessionRepository.

    A single lock guards every write so that the conditional operations
    behave like their database counterparts.
    """

    def __init__(self):
        self._sessions: Dict[str, Session] = {}
        self._answers: Dict[str, List[Answer]] = {}
        self._answer_keys: Dict[Tuple[str, str], str] = {}
        self._lock = asyncio.Lock()

    async def get_session(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    async def create_session(
        self,
        assessment_id: str,
        user_id: str,
        created_at: Optional[datetime.datetime] = None
    ) -> Session:
        session = Session.new(assessment_id, user_id, created_at)
        async with self._lock:
            self._sessions[session.id] = session
            self._answers[session.id] = []
        logger.debug(f"Created session {session.id} for user {user_id}")
        return session

    async def update_session_status(
        self,
        session_id: str,
        expected_status: SessionStatus,
        new_status: SessionStatus,
        started_at: Optional[datetime.datetime] = None,
        completed_at: Optional[datetime.datetime] = None
    ) -> Optional[Session]:
        async with self._lock:
            current = self._sessions.get(session_id)
            if current is None:
                raise SessionNotFoundError(session_id)
            if current.status != expected_status:
                logger.debug(
                    f"Status update for session {session_id} lost: expected "
                    f"{expected_status.value}, found {current.status.value}"
                )
                return None

            changes = {"status": new_status}
            if started_at is not None:
                changes["started_at"] = started_at
            if completed_at is not None:
                changes["completed_at"] = completed_at

            updated = dataclasses.replace(current, **changes)
            self._sessions[session_id] = updated
            return updated

    async def get_answers(self, session_id: str) -> List[Answer]:
        return list(self._answers.get(session_id, []))

    async def insert_answer(self, answer: Answer) -> Answer:
        key = (answer.session_id, answer.question_id)
        async with self._lock:
            if key in self._answer_keys:
                raise DuplicateAnswerError(answer.question_id, answer.session_id)
            self._answer_keys[key] = answer.id
            self._answers.setdefault(answer.session_id, []).append(answer)
        return answer

    async def list_sessions_by_user(self, user_id: str) -> List[Session]:
        sessions = [s for s in self._sessions.values() if s.user_id == user_id]
        return sorted(sessions, key=lambda s: s.created_at)

    async def list_sessions_by_assessment(self, assessment_id: str) -> List[Session]:
        sessions = [s for s in self._sessions.values() if s.assessment_id == assessment_id]
        return sorted(sessions, key=lambda s: s.created_at)

    def clear(self) -> None:
        """
        Clear all sessions and answers.

        This method is specific to the memory implementation and not part of
        the SessionRepository interface.
        """
        self._sessions.clear()
        self._answers.clear()
        self._answer_keys.clear()
