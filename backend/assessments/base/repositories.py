"""
Base Assessment Repositories

This module defines the repository interfaces the session engine reads from
and writes to. Implementations contain no business rules; the only logic
they own is the conditional writes needed for concurrent callers.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
import datetime

from backend.assessments.base.models import (
    AssessmentDefinition,
    Question,
    Session,
    SessionStatus,
    Answer
)


class QuestionRepository(ABC):
    """
    Read-only access to assessment definitions and their questions.

    Questions come from the content service and are immutable while an
    assessment is being taken.
    """

    @abstractmethod
    async def get_assessment(self, assessment_id: str) -> Optional[AssessmentDefinition]:
        """
        Retrieve an assessment definition by its ID.

        Args:
            assessment_id: The unique identifier for the assessment

        Returns:
            The assessment if found, None otherwise

        Raises:
            StorageError: If an error occurs during retrieval
        """
        pass

    @abstractmethod
    async def get_questions(self, assessment_id: str) -> List[Question]:
        """
        Retrieve the questions of an assessment.

        The order is the assessment's question order and is stable across
        calls.

        Args:
            assessment_id: The unique identifier for the assessment

        Returns:
            Ordered list of questions, empty for an unknown assessment

        Raises:
            StorageError: If an error occurs during retrieval
        """
        pass


class SessionRepository(ABC):
    """
    Persistence for sessions and their answers.
    """

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[Session]:
        """
        Retrieve a session by its ID.

        Args:
            session_id: The unique identifier for the session

        Returns:
            The session if found, None otherwise

        Raises:
            StorageError: If an error occurs during retrieval
        """
        pass

    @abstractmethod
    async def create_session(
        self,
        assessment_id: str,
        user_id: str,
        created_at: Optional[datetime.datetime] = None
    ) -> Session:
        """
        Create a new session in the created state.

        Args:
            assessment_id: Assessment being attempted
            user_id: User taking the assessment
            created_at: Creation timestamp, defaults to now

        Returns:
            The stored session

        Raises:
            StorageError: If an error occurs during creation
        """
        pass

    @abstractmethod
    async def update_session_status(
        self,
        session_id: str,
        expected_status: SessionStatus,
        new_status: SessionStatus,
        started_at: Optional[datetime.datetime] = None,
        completed_at: Optional[datetime.datetime] = None
    ) -> Optional[Session]:
        """
        Compare-and-set the status of a session.

        The write only happens when the stored status still equals
        ``expected_status``; timestamps are written together with the status
        or not at all.

        Args:
            session_id: Session to update
            expected_status: Status the caller observed
            new_status: Status to move to
            started_at: Start timestamp to record, if any
            completed_at: Completion timestamp to record, if any

        Returns:
            The updated session, or None when the stored status no longer
            matched ``expected_status``

        Raises:
            SessionNotFoundError: If the session does not exist
            StorageError: If an error occurs during the update
        """
        pass

    @abstractmethod
    async def get_answers(self, session_id: str) -> List[Answer]:
        """
        Retrieve the answers of a session in submission order.

        Raises:
            StorageError: If an error occurs during retrieval
        """
        pass

    @abstractmethod
    async def insert_answer(self, answer: Answer) -> Answer:
        """
        Insert an answer unless one exists for the same session and question.

        Args:
            answer: The answer to persist

        Returns:
            The stored answer

        Raises:
            DuplicateAnswerError: If the question was already answered
            StorageError: If an error occurs during the insert
        """
        pass

    @abstractmethod
    async def list_sessions_by_user(self, user_id: str) -> List[Session]:
        """Retrieve all sessions of a user, oldest first."""
        pass

    @abstractmethod
    async def list_sessions_by_assessment(self, assessment_id: str) -> List[Session]:
        """Retrieve all sessions of an assessment, oldest first."""
        pass
