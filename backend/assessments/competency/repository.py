"""
SQL Repository Module

This module provides SQLAlchemy async implementations of the question and
session repositories. Status changes and answer inserts are conditional
writes so that concurrent callers cannot both succeed.
"""

import datetime
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from backend.assessments.base.models import (
    AssessmentDefinition,
    Question,
    Session,
    SessionStatus,
    Answer
)
from backend.assessments.base.repositories import QuestionRepository, SessionRepository
from backend.assessments.competency.database_models import (
    AssessmentModel,
    AssessmentQuestionModel,
    AssessmentSessionModel,
    AssessmentAnswerModel,
    assessment_rows
)
from backend.common.error_handling import (
    DuplicateAnswerError,
    SessionNotFoundError,
    StorageError
)
from backend.common.logger import app_logger
from backend.database.init_db import get_session_factory

# Setup module logger
logger = app_logger.getChild("competency.repository")


class _SqlRepository:
    """Shared session factory handling."""

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory

    @property
    def async_session(self) -> sessionmaker:
        """Get the async session factory, falling back to the global one."""
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    def _storage_error(self, operation: str, error: Exception) -> StorageError:
        logger.error(f"Database error during {operation}: {error}")
        return StorageError(f"Database error during {operation}", operation=operation, cause=error)


class SqlQuestionRepository(_SqlRepository, QuestionRepository):
    """
    Repository implementation for assessments and questions using SQLAlchemy Async.
    """

    async def get_assessment(self, assessment_id: str) -> Optional[AssessmentDefinition]:
        try:
            async with self.async_session() as session:
                result = await session.execute(
                    select(AssessmentModel).where(AssessmentModel.id == assessment_id)
                )
                row = result.scalars().first()
                return row.to_domain() if row else None
        except SQLAlchemyError as e:
            raise self._storage_error("get_assessment", e)

    async def get_questions(self, assessment_id: str) -> List[Question]:
        try:
            async with self.async_session() as session:
                result = await session.execute(
                    select(AssessmentQuestionModel)
                    .where(AssessmentQuestionModel.assessment_id == assessment_id)
                    .order_by(AssessmentQuestionModel.position)
                )
                return [row.to_domain() for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise self._storage_error("get_questions", e)

    async def add_assessment(self, assessment: AssessmentDefinition, questions: List[Question]) -> None:
        """
        Store an assessment with its questions, replacing its previous question list.

        Seeding helper for the content side; the session engine never calls it.
        """
        known = {q.id for q in questions}
        missing = [qid for qid in assessment.question_ids if qid not in known]
        if missing:
            raise ValueError(f"Assessment {assessment.id} references unknown questions: {missing}")

        try:
            async with self.async_session() as session:
                async with session.begin():
                    # Questions dropped or reordered since the last seed must not linger
                    await session.execute(
                        delete(AssessmentQuestionModel)
                        .where(AssessmentQuestionModel.assessment_id == assessment.id)
                        .execution_options(synchronize_session=False)
                    )
                    for row in assessment_rows(assessment, questions):
                        await session.merge(row)
            logger.info(f"Stored assessment {assessment.id} with {len(assessment.question_ids)} questions")
        except SQLAlchemyError as e:
            raise self._storage_error("add_assessment", e)


class SqlSessionRepository(_SqlRepository, SessionRepository):
    """
    Repository implementation for sessions and answers using SQLAlchemy Async.
    """

    async def get_session(self, session_id: str) -> Optional[Session]:
        try:
            async with self.async_session() as session:
                row = await session.get(AssessmentSessionModel, session_id)
                return row.to_domain() if row else None
        except SQLAlchemyError as e:
            raise self._storage_error("get_session", e)

    async def create_session(
        self,
        assessment_id: str,
        user_id: str,
        created_at: Optional[datetime.datetime] = None
    ) -> Session:
        new_session = Session.new(assessment_id, user_id, created_at)
        try:
            async with self.async_session() as session:
                async with session.begin():
                    session.add(AssessmentSessionModel.from_domain(new_session))
        except SQLAlchemyError as e:
            raise self._storage_error("create_session", e)

        logger.debug(f"Created session {new_session.id} for user {user_id}")
        return new_session

    async def update_session_status(
        self,
        session_id: str,
        expected_status: SessionStatus,
        new_status: SessionStatus,
        started_at: Optional[datetime.datetime] = None,
        completed_at: Optional[datetime.datetime] = None
    ) -> Optional[Session]:
        values = {"status": new_status.value}
        if started_at is not None:
            values["started_at"] = started_at
        if completed_at is not None:
            values["completed_at"] = completed_at

        try:
            async with self.async_session() as session:
                async with session.begin():
                    result = await session.execute(
                        update(AssessmentSessionModel)
                        .where(AssessmentSessionModel.id == session_id)
                        .where(AssessmentSessionModel.status == expected_status.value)
                        .values(**values)
                        .execution_options(synchronize_session=False)
                    )
                    updated_rows = result.rowcount
                    row = await session.get(AssessmentSessionModel, session_id, populate_existing=True)
                    stored = row.to_domain() if row else None
        except SQLAlchemyError as e:
            raise self._storage_error("update_session_status", e)

        if stored is None:
            raise SessionNotFoundError(session_id)
        if updated_rows == 0:
            logger.debug(
                f"Status update for session {session_id} lost: expected "
                f"{expected_status.value}, found {stored.status.value}"
            )
            return None
        return stored

    async def get_answers(self, session_id: str) -> List[Answer]:
        try:
            async with self.async_session() as session:
                result = await session.execute(
                    select(AssessmentAnswerModel)
                    .where(AssessmentAnswerModel.session_id == session_id)
                    .order_by(AssessmentAnswerModel.answered_at, AssessmentAnswerModel.id)
                )
                return [row.to_domain() for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise self._storage_error("get_answers", e)

    async def insert_answer(self, answer: Answer) -> Answer:
        try:
            async with self.async_session() as session:
                async with session.begin():
                    session.add(AssessmentAnswerModel.from_domain(answer))
        except IntegrityError:
            raise DuplicateAnswerError(answer.question_id, answer.session_id)
        except SQLAlchemyError as e:
            raise self._storage_error("insert_answer", e)
        return answer

    async def list_sessions_by_user(self, user_id: str) -> List[Session]:
        return await self._list_sessions(AssessmentSessionModel.user_id == user_id, "list_sessions_by_user")

    async def list_sessions_by_assessment(self, assessment_id: str) -> List[Session]:
        return await self._list_sessions(
            AssessmentSessionModel.assessment_id == assessment_id, "list_sessions_by_assessment"
        )

    async def _list_sessions(self, criterion, operation: str) -> List[Session]:
        try:
            async with self.async_session() as session:
                result = await session.execute(
                    select(AssessmentSessionModel)
                    .where(criterion)
                    .order_by(AssessmentSessionModel.created_at)
                )
                return [row.to_domain() for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise self._storage_error(operation, e)
