"""
Session Service for Competency Assessments

This module provides the public entry point of the assessment session
engine. It composes the lifecycle controller, the answer evaluator and the
report aggregator on top of the question and session repositories.

Every operation takes an explicit session ID; there is no notion of a
current session. Operations on the same session are serialized in-process,
and the repositories' conditional writes keep concurrent processes
consistent.
"""

import asyncio
import weakref
from typing import Any, Dict, List, Optional, Tuple, Union

from backend.assessments.base.models import (
    AssessmentDefinition,
    Question,
    Session,
    SessionStatus,
    Answer,
    Report,
    ProficiencyLevel,
    SessionProgress,
    AnswerResult,
    AssessmentStatistics
)
from backend.assessments.base.repositories import QuestionRepository, SessionRepository
from backend.assessments.competency.answer_evaluation import AnswerEvaluator
from backend.assessments.competency.lifecycle import Clock, SessionLifecycleController
from backend.assessments.competency.scoring import ReportAggregator
from backend.common.error_handling import (
    AssessmentNotFoundError,
    SessionNotFoundError,
    InvalidQuestionError,
    DuplicateAnswerError,
    SessionNotCompletedError,
    IllegalTransitionError
)
from backend.common.logger import LoggerAdapter, app_logger, log_execution_time

# Module logger
logger = app_logger.getChild("competency.session_service")


class SessionService:
    """
    Orchestrates assessment sessions.

    Public operations:
        create_session, start_or_resume_session, get_session_status,
        submit_answer, complete_session, get_report,
        get_assessment_statistics, get_user_results
    """

    def __init__(
        self,
        question_repository: QuestionRepository,
        session_repository: SessionRepository,
        evaluator: Optional[AnswerEvaluator] = None,
        aggregator: Optional[ReportAggregator] = None,
        clock: Optional[Clock] = None,
        allow_concurrent_attempts: bool = False
    ):
        """
        Initialize the session service.

        Args:
            question_repository: Source of assessments and questions
            session_repository: Store for sessions and answers
            evaluator: Answer evaluator, a default one when omitted
            aggregator: Report aggregator, a default one when omitted
            clock: Callable returning the current naive UTC time
            allow_concurrent_attempts: Whether a user may hold several
                unfinished sessions for the same assessment
        """
        self.question_repository = question_repository
        self.session_repository = session_repository
        self.evaluator = evaluator or AnswerEvaluator()
        self.aggregator = aggregator or ReportAggregator()
        self.lifecycle = SessionLifecycleController(session_repository, clock)
        self.allow_concurrent_attempts = allow_concurrent_attempts
        self._locks: "weakref.WeakValueDictionary[Any, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _lock_for(self, key: Any) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def _load_session(self, session_id: str) -> Tuple[Session, AssessmentDefinition]:
        session = await self.session_repository.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        assessment = await self.question_repository.get_assessment(session.assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(session.assessment_id, details={"session_id": session_id})
        return session, assessment

    async def _settle(
        self,
        session: Session,
        assessment: AssessmentDefinition,
        questions: List[Question],
        answers: List[Answer]
    ) -> Session:
        """Apply any transition the stored state already calls for."""
        return await self.lifecycle.complete_if_finished(
            session, assessment, len(answers), len(questions)
        )

    def _progress(
        self,
        session: Session,
        assessment: AssessmentDefinition,
        questions: List[Question],
        answers: List[Answer]
    ) -> SessionProgress:
        answered_ids = {a.question_id for a in answers}
        next_question = None
        if session.status == SessionStatus.IN_PROGRESS:
            next_question = next((q for q in questions if q.id not in answered_ids), None)

        return SessionProgress(
            session=session,
            total_questions=len(questions),
            answered_count=len(answers),
            next_question_index=len(answers),
            next_question=next_question,
            remaining_seconds=self.lifecycle.remaining_seconds(session, assessment)
        )

    async def create_session(self, assessment_id: str, user_id: str) -> Session:
        """
        Create a session for a user.

        Unless concurrent attempts are allowed, an unfinished session of the
        same user for the same assessment is returned instead of a new one.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist
        """
        assessment = await self.question_repository.get_assessment(assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)

        async with self._lock_for(("create", user_id, assessment_id)):
            if not self.allow_concurrent_attempts:
                for existing in await self.session_repository.list_sessions_by_user(user_id):
                    if existing.assessment_id != assessment_id or existing.is_completed:
                        continue
                    async with self._lock_for(existing.id):
                        existing = await self.lifecycle.refresh(existing, assessment)
                    if not existing.is_completed:
                        logger.info(
                            f"User {user_id} already has session {existing.id} "
                            f"for assessment {assessment_id}, reusing it"
                        )
                        return existing

            session = await self.session_repository.create_session(
                assessment_id, user_id, created_at=self.lifecycle.now()
            )

        logger.info(f"Created session {session.id} for user {user_id} on assessment {assessment_id}")
        return session

    async def start_or_resume_session(self, session_id: str) -> SessionProgress:
        """
        Start a created session or resume one already in progress.

        The resume point is the number of answers stored so far.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        async with self._lock_for(session_id):
            session, assessment = await self._load_session(session_id)
            questions = await self.question_repository.get_questions(assessment.id)
            answers = await self.session_repository.get_answers(session_id)

            session = await self.lifecycle.start(session)
            session = await self._settle(session, assessment, questions, answers)
            return self._progress(session, assessment, questions, answers)

    async def get_session_status(self, session_id: str) -> SessionProgress:
        """
        Read a session, completing it first if its time has run out.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        async with self._lock_for(session_id):
            session, assessment = await self._load_session(session_id)
            questions = await self.question_repository.get_questions(assessment.id)
            answers = await self.session_repository.get_answers(session_id)

            session = await self._settle(session, assessment, questions, answers)
            return self._progress(session, assessment, questions, answers)

    @log_execution_time(logger)
    async def submit_answer(self, session_id: str, question_id: str, raw_answer: Any) -> AnswerResult:
        """
        Grade and store an answer, then complete the session if it is finished.

        Args:
            session_id: Session being answered
            question_id: Question being answered
            raw_answer: Submitted value

        Returns:
            The stored answer with the session state after the submission

        Raises:
            SessionNotFoundError: If the session does not exist
            DuplicateAnswerError: If the question was already answered
            IllegalTransitionError: If the session is not in progress,
                including when its time has just run out
            InvalidQuestionError: If the question is not in the assessment
            InvalidAnswerError: If the submission is malformed
        """
        async with self._lock_for(session_id):
            session, assessment = await self._load_session(session_id)
            log = LoggerAdapter(logger, {"session_id": session_id, "user_id": session.user_id})

            session = await self.lifecycle.refresh(session, assessment)

            answers = await self.session_repository.get_answers(session_id)
            if any(a.question_id == question_id for a in answers):
                raise DuplicateAnswerError(question_id, session_id)

            if session.status != SessionStatus.IN_PROGRESS:
                log.info(f"Rejected answer for question {question_id}: session is {session.status.value}")
                raise IllegalTransitionError(session_id, session.status.value, "answer")

            questions = await self.question_repository.get_questions(assessment.id)
            question = next((q for q in questions if q.id == question_id), None)
            if question is None:
                raise InvalidQuestionError(question_id, assessment.id)

            is_correct = self.evaluator.evaluate(question, raw_answer)

            answer = await self.session_repository.insert_answer(Answer.new(
                session_id=session_id,
                question_id=question_id,
                value=raw_answer,
                is_correct=is_correct,
                answered_at=self.lifecycle.now()
            ))
            log.info(f"Stored answer for question {question_id} (correct={is_correct})")

            # Only reached once the answer write is confirmed
            session = await self.lifecycle.complete_if_finished(
                session, assessment, len(answers) + 1, len(questions)
            )
            return AnswerResult(answer=answer, session=session)

    async def complete_session(self, session_id: str) -> Session:
        """
        Complete a session on request, whatever its number of answers.

        Completing an already completed session returns it unchanged.

        Raises:
            SessionNotFoundError: If the session does not exist
            IllegalTransitionError: If the session was never started
        """
        async with self._lock_for(session_id):
            session, assessment = await self._load_session(session_id)
            session = await self.lifecycle.refresh(session, assessment)
            return await self.lifecycle.complete(session)

    async def get_report(
        self,
        session_id: str,
        external_level: Optional[Union[ProficiencyLevel, str]] = None
    ) -> Report:
        """
        Compute the competency report of a completed session.

        Args:
            session_id: Session to report on
            external_level: Authoritative level from a richer analysis

        Raises:
            SessionNotFoundError: If the session does not exist
            SessionNotCompletedError: If the session is not completed
        """
        async with self._lock_for(session_id):
            session, assessment = await self._load_session(session_id)
            questions = await self.question_repository.get_questions(assessment.id)
            answers = await self.session_repository.get_answers(session_id)

            session = await self._settle(session, assessment, questions, answers)
            if session.status != SessionStatus.COMPLETED:
                raise SessionNotCompletedError(session_id, session.status.value)

            return self.aggregator.aggregate(session, assessment, questions, answers, external_level)

    async def _completed_reports(self, sessions: List[Session]) -> List[Report]:
        reports = []
        for session in sessions:
            try:
                reports.append(await self.get_report(session.id))
            except SessionNotCompletedError:
                continue
        return reports

    async def get_assessment_statistics(self, assessment_id: str) -> AssessmentStatistics:
        """
        Aggregate the results of every session of an assessment.

        Raises:
            AssessmentNotFoundError: If the assessment does not exist
        """
        assessment = await self.question_repository.get_assessment(assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)

        sessions = await self.session_repository.list_sessions_by_assessment(assessment_id)
        reports = await self._completed_reports(sessions)

        stats = AssessmentStatistics(
            assessment_id=assessment_id,
            total_sessions=len(sessions),
            completed_sessions=len(reports),
            level_distribution={level.value: 0 for level in ProficiencyLevel}
        )
        if not reports:
            return stats

        stats.average_score = round(sum(r.score_percent for r in reports) / len(reports), 2)

        competency_scores: Dict[str, List[int]] = {}
        for report in reports:
            stats.level_distribution[report.level.value] += 1
            for result in report.competencies:
                competency_scores.setdefault(result.competency_id, []).append(result.percent)

        stats.competency_averages = {
            competency_id: round(sum(scores) / len(scores), 2)
            for competency_id, scores in competency_scores.items()
        }
        return stats

    async def get_user_results(self, user_id: str) -> List[Report]:
        """Reports of a user's completed sessions, most recently completed first."""
        sessions = await self.session_repository.list_sessions_by_user(user_id)
        reports = await self._completed_reports(sessions)
        return sorted(reports, key=lambda r: r.completed_at, reverse=True)
