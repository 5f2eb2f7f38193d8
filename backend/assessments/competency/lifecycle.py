"""
Session Lifecycle Controller

Owns the session state machine::

    created --start--> in_progress --(last answer | expiry | complete)--> completed

The time limit is not a running timer. Elapsed and remaining time are
computed from the stored ``started_at`` timestamp, so expiry survives
process restarts and is detected by whichever operation touches the
session next.
"""

import datetime
import math
from typing import Callable, Optional

from backend.assessments.base.models import AssessmentDefinition, Session, SessionStatus
from backend.assessments.base.repositories import SessionRepository
from backend.common.error_handling import IllegalTransitionError, SessionNotFoundError
from backend.common.logger import app_logger

# Module logger
logger = app_logger.getChild("competency.lifecycle")

Clock = Callable[[], datetime.datetime]


class SessionLifecycleController:
    """
    Applies legal status transitions through compare-and-set writes.

    When a concurrent writer wins a transition, the controller returns the
    stored state instead of writing again, so each timestamp is set once.
    """

    def __init__(self, session_repository: SessionRepository, clock: Optional[Clock] = None):
        """
        Initialize the controller.

        Args:
            session_repository: Store holding the sessions
            clock: Callable returning the current naive UTC time
        """
        self.session_repository = session_repository
        self.clock = clock or datetime.datetime.utcnow

    def now(self) -> datetime.datetime:
        return self.clock()

    # Clock

    def elapsed_seconds(self, session: Session, now: Optional[datetime.datetime] = None) -> float:
        """Seconds since the session was started, 0 if it never was."""
        if session.started_at is None:
            return 0.0
        end = session.completed_at or now or self.now()
        return max(0.0, (end - session.started_at).total_seconds())

    def remaining_seconds(
        self,
        session: Session,
        assessment: AssessmentDefinition,
        now: Optional[datetime.datetime] = None
    ) -> Optional[int]:
        """
        Whole seconds left on the clock.

        Returns:
            None for unlimited assessments, the full limit before the
            session starts and 0 once it is completed or out of time
        """
        limit = assessment.time_limit_seconds
        if limit is None:
            return None
        if session.status == SessionStatus.CREATED:
            return limit
        if session.status == SessionStatus.COMPLETED:
            return 0
        remaining = limit - self.elapsed_seconds(session, now)
        return max(0, math.ceil(remaining))

    def is_expired(
        self,
        session: Session,
        assessment: AssessmentDefinition,
        now: Optional[datetime.datetime] = None
    ) -> bool:
        """Whether an in-progress session has run out of time."""
        limit = assessment.time_limit_seconds
        if limit is None or session.status != SessionStatus.IN_PROGRESS:
            return False
        return self.elapsed_seconds(session, now) >= limit

    # Transitions

    async def start(self, session: Session) -> Session:
        """
        Move a created session to in_progress.

        Starting a session that is already in progress or completed returns
        it unchanged.
        """
        if session.status != SessionStatus.CREATED:
            logger.debug(f"Session {session.id} already {session.status.value}, start is a no-op")
            return session

        updated = await self.session_repository.update_session_status(
            session.id,
            expected_status=SessionStatus.CREATED,
            new_status=SessionStatus.IN_PROGRESS,
            started_at=self.now()
        )
        if updated is None:
            return await self._reload(session.id)

        logger.info(f"Started session {session.id} for user {session.user_id}")
        return updated

    async def complete(self, session: Session, reason: str = "explicit") -> Session:
        """
        Move an in-progress session to completed.

        Args:
            session: Session to complete
            reason: Why the session is completing, for logging

        Returns:
            The completed session

        Raises:
            IllegalTransitionError: If the session was never started
        """
        if session.status == SessionStatus.COMPLETED:
            return session
        if session.status == SessionStatus.CREATED:
            raise IllegalTransitionError(session.id, session.status.value, "complete")

        updated = await self.session_repository.update_session_status(
            session.id,
            expected_status=SessionStatus.IN_PROGRESS,
            new_status=SessionStatus.COMPLETED,
            completed_at=self.now()
        )
        if updated is None:
            return await self._reload(session.id)

        logger.info(f"Completed session {session.id} ({reason})")
        return updated

    async def refresh(self, session: Session, assessment: AssessmentDefinition) -> Session:
        """
        Force-complete a session whose clock has run out.

        Every operation calls this before acting on a session.
        """
        if self.is_expired(session, assessment):
            logger.info(f"Session {session.id} exceeded its {assessment.time_limit_minutes} minute limit")
            return await self.complete(session, reason="time limit expired")
        return session

    async def complete_if_finished(
        self,
        session: Session,
        assessment: AssessmentDefinition,
        answered_count: int,
        total_questions: int
    ) -> Session:
        """
        Complete a session once every question is answered or time is up.
        """
        session = await self.refresh(session, assessment)
        if session.status == SessionStatus.IN_PROGRESS and answered_count >= total_questions:
            return await self.complete(session, reason="all questions answered")
        return session

    async def _reload(self, session_id: str) -> Session:
        current = await self.session_repository.get_session(session_id)
        if current is None:
            raise SessionNotFoundError(session_id)
        logger.debug(f"Concurrent transition on session {session_id}, now {current.status.value}")
        return current
