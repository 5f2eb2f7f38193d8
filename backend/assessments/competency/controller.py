"""
Competency Assessment Controller

This module implements the API endpoints for competency assessments:
creating and starting sessions, submitting answers, completing sessions and
reading reports and statistics.

Assessment errors raised by the service propagate to the application's
exception handler, which maps their error codes to HTTP status codes.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Path, Query
from pydantic import BaseModel, Field

from backend.api import APIResponse
from backend.assessments.base.models import ProficiencyLevel, QuestionType
from backend.assessments.competency.memory_repository import (
    MemoryQuestionRepository,
    MemorySessionRepository
)
from backend.assessments.competency.repository import SqlQuestionRepository, SqlSessionRepository
from backend.assessments.competency.scoring import ReportAggregator
from backend.assessments.competency.seed_data import load_seed_file
from backend.assessments.competency.session_service import SessionService
from backend.common.logger import app_logger, get_logger
from backend.config import settings

# Set up logger
logger = get_logger("competency.controller", app_logger)

# Create router
router = APIRouter()


# Request Models
class CreateSessionRequest(BaseModel):
    assessment_id: str = Field(..., min_length=1, description="Assessment identifier")
    user_id: str = Field(..., min_length=1, description="User taking the assessment")


class SubmitAnswerRequest(BaseModel):
    question_id: str = Field(..., min_length=1, description="Question identifier")
    answer: Any = Field(None, description="Submitted answer value")


_service: Optional[SessionService] = None


def create_memory_question_repository(seed_file: Optional[str]) -> MemoryQuestionRepository:
    """In-memory question store filled from a seed file."""
    repository = MemoryQuestionRepository()
    if not seed_file:
        logger.warning("Memory assessment store has no ASSESSMENT_SEED_FILE; no assessments are available")
        return repository

    for assessment, questions in load_seed_file(seed_file):
        repository.add_assessment(assessment, questions)
    return repository


def create_session_service() -> SessionService:
    """Create the session service for the configured store."""
    if settings.ASSESSMENT_STORE == "memory":
        question_repository = create_memory_question_repository(settings.ASSESSMENT_SEED_FILE)
        session_repository = MemorySessionRepository()
    else:
        question_repository = SqlQuestionRepository()
        session_repository = SqlSessionRepository()

    logger.info(f"Creating competency session service with {settings.ASSESSMENT_STORE} store")
    return SessionService(
        question_repository,
        session_repository,
        aggregator=ReportAggregator(
            senior_threshold=settings.ASSESSMENT_SENIOR_THRESHOLD,
            middle_threshold=settings.ASSESSMENT_MIDDLE_THRESHOLD
        ),
        allow_concurrent_attempts=settings.ASSESSMENT_ALLOW_CONCURRENT_ATTEMPTS
    )


def get_session_service() -> SessionService:
    """Dependency returning the shared session service."""
    global _service
    if _service is None:
        _service = create_session_service()
    return _service


@router.post("/sessions")
async def create_session_endpoint(
    request: CreateSessionRequest,
    service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    """Create a session, or return the user's unfinished one."""
    session = await service.create_session(request.assessment_id, request.user_id)
    return APIResponse.success(session.to_dict(), "Session created")


@router.post("/sessions/{session_id}/start")
async def start_session_endpoint(
    session_id: str = Path(..., description="Session identifier"),
    service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    """Start a session or resume it at its first unanswered question."""
    progress = await service.start_or_resume_session(session_id)
    return APIResponse.success(progress.to_dict(), "Session started")


@router.get("/sessions/{session_id}")
async def get_session_endpoint(
    session_id: str = Path(..., description="Session identifier"),
    service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    progress = await service.get_session_status(session_id)
    return APIResponse.success(progress.to_dict())


@router.post("/sessions/{session_id}/answers")
async def submit_answer_endpoint(
    request: SubmitAnswerRequest,
    session_id: str = Path(..., description="Session identifier"),
    service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    """Grade and store one answer."""
    result = await service.submit_answer(session_id, request.question_id, request.answer)
    return APIResponse.success(result.to_dict(), "Answer recorded")


@router.post("/sessions/{session_id}/complete")
async def complete_session_endpoint(
    session_id: str = Path(..., description="Session identifier"),
    service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    session = await service.complete_session(session_id)
    return APIResponse.success(session.to_dict(), "Session completed")


@router.get("/sessions/{session_id}/report")
async def get_report_endpoint(
    session_id: str = Path(..., description="Session identifier"),
    level: Optional[ProficiencyLevel] = Query(None, description="Level from an external analysis"),
    service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    """Competency report of a completed session."""
    report = await service.get_report(session_id, external_level=level)
    return APIResponse.success(report.to_dict())


@router.get("/assessments/{assessment_id}/statistics")
async def get_statistics_endpoint(
    assessment_id: str = Path(..., description="Assessment identifier"),
    service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    statistics = await service.get_assessment_statistics(assessment_id)
    return APIResponse.success(statistics.to_dict())


@router.get("/users/{user_id}/results")
async def get_user_results_endpoint(
    user_id: str = Path(..., description="User identifier"),
    service: SessionService = Depends(get_session_service)
) -> Dict[str, Any]:
    reports = await service.get_user_results(user_id)
    return APIResponse.success([report.to_dict() for report in reports])


@router.get("/info")
async def get_module_info() -> Dict[str, Any]:
    """Describe the competency assessment module."""
    return APIResponse.success({
        "name": "competency",
        "description": "Hotel staff competency assessments",
        "question_types": [t.value for t in QuestionType],
        "levels": [level.value for level in ProficiencyLevel],
        "store": settings.ASSESSMENT_STORE
    })
