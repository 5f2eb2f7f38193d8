"""
Base assessment package: domain models and repository interfaces shared by
assessment modules.
"""

from backend.assessments.base.models import (
    AssessmentDefinition,
    Question,
    QuestionType,
    QuestionDifficulty,
    Session,
    SessionStatus,
    Answer,
    ProficiencyLevel,
    LevelSource,
    CompetencyResult,
    Report,
    SessionProgress,
    AnswerResult,
    AssessmentStatistics
)
from backend.assessments.base.repositories import QuestionRepository, SessionRepository

__all__ = [
    'AssessmentDefinition',
    'Question',
    'QuestionType',
    'QuestionDifficulty',
    'Session',
    'SessionStatus',
    'Answer',
    'ProficiencyLevel',
    'LevelSource',
    'CompetencyResult',
    'Report',
    'SessionProgress',
    'AnswerResult',
    'AssessmentStatistics',
    'QuestionRepository',
    'SessionRepository',
]
