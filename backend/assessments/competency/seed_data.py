"""
Assessment Seed Files

Assessments and their questions can be loaded from a JSON file of the form:

    {"assessments": [{"id": ..., "title": ..., "passing_score_percent": ...,
                      "time_limit_minutes": ..., "questions": [{...}, ...]}]}

The question order of each assessment is the order of its "questions" list.
"""

import json
from pathlib import Path
from typing import List, Tuple, Union

from backend.assessments.base.models import AssessmentDefinition, Question
from backend.common.logger import app_logger

logger = app_logger.getChild("competency.seed_data")

SeedEntry = Tuple[AssessmentDefinition, List[Question]]


def parse_seed_data(data: dict) -> List[SeedEntry]:
    """
    Build assessments and their ordered questions from decoded seed data.

    Raises:
        KeyError: If a required field is missing
        ValueError: If an assessment or question entry is invalid
    """
    entries = []
    for entry in data.get("assessments", []):
        questions = [Question.from_dict(q) for q in entry.get("questions", [])]
        assessment = AssessmentDefinition.from_dict({
            **entry,
            "question_ids": [q.id for q in questions]
        })
        entries.append((assessment, questions))
    return entries


def load_seed_file(path: Union[str, Path]) -> List[SeedEntry]:
    """Read a seed file and return its assessments with their questions."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    entries = parse_seed_data(data)
    logger.info(f"Loaded {len(entries)} assessments from {path}")
    return entries
