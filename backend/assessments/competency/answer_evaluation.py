"""
Answer Evaluation for Competency Assessments

This module grades submitted answers. Each question type has a validator
and a comparison rule registered in a dispatch table; grading is exact
string comparison for every type, free-text included.
"""

from typing import Any, Callable, Dict, Optional

from backend.assessments.base.models import Question, QuestionType
from backend.common.error_handling import InvalidAnswerError
from backend.common.logger import app_logger

logger = app_logger.getChild("competency.answer_evaluation")

Validator = Callable[[Question, str], Optional[str]]
Comparator = Callable[[Question, str], bool]


def _validate_choice(question: Question, answer: str) -> Optional[str]:
    if answer not in question.options:
        return "answer is not one of the question options"
    return None


def _validate_true_false(question: Question, answer: str) -> Optional[str]:
    if question.options and answer not in question.options:
        return f"answer must be one of {list(question.options)}"
    return None


def _validate_free_text(question: Question, answer: str) -> Optional[str]:
    return None


def _exact_match(question: Question, answer: str) -> bool:
    return answer in question.accepted_answers


class AnswerEvaluator:
    """
    Grades answers by question type.

    ``evaluate`` has no side effects. Malformed submissions raise
    InvalidAnswerError and are never graded.
    """

    def __init__(self):
        self._rules: Dict[QuestionType, Dict[str, Callable]] = {
            QuestionType.MULTIPLE_CHOICE: {"validate": _validate_choice, "compare": _exact_match},
            QuestionType.TRUE_FALSE: {"validate": _validate_true_false, "compare": _exact_match},
            QuestionType.TEXT_ANSWER: {"validate": _validate_free_text, "compare": _exact_match},
            QuestionType.IMAGE_BASED: {"validate": _validate_free_text, "compare": _exact_match},
        }

    def register(
        self,
        question_type: QuestionType,
        validate: Validator,
        compare: Comparator
    ) -> None:
        """
        Replace the rules used for a question type.

        Args:
            question_type: Question type to configure
            validate: Returns a failure reason for malformed answers, None otherwise
            compare: Returns whether a well-formed answer is correct
        """
        self._rules[question_type] = {"validate": validate, "compare": compare}

    def validate(self, question: Question, raw_answer: Any) -> str:
        """
        Check that a submission is well formed for its question.

        Args:
            question: The question being answered
            raw_answer: The submitted value

        Returns:
            The answer as a string

        Raises:
            InvalidAnswerError: If the submission is missing or malformed
        """
        if raw_answer is None:
            raise InvalidAnswerError(question.id, "answer is missing")
        if not isinstance(raw_answer, str):
            raise InvalidAnswerError(
                question.id, f"answer must be a string, got {type(raw_answer).__name__}"
            )
        if raw_answer == "":
            raise InvalidAnswerError(question.id, "answer is empty")

        rules = self._rules.get(question.type)
        if rules is None:
            raise InvalidAnswerError(question.id, f"unsupported question type {question.type}")

        reason = rules["validate"](question, raw_answer)
        if reason:
            raise InvalidAnswerError(question.id, reason)
        return raw_answer

    def evaluate(self, question: Question, raw_answer: Any) -> bool:
        """
        Decide whether an answer is correct.

        Args:
            question: The question being answered
            raw_answer: The submitted value

        Returns:
            True if the answer is correct

        Raises:
            InvalidAnswerError: If the submission is missing or malformed
        """
        answer = self.validate(question, raw_answer)
        is_correct = bool(self._rules[question.type]["compare"](question, answer))
        logger.debug(f"Evaluated answer for question {question.id} ({question.type.value}): correct={is_correct}")
        return is_correct
