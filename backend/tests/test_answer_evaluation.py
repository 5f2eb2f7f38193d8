"""
Tests for answer validation and grading per question type.
"""

import unittest

from backend.assessments.base.models import Question, QuestionType
from backend.assessments.competency.answer_evaluation import AnswerEvaluator
from backend.common.error_handling import ErrorCode, InvalidAnswerError
from backend.tests.factories import build_service, make_assessment, make_question, make_questions


class TestAnswerEvaluator(unittest.TestCase):
    """Test the AnswerEvaluator class."""

    def setUp(self):
        self.evaluator = AnswerEvaluator()
        self.choice = make_question("q1", correct="C")
        self.true_false = Question(
            id="q2",
            type=QuestionType.TRUE_FALSE,
            text="Guests may check in before noon without approval.",
            correct_answer="false",
            competency_id="front_desk"
        )
        self.free_text = Question(
            id="q3",
            type=QuestionType.TEXT_ANSWER,
            text="Name the capital of France.",
            correct_answer="Paris",
            competency_id="concierge"
        )

    def test_multiple_choice(self):
        self.assertTrue(self.evaluator.evaluate(self.choice, "C"))
        self.assertFalse(self.evaluator.evaluate(self.choice, "A"))

    def test_multiple_choice_rejects_unknown_option(self):
        with self.assertRaises(InvalidAnswerError) as ctx:
            self.evaluator.evaluate(self.choice, "E")
        self.assertEqual(ctx.exception.code, ErrorCode.INVALID_ANSWER)
        self.assertEqual(ctx.exception.details["question_id"], "q1")

    def test_true_false(self):
        self.assertTrue(self.evaluator.evaluate(self.true_false, "false"))
        self.assertFalse(self.evaluator.evaluate(self.true_false, "true"))
        self.assertFalse(self.evaluator.evaluate(self.true_false, "False"))

    def test_true_false_uses_stored_answer_values(self):
        question = Question(
            id="tf1",
            type=QuestionType.TRUE_FALSE,
            text="Late checkout is free for loyalty members.",
            correct_answer="Да",
            competency_id="front_desk"
        )

        self.assertTrue(self.evaluator.evaluate(question, "Да"))
        self.assertFalse(self.evaluator.evaluate(question, "Нет"))

    def test_true_false_with_options_rejects_other_values(self):
        question = Question(
            id="tf2",
            type=QuestionType.TRUE_FALSE,
            text="Towels are changed daily.",
            correct_answer="Нет",
            competency_id="housekeeping",
            options=["Да", "Нет"]
        )

        self.assertTrue(self.evaluator.evaluate(question, "Нет"))
        with self.assertRaises(InvalidAnswerError):
            self.evaluator.evaluate(question, "true")

    def test_free_text_is_exact_match(self):
        self.assertTrue(self.evaluator.evaluate(self.free_text, "Paris"))
        self.assertFalse(self.evaluator.evaluate(self.free_text, "paris"))
        self.assertFalse(self.evaluator.evaluate(self.free_text, " Paris"))

    def test_accepted_answer_set(self):
        question = Question(
            id="q4",
            type=QuestionType.IMAGE_BASED,
            text="Which room type is shown?",
            correct_answer=["Suite", "Junior Suite"],
            competency_id="sales",
            image_url="https://example.com/room.png"
        )
        self.assertTrue(self.evaluator.evaluate(question, "Suite"))
        self.assertTrue(self.evaluator.evaluate(question, "Junior Suite"))
        self.assertFalse(self.evaluator.evaluate(question, "Double"))

    def test_missing_or_malformed_answers(self):
        for raw in (None, "", 3, ["C"]):
            with self.subTest(raw=raw):
                with self.assertRaises(InvalidAnswerError):
                    self.evaluator.evaluate(self.choice, raw)

    def test_register_replaces_rules(self):
        self.evaluator.register(
            QuestionType.TEXT_ANSWER,
            validate=lambda question, answer: None,
            compare=lambda question, answer: answer.strip().lower() == "paris"
        )
        self.assertTrue(self.evaluator.evaluate(self.free_text, "  PARIS "))

        # Other evaluators keep the default rules
        self.assertFalse(AnswerEvaluator().evaluate(self.free_text, "  PARIS "))

    def test_services_keep_separate_rules(self):
        questions = make_questions(1)
        first = build_service(make_assessment(questions), questions)
        second = build_service(make_assessment(questions), questions)

        first.evaluator.register(
            QuestionType.MULTIPLE_CHOICE,
            validate=lambda question, answer: None,
            compare=lambda question, answer: True
        )

        self.assertIsNot(first.evaluator, second.evaluator)
        self.assertTrue(first.evaluator.evaluate(questions[0], "B"))
        self.assertFalse(second.evaluator.evaluate(questions[0], "B"))

    def test_validate_returns_answer(self):
        self.assertEqual(self.evaluator.validate(self.choice, "B"), "B")


class TestQuestion(unittest.TestCase):
    """Test Question construction."""

    def test_multiple_choice_requires_options(self):
        with self.assertRaises(ValueError):
            Question(id="q1", type="multiple_choice", text="Pick one", correct_answer="A",
                     competency_id="front_desk")

    def test_unknown_type(self):
        with self.assertRaises(ValueError):
            Question(id="q1", type="essay", text="Explain", correct_answer="A",
                     competency_id="front_desk")

    def test_public_dict_hides_answer(self):
        question = make_question("q1", correct="B")
        public = question.to_public_dict()
        self.assertNotIn("correct_answer", public)
        self.assertEqual(public["options"], ["A", "B", "C", "D"])
        self.assertEqual(question.to_dict()["correct_answer"], "B")


if __name__ == "__main__":
    unittest.main()
