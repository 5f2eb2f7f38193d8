"""
Tests for the SQLAlchemy stores against a temporary SQLite database.
"""

import asyncio
import datetime
import os
import tempfile
import unittest

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from backend.assessments.base.models import Answer, Question, QuestionType, SessionStatus
from backend.assessments.competency.repository import SqlQuestionRepository, SqlSessionRepository
from backend.assessments.competency.session_service import SessionService
from backend.common.error_handling import DuplicateAnswerError, SessionNotFoundError
from backend.database.init_db import create_all_tables
from backend.tests.factories import START, FakeClock, make_assessment, make_questions


class SqlRepositoryTestCase(unittest.TestCase):
    """Fresh SQLite database per test."""

    def setUp(self):
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "academy.db")
        self.engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
        self.run_async(create_all_tables(self.engine))

        factory = sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)
        self.questions = SqlQuestionRepository(factory)
        self.sessions = SqlSessionRepository(factory)

    def tearDown(self):
        self.run_async(self.engine.dispose())
        self.loop.close()
        self.tmpdir.cleanup()

    def run_async(self, coro):
        return self.loop.run_until_complete(coro)


class TestSqlQuestionRepository(SqlRepositoryTestCase):

    def test_round_trip_keeps_order_and_fields(self):
        questions = make_questions(3, ["front_desk", "housekeeping", "front_desk"])
        questions.append(Question(
            id="q4",
            type=QuestionType.TEXT_ANSWER,
            text="Which floor hosts the spa?",
            correct_answer=["2", "second"],
            competency_id="concierge",
            difficulty="hard",
            explanation="The spa is on the second floor."
        ))
        assessment = make_assessment(list(reversed(questions)), time_limit_minutes=15)

        self.run_async(self.questions.add_assessment(assessment, questions))

        stored = self.run_async(self.questions.get_assessment(assessment.id))
        self.assertEqual(stored.question_ids, ["q4", "q3", "q2", "q1"])
        self.assertEqual(stored.time_limit_minutes, 15)
        self.assertEqual(stored.passing_score_percent, 70)

        loaded = self.run_async(self.questions.get_questions(assessment.id))
        self.assertEqual([q.id for q in loaded], ["q4", "q3", "q2", "q1"])
        self.assertEqual(loaded[0], questions[3])
        self.assertEqual(loaded[3].options, ["A", "B", "C", "D"])

    def test_reseeding_replaces_rows(self):
        questions = make_questions(4)
        self.run_async(self.questions.add_assessment(make_assessment(questions), questions))
        self.run_async(self.questions.add_assessment(
            make_assessment(questions[:3], passing_score_percent=90), questions[:3]
        ))

        stored = self.run_async(self.questions.get_assessment("assessment-1"))
        self.assertEqual(stored.passing_score_percent, 90)
        self.assertEqual(stored.question_ids, ["q1", "q2", "q3"])
        loaded = self.run_async(self.questions.get_questions("assessment-1"))
        self.assertEqual([q.id for q in loaded], ["q1", "q2", "q3"])

    def test_reseeding_reorders_questions(self):
        questions = make_questions(2)
        self.run_async(self.questions.add_assessment(make_assessment(questions), questions))
        reordered = list(reversed(questions))
        self.run_async(self.questions.add_assessment(make_assessment(reordered), reordered))

        stored = self.run_async(self.questions.get_assessment("assessment-1"))
        self.assertEqual(stored.question_ids, ["q2", "q1"])
        loaded = self.run_async(self.questions.get_questions("assessment-1"))
        self.assertEqual([q.id for q in loaded], ["q2", "q1"])

    def test_unknown_assessment(self):
        self.assertIsNone(self.run_async(self.questions.get_assessment("missing")))
        self.assertEqual(self.run_async(self.questions.get_questions("missing")), [])

    def test_rejects_unknown_question_ids(self):
        questions = make_questions(2)
        with self.assertRaises(ValueError):
            self.run_async(self.questions.add_assessment(make_assessment(questions), questions[:1]))


class TestSqlSessionRepository(SqlRepositoryTestCase):

    def setUp(self):
        super().setUp()
        questions = make_questions(2)
        self.run_async(self.questions.add_assessment(make_assessment(questions), questions))

    def test_create_and_get(self):
        session = self.run_async(self.sessions.create_session("assessment-1", "user-1", START))

        stored = self.run_async(self.sessions.get_session(session.id))

        self.assertEqual(stored, session)
        self.assertIsNone(self.run_async(self.sessions.get_session("missing")))

    def test_status_compare_and_set(self):
        session = self.run_async(self.sessions.create_session("assessment-1", "user-1", START))

        updated = self.run_async(self.sessions.update_session_status(
            session.id, SessionStatus.CREATED, SessionStatus.IN_PROGRESS, started_at=START
        ))
        lost = self.run_async(self.sessions.update_session_status(
            session.id, SessionStatus.CREATED, SessionStatus.IN_PROGRESS,
            started_at=START + datetime.timedelta(seconds=30)
        ))

        self.assertEqual(updated.status, SessionStatus.IN_PROGRESS)
        self.assertEqual(updated.started_at, START)
        self.assertIsNone(lost)
        self.assertEqual(self.run_async(self.sessions.get_session(session.id)).started_at, START)

    def test_status_update_unknown_session(self):
        with self.assertRaises(SessionNotFoundError):
            self.run_async(self.sessions.update_session_status(
                "missing", SessionStatus.CREATED, SessionStatus.IN_PROGRESS
            ))

    def test_duplicate_answer(self):
        session = self.run_async(self.sessions.create_session("assessment-1", "user-1", START))
        first = Answer.new(session.id, "q1", "A", True, START)

        self.run_async(self.sessions.insert_answer(first))
        with self.assertRaises(DuplicateAnswerError):
            self.run_async(self.sessions.insert_answer(Answer.new(session.id, "q1", "B", False, START)))

        answers = self.run_async(self.sessions.get_answers(session.id))
        self.assertEqual(answers, [first])

    def test_list_sessions(self):
        later = self.run_async(self.sessions.create_session(
            "assessment-1", "user-1", START + datetime.timedelta(minutes=1)
        ))
        earlier = self.run_async(self.sessions.create_session("assessment-1", "user-1", START))
        self.run_async(self.sessions.create_session("assessment-1", "user-2", START))

        by_user = self.run_async(self.sessions.list_sessions_by_user("user-1"))
        by_assessment = self.run_async(self.sessions.list_sessions_by_assessment("assessment-1"))

        self.assertEqual([s.id for s in by_user], [earlier.id, later.id])
        self.assertEqual(len(by_assessment), 3)


class TestSessionServiceOnSql(SqlRepositoryTestCase):

    def test_full_session(self):
        questions = make_questions(3, ["front_desk", "front_desk", "housekeeping"])
        assessment = make_assessment(questions, time_limit_minutes=10)
        self.run_async(self.questions.add_assessment(assessment, questions))
        clock = FakeClock()
        service = SessionService(self.questions, self.sessions, clock=clock)

        session = self.run_async(service.create_session(assessment.id, "user-1"))
        self.run_async(service.start_or_resume_session(session.id))
        for question, value in zip(questions, ["A", "B", "A"]):
            clock.advance(20)
            result = self.run_async(service.submit_answer(session.id, question.id, value))

        self.assertEqual(result.session.status, SessionStatus.COMPLETED)
        with self.assertRaises(DuplicateAnswerError):
            self.run_async(service.submit_answer(session.id, "q1", "A"))

        report = self.run_async(service.get_report(session.id))
        self.assertEqual(report.score_percent, 67)
        self.assertFalse(report.passed)
        self.assertEqual(report.time_spent_seconds, 60)
        self.assertEqual(
            [(c.competency_id, c.correct, c.total) for c in report.competencies],
            [("front_desk", 1, 2), ("housekeeping", 1, 1)]
        )


if __name__ == "__main__":
    unittest.main()
