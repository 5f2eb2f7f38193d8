"""
Tests for application errors and logging helpers.
"""

import json
import logging
import unittest

from backend.common.error_handling import (
    AcademyError,
    DuplicateAnswerError,
    ErrorCode,
    ErrorSeverity,
    IllegalTransitionError,
    StorageError,
    convert_exception,
    error_response
)
from backend.common.logger import APP_LOGGER_NAME, JsonFormatter, LoggerAdapter, get_app_logger
from backend.config import Settings


class TestAcademyError(unittest.TestCase):
    """Test the AcademyError hierarchy."""

    def test_assessment_error_details(self):
        error = IllegalTransitionError("session-1", "completed", "answer")

        self.assertEqual(error.code, ErrorCode.ILLEGAL_TRANSITION)
        self.assertEqual(error.severity, ErrorSeverity.WARNING)
        self.assertEqual(error.details, {
            "session_id": "session-1",
            "current_status": "completed",
            "requested": "answer",
        })
        self.assertIn("illegal_transition", str(error))

    def test_to_dict_is_json_ready(self):
        error = DuplicateAnswerError("q1", "session-1")

        data = error.to_dict()

        self.assertEqual(data["code"], "duplicate_answer")
        self.assertEqual(data["exception_type"], "DuplicateAnswerError")
        self.assertEqual(json.loads(error.to_json())["details"]["question_id"], "q1")

    def test_storage_error_keeps_cause(self):
        cause = ConnectionError("database is locked")
        error = StorageError("Database error during insert_answer", operation="insert_answer", cause=cause)

        info = error.to_error_info()

        self.assertEqual(info.details["operation"], "insert_answer")
        self.assertEqual(info.details["cause"], {"type": "ConnectionError", "message": "database is locked"})

    def test_convert_exception(self):
        converted = convert_exception(ValueError("bad input"), context={"path": "/x"})

        self.assertIsInstance(converted, AcademyError)
        self.assertEqual(converted.code, ErrorCode.UNKNOWN_ERROR)
        self.assertEqual(converted.message, "bad input")
        self.assertEqual(converted.context, {"path": "/x"})

        original = DuplicateAnswerError("q1", "session-1")
        self.assertIs(convert_exception(original), original)

    def test_error_response(self):
        response = error_response(DuplicateAnswerError("q1", "session-1"))

        self.assertEqual(response["status"], "error")
        self.assertEqual(response["code"], "duplicate_answer")
        self.assertEqual(response["details"], {"question_id": "q1", "session_id": "session-1"})

        without_details = error_response(DuplicateAnswerError("q1", "session-1"), include_details=False)
        self.assertNotIn("details", without_details)


class TestLogging(unittest.TestCase):
    """Test the JSON formatter with contextual adapters."""

    def test_adapter_context_in_json_output(self):
        logger = logging.getLogger("academy.tests.json")
        logger.propagate = False
        records = []

        class Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = Collect()
        logger.addHandler(handler)
        try:
            adapter = LoggerAdapter(logger, {"session_id": "session-1"}).with_context(user_id="user-1")
            adapter.warning("Rejected answer")
        finally:
            logger.removeHandler(handler)

        output = json.loads(JsonFormatter().format(records[0]))
        self.assertEqual(output["message"], "Rejected answer")
        self.assertEqual(output["session_id"], "session-1")
        self.assertEqual(output["user_id"], "user-1")
        self.assertEqual(output["level"], "WARNING")

    def test_app_logger_follows_settings(self):
        logger = logging.getLogger(APP_LOGGER_NAME)
        saved_handlers, saved_level = logger.handlers, logger.level
        logger.handlers = []
        try:
            configured = get_app_logger(Settings(LOG_LEVEL="debug", LOG_JSON=True))

            self.assertIs(configured, logger)
            self.assertEqual(logger.level, logging.DEBUG)
            self.assertIsInstance(logger.handlers[0].formatter, JsonFormatter)

            logger.handlers = []
            get_app_logger(Settings(LOG_FORMAT="%(levelname)s %(message)s"))
            self.assertEqual(logger.handlers[0].formatter._fmt, "%(levelname)s %(message)s")
        finally:
            logger.handlers = saved_handlers
            logger.setLevel(saved_level)


if __name__ == "__main__":
    unittest.main()
