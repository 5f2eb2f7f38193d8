"""
Error Handling System for Hotel Academy

This module provides the error handling framework including:
1. Custom exception hierarchy for different error types
2. Structured error logging and reporting
3. Error response generation for APIs
"""

import logging
import traceback
import json
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Configure logging
logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for errors"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCode(Enum):
    """Standard error codes for Hotel Academy"""
    # General errors
    UNKNOWN_ERROR = "unknown_error"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND_ERROR = "not_found_error"

    # Assessment errors
    ASSESSMENT_NOT_FOUND = "assessment_not_found"
    SESSION_NOT_FOUND = "session_not_found"
    INVALID_QUESTION = "invalid_question"
    INVALID_ANSWER = "invalid_answer"
    DUPLICATE_ANSWER = "duplicate_answer"
    SESSION_NOT_COMPLETED = "session_not_completed"
    ILLEGAL_TRANSITION = "illegal_transition"

    # Storage errors
    STORAGE_ERROR = "storage_error"


class ErrorInfo(BaseModel):
    """Structured information about an error"""
    code: ErrorCode
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    exception_type: Optional[str] = None
    exception_message: Optional[str] = None
    stack_trace: Optional[List[str]] = None
    context: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(use_enum_values=True)

    @field_validator('stack_trace', mode='before')
    @classmethod
    def validate_stack_trace(cls, v):
        """Format stack trace if it's a string"""
        if isinstance(v, str):
            return v.splitlines()
        return v


class AcademyError(Exception):
    """Base exception class for all Hotel Academy errors"""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.severity = severity
        self.details = details or {}
        self.cause = cause
        self.context = context or {}
        self.timestamp = datetime.now()

    def to_error_info(self, include_stack_trace: bool = False) -> ErrorInfo:
        """Convert the exception to an ErrorInfo object"""
        stack_trace = None
        if include_stack_trace:
            stack_trace = traceback.format_exc().splitlines()

        # Include cause information in details
        details = dict(self.details)
        if self.cause is not None:
            details["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause)
            }

        return ErrorInfo(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            severity=self.severity,
            details=details,
            exception_type=type(self).__name__,
            exception_message=str(self),
            stack_trace=stack_trace,
            context=self.context
        )

    def to_dict(self, include_stack_trace: bool = False) -> Dict[str, Any]:
        """Convert the exception to a dictionary"""
        return self.to_error_info(include_stack_trace).model_dump(mode="json")

    def to_json(self, include_stack_trace: bool = False) -> str:
        """Convert the exception to a JSON string"""
        return json.dumps(self.to_dict(include_stack_trace))

    def __str__(self) -> str:
        base_str = f"{self.code.value}: {self.message}"
        if self.details:
            base_str += f" (details: {self.details})"
        if self.cause:
            base_str += f" caused by {type(self.cause).__name__}: {str(self.cause)}"
        return base_str


class AssessmentError(AcademyError):
    """Base class for assessment-related errors"""
    pass


class AssessmentNotFoundError(AssessmentError):
    """Error raised when an assessment definition is not found"""

    def __init__(
        self,
        assessment_id: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["assessment_id"] = assessment_id

        super().__init__(
            message=f"Assessment with ID {assessment_id} not found",
            code=ErrorCode.ASSESSMENT_NOT_FOUND,
            severity=ErrorSeverity.WARNING,
            details=details,
            cause=cause,
            context=context
        )


class SessionNotFoundError(AssessmentError):
    """Error raised when a session is not found"""

    def __init__(
        self,
        session_id: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["session_id"] = session_id

        super().__init__(
            message=f"Session with ID {session_id} not found",
            code=ErrorCode.SESSION_NOT_FOUND,
            severity=ErrorSeverity.WARNING,
            details=details,
            cause=cause,
            context=context
        )


class InvalidQuestionError(AssessmentError):
    """Error raised when a question does not belong to the session's assessment"""

    def __init__(
        self,
        question_id: str,
        assessment_id: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["question_id"] = question_id
        details["assessment_id"] = assessment_id

        super().__init__(
            message=f"Question {question_id} is not part of assessment {assessment_id}",
            code=ErrorCode.INVALID_QUESTION,
            severity=ErrorSeverity.WARNING,
            details=details,
            cause=cause,
            context=context
        )


class InvalidAnswerError(AssessmentError):
    """Error raised when a submitted answer is malformed for its question"""

    def __init__(
        self,
        question_id: str,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["question_id"] = question_id
        details["reason"] = reason

        super().__init__(
            message=f"Invalid answer for question {question_id}: {reason}",
            code=ErrorCode.INVALID_ANSWER,
            severity=ErrorSeverity.WARNING,
            details=details,
            cause=cause,
            context=context
        )


class DuplicateAnswerError(AssessmentError):
    """Error raised when an answer is submitted more than once"""

    def __init__(
        self,
        question_id: str,
        session_id: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["question_id"] = question_id
        details["session_id"] = session_id

        super().__init__(
            message=f"Answer for question {question_id} in session {session_id} already submitted",
            code=ErrorCode.DUPLICATE_ANSWER,
            severity=ErrorSeverity.WARNING,
            details=details,
            cause=cause,
            context=context
        )


class SessionNotCompletedError(AssessmentError):
    """Error raised when a report is requested before the session is completed"""

    def __init__(
        self,
        session_id: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["session_id"] = session_id
        details["status"] = status

        super().__init__(
            message=f"Session {session_id} is not completed (status: {status})",
            code=ErrorCode.SESSION_NOT_COMPLETED,
            severity=ErrorSeverity.WARNING,
            details=details,
            cause=cause,
            context=context
        )


class IllegalTransitionError(AssessmentError):
    """Error raised when an operation requires a status the session is not in"""

    def __init__(
        self,
        session_id: str,
        current_status: str,
        requested: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        details["session_id"] = session_id
        details["current_status"] = current_status
        details["requested"] = requested

        super().__init__(
            message=f"Cannot {requested} session {session_id} in status {current_status}",
            code=ErrorCode.ILLEGAL_TRANSITION,
            severity=ErrorSeverity.WARNING,
            details=details,
            cause=cause,
            context=context
        )


class StorageError(AcademyError):
    """Error raised when a store adapter fails"""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        if operation is not None:
            details["operation"] = operation

        super().__init__(
            message=message,
            code=ErrorCode.STORAGE_ERROR,
            severity=ErrorSeverity.ERROR,
            details=details,
            cause=cause,
            context=context
        )


def convert_exception(
    exception: Exception,
    default_message: str = "An unexpected error occurred",
    default_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
    default_severity: ErrorSeverity = ErrorSeverity.ERROR,
    context: Optional[Dict[str, Any]] = None
) -> AcademyError:
    """
    Convert a standard exception to an AcademyError.

    Args:
        exception: The exception to convert
        default_message: Default message if the exception has no message
        default_code: Default error code
        default_severity: Default error severity
        context: Optional additional context

    Returns:
        Converted AcademyError
    """
    if isinstance(exception, AcademyError):
        if context:
            exception.context.update(context)
        return exception

    message = str(exception) or default_message

    return AcademyError(
        message=message,
        code=default_code,
        severity=default_severity,
        cause=exception,
        context=context
    )


def error_response(
    error: Union[AcademyError, Exception],
    include_details: bool = True,
    include_stack_trace: bool = False
) -> Dict[str, Any]:
    """
    Generate a standardized API error response.

    Args:
        error: The error to generate a response for
        include_details: Whether to include error details
        include_stack_trace: Whether to include stack trace

    Returns:
        Standardized error response dictionary
    """
    if not isinstance(error, AcademyError):
        error = convert_exception(error)

    error_info = error.to_error_info(include_stack_trace=include_stack_trace)

    response = {
        "status": "error",
        "code": error_info.code,
        "message": error_info.message
    }

    if include_details and error_info.details:
        response["details"] = error_info.details

    return response


def log_error(
    error: Union[AcademyError, Exception],
    level: int = logging.ERROR,
    include_stack_trace: bool = True,
    context: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log an error with standardized format.

    Args:
        error: The error to log
        level: Logging level
        include_stack_trace: Whether to include stack trace
        context: Additional context to include
    """
    if not isinstance(error, AcademyError):
        error = convert_exception(error, context=context)
    elif context:
        error.context.update(context)

    message = f"ERROR [{error.code.value}]: {error.message}"

    if error.context:
        context_str = ", ".join(f"{k}={v}" for k, v in error.context.items())
        message += f" (context: {context_str})"

    if error.cause:
        message += f" caused by {type(error.cause).__name__}: {str(error.cause)}"

    if include_stack_trace:
        message += f"\n{traceback.format_exc()}"

    logger.log(level, message)
