"""
Common utilities shared by the backend modules: logging, error handling and
database connection settings.
"""

from backend.common.error_handling import AcademyError, ErrorCode, ErrorSeverity
from backend.common.logger import app_logger, get_logger

__all__ = [
    'AcademyError',
    'ErrorCode',
    'ErrorSeverity',
    'app_logger',
    'get_logger',
]
