"""
Database Module

This package provides database connection settings for the application.
"""

from backend.common.db.connection import get_database_settings

__all__ = [
    'get_database_settings',
]
