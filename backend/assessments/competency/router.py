"""
Competency Assessment Router

This module exports the router from the competency controller module.
"""

from backend.assessments.competency.controller import router
from backend.common.logger import app_logger

logger = app_logger.getChild("competency.router")
logger.debug(f"Competency router loaded with {len(router.routes)} routes")

__all__ = ['router']
