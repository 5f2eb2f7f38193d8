"""
Main application entry point for the Hotel Academy backend.

This module serves as the central entry point for the FastAPI application,
registering all assessment modules and shared middleware.

Usage:
    - Direct: python -m backend.main
    - ASGI server: uvicorn backend.main:app
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from backend.api import (
    academy_exception_handler,
    main_router,
    register_assessment_module,
    validation_exception_handler
)
from backend.assessments.competency.repository import SqlQuestionRepository
from backend.assessments.competency.router import router as competency_router
from backend.assessments.competency.seed_data import load_seed_file
from backend.common.error_handling import AcademyError
from backend.common.logger import app_logger
from backend.config import settings
from backend.database.init_db import initialize_database, close_database

# Setup module logger
logger = app_logger.getChild("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and seed the database on startup and dispose of it on shutdown."""
    if settings.ASSESSMENT_STORE == "sql":
        try:
            await initialize_database(
                database_url=settings.DATABASE_URL,
                echo=settings.SQL_ECHO,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                create_tables=True
            )
            if settings.ASSESSMENT_SEED_FILE:
                repository = SqlQuestionRepository()
                for assessment, questions in load_seed_file(settings.ASSESSMENT_SEED_FILE):
                    await repository.add_assessment(assessment, questions)
        except Exception as e:
            logger.error(f"Failed to initialize application: {str(e)}")
            raise
    logger.info("Application startup complete")

    yield

    await close_database()
    logger.info("Application shutdown complete")


def _register_assessment_modules() -> None:
    register_assessment_module("competency", competency_router)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="API for hotel staff competency assessments",
        version="1.0.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(AcademyError, academy_exception_handler)

    _register_assessment_modules()
    app.include_router(main_router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": f"Welcome to {settings.PROJECT_NAME}"}

    logger.info(f"Application initialized with {len(app.routes)} routes")
    return app


app = create_app()

# Entry point for running the application directly
if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))
    reload_enabled = os.environ.get("RELOAD", "false").lower() == "true"

    logger.info(f"Starting server on {host}:{port} (reload: {reload_enabled})")

    uvicorn.run(
        "backend.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level=settings.LOG_LEVEL.lower()
    )
