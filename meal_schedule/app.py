"""
Residence meal schedule service - application entry point
Editing backend for the weekly meal-service schedule of a residence

Main features:
- Draft editing sessions over a residence schedule
- Day x meal-group matrix with request lead times
- Integrity audit with severity-tagged alerts
- Optimistic-concurrency save

Stack: FastAPI + DuckDB + pydantic
"""

from typing import Optional
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager

from .core.database import DatabaseManager, db_manager
from .core.exceptions import BaseApplicationError
from .core.error_handler import (
    application_error_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler
)
from .config.settings import settings
from .services.schedule_service import ScheduleService
from .services.session_service import SessionRegistry
from .api import api_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    try:
        app.state.db.init_database()
        print("Database initialized successfully")
    except Exception as e:
        print(f"Database initialization failed: {e}")
        # Keep serving; the connection is retried on first use

    yield

    app.state.db.close()


def create_app(database: Optional[DatabaseManager] = None) -> FastAPI:
    """Build the FastAPI application"""
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Residence meal schedule configuration API",
        debug=settings.debug,
        lifespan=lifespan
    )

    app.state.db = database or db_manager
    app.state.sessions = SessionRegistry(ScheduleService(app.state.db))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BaseApplicationError, application_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health_check():
        try:
            app.state.db.get_connection()
            return {
                "status": "healthy",
                "version": settings.api_version,
                "database": "connected",
                "open_sessions": len(app.state.sessions.active_session_ids())
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "version": settings.api_version,
                "database": f"error: {str(e)}"
            }

    @app.get("/")
    async def root():
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "description": "Residence meal schedule configuration API"
        }

    return app


# Application instance, served with `uvicorn meal_schedule.app:app`
app = create_app()
