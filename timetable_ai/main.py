"""
main.py

This is the main entry point of the FastAPI application.
Here we create the FastAPI app and register all API routes.

This file does NOT contain business logic.
It only wires everything together.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Import API routers
from timetable_ai.api.health import router as health_router
from timetable_ai.api.timetable import router as timetable_router
from timetable_ai.config import CORS_ORIGINS
from timetable_ai.logging_config import configure_logging


def create_app() -> FastAPI:
    """
    Creates and returns the FastAPI application instance.
    This function helps keep the app creation clean and testable.
    """
    configure_logging()

    app = FastAPI(
        title="Timetable AI Service",
        description="Extracts timetable events from uploaded images and PDFs",
        version="1.0.0"
    )

    # Browser frontends on the configured dev origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register API routes
    app.include_router(health_router, prefix="/health", tags=["Health"])
    app.include_router(timetable_router, prefix="/api/v1/timetable", tags=["Timetable"])

    return app


# Create the FastAPI app instance
app = create_app()
