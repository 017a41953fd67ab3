"""
Main FastAPI application for the Pickleball Session Planner.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from planner import __version__
from planner.api import routes
from planner.core.config import CORS_ORIGINS
from planner.core.logging_config import setup_logging

setup_logging()

app = FastAPI(
    title="Pickleball Session Planner API",
    description="API for generating balanced doubles sessions and recording results",
    version=__version__
)

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(routes.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Pickleball Session Planner API",
        "version": __version__,
        "endpoints": {
            "generate": "/api/session",
            "weights": "/api/weights",
            "health": "/api/health"
        }
    }
