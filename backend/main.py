import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import sys
import os

sys.path.append(os.path.dirname(__file__))

from academy.core import database
from academy.core.config import settings
from academy.core.errors import Forbidden, Unauthenticated, WorkflowError
from academy.api import api_router

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# --- App Initialization ---
app = FastAPI(
    title="Academy Membership API",
    description="Membership and role-request workflows for classrooms",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router)


# --- Error Handlers ---
@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    if isinstance(exc, Forbidden):
        logger.warning(f"SECURITY: {request.method} {request.url.path} forbidden: {exc.detail}")

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.detail},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "validation_error", "detail": jsonable_encoder(exc.errors())},
    )


# --- Event Handlers ---
@app.on_event("startup")
async def startup_event():
    logger.info("Starting up Academy Membership API...")

    database.init_engine()

    # Create database tables if database is available
    if settings.AUTO_CREATE_TABLES:
        if database.engine:
            try:
                logger.info("Auto-creating database tables...")
                database.create_tables()
                logger.info("Database tables created successfully!")
            except Exception as e:
                logger.error(f"Failed to create database tables: {e}")
                logger.error("Database functionality may not work properly.")
        else:
            logger.warning("Database engine not available. Skipping table creation.")
            logger.warning("Please check database connection and restart the service.")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down Academy Membership API...")


# --- API Endpoints ---
@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Academy Membership API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Health check endpoint with database status."""
    from sqlalchemy import text

    status = {"status": "healthy", "database": "unknown"}

    if database.engine:
        try:
            with database.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            status["database"] = "connected"
        except Exception as e:
            status["database"] = f"error: {str(e)}"
            status["status"] = "degraded"
    else:
        status["database"] = "not_available"
        status["status"] = "degraded"

    return status
