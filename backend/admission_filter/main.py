"""
Admission Filter - FastAPI Application

Main entry point for the backend API.
Provides endpoints for running the virtual filter (lọc ảo) and reading
admission results.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from admission_filter.config.settings import settings
from admission_filter.infrastructure.exceptions import (
    AdmissionFilterError,
    AllocationDivergedError,
    FilterTimeoutError,
    NotFoundError,
    RunInProgressError,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info(f"Admission Filter Backend starting in {settings.environment} mode...")

    # Initialize SQLModel database if URL is configured
    if settings.database_url:
        try:
            from admission_filter.infrastructure.db.database import init_db
            await init_db()
            logger.info("SQLModel database connection pool initialized")
        except Exception as e:
            logger.warning(f"SQLModel database initialization skipped: {e}")

    yield

    # Shutdown
    if settings.database_url:
        try:
            from admission_filter.infrastructure.db.database import close_db
            await close_db()
            logger.info("SQLModel database connection pool closed")
        except Exception as e:
            logger.warning(f"SQLModel database shutdown error: {e}")

    logger.info("Admission Filter Backend shutting down...")


app = FastAPI(
    title="Admission Filter",
    description="Virtual filtering (lọc ảo) of university admission preferences",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS configuration from Settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle validation errors."""
    return JSONResponse(
        status_code=400,
        content=exc.to_dict(),
    )


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    """Handle not found errors."""
    return JSONResponse(
        status_code=404,
        content=exc.to_dict(),
    )


@app.exception_handler(RunInProgressError)
async def run_in_progress_handler(request: Request, exc: RunInProgressError):
    """Handle a second run for a session that is already running."""
    return JSONResponse(
        status_code=409,
        content=exc.to_dict(),
    )


@app.exception_handler(AllocationDivergedError)
async def allocation_diverged_handler(request: Request, exc: AllocationDivergedError):
    """Handle allocation that did not settle; nothing was written."""
    return JSONResponse(
        status_code=422,
        content=exc.to_dict(),
    )


@app.exception_handler(FilterTimeoutError)
async def filter_timeout_handler(request: Request, exc: FilterTimeoutError):
    """Handle runs exceeding FILTER_TIMEOUT_SECONDS."""
    return JSONResponse(
        status_code=504,
        content=exc.to_dict(),
    )


@app.exception_handler(AdmissionFilterError)
async def general_error_handler(request: Request, exc: AdmissionFilterError):
    """Handle all other application errors."""
    logger.error(f"Unhandled application error: {exc.message}")
    return JSONResponse(
        status_code=500,
        content=exc.to_dict(),
    )


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "admission-filter"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Admission Filter API",
        "version": "1.0.0",
        "docs": "/docs",
    }


# ============================================================================
# Import and register routers
# ============================================================================

from admission_filter.api.routes import results, virtual_filter

app.include_router(virtual_filter.router, prefix="/api", tags=["Virtual Filter"])
app.include_router(results.router, prefix="/api", tags=["Results"])
