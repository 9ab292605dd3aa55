"""TrekMate FastAPI Application.

Main entry point for the guidance API server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from trekmate.api import router
from trekmate.api.routes import shutdown_services
from trekmate.core.config import get_settings
from trekmate.models import ErrorCode, TrekmateError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)

# Error code → HTTP status for TrekmateError responses
ERROR_STATUS = {
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.SERVER_ERROR: 502,
    ErrorCode.API_ERROR: 502,
    ErrorCode.INVALID_RESPONSE: 502,
    ErrorCode.NETWORK_ERROR: 503,
    ErrorCode.NOT_CONFIGURED: 503,
    ErrorCode.REQUEST_SETUP_ERROR: 500,
    ErrorCode.STORAGE_ERROR: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    yield
    # Shutdown
    await shutdown_services()


app = FastAPI(
    title="TrekMate API",
    description="Trekking guidance: recommendations, conditions and AI advice",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://localhost:3001",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handlers
@app.exception_handler(RequestValidationError)
@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: Exception):
    """Handle request and model validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": {
                "code": ErrorCode.VALIDATION_ERROR.value,
                "message": str(exc),
                "user_message": "Invalid request format. Please check your input.",
            },
        },
    )


@app.exception_handler(TrekmateError)
async def trekmate_exception_handler(request: Request, exc: TrekmateError):
    """Map classified service errors to their HTTP status."""
    status_code = ERROR_STATUS.get(exc.code, 500)
    logger.warning(f"[API] {request.method} {request.url.path} -> {status_code} {exc.code.value}")
    content = {
        "success": False,
        "error": exc.to_app_error().model_dump(mode="json"),
    }
    if exc.code is ErrorCode.UNAUTHENTICATED:
        content["login_url"] = get_settings().login_url
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.exception(f"[API] Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": {
                "code": ErrorCode.API_ERROR.value,
                "message": str(exc),
                "user_message": "Something went wrong. Please try again.",
            },
        },
    )


# Include API routes
app.include_router(router, prefix="/api")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
