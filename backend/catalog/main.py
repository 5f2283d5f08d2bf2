"""
Product Catalog Application Entry Point

FastAPI application main entry, including router registration and application configuration.
"""

import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from catalog.api import products_router
from catalog.common.errors import AppError, ValidationError
from catalog.config import get_settings
from catalog.logging_config import setup_logging
from catalog.middleware.rate_limit import RateLimitMiddleware
from catalog.scheduler import shutdown_scheduler, start_scheduler
from catalog.services import StoreProvisioner

logger = logging.getLogger(__name__)

# Initialize logging configuration
setup_logging()


# Application Lifecycle Management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application Lifecycle Management

    Creates the store provisioner on startup (handles are built lazily on
    first use) and releases its connections on shutdown.
    """
    # Startup
    settings = get_settings()
    provisioner = StoreProvisioner(settings)
    app.state.provisioner = provisioner
    if settings.TABLE_NAME:
        start_scheduler(provisioner)
    else:
        logger.error("TABLE_NAME environment variable not configured, every request will fail")
    yield
    # Shutdown
    shutdown_scheduler()
    await provisioner.close()


# Create FastAPI application
settings = get_settings()

app = FastAPI(
    title=settings.APP_NAME,
    description="Versioned product catalog with read acceleration",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
# Parse ALLOWED_ORIGINS from comma-separated string to list
allowed_origins = [
    origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",") if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Using-Acceleration"],
)

# Add Rate Limit Middleware (should be added after CORS)
app.add_middleware(RateLimitMiddleware)


# Global Exception Handler
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """
    Handle application custom exceptions
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Render request schema errors in the application error format
    """
    error = ValidationError(
        message="Invalid request",
        code="invalid_request",
        details={"errors": jsonable_encoder(exc.errors())},
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle uncaught exceptions

    In production mode, stack traces and error details are logged but not returned to clients.
    """
    settings = get_settings()
    logger.error(
        "Uncaught exception: %s\nPath: %s\nTraceback:\n%s",
        str(exc),
        request.url.path,
        traceback.format_exc(),
    )

    if settings.DEBUG:
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "message": str(exc),
                    "type": type(exc).__name__,
                    "code": "internal_error",
                    "traceback": traceback.format_exc().split("\n"),
                }
            },
        )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "message": "Internal server error",
                "type": "internal_error",
                "code": "internal_error",
            }
        },
    )


# Health Check Endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health Check

    Used for service liveness probe.
    """
    return {"status": "healthy"}


@app.get("/", tags=["Health"])
async def root():
    """
    Root Path

    Returns basic service information.
    """
    return {
        "name": settings.APP_NAME,
        "version": "0.1.0",
        "description": "Product Catalog - versioned writes, accelerated reads",
    }


app.include_router(products_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "catalog.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
