"""Main FastAPI application."""

from contextlib import asynccontextmanager

import sentry_sdk
import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from volunteer_hub.api.v1 import api_router
from volunteer_hub.config import settings
from volunteer_hub.core.cache import CacheManager, set_cache_manager
from volunteer_hub.core.exceptions import DomainError
from volunteer_hub.core.logging import setup_logging
from volunteer_hub.db.session import engine, init_db

# Setup logging
setup_logging()
logger = structlog.get_logger(__name__)

# Initialize Redis cache manager
cache_manager = CacheManager(settings)
set_cache_manager(cache_manager)

# Initialize Sentry for error tracking (only if DSN is properly configured)
if settings.SENTRY_DSN and settings.SENTRY_DSN.startswith("https://"):
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(
                level=None,  # Capture all logs
                event_level="ERROR",  # Only send ERROR and above as events
            ),
        ],
        release=settings.APP_VERSION,
        attach_stacktrace=True,
        send_default_pii=False,
    )
else:
    logger.warning("sentry_disabled", reason="SENTRY_DSN not configured")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    await init_db()
    cache_manager.connect()
    yield
    # Shutdown
    cache_manager.disconnect()
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Volunteer matching, application lifecycle and attendance tracking for charities",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    swagger_ui_parameters={
        "persistAuthorization": True,  # Persist authorization after page refresh
    },
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure properly in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix="/api/v1")


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint."""
    return {
        "message": "Volunteer Hub API",
        "version": settings.APP_VERSION,
        "status": "operational",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint with cache status."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "cache": cache_manager.get_stats() if cache_manager else {"enabled": False},
    }


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Render service-layer errors as {"error": kind, "detail": message}."""
    logger.info(
        "domain_error",
        kind=exc.kind,
        detail=exc.message,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "validation", "detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.exception("unhandled_exception", path=request.url.path, method=request.method)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal",
            "detail": str(exc) if settings.DEBUG else "An error occurred",
        },
    )
