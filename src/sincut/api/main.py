"""Main FastAPI application for the sincut API."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from sincut import __version__
from sincut.api.rate_limit import limiter
from sincut.api.v1.auth import router as auth_router
from sincut.api.v1.referral import router as referral_router
from sincut.api.v1.users import router as users_router
from sincut.api.v1.wallet import router as wallet_router
from sincut.errors import AuthError, SincutError
from sincut.logging_config import bind_request_context, get_logger, setup_logging
from sincut.settings import settings
from sincut.storage.db import db

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag every log event of a request with a request id."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex[:16]
        bind_request_context(request_id=request_id, method=request.method, path=request.url.path)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("app_starting", env=settings.env)

    db.create_tables()
    logger.info("database_tables_created")

    yield

    # Shutdown
    logger.info("app_shutting_down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI app
    """
    setup_logging()

    # Hide API docs in production
    is_production = settings.is_production

    app = FastAPI(
        title="Sincut API",
        description="Accounts, coin wallet and referral backend",
        version=__version__,
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        openapi_url=None if is_production else "/api/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)

    # CORS middleware - credentials are needed for the refresh token cookie
    allowed_origins = [
        origin.strip()
        for origin in settings.allowed_origins.split(",")
        if origin.strip()
    ]

    # Wildcard origins cannot be combined with credentials
    if "*" in allowed_origins:
        logger.error("cors_wildcard_blocked", message="Wildcard CORS not allowed with credentials")
        allowed_origins = [o for o in allowed_origins if o != "*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=3600,
    )

    # Rate limiting (shared instance from rate_limit module)
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many requests. Please try again later."},
        )

    @app.exception_handler(SincutError)
    async def app_error_handler(request: Request, exc: SincutError):
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, error=exc.message)
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    # API routers
    app.include_router(auth_router, prefix="/api")
    app.include_router(wallet_router, prefix="/api")
    app.include_router(referral_router, prefix="/api")
    app.include_router(users_router, prefix="/api")

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "env": settings.env,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Sincut API",
            "version": __version__,
            "docs": "/api/docs",
        }

    return app


# Create app instance
app = create_app()
