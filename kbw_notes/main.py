"""KBW Notes API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kbw_notes.auth.guard import IdentityGuard
from kbw_notes.auth.router import router as auth_router
from kbw_notes.auth.service import AuthService
from kbw_notes.comments.router import router as comments_router
from kbw_notes.comments.service import CommentService
from kbw_notes.config import Settings, get_settings
from kbw_notes.core.context import get_request_id
from kbw_notes.core.database import init_async_cassandra, shutdown_async_cassandra
from kbw_notes.core.errors import NotesError
from kbw_notes.core.logging import configure_structlog, get_logger
from kbw_notes.core.middleware import RequestContextMiddleware
from kbw_notes.core.redis import init_redis, shutdown_redis
from kbw_notes.engagement.router import router as engagement_router
from kbw_notes.engagement.service import EngagementService
from kbw_notes.health import router as health_router
from kbw_notes.moderation.classifier import AnthropicClassifier
from kbw_notes.moderation.gateway import ModerationGateway
from kbw_notes.moderation.router import router as moderation_router
from kbw_notes.ratelimit import InMemoryRateLimiter, RateLimiter, RedisRateLimiter
from kbw_notes.submissions.router import posts_router
from kbw_notes.submissions.router import router as submissions_router
from kbw_notes.submissions.service import SubmissionService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def build_rate_limiter(settings: Settings, redis_client: Any = None) -> RateLimiter:
    """Rate limiter for the configured backend.

    Falls back to process memory when Redis was requested but is unreachable.
    """
    if settings.rate_limit_backend == "redis" and redis_client is not None:
        return RedisRateLimiter(
            redis_client,
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return InMemoryRateLimiter(
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )


def build_services(
    app: FastAPI,
    session: Any,
    settings: Settings,
    rate_limiter: RateLimiter,
    classifier: AnthropicClassifier,
) -> None:
    """Create the domain services and attach them to ``app.state``."""
    keyspace = settings.cassandra_keyspace

    app.state.auth_service = AuthService(
        session=session,
        keyspace=keyspace,
        guard=IdentityGuard(settings.auth_allowed_email_domain),
    )
    app.state.submission_service = SubmissionService(session=session, keyspace=keyspace)
    app.state.comment_service = CommentService(
        session=session,
        keyspace=keyspace,
        tombstone=settings.comment_tombstone,
    )
    app.state.engagement_service = EngagementService(
        session=session,
        keyspace=keyspace,
        submissions=app.state.submission_service,
    )
    app.state.moderation_gateway = ModerationGateway(
        classifier=classifier,
        rate_limiter=rate_limiter,
        comments=app.state.comment_service,
        submissions=app.state.submission_service,
        max_length=settings.comment_max_length,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Redis only backs the shared rate limiter
    redis_client = None
    if settings.rate_limit_backend == "redis":
        try:
            redis_client = await init_redis()
            logger.info("redis_initialized")
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Falling back to in-memory rate limiting",
            )

    rate_limiter = build_rate_limiter(settings, redis_client)
    app.state.rate_limit_backend = (
        "redis" if isinstance(rate_limiter, RedisRateLimiter) else "memory"
    )

    http_client = httpx.AsyncClient(timeout=settings.moderation_timeout_seconds)
    classifier = AnthropicClassifier(settings, client=http_client)
    if not settings.moderation_configured:
        logger.warning("moderation_api_key_missing")

    try:
        session = await init_async_cassandra()
        logger.info("cassandra_initialized")
        build_services(app, session, settings, rate_limiter, classifier)
        logger.info("services_initialized")
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await classifier.aclose()
    await shutdown_redis()
    await shutdown_async_cassandra()


def _error_body(
    request: Request, status_code: int, message: str, code: str
) -> dict[str, Any]:
    request_id = (
        request.state.request_id
        if hasattr(request.state, "request_id")
        else get_request_id()
    )
    return {
        "error": True,
        "code": code,
        "message": message,
        "status_code": status_code,
        "request_id": request_id,
    }


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps Starlette from rendering stack traces
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="KBW Notes - moderated comments and community submissions",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # CORS first so the request context middleware ends up outermost
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    @app.exception_handler(NotesError)
    async def notes_error_handler(request: Request, exc: NotesError) -> ORJSONResponse:
        """Render domain errors with their own status and code."""
        log = (
            logger.error
            if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            else logger.info
        )
        log(
            "notes_error",
            code=exc.code,
            status_code=exc.status_code,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.status_code, exc.message, exc.code),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )
        message = (
            str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            else "Internal server error"
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.status_code, message, "http_error"),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle request validation errors; field messages are safe to expose."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )
        content = _error_body(
            request,
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Validation error",
            "validation_error",
        )
        content["details"] = [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler; details are logged, never returned."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                request,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "An unexpected error occurred. Please try again later.",
                "internal_error",
            ),
        )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(moderation_router)
    app.include_router(comments_router)
    app.include_router(submissions_router)
    app.include_router(posts_router)
    app.include_router(engagement_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "KBW Notes API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "kbw_notes.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_config=None,
    )
