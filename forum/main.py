"""Forum API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from forum.categories.router import router as categories_router
from forum.categories.service import CategoryService
from forum.comments.router import router as comments_router
from forum.comments.service import CommentService
from forum.config import Settings, get_settings
from forum.core.context import get_request_id
from forum.core.database import init_async_cassandra, shutdown_async_cassandra
from forum.core.logging import configure_structlog, get_logger
from forum.core.middleware import RequestContextMiddleware
from forum.core.redis import init_redis, shutdown_redis
from forum.engagement.router import router as engagement_router
from forum.engagement.service import EngagementService
from forum.health.router import router as health_router
from forum.notifications.router import router as notifications_router
from forum.notifications.service import NotificationService
from forum.profiles.router import router as profiles_router
from forum.profiles.service import ProfileService
from forum.threads.router import router as threads_router
from forum.threads.service import ThreadService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def attach_services(
    app: FastAPI,
    session: Any,
    settings: Settings,
    redis_client: Any = None,
) -> None:
    """Build every service on ``session`` and expose it on ``app.state``."""
    keyspace = settings.cassandra_keyspace

    engagement_service = EngagementService(session=session, keyspace=keyspace)
    category_service = CategoryService(session=session, keyspace=keyspace)
    comment_service = CommentService(
        session=session,
        keyspace=keyspace,
        redis=redis_client,
        engagement=engagement_service,
        max_reply_depth=settings.forum_max_reply_depth,
        comments_per_minute=settings.forum_comments_per_minute,
        comments_per_hour=settings.forum_comments_per_hour,
    )

    app.state.cassandra_session = session
    app.state.profile_service = ProfileService(
        session=session,
        keyspace=keyspace,
        leaderboard_scan_limit=settings.forum_leaderboard_scan_limit,
    )
    app.state.category_service = category_service
    app.state.engagement_service = engagement_service
    app.state.comment_service = comment_service
    app.state.thread_service = ThreadService(
        session=session,
        keyspace=keyspace,
        category_service=category_service,
        comment_service=comment_service,
        engagement=engagement_service,
        per_page=settings.forum_threads_per_page,
        search_limit=settings.forum_search_limit,
        search_scan_limit=settings.forum_search_scan_limit,
    )
    app.state.notification_service = NotificationService(
        session=session,
        keyspace=keyspace,
        default_limit=settings.forum_notifications_limit,
    )
    logger.info("forum_services_initialized", rate_limiting=redis_client is not None)


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

    # Initialize Redis (non-critical - app works without it)
    redis_client = None
    try:
        redis_client = await init_redis()
        logger.info("redis_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - comment rate limiting disabled",
        )

    # Initialize Cassandra (async)
    try:
        session = await init_async_cassandra()
        logger.info("cassandra_initialized")
        attach_services(app, session, settings, redis_client)
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Stack traces never reach responses; the handlers below log them instead
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Discussion forum API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Render malformed requests as 400 with per-field details."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=[err.get("msg") for err in exc.errors()],
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": status.HTTP_400_BAD_REQUEST,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Full details are logged; the response carries a generic message.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    prefix = settings.api_prefix
    app.include_router(threads_router, prefix=prefix)
    app.include_router(comments_router, prefix=prefix)
    app.include_router(engagement_router, prefix=prefix)
    app.include_router(notifications_router, prefix=prefix)
    app.include_router(profiles_router, prefix=prefix)
    app.include_router(categories_router, prefix=prefix)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Forum API",
            "version": settings.app_version,
            "docs": "/docs",
        }

    return app


app = create_app()
