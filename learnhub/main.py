"""LearnHub API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnhub.assignments.router import router as assignments_router
from learnhub.assignments.service import AssignmentService
from learnhub.auth.router import router as users_router
from learnhub.auth.security import OIDCTokenVerifier
from learnhub.auth.service import AuthService
from learnhub.comments.router import router as comments_router
from learnhub.comments.service import CommentService
from learnhub.config import get_settings
from learnhub.core.context import get_request_id
from learnhub.core.database import init_async_cassandra, shutdown_async_cassandra
from learnhub.core.logging import configure_structlog, get_logger
from learnhub.core.middleware import RequestContextMiddleware
from learnhub.courses.router import router as courses_router
from learnhub.courses.service import CourseService
from learnhub.health import router as health_router
from learnhub.paths.router import router as paths_router
from learnhub.paths.service import PathService
from learnhub.progress.router import router as progress_router
from learnhub.progress.service import ProgressService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def init_services(app: FastAPI, session: Any, keyspace: str) -> None:
    """Build the service graph on ``app.state`` for a Cassandra session."""
    app.state.cassandra_session = session
    app.state.auth_service = AuthService(session=session, keyspace=keyspace)
    app.state.course_service = CourseService(session=session, keyspace=keyspace)
    app.state.assignment_service = AssignmentService(
        session=session,
        keyspace=keyspace,
        course_service=app.state.course_service,
    )
    app.state.progress_service = ProgressService(
        session=session,
        keyspace=keyspace,
        course_service=app.state.course_service,
        assignment_service=app.state.assignment_service,
        auth_service=app.state.auth_service,
    )
    app.state.path_service = PathService(
        session=session,
        keyspace=keyspace,
        course_service=app.state.course_service,
        progress_service=app.state.progress_service,
    )
    app.state.comment_service = CommentService(
        session=session,
        keyspace=keyspace,
        course_service=app.state.course_service,
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

    app.state.token_verifier = OIDCTokenVerifier.from_settings(settings)
    logger.info("token_verifier_initialized", issuer=settings.oidc_issuer)

    try:
        session = await init_async_cassandra()
        init_services(app, session, settings.cassandra_keyspace)
        logger.info("services_initialized")
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Stack traces are logged by the handlers below, never returned.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="LearnHub learning management API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

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
        """Handle HTTP exceptions with safe error messages.

        A dict ``detail`` carries a ``message`` plus extra fields, which
        are returned under ``details``.
        """
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        details = None
        message = exc.detail
        if isinstance(exc.detail, dict):
            details = {k: v for k, v in exc.detail.items() if k != "message"}
            message = exc.detail.get("message", "Request failed")
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            message = "Internal server error"
            details = None

        content = {
            "error": True,
            "message": str(message),
            "status_code": exc.status_code,
            "request_id": request_id,
        }
        if details:
            content["details"] = details
        return ORJSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
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

        Details are logged internally; the client gets a generic message.
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

    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(courses_router)
    app.include_router(comments_router)
    app.include_router(assignments_router)
    app.include_router(progress_router)
    app.include_router(paths_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "LearnHub API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
