import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from app.api.router import api_router
from app.config import Settings, settings as default_settings
from app.core.database import create_engine, create_session_maker, ping_database
from app.core.exceptions import APIError
from app.core.rate_limit import FixedWindowRateLimiter, RateLimitConfig
from app.core.security import RequestGuard, apply_security_headers
from app.schemas.timeline import HealthResponse
from app.services.github.cache import KeyValueStore, MemoryKeyValueStore
from app.services.github.commit_service import CommitService
from app.services.github.http_client import close_github_client
from app.services.github.read_operations import GitHubReadOperations
from app.services.github.service import TimelineService
from app.services.github.sources import (
    CommitSource,
    DatabaseCommitSource,
    DatabaseTimelineSource,
    TimelineSource,
    select_commit_source,
    select_timeline_source,
)
from app.services.github.stats_service import StatsService


def setup_logging(debug: bool = False) -> None:
    """Configure application logging."""
    # Format: timestamp - level - logger name - message
    log_format = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
    date_format = "%H:%M:%S"

    # Configure root logger
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=log_format,
        datefmt=date_format,
        stream=sys.stdout,
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    # Quieten uvicorn access logs (we'll log requests ourselves)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def _remaining(request: Request) -> int | None:
    """Remaining request count recorded by the guard, if it admitted the request."""
    return getattr(request.state, "rate_limit_remaining", None)


def _error_response(request: Request, exc: APIError) -> JSONResponse:
    response = JSONResponse(
        status_code=exc.status_code,
        content=exc.to_payload(),
        headers=exc.headers,
    )
    apply_security_headers(response, _remaining(request))
    return response


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Render APIError subclasses as {"error", "code"}."""
    return _error_response(request, exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown route, wrong method) with an error code."""
    if exc.status_code == 404:
        return _error_response(request, APIError("NOT_FOUND"))
    response = JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "code": "INVALID_PARAMS"},
        headers=exc.headers,
    )
    apply_security_headers(response, _remaining(request))
    return response


async def validation_error_handler(request: Request, _exc: Exception) -> JSONResponse:
    """Render request validation failures without echoing the input."""
    return _error_response(request, APIError("INVALID_PARAMS"))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the failure and return a generic 500 without internal details."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return _error_response(request, APIError("SERVER_ERROR"))


def create_app(
    app_settings: Settings | None = None,
    source: TimelineSource | None = None,
    store: KeyValueStore | None = None,
    rate_limiter: FixedWindowRateLimiter | None = None,
    commit_source: CommitSource | None = None,
    reader: GitHubReadOperations | None = None,
) -> FastAPI:
    """
    Build the application and its per-process components.

    Components land on app.state and are resolved by dependencies, so tests
    can pass fakes for the sources, the GitHub reader, the cache store or the
    limiter. The database is only connected when a source has to be selected.
    """
    app_settings = app_settings or default_settings
    reader = reader or GitHubReadOperations(app_settings.github_token, app_settings.github_api_base)

    engine = None
    session_maker = None
    if source is None or commit_source is None:
        engine = create_engine(app_settings)
        session_maker = create_session_maker(engine) if engine is not None else None
    if source is None:
        source = select_timeline_source(app_settings, reader, session_maker)
    if commit_source is None:
        commit_source = select_commit_source(app_settings, reader, session_maker)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan: startup and shutdown events."""
        # Startup
        setup_logging(app_settings.debug)
        logger.info("GitHub activity API starting up")
        service: TimelineService = app.state.timeline_service
        maker = session_maker or getattr(service.source, "session_maker", None)
        if maker is not None and not await ping_database(maker):
            if isinstance(service.source, DatabaseTimelineSource):
                service.source = service.source.fallback
            commits: CommitService = app.state.commit_service
            if isinstance(commits.source, DatabaseCommitSource):
                commits.source = commits.source.fallback
            app.state.stats_service.session_maker = None
        logger.info(f"Serving timelines from {service.source.name}")
        yield
        # Shutdown
        await close_github_client()
        if engine is not None:
            await engine.dispose()
        logger.info("GitHub activity API shutting down")

    app = FastAPI(
        title="GitHub Activity API",
        description="Rate-limited, cached commit activity, commit listings and repository stats",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = app_settings
    app.state.request_guard = RequestGuard(
        rate_limiter
        or FixedWindowRateLimiter(
            RateLimitConfig(
                requests=app_settings.rate_limit_requests,
                window_seconds=app_settings.rate_limit_window_seconds,
            )
        ),
        app_settings,
    )
    store = store or MemoryKeyValueStore(maxsize=app_settings.cache_maxsize)
    timeline_service = TimelineService(source, store)
    app.state.timeline_service = timeline_service
    app.state.commit_service = CommitService(commit_source, reader, store)
    app.state.stats_service = StatsService(
        timeline_service,
        reader,
        store,
        session_maker=session_maker,
    )

    # Proxy headers middleware - trust X-Forwarded-Proto from reverse proxy
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log non-2xx responses, skipping OPTIONS preflight and health checks."""
        if request.method == "OPTIONS" or request.url.path == "/health":
            return await call_next(request)

        response = await call_next(request)

        if response.status_code >= 400:
            logger.info(f"{request.method} {request.url.path} -> {response.status_code}")

        return response

    app.add_exception_handler(APIError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include API routes
    app.include_router(api_router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        """Health check endpoint."""
        service: TimelineService = request.app.state.timeline_service
        stats = getattr(service.store, "stats", None)
        return HealthResponse(
            status="healthy",
            source=service.source.name,
            cache=stats() if callable(stats) else None,
        )

    return app


app = create_app()
