from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import ApiError, StorageError
from .logger import get_logger, init_logging
from .repositories import Repository, build_repository
from .routers import todos as todos_router
from .routers import users as users_router
from .schemas import Envelope
from .settings import Settings, get_settings
from .utils import error_response

logger = get_logger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "users", "description": "CRUD operations for users."},
    {"name": "todos", "description": "CRUD operations for todos owned by users."},
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Prepare the repository before serving and release it on shutdown.
    A failing schema initialization aborts startup.
    """
    repo: Repository = app.state.repository
    try:
        await repo.initialize()
    except Exception:
        logger.exception("Database initialization failed; aborting startup.")
        raise
    logger.info("Repository '%s' ready.", repo.name)
    try:
        yield
    finally:
        await repo.close()


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        """
        Any storage failure a handler did not map itself becomes a 500. The raw error
        is echoed in `details` only when DEBUG_ERRORS is enabled.
        """
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        details = exc.to_details() if settings.debug_errors else None
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message, details)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Last resort for failures nothing else mapped (driver bugs, runtime errors).
        Rendered as an internal error envelope; the raw error only appears in
        `details` when DEBUG_ERRORS is enabled.
        """
        logger.exception("%s %s failed with an unexpected error", request.method, request.url.path)
        details = {"type": type(exc).__name__, "message": str(exc)} if settings.debug_errors else None
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", details)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return the standard envelope for request validation errors.

        Response format:
            {
                "success": false,
                "message": "Request validation failed",
                "details": [... pydantic/fastapi error details ...]
            }
        """
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "Request validation failed",
            jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown path and known path with an unsupported method both count as unmatched.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return error_response(status.HTTP_404_NOT_FOUND, "Route not found", path=request.url.path)
        return error_response(exc.status_code, str(exc.detail))


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, repository: Optional[Repository] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; read from the environment when omitted.
        repository: Storage backend; built from settings when omitted. The lifespan
            initializes it on startup and closes it on shutdown.
    """
    settings = settings or get_settings()
    init_logging(settings.log_level)

    app = FastAPI(
        title="Users & Todos Backend",
        description="Backend API service exposing CRUD operations over users and their todos.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repository = repository or build_repository(settings)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        logger.info(
            "[%s] %s %s",
            datetime.now(timezone.utc).isoformat(),
            request.method,
            request.url.path,
        )
        return await call_next(request)

    _register_exception_handlers(app, settings)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Root", tags=["health"], response_class=PlainTextResponse)
    def root() -> str:
        """Plain-text greeting."""
        return "Hello World!"

    # PUBLIC_INTERFACE
    @app.get("/health", summary="Health Check", tags=["health"], response_model=Envelope[dict])
    def health_check(request: Request) -> Envelope[dict]:
        """
        Health check endpoint.

        Returns:
            An envelope naming the active storage backend.
        """
        return Envelope[dict](
            success=True,
            message="Healthy",
            data={"backend": request.app.state.repository.name},
        )

    app.include_router(users_router.router)
    app.include_router(todos_router.router)
    return app


app = create_app()
