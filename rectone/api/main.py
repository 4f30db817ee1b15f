"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import DataSourceConfig
from ..errors import BackendTimeout, BackendUnavailable, InvalidFilter, SubmissionRequiresBackend
from ..logging_config import setup_logging
from ..service import ToolDirectory
from ..store.loader import load_dataset
from . import deps
from .routers import catalog, submissions, tools

logger = logging.getLogger("rectone.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: load fallback data once, before serving."""
    config = DataSourceConfig.from_env()
    setup_logging(debug=config.debug)

    deps._dataset = await load_dataset(config.fallback_data_dir)

    yield

    await deps._pool.dispose()


def _error(status_code: int, code: str, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "detail": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    """Map directory errors to distinct HTTP error states."""

    @app.exception_handler(BackendTimeout)
    async def backend_timeout(request: Request, exc: BackendTimeout):
        return _error(504, "backend_timeout", exc)

    @app.exception_handler(BackendUnavailable)
    async def backend_unavailable(request: Request, exc: BackendUnavailable):
        return _error(503, "backend_unavailable", exc)

    @app.exception_handler(SubmissionRequiresBackend)
    async def submission_requires_backend(request: Request, exc: SubmissionRequiresBackend):
        return _error(503, "submission_requires_backend", exc)

    @app.exception_handler(InvalidFilter)
    async def invalid_filter(request: Request, exc: InvalidFilter):
        return _error(422, "invalid_filter", exc)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="rect.one Directory API",
        description="Browse, filter and compare AI and developer tools",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    # Include routers
    app.include_router(tools.router, prefix="/api/tools", tags=["tools"])
    app.include_router(catalog.router, prefix="/api", tags=["catalog"])
    app.include_router(submissions.router, prefix="/api/submissions", tags=["submissions"])

    @app.get("/health")
    async def health_check(directory: ToolDirectory = Depends(deps.get_directory)):
        """Health check endpoint."""
        return {"status": "healthy", "data_source": directory.source}

    return app


app = create_app()
