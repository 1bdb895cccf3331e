"""FastAPI application setup with lifespan and exception handlers."""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tubepilot import __version__, validate_dependencies
from tubepilot.api.routes import router
from tubepilot.orchestrator.errors import (
    InvalidTransition,
    PipelineError,
    RecordNotFound,
)
from tubepilot.runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Startup:
        - Validate configuration and build the runtime (unless one was injected)
        - Start the status poller

    Shutdown:
        - Stop the poller and cancel pending thumbnail tasks
    """
    # Startup
    logger.info("Starting TubePilot API...")
    if app.state.runtime is None:
        validate_dependencies()
        app.state.runtime = build_runtime()
    runtime: Runtime = app.state.runtime
    runtime.poller.start()
    logger.info("API startup complete")

    yield

    # Shutdown
    logger.info("Shutting down TubePilot API...")
    await runtime.poller.stop()
    await runtime.thumbnails.cancel_all()
    logger.info("API shutdown complete")


# Any other PipelineError reaching a route is a collaborator failure
PIPELINE_ERROR_STATUS = {
    RecordNotFound: 404,
    InvalidTransition: 409,
}


async def pipeline_error_handler(request: Request, exc: PipelineError):
    """Translate pipeline errors into 404, 409 or 502 responses."""
    status_code = next(
        (code for cls, code in PIPELINE_ERROR_STATUS.items() if isinstance(exc, cls)),
        502,
    )
    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {type(exc).__name__}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": f"{type(exc).__name__}: {exc}"})


async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler to prevent stack traces in API responses."""
    logger.error(f"Unhandled exception in {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        }
    )


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    """Create the API application, optionally around an existing runtime."""
    application = FastAPI(
        title="TubePilot API",
        version=__version__,
        lifespan=lifespan,
    )
    application.state.runtime = runtime

    # CORS for Vite dev server
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    application.add_exception_handler(PipelineError, pipeline_error_handler)
    application.add_exception_handler(Exception, generic_exception_handler)
    return application


app = create_app()
