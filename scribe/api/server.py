"""FastAPI application for the Scribe recording agent.

Provides:
- Local agent endpoints (start, stop, status, captured code, health)
- The stateless recorder function endpoint
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scribe import __version__
from scribe.api.agent import get_coordinator, router as agent_router
from scribe.api.recorder_function import router as recorder_function_router
from scribe.config import get_settings
from scribe.recording import RecordingError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    settings = get_settings()
    logger.info(
        "Scribe agent starting",
        version=__version__,
        mode=settings.coordinator_mode.value,
        capture_output=settings.capture_output,
    )

    yield

    # Don't leave a codegen browser running after the agent exits
    coordinator = app.dependency_overrides.get(get_coordinator, get_coordinator)()
    if coordinator.status().is_recording:
        result = await coordinator.stop()
        logger.info("Stopped recording on shutdown", session_id=result.session_id)
    logger.info("Scribe agent shutting down")


app = FastAPI(
    title="Scribe Recording Agent",
    description="Launches Playwright codegen and returns the recorded test code",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(agent_router)
app.include_router(recorder_function_router)


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(RecordingError)
async def recording_error_handler(request: Request, exc: RecordingError):
    """Translate recording errors into {"error": ...} responses."""
    logger.warning(
        "Recording request rejected",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )
