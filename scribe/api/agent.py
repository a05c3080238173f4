"""Local agent endpoints for starting and stopping codegen recordings."""

from datetime import UTC, datetime
from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from scribe.config import get_settings
from scribe.recording import LaunchConfig, RecordingCoordinator, create_coordinator
from scribe.utils.logging import SessionLogContext

logger = structlog.get_logger()

router = APIRouter(tags=["Recording Agent"])


# =============================================================================
# Coordinator
# =============================================================================

_coordinator: Optional[RecordingCoordinator] = None


def get_coordinator() -> RecordingCoordinator:
    """Process-wide coordinator, built from settings on first use."""
    global _coordinator
    if _coordinator is None:
        _coordinator = create_coordinator(get_settings())
    return _coordinator


def set_coordinator(coordinator: Optional[RecordingCoordinator]) -> None:
    """Install the coordinator used by the endpoints."""
    global _coordinator
    _coordinator = coordinator


# =============================================================================
# Request/Response Models
# =============================================================================


class AgentModel(BaseModel):
    """Base model accepting both camelCase and snake_case field names."""

    model_config = ConfigDict(populate_by_name=True)


class StartRequest(AgentModel):
    """Request to start a codegen recording."""

    url: str | None = Field(None, description="URL the recording browser opens")
    browser: str = Field("chromium", description="Browser engine")
    target: str = Field("typescript", description="Codegen target language")
    test_name: str = Field("", alias="testName", description="Name of the test being recorded")
    session_id: str | None = Field(None, alias="sessionId", description="Client-chosen session id")


class StartResponse(AgentModel):
    ok: bool
    session_id: str = Field(..., alias="sessionId")
    message: str


class StopRequest(AgentModel):
    """Request to stop the active recording."""

    session_id: str | None = Field(None, alias="sessionId")


class StopResponse(AgentModel):
    ok: bool
    session_id: str = Field(..., alias="sessionId")
    message: str
    playwright_code: str = Field("", alias="playwrightCode")
    code_extracted: bool = Field(False, alias="codeExtracted")


class StatusResponse(AgentModel):
    is_recording: bool = Field(..., alias="isRecording")
    session_id: str | None = Field(None, alias="sessionId")
    pid: int | None = None


class CapturedCodeResponse(AgentModel):
    code: str
    all_output: str = Field(..., alias="allOutput")
    session_id: str | None = Field(None, alias="sessionId")


class HealthResponse(BaseModel):
    status: str
    timestamp: str


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/start", response_model=StartResponse)
async def start_recording(
    body: StartRequest,
    coordinator: RecordingCoordinator = Depends(get_coordinator),
):
    """
    Start a Playwright codegen recording.

    Only one recording may run at a time; a second start is rejected.
    """
    config = LaunchConfig(
        browser=body.browser,
        target=body.target,
        url=body.url,
        test_name=body.test_name,
    )
    result = await coordinator.start(config, body.session_id)

    with SessionLogContext(result.session_id):
        logger.info("Recording started", test_name=body.test_name, browser=body.browser)

    return StartResponse(ok=True, session_id=result.session_id, message=result.message)


@router.post("/stop", response_model=StopResponse)
async def stop_recording(
    body: Optional[StopRequest] = None,
    coordinator: RecordingCoordinator = Depends(get_coordinator),
):
    """
    Stop the active recording and return whatever code was captured.

    An empty ``playwrightCode`` with ``codeExtracted: false`` means the
    recording stopped but nothing recognisable was captured.
    """
    requested_id = body.session_id if body else None
    result = await coordinator.stop(requested_id)

    with SessionLogContext(result.session_id):
        logger.info(
            "Recording stopped",
            code_extracted=result.code_extracted,
            duration_ms=result.duration_ms,
        )

    return StopResponse(
        ok=True,
        session_id=result.session_id,
        message=result.message,
        playwright_code=result.code,
        code_extracted=result.code_extracted,
    )


@router.get("/status", response_model=StatusResponse)
async def recording_status(coordinator: RecordingCoordinator = Depends(get_coordinator)):
    """Current recording state."""
    status = coordinator.status()
    return StatusResponse(
        is_recording=status.is_recording,
        session_id=status.session_id,
        pid=status.pid,
    )


@router.get("/get-code", response_model=CapturedCodeResponse)
@router.get("/get-code/{session_id}", response_model=CapturedCodeResponse)
async def get_captured_code(
    session_id: str | None = None,
    coordinator: RecordingCoordinator = Depends(get_coordinator),
):
    """Code captured so far (provisional while recording)."""
    captured = coordinator.captured(session_id)
    return CapturedCodeResponse(
        code=captured.code,
        all_output=captured.all_output,
        session_id=captured.session_id,
    )


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness probe used by the UI before starting a recording."""
    return HealthResponse(status="ok", timestamp=datetime.now(UTC).isoformat())
