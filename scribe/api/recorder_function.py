"""Stateless recorder function: simulated start/stop behind one endpoint.

Mirrors the serverless deployment, where the UI cannot reach a local agent.
Nothing is launched; actions are synthesized and turned into Playwright code.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from scribe.config import get_settings
from scribe.recording import InvalidRequestError, LaunchConfig, SimulatedRecordingCoordinator

logger = structlog.get_logger()

router = APIRouter(prefix="/functions/v1", tags=["Recorder Function"])

_simulator: Optional[SimulatedRecordingCoordinator] = None


def get_simulator() -> SimulatedRecordingCoordinator:
    global _simulator
    if _simulator is None:
        _simulator = SimulatedRecordingCoordinator(
            action_delay_seconds=get_settings().simulated_action_delay_seconds,
        )
    return _simulator


class RecorderFunctionRequest(BaseModel):
    """Invocation payload."""

    model_config = ConfigDict(populate_by_name=True)

    action: str = Field(..., description="'start' or 'stop'")
    test_name: str | None = Field(None, alias="testName")
    start_url: str | None = Field(None, alias="startUrl")
    session_id: str | None = Field(None, alias="sessionId")


@router.post("/playwright-recorder")
async def playwright_recorder(
    body: RecorderFunctionRequest,
    simulator: SimulatedRecordingCoordinator = Depends(get_simulator),
):
    """Dispatch a start or stop invocation."""
    logger.info("Playwright recorder request", action=body.action, session_id=body.session_id)

    if body.action == "start":
        return await _start(body, simulator)
    elif body.action == "stop":
        return await _stop(body, simulator)
    raise InvalidRequestError("Invalid action")


async def _start(body: RecorderFunctionRequest, simulator: SimulatedRecordingCoordinator) -> dict:
    if not body.test_name or not body.start_url:
        raise InvalidRequestError("testName and startUrl are required")

    result = await simulator.start(LaunchConfig(url=body.start_url, test_name=body.test_name))
    return {
        "success": True,
        "sessionId": result.session_id,
        "message": result.message,
        "browserUrl": result.browser_url,
    }


async def _stop(body: RecorderFunctionRequest, simulator: SimulatedRecordingCoordinator) -> dict:
    if not body.session_id:
        raise InvalidRequestError("sessionId is required")

    result = await simulator.stop(body.session_id)
    return {
        "success": True,
        "testName": result.test_name,
        "duration": result.duration_ms,
        "actionsRecorded": len(result.actions),
        "testSteps": result.test_steps,
        "playwrightCode": result.code,
        "message": result.message,
    }
