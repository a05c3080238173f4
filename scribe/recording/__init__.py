"""Recording session coordination - drive Playwright codegen and collect its code.

One recording session at a time, started and stopped over the local agent
API, with best-effort scraping of generated code from the codegen output.
"""

from .coordinator import (
    LocalRecordingCoordinator,
    RecordingCoordinator,
    SimulatedRecordingCoordinator,
    create_coordinator,
)
from .exceptions import (
    ConflictError,
    InvalidRequestError,
    LaunchError,
    NotFoundError,
    RecordingError,
)
from .launcher import ProcessHandle, ProcessLauncher
from .models import (
    CapturedCode,
    CapturedOutput,
    LaunchConfig,
    RecordedAction,
    RecordedActionType,
    Session,
    SessionStatus,
    StartResult,
    StatusResult,
    StopResult,
)
from .registry import SessionRegistry
from .scrapper import OutputScrapper, extract_code

__all__ = [
    # Models
    "LaunchConfig",
    "Session",
    "SessionStatus",
    "CapturedOutput",
    "CapturedCode",
    "RecordedAction",
    "RecordedActionType",
    "StartResult",
    "StopResult",
    "StatusResult",
    # Errors
    "RecordingError",
    "ConflictError",
    "NotFoundError",
    "LaunchError",
    "InvalidRequestError",
    # Components
    "ProcessLauncher",
    "ProcessHandle",
    "OutputScrapper",
    "extract_code",
    "SessionRegistry",
    # Coordinators
    "RecordingCoordinator",
    "LocalRecordingCoordinator",
    "SimulatedRecordingCoordinator",
    "create_coordinator",
]
