"""Data models for recording sessions."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional


class SessionStatus(str, Enum):
    """Lifecycle of a session held by the registry.

    Idle is represented by an empty registry slot, not by a status value.
    """

    STARTING = "starting"
    RECORDING = "recording"
    STOPPING = "stopping"


class RecordedActionType(str, Enum):
    """Action types synthesized by the simulated coordinator."""

    NAVIGATE = "navigate"
    CLICK = "click"
    FILL = "fill"
    WAIT = "wait"
    ASSERT = "assert"


@dataclass
class LaunchConfig:
    """Parameters a recording is started with."""

    browser: str = "chromium"
    target: str = "typescript"
    url: Optional[str] = None
    test_name: str = ""


@dataclass
class CapturedOutput:
    """Text captured from the codegen process for one session."""

    raw_chunks: list[str] = field(default_factory=list)
    extracted_code: str = ""
    complete_match: bool = False  # extracted_code holds a full test block

    @property
    def all_output(self) -> str:
        return "".join(self.raw_chunks)


@dataclass
class Session:
    """The single active recording session."""

    id: str
    params: LaunchConfig
    status: SessionStatus = SessionStatus.STARTING
    process: Any = None  # ProcessHandle, owned by the registry
    capture: CapturedOutput = field(default_factory=CapturedOutput)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def pid(self) -> Optional[int]:
        return getattr(self.process, "pid", None)


@dataclass
class RecordedAction:
    """One simulated user interaction."""

    type: RecordedActionType
    timestamp: int  # Epoch milliseconds
    description: str
    selector: Optional[str] = None
    value: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "selector": self.selector,
            "value": self.value,
            "timestamp": self.timestamp,
            "description": self.description,
        }


@dataclass
class StartResult:
    """Outcome of a successful start."""

    session_id: str
    message: str
    browser_url: Optional[str] = None


@dataclass
class StopResult:
    """Outcome of a successful stop.

    ``code_extracted`` is False when nothing recognisable was captured; the
    stop still succeeded and ``code`` is empty.
    """

    session_id: str
    message: str
    code: str = ""
    code_extracted: bool = False
    test_name: str = ""
    duration_ms: int = 0
    actions: list[RecordedAction] = field(default_factory=list)
    test_steps: list[dict] = field(default_factory=list)


@dataclass
class StatusResult:
    """Snapshot of the registry slot."""

    is_recording: bool
    session_id: Optional[str] = None
    pid: Optional[int] = None


@dataclass
class CapturedCode:
    """Provisional or last-finished capture."""

    code: str = ""
    all_output: str = ""
    session_id: Optional[str] = None
