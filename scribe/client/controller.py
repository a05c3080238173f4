"""Client-side recording state machine.

Drives a recording through the local agent:

    idle -> starting -> recording -> stopping -> idle

Every failure returns the controller to a state the user can retry from.
After a stop, the captured code (or an editable template when nothing was
captured) is available for review before it is handed to persistence.
"""

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

from scribe.recording.codegen import fallback_template

from .agent_client import AgentClient, AgentClientError, AgentUnavailableError

logger = structlog.get_logger(__name__)


class RecordingState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RECORDING = "recording"
    STOPPING = "stopping"


class RecordingInputError(ValueError):
    """Test name or start URL missing."""
    pass


class InvalidTransitionError(RuntimeError):
    """Operation not allowed in the current state."""
    pass


@dataclass
class RecordedTestDraft:
    """A finished recording ready to be saved as a test case."""

    name: str
    description: str
    url: str
    code: str
    code_captured: bool


SaveCallback = Callable[[RecordedTestDraft], Awaitable[None]]

STATUS_MESSAGES = {
    RecordingState.IDLE: "",
    RecordingState.STARTING: "Starting local Playwright browser and recording session...",
    RecordingState.RECORDING: (
        "Recording in progress. Perform your test actions in the Playwright browser window that opened."
    ),
    RecordingState.STOPPING: "Stopping recording and generating test code...",
}

AGENT_UNAVAILABLE_MESSAGE = "Local Scribe Agent is not running. Please start it first."
START_FAILED_MESSAGE = "Failed to start recording session. Please try again."
STOP_FAILED_MESSAGE = "Failed to stop recording session. Please try again."
SAVE_FAILED_MESSAGE = "Failed to save test. Please try again."


class RecordingController:
    """State machine behind the "Record Playwright Test" dialog.

    Example:
        controller = RecordingController.from_settings(get_settings())
        await controller.start("Login", "https://example.com")
        ...
        code = await controller.stop()
        await controller.save(store.create_test_case)
    """

    def __init__(self, agent: AgentClient, target: str = "typescript"):
        self.agent = agent
        self.target = target
        self.log = logger.bind(component="recording_controller")
        self._operation = 0
        self._reset()

    @classmethod
    def from_settings(cls, settings, target: str = "typescript") -> "RecordingController":
        return cls(AgentClient.from_settings(settings), target=target)

    def _reset(self) -> None:
        # Replies to requests made before a reset are dropped
        self._operation += 1
        self.state = RecordingState.IDLE
        self.session_id: Optional[str] = None
        self.test_name = ""
        self.description = ""
        self.start_url = ""
        self.browser = "chromium"
        self.generated_code = ""
        self.code_captured = False
        self.error_message: Optional[str] = None

    @property
    def is_recording(self) -> bool:
        return self.state in (RecordingState.RECORDING, RecordingState.STOPPING)

    @property
    def status_message(self) -> str:
        return STATUS_MESSAGES[self.state]

    def _is_current(self, operation: int, state: RecordingState) -> bool:
        return operation == self._operation and self.state == state

    def _require(self, expected: RecordingState, operation: str) -> None:
        if self.state != expected:
            raise InvalidTransitionError(
                f"Cannot {operation} while {self.state.value} (expected {expected.value})"
            )

    async def start(
        self,
        test_name: str,
        start_url: str,
        browser: str = "chromium",
        description: str = "",
    ) -> Optional[str]:
        """Start recording. Returns the session id.

        Returns None when the recording was cancelled before the agent
        answered; the reply is ignored.

        Raises:
            RecordingInputError: If the test name or URL is blank
            AgentUnavailableError: If the agent cannot be reached
            AgentRequestError: If the agent refused to start
        """
        if not test_name.strip() or not start_url.strip():
            raise RecordingInputError("Please provide a test name and starting URL")
        self._require(RecordingState.IDLE, "start recording")

        self.test_name = test_name
        self.start_url = start_url
        self.browser = browser
        self.description = description
        self.error_message = None
        self.state = RecordingState.STARTING
        self._operation += 1
        operation = self._operation

        requested_id = f"session-{int(time.time() * 1000)}"
        try:
            await self.agent.health()
            data = await self.agent.start(
                url=start_url,
                test_name=test_name,
                browser=browser,
                target=self.target,
                session_id=requested_id,
            )
        except AgentUnavailableError:
            if self._is_current(operation, RecordingState.STARTING):
                self.state = RecordingState.IDLE
                self.error_message = AGENT_UNAVAILABLE_MESSAGE
            raise
        except AgentClientError as e:
            if self._is_current(operation, RecordingState.STARTING):
                self.state = RecordingState.IDLE
                self.error_message = START_FAILED_MESSAGE
            self.log.warning("Start failed", error=str(e))
            raise

        if not self._is_current(operation, RecordingState.STARTING):
            self.log.info(
                "Ignoring start reply after cancel",
                session_id=data.get("sessionId") or requested_id,
            )
            return None

        self.session_id = data.get("sessionId") or requested_id
        self.state = RecordingState.RECORDING
        self.log.info("Recording started", session_id=self.session_id, browser=browser)
        return self.session_id

    async def stop(self) -> Optional[str]:
        """Stop recording. Returns the code to review.

        Falls back to an editable template when nothing was captured.
        On failure the controller returns to ``recording`` so the user can retry.
        Returns None when cancelled before the agent answered.
        """
        self._require(RecordingState.RECORDING, "stop recording")
        self.state = RecordingState.STOPPING
        self.error_message = None
        self._operation += 1
        operation = self._operation
        session_id = self.session_id

        try:
            data = await self.agent.stop(session_id)
        except AgentClientError as e:
            if self._is_current(operation, RecordingState.STOPPING):
                self.state = RecordingState.RECORDING
                self.error_message = STOP_FAILED_MESSAGE
            self.log.warning("Stop failed", session_id=session_id, error=str(e))
            raise

        if not self._is_current(operation, RecordingState.STOPPING):
            self.log.info("Ignoring stop reply after cancel", session_id=session_id)
            return None

        code = data.get("playwrightCode") or ""
        if code.strip():
            self.generated_code = code
            self.code_captured = True
        else:
            self.generated_code = fallback_template(self.test_name, self.start_url)
            self.code_captured = False

        self.state = RecordingState.IDLE
        self.log.info(
            "Recording stopped",
            session_id=self.session_id,
            code_captured=self.code_captured,
        )
        return self.generated_code

    def update_code(self, code: str) -> None:
        """Manual edit of the generated code before saving."""
        self.generated_code = code

    def cancel(self) -> None:
        """Reset local state from any state.

        The agent is not contacted, so an active recording keeps running
        until it is stopped there or its browser is closed.
        """
        if self.is_recording:
            self.log.warning("Recording cancelled locally", session_id=self.session_id)
        self._reset()

    async def save(self, on_save: SaveCallback) -> RecordedTestDraft:
        """Hand the reviewed code to persistence, then reset.

        If saving fails the draft is kept so the user can retry.
        """
        self._require(RecordingState.IDLE, "save")
        if not self.generated_code:
            raise InvalidTransitionError("Nothing recorded to save")
        draft = RecordedTestDraft(
            name=self.test_name,
            description=self.description,
            url=self.start_url,
            code=self.generated_code,
            code_captured=self.code_captured,
        )

        try:
            await on_save(draft)
        except Exception as e:
            self.error_message = SAVE_FAILED_MESSAGE
            self.log.error("Saving recorded test failed", test_name=draft.name, error=str(e))
            raise

        self._reset()
        return draft
