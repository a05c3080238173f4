"""Recording coordinators.

Two implementations of one capability, selected by configuration:

- LocalRecordingCoordinator: launches Playwright codegen and scrapes its output
- SimulatedRecordingCoordinator: no subprocess; synthesizes recorded actions
  and generates code from them

Both allow at most one active session.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Optional
from uuid import uuid4

import structlog

from scribe.config import CoordinatorMode, Settings

from .codegen import actions_to_steps, generate_playwright_code
from .exceptions import ConflictError, InvalidRequestError, NotFoundError
from .launcher import ProcessLauncher
from .models import (
    CapturedCode,
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
from .scrapper import OutputScrapper

logger = structlog.get_logger()


def _now_ms() -> int:
    return int(time.time() * 1000)


def _elapsed_ms(session: Session) -> int:
    return int((datetime.now(UTC) - session.started_at).total_seconds() * 1000)


class RecordingCoordinator(ABC):
    """Start, stop and inspect the single recording session."""

    @abstractmethod
    async def start(self, config: LaunchConfig, session_id: Optional[str] = None) -> StartResult:
        """Start a session.

        Raises:
            ConflictError: If a session is already active
        """

    @abstractmethod
    async def stop(self, session_id: Optional[str] = None) -> StopResult:
        """Stop the active session.

        Raises:
            NotFoundError: If no session is active
            ConflictError: If session_id names a different session
        """

    @abstractmethod
    def status(self) -> StatusResult:
        """Describe the slot. Never fails."""

    @abstractmethod
    def captured(self, session_id: Optional[str] = None) -> CapturedCode:
        """Code captured so far. Never fails."""


class LocalRecordingCoordinator(RecordingCoordinator):
    """Coordinator backed by a real Playwright codegen process."""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry
        self.log = logger.bind(component="local_coordinator")

    @classmethod
    def from_settings(cls, settings: Settings) -> "LocalRecordingCoordinator":
        return cls(SessionRegistry(ProcessLauncher.from_settings(settings)))

    async def start(self, config: LaunchConfig, session_id: Optional[str] = None) -> StartResult:
        session = await self.registry.create(config, session_id)
        return StartResult(
            session_id=session.id,
            message=f"Recording started with {config.browser} browser",
        )

    async def stop(self, session_id: Optional[str] = None) -> StopResult:
        session = self.registry.destroy(session_id)
        code = OutputScrapper(session.capture).finalize()

        if code is None:
            self.log.info(
                "No generated code recognised in codegen output",
                session_id=session.id,
                chunks=len(session.capture.raw_chunks),
            )

        return StopResult(
            session_id=session.id,
            message="Recording stopped",
            code=code or "",
            code_extracted=code is not None,
            test_name=session.params.test_name,
            duration_ms=_elapsed_ms(session),
        )

    def status(self) -> StatusResult:
        return self.registry.status()

    def captured(self, session_id: Optional[str] = None) -> CapturedCode:
        return self.registry.captured(session_id)


class SimulatedRecordingCoordinator(RecordingCoordinator):
    """Coordinator that fakes a recording.

    Session ids are server-issued UUIDs. A navigate action is recorded after
    ``action_delay_seconds``; stopping appends a click, a fill and an
    assertion, then generates steps and code from the action list.
    """

    def __init__(self, action_delay_seconds: float = 1.0):
        self.action_delay_seconds = action_delay_seconds
        self._session: Optional[Session] = None
        self._actions: list[RecordedAction] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._last_result: Optional[StopResult] = None
        self.log = logger.bind(component="simulated_coordinator")

    async def start(self, config: LaunchConfig, session_id: Optional[str] = None) -> StartResult:
        if not config.test_name or not config.url:
            raise InvalidRequestError("testName and startUrl are required")
        if self._session is not None:
            raise ConflictError("Recording already in progress")

        session = Session(id=str(uuid4()), params=config, status=SessionStatus.RECORDING)
        self._session = session
        self._actions = []
        self._last_result = None

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.action_delay_seconds, self._record_navigate, session)

        self.log.info(
            "Started simulated recording",
            session_id=session.id,
            test_name=config.test_name,
        )
        return StartResult(
            session_id=session.id,
            message="Recording started successfully",
            browser_url=config.url,
        )

    async def stop(self, session_id: Optional[str] = None) -> StopResult:
        session = self._session
        if session is None:
            raise NotFoundError("Recording session not found")
        if session_id and session_id != session.id:
            raise ConflictError("Invalid session ID")

        session.status = SessionStatus.STOPPING
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        now = _now_ms()
        self._actions.extend([
            RecordedAction(
                type=RecordedActionType.CLICK,
                selector='[data-testid="example-button"]',
                timestamp=now - 2000,
                description="Click example button",
            ),
            RecordedAction(
                type=RecordedActionType.FILL,
                selector='[data-testid="input-field"]',
                value="test input",
                timestamp=now - 1000,
                description='Fill input field with "test input"',
            ),
            RecordedAction(
                type=RecordedActionType.ASSERT,
                selector='[data-testid="success-message"]',
                timestamp=now,
                description="Verify success message is visible",
            ),
        ])

        actions = list(self._actions)
        result = StopResult(
            session_id=session.id,
            message="Recording completed successfully",
            code=generate_playwright_code(session.params.test_name, actions),
            code_extracted=True,
            test_name=session.params.test_name,
            duration_ms=_elapsed_ms(session),
            actions=actions,
            test_steps=actions_to_steps(actions),
        )

        self._session = None
        self._actions = []
        self._last_result = result

        self.log.info(
            "Stopped simulated recording",
            session_id=session.id,
            actions_recorded=len(actions),
        )
        return result

    def status(self) -> StatusResult:
        if self._session is None:
            return StatusResult(is_recording=False)
        return StatusResult(is_recording=True, session_id=self._session.id)

    def captured(self, session_id: Optional[str] = None) -> CapturedCode:
        session = self._session
        if session is not None and (not session_id or session_id == session.id):
            return CapturedCode(
                code=generate_playwright_code(session.params.test_name, self._actions),
                all_output="\n".join(action.description for action in self._actions),
                session_id=session.id,
            )

        result = self._last_result
        if result is not None and (not session_id or session_id == result.session_id):
            return CapturedCode(
                code=result.code,
                all_output="\n".join(action.description for action in result.actions),
                session_id=result.session_id,
            )

        return CapturedCode(session_id=session_id)

    def _record_navigate(self, session: Session) -> None:
        self._timer = None
        if self._session is not session or session.status != SessionStatus.RECORDING:
            return
        self._actions.append(
            RecordedAction(
                type=RecordedActionType.NAVIGATE,
                value=session.params.url,
                timestamp=_now_ms(),
                description=f"Navigate to {session.params.url}",
            )
        )


def create_coordinator(settings: Settings) -> RecordingCoordinator:
    """Build the coordinator selected by ``settings.coordinator_mode``."""
    if settings.coordinator_mode == CoordinatorMode.SIMULATED:
        return SimulatedRecordingCoordinator(
            action_delay_seconds=settings.simulated_action_delay_seconds,
        )
    return LocalRecordingCoordinator.from_settings(settings)
