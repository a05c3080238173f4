"""Single-slot registry for the active recording session.

The registry owns the only Session, its process handle and its captured
output. Mutual exclusion relies on the event loop: the presence check and
slot assignment in ``create`` happen without an intervening ``await``.
Callers using threads must add their own lock around create/destroy.
"""

import time
from functools import partial
from typing import Optional

import structlog

from .exceptions import ConflictError, LaunchError, NotFoundError
from .launcher import ProcessLauncher
from .models import CapturedCode, LaunchConfig, Session, SessionStatus, StatusResult
from .scrapper import OutputScrapper

logger = structlog.get_logger()


def generate_session_id() -> str:
    return f"session-{int(time.time() * 1000)}"


class SessionRegistry:
    """Holds at most one recording session.

    Example:
        registry = SessionRegistry(ProcessLauncher())
        session = await registry.create(LaunchConfig(url="https://example.com"))
        ...
        finished = registry.destroy(session.id)
    """

    def __init__(self, launcher: ProcessLauncher):
        self.launcher = launcher
        self._session: Optional[Session] = None
        self._scrapper: Optional[OutputScrapper] = None
        self._last_finished: Optional[Session] = None
        self.log = logger.bind(component="session_registry")

    @property
    def active_session(self) -> Optional[Session]:
        return self._session

    async def create(self, config: LaunchConfig, session_id: Optional[str] = None) -> Session:
        """Install a new session and launch codegen for it.

        Raises:
            ConflictError: If a session is already active
            LaunchError: If the process could not be spawned (slot is cleared)
        """
        if self._session is not None:
            self.log.warning(
                "Start rejected, recording already in progress",
                active_session_id=self._session.id,
            )
            raise ConflictError("Recording already in progress")

        session = Session(id=session_id or generate_session_id(), params=config)
        self._session = session
        self._scrapper = OutputScrapper(session.capture)
        self._last_finished = None

        self.log.info(
            "Starting recording",
            session_id=session.id,
            test_name=config.test_name,
            browser=config.browser,
            target=config.target,
            url=config.url,
        )

        try:
            handle = await self.launcher.start(
                config,
                on_output=partial(self._handle_output, session),
                on_exit=partial(self._handle_exit, session),
                on_error=partial(self._handle_error, session),
            )
        except LaunchError:
            if self._session is session:
                self._clear()
            raise

        if self._session is not session:
            # Stopped while the process was spawning
            handle.stop()
            raise ConflictError("Recording session ended while starting")

        session.process = handle
        session.status = SessionStatus.RECORDING
        return session

    def destroy(self, expected_id: Optional[str] = None) -> Session:
        """Request termination and clear the slot immediately.

        Returns:
            The finished session, including its captured output

        Raises:
            NotFoundError: If no session is active
            ConflictError: If expected_id names a different session
        """
        session = self._session
        if session is None:
            raise NotFoundError("No active recording session")

        if expected_id and expected_id != session.id:
            self.log.warning(
                "Stop rejected, session id mismatch",
                requested_session_id=expected_id,
                active_session_id=session.id,
            )
            raise ConflictError("Invalid session ID")

        self.log.info("Stopping recording session", session_id=session.id)
        session.status = SessionStatus.STOPPING
        if session.process is not None:
            session.process.stop()

        self._finish(session)
        return session

    def status(self) -> StatusResult:
        session = self._session
        if session is None:
            return StatusResult(is_recording=False)
        return StatusResult(is_recording=True, session_id=session.id, pid=session.pid)

    def captured(self, session_id: Optional[str] = None) -> CapturedCode:
        """Provisional capture of the active session, or the last finished one."""
        session = self._session
        if session is not None and (not session_id or session_id == session.id):
            return CapturedCode(
                code=session.capture.extracted_code,
                all_output=session.capture.all_output,
                session_id=session.id,
            )

        finished = self._last_finished
        if finished is not None and (not session_id or session_id == finished.id):
            return CapturedCode(
                code=OutputScrapper(finished.capture).finalize() or "",
                all_output=finished.capture.all_output,
                session_id=finished.id,
            )

        return CapturedCode(session_id=session_id)

    def _handle_output(self, session: Session, chunk: str) -> None:
        if self._session is not session:
            self.log.debug("Discarding output from finished session", session_id=session.id)
            return
        self.log.debug("Codegen output", session_id=session.id, output=chunk.rstrip())
        self._scrapper.feed(chunk)

    def _handle_exit(self, session: Session, returncode: Optional[int]) -> None:
        if self._session is not session:
            return
        self.log.info("Codegen exited", session_id=session.id, returncode=returncode)
        self._finish(session)

    def _handle_error(self, session: Session, error: BaseException) -> None:
        if self._session is not session:
            return
        self.log.error("Codegen failed", session_id=session.id, error=str(error))
        if session.process is not None:
            session.process.stop()
        self._finish(session)

    def _finish(self, session: Session) -> None:
        self._last_finished = session
        self._clear()

    def _clear(self) -> None:
        self._session = None
        self._scrapper = None
