"""Playwright codegen process launcher.

Spawns ``playwright codegen`` as an asyncio subprocess and reports its
lifecycle through callbacks:

- ``on_output(chunk)`` for each decoded piece of stdout/stderr (capture mode only)
- ``on_error(exc)`` when reading the process streams fails
- ``on_exit(returncode)`` once the process has ended

Exit is the only way a running process leaves the registry on its own;
there is no startup or recording timeout.
"""

import asyncio
import codecs
import os
from collections.abc import Callable
from typing import Optional

import structlog

from .exceptions import LaunchError
from .models import LaunchConfig

logger = structlog.get_logger()

OutputCallback = Callable[[str], None]
ExitCallback = Callable[[Optional[int]], None]
ErrorCallback = Callable[[BaseException], None]

READ_CHUNK_SIZE = 4096


class ProcessHandle:
    """A running codegen process.

    Holds the supervising tasks so they live as long as the process.
    """

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        supervisor: asyncio.Task,
    ):
        self._process = process
        self._supervisor = supervisor
        self.log = logger.bind(component="process_handle", pid=process.pid)

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode

    def stop(self) -> None:
        """Send SIGTERM. Does not wait for the process to exit."""
        if self._process.returncode is not None:
            self.log.debug("Process already exited", returncode=self._process.returncode)
            return
        try:
            self._process.terminate()
        except ProcessLookupError:
            self.log.debug("Process vanished before terminate")
            return
        self.log.info("Sent termination signal")

    async def wait(self) -> Optional[int]:
        """Wait until exit has been observed and reported."""
        await self._supervisor
        return self._process.returncode


class ProcessLauncher:
    """Starts Playwright codegen subprocesses.

    Example:
        launcher = ProcessLauncher(capture_output=True)
        handle = await launcher.start(config, on_output, on_exit, on_error)
        ...
        handle.stop()
    """

    def __init__(
        self,
        executable: str = "npx",
        base_args: Optional[list[str]] = None,
        capture_output: bool = True,
        cwd: Optional[str] = None,
        env: Optional[dict[str, str]] = None,
    ):
        """Initialize the launcher.

        Args:
            executable: Program used to run Playwright (npx / npx.cmd)
            base_args: Arguments placed before the generated flags
            capture_output: Pipe stdout/stderr instead of inheriting the terminal
            cwd: Working directory for the subprocess
            env: Extra environment variables layered over os.environ
        """
        self.executable = executable
        self.base_args = list(base_args) if base_args is not None else ["playwright", "codegen"]
        self.capture_output = capture_output
        self.cwd = cwd
        self.env = env or {}
        self.log = logger.bind(component="process_launcher")

    @classmethod
    def from_settings(cls, settings) -> "ProcessLauncher":
        return cls(
            executable=settings.codegen_executable,
            base_args=settings.codegen_base_args,
            capture_output=settings.capture_output,
            cwd=settings.codegen_cwd,
        )

    def build_command(self, config: LaunchConfig) -> list[str]:
        """Build argv for a launch. The URL is appended only when given."""
        cmd = [
            self.executable,
            *self.base_args,
            f"--target={config.target}",
            f"--browser={config.browser}",
        ]
        if config.url:
            cmd.append(config.url)
        return cmd

    async def start(
        self,
        config: LaunchConfig,
        on_output: OutputCallback,
        on_exit: ExitCallback,
        on_error: ErrorCallback,
    ) -> ProcessHandle:
        """Spawn the codegen process.

        Raises:
            LaunchError: If the executable is missing or cannot be run
        """
        cmd = self.build_command(config)
        stream = asyncio.subprocess.PIPE if self.capture_output else None

        self.log.info(
            "Launching codegen",
            command=" ".join(cmd),
            test_name=config.test_name,
            capture_output=self.capture_output,
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=stream,
                stderr=stream,
                cwd=self.cwd,
                env={**os.environ, **self.env},
            )
        except (FileNotFoundError, PermissionError) as e:
            self.log.error("Codegen executable could not be started", error=str(e))
            raise LaunchError(str(e)) from e
        except OSError as e:
            self.log.error("Codegen spawn failed", error=str(e))
            raise LaunchError(str(e)) from e

        pumps = []
        if self.capture_output:
            pumps = [
                asyncio.create_task(self._pump(process.stdout, on_output, on_error)),
                asyncio.create_task(self._pump(process.stderr, on_output, on_error)),
            ]

        supervisor = asyncio.create_task(self._supervise(process, pumps, on_exit))
        self.log.info("Codegen started", pid=process.pid)
        return ProcessHandle(process, supervisor)

    async def _pump(
        self,
        stream: asyncio.StreamReader,
        on_output: OutputCallback,
        on_error: ErrorCallback,
    ) -> None:
        """Forward decoded stream data until EOF."""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while True:
                data = await stream.read(READ_CHUNK_SIZE)
                if not data:
                    tail = decoder.decode(b"", final=True)
                    if tail:
                        on_output(tail)
                    return
                text = decoder.decode(data)
                if text:
                    on_output(text)
        except Exception as e:
            self.log.error("Reading codegen output failed", error=str(e))
            on_error(e)

    async def _supervise(
        self,
        process: asyncio.subprocess.Process,
        pumps: list[asyncio.Task],
        on_exit: ExitCallback,
    ) -> None:
        """Drain the streams, wait for exit, then report it."""
        if pumps:
            await asyncio.gather(*pumps)
        returncode = await process.wait()
        self.log.info("Codegen exited", pid=process.pid, returncode=returncode)
        on_exit(returncode)
