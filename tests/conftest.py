"""Shared fixtures for Scribe agent tests."""

from typing import Optional

import pytest

from scribe.recording import (
    LaunchConfig,
    LaunchError,
    LocalRecordingCoordinator,
    SessionRegistry,
    SimulatedRecordingCoordinator,
)


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "subprocess: mark test as spawning a real child process"
    )


TS_BLOCK = """import { test, expect } from '@playwright/test';

test('test', async ({ page }) => {
  await page.goto('https://x.test/');
  await page.getByRole('button', { name: 'Sign in' }).click();
  await expect(page.getByText('Welcome')).toBeVisible();
});"""


class FakeProcessHandle:
    """Stands in for a running codegen process."""

    def __init__(self, pid: int):
        self.pid = pid
        self.returncode: Optional[int] = None
        self.stop_calls = 0

    def stop(self) -> None:
        self.stop_calls += 1


class FakeLauncher:
    """Launcher that records start calls and lets tests emit process events."""

    def __init__(self, fail_with: Optional[str] = None):
        self.fail_with = fail_with
        self.starts: list[LaunchConfig] = []
        self.handles: list[FakeProcessHandle] = []
        self.callbacks: list[dict] = []

    async def start(self, config, on_output, on_exit, on_error):
        self.starts.append(config)
        if self.fail_with:
            raise LaunchError(self.fail_with)
        handle = FakeProcessHandle(pid=4000 + len(self.handles))
        self.handles.append(handle)
        self.callbacks.append({"output": on_output, "exit": on_exit, "error": on_error})
        return handle

    def emit_output(self, chunk: str, index: int = -1) -> None:
        self.callbacks[index]["output"](chunk)

    def emit_exit(self, returncode: int = 0, index: int = -1) -> None:
        self.callbacks[index]["exit"](returncode)

    def emit_error(self, error: BaseException, index: int = -1) -> None:
        self.callbacks[index]["error"](error)


@pytest.fixture
def ts_block():
    """A complete generated TypeScript test."""
    return TS_BLOCK


@pytest.fixture
def fake_launcher():
    return FakeLauncher()


@pytest.fixture
def failing_launcher():
    return FakeLauncher(fail_with="[Errno 2] No such file or directory: 'npx'")


@pytest.fixture
def registry(fake_launcher):
    return SessionRegistry(fake_launcher)


@pytest.fixture
def local_coordinator(registry):
    return LocalRecordingCoordinator(registry)


@pytest.fixture
def simulated_coordinator():
    # Long delay keeps the timer-driven navigate action out of the way
    return SimulatedRecordingCoordinator(action_delay_seconds=3600)


@pytest.fixture
def login_config():
    return LaunchConfig(browser="chromium", target="typescript", url="https://x.test", test_name="Login")


@pytest.fixture
def agent_client(local_coordinator, simulated_coordinator):
    """TestClient with fake-launcher coordinators installed."""
    from fastapi.testclient import TestClient

    from scribe.api.agent import get_coordinator
    from scribe.api.recorder_function import get_simulator
    from scribe.api.server import app

    app.dependency_overrides[get_coordinator] = lambda: local_coordinator
    app.dependency_overrides[get_simulator] = lambda: simulated_coordinator
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
