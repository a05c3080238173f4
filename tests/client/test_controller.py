"""Tests for the client recording state machine."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from scribe.client import (
    AgentClient,
    AgentRequestError,
    AgentUnavailableError,
    InvalidTransitionError,
    RecordingController,
    RecordingInputError,
    RecordingState,
)
from scribe.client.controller import (
    AGENT_UNAVAILABLE_MESSAGE,
    SAVE_FAILED_MESSAGE,
    START_FAILED_MESSAGE,
    STOP_FAILED_MESSAGE,
)


@pytest.fixture
def agent():
    """Agent client whose calls succeed by default."""
    mock = MagicMock()
    mock.health = AsyncMock(return_value={"status": "ok"})
    mock.start = AsyncMock(side_effect=lambda **kwargs: {
        "ok": True,
        "sessionId": kwargs["session_id"],
        "message": "Recording started with chromium browser",
    })
    mock.stop = AsyncMock(return_value={
        "ok": True,
        "sessionId": "S1",
        "message": "Recording stopped",
        "playwrightCode": "test('Login', async ({ page }) => {});",
        "codeExtracted": True,
    })
    return mock


@pytest.fixture
def controller(agent):
    return RecordingController(agent)


class TestStart:
    """Tests for starting a recording."""

    @pytest.mark.asyncio
    async def test_start_moves_to_recording(self, controller, agent):
        session_id = await controller.start("Login", "https://x.test")

        assert controller.state == RecordingState.RECORDING
        assert controller.is_recording is True
        assert session_id.startswith("session-")
        assert controller.session_id == session_id
        agent.health.assert_awaited_once()
        assert agent.start.await_args.kwargs["url"] == "https://x.test"
        assert agent.start.await_args.kwargs["target"] == "typescript"

    @pytest.mark.asyncio
    async def test_blank_inputs_rejected(self, controller, agent):
        with pytest.raises(RecordingInputError):
            await controller.start("  ", "https://x.test")
        with pytest.raises(RecordingInputError):
            await controller.start("Login", "")

        assert controller.state == RecordingState.IDLE
        agent.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_agent_down_returns_to_idle(self, controller, agent):
        agent.health.side_effect = AgentUnavailableError("not running")

        with pytest.raises(AgentUnavailableError):
            await controller.start("Login", "https://x.test")

        assert controller.state == RecordingState.IDLE
        assert controller.error_message == AGENT_UNAVAILABLE_MESSAGE
        agent.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_agent_refusal_returns_to_idle(self, controller, agent):
        agent.start.side_effect = AgentRequestError(400, "Recording already in progress")

        with pytest.raises(AgentRequestError):
            await controller.start("Login", "https://x.test")

        assert controller.state == RecordingState.IDLE
        assert controller.error_message == START_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_start_while_recording_is_invalid(self, controller):
        await controller.start("Login", "https://x.test")

        with pytest.raises(InvalidTransitionError):
            await controller.start("Other", "https://y.test")

    def test_status_message_follows_state(self, controller):
        assert controller.status_message == ""
        controller.state = RecordingState.STOPPING
        assert controller.status_message.startswith("Stopping recording")


class TestStop:
    """Tests for stopping a recording."""

    @pytest.mark.asyncio
    async def test_stop_returns_captured_code(self, controller, agent):
        session_id = await controller.start("Login", "https://x.test")

        code = await controller.stop()

        assert code == "test('Login', async ({ page }) => {});"
        assert controller.code_captured is True
        assert controller.state == RecordingState.IDLE
        agent.stop.assert_awaited_once_with(session_id)

    @pytest.mark.asyncio
    async def test_empty_capture_uses_template(self, controller, agent):
        agent.stop.return_value = {"ok": True, "sessionId": "S1", "playwrightCode": "", "codeExtracted": False}
        await controller.start("Checkout", "https://shop.test")

        code = await controller.stop()

        assert controller.code_captured is False
        assert "test('Checkout', async ({ page }) => {" in code
        assert "await page.goto('https://shop.test');" in code

    @pytest.mark.asyncio
    async def test_failed_stop_stays_recording(self, controller, agent):
        agent.stop.side_effect = AgentUnavailableError("gone")
        await controller.start("Login", "https://x.test")

        with pytest.raises(AgentUnavailableError):
            await controller.stop()

        assert controller.state == RecordingState.RECORDING
        assert controller.error_message == STOP_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_stop_when_idle_is_invalid(self, controller):
        with pytest.raises(InvalidTransitionError):
            await controller.stop()


class TestCancelAndSave:
    """Tests for cancel, edit and save."""

    @pytest.mark.asyncio
    async def test_cancel_resets_without_contacting_agent(self, controller, agent):
        await controller.start("Login", "https://x.test")

        controller.cancel()

        assert controller.state == RecordingState.IDLE
        assert controller.session_id is None
        agent.stop.assert_not_called()

    @pytest.mark.asyncio
    async def test_save_hands_over_edited_code(self, controller):
        await controller.start("Login", "https://x.test", description="Happy path")
        await controller.stop()
        controller.update_code("// edited")
        on_save = AsyncMock()

        draft = await controller.save(on_save)

        on_save.assert_awaited_once_with(draft)
        assert draft.name == "Login"
        assert draft.description == "Happy path"
        assert draft.url == "https://x.test"
        assert draft.code == "// edited"
        assert controller.generated_code == ""

    @pytest.mark.asyncio
    async def test_failed_save_keeps_draft(self, controller):
        await controller.start("Login", "https://x.test")
        code = await controller.stop()
        on_save = AsyncMock(side_effect=RuntimeError("database unavailable"))

        with pytest.raises(RuntimeError):
            await controller.save(on_save)

        assert controller.generated_code == code
        assert controller.error_message == SAVE_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_save_with_nothing_recorded(self, controller):
        with pytest.raises(InvalidTransitionError):
            await controller.save(AsyncMock())


class TestCancelWhileWaiting:
    """Cancel while a request to the agent is still pending."""

    @pytest.mark.asyncio
    async def test_start_reply_after_cancel_is_ignored(self, controller, agent):
        release = asyncio.Event()

        async def slow_start(**kwargs):
            await release.wait()
            return {"ok": True, "sessionId": kwargs["session_id"], "message": "started"}

        agent.start.side_effect = slow_start
        pending = asyncio.create_task(controller.start("Login", "https://x.test"))
        await asyncio.sleep(0)
        assert controller.state == RecordingState.STARTING

        controller.cancel()
        release.set()

        assert await pending is None
        assert controller.state == RecordingState.IDLE
        assert controller.session_id is None

    @pytest.mark.asyncio
    async def test_old_start_reply_does_not_touch_new_attempt(self, controller, agent):
        release = asyncio.Event()
        calls = []

        async def start(**kwargs):
            calls.append(kwargs["test_name"])
            if len(calls) == 1:
                await release.wait()
            return {"ok": True, "sessionId": f"S{len(calls)}", "message": "started"}

        agent.start.side_effect = start
        first = asyncio.create_task(controller.start("First", "https://x.test"))
        await asyncio.sleep(0)
        controller.cancel()

        assert await controller.start("Second", "https://y.test") == "S2"
        release.set()
        assert await first is None

        assert controller.state == RecordingState.RECORDING
        assert controller.session_id == "S2"
        assert controller.test_name == "Second"

    @pytest.mark.asyncio
    async def test_start_failure_after_cancel_keeps_idle_state_clean(self, controller, agent):
        release = asyncio.Event()

        async def failing_start(**kwargs):
            await release.wait()
            raise AgentRequestError(400, "Recording already in progress")

        agent.start.side_effect = failing_start
        pending = asyncio.create_task(controller.start("Login", "https://x.test"))
        await asyncio.sleep(0)
        controller.cancel()
        release.set()

        with pytest.raises(AgentRequestError):
            await pending
        assert controller.state == RecordingState.IDLE
        assert controller.error_message is None

    @pytest.mark.asyncio
    async def test_stop_reply_after_cancel_is_ignored(self, controller, agent):
        release = asyncio.Event()

        async def slow_stop(session_id):
            await release.wait()
            return {"ok": True, "sessionId": session_id, "playwrightCode": "test('x', async () => {});"}

        await controller.start("Login", "https://x.test")
        agent.stop.side_effect = slow_stop
        pending = asyncio.create_task(controller.stop())
        await asyncio.sleep(0)
        assert controller.state == RecordingState.STOPPING

        controller.cancel()
        release.set()

        assert await pending is None
        assert controller.state == RecordingState.IDLE
        assert controller.generated_code == ""


class TestFromSettings:
    """Controller built from agent settings."""

    def test_agent_url_and_timeout_come_from_settings(self):
        from scribe.config import Settings

        settings = Settings(_env_file=None, agent_url="http://127.0.0.1:5555/", agent_timeout_seconds=3.5)
        controller = RecordingController.from_settings(settings)

        assert isinstance(controller.agent, AgentClient)
        assert controller.agent.base_url == "http://127.0.0.1:5555"
        assert controller.agent.timeout_seconds == 3.5
        assert controller.target == "typescript"
