"""Client side of the recording flow."""

from .agent_client import (
    AgentClient,
    AgentClientError,
    AgentRequestError,
    AgentUnavailableError,
)
from .controller import (
    InvalidTransitionError,
    RecordedTestDraft,
    RecordingController,
    RecordingInputError,
    RecordingState,
)

__all__ = [
    "AgentClient",
    "AgentClientError",
    "AgentRequestError",
    "AgentUnavailableError",
    "RecordingController",
    "RecordingState",
    "RecordedTestDraft",
    "RecordingInputError",
    "InvalidTransitionError",
]
