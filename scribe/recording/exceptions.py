"""Recording session errors.

Each error carries the HTTP status the API boundary answers with.
"""


class RecordingError(Exception):
    """Base exception for recording session errors."""

    status_code = 500


class ConflictError(RecordingError):
    """A session is already active, or a stop named a different session."""

    status_code = 400


class NotFoundError(RecordingError):
    """No recording session is active."""

    status_code = 400


class LaunchError(RecordingError):
    """The codegen subprocess could not be spawned."""

    status_code = 503

    def __init__(self, reason: str):
        super().__init__(f"Code generation tool not available: {reason}")
        self.reason = reason


class InvalidRequestError(RecordingError):
    """A request is missing required fields or names an unknown action."""

    status_code = 400
