"""Exceptions raised while preparing a perf recording."""


class RecordingError(Exception):
    """Base class for recording errors.

    The message is the human-readable reason shown to the user.
    """

    @property
    def reason(self) -> str:
        return str(self)


class RecordingValidationError(RecordingError):
    """A request was rejected before any process was started."""


class ElevationError(RecordingValidationError):
    """Privilege elevation was requested but cannot be set up."""
