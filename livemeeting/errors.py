"""Error taxonomy for LiveMeeting.

Every error is surfaced to the user as a message; none of them is meant to
crash the process. The controller raises them after returning to a stable
state, so catching ``LiveMeetingError`` is enough for a UI layer.
"""


class LiveMeetingError(Exception):
    """Base class for all user-visible LiveMeeting errors."""


class ValidationError(LiveMeetingError):
    """Bad or missing input detected before any state change."""


class InvalidTransitionError(LiveMeetingError):
    """A command was issued in a state that does not allow it."""


class EngineCommandError(LiveMeetingError):
    """The capture/translation engine rejected or did not answer a command."""


class StorageError(LiveMeetingError):
    """The session store is unavailable or its contents are unreadable."""


class NotFoundError(LiveMeetingError):
    """No stored session matches the requested id."""


class EngineTimeoutError(EngineCommandError):
    """The engine did not answer a command within the command timeout."""
