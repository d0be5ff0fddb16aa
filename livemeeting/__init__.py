"""LiveMeeting - live translated meeting sessions with a local transcript vault."""

__version__ = "0.1.0"
