"""Live event channels between the engine and the session controller."""

from .client import EventStreamClient, Subscription

__all__ = [
    "EventStreamClient",
    "Subscription",
]
