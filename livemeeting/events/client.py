"""Event stream client for the engine's live channels, built on pubsub.pub."""

import logging
import threading
from typing import Any, Callable, List, Optional

from pubsub import pub

logger = logging.getLogger(__name__)


class Subscription:
    """Handle for one live subscription to a channel.

    Holds the only strong reference to the pubsub listener, since pubsub
    keeps weak references to its listeners.
    """

    def __init__(self, client: "EventStreamClient", channel: str,
                 listener: Callable[..., None]):
        self.client = client
        self.channel = channel
        self._listener = listener
        self.active = True

    def release(self) -> None:
        """Unsubscribe this handle; releasing twice is a no-op."""
        self.client.unsubscribe(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *args) -> None:
        self.release()

    def __repr__(self) -> str:
        return f"Subscription(channel={self.channel!r}, active={self.active})"


class EventStreamClient:
    """Subscribes handlers to named channels and publishes payloads on them.

    Every message carries a single ``payload`` keyword argument. Delivery
    happens on the publisher's thread, so ordering is FIFO per channel for
    a single producer. The client does not deduplicate subscriptions.
    Publishing and (un)subscribing are serialized, since pubsub does not
    guard its listener registry against concurrent changes. Handlers must
    therefore not wait on a thread that is (un)subscribing.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._subscriptions: List[Subscription] = []

    def subscribe(self, channel: str, handler: Callable[[Any], None]) -> Subscription:
        """Register ``handler`` for payloads published on ``channel``.

        Args:
            channel: Channel (pubsub topic) name
            handler: Callable receiving the payload object

        Returns:
            Subscription handle to pass to ``unsubscribe``
        """
        def listener(payload):
            handler(payload)

        subscription = Subscription(self, channel, listener)
        with self._lock:
            pub.subscribe(listener, channel)
            self._subscriptions.append(subscription)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {channel}")
        return subscription

    def unsubscribe(self, subscription: Optional[Subscription]) -> None:
        """Release a subscription handle.

        Unsubscribing ``None`` or an already released handle does nothing.
        """
        if subscription is None:
            return
        with self._lock:
            if not subscription.active:
                return
            subscription.active = False
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
            pub.unsubscribe(subscription._listener, subscription.channel)
        logger.debug(f"Unsubscribed from {subscription.channel}")

    def publish(self, channel: str, payload: Any) -> None:
        """Deliver ``payload`` to every handler subscribed to ``channel``."""
        with self._lock:
            pub.sendMessage(channel, payload=payload)

    def active_subscriptions(self, channel: Optional[str] = None) -> List[Subscription]:
        """List the handles this client still holds, optionally for one channel."""
        with self._lock:
            return [s for s in self._subscriptions if channel is None or s.channel == channel]

    def unsubscribe_all(self) -> None:
        """Release every subscription this client still holds."""
        for subscription in self.active_subscriptions():
            self.unsubscribe(subscription)
