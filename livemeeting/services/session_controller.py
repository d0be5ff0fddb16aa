"""Live session controller: owns the session lifecycle, event ingestion and hand-off to storage."""

import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from enum import Enum
from typing import Any, Callable, List, Optional, Type

from ..config.preferences import PreferencesStore, UserPreferences
from ..engine.base import AbstractTranslationEngine
from ..errors import (
    EngineCommandError,
    EngineTimeoutError,
    InvalidTransitionError,
    LiveMeetingError,
    StorageError,
    ValidationError,
)
from ..events.client import EventStreamClient, Subscription
from ..models.events import (
    AUDIO_LEVEL_CHANNEL,
    SUBTITLE_CHANNEL,
    AudioLevelEvent,
    SubtitleEvent,
)
from ..models.session import (
    AudioSource,
    Session,
    SessionState,
    TargetLanguage,
    finalize_session,
)
from ..models.ui import LiveStatus
from ..storage.session_store import AbstractSessionStore
from ..transcript.accumulator import TranscriptAccumulator
from ..transcript.overlay import OverlayFeed

logger = logging.getLogger(__name__)

API_KEY_MIN_LENGTH = 20
AUDIO_LEVEL_SCALE = 15000
AUDIO_LEVEL_MAX = 100.0
DEFAULT_COMMAND_TIMEOUT = 10.0

INVALID_API_KEY_MESSAGE = "Please enter a valid OpenAI API Key."
SAVED_MESSAGE = "Meeting Successfully Saved to Local Vault."

# Captions still flushed by the engine while it stops belong to the session.
_RECEIVING_STATES = (SessionState.LISTENING, SessionState.STOPPING)


def scale_audio_level(rms: float) -> float:
    """Map a raw RMS sample onto the 0-100 intensity range of the level meter."""
    scaled = rms * AUDIO_LEVEL_SCALE
    if math.isnan(scaled):
        return 0.0
    return max(0.0, min(AUDIO_LEVEL_MAX, scaled))


def mask_api_key(api_key: str) -> str:
    """Shorten an API key for log output (``sk-1…7890``)."""
    if not api_key:
        return "<empty>"
    if len(api_key) <= 8:
        return "*" * len(api_key)
    return f"{api_key[:4]}…{api_key[-4:]}"


def _coerce_choice(enum_cls: Type[Enum], value: Any, label: str) -> Enum:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Unsupported {label}: {value}")


def _log_abandoned_stop(future) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.warning(f"Stop after a timed out start failed: {error}")
    else:
        logger.info("Engine stopped after a timed out start")


class SessionController:
    """Runs one live translated session at a time.

    State machine: idle -> starting -> listening -> stopping -> idle, with a
    transient error state entered when a start or stop fails. Engine
    commands run on a worker thread with a bounded wait; engine events may
    arrive on any thread. The controller lock is never held while an engine
    command runs or while channels are (un)subscribed, because the engine
    may be delivering events that need it.
    """

    def __init__(self,
                 engine: AbstractTranslationEngine,
                 event_client: EventStreamClient,
                 store: AbstractSessionStore,
                 preferences: Optional[UserPreferences] = None,
                 preferences_store: Optional[PreferencesStore] = None,
                 overlay: Optional[OverlayFeed] = None,
                 command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
                 state_callback: Optional[Callable[[SessionState, SessionState], None]] = None):
        """Initialize the controller.

        Args:
            engine: Capture-and-translate engine receiving start/stop commands
            event_client: Client used to subscribe to the engine's channels
            store: Gateway receiving finalized sessions
            preferences: Preferences used to prefill the next start
            preferences_store: Where preferences are re-saved after a successful start
            overlay: Optional overlay feed shown while listening
            command_timeout: Seconds to wait for an engine command before failing it
            state_callback: Called with (old, new) on every state transition
        """
        self.engine = engine
        self.event_client = event_client
        self.store = store
        self.preferences = preferences or UserPreferences()
        self.preferences_store = preferences_store
        self.overlay = overlay
        self.command_timeout = command_timeout
        self.state_callback = state_callback

        self.accumulator = TranscriptAccumulator()
        self.title = ""
        self.status_message = ""
        self.last_error: Optional[LiveMeetingError] = None

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._audio_level = 0.0
        self._target_language: Optional[TargetLanguage] = None
        self._subscriptions: List[Subscription] = []
        self._pending_session: Optional[Session] = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="EngineCommand")

        logger.info("SessionController initialized")

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def audio_level(self) -> float:
        """Latest audio level, already scaled and clamped to 0-100."""
        with self._lock:
            return self._audio_level

    @property
    def target_language(self) -> Optional[TargetLanguage]:
        with self._lock:
            return self._target_language

    @property
    def has_unsaved_transcript(self) -> bool:
        """True when a stopped session still holds captions that were not saved."""
        with self._lock:
            return self._state is SessionState.IDLE and not self.accumulator.is_empty()

    def copy_text(self) -> str:
        """Get the live transcript as paragraph-joined text."""
        return self.accumulator.joined_text()

    def status(self) -> LiveStatus:
        """Take a consistent snapshot for renderers."""
        with self._lock:
            return LiveStatus(
                state=self._state,
                audio_level=self._audio_level,
                captions=self.accumulator.snapshot(),
                overlay_lines=self.overlay.lines() if self.overlay else [],
                overlay_visible=self.overlay.visible if self.overlay else False,
                title=self.title,
                target_language=self._target_language,
                status_message=self.status_message,
                last_error=str(self.last_error) if self.last_error else None,
                has_unsaved_transcript=(self._state is SessionState.IDLE
                                        and not self.accumulator.is_empty()),
            )

    def start(self, api_key: str, target_language, audio_source) -> None:
        """Start a live session.

        Args:
            api_key: Translation service key, at least 20 characters
            target_language: ``TargetLanguage`` or its value (e.g. "English")
            audio_source: ``AudioSource`` or its value ("mic" or "output")

        Raises:
            InvalidTransitionError: If the controller is not idle
            ValidationError: On a bad key, unknown choice, or an unsaved transcript
            EngineCommandError: If the engine rejects or does not answer the command
        """
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise InvalidTransitionError(f"Cannot start a session while {self._state.value}")

            try:
                if not api_key or len(api_key) < API_KEY_MIN_LENGTH:
                    raise ValidationError(INVALID_API_KEY_MESSAGE)
                target_language = _coerce_choice(TargetLanguage, target_language, "target language")
                audio_source = _coerce_choice(AudioSource, audio_source, "audio source")
                if not self.accumulator.is_empty():
                    raise ValidationError(
                        "The previous transcript has not been saved. Save or discard it first.")
            except ValidationError as e:
                self._surface(e)
                raise

            self.status_message = ""
            self.last_error = None
            self._state = SessionState.STARTING
        self._notify(SessionState.IDLE, SessionState.STARTING)

        logger.info(f"Starting session: key={mask_api_key(api_key)}, "
                    f"target_lang={target_language.value}, source={audio_source.value}")
        try:
            self._run_command("start", self.engine.start,
                              api_key, target_language.value, audio_source.value)
        except EngineCommandError as e:
            if isinstance(e, EngineTimeoutError):
                self._abandon_start()
            self._fail(e)
            raise

        # Events are dropped until the state below flips to listening.
        self._acquire_subscriptions()
        with self._lock:
            self.accumulator.clear()
            self._pending_session = None
            self._audio_level = 0.0
            self._target_language = target_language
            self._state = SessionState.LISTENING
        self._notify(SessionState.STARTING, SessionState.LISTENING)
        logger.info("Session listening")

        self._remember_preferences(api_key, target_language, audio_source)

    def stop(self) -> Optional[Session]:
        """Stop the live session and save its transcript.

        Returns:
            The saved session, or None when nothing was captured

        Raises:
            InvalidTransitionError: If the controller is not listening
            EngineCommandError: If the engine rejects or does not answer the stop;
                the transcript is kept unsaved
            StorageError: If saving fails; the transcript is kept for ``retry_save``
        """
        with self._lock:
            if self._state is not SessionState.LISTENING:
                raise InvalidTransitionError(f"Cannot stop a session while {self._state.value}")
            self._state = SessionState.STOPPING
        self._notify(SessionState.LISTENING, SessionState.STOPPING)
        logger.info("Stopping session")

        command_error = None
        try:
            self._run_command("stop", self.engine.stop)
        except EngineCommandError as e:
            command_error = e
        finally:
            self._release_subscriptions()
            with self._lock:
                self._audio_level = 0.0

        if command_error is not None:
            self._fail(command_error)
            raise command_error

        if self.accumulator.is_empty():
            logger.info("Session stopped with an empty transcript, nothing to save")
            self._transition(SessionState.IDLE)
            return None

        session = self._finalize_pending()
        try:
            self._persist(session)
        except StorageError as e:
            self._fail(e)
            raise

        self._transition(SessionState.IDLE)
        return session

    def retry_save(self) -> Session:
        """Save the transcript left behind by a failed stop or save.

        Raises:
            InvalidTransitionError: If the controller is not idle
            ValidationError: If there is no unsaved transcript
            StorageError: If saving fails again
        """
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise InvalidTransitionError(f"Cannot save while {self._state.value}")
            if self.accumulator.is_empty():
                raise ValidationError("There is no unsaved transcript to save.")
            session = self._finalize_pending()

        try:
            self._persist(session)
        except StorageError as e:
            self._surface(e)
            raise
        return session

    def discard_unsaved(self) -> int:
        """Drop an unsaved transcript on the user's explicit request.

        Returns:
            Number of captions discarded
        """
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise InvalidTransitionError(f"Cannot discard while {self._state.value}")
            count = len(self.accumulator)
            self.accumulator.clear()
            self._pending_session = None
        if count:
            logger.warning(f"Discarded unsaved transcript with {count} captions")
        return count

    def shutdown(self) -> None:
        """Tear down: stop a running session, release subscriptions, stop the command worker."""
        if self.state is SessionState.LISTENING:
            try:
                self.stop()
            except LiveMeetingError as e:
                logger.error(f"Error stopping session during shutdown: {e}")
        self._release_subscriptions()
        self._executor.shutdown(wait=False)
        logger.info("SessionController shut down")

    def _on_subtitle(self, event: SubtitleEvent) -> None:
        with self._lock:
            if self._state not in _RECEIVING_STATES:
                logger.debug(f"Dropping caption received while {self._state.value}")
                return
            self.accumulator.append(event.text)

    def _on_audio_level(self, event: AudioLevelEvent) -> None:
        with self._lock:
            if self._state not in _RECEIVING_STATES:
                return
            self._audio_level = scale_audio_level(event.rms)

    def _run_command(self, name: str, command: Callable[..., None], *args) -> None:
        """Run an engine command on the worker thread with a bounded wait."""
        try:
            future = self._executor.submit(command, *args)
            future.result(timeout=self.command_timeout)
        except FutureTimeoutError:
            future.cancel()
            raise EngineTimeoutError(
                f"Engine did not answer the {name} command within {self.command_timeout:g}s")
        except Exception as e:
            raise EngineCommandError(str(e) or e.__class__.__name__) from e
        logger.debug(f"Engine accepted the {name} command")

    def _abandon_start(self) -> None:
        """Queue a stop behind a start that did not answer in time.

        A running command cannot be cancelled, so the engine may still finish
        starting; the queued stop runs right after it.
        """
        logger.warning("Engine may still be starting, queueing a stop behind it")
        future = self._executor.submit(self.engine.stop)
        future.add_done_callback(_log_abandoned_stop)

    def _acquire_subscriptions(self) -> None:
        """Subscribe to both channels; must be called without holding the controller lock."""
        if self._subscriptions:
            logger.warning("Releasing stale subscriptions before subscribing again")
            self._release_subscriptions()
        subscriptions = [
            self.event_client.subscribe(AUDIO_LEVEL_CHANNEL, self._on_audio_level),
            self.event_client.subscribe(SUBTITLE_CHANNEL, self._on_subtitle),
        ]
        with self._lock:
            self._subscriptions = subscriptions
        if self.overlay:
            self.overlay.open()

    def _release_subscriptions(self) -> None:
        with self._lock:
            subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            try:
                self.event_client.unsubscribe(subscription)
            except Exception as e:
                logger.warning(f"Error during unsubscribe from {subscription.channel}: {e}")
        if self.overlay:
            try:
                self.overlay.close()
            except Exception as e:
                logger.warning(f"Error closing overlay: {e}")

    def _finalize_pending(self) -> Session:
        """Build the session record once; retries reuse it so the id stays the same."""
        with self._lock:
            if self._pending_session is None:
                self._pending_session = finalize_session(
                    title=self.title,
                    transcription=self.accumulator.joined_text(),
                    target_lang=self._target_language or self.preferences.target_language,
                )
            return self._pending_session

    def _persist(self, session: Session) -> None:
        try:
            self.store.save(session)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(str(e) or e.__class__.__name__) from e

        with self._lock:
            self.accumulator.clear()
            self._pending_session = None
            self.title = ""
            self.status_message = SAVED_MESSAGE
            self.last_error = None
        logger.info(f"Session {session.id} saved ({len(session.transcription)} chars)")

    def _remember_preferences(self, api_key: str, target_language: TargetLanguage,
                              audio_source: AudioSource) -> None:
        self.preferences = UserPreferences(
            api_key=api_key,
            target_language=target_language,
            audio_source=audio_source,
        )
        if self.preferences_store is None:
            return
        try:
            self.preferences_store.save(self.preferences)
        except Exception as e:
            logger.warning(f"Could not save preferences: {e}")

    def _surface(self, error: LiveMeetingError) -> None:
        with self._lock:
            self.last_error = error
            self.status_message = str(error)
        logger.error(f"{error.__class__.__name__}: {error}")

    def _fail(self, error: LiveMeetingError) -> None:
        """Surface ``error`` through the error state and settle back in idle."""
        self._transition(SessionState.ERROR)
        self._surface(error)
        self._transition(SessionState.IDLE)

    def _transition(self, new_state: SessionState) -> None:
        with self._lock:
            old_state, self._state = self._state, new_state
        self._notify(old_state, new_state)

    def _notify(self, old_state: SessionState, new_state: SessionState) -> None:
        logger.debug(f"State {old_state.value} -> {new_state.value}")
        if self.state_callback is None:
            return
        try:
            self.state_callback(old_state, new_state)
        except Exception as e:
            logger.warning(f"State callback failed: {e}")
