"""
Focus Integrity Monitor.

Watches attention signals during a timed focus session and counts
interruptions:
- Window focus: focused / blurred
- Page visibility: visible / hidden
- Input activity: engaged / idle (no pointer, key, scroll or touch input
  for the idle threshold)

Each transition into blurred, hidden or idle while a session is active
counts as exactly one interruption. Repeated identical signals do not
re-count. While a confirmation dialog is open the monitor is suspended:
the dialog itself steals focus, so nothing is counted.

Signal sources are injected. A host that cannot report a signal type
simply never emits it; the monitor keeps working with fewer sources.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

from loguru import logger

# =============================================================================
# Events
# =============================================================================


class FocusEventType(str, Enum):
    """Kinds of attention signal."""

    BLUR = "blur"
    FOCUS = "focus"
    IDLE = "idle"
    ACTIVE = "active"
    VISIBLE = "visible"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class FocusEvent:
    """A single attention signal."""

    type: FocusEventType
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_interruption(self) -> bool:
        return self.type in INTERRUPTION_EVENTS


INTERRUPTION_EVENTS = frozenset(
    {FocusEventType.BLUR, FocusEventType.HIDDEN, FocusEventType.IDLE}
)

# Event type -> (signal channel, engaged after the event)
_SIGNAL_STATES: dict[FocusEventType, tuple[str, bool]] = {
    FocusEventType.FOCUS: ("window", True),
    FocusEventType.BLUR: ("window", False),
    FocusEventType.VISIBLE: ("visibility", True),
    FocusEventType.HIDDEN: ("visibility", False),
    FocusEventType.ACTIVE: ("activity", True),
    FocusEventType.IDLE: ("activity", False),
}

Listener = Callable[[FocusEvent], None]


# =============================================================================
# Signal Sources
# =============================================================================


class SignalSource(Protocol):
    """Anything that can deliver focus events to a listener."""

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        ...


class SignalBus:
    """In-memory publish/subscribe channel for focus events."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: FocusEvent) -> None:
        """Deliver an event to every listener."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning(f"Focus listener failed on {event.type.value}: {e}")

    def emit(self, event_type: FocusEventType, timestamp: datetime | None = None) -> None:
        self.publish(FocusEvent(event_type, timestamp or datetime.now()))

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)


# =============================================================================
# Monitor
# =============================================================================


class InterruptionTarget(Protocol):
    """The focus session the monitor reports into."""

    @property
    def is_active(self) -> bool: ...

    def record_interruption(self, at: datetime) -> None: ...

    def mark_activity(self, at: datetime) -> None: ...


@dataclass
class FocusMonitorConfig:
    """Configuration for focus integrity detection."""

    idle_threshold_seconds: float = 10.0
    detect_idle: bool = True


class FocusIntegrityMonitor:
    """
    Turns raw attention signals into counted interruptions.

    Usage:
        bus = SignalBus()
        monitor = FocusIntegrityMonitor(bus)
        monitor.attach(focus_session)
        bus.emit(FocusEventType.BLUR)      # one interruption
        monitor.record_activity()           # qualifying input
        monitor.tick()                      # once per timer tick, drives idle
    """

    def __init__(
        self,
        source: SignalSource | None = None,
        config: FocusMonitorConfig | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.config = config or FocusMonitorConfig()
        self._clock = clock
        self._bus = SignalBus()
        self._engaged: dict[str, bool] = {"window": True, "visibility": True, "activity": True}
        self._suspend_depth = 0
        self._session: InterruptionTarget | None = None
        self._last_activity = clock()
        self._unsubscribe = (
            source.subscribe(self.handle_event) if source is not None else None
        )

    # -------------------------------------------------------------------------
    # Subscribers and session
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Receive signal transitions as FocusEvents."""
        return self._bus.subscribe(listener)

    def attach(self, session: InterruptionTarget) -> None:
        """Start counting interruptions into a focus session."""
        self._session = session
        now = self._clock()
        self._last_activity = now
        self._engaged["activity"] = True
        session.mark_activity(now)

    def detach(self) -> None:
        self._session = None

    # -------------------------------------------------------------------------
    # Suspension
    # -------------------------------------------------------------------------

    @property
    def is_suspended(self) -> bool:
        return self._suspend_depth > 0

    def suspend(self) -> None:
        """Stop counting, e.g. while a confirmation dialog is open."""
        self._suspend_depth += 1

    def resume(self) -> None:
        if self._suspend_depth == 0:
            return
        self._suspend_depth -= 1
        if self._suspend_depth == 0:
            self._restart_idle_timer()

    def _restart_idle_timer(self) -> None:
        # Time spent in a dialog is not idle time
        self._last_activity = self._clock()
        self._engaged["activity"] = True

    @contextmanager
    def suspended(self) -> Iterator[None]:
        self.suspend()
        try:
            yield
        finally:
            self.resume()

    # -------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------

    def is_engaged(self, channel: str) -> bool:
        """Current state of a signal channel: window, visibility or activity."""
        return self._engaged[channel]

    def record_activity(self, at: datetime | None = None) -> None:
        """Report qualifying user input."""
        at = at or self._clock()
        self._last_activity = at
        if self._session is not None:
            self._session.mark_activity(at)
        if not self._engaged["activity"]:
            self.handle_event(FocusEvent(FocusEventType.ACTIVE, at))

    def seconds_since_activity(self, now: datetime | None = None) -> float:
        now = now or self._clock()
        return (now - self._last_activity).total_seconds()

    def tick(self, now: datetime | None = None) -> None:
        """Check the idle threshold; call once per timer tick."""
        if not self.config.detect_idle or not self._engaged["activity"]:
            return
        now = now or self._clock()
        if now - self._last_activity >= timedelta(seconds=self.config.idle_threshold_seconds):
            self.handle_event(FocusEvent(FocusEventType.IDLE, now))

    def handle_event(self, event: FocusEvent) -> None:
        """Apply one signal; counts and forwards it only on a state change."""
        channel, engaged = _SIGNAL_STATES[event.type]
        if self._engaged[channel] == engaged:
            return
        self._engaged[channel] = engaged

        if event.is_interruption:
            if self.is_suspended:
                logger.debug(f"Ignored {event.type.value} while suspended")
                return
            if self._session is not None and self._session.is_active:
                self._session.record_interruption(event.timestamp)
                logger.warning(f"Focus interrupted: {event.type.value}")

        self._bus.publish(event)

    def close(self) -> None:
        """Unsubscribe from the source and drop all listeners."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._bus.clear()
        self._session = None
