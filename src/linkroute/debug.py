"""
Debug recording for link routing.

The router reports every strategy attempt to a RoutingDebugRecorder when
one is attached. Recording is opt-in: while disabled, the session calls
return immediately, so an attached recorder costs nothing during normal use.

Key Components:
- RoutingDebugRecorder: collects one session per routing call and persists
  the most recent ones through an injected KeyValueStore
- SessionMonitor: polling helper for a debug viewer that wants to refresh
  when new sessions appear

Usage:
    >>> store = MemoryStore()
    >>> recorder = RoutingDebugRecorder(store)
    >>> recorder.enable()
    >>> router = LinkRouter(recorder=recorder)
    >>> router.route("a", "b", source_rect, target_rect, obstacles)
    >>> print(recorder.get_latest_session().dump())
"""

import json
import logging
import time
from typing import Callable, List, Optional, Sequence

from .geometry import Point, Rect
from .storage import KeyValueStore
from .tracer import RoutingDebugSession, RoutingStep

log = logging.getLogger(__name__)

# Storage keys for the persisted state
ENABLED_KEY = "routingDebugEnabled"
SESSIONS_KEY = "routingDebugSessions"

# Only the most recent sessions are kept; older ones are evicted first
MAX_SESSIONS = 50

# How often a debug viewer re-reads the session history
POLL_INTERVAL_SECONDS = 1.0


class RoutingDebugRecorder:
    """
    Collects routing decision traces and persists the session history.

    At most one session is in flight at a time. start_session() opens it
    (replacing any session still open), add_step() appends to it, and
    end_session() seals it and appends it to the persisted history. Once
    sealed, the recorder keeps no reference to the session.

    Attributes:
        max_sessions: Size of the history window (default MAX_SESSIONS)

    Example:
        >>> recorder = RoutingDebugRecorder(MemoryStore())
        >>> recorder.enable()
        >>> recorder.start_session("a", "b", Point(200, 60), Point(400, 60), [])
        >>> recorder.add_step("straight (direct segment)", "accepted", [200, 60, 400, 60])
        >>> recorder.end_session([200, 60, 400, 60], "straight")
        >>> len(recorder.get_sessions())
        1
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], float] = time.time,
        max_sessions: int = MAX_SESSIONS,
    ):
        """
        Initialize the recorder.

        Args:
            store: Key-value store holding the enabled flag and the history
            clock: Returns the current time in seconds (used for timestamps)
            max_sessions: How many sessions to keep in the history
        """
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._store = store
        self._clock = clock
        self.max_sessions = max_sessions
        self._current: Optional[RoutingDebugSession] = None
        self._enabled = self._read(ENABLED_KEY) == "true"

    # -------------------------------------------------------------------------
    # Enabled flag
    # -------------------------------------------------------------------------

    def enable(self) -> None:
        self._enabled = True
        self._write(ENABLED_KEY, "true")

    def disable(self) -> None:
        """Stop recording. Any session still open is dropped."""
        self._enabled = False
        self._current = None
        self._write(ENABLED_KEY, "false")

    def is_enabled(self) -> bool:
        return self._enabled

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    def start_session(
        self,
        source_id: str,
        target_id: str,
        start_point: Point,
        end_point: Point,
        obstacles: Sequence[Rect],
    ) -> None:
        """Open a new in-flight session, replacing any open one."""
        if not self._enabled:
            return

        self._current = RoutingDebugSession(
            source_id=source_id,
            target_id=target_id,
            timestamp=int(self._clock() * 1000),
            start_point=start_point,
            end_point=end_point,
            obstacles=list(obstacles),
        )

    def add_step(
        self,
        description: str,
        decision: str,
        path_points: Optional[Sequence[float]] = None,
        rejected: bool = False,
        reason: Optional[str] = None,
    ) -> Optional[RoutingStep]:
        """
        Append a step to the in-flight session.

        Returns:
            The recorded step, or None when disabled or no session is open
        """
        if not self._enabled or self._current is None:
            return None
        return self._current.add_step(description, decision, path_points, rejected, reason)

    def end_session(
        self, final_path: Sequence[float], final_strategy: str
    ) -> Optional[RoutingDebugSession]:
        """
        Seal the in-flight session and append it to the persisted history.

        Returns:
            The sealed session, or None when disabled or no session is open
        """
        if not self._enabled or self._current is None:
            return None

        session = self._current
        self._current = None
        session.final_path = list(final_path)
        session.final_strategy = final_strategy

        sessions = self._load_sessions()
        sessions.append(session)
        self._save_sessions(sessions[-self.max_sessions :])
        return session

    def has_open_session(self) -> bool:
        return self._current is not None

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def get_sessions(self) -> List[RoutingDebugSession]:
        """Get the persisted history, oldest first."""
        return self._load_sessions()

    def get_latest_session(self) -> Optional[RoutingDebugSession]:
        sessions = self._load_sessions()
        return sessions[-1] if sessions else None

    def clear_sessions(self) -> None:
        """Empty the history and cancel any in-flight session."""
        self._current = None
        try:
            self._store.remove(SESSIONS_KEY)
        except OSError as e:
            log.warning("Could not clear routing debug history: %s", e)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _read(self, key: str) -> Optional[str]:
        try:
            return self._store.get(key)
        except (OSError, UnicodeDecodeError) as e:
            log.warning("Could not read %s from store: %s", key, e)
            return None

    def _write(self, key: str, value: str) -> None:
        try:
            self._store.set(key, value)
        except OSError as e:
            log.warning("Could not write %s to store: %s", key, e)

    def _load_sessions(self) -> List[RoutingDebugSession]:
        raw = self._read(SESSIONS_KEY)
        if not raw:
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            return [RoutingDebugSession.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            log.warning("Discarding unreadable routing debug history: %s", e)
            return []

    def _save_sessions(self, sessions: List[RoutingDebugSession]) -> None:
        self._write(SESSIONS_KEY, json.dumps([s.to_dict() for s in sessions]))


class SessionMonitor:
    """
    Polling helper for a routing debug viewer.

    A viewer calls poll() from its refresh loop. The history is re-read at
    most once per interval; when it has changed, the newest session becomes
    the selection.
    """

    def __init__(
        self,
        recorder: RoutingDebugRecorder,
        interval: float = POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._recorder = recorder
        self.interval = interval
        self._clock = clock
        self.sessions: List[RoutingDebugSession] = recorder.get_sessions()
        self.selected_index: Optional[int] = len(self.sessions) - 1 if self.sessions else None
        self._last_poll = clock()

    def poll(self, force: bool = False) -> bool:
        """
        Refresh the session list if the interval has elapsed.

        Args:
            force: Re-read immediately regardless of the interval

        Returns:
            True if the session list changed
        """
        now = self._clock()
        if not force and now - self._last_poll < self.interval:
            return False
        self._last_poll = now

        sessions = self._recorder.get_sessions()
        if sessions == self.sessions:
            return False

        self.sessions = sessions
        self.selected_index = len(sessions) - 1 if sessions else None
        return True

    def select(self, index: int) -> RoutingDebugSession:
        if not 0 <= index < len(self.sessions):
            raise IndexError(f"session index {index} out of range")
        self.selected_index = index
        return self.sessions[index]

    def selected_session(self) -> Optional[RoutingDebugSession]:
        if self.selected_index is None:
            return None
        return self.sessions[self.selected_index]

    def clear(self) -> None:
        """Clear the history through the recorder and reset the selection."""
        self._recorder.clear_sessions()
        self.sessions = []
        self.selected_index = None

    def report(self) -> str:
        """Full text dump of the selected session."""
        session = self.selected_session()
        if session is None:
            return "No routing sessions recorded."
        return session.dump()
