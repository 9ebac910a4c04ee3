"""
Session Management Service for Coffee Bot
=========================================

This module owns the per-customer conversation state. Sessions live in an
in-memory map keyed by the caller-supplied session id; nothing is written to
the database until an order is finalized.

Lifecycle:
----------
- **Created** lazily by get_or_create() the first time an id is seen.
- **Touched** on every get_or_create() call (last_activity refreshed).
- **Deleted** when its order is finalized, or by the idle sweep once it has
  been inactive for longer than SESSION_IDLE_TIMEOUT_SECONDS.

The sweep deletes unconditionally, so a customer who walks away mid-order
loses the pending items. The number of dropped lines is logged.

Thread Safety:
--------------
Conversation turns run in the request threadpool, so two layers of locking
are used:

1. A store-wide threading.Lock protects the session map itself.
2. A per-session lock (see lock()) serializes turns for one session id, so
   two overlapping requests for the same customer cannot both read the same
   pending item and overwrite each other's result.

Background Sweep:
-----------------
start_background_sweep() runs sweep_expired() on a fixed asyncio timer,
independent of request handling. It is started and stopped by the FastAPI
lifespan handler in main.py.

Configuration:
--------------
See config.py:
- SESSION_IDLE_TIMEOUT_SECONDS: Idle time before a session is swept (30 min)
- SESSION_SWEEP_INTERVAL_SECONDS: How often the sweep runs (5 min)

Usage:
------
    store = SessionStore()
    with store.lock(session_id):
        session = store.get_or_create(session_id)
        ...
"""

import asyncio
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, Optional

from ..config import SESSION_IDLE_TIMEOUT_SECONDS, SESSION_SWEEP_INTERVAL_SECONDS
from ..order_state import ConversationSession


logger = logging.getLogger(__name__)


@dataclass
class _TurnLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class SessionStore:
    """In-memory conversation sessions with idle expiry."""

    def __init__(
        self,
        idle_timeout_seconds: float = SESSION_IDLE_TIMEOUT_SECONDS,
        sweep_interval_seconds: float = SESSION_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._idle_timeout_seconds = idle_timeout_seconds
        self._sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock

        self._sessions: Dict[str, ConversationSession] = {}
        self._turn_locks: Dict[str, _TurnLock] = {}
        self._lock = threading.Lock()

        self._sweep_task: Optional[asyncio.Task] = None

    # =========================================================================
    # Access
    # =========================================================================

    def get_or_create(self, session_id: str) -> ConversationSession:
        """
        Return the session for session_id, creating an empty one if needed.

        Refreshes the session's last-activity timestamp.
        """
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = ConversationSession(session_id=session_id, last_activity=now)
                self._sessions[session_id] = session
                logger.debug("Created session %s", session_id[:8])
            else:
                session.last_activity = now
            return session

    def get(self, session_id: str) -> Optional[ConversationSession]:
        """Return the session without creating or touching it."""
        with self._lock:
            return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        """Remove a session. Returns True if it existed."""
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.debug("Deleted session %s", session_id[:8])
        return removed is not None

    @contextmanager
    def lock(self, session_id: str) -> Iterator[None]:
        """
        Hold the mutex that serializes turns for session_id.

        The mutex is reference counted and outlives the session while any
        turn holds or waits on it, so a turn that finalizes (and deletes)
        its own session still releases it cleanly.
        """
        with self._lock:
            entry = self._turn_locks.get(session_id)
            if entry is None:
                entry = _TurnLock()
                self._turn_locks[session_id] = entry
            entry.users += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._lock:
                entry.users -= 1
                if entry.users == 0:
                    self._turn_locks.pop(session_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    # =========================================================================
    # Expiry
    # =========================================================================

    def sweep_expired(self) -> int:
        """
        Remove sessions idle for longer than the timeout.

        Iterates over a snapshot of the map so deletion is safe.

        Returns:
            int: Number of sessions removed
        """
        now = self._clock()
        dropped_lines = 0
        expired = []

        with self._lock:
            for sid, session in list(self._sessions.items()):
                if now - session.last_activity > self._idle_timeout_seconds:
                    expired.append(sid)
                    dropped_lines += len(session.items) + (1 if session.pending_item else 0)

            for sid in expired:
                del self._sessions[sid]

        if expired:
            logger.info(
                "Swept %d idle sessions (%d unfinished order lines dropped)",
                len(expired), dropped_lines,
            )

        return len(expired)

    async def start_background_sweep(self) -> None:
        """Start the periodic idle-session sweep on the running event loop."""
        if self._sweep_task is not None:
            return
        self._sweep_task = asyncio.create_task(self._background_sweep_loop())
        logger.info(
            "Started session sweep (every %ss, idle timeout %ss)",
            self._sweep_interval_seconds, self._idle_timeout_seconds,
        )

    async def stop_background_sweep(self) -> None:
        """Stop the periodic sweep."""
        if self._sweep_task:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
            logger.info("Stopped session sweep")

    async def _background_sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval_seconds)
            try:
                self.sweep_expired()
            except Exception as e:
                logger.error("Error in session sweep: %s", e, exc_info=True)

    # =========================================================================
    # Maintenance
    # =========================================================================

    def clear(self) -> int:
        """
        Remove all sessions. Useful for testing and maintenance.

        Returns:
            int: Number of sessions that were present
        """
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
        logger.info("Cleared %d sessions", count)
        return count

    def get_stats(self) -> Dict[str, Any]:
        """
        Returns:
            Dict with size, idle_timeout_seconds, sweep_interval_seconds and
            the idle time of the oldest session (None if empty)
        """
        now = self._clock()
        with self._lock:
            idle_times = [now - s.last_activity for s in self._sessions.values()]
        return {
            "size": len(idle_times),
            "idle_timeout_seconds": self._idle_timeout_seconds,
            "sweep_interval_seconds": self._sweep_interval_seconds,
            "max_idle_seconds": round(max(idle_times), 1) if idle_times else None,
        }
