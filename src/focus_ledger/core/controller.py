"""Session controller: the start/stop state machine and session edits."""

import logging
import math
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from focus_ledger.core.clock import to_instant, utc_now
from focus_ledger.core.errors import ConflictError, NotFoundError, ValidationError
from focus_ledger.core.store import SessionStore, find_by_id
from focus_ledger.models.session import ActiveSession, Session

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


def minutes_to_seconds(minutes: float) -> int:
    """Round minutes to whole seconds, halves rounding up."""
    if isinstance(minutes, bool) or not isinstance(minutes, (int, float)):
        raise ValidationError(f"Duration must be a number of minutes: {minutes!r}")
    if not math.isfinite(minutes) or minutes < 0:
        raise ValidationError(f"Duration must be a non-negative number: {minutes!r}")
    return math.floor(minutes * 60 + 0.5)


class SessionController:
    """The only component allowed to create or close the active session.

    Each operation runs as one store transaction, so the check-then-act
    sequences here are serialized against concurrent callers.
    """

    def __init__(self, store: SessionStore, clock: Clock = utc_now):
        self.store = store
        self.clock = clock

    def _now(self) -> datetime:
        return to_instant(self.clock())

    def _check_category(self, state, category_id: Optional[str]) -> None:
        if category_id is None:
            return
        if find_by_id(state.categories, category_id) is None:
            raise NotFoundError(f"category not found: {category_id}")

    # ---------- state machine ----------

    def start(self, category_id: Optional[str] = None) -> ActiveSession:
        """Start tracking. Fails if a session is already running."""
        with self.store.transaction() as state:
            if state.active_session is not None:
                logger.warning(
                    "Start rejected: session %s already running",
                    state.active_session.id,
                )
                raise ConflictError("session already running")
            self._check_category(state, category_id or None)

            active = ActiveSession(
                category_id=category_id or None, start_time=self._now()
            )
            state.active_session = active

        logger.info("Started session %s (category=%s)", active.id, active.category_id)
        return active.model_copy()

    def stop(self) -> Session:
        """Close the running session into a completed one ending now."""
        with self.store.transaction() as state:
            active = state.active_session
            if active is None:
                logger.warning("Stop rejected: no active session")
                raise NotFoundError("no active session")

            session = active.close(self._now())
            state.sessions.append(session)
            state.active_session = None

        logger.info("Stopped session %s after %ds", session.id, session.duration_sec)
        return session.model_copy()

    def current(self) -> Optional[ActiveSession]:
        return self.store.active_session()

    def elapsed_seconds(self) -> int:
        """Seconds on the running session, or 0 when idle."""
        active = self.current()
        return active.elapsed_seconds(self._now()) if active else 0

    # ---------- history ----------

    def list_sessions(self) -> List[Session]:
        """Completed sessions, newest start first."""
        sessions = self.store.list_sessions()
        return sorted(sessions, key=lambda s: s.start_time, reverse=True)

    def get_session(self, session_id: str) -> Session:
        session = self.store.get_session(session_id)
        if session is None:
            raise NotFoundError(f"session not found: {session_id}")
        return session

    def edit_session(
        self,
        session_id: str,
        duration_minutes=UNSET,
        category_id=UNSET,
        start_time=UNSET,
    ) -> Session:
        """Edit a completed session.

        The end time is always re-derived as ``start + duration``. Omitted
        fields keep their stored values; ``category_id=None`` explicitly
        clears the category.
        """
        duration_sec = None
        if duration_minutes is not UNSET and duration_minutes is not None:
            duration_sec = minutes_to_seconds(duration_minutes)
        new_start = None
        if start_time is not UNSET and start_time is not None:
            new_start = to_instant(start_time)

        with self.store.transaction() as state:
            session = find_by_id(state.sessions, session_id)
            if session is None:
                raise NotFoundError(f"session not found: {session_id}")
            if category_id is not UNSET:
                self._check_category(state, category_id)
                session.category_id = category_id

            if duration_sec is not None:
                session.duration_sec = duration_sec
            if new_start is not None:
                session.start_time = new_start
            session.end_time = session.start_time + timedelta(
                seconds=session.duration_sec
            )
            edited = session.model_copy()

        logger.info(
            "Edited session %s: start=%s duration=%ds category=%s",
            edited.id,
            edited.start_time.isoformat(),
            edited.duration_sec,
            edited.category_id,
        )
        return edited

    def delete_session(self, session_id: str) -> None:
        with self.store.transaction() as state:
            session = find_by_id(state.sessions, session_id)
            if session is None:
                raise NotFoundError(f"session not found: {session_id}")
            state.sessions.remove(session)

        logger.info("Deleted session %s", session_id)

    def suggest_category(self) -> Optional[str]:
        """Category to preselect for the next start.

        The running session's category, else that of the most recently
        started session, else the first registered category.
        """
        state = self.store.snapshot()
        if state.active_session is not None:
            return state.active_session.category_id
        if state.sessions:
            latest = max(state.sessions, key=lambda s: s.start_time)
            return latest.category_id
        if state.categories:
            return state.categories[0].id
        return None
