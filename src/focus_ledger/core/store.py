"""Session store: sole owner of categories, sessions and the active session."""

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import pydantic

from focus_ledger.core.errors import ValidationError
from focus_ledger.core.filelock import lock_path_for, locked
from focus_ledger.models.category import Category
from focus_ledger.models.session import ActiveSession, LedgerState, Session

logger = logging.getLogger(__name__)


class SessionStore:
    """Holds the ledger state and serializes every mutation.

    All writers go through :meth:`transaction`, which holds a re-entrant lock
    for the whole check-then-act sequence. Readers take :meth:`snapshot`, a deep
    copy made under the same lock, so they never see a half-applied change.

    With ``path`` set, the state lives in a single JSON document shared by
    every store opened on that path, including ones in other processes. A
    transaction holds an exclusive lock on a sibling ``.lock`` file, reloads
    the document, and saves it before releasing the lock. Reads outside a
    transaction reload under a shared lock. Without ``path`` the store is
    purely in-memory.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self._lock = threading.RLock()
        self._depth = 0
        self._state = LedgerState()
        with self._lock:
            self._current()

    # ---------- transactions ----------

    @contextmanager
    def transaction(self) -> Iterator[LedgerState]:
        """Yield the live state for mutation.

        If the block raises, the state is restored to what it was before the
        block and nothing is persisted. Nested transactions join the
        outermost one.
        """
        with self._lock:
            if self._depth:
                self._depth += 1
                try:
                    yield self._state
                finally:
                    self._depth -= 1
                return

            with self._file_lock():
                self._reload()
                backup = self._state.model_copy(deep=True)
                self._depth = 1
                try:
                    yield self._state
                    self._save()
                except BaseException:
                    self._state = backup
                    raise
                finally:
                    self._depth = 0

    def snapshot(self) -> LedgerState:
        """Return a consistent deep copy of the current state."""
        with self._lock:
            return self._current().model_copy(deep=True)

    # ---------- reads ----------

    def list_categories(self) -> List[Category]:
        return self.snapshot().categories

    def get_category(self, category_id: str) -> Optional[Category]:
        with self._lock:
            category = find_by_id(self._current().categories, category_id)
            return category.model_copy() if category else None

    def list_sessions(self) -> List[Session]:
        return self.snapshot().sessions

    def get_session(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = find_by_id(self._current().sessions, session_id)
            return session.model_copy() if session else None

    def sessions_for_category(self, category_id: str) -> List[Session]:
        """Sessions referencing ``category_id``. The active session is not included."""
        with self._lock:
            return [
                s.model_copy()
                for s in self._current().sessions
                if s.category_id == category_id
            ]

    def active_session(self) -> Optional[ActiveSession]:
        with self._lock:
            active = self._current().active_session
            return active.model_copy() if active else None

    # ---------- persistence ----------

    @contextmanager
    def _file_lock(self, shared: bool = False) -> Iterator[None]:
        if self.path is None:
            yield
            return
        with locked(lock_path_for(self.path), shared=shared):
            yield

    def _current(self) -> LedgerState:
        """The state as other writers left it. Caller holds ``self._lock``.

        Inside a transaction the live, possibly uncommitted state is returned
        as is.
        """
        if not self._depth:
            with self._file_lock(shared=True):
                self._reload()
        return self._state

    def _reload(self) -> None:
        if self.path is not None:
            self._state = self._load()

    def _load(self) -> LedgerState:
        if self.path is None or not self.path.exists():
            return LedgerState()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            state = LedgerState.model_validate(data)
        except (json.JSONDecodeError, pydantic.ValidationError) as e:
            raise ValidationError(f"Corrupt state file {self.path}: {e}") from e

        logger.debug(
            "Loaded %d categories and %d sessions from %s",
            len(state.categories),
            len(state.sessions),
            self.path,
        )
        return state

    def _save(self) -> None:
        """Write the state atomically: temp file in the same directory, then replace."""
        if self.path is None:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self._state.model_dump(mode="json"), indent=2)

        fd, temp_path = tempfile.mkstemp(
            suffix=".tmp", prefix="state_", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(temp_path, self.path)
        except OSError:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

        logger.debug("Saved ledger state to %s", self.path)


def find_by_id(items, item_id):
    return next((item for item in items if item.id == item_id), None)
