"""Session models for tracked time intervals."""

import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field

from .category import Category

ONE_SECOND = timedelta(seconds=1)


def whole_seconds(delta: timedelta) -> int:
    """Truncate a non-negative timedelta to whole seconds."""
    return max(0, delta // ONE_SECOND)


class Session(BaseModel):
    """A completed interval of tracked time."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    category_id: Optional[str] = None
    start_time: datetime
    end_time: datetime
    duration_sec: int = Field(ge=0)

    @property
    def duration_hours(self) -> float:
        return self.duration_sec / 3600


class ActiveSession(BaseModel):
    """The single in-progress interval. End and duration are derived at read time."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    category_id: Optional[str] = None
    start_time: datetime

    def elapsed_seconds(self, now: datetime) -> int:
        """Whole seconds elapsed since start, never negative."""
        return whole_seconds(now - self.start_time)

    def close(self, now: datetime) -> Session:
        """Convert into a completed session ending at ``now``."""
        return Session(
            category_id=self.category_id,
            start_time=self.start_time,
            end_time=now,
            duration_sec=self.elapsed_seconds(now),
        )


class LedgerState(BaseModel):
    """Everything the session store owns, persisted as one document."""

    categories: List[Category] = []
    sessions: List[Session] = []
    active_session: Optional[ActiveSession] = None
