"""Report models emitted by the aggregator for a presentation layer."""

from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel

from .stats import Stats


class HourBucket(BaseModel):
    """Hours tracked per category for one hour of the local day."""

    hour: int
    hours: Dict[str, float] = {}

    @property
    def total(self) -> float:
        return sum(self.hours.values())

    def as_row(self) -> Dict[str, Any]:
        """Flatten into a chart row: ``{"hour": 9, "Work": 1.5, ...}``."""
        return {"hour": self.hour, **self.hours}


class WeekdayBucket(BaseModel):
    """Hours tracked per category for one weekday, Sunday first."""

    weekday: int
    label: str
    hours: Dict[str, float] = {}

    @property
    def total(self) -> float:
        return sum(self.hours.values())

    def as_row(self) -> Dict[str, Any]:
        return {"day": self.label, **self.hours}


class DayCell(BaseModel):
    """One cell of the month grid. ``day == 0`` marks a leading placeholder."""

    day: int
    hours: float = 0.0
    intensity: float = 0.0

    @property
    def is_placeholder(self) -> bool:
        return self.day == 0


class MonthHeatmap(BaseModel):
    """Calendar grid for one month aligned to Sunday-first weekday columns."""

    year: int
    month: int
    cells: List[DayCell]
    max_hours: float

    def weeks(self) -> List[List[DayCell]]:
        """Split the cells into rows of seven."""
        return [self.cells[i : i + 7] for i in range(0, len(self.cells), 7)]


class Report(BaseModel):
    """All views produced by one report generation over a single snapshot."""

    generated_at: datetime
    timezone: str
    colors: Dict[str, str]
    hourly: List[HourBucket]
    weekly: List[WeekdayBucket]
    monthly: MonthHeatmap
    stats: Stats
