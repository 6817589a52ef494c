"""Time-bucketed aggregation of the session history.

Everything here is a pure function over a list of sessions. Local calendar
positions (hour of day, weekday, day of month) are computed in one reporting
timezone that the caller resolves once and passes in.
"""

import calendar
import math
from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from focus_ledger.core.rewards import compute_stats
from focus_ledger.models.category import Category
from focus_ledger.models.report import (
    DayCell,
    HourBucket,
    MonthHeatmap,
    Report,
    WeekdayBucket,
)
from focus_ledger.models.session import LedgerState, Session

UNCATEGORIZED = "No category"

PALETTE = (
    "#2563eb",  # blue
    "#16a34a",  # green
    "#f97316",  # orange
    "#e11d48",  # pink-red
    "#9333ea",  # purple
    "#14b8a6",  # teal
    "#f59e0b",  # amber
    "#3b82f6",  # light blue
    "#84cc16",  # lime
    "#ef4444",  # red
)

WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def category_names(categories: Iterable[Category]) -> Dict[str, str]:
    return {c.id: c.name for c in categories}


def session_label(session: Session, names: Mapping[str, str]) -> str:
    """Display name for a session's category, or the uncategorized label."""
    if session.category_id is None:
        return UNCATEGORIZED
    return names.get(session.category_id, UNCATEGORIZED)


def newest_first(sessions: Iterable[Session]) -> List[Session]:
    return sorted(sessions, key=lambda s: s.start_time, reverse=True)


def assign_colors(
    sessions: Iterable[Session], names: Mapping[str, str]
) -> Dict[str, str]:
    """Map each category label to a palette color in first-seen order.

    Sessions are walked newest first, the order the history is listed in.
    The palette cycles after ten labels.
    The returned dict preserves first-seen order, which is also the
    stacking order for the bar views.
    """
    colors: Dict[str, str] = {}
    for session in newest_first(sessions):
        label = session_label(session, names)
        if label not in colors:
            colors[label] = PALETTE[len(colors) % len(PALETTE)]
    return colors


def round_hours(duration_sec: int) -> float:
    """Seconds to hours rounded to two decimals, halves rounding up."""
    return math.floor(duration_sec / 3600 * 100 + 0.5) / 100


def local_start(session: Session, tz: tzinfo) -> datetime:
    return session.start_time.astimezone(tz)


def sunday_index(day: date) -> int:
    """Weekday with Sunday as 0."""
    return (day.weekday() + 1) % 7


def week_start(today: date) -> date:
    """The most recent Sunday on or before ``today``."""
    return today - timedelta(days=sunday_index(today))


def hourly_view(
    sessions: Iterable[Session],
    names: Mapping[str, str],
    labels: Sequence[str],
    now: datetime,
    tz: tzinfo,
) -> List[HourBucket]:
    """24 hour buckets for the current local day, stacked by category.

    A session counts wholly toward the hour it started in, even if it runs
    past that hour or past midnight.
    """
    buckets = [
        HourBucket(hour=h, hours={label: 0.0 for label in labels}) for h in range(24)
    ]
    today = now.astimezone(tz).date()

    for session in sessions:
        start = local_start(session, tz)
        if start.date() != today:
            continue
        hours = buckets[start.hour].hours
        label = session_label(session, names)
        hours[label] = hours.get(label, 0.0) + round_hours(session.duration_sec)

    return buckets


def weekly_view(
    sessions: Iterable[Session],
    names: Mapping[str, str],
    labels: Sequence[str],
    now: datetime,
    tz: tzinfo,
) -> List[WeekdayBucket]:
    """Seven buckets Sunday through Saturday for the current local week.

    Only sessions started between Sunday at local midnight and ``now`` are
    counted. Later weekdays stay at zero.
    """
    buckets = [
        WeekdayBucket(
            weekday=i,
            label=WEEKDAY_LABELS[i],
            hours={label: 0.0 for label in labels},
        )
        for i in range(7)
    ]
    first = week_start(now.astimezone(tz).date())

    for session in sessions:
        day = local_start(session, tz).date()
        if day < first or session.start_time > now:
            continue
        hours = buckets[sunday_index(day)].hours
        label = session_label(session, names)
        hours[label] = hours.get(label, 0.0) + round_hours(session.duration_sec)

    return buckets


def monthly_heatmap(
    sessions: Iterable[Session], now: datetime, tz: tzinfo
) -> MonthHeatmap:
    """Day-of-month totals for the current local month.

    The grid starts with blank cells for the weekdays before day 1 so that
    columns line up Sunday through Saturday. Intensity is
    ``hours / max(busiest day, 1)``.
    """
    local_now = now.astimezone(tz)
    year, month = local_now.year, local_now.month
    monday_first, days_in_month = calendar.monthrange(year, month)
    offset = (monday_first + 1) % 7

    totals = [0.0] * (days_in_month + 1)
    for session in sessions:
        start = local_start(session, tz)
        if start.year == year and start.month == month:
            totals[start.day] += session.duration_sec / 3600

    max_hours = max(totals)
    scale = max(max_hours, 1)
    cells = [DayCell(day=0) for _ in range(offset)]
    cells.extend(
        DayCell(day=day, hours=totals[day], intensity=totals[day] / scale)
        for day in range(1, days_in_month + 1)
    )
    return MonthHeatmap(year=year, month=month, cells=cells, max_hours=max_hours)


def category_totals(
    sessions: Iterable[Session],
    names: Mapping[str, str],
    predicate: Optional[Callable[[Session], bool]] = None,
) -> Dict[str, float]:
    """Minutes per category label for sessions matching ``predicate``."""
    totals: Dict[str, float] = {}
    for session in sessions:
        if predicate is not None and not predicate(session):
            continue
        label = session_label(session, names)
        totals[label] = totals.get(label, 0.0) + session.duration_sec / 60
    return totals


def build_report(
    state: LedgerState, now: datetime, tz: tzinfo, tz_name: str = ""
) -> Report:
    """Produce every view from one snapshot with one shared color map."""
    names = category_names(state.categories)
    colors = assign_colors(state.sessions, names)
    labels = list(colors)

    return Report(
        generated_at=now,
        timezone=tz_name or str(tz),
        colors=colors,
        hourly=hourly_view(state.sessions, names, labels, now, tz),
        weekly=weekly_view(state.sessions, names, labels, now, tz),
        monthly=monthly_heatmap(state.sessions, now, tz),
        stats=compute_stats(state.sessions),
    )
