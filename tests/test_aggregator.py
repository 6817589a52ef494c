"""Tests for the hourly, weekly and monthly views and category colors."""

from datetime import datetime, timedelta, timezone

import pytest

from focus_ledger.config import resolve_timezone
from focus_ledger.core.aggregator import (
    PALETTE,
    UNCATEGORIZED,
    assign_colors,
    build_report,
    category_names,
    category_totals,
    hourly_view,
    monthly_heatmap,
    round_hours,
    week_start,
    weekly_view,
)
from focus_ledger.core.errors import ValidationError
from focus_ledger.models.category import Category
from focus_ledger.models.session import LedgerState, Session

UTC = timezone.utc
MSK = timezone(timedelta(hours=3))

# Wednesday
NOW = datetime(2024, 1, 10, 12, 0, tzinfo=UTC)

WORK = Category(id="work", name="Work")
STUDY = Category(id="study", name="Study")
NAMES = category_names([WORK, STUDY])


def make_session(start, duration_sec, category=None):
    return Session(
        category_id=category.id if category else None,
        start_time=start,
        end_time=start + timedelta(seconds=duration_sec),
        duration_sec=duration_sec,
    )


def at(day, hour, minute=0, tz=UTC):
    return datetime(2024, 1, day, hour, minute, tzinfo=tz)


class TestColors:
    def test_first_seen_order(self):
        sessions = [
            make_session(at(10, 9), 60, STUDY),
            make_session(at(3, 9), 60, WORK),
            make_session(at(5, 9), 60),
        ]

        colors = assign_colors(sessions, NAMES)

        assert list(colors) == ["Study", UNCATEGORIZED, "Work"]
        assert colors == {
            "Study": PALETTE[0],
            UNCATEGORIZED: PALETTE[1],
            "Work": PALETTE[2],
        }

    def test_newest_session_gets_first_color(self):
        sessions = [
            make_session(at(1, 9), 60),
            make_session(at(9, 9), 60, WORK),
        ]
        colors = assign_colors(sessions, NAMES)
        assert colors == {"Work": PALETTE[0], UNCATEGORIZED: PALETTE[1]}

    def test_palette_cycles_after_ten(self):
        categories = [Category(id=f"c{i}", name=f"Cat {i}") for i in range(11)]
        sessions = [
            make_session(at(1, 0) + timedelta(hours=i), 60, c)
            for i, c in enumerate(categories)
        ]

        colors = assign_colors(sessions, category_names(categories))

        assert len(set(colors.values())) == 10
        # Cat 10 is newest and takes the first color, Cat 0 wraps around to it
        assert colors["Cat 10"] == colors["Cat 0"] == PALETTE[0]
        assert colors["Cat 1"] == PALETTE[9]

    def test_zero_duration_session_still_claims_color(self):
        sessions = [
            make_session(at(1, 8), 0, STUDY),
            make_session(at(1, 9), 3600, WORK),
        ]
        assert list(assign_colors(sessions, NAMES)) == ["Work", "Study"]

    def test_dangling_category_is_uncategorized(self):
        ghost = Category(id="ghost", name="Ghost")
        colors = assign_colors([make_session(at(1, 9), 60, ghost)], NAMES)
        assert list(colors) == [UNCATEGORIZED]


def test_round_hours():
    assert round_hours(5400) == 1.5
    assert round_hours(2700) == 0.75
    assert round_hours(60) == 0.02
    assert round_hours(1) == 0.0
    assert round_hours(0) == 0.0


class TestHourlyView:
    def test_buckets_today_by_start_hour(self):
        sessions = [
            make_session(at(10, 9, 15), 5400, WORK),
            make_session(at(10, 9, 40), 900, WORK),
            make_session(at(10, 14), 1800),
            make_session(at(9, 23, 30), 3600, WORK),
            make_session(at(11, 1), 3600, STUDY),
        ]
        labels = ["Work", "Study", UNCATEGORIZED]

        buckets = hourly_view(sessions, NAMES, labels, NOW, UTC)

        assert [b.hour for b in buckets] == list(range(24))
        assert buckets[9].hours == {"Work": 1.75, "Study": 0.0, UNCATEGORIZED: 0.0}
        assert buckets[14].hours[UNCATEGORIZED] == 0.5
        assert buckets[23].total == 0.0
        assert buckets[1].total == 0.0
        assert all(set(b.hours) == set(labels) for b in buckets)

    def test_session_spanning_midnight_stays_in_start_hour(self):
        session = make_session(at(10, 23, 30), 7200, WORK)
        buckets = hourly_view([session], NAMES, ["Work"], NOW, UTC)
        assert buckets[23].hours["Work"] == 2.0

    def test_totals_reconcile_with_todays_sessions(self):
        sessions = [
            make_session(at(10, 8, 5), 1234, WORK),
            make_session(at(10, 16, 45), 4321, STUDY),
            make_session(at(9, 16, 45), 999, STUDY),
        ]

        buckets = hourly_view(sessions, NAMES, ["Work", "Study"], NOW, UTC)

        expected = (1234 + 4321) / 3600
        assert sum(b.total for b in buckets) == pytest.approx(expected, abs=0.01)

    def test_reporting_timezone_moves_day_and_hour(self):
        # 22:30 UTC on the 9th is 01:30 on the 10th in UTC+3
        session = make_session(at(9, 22, 30), 3600, WORK)

        in_utc = hourly_view([session], NAMES, ["Work"], NOW, UTC)
        in_msk = hourly_view([session], NAMES, ["Work"], NOW, MSK)

        assert sum(b.total for b in in_utc) == 0.0
        assert in_msk[1].hours["Work"] == 1.0

    def test_row_shape(self):
        buckets = hourly_view(
            [make_session(at(10, 9), 3600, WORK)], NAMES, ["Work"], NOW, UTC
        )
        assert buckets[9].as_row() == {"hour": 9, "Work": 1.0}


class TestWeeklyView:
    def test_week_start_is_sunday(self):
        assert week_start(NOW.date()).isoformat() == "2024-01-07"
        sunday = datetime(2024, 1, 7).date()
        assert week_start(sunday) == sunday

    def test_buckets_current_week(self):
        sessions = [
            make_session(at(7, 0, 0), 3600, WORK),  # Sunday midnight
            make_session(at(6, 23, 59), 3600, WORK),  # Saturday before
            make_session(at(10, 9), 1800, STUDY),
            make_session(at(10, 11, 30), 1800, STUDY),
        ]

        buckets = weekly_view(sessions, NAMES, ["Work", "Study"], NOW, UTC)

        assert [b.label for b in buckets] == [
            "Sun",
            "Mon",
            "Tue",
            "Wed",
            "Thu",
            "Fri",
            "Sat",
        ]
        assert buckets[0].hours == {"Work": 1.0, "Study": 0.0}
        assert buckets[3].hours["Study"] == 1.0
        assert sum(b.total for b in buckets) == 2.0
        assert buckets[0].as_row() == {"day": "Sun", "Work": 1.0, "Study": 0.0}

    def test_sessions_after_now_are_not_counted(self):
        sessions = [
            make_session(at(10, 11), 3600, WORK),
            make_session(at(10, 18), 3600, WORK),
            make_session(at(12, 9), 3600, WORK),
        ]

        buckets = weekly_view(sessions, NAMES, ["Work"], NOW, UTC)

        assert buckets[3].hours["Work"] == 1.0
        assert buckets[5].hours["Work"] == 0.0
        assert sum(b.total for b in buckets) == 1.0

    def test_week_boundary_follows_reporting_timezone(self):
        # 21:30 UTC Saturday is 00:30 Sunday in UTC+3
        session = make_session(at(6, 21, 30), 3600, WORK)

        assert sum(b.total for b in weekly_view([session], NAMES, [], NOW, UTC)) == 0
        msk = weekly_view([session], NAMES, [], NOW, MSK)
        assert msk[0].hours == {"Work": 1.0}


class TestMonthlyHeatmap:
    def test_grid_alignment(self):
        # January 2024 starts on a Monday
        heatmap = monthly_heatmap([], NOW, UTC)

        assert (heatmap.year, heatmap.month) == (2024, 1)
        assert len(heatmap.cells) == 1 + 31
        assert heatmap.cells[0].is_placeholder
        assert [c.day for c in heatmap.cells[1:]] == list(range(1, 32))
        assert len(heatmap.weeks()[0]) == 7

    def test_month_starting_on_sunday_has_no_placeholders(self):
        september = datetime(2024, 9, 15, tzinfo=UTC)
        heatmap = monthly_heatmap([], september, UTC)
        assert heatmap.cells[0].day == 1
        assert len(heatmap.cells) == 30

    def test_hours_and_intensity(self):
        sessions = [
            make_session(at(5, 9), 7200, WORK),
            make_session(at(5, 20), 3600, STUDY),
            make_session(at(6, 9), 5400),
            make_session(datetime(2024, 2, 1, 9, tzinfo=UTC), 36000, WORK),
        ]

        heatmap = monthly_heatmap(sessions, NOW, UTC)
        by_day = {c.day: c for c in heatmap.cells if not c.is_placeholder}

        assert by_day[5].hours == 3.0
        assert by_day[5].intensity == 1.0
        assert by_day[6].hours == 1.5
        assert by_day[6].intensity == 0.5
        assert by_day[7].intensity == 0.0
        assert heatmap.max_hours == 3.0

    def test_small_totals_use_denominator_of_one(self):
        heatmap = monthly_heatmap([make_session(at(5, 9), 1800)], NOW, UTC)
        by_day = {c.day: c for c in heatmap.cells}
        assert by_day[5].intensity == 0.5

    def test_empty_month_is_flat(self):
        heatmap = monthly_heatmap([], NOW, UTC)
        assert heatmap.max_hours == 0.0
        assert all(c.intensity == 0.0 for c in heatmap.cells)


def test_category_totals_with_predicate():
    sessions = [
        make_session(at(10, 9), 600, WORK),
        make_session(at(10, 10), 1200, WORK),
        make_session(at(9, 9), 600, STUDY),
        make_session(at(10, 11), 300),
    ]

    totals = category_totals(
        sessions, NAMES, lambda s: s.start_time.date() == NOW.date()
    )

    assert totals == {"Work": 30.0, UNCATEGORIZED: 5.0}


def test_report_shares_colors_across_views():
    state = LedgerState(
        categories=[WORK, STUDY],
        sessions=[
            make_session(at(8, 9), 3600, WORK),
            make_session(at(10, 11), 5400, STUDY),
        ],
    )

    report = build_report(state, NOW, UTC, "UTC")

    assert report.colors == {"Study": PALETTE[0], "Work": PALETTE[1]}
    assert list(report.hourly[0].hours) == ["Study", "Work"]
    assert list(report.weekly[0].hours) == ["Study", "Work"]
    assert report.weekly[1].hours["Work"] == 1.0
    assert report.hourly[11].hours["Study"] == 1.5
    assert report.stats.total_seconds == 9000
    assert report.stats.coins == 2
    assert report.timezone == "UTC"


def test_named_timezone():
    try:
        tz = resolve_timezone("Europe/Moscow")
    except ValidationError:
        pytest.skip("IANA timezone database not available")

    session = make_session(at(9, 22, 30), 3600, WORK)
    buckets = hourly_view([session], NAMES, ["Work"], NOW, tz)
    assert buckets[1].hours["Work"] == 1.0
