"""
Tests para ScheduleAnalyticsService.

Las métricas se derivan de la instantánea del store; los cancelados no
cuentan como actividad pero sí en los denominadores de las tasas.
"""

from datetime import datetime, timezone

import pytest

from fitschedule.schemas.analytics import DAY_NAMES, MONTH_NAMES
from tests.factories import MONDAY, at, make_settings, make_store, raw_event

TRAINERS = [{"trainerId": "t1", "trainerName": "Ana López"}]


def _ten_events():
    """6 completados, 2 cancelados y 2 programados, todos el lunes de 08:00 a 18:00."""
    statuses = ["completed"] * 6 + ["cancelled"] * 2 + ["scheduled"] * 2
    return [
        raw_event(f"e{i}", "t1", at(MONDAY, 8 + i), at(MONDAY, 9 + i), status=status)
        for i, status in enumerate(statuses)
    ]


class TestScheduleAnalytics:

    @pytest.mark.asyncio
    async def test_completion_and_cancellation_rates(self):
        store = await make_store(events=_ten_events(), trainers=TRAINERS)

        analytics = store.analytics.get_analytics(now=at(MONDAY, 20))
        trainer_stats = analytics.trainer_stats[0]

        assert analytics.summary.completion_rate == pytest.approx(60.0)
        assert trainer_stats.cancellation_rate == pytest.approx(20.0)
        assert trainer_stats.total_events == 10
        assert trainer_stats.completed_events == 6
        assert trainer_stats.cancelled_events == 2

    @pytest.mark.asyncio
    async def test_utilization_uses_weekly_baseline(self):
        store = await make_store(events=_ten_events(), trainers=TRAINERS)

        stats = store.analytics.get_trainer_stats(now=at(MONDAY, 20))

        assert stats[0].this_week_events == 10
        assert stats[0].utilization_rate == pytest.approx(25.0)

    @pytest.mark.asyncio
    async def test_type_stats_plus_cancelled_equals_total(self):
        store = await make_store(events=_ten_events(), trainers=TRAINERS)

        analytics = store.analytics.get_analytics(now=at(MONDAY, 20))

        assert analytics.event_type_stats == {"training": 8, "consultation": 0, "group": 0, "maintenance": 0}
        assert analytics.summary.total_events == sum(analytics.event_type_stats.values()) + 2

    @pytest.mark.asyncio
    async def test_histograms_exclude_cancelled(self):
        store = await make_store(events=_ten_events(), trainers=TRAINERS)

        time_stats = store.analytics.get_time_stats()

        assert set(time_stats.busy_hours) == set(range(24))
        assert set(time_stats.busy_days) == set(range(7))
        assert time_stats.busy_hours[14] == 0
        assert time_stats.busy_hours[16] == 1
        assert time_stats.busy_days[1] == 8

    @pytest.mark.asyncio
    async def test_peak_ties_go_to_smallest_key(self):
        store = await make_store(events=_ten_events(), trainers=TRAINERS)

        summary = store.analytics.get_summary()

        assert summary.peak_hour == 8
        assert summary.peak_day == 1
        assert summary.active_events == 8
        assert summary.average_events_per_trainer == pytest.approx(10.0)

    @pytest.mark.asyncio
    async def test_empty_snapshot_uses_fallbacks(self):
        store = await make_store(events=[], trainers=[])

        analytics = store.analytics.get_analytics()

        assert analytics.summary.peak_hour == 10
        assert analytics.summary.peak_day == 1
        assert analytics.summary.completion_rate == 0
        assert analytics.summary.average_events_per_trainer == 0
        assert analytics.trainer_stats == []

    @pytest.mark.asyncio
    async def test_weekly_utilization_and_monthly_revenue(self):
        store = await make_store(events=_ten_events(), trainers=TRAINERS)

        weekly = store.analytics.get_weekly_utilization()
        monthly = store.analytics.get_monthly_stats()

        assert [day.day_name for day in weekly] == DAY_NAMES
        assert weekly[1].events == 8
        assert weekly[1].hours == pytest.approx(8.0)
        assert [month.month_name for month in monthly] == MONTH_NAMES
        assert monthly[5].events == 8
        assert monthly[5].revenue == 8 * 1500

    @pytest.mark.asyncio
    async def test_revenue_price_is_configurable(self):
        store = await make_store(events=_ten_events(), trainers=TRAINERS, settings=make_settings(EVENT_UNIT_PRICE=20))
        assert store.analytics.get_monthly_stats()[5].revenue == 160

    @pytest.mark.asyncio
    async def test_week_starts_on_monday_and_month_is_bounded(self):
        events = [
            raw_event("sun", "t1", at(1, 10), at(1, 11)),  # domingo 1 de junio
            raw_event("mon", "t1", at(MONDAY, 10), at(MONDAY, 11)),
            raw_event("next", "t1", at(MONDAY + 7, 10), at(MONDAY + 7, 11)),  # lunes siguiente
            raw_event("may", "t1", datetime(2025, 5, 31, 10, tzinfo=timezone.utc), datetime(2025, 5, 31, 11, tzinfo=timezone.utc)),
        ]
        store = await make_store(events=events, trainers=TRAINERS)

        stats = store.analytics.get_trainer_stats(now=at(MONDAY, 12))[0]

        assert stats.this_week_events == 1
        assert stats.this_month_events == 3

    @pytest.mark.asyncio
    async def test_histograms_use_gym_timezone(self):
        # Lunes 22:30 UTC es martes 00:30 en Madrid
        events = [raw_event("late", "t1", at(MONDAY, 22, 30), at(MONDAY, 23, 30))]
        store = await make_store(events=events, trainers=TRAINERS, settings=make_settings(GYM_TIMEZONE="Europe/Madrid"))

        time_stats = store.analytics.get_time_stats()

        assert time_stats.busy_hours[0] == 1
        assert time_stats.busy_days[2] == 1


class TestDashboardViews:

    @pytest.mark.asyncio
    async def test_schedule_stats(self):
        store = await make_store(events=_ten_events(), trainers=TRAINERS)

        stats = store.analytics.get_schedule_stats(now=at(MONDAY, 12, 30))

        assert stats.total == 10
        assert stats.today == stats.this_week == stats.this_month == 10
        assert stats.upcoming == 3
        assert (stats.completed, stats.cancelled, stats.scheduled, stats.confirmed) == (6, 2, 2, 0)

    @pytest.mark.asyncio
    async def test_trainer_overview(self):
        store = await make_store(events=_ten_events(), trainers=TRAINERS)

        overview = store.analytics.get_trainer_overview("t1", now=at(MONDAY, 12, 30))

        assert overview.trainer.trainer_name == "Ana López"
        assert len(overview.events) == 10
        assert [event.id for event in overview.upcoming_events] == ["e5", "e8", "e9"]
        assert len(overview.today_events) == 10
