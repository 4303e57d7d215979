"""
Servicio de estadísticas de agenda.

Calcula, sin estado propio, las métricas por entrenador, los histogramas por
hora y día de la semana, los conteos por tipo, la utilización semanal y el
resumen mensual con ingresos estimados. Los eventos cancelados se excluyen de
todas las métricas "activas" pero cuentan en los denominadores de las tasas
de completado y cancelación.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from fitschedule.core.config import Settings, get_settings
from fitschedule.core.timezone_utils import convert_utc_to_local, localize_wall_clock, weekday_index
from fitschedule.models.schedule import EventStatus, EventType
from fitschedule.schemas.analytics import (
    DAY_NAMES,
    MONTH_NAMES,
    AnalyticsSummary,
    MonthlyStats,
    ScheduleAnalytics,
    ScheduleStats,
    TimeStats,
    TrainerOverview,
    TrainerStats,
    WeeklyUtilization,
)
from fitschedule.schemas.schedule import ScheduleEvent
from fitschedule.services.conflicts import ScheduleSnapshot

logger = logging.getLogger(__name__)


def _percentage(part: int, total: int) -> float:
    return (part / total) * 100 if total > 0 else 0.0


def _argmax(histogram: Dict[int, int], default: int) -> int:
    """Clave con más eventos; en empate gana la menor. Sin eventos, `default`."""
    if not any(histogram.values()):
        return default
    return max(sorted(histogram), key=lambda key: histogram[key])


class ScheduleAnalyticsService:

    def __init__(self, snapshot: ScheduleSnapshot, settings: Optional[Settings] = None):
        self.snapshot = snapshot
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Periodos en la zona del gimnasio
    # ------------------------------------------------------------------

    def _local(self, dt: datetime) -> datetime:
        return convert_utc_to_local(dt, self.snapshot.gym_timezone)

    def _periods(self, now: Optional[datetime]) -> Dict[str, Tuple[datetime, datetime]]:
        """
        Intervalos semiabiertos de hoy, esta semana y este mes.

        La semana va del lunes a las 00:00 al lunes siguiente, así que los
        eventos de semanas futuras no cuentan como "esta semana".
        """
        tz_name = self.snapshot.gym_timezone
        local_now = self._local(now or datetime.now(timezone.utc))
        today = local_now.date()
        week_start = today - timedelta(days=today.weekday())
        month_start = today.replace(day=1)
        next_month = (month_start + timedelta(days=32)).replace(day=1)
        midnight = datetime.min.time()
        return {
            "today": (
                localize_wall_clock(today, midnight, tz_name),
                localize_wall_clock(today + timedelta(days=1), midnight, tz_name),
            ),
            "week": (
                localize_wall_clock(week_start, midnight, tz_name),
                localize_wall_clock(week_start + timedelta(days=7), midnight, tz_name),
            ),
            "month": (
                localize_wall_clock(month_start, midnight, tz_name),
                localize_wall_clock(next_month, midnight, tz_name),
            ),
        }

    @staticmethod
    def _count_in(events: List[ScheduleEvent], bounds: Tuple[datetime, datetime]) -> int:
        start, end = bounds
        return sum(1 for event in events if start <= event.start_time < end)

    # ------------------------------------------------------------------
    # Métricas
    # ------------------------------------------------------------------

    def get_trainer_stats(self, now: Optional[datetime] = None) -> List[TrainerStats]:
        periods = self._periods(now)
        stats = []
        for trainer in self.snapshot.trainers:
            events = self.snapshot.events_for(trainer.trainer_id)
            total = len(events)
            this_week = self._count_in(events, periods["week"])
            cancelled = sum(1 for event in events if event.status == EventStatus.CANCELLED)
            stats.append(TrainerStats(
                trainer_id=trainer.trainer_id,
                trainer_name=trainer.trainer_name,
                total_events=total,
                this_week_events=this_week,
                this_month_events=self._count_in(events, periods["month"]),
                completed_events=sum(1 for event in events if event.status == EventStatus.COMPLETED),
                cancelled_events=cancelled,
                cancellation_rate=_percentage(cancelled, total),
                utilization_rate=(this_week / self.settings.UTILIZATION_BASELINE_HOURS) * 100,
            ))
        return stats

    def _active_events(self) -> List[ScheduleEvent]:
        return [event for event in self.snapshot.events if event.is_active]

    def get_time_stats(self) -> TimeStats:
        busy_hours = {hour: 0 for hour in range(24)}
        busy_days = {day: 0 for day in range(7)}
        for event in self._active_events():
            local_start = self._local(event.start_time)
            busy_hours[local_start.hour] += 1
            busy_days[weekday_index(local_start)] += 1
        return TimeStats(busy_hours=busy_hours, busy_days=busy_days)

    def get_event_type_stats(self) -> Dict[str, int]:
        counts = Counter(event.type.value for event in self._active_events())
        return {event_type.value: counts.get(event_type.value, 0) for event_type in EventType}

    def get_weekly_utilization(self) -> List[WeeklyUtilization]:
        events_by_day = {day: 0 for day in range(7)}
        hours_by_day = {day: 0.0 for day in range(7)}
        for event in self._active_events():
            day = weekday_index(self._local(event.start_time))
            events_by_day[day] += 1
            hours_by_day[day] += event.duration_hours
        return [
            WeeklyUtilization(day=day, day_name=DAY_NAMES[day], events=events_by_day[day], hours=hours_by_day[day])
            for day in range(7)
        ]

    def get_monthly_stats(self) -> List[MonthlyStats]:
        counts = Counter(self._local(event.start_time).month - 1 for event in self._active_events())
        return [
            MonthlyStats(
                month=month,
                month_name=MONTH_NAMES[month],
                events=counts.get(month, 0),
                revenue=counts.get(month, 0) * self.settings.EVENT_UNIT_PRICE,
            )
            for month in range(12)
        ]

    def get_summary(self, time_stats: Optional[TimeStats] = None) -> AnalyticsSummary:
        events = self.snapshot.events
        trainers = self.snapshot.trainers
        time_stats = time_stats or self.get_time_stats()
        total = len(events)
        completed = sum(1 for event in events if event.status == EventStatus.COMPLETED)
        return AnalyticsSummary(
            total_events=total,
            active_events=sum(1 for event in events if event.is_active),
            completion_rate=_percentage(completed, total),
            average_events_per_trainer=total / len(trainers) if trainers else 0.0,
            peak_hour=_argmax(time_stats.busy_hours, self.settings.DEFAULT_PEAK_HOUR),
            peak_day=_argmax(time_stats.busy_days, self.settings.DEFAULT_PEAK_DAY),
        )

    def get_analytics(self, now: Optional[datetime] = None) -> ScheduleAnalytics:
        """Instantánea completa de estadísticas."""
        now = now or datetime.now(timezone.utc)
        time_stats = self.get_time_stats()
        return ScheduleAnalytics(
            generated_at=now,
            trainer_stats=self.get_trainer_stats(now),
            time_stats=time_stats,
            event_type_stats=self.get_event_type_stats(),
            weekly_utilization=self.get_weekly_utilization(),
            monthly_stats=self.get_monthly_stats(),
            summary=self.get_summary(time_stats),
        )

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def get_schedule_stats(self, now: Optional[datetime] = None) -> ScheduleStats:
        now = now or datetime.now(timezone.utc)
        periods = self._periods(now)
        events = self.snapshot.events
        by_status = Counter(event.status for event in events)
        return ScheduleStats(
            total=len(events),
            today=self._count_in(events, periods["today"]),
            this_week=self._count_in(events, periods["week"]),
            this_month=self._count_in(events, periods["month"]),
            upcoming=sum(1 for event in events if event.start_time > now and event.is_active),
            completed=by_status[EventStatus.COMPLETED],
            cancelled=by_status[EventStatus.CANCELLED],
            confirmed=by_status[EventStatus.CONFIRMED],
            scheduled=by_status[EventStatus.SCHEDULED],
        )

    def get_trainer_overview(self, trainer_id: str, now: Optional[datetime] = None) -> TrainerOverview:
        now = now or datetime.now(timezone.utc)
        today_bounds = self._periods(now)["today"]
        events = self.snapshot.events_for(trainer_id)
        upcoming = sorted(
            (event for event in events if event.start_time > now and event.is_active),
            key=lambda event: event.start_time,
        )
        start, end = today_bounds
        return TrainerOverview(
            trainer=self.snapshot.get_trainer(trainer_id),
            events=events,
            upcoming_events=upcoming,
            today_events=[event for event in events if start <= event.start_time < end],
        )
