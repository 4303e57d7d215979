"""
Esquemas para las estadísticas de la agenda.

Todos los valores se derivan de la instantánea actual del store; ninguno de
estos modelos guarda estado propio.
"""

from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from fitschedule.schemas.schedule import ScheduleEvent, TrainerSchedule

DAY_NAMES = ["Dom", "Lun", "Mar", "Mié", "Jue", "Vie", "Sáb"]
MONTH_NAMES = ["Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic"]


class TrainerStats(BaseModel):
    """Métricas por entrenador."""
    trainer_id: str
    trainer_name: str
    total_events: int = Field(..., ge=0)
    this_week_events: int = Field(..., ge=0)
    this_month_events: int = Field(..., ge=0)
    completed_events: int = Field(..., ge=0)
    cancelled_events: int = Field(..., ge=0)
    cancellation_rate: float = Field(..., ge=0, le=100, description="Porcentaje de eventos cancelados")
    utilization_rate: float = Field(..., ge=0, description="Eventos de la semana sobre la jornada base, en porcentaje")


class TimeStats(BaseModel):
    """Histogramas de eventos activos por hora (0-23) y día de la semana (0=Domingo)."""
    busy_hours: Dict[int, int]
    busy_days: Dict[int, int]


class WeeklyUtilization(BaseModel):
    day: int = Field(..., ge=0, le=6)
    day_name: str
    events: int = Field(..., ge=0)
    hours: float = Field(..., ge=0)


class MonthlyStats(BaseModel):
    month: int = Field(..., ge=0, le=11)
    month_name: str
    events: int = Field(..., ge=0)
    revenue: float = Field(..., ge=0, description="Estimación: eventos * precio unitario")


class AnalyticsSummary(BaseModel):
    total_events: int
    active_events: int
    completion_rate: float = Field(..., ge=0, le=100)
    average_events_per_trainer: float
    peak_hour: int = Field(..., ge=0, le=23)
    peak_day: int = Field(..., ge=0, le=6)


class ScheduleAnalytics(BaseModel):
    generated_at: datetime
    trainer_stats: List[TrainerStats]
    time_stats: TimeStats
    event_type_stats: Dict[str, int]
    weekly_utilization: List[WeeklyUtilization]
    monthly_stats: List[MonthlyStats]
    summary: AnalyticsSummary


class ScheduleStats(BaseModel):
    """Contadores del dashboard de agenda."""
    total: int
    today: int
    this_week: int
    this_month: int
    upcoming: int
    completed: int
    cancelled: int
    confirmed: int
    scheduled: int


class TrainerOverview(BaseModel):
    trainer: Optional[TrainerSchedule] = None
    events: List[ScheduleEvent] = Field(default_factory=list)
    upcoming_events: List[ScheduleEvent] = Field(default_factory=list)
    today_events: List[ScheduleEvent] = Field(default_factory=list)


class DebugStats(BaseModel):
    total_events: int
    active_events: int
    trainers_count: int
    loading: bool
    error: Optional[str] = None
