from typing import Any, Dict, Generic, List, Optional, TypeVar
from datetime import datetime, time
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from fitschedule.core.timezone_utils import normalize_to_utc, parse_hhmm
from fitschedule.models.schedule import EventType, EventStatus, RecurrenceType

DEFAULT_WORKING_DAYS = [1, 2, 3, 4, 5]  # Lunes a viernes (0=Domingo)


class CamelModel(BaseModel):
    """Base con alias camelCase, que es el formato del repositorio remoto."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _require_timezone(v: Optional[datetime], field_name: str) -> Optional[datetime]:
    if v is not None and (v.tzinfo is None or v.tzinfo.utcoffset(v) is None):
        raise ValueError(
            f"{field_name} debe incluir zona horaria (ej. 2025-06-30T12:00:00Z)"
        )
    return v


# Recurrencia: solo se guarda el descriptor, no se expande
class Recurrence(CamelModel):
    type: RecurrenceType = RecurrenceType.WEEKLY
    interval: int = Field(1, gt=0)
    end_date: Optional[datetime] = None


# Horario laboral de un entrenador
class WorkingHours(CamelModel):
    start: str = "09:00"
    end: str = "18:00"
    days: List[int] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS))

    @field_validator("start", "end")
    @classmethod
    def validate_hhmm(cls, v: str) -> str:
        if parse_hhmm(v) is None:
            raise ValueError("El formato de tiempo debe ser HH:MM (ejemplo: 09:30)")
        return v

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: List[int]) -> List[int]:
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Los días deben estar entre 0 (domingo) y 6 (sábado)")
        return v

    @model_validator(mode="after")
    def check_window(self):
        if self.start_time >= self.end_time:
            raise ValueError("end debe ser posterior a start")
        return self

    @property
    def start_time(self) -> time:
        return parse_hhmm(self.start)

    @property
    def end_time(self) -> time:
        return parse_hhmm(self.end)

    def works_on(self, weekday: int) -> bool:
        return weekday in self.days


class TrainerSchedule(CamelModel):
    """Entrenador con sus restricciones horarias. Sus eventos se derivan del store."""
    trainer_id: str
    trainer_name: str = "Unknown trainer"
    trainer_role: str = "Trainer"
    working_hours: WorkingHours = Field(default_factory=WorkingHours)


class ScheduleEvent(CamelModel):
    """Evento canónico tal como lo mantiene el store."""
    id: str = Field(..., alias="_id")
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: EventType = EventType.TRAINING
    start_time: datetime
    end_time: datetime
    trainer_id: str
    trainer_name: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    status: EventStatus = EventStatus.SCHEDULED
    location: Optional[str] = None
    notes: Optional[str] = None
    recurring: Optional[Recurrence] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    created_by: str = "system"

    @model_validator(mode="after")
    def check_interval(self):
        if self.start_time >= self.end_time:
            raise ValueError("end_time debe ser posterior a start_time")
        return self

    @property
    def is_active(self) -> bool:
        return self.status != EventStatus.CANCELLED

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 3600

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Solapamiento semiabierto: eventos consecutivos no se solapan."""
        return start < self.end_time and end > self.start_time

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


# Esquema para crear un evento
class EventCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    type: EventType = EventType.TRAINING
    start_time: datetime
    end_time: datetime
    trainer_id: str = Field(..., min_length=1)
    trainer_name: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    status: EventStatus = EventStatus.SCHEDULED
    location: Optional[str] = None
    notes: Optional[str] = None
    recurring: Optional[Recurrence] = None
    created_by: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    @field_validator("start_time")
    @classmethod
    def start_time_must_be_aware(cls, v):
        return _require_timezone(v, "La fecha de inicio")

    @field_validator("end_time")
    @classmethod
    def end_time_must_be_aware(cls, v):
        return _require_timezone(v, "La fecha de finalización")

    @model_validator(mode="after")
    def check_interval(self):
        if self.end_time <= self.start_time:
            raise ValueError("La fecha de finalización debe ser posterior a la fecha de inicio")
        return self

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class EventUpdate(CamelModel):
    """Parche parcial; solo se envían los campos establecidos explícitamente."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    type: Optional[EventType] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    trainer_id: Optional[str] = None
    trainer_name: Optional[str] = None
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    status: Optional[EventStatus] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    recurring: Optional[Recurrence] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    @field_validator("start_time")
    @classmethod
    def start_time_must_be_aware(cls, v):
        return _require_timezone(v, "La fecha de inicio")

    @field_validator("end_time")
    @classmethod
    def end_time_must_be_aware(cls, v):
        return _require_timezone(v, "La fecha de finalización")

    @model_validator(mode="after")
    def check_interval(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("La fecha de finalización debe ser posterior a la fecha de inicio")
        return self

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_unset=True)


class EventStatusUpdate(CamelModel):
    status: EventStatus


class EventFilters(CamelModel):
    """Filtros que acepta el endpoint remoto de eventos."""
    trainer_id: Optional[str] = None
    client_id: Optional[str] = None
    status: Optional[EventStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: Optional[int] = Field(None, gt=0)

    def in_timezone(self, gym_timezone: str) -> "EventFilters":
        """Copia con las fechas en UTC; las naive se leen como hora local del gimnasio."""
        return self.model_copy(update={
            "start_date": normalize_to_utc(self.start_date, gym_timezone),
            "end_date": normalize_to_utc(self.end_date, gym_timezone),
        })

    def to_query_params(self) -> Dict[str, str]:
        params = self.model_dump(by_alias=True, mode="json", exclude_none=True)
        return {key: str(value) for key, value in params.items()}


class TimeSlot(CamelModel):
    start_time: datetime
    end_time: datetime


# Canal lateral de normalización
class NormalizationWarning(BaseModel):
    record_id: Optional[str] = None
    field: str
    message: str
    raw_value: Any = None


T = TypeVar("T")


class NormalizedBatch(BaseModel, Generic[T]):
    records: List[T] = Field(default_factory=list)
    warnings: List[NormalizationWarning] = Field(default_factory=list)


# Notificaciones del store
class ChangeAction(str, Enum):
    created = "created"
    updated = "updated"
    deleted = "deleted"
    refreshed = "refreshed"


class ScheduleChange(BaseModel):
    """Diff entregado a los suscriptores de cambios."""
    action: ChangeAction
    created: List[str] = Field(default_factory=list)
    updated: List[str] = Field(default_factory=list)
    deleted: List[str] = Field(default_factory=list)
    total_events: int = 0
