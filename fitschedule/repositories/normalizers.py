"""
Normalización de registros crudos del repositorio remoto.

Los defectos de un registro individual se reparan con valores por defecto y
cada reparación queda registrada como NormalizationWarning. Solo un sobre de
respuesta con forma incorrecta hace fallar la operación completa.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

from pydantic import ValidationError

from fitschedule.core.exceptions import EnvelopeError, TransportError
from fitschedule.core.logging_config import NORMALIZATION_LOGGER
from fitschedule.core.timezone_utils import parse_hhmm, parse_timestamp
from fitschedule.models.schedule import EventStatus, EventType, RecurrenceType
from fitschedule.schemas.schedule import (
    DEFAULT_WORKING_DAYS,
    NormalizationWarning,
    NormalizedBatch,
    Recurrence,
    ScheduleEvent,
    TrainerSchedule,
    WorkingHours,
)

logger = logging.getLogger(NORMALIZATION_LOGGER)

DEFAULT_EVENT_TITLE = "Untitled"
DEFAULT_TRAINER_NAME = "Unknown trainer"
DEFAULT_TRAINER_ROLE = "Trainer"
DEFAULT_CREATED_BY = "system"
DEFAULT_WORK_START = "09:00"
DEFAULT_WORK_END = "18:00"

EVENT_ID_KEYS = ("_id", "id", "eventId")
TRAINER_ID_KEYS = ("trainerId", "id", "_id")
TRAINER_NAME_KEYS = ("trainerName", "name", "fullName")
TRAINER_ROLE_KEYS = ("trainerRole", "role", "position")
TRAINER_HOURS_KEYS = ("workingHours", "schedule")
TRAINER_LIST_KEYS = ("data", "items", "trainers")

E = TypeVar("E", bound=Enum)


def _first_present(raw: Dict[str, Any], keys) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _coerce_enum(value: Any, enum_cls: Type[E], default: E) -> Tuple[E, bool]:
    """Devuelve (valor, reparado). Un valor ausente no cuenta como reparación."""
    if value is None:
        return default, False
    if isinstance(value, enum_cls):
        return value, False
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower()), False
        except ValueError:
            pass
    return default, True


def synthesize_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class _WarningCollector:
    def __init__(self, record_id: Optional[str] = None):
        self.record_id = record_id
        self.warnings: List[NormalizationWarning] = []

    def add(self, field: str, message: str, raw_value: Any = None) -> None:
        self.warnings.append(
            NormalizationWarning(
                record_id=self.record_id, field=field, message=message, raw_value=raw_value
            )
        )


def _normalize_recurrence(raw: Any, gym_timezone: str, collector: _WarningCollector) -> Optional[Recurrence]:
    if not raw:
        return None
    if not isinstance(raw, dict):
        collector.add("recurring", "recurrencia descartada: no es un objeto", raw)
        return None

    rec_type, repaired = _coerce_enum(raw.get("type"), RecurrenceType, RecurrenceType.WEEKLY)
    if repaired:
        collector.add("recurring.type", "tipo de recurrencia inválido, se usa weekly", raw.get("type"))

    interval = 1
    raw_interval = raw.get("interval")
    try:
        interval = int(raw_interval)
    except (TypeError, ValueError):
        interval = 0
    if interval <= 0:
        if raw_interval is not None:
            collector.add("recurring.interval", "intervalo inválido, se usa 1", raw_interval)
        interval = 1

    end_date = None
    if raw.get("endDate"):
        end_date = parse_timestamp(raw.get("endDate"), gym_timezone)
        if end_date is None:
            collector.add("recurring.endDate", "fecha de fin ilegible, se descarta", raw.get("endDate"))

    return Recurrence(type=rec_type, interval=interval, end_date=end_date)


def normalize_event(
    raw: Any,
    gym_timezone: str,
    default_duration_minutes: int = 60,
    now: Optional[datetime] = None,
) -> Tuple[Optional[ScheduleEvent], List[NormalizationWarning]]:
    """
    Convierte un evento crudo en un ScheduleEvent canónico.

    Returns:
        (evento o None si el registro es irrecuperable, lista de avisos)
    """
    collector = _WarningCollector()
    if not isinstance(raw, dict):
        collector.add("record", "registro de evento descartado: no es un objeto", raw)
        return None, collector.warnings

    raw_id = _first_present(raw, EVENT_ID_KEYS)
    if raw_id is None:
        event_id = synthesize_id("event")
        collector.record_id = event_id
        collector.add("_id", "evento sin identificador, se genera uno")
    else:
        event_id = str(raw_id)
        collector.record_id = event_id

    title = _optional_str(raw.get("title"))
    if title is None or not title.strip():
        collector.add("title", "evento sin título, se usa el valor por defecto", raw.get("title"))
        title = DEFAULT_EVENT_TITLE

    event_type, repaired = _coerce_enum(raw.get("type"), EventType, EventType.TRAINING)
    if repaired:
        collector.add("type", "tipo inválido, se usa training", raw.get("type"))

    status, repaired = _coerce_enum(raw.get("status"), EventStatus, EventStatus.SCHEDULED)
    if repaired:
        collector.add("status", "estado inválido, se usa scheduled", raw.get("status"))

    start_time = parse_timestamp(raw.get("startTime"), gym_timezone)
    if start_time is None:
        collector.add("startTime", "inicio ilegible, el evento se descarta", raw.get("startTime"))
        return None, collector.warnings

    end_time = parse_timestamp(raw.get("endTime"), gym_timezone)
    if end_time is None or end_time <= start_time:
        collector.add(
            "endTime",
            f"fin ausente o no posterior al inicio, se usan {default_duration_minutes} minutos",
            raw.get("endTime"),
        )
        try:
            end_time = start_time + timedelta(minutes=default_duration_minutes)
        except OverflowError:
            collector.add("startTime", "inicio fuera de rango, el evento se descarta", raw.get("startTime"))
            return None, collector.warnings

    trainer_id = _optional_str(raw.get("trainerId"))
    if trainer_id is None:
        collector.add("trainerId", "evento sin entrenador asignado")
        trainer_id = ""

    created_at = parse_timestamp(raw.get("createdAt"), gym_timezone)
    if created_at is None:
        if raw.get("createdAt") is not None:
            collector.add("createdAt", "createdAt ilegible, se usa la hora actual", raw.get("createdAt"))
        created_at = now or datetime.now(timezone.utc)

    updated_at = None
    if raw.get("updatedAt"):
        updated_at = parse_timestamp(raw.get("updatedAt"), gym_timezone)
        if updated_at is None:
            collector.add("updatedAt", "updatedAt ilegible, se descarta", raw.get("updatedAt"))

    recurring = _normalize_recurrence(raw.get("recurring"), gym_timezone, collector)

    event = ScheduleEvent(
        id=event_id,
        title=title,
        description=_optional_str(raw.get("description")),
        type=event_type,
        start_time=start_time,
        end_time=end_time,
        trainer_id=trainer_id,
        trainer_name=_optional_str(raw.get("trainerName")),
        client_id=_optional_str(raw.get("clientId")),
        client_name=_optional_str(raw.get("clientName")),
        status=status,
        location=_optional_str(raw.get("location")),
        notes=_optional_str(raw.get("notes")),
        recurring=recurring,
        created_at=created_at,
        updated_at=updated_at,
        created_by=_optional_str(raw.get("createdBy")) or DEFAULT_CREATED_BY,
    )
    return event, collector.warnings


def _normalize_days(raw_days: Any, collector: _WarningCollector) -> List[int]:
    if not isinstance(raw_days, list):
        if raw_days is not None:
            collector.add("workingHours.days", "days no es una lista, se usa lunes-viernes", raw_days)
        return list(DEFAULT_WORKING_DAYS)

    days: List[int] = []
    for value in raw_days:
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            collector.add("workingHours.days", "día no entero descartado", value)
            continue
        try:
            day = int(value)
        except (TypeError, ValueError):
            collector.add("workingHours.days", "día no numérico descartado", value)
            continue
        if day < 0 or day > 6:
            collector.add("workingHours.days", "día fuera de rango descartado", value)
            continue
        if day not in days:
            days.append(day)
    return days


def _normalize_working_hours(raw: Any, collector: _WarningCollector) -> WorkingHours:
    if not isinstance(raw, dict):
        if raw is not None:
            collector.add("workingHours", "horario laboral inválido, se usa el horario por defecto", raw)
        return WorkingHours(start=DEFAULT_WORK_START, end=DEFAULT_WORK_END, days=list(DEFAULT_WORKING_DAYS))

    start = parse_hhmm(raw.get("start")) if raw.get("start") is not None else None
    if start is None and raw.get("start") is not None:
        collector.add("workingHours.start", "hora de inicio inválida, se usa 09:00", raw.get("start"))
    end = parse_hhmm(raw.get("end")) if raw.get("end") is not None else None
    if end is None and raw.get("end") is not None:
        collector.add("workingHours.end", "hora de fin inválida, se usa 18:00", raw.get("end"))

    start_str = start.strftime("%H:%M") if start else DEFAULT_WORK_START
    end_str = end.strftime("%H:%M") if end else DEFAULT_WORK_END
    if parse_hhmm(start_str) >= parse_hhmm(end_str):
        collector.add(
            "workingHours",
            "la ventana laboral no es válida (fin <= inicio), se usa 09:00-18:00",
            {"start": raw.get("start"), "end": raw.get("end")},
        )
        start_str, end_str = DEFAULT_WORK_START, DEFAULT_WORK_END

    return WorkingHours(start=start_str, end=end_str, days=_normalize_days(raw.get("days"), collector))


def normalize_trainer(raw: Any) -> Tuple[Optional[TrainerSchedule], List[NormalizationWarning]]:
    """Convierte un entrenador crudo en TrainerSchedule con horario laboral válido."""
    collector = _WarningCollector()
    if not isinstance(raw, dict):
        collector.add("record", "registro de entrenador descartado: no es un objeto", raw)
        return None, collector.warnings

    raw_id = _first_present(raw, TRAINER_ID_KEYS)
    if raw_id is None:
        trainer_id = synthesize_id("trainer")
        collector.record_id = trainer_id
        collector.add("trainerId", "entrenador sin identificador, se genera uno")
    else:
        trainer_id = str(raw_id)
        collector.record_id = trainer_id

    name = _first_present(raw, TRAINER_NAME_KEYS)
    if name is None:
        collector.add("trainerName", "entrenador sin nombre, se usa el valor por defecto")
        name = DEFAULT_TRAINER_NAME

    role = _first_present(raw, TRAINER_ROLE_KEYS) or DEFAULT_TRAINER_ROLE

    trainer = TrainerSchedule(
        trainer_id=trainer_id,
        trainer_name=str(name),
        trainer_role=str(role),
        working_hours=_normalize_working_hours(_first_present(raw, TRAINER_HOURS_KEYS), collector),
    )
    return trainer, collector.warnings


def _log_warnings(kind: str, warnings: List[NormalizationWarning]) -> None:
    for warning in warnings:
        logger.warning(
            "Normalización %s %s: %s -> %s (valor: %r)",
            kind, warning.record_id, warning.field, warning.message, warning.raw_value,
        )


def normalize_events_payload(
    payload: Any,
    gym_timezone: str,
    default_duration_minutes: int = 60,
) -> NormalizedBatch[ScheduleEvent]:
    """Valida el sobre {success: true, data: [...]} y normaliza cada evento."""
    if not isinstance(payload, dict) or payload.get("success") is not True:
        raise EnvelopeError("Formato de datos de eventos inválido: success no es true")
    raw_events = payload.get("data")
    if not isinstance(raw_events, list):
        raise EnvelopeError("Formato de datos de eventos inválido: data no es una lista")

    batch: NormalizedBatch[ScheduleEvent] = NormalizedBatch[ScheduleEvent]()
    seen = set()
    now = datetime.now(timezone.utc)
    for raw in raw_events:
        event, warnings = normalize_event(raw, gym_timezone, default_duration_minutes, now=now)
        if event is not None and event.id in seen:
            new_id = synthesize_id("event")
            warnings.append(NormalizationWarning(
                record_id=new_id, field="_id", message="identificador duplicado, se genera uno", raw_value=event.id
            ))
            event = event.model_copy(update={"id": new_id})
        if event is not None:
            seen.add(event.id)
            batch.records.append(event)
        batch.warnings.extend(warnings)

    _log_warnings("evento", batch.warnings)
    return batch


def normalize_trainers_payload(payload: Any) -> NormalizedBatch[TrainerSchedule]:
    """Acepta la lista bajo data, items o trainers; success=false hace fallar la carga."""
    if not isinstance(payload, dict) or payload.get("success") is False:
        raise EnvelopeError("Formato de datos de entrenadores inválido")
    raw_trainers = _first_present(payload, TRAINER_LIST_KEYS)
    if not isinstance(raw_trainers, list):
        raise EnvelopeError("Los datos de entrenadores deben ser una lista")

    batch: NormalizedBatch[TrainerSchedule] = NormalizedBatch[TrainerSchedule]()
    seen = set()
    for raw in raw_trainers:
        trainer, warnings = normalize_trainer(raw)
        batch.warnings.extend(warnings)
        if trainer is None:
            continue
        if trainer.trainer_id in seen:
            batch.warnings.append(NormalizationWarning(
                record_id=trainer.trainer_id, field="trainerId",
                message="entrenador duplicado descartado",
            ))
            continue
        seen.add(trainer.trainer_id)
        batch.records.append(trainer)

    _log_warnings("entrenador", batch.warnings)
    return batch


def unwrap_record(payload: Any) -> Dict[str, Any]:
    """Extrae el registro de una respuesta POST/PATCH, con o sin sobre."""
    if isinstance(payload, dict) and "success" in payload:
        if payload.get("success") is not True:
            raise TransportError(str(payload.get("message") or payload.get("error") or "Operación rechazada"))
        data = payload.get("data")
        if not isinstance(data, dict):
            raise EnvelopeError("La respuesta no contiene un registro")
        return data
    if not isinstance(payload, dict):
        raise EnvelopeError("La respuesta no contiene un registro")
    return payload


def normalize_single_event(
    raw: Dict[str, Any],
    gym_timezone: str,
    default_duration_minutes: int = 60,
) -> ScheduleEvent:
    """Normaliza un registro devuelto por una mutación; uno irrecuperable es un error de sobre."""
    try:
        event, warnings = normalize_event(raw, gym_timezone, default_duration_minutes)
    except ValidationError as exc:
        raise EnvelopeError(f"Registro de evento inválido: {exc}") from exc
    _log_warnings("evento", warnings)
    if event is None:
        raise EnvelopeError("El repositorio devolvió un evento sin fecha de inicio válida")
    return event
