"""
Datos de muestra para los tests de agenda.

Semana de referencia: lunes 2 de junio de 2025 (UTC). Los entrenadores
trabajan de lunes a viernes salvo que se indique otra cosa.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fitschedule.core.config import Settings
from fitschedule.repositories.memory import InMemoryScheduleRepository
from fitschedule.services.schedule_store import ScheduleStore

MONDAY = 2
TUESDAY = 3
SUNDAY = 8

# Lunes 07:30, antes de la jornada
NOW = datetime(2025, 6, 2, 7, 30, tzinfo=timezone.utc)


def at(day: int, hour: int, minute: int = 0) -> datetime:
    """Instante UTC de junio de 2025."""
    return datetime(2025, 6, day, hour, minute, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def raw_event(
    event_id: Optional[str],
    trainer_id: str,
    start: datetime,
    end: datetime,
    status: str = "scheduled",
    event_type: str = "training",
    **extra: Any,
) -> Dict[str, Any]:
    record = {
        "title": extra.pop("title", f"Sesión {event_id}"),
        "type": event_type,
        "startTime": iso(start),
        "endTime": iso(end),
        "trainerId": trainer_id,
        "status": status,
        "createdAt": "2025-05-01T12:00:00Z",
        "createdBy": "seed",
    }
    if event_id is not None:
        record["_id"] = event_id
    record.update(extra)
    return record


def sample_trainers() -> List[Dict[str, Any]]:
    return [
        {
            "trainerId": "t1",
            "trainerName": "Ana López",
            "trainerRole": "Head Coach",
            "workingHours": {"start": "09:00", "end": "18:00", "days": [1, 2, 3, 4, 5]},
        },
        {
            "trainerId": "t2",
            "trainerName": "Carlos Ruiz",
            "trainerRole": "Trainer",
            "workingHours": {"start": "07:00", "end": "12:00", "days": [1, 3, 5]},
        },
        # Sin horario: se normaliza al horario por defecto
        {"trainerId": "t3", "trainerName": "Lucía Gómez"},
    ]


def sample_events() -> List[Dict[str, Any]]:
    return [
        raw_event("e1", "t1", at(MONDAY, 10), at(MONDAY, 11), clientName="María Pérez"),
        raw_event("e2", "t1", at(MONDAY, 14), at(MONDAY, 15), status="confirmed", event_type="consultation"),
        raw_event("e3", "t1", at(MONDAY, 11), at(MONDAY, 12), status="cancelled"),
        raw_event(
            "e4", "t2", at(TUESDAY, 8), at(TUESDAY, 9),
            status="completed", event_type="group", title="Yoga grupal",
            description="Clase de movilidad",
        ),
    ]


def make_settings(**overrides: Any) -> Settings:
    values = {"GYM_TIMEZONE": "UTC", "REFRESH_ON_STARTUP": False}
    values.update(overrides)
    return Settings(**values)


async def make_store(
    events: Optional[List[Dict[str, Any]]] = None,
    trainers: Optional[List[Dict[str, Any]]] = None,
    settings: Optional[Settings] = None,
    **store_kwargs: Any,
) -> ScheduleStore:
    """Store cargado desde un repositorio en memoria."""
    settings = settings or make_settings()
    repository = InMemoryScheduleRepository(
        sample_events() if events is None else events,
        sample_trainers() if trainers is None else trainers,
        gym_timezone=settings.GYM_TIMEZONE,
    )
    store = ScheduleStore(repository, settings, **store_kwargs)
    assert await store.refresh() is True
    return store
