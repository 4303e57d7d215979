"""
Detección de conflictos de horario por entrenador.

Dos eventos entran en conflicto si pertenecen al mismo entrenador, ninguno
está cancelado y sus intervalos se solapan en sentido semiabierto
(start < otro.end y end > otro.start). Un evento que termina a las 11:00 no
choca con otro que empieza a las 11:00.
"""

import logging
from datetime import datetime
from typing import List, Optional, Protocol

from fitschedule.core.exceptions import InvalidIntervalError
from fitschedule.core.timezone_utils import normalize_to_utc
from fitschedule.schemas.schedule import ScheduleEvent, TrainerSchedule

logger = logging.getLogger(__name__)


class ScheduleSnapshot(Protocol):
    """Vista de solo lectura que exponen el store y los dobles de test."""

    gym_timezone: str

    @property
    def events(self) -> List[ScheduleEvent]:
        ...

    @property
    def trainers(self) -> List[TrainerSchedule]:
        ...

    def events_for(self, trainer_id: str) -> List[ScheduleEvent]:
        ...

    def get_trainer(self, trainer_id: str) -> Optional[TrainerSchedule]:
        ...


def validate_interval(start_time: datetime, end_time: datetime, gym_timezone: str):
    """Normaliza ambos extremos a UTC y exige start < end."""
    start = normalize_to_utc(start_time, gym_timezone)
    end = normalize_to_utc(end_time, gym_timezone)
    if start >= end:
        raise InvalidIntervalError(
            f"Intervalo inválido: el inicio ({start.isoformat()}) debe ser anterior al fin ({end.isoformat()})"
        )
    return start, end


class ConflictDetector:
    """Consultas de conflicto puras sobre la instantánea actual."""

    def __init__(self, snapshot: ScheduleSnapshot):
        self.snapshot = snapshot

    def check_conflicts(
        self,
        trainer_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_event_id: Optional[str] = None,
    ) -> List[ScheduleEvent]:
        """
        Eventos activos del entrenador que se solapan con [start_time, end_time).

        Args:
            trainer_id: Entrenador a comprobar
            start_time: Inicio propuesto
            end_time: Fin propuesto
            exclude_event_id: Evento a ignorar (el que se está editando)

        Returns:
            Lista de eventos en conflicto ordenada por inicio

        Raises:
            InvalidIntervalError: si start_time >= end_time
        """
        start, end = validate_interval(start_time, end_time, self.snapshot.gym_timezone)
        conflicts = [
            event
            for event in self.snapshot.events_for(trainer_id)
            if event.is_active
            and event.id != exclude_event_id
            and event.overlaps(start, end)
        ]
        conflicts.sort(key=lambda event: event.start_time)
        return conflicts

    def is_available(
        self,
        trainer_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_event_id: Optional[str] = None,
    ) -> bool:
        return not self.check_conflicts(trainer_id, start_time, end_time, exclude_event_id)
