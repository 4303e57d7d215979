"""
Búsqueda de disponibilidad de entrenadores.
"""

import logging
from datetime import datetime, time, timedelta, timezone
from typing import List, Optional

from fitschedule.core.config import Settings, get_settings
from fitschedule.core.exceptions import InvalidIntervalError
from fitschedule.core.timezone_utils import convert_utc_to_local, localize_wall_clock
from fitschedule.schemas.schedule import TimeSlot, TrainerSchedule
from fitschedule.services.conflicts import ConflictDetector, ScheduleSnapshot, validate_interval

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


class AvailabilityFinder:
    """
    Combina el detector de conflictos con el horario laboral de cada entrenador.

    La búsqueda de huecos es determinista: empieza en la siguiente hora en
    punto posterior a "ahora", recorre SLOT_SEARCH_HORIZON_DAYS días naturales
    en la zona del gimnasio y prueba inicios alineados a SLOT_STEP_MINUTES
    dentro de la ventana laboral.
    """

    def __init__(
        self,
        snapshot: ScheduleSnapshot,
        conflict_detector: Optional[ConflictDetector] = None,
        settings: Optional[Settings] = None,
    ):
        self.snapshot = snapshot
        self.conflicts = conflict_detector or ConflictDetector(snapshot)
        self.settings = settings or get_settings()

    def get_available_trainers(
        self,
        start_time: datetime,
        end_time: datetime,
        exclude_event_id: Optional[str] = None,
    ) -> List[TrainerSchedule]:
        """Entrenadores sin conflictos en el intervalo (no se mira el horario laboral)."""
        start, end = validate_interval(start_time, end_time, self.snapshot.gym_timezone)
        return [
            trainer
            for trainer in self.snapshot.trainers
            if self.conflicts.is_available(trainer.trainer_id, start, end, exclude_event_id)
        ]

    def get_next_available_slot(
        self,
        trainer_id: str,
        duration_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[TimeSlot]:
        """
        Primer hueco libre del entrenador con la duración pedida.

        Args:
            trainer_id: Entrenador
            duration_minutes: Duración del hueco (por defecto DEFAULT_SLOT_DURATION_MINUTES)
            now: Instante de referencia (por defecto la hora actual)

        Returns:
            TimeSlot en UTC, o None si el entrenador no existe o no hay hueco
            dentro del horizonte de búsqueda
        """
        if duration_minutes is None:
            duration_minutes = self.settings.DEFAULT_SLOT_DURATION_MINUTES
        if duration_minutes <= 0:
            raise InvalidIntervalError("La duración del hueco debe ser mayor que 0")

        trainer = self.snapshot.get_trainer(trainer_id)
        if trainer is None:
            logger.info(f"Búsqueda de hueco para entrenador desconocido {trainer_id}")
            return None

        tz_name = self.snapshot.gym_timezone
        now = now or datetime.now(timezone.utc)
        local_now = convert_utc_to_local(now, tz_name)
        search_start_wall = local_now.replace(tzinfo=None, minute=0, second=0, microsecond=0) + timedelta(hours=1)
        search_start = localize_wall_clock(search_start_wall.date(), search_start_wall.time(), tz_name)

        hours = trainer.working_hours
        step = self.settings.SLOT_STEP_MINUTES
        work_start_minutes = hours.start_time.hour * 60 + hours.start_time.minute
        # Primer inicio alineado a la rejilla que no es anterior al inicio de la jornada
        first_candidate = -(-work_start_minutes // step) * step
        duration = timedelta(minutes=duration_minutes)

        for day_offset in range(self.settings.SLOT_SEARCH_HORIZON_DAYS):
            day = search_start_wall.date() + timedelta(days=day_offset)
            weekday = (day.weekday() + 1) % 7
            if not hours.works_on(weekday):
                continue

            work_end = localize_wall_clock(day, hours.end_time, tz_name)
            minute_of_day = first_candidate
            while minute_of_day < MINUTES_PER_DAY:
                slot_start = localize_wall_clock(day, time(minute_of_day // 60, minute_of_day % 60), tz_name)
                slot_end = slot_start + duration
                if slot_end > work_end:
                    break
                if slot_start >= search_start and self.conflicts.is_available(trainer_id, slot_start, slot_end):
                    return TimeSlot(
                        start_time=slot_start.astimezone(timezone.utc),
                        end_time=slot_end.astimezone(timezone.utc),
                    )
                minute_of_day += step

        logger.info(
            f"Sin huecos de {duration_minutes} min para {trainer_id} en "
            f"{self.settings.SLOT_SEARCH_HORIZON_DAYS} días"
        )
        return None
