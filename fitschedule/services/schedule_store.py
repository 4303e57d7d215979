"""
ScheduleStore - instantánea en memoria de eventos y entrenadores.

El store es la única fuente de verdad en proceso: las mutaciones se confirman
primero en el repositorio remoto y solo después se aplican a la instantánea,
se actualiza el índice entrenador -> eventos y se notifica a los suscriptores.
Las consultas de conflicto, disponibilidad y estadísticas leen la instantánea
sin modificarla.

El store se construye explícitamente y se inyecta donde haga falta (API,
tests, herramientas de depuración); no hay registro global.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from fitschedule.core.config import Settings, get_settings
from fitschedule.core.exceptions import EnvelopeError, ScheduleError, SchedulingConflictError, TransportError
from fitschedule.core.timezone_utils import normalize_to_utc
from fitschedule.models.schedule import EventStatus
from fitschedule.repositories.base import BaseScheduleRepository
from fitschedule.repositories.normalizers import normalize_single_event
from fitschedule.schemas.analytics import DebugStats
from fitschedule.schemas.schedule import (
    ChangeAction,
    EventCreate,
    EventUpdate,
    NormalizationWarning,
    ScheduleChange,
    ScheduleEvent,
    TrainerSchedule,
)
from fitschedule.services.analytics import ScheduleAnalyticsService
from fitschedule.services.availability import AvailabilityFinder
from fitschedule.services.conflicts import ConflictDetector
from fitschedule.services.subscriptions import EventsCallback, ScheduleEventBus

logger = logging.getLogger(__name__)


class ScheduleStore:
    """
    Store de agenda con índice entrenador -> ids de evento.

    Atributos públicos de estado:
    - loading: hay una carga completa en curso
    - error: último error como texto (se limpia cuando una carga tiene éxito)
    - last_warnings: avisos de normalización de la última carga
    """

    def __init__(
        self,
        repository: BaseScheduleRepository,
        settings: Optional[Settings] = None,
        event_bus: Optional[ScheduleEventBus] = None,
        enforce_conflicts: Optional[bool] = None,
    ):
        self.repository = repository
        self.settings = settings or get_settings()
        self.gym_timezone = self.settings.GYM_TIMEZONE
        self.bus = event_bus or ScheduleEventBus()
        if enforce_conflicts is None:
            enforce_conflicts = self.settings.ENFORCE_CONFLICT_FREE_COMMITS
        self.enforce_conflicts = enforce_conflicts

        self._events: Dict[str, ScheduleEvent] = {}
        self._trainers: Dict[str, TrainerSchedule] = {}
        self._trainer_index: Dict[str, List[str]] = {}
        self._refresh_task: Optional[asyncio.Future] = None

        self.loading = False
        self.error: Optional[str] = None
        self.last_warnings: List[NormalizationWarning] = []

        self.conflicts = ConflictDetector(self)
        self.availability = AvailabilityFinder(self, self.conflicts, self.settings)
        self.analytics = ScheduleAnalyticsService(self, self.settings)

    # ------------------------------------------------------------------
    # Instantánea
    # ------------------------------------------------------------------

    @property
    def events(self) -> List[ScheduleEvent]:
        return list(self._events.values())

    @property
    def trainers(self) -> List[TrainerSchedule]:
        return list(self._trainers.values())

    def get_event(self, event_id: str) -> Optional[ScheduleEvent]:
        return self._events.get(event_id)

    def get_trainer(self, trainer_id: str) -> Optional[TrainerSchedule]:
        return self._trainers.get(trainer_id)

    def events_for(self, trainer_id: str) -> List[ScheduleEvent]:
        """Eventos del entrenador, derivados del índice (nunca se guardan en el entrenador)."""
        return [self._events[event_id] for event_id in self._trainer_index.get(trainer_id, [])]

    def _index_add(self, event: ScheduleEvent) -> None:
        self._trainer_index.setdefault(event.trainer_id, []).append(event.id)

    def _index_remove(self, event: ScheduleEvent) -> None:
        ids = self._trainer_index.get(event.trainer_id)
        if not ids:
            return
        if event.id in ids:
            ids.remove(event.id)
        if not ids:
            del self._trainer_index[event.trainer_id]

    def _replace_snapshot(self, events: List[ScheduleEvent], trainers: List[TrainerSchedule]) -> None:
        self._events = {event.id: event for event in events}
        self._trainers = {trainer.trainer_id: trainer for trainer in trainers}
        self._trainer_index = {}
        for event in self._events.values():
            self._index_add(event)

    # ------------------------------------------------------------------
    # Consultas
    # ------------------------------------------------------------------

    def get_events_by_trainer(self, trainer_id: str) -> List[ScheduleEvent]:
        return self.events_for(trainer_id)

    def get_events_in_date_range(self, start: datetime, end: datetime) -> List[ScheduleEvent]:
        """Eventos cuyo inicio cae en [start, end] (ambos extremos incluidos)."""
        start = normalize_to_utc(start, self.gym_timezone)
        end = normalize_to_utc(end, self.gym_timezone)
        return [event for event in self._events.values() if start <= event.start_time <= end]

    def search_events(self, query: str) -> List[ScheduleEvent]:
        """Búsqueda sin distinguir mayúsculas en título, entrenador, cliente y descripción."""
        needle = query.lower()
        results = []
        for event in self._events.values():
            trainer_name = event.trainer_name
            if trainer_name is None and event.trainer_id in self._trainers:
                trainer_name = self._trainers[event.trainer_id].trainer_name
            haystack = (event.title, trainer_name, event.client_name, event.description)
            if any(value and needle in value.lower() for value in haystack):
                results.append(event)
        return results

    def debug_stats(self) -> DebugStats:
        return DebugStats(
            total_events=len(self._events),
            active_events=sum(1 for event in self._events.values() if event.is_active),
            trainers_count=len(self._trainers),
            loading=self.loading,
            error=self.error,
        )

    # ------------------------------------------------------------------
    # Suscripciones
    # ------------------------------------------------------------------

    def subscribe_to_updates(self, callback: EventsCallback) -> Callable[[], None]:
        return self.bus.subscribe(callback)

    def _publish(self, action: ChangeAction, **ids: List[str]) -> None:
        change = ScheduleChange(action=action, total_events=len(self._events), **ids)
        self.bus.publish(self.events, change)

    # ------------------------------------------------------------------
    # Mutaciones
    # ------------------------------------------------------------------

    async def _remote(self, operation: str, call, *args) -> Any:
        try:
            return await call(*args)
        except TransportError as e:
            self.error = f"Error al {operation}: {str(e)}"
            logger.error(self.error)
            raise

    def _normalize_committed(self, operation: str, raw: Any) -> ScheduleEvent:
        """Normaliza la respuesta de una mutación ya confirmada en remoto."""
        try:
            return normalize_single_event(raw, self.gym_timezone, self.settings.DEFAULT_SLOT_DURATION_MINUTES)
        except EnvelopeError as e:
            self.error = f"Error al {operation}: {str(e)}"
            logger.error(self.error)
            raise

    def _ensure_conflict_free(
        self,
        trainer_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_event_id: Optional[str] = None,
    ) -> None:
        conflicts = self.conflicts.check_conflicts(trainer_id, start_time, end_time, exclude_event_id)
        if conflicts:
            ids = ", ".join(event.id for event in conflicts)
            logger.warning(f"Cambio rechazado: el entrenador {trainer_id} ya tiene eventos en ese horario ({ids})")
            raise SchedulingConflictError(
                f"El entrenador {trainer_id} ya tiene {len(conflicts)} evento(s) en ese horario",
                conflicts,
            )

    async def create_event(self, data: Union[EventCreate, Dict[str, Any]]) -> ScheduleEvent:
        """
        Crea un evento en el repositorio y lo añade a la instantánea.

        Raises:
            SchedulingConflictError: si la validación local de conflictos está activa y hay solapamiento
            TransportError: si el repositorio falla (la instantánea no cambia)
        """
        if not isinstance(data, EventCreate):
            data = EventCreate.model_validate(data)
        if self.enforce_conflicts and data.status != EventStatus.CANCELLED:
            self._ensure_conflict_free(data.trainer_id, data.start_time, data.end_time)

        raw = await self._remote("crear evento", self.repository.create_event, data.to_wire())
        event = self._normalize_committed("crear evento", raw)

        previous = self._events.get(event.id)
        if previous is not None:
            self._index_remove(previous)
        self._events[event.id] = event
        self._index_add(event)
        logger.info(f"Evento {event.id} creado para el entrenador {event.trainer_id}")
        self._publish(ChangeAction.created, created=[event.id])
        return event

    async def update_event(
        self,
        event_id: str,
        patch: Union[EventUpdate, Dict[str, Any]],
    ) -> Optional[ScheduleEvent]:
        """
        Envía un parche parcial y fusiona la respuesta en el evento local.

        Returns:
            El evento actualizado, o None si el id no está en la instantánea
            (el repositorio sí recibe el parche).
        """
        if not isinstance(patch, EventUpdate):
            patch = EventUpdate.model_validate(patch)

        existing = self._events.get(event_id)
        if existing is not None and self.enforce_conflicts:
            fields = patch.model_fields_set
            status = patch.status if "status" in fields and patch.status else existing.status
            touches_slot = bool(fields & {"trainer_id", "start_time", "end_time", "status"})
            if touches_slot and status != EventStatus.CANCELLED:
                self._ensure_conflict_free(
                    patch.trainer_id or existing.trainer_id,
                    patch.start_time or existing.start_time,
                    patch.end_time or existing.end_time,
                    exclude_event_id=event_id,
                )

        raw = await self._remote("actualizar evento", self.repository.update_event, event_id, patch.to_wire())

        # La instantánea puede haber cambiado mientras esperábamos al repositorio
        existing = self._events.get(event_id)
        updated: Optional[ScheduleEvent] = None
        if existing is None:
            logger.info(f"Evento {event_id} actualizado en remoto pero ausente de la instantánea")
        else:
            merged = {**existing.to_wire(), **raw, "_id": event_id}
            merged.pop("id", None)
            updated = self._normalize_committed("actualizar evento", merged)
            self._index_remove(existing)
            self._events[event_id] = updated
            self._index_add(updated)
            logger.info(f"Evento {event_id} actualizado")

        self._publish(ChangeAction.updated, updated=[event_id] if updated else [])
        return updated

    async def update_event_status(self, event_id: str, status: EventStatus) -> Optional[ScheduleEvent]:
        return await self.update_event(event_id, EventUpdate(status=status))

    async def delete_event(self, event_id: str) -> None:
        await self._remote("eliminar evento", self.repository.delete_event, event_id)
        removed = self._events.pop(event_id, None)
        if removed is not None:
            self._index_remove(removed)
            logger.info(f"Evento {event_id} eliminado")
        self._publish(ChangeAction.deleted, deleted=[event_id] if removed else [])

    # ------------------------------------------------------------------
    # Carga completa
    # ------------------------------------------------------------------

    async def _load_snapshot(self):
        return await asyncio.gather(
            self.repository.load_events(),
            self.repository.load_trainers(),
        )

    async def refresh(self) -> bool:
        """
        Vuelve a cargar y normalizar todo, reemplazando la instantánea.

        Un refresh en curso se cancela cuando empieza otro; el resultado del
        anterior se descarta. Si la carga falla, la instantánea se vacía y el
        error queda en `error`.

        Returns:
            True si esta llamada instaló una instantánea nueva
        """
        previous = self._refresh_task
        if previous is not None and not previous.done():
            logger.info("Cancelando refresh anterior todavía en curso")
            previous.cancel()

        task = asyncio.ensure_future(self._load_snapshot())
        self._refresh_task = task
        self.loading = True
        self.error = None
        logger.info("Cargando datos de agenda...")

        try:
            try:
                events_batch, trainers_batch = await task
            except asyncio.CancelledError:
                if self._refresh_task is not task:
                    logger.info("Refresh reemplazado por uno más reciente")
                    return False
                raise
            except ScheduleError as e:
                if self._refresh_task is not task:
                    return False
                self._fail_refresh(f"Error de carga: {str(e)}")
                return False
            except Exception as e:
                if self._refresh_task is not task:
                    return False
                self._fail_refresh(f"Error inesperado de carga: {str(e)}", exc_info=True)
                return False

            if self._refresh_task is not task:
                logger.info("Descartando resultado de un refresh reemplazado")
                return False

            self._replace_snapshot(events_batch.records, trainers_batch.records)
            self.last_warnings = events_batch.warnings + trainers_batch.warnings
            self.loading = False
            logger.info(
                f"Agenda cargada: {len(self._events)} eventos, {len(self._trainers)} entrenadores, "
                f"{len(self.last_warnings)} avisos de normalización"
            )
            self._publish(ChangeAction.refreshed, updated=list(self._events.keys()))
            return True
        finally:
            if self._refresh_task is task:
                self.loading = False

    def _fail_refresh(self, message: str, exc_info: bool = False):
        """Registra el error y deja la instantánea vacía."""
        self.error = message
        logger.error(self.error, exc_info=exc_info)
        self._replace_snapshot([], [])
        self.last_warnings = []
