"""
Repositorio de agenda en memoria.

Reproduce el comportamiento del endpoint remoto de eventos (filtros, orden por
inicio, límite y rechazo 409 de solapamientos al crear) sin red. Sirve para
desarrollo local y para los tests del store.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fitschedule.core.exceptions import RemoteConflictError, TransportError
from fitschedule.core.timezone_utils import parse_timestamp
from fitschedule.repositories.base import BaseScheduleRepository
from fitschedule.repositories.normalizers import (
    normalize_events_payload,
    normalize_trainers_payload,
    synthesize_id,
)
from fitschedule.schemas.schedule import (
    EventFilters,
    NormalizedBatch,
    ScheduleEvent,
    TrainerSchedule,
)

logger = logging.getLogger(__name__)

REQUIRED_EVENT_FIELDS = ("title", "startTime", "endTime", "trainerId")


class InMemoryScheduleRepository(BaseScheduleRepository):

    def __init__(
        self,
        events: Optional[List[Dict[str, Any]]] = None,
        trainers: Optional[List[Dict[str, Any]]] = None,
        gym_timezone: str = "UTC",
        enforce_conflicts: bool = True,
    ):
        self.events: List[Dict[str, Any]] = [copy.deepcopy(e) for e in (events or [])]
        self.trainers: List[Dict[str, Any]] = [copy.deepcopy(t) for t in (trainers or [])]
        self.gym_timezone = gym_timezone
        self.enforce_conflicts = enforce_conflicts
        self.calls: List[str] = []

    def _parse(self, value: Any) -> Optional[datetime]:
        return parse_timestamp(value, self.gym_timezone)

    def _find(self, event_id: str) -> Optional[Dict[str, Any]]:
        for raw in self.events:
            if str(raw.get("_id") or raw.get("id")) == event_id:
                return raw
        return None

    def _matches(self, raw: Dict[str, Any], filters: EventFilters) -> bool:
        if filters.trainer_id and raw.get("trainerId") != filters.trainer_id:
            return False
        if filters.client_id and raw.get("clientId") != filters.client_id:
            return False
        if filters.status and raw.get("status") != filters.status.value:
            return False
        start = self._parse(raw.get("startTime"))
        if filters.start_date and (start is None or start < filters.start_date):
            return False
        if filters.end_date and (start is None or start > filters.end_date):
            return False
        return True

    def _conflicts(self, body: Dict[str, Any]) -> List[Dict[str, Any]]:
        start = self._parse(body.get("startTime"))
        end = self._parse(body.get("endTime"))
        if start is None or end is None:
            return []
        conflicts = []
        for raw in self.events:
            if raw.get("trainerId") != body.get("trainerId") or raw.get("status") == "cancelled":
                continue
            event_start = self._parse(raw.get("startTime"))
            event_end = self._parse(raw.get("endTime"))
            if event_start is None or event_end is None:
                continue
            if start < event_end and end > event_start:
                conflicts.append({
                    "id": raw.get("_id"),
                    "title": raw.get("title"),
                    "startTime": raw.get("startTime"),
                    "endTime": raw.get("endTime"),
                })
        return conflicts

    async def load_events(self, filters: Optional[EventFilters] = None) -> NormalizedBatch[ScheduleEvent]:
        self.calls.append("load_events")
        selected = list(self.events)
        if filters is not None:
            filters = filters.in_timezone(self.gym_timezone)
            selected = [raw for raw in selected if self._matches(raw, filters)]
        far_future = datetime.max.replace(tzinfo=timezone.utc)
        selected.sort(key=lambda raw: self._parse(raw.get("startTime")) or far_future)
        if filters is not None and filters.limit:
            selected = selected[:filters.limit]
        payload = {"success": True, "data": copy.deepcopy(selected)}
        return normalize_events_payload(payload, self.gym_timezone)

    async def load_trainers(self) -> NormalizedBatch[TrainerSchedule]:
        self.calls.append("load_trainers")
        return normalize_trainers_payload({"success": True, "data": copy.deepcopy(self.trainers)})

    async def create_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append("create_event")
        missing = [name for name in REQUIRED_EVENT_FIELDS if not payload.get(name)]
        if missing:
            raise TransportError(f"Faltan campos obligatorios: {', '.join(missing)}", status_code=400)

        if self.enforce_conflicts and payload.get("status") != "cancelled":
            conflicts = self._conflicts(payload)
            if conflicts:
                raise RemoteConflictError("El entrenador ya tiene un evento en ese horario", conflicts)

        record = copy.deepcopy(payload)
        record["_id"] = synthesize_id("event")
        record.setdefault("type", "training")
        record.setdefault("status", "scheduled")
        record["createdAt"] = datetime.now(timezone.utc).isoformat()
        record.setdefault("createdBy", "api")
        self.events.append(record)
        logger.info(f"Evento creado en memoria: {record['_id']}")
        return copy.deepcopy(record)

    async def update_event(self, event_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append("update_event")
        record = self._find(event_id)
        if record is None:
            raise TransportError(f"Evento {event_id} no encontrado", status_code=404)
        record.update(copy.deepcopy(patch))
        record["updatedAt"] = datetime.now(timezone.utc).isoformat()
        return copy.deepcopy(record)

    async def delete_event(self, event_id: str) -> None:
        self.calls.append("delete_event")
        record = self._find(event_id)
        if record is None:
            raise TransportError(f"Evento {event_id} no encontrado", status_code=404)
        self.events.remove(record)
