"""
Contrato del repositorio de eventos y entrenadores.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from fitschedule.schemas.schedule import (
    EventFilters,
    NormalizedBatch,
    ScheduleEvent,
    TrainerSchedule,
)


class BaseScheduleRepository(ABC):
    """
    Fuente externa de la agenda.

    Las cargas devuelven registros ya normalizados junto con sus avisos de
    normalización; las mutaciones devuelven el registro crudo confirmado por
    la fuente, que el store fusiona y normaliza.
    """

    @abstractmethod
    async def load_events(self, filters: Optional[EventFilters] = None) -> NormalizedBatch[ScheduleEvent]:
        ...

    @abstractmethod
    async def load_trainers(self) -> NormalizedBatch[TrainerSchedule]:
        ...

    @abstractmethod
    async def create_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update_event(self, event_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def delete_event(self, event_id: str) -> None:
        ...

    async def aclose(self) -> None:
        """Libera recursos de red si los hay."""
        return None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
