"""
Excepciones del motor de agenda.

Los errores de transporte y de formato de respuesta se propagan al llamador;
los defectos de registros individuales nunca llegan aquí, se reparan durante
la normalización.
"""

from typing import Any, List, Optional


class ScheduleError(Exception):
    """Error base del motor de agenda."""
    pass


class TransportError(ScheduleError):
    """La llamada al repositorio remoto falló o devolvió success=false."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EnvelopeError(TransportError):
    """La respuesta no tiene la forma esperada ({success, data: [...]})."""
    pass


class RemoteConflictError(TransportError):
    """El repositorio remoto rechazó la operación por solapamiento (HTTP 409)."""

    def __init__(self, message: str, conflicts: Optional[List[Any]] = None):
        super().__init__(message, status_code=409)
        self.conflicts = conflicts or []


class SchedulingConflictError(ScheduleError):
    """El store rechazó un cambio porque el entrenador ya está ocupado."""

    def __init__(self, message: str, conflicts: List[Any]):
        super().__init__(message)
        self.conflicts = conflicts


class EventNotFoundError(ScheduleError):
    """Raised when an event id is not part of the current snapshot."""

    def __init__(self, event_id: str):
        super().__init__(f"Evento {event_id} no encontrado")
        self.event_id = event_id


class TrainerNotFoundError(ScheduleError):
    """Raised when a trainer id is not part of the current snapshot."""

    def __init__(self, trainer_id: str):
        super().__init__(f"Entrenador {trainer_id} no encontrado")
        self.trainer_id = trainer_id


class InvalidIntervalError(ScheduleError, ValueError):
    """El intervalo consultado no cumple start < end."""
    pass
