from fastapi import HTTPException, Request, status

from fitschedule.core.exceptions import (
    EventNotFoundError,
    InvalidIntervalError,
    RemoteConflictError,
    ScheduleError,
    SchedulingConflictError,
    TrainerNotFoundError,
    TransportError,
)
from fitschedule.services.schedule_store import ScheduleStore


def get_schedule_store(request: Request) -> ScheduleStore:
    """
    Dependencia que devuelve el store inyectado en app.state durante el lifespan.

    Raises:
        HTTPException 503: si la aplicación se levantó sin store
    """
    store = getattr(request.app.state, "schedule_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="El motor de agenda no está inicializado"
        )
    return store


def schedule_error_to_http(exc: ScheduleError) -> HTTPException:
    """Traduce los errores del motor a respuestas HTTP."""
    if isinstance(exc, (EventNotFoundError, TrainerNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, SchedulingConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "conflicts": [event.to_wire() for event in exc.conflicts],
            },
        )
    if isinstance(exc, RemoteConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": str(exc), "conflicts": exc.conflicts},
        )
    if isinstance(exc, InvalidIntervalError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    if isinstance(exc, TransportError) and exc.status_code == status.HTTP_404_NOT_FOUND:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, TransportError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
