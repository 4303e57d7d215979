"""
Schedule Module - API Endpoints

Exposes the trainer scheduling engine over HTTP:

- Querying events (by trainer, by date range, free-text search)
- Creating, updating, cancelling and deleting events
- Conflict checks and trainer availability
- Schedule analytics and dashboard counters

Every endpoint works on the ScheduleStore injected in app.state; the store
keeps the snapshot and forwards mutations to the remote repository.
"""

from typing import List, Optional
from datetime import datetime
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, Response, status

from fitschedule.core.dependencies import get_schedule_store, schedule_error_to_http
from fitschedule.core.exceptions import EventNotFoundError, ScheduleError, TrainerNotFoundError
from fitschedule.core.timezone_utils import normalize_to_utc
from fitschedule.schemas.analytics import DebugStats, ScheduleAnalytics, ScheduleStats, TrainerOverview
from fitschedule.schemas.schedule import (
    EventCreate,
    EventStatusUpdate,
    EventUpdate,
    ScheduleEvent,
    TimeSlot,
    TrainerSchedule,
)
from fitschedule.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)

router = APIRouter()


# Event Endpoints
@router.get("/events", response_model=List[ScheduleEvent])
async def list_events(
    trainer_id: Optional[str] = Query(None, description="Only events of this trainer"),
    start: Optional[datetime] = Query(None, description="Events starting at or after this instant"),
    end: Optional[datetime] = Query(None, description="Events starting at or before this instant"),
    q: Optional[str] = Query(None, description="Case-insensitive search over title, trainer, client and description"),
    store: ScheduleStore = Depends(get_schedule_store),
) -> List[ScheduleEvent]:
    """
    List Events

    Filters combine with AND. Without filters the whole snapshot is returned.
    """
    events = store.events
    if trainer_id is not None:
        events = store.get_events_by_trainer(trainer_id)
    if start is not None:
        lower = normalize_to_utc(start, store.gym_timezone)
        events = [event for event in events if event.start_time >= lower]
    if end is not None:
        upper = normalize_to_utc(end, store.gym_timezone)
        events = [event for event in events if event.start_time <= upper]
    if q:
        matches = {event.id for event in store.search_events(q)}
        events = [event for event in events if event.id in matches]
    return events


@router.get("/events/{event_id}", response_model=ScheduleEvent)
async def get_event(
    event_id: str = Path(..., description="Event id"),
    store: ScheduleStore = Depends(get_schedule_store),
) -> ScheduleEvent:
    event = store.get_event(event_id)
    if event is None:
        raise schedule_error_to_http(EventNotFoundError(event_id))
    return event


@router.post("/events", response_model=ScheduleEvent, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_in: EventCreate = Body(...),
    store: ScheduleStore = Depends(get_schedule_store),
) -> ScheduleEvent:
    """
    Create Event

    Raises:
        HTTPException 409: The trainer already has an active event in that interval.
        HTTPException 502: The remote repository rejected or failed the request.
    """
    try:
        return await store.create_event(event_in)
    except ScheduleError as e:
        raise schedule_error_to_http(e)


@router.patch("/events/{event_id}", response_model=ScheduleEvent)
async def update_event(
    event_id: str = Path(..., description="Event id"),
    event_in: EventUpdate = Body(...),
    store: ScheduleStore = Depends(get_schedule_store),
) -> ScheduleEvent:
    try:
        updated = await store.update_event(event_id, event_in)
    except ScheduleError as e:
        raise schedule_error_to_http(e)
    if updated is None:
        raise schedule_error_to_http(EventNotFoundError(event_id))
    return updated


@router.patch("/events/{event_id}/status", response_model=ScheduleEvent)
async def update_event_status(
    event_id: str = Path(..., description="Event id"),
    status_in: EventStatusUpdate = Body(...),
    store: ScheduleStore = Depends(get_schedule_store),
) -> ScheduleEvent:
    try:
        updated = await store.update_event_status(event_id, status_in.status)
    except ScheduleError as e:
        raise schedule_error_to_http(e)
    if updated is None:
        raise schedule_error_to_http(EventNotFoundError(event_id))
    return updated


@router.delete("/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: str = Path(..., description="Event id"),
    store: ScheduleStore = Depends(get_schedule_store),
) -> Response:
    try:
        await store.delete_event(event_id)
    except ScheduleError as e:
        raise schedule_error_to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Conflict and availability endpoints
@router.get("/conflicts", response_model=List[ScheduleEvent])
async def check_conflicts(
    trainer_id: str = Query(...),
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    exclude_event_id: Optional[str] = Query(None),
    store: ScheduleStore = Depends(get_schedule_store),
) -> List[ScheduleEvent]:
    """
    Check Conflicts

    Returns the active events of the trainer overlapping [start_time, end_time).
    Back-to-back events are not conflicts.
    """
    try:
        return store.conflicts.check_conflicts(trainer_id, start_time, end_time, exclude_event_id)
    except ScheduleError as e:
        raise schedule_error_to_http(e)


@router.get("/trainers", response_model=List[TrainerSchedule])
async def list_trainers(store: ScheduleStore = Depends(get_schedule_store)) -> List[TrainerSchedule]:
    return store.trainers


@router.get("/trainers/available", response_model=List[TrainerSchedule])
async def get_available_trainers(
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    exclude_event_id: Optional[str] = Query(None),
    store: ScheduleStore = Depends(get_schedule_store),
) -> List[TrainerSchedule]:
    try:
        return store.availability.get_available_trainers(start_time, end_time, exclude_event_id)
    except ScheduleError as e:
        raise schedule_error_to_http(e)


@router.get("/trainers/{trainer_id}/events", response_model=List[ScheduleEvent])
async def get_trainer_events(
    trainer_id: str = Path(...),
    store: ScheduleStore = Depends(get_schedule_store),
) -> List[ScheduleEvent]:
    return store.get_events_by_trainer(trainer_id)


@router.get("/trainers/{trainer_id}/overview", response_model=TrainerOverview)
async def get_trainer_overview(
    trainer_id: str = Path(...),
    store: ScheduleStore = Depends(get_schedule_store),
) -> TrainerOverview:
    if store.get_trainer(trainer_id) is None:
        raise schedule_error_to_http(TrainerNotFoundError(trainer_id))
    return store.analytics.get_trainer_overview(trainer_id)


@router.get("/trainers/{trainer_id}/next-slot", response_model=Optional[TimeSlot])
async def get_next_available_slot(
    trainer_id: str = Path(...),
    duration_minutes: Optional[int] = Query(None, gt=0, le=24 * 60),
    store: ScheduleStore = Depends(get_schedule_store),
) -> Optional[TimeSlot]:
    """
    Next Available Slot

    Returns null when the trainer has no free slot within the search horizon.

    Raises:
        HTTPException 404: Unknown trainer.
    """
    if store.get_trainer(trainer_id) is None:
        raise schedule_error_to_http(TrainerNotFoundError(trainer_id))
    return store.availability.get_next_available_slot(trainer_id, duration_minutes)


# Analytics endpoints
@router.get("/analytics", response_model=ScheduleAnalytics)
async def get_analytics(store: ScheduleStore = Depends(get_schedule_store)) -> ScheduleAnalytics:
    return store.analytics.get_analytics()


@router.get("/stats", response_model=ScheduleStats)
async def get_schedule_stats(store: ScheduleStore = Depends(get_schedule_store)) -> ScheduleStats:
    return store.analytics.get_schedule_stats()


@router.get("/debug", response_model=DebugStats)
async def get_debug_stats(store: ScheduleStore = Depends(get_schedule_store)) -> DebugStats:
    return store.debug_stats()


@router.post("/refresh", response_model=DebugStats)
async def refresh_data(store: ScheduleStore = Depends(get_schedule_store)) -> DebugStats:
    """
    Refresh Data

    Reloads events and trainers from the remote repository, replacing the snapshot.

    Raises:
        HTTPException 502: The reload failed; the snapshot is now empty.
    """
    if not await store.refresh() and store.error:
        logger.error(f"Refresh fallido: {store.error}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=store.error)
    return store.debug_stats()
