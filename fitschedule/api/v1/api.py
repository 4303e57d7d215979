from fastapi import APIRouter

from fitschedule.api.v1.endpoints import schedule

api_router = APIRouter()

# Schedule module (events, trainers, availability and analytics)
api_router.include_router(schedule.router, prefix="/schedule", tags=["schedule"])
