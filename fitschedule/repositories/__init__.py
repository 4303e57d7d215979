from fitschedule.repositories.base import BaseScheduleRepository
from fitschedule.repositories.schedule import ScheduleRepository
from fitschedule.repositories.memory import InMemoryScheduleRepository

__all__ = ["BaseScheduleRepository", "ScheduleRepository", "InMemoryScheduleRepository"]
