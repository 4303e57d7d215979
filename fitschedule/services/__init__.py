"""
Servicios del motor de agenda: store, conflictos, disponibilidad,
estadísticas y notificaciones.
"""

from fitschedule.services.subscriptions import ScheduleEventBus
from fitschedule.services.conflicts import ConflictDetector
from fitschedule.services.availability import AvailabilityFinder
from fitschedule.services.analytics import ScheduleAnalyticsService
from fitschedule.services.schedule_store import ScheduleStore

__all__ = [
    "ScheduleEventBus",
    "ConflictDetector",
    "AvailabilityFinder",
    "ScheduleAnalyticsService",
    "ScheduleStore",
]
