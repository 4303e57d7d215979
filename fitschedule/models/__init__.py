from fitschedule.models.schedule import EventType, EventStatus, RecurrenceType

__all__ = ["EventType", "EventStatus", "RecurrenceType"]
