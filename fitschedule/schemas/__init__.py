from fitschedule.schemas.schedule import (
    ScheduleEvent,
    TrainerSchedule,
    WorkingHours,
    Recurrence,
    EventCreate,
    EventUpdate,
    EventStatusUpdate,
    EventFilters,
    TimeSlot,
    NormalizationWarning,
    NormalizedBatch,
    ScheduleChange,
    ChangeAction,
)
from fitschedule.schemas.analytics import (
    ScheduleAnalytics,
    ScheduleStats,
    TrainerOverview,
    TrainerStats,
    DebugStats,
)
