import enum


class EventType(str, enum.Enum):
    """Tipo de evento agendable."""
    TRAINING = "training"          # Entrenamiento personal
    CONSULTATION = "consultation"  # Consulta
    GROUP = "group"                # Clase grupal
    MAINTENANCE = "maintenance"    # Mantenimiento de sala/equipos


class EventStatus(str, enum.Enum):
    """Estado del evento. Cualquier estado puede pasar a cualquier otro."""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RecurrenceType(str, enum.Enum):
    """Frecuencia del descriptor de recurrencia (no se expande)."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
