"""
Utilidades para el manejo de zonas horarias en el motor de agenda.

Los eventos se guardan siempre en UTC (aware). Las preguntas de "reloj de
pared" (horario laboral, día de la semana, hora del día) se responden en la
zona horaria del gimnasio.
"""
from datetime import date, datetime, time, timezone
from typing import Any, Optional
import pytz


def convert_naive_to_gym_timezone(naive_dt: datetime, gym_timezone: str) -> datetime:
    """
    Interpreta una hora local del gimnasio y la devuelve aware en esa zona.

    pytz resuelve el desfase de la fecha concreta, así que el horario de
    verano queda aplicado.
    """
    if naive_dt.tzinfo is not None:
        raise ValueError(f"Se esperaba una hora local sin zona y se recibió {naive_dt.isoformat()}")
    return pytz.timezone(gym_timezone).localize(naive_dt)


def normalize_to_utc(dt: Optional[datetime], gym_timezone: str) -> Optional[datetime]:
    """
    Lleva cualquier datetime a UTC aware.

    Los naive se consideran hora local del gimnasio; los aware conservan su instante.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = convert_naive_to_gym_timezone(dt, gym_timezone)
    return dt.astimezone(timezone.utc)


def convert_utc_to_local(utc_dt: datetime, gym_timezone: str) -> datetime:
    """Hora local del gimnasio para un instante UTC (un naive se toma como UTC)."""
    if utc_dt.tzinfo is None:
        utc_dt = utc_dt.replace(tzinfo=timezone.utc)
    return utc_dt.astimezone(pytz.timezone(gym_timezone))


def localize_wall_clock(day: date, wall_time: time, gym_timezone: str) -> datetime:
    """Construye el instante aware correspondiente a `day` a las `wall_time` locales."""
    return convert_naive_to_gym_timezone(datetime.combine(day, wall_time), gym_timezone)


def weekday_index(dt: datetime) -> int:
    """Día de la semana con 0=Domingo ... 6=Sábado (convención de los datos de origen)."""
    return (dt.weekday() + 1) % 7


def parse_hhmm(value: Any) -> Optional[time]:
    """Convierte 'HH:MM' en time. Devuelve None si el formato no es válido."""
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        return None
    try:
        hour, minute = map(int, value.strip().split(":"))
        return time(hour=hour, minute=minute)
    except (ValueError, TypeError):
        return None


def parse_timestamp(value: Any, gym_timezone: str) -> Optional[datetime]:
    """
    Interpreta un timestamp crudo y lo devuelve aware en UTC.

    Acepta datetime, cadenas ISO-8601 (con o sin 'Z') y epoch en milisegundos.
    Las cadenas sin zona se interpretan en la zona del gimnasio.
    Devuelve None si no se puede interpretar o si cae fuera del rango de datetime.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    # Fechas en los extremos del calendario no caben en UTC
    try:
        return normalize_to_utc(value, gym_timezone)
    except (OverflowError, ValueError):
        return None
