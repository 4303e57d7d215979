"""
Tests para la traducción de errores del motor a respuestas HTTP.
"""

import pytest

from fitschedule.core.dependencies import schedule_error_to_http
from fitschedule.core.exceptions import (
    EnvelopeError,
    EventNotFoundError,
    InvalidIntervalError,
    RemoteConflictError,
    ScheduleError,
    SchedulingConflictError,
    TrainerNotFoundError,
    TransportError,
)


@pytest.mark.parametrize("error, status_code", [
    (EventNotFoundError("e1"), 404),
    (TrainerNotFoundError("t1"), 404),
    (SchedulingConflictError("ocupado", []), 409),
    (RemoteConflictError("ocupado", [{"id": "e1"}]), 409),
    (InvalidIntervalError("inicio posterior al fin"), 422),
    (TransportError("no encontrado", status_code=404), 404),
    (TransportError("timeout"), 502),
    (EnvelopeError("sin data"), 502),
    (ScheduleError("desconocido"), 500),
])
def test_schedule_error_to_http(error, status_code):
    assert schedule_error_to_http(error).status_code == status_code


def test_remote_conflicts_are_returned():
    exc = schedule_error_to_http(RemoteConflictError("ocupado", [{"id": "e1"}]))
    assert exc.detail["conflicts"] == [{"id": "e1"}]
