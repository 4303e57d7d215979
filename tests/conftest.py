import pytest

from fitschedule.repositories.memory import InMemoryScheduleRepository
from tests.factories import make_settings, sample_events, sample_trainers


@pytest.fixture
def settings():
    """Configuración de test: zona UTC y sin carga al arrancar."""
    return make_settings()


@pytest.fixture
def raw_events():
    return sample_events()


@pytest.fixture
def raw_trainers():
    return sample_trainers()


@pytest.fixture
def memory_repository(raw_events, raw_trainers):
    return InMemoryScheduleRepository(raw_events, raw_trainers, gym_timezone="UTC")
