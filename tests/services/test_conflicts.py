"""
Tests para la detección de conflictos de horario.
"""

from datetime import datetime

import pytest

from fitschedule.core.exceptions import InvalidIntervalError
from tests.factories import MONDAY, TUESDAY, at, make_settings, make_store


class TestConflictDetector:

    @pytest.mark.asyncio
    async def test_overlapping_interval_returns_event(self):
        """Lunes 10:30-11:30 choca con el evento de 10:00-11:00."""
        store = await make_store()

        conflicts = store.conflicts.check_conflicts("t1", at(MONDAY, 10, 30), at(MONDAY, 11, 30))

        assert [event.id for event in conflicts] == ["e1"]

    @pytest.mark.asyncio
    async def test_back_to_back_is_not_a_conflict(self):
        """Lunes 11:00-12:00 empieza justo cuando termina e1; e3 está cancelado."""
        store = await make_store()

        assert store.conflicts.check_conflicts("t1", at(MONDAY, 11), at(MONDAY, 12)) == []
        assert store.conflicts.is_available("t1", at(MONDAY, 11), at(MONDAY, 12)) is True

    @pytest.mark.asyncio
    async def test_results_sorted_and_scoped_to_trainer(self):
        store = await make_store()

        conflicts = store.conflicts.check_conflicts("t1", at(MONDAY, 9), at(MONDAY, 18))

        assert [event.id for event in conflicts] == ["e1", "e2"]
        assert store.conflicts.check_conflicts("t2", at(MONDAY, 9), at(MONDAY, 18)) == []

    @pytest.mark.asyncio
    async def test_exclude_event_id(self):
        store = await make_store()

        conflicts = store.conflicts.check_conflicts(
            "t1", at(MONDAY, 10), at(MONDAY, 11), exclude_event_id="e1"
        )

        assert conflicts == []

    @pytest.mark.asyncio
    async def test_conflicts_match_overlap_definition(self):
        store = await make_store()
        start, end = at(MONDAY, 10, 45), at(MONDAY, 14, 15)

        conflicts = {event.id for event in store.conflicts.check_conflicts("t1", start, end)}
        expected = {
            event.id
            for event in store.events_for("t1")
            if event.is_active and event.start_time < end and event.end_time > start
        }

        assert conflicts == expected == {"e1", "e2"}

    @pytest.mark.asyncio
    async def test_unknown_trainer_has_no_conflicts(self):
        store = await make_store()
        assert store.conflicts.check_conflicts("nadie", at(TUESDAY, 8), at(TUESDAY, 9)) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("start, end", [
        (at(MONDAY, 11), at(MONDAY, 10)),
        (at(MONDAY, 10), at(MONDAY, 10)),
    ])
    async def test_invalid_interval_raises(self, start, end):
        store = await make_store()
        with pytest.raises(InvalidIntervalError):
            store.conflicts.check_conflicts("t1", start, end)

    @pytest.mark.asyncio
    async def test_naive_interval_is_read_in_gym_timezone(self):
        # En Madrid (UTC+2 en junio) 12:30 local son las 10:30 UTC
        store = await make_store(settings=make_settings(GYM_TIMEZONE="Europe/Madrid"))

        conflicts = store.conflicts.check_conflicts("t1", datetime(2025, 6, 2, 12, 30), datetime(2025, 6, 2, 13, 0))

        assert [event.id for event in conflicts] == ["e1"]
