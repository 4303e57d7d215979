"""
Tests para el cliente HTTP del repositorio de agenda (httpx.MockTransport).
"""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from fitschedule.core.exceptions import EnvelopeError, RemoteConflictError, TransportError
from fitschedule.repositories.schedule import ScheduleRepository
from fitschedule.schemas.schedule import EventFilters
from tests.factories import MONDAY, at, make_settings, raw_event


def _repository(handler, **settings_overrides):
    settings = make_settings(SCHEDULE_API_BASE_URL="https://schedule.test", **settings_overrides)
    client = httpx.AsyncClient(base_url=settings.SCHEDULE_API_BASE_URL, transport=httpx.MockTransport(handler))
    return ScheduleRepository(settings, client=client)


class TestScheduleRepository:

    @pytest.mark.asyncio
    async def test_load_events_sends_filters_and_normalizes(self):
        captured = {}

        def handler(request):
            captured["path"] = request.url.path
            captured["params"] = dict(request.url.params)
            return httpx.Response(200, json={
                "success": True,
                "data": [raw_event("e1", "t1", at(MONDAY, 10), at(MONDAY, 11), status="CONFIRMED")],
            })

        repository = _repository(handler)
        batch = await repository.load_events(EventFilters(trainer_id="t1", limit=5))

        assert captured["path"] == "/api/schedule/events"
        assert captured["params"] == {"trainerId": "t1", "limit": "5"}
        assert batch.records[0].status.value == "confirmed"
        await repository.aclose()

    @pytest.mark.asyncio
    async def test_naive_filter_dates_are_sent_in_utc(self):
        captured = {}

        def handler(request):
            captured["params"] = dict(request.url.params)
            return httpx.Response(200, json={"success": True, "data": []})

        repository = _repository(handler, GYM_TIMEZONE="Europe/Madrid")
        await repository.load_events(EventFilters(start_date=datetime(2025, 6, 3, 10, 0)))

        sent = datetime.fromisoformat(captured["params"]["startDate"].replace("Z", "+00:00"))
        assert sent.utcoffset() == timedelta(0)
        assert sent == datetime(2025, 6, 3, 8, 0, tzinfo=timezone.utc)
        await repository.aclose()

    @pytest.mark.asyncio
    async def test_load_trainers_accepts_items_key(self):
        def handler(request):
            assert request.url.path == "/api/schedule/trainers"
            return httpx.Response(200, json={"items": [{"id": "t1", "name": "Ana"}]})

        batch = await _repository(handler).load_trainers()
        assert batch.records[0].trainer_id == "t1"

    @pytest.mark.asyncio
    async def test_envelope_failure(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "error": "Failed to fetch events"})

        with pytest.raises(EnvelopeError):
            await _repository(handler).load_events()

    @pytest.mark.asyncio
    async def test_non_json_body(self):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(EnvelopeError):
            await _repository(handler).load_events()

    @pytest.mark.asyncio
    async def test_server_error_becomes_transport_error(self):
        def handler(request):
            return httpx.Response(500, json={"success": False})

        with pytest.raises(TransportError) as exc_info:
            await _repository(handler).load_trainers()
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_network_error_becomes_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError):
            await _repository(handler).load_events()

    @pytest.mark.asyncio
    async def test_create_conflict_is_mapped(self):
        def handler(request):
            return httpx.Response(409, json={
                "success": False,
                "message": "Trainer has conflicting events",
                "conflicts": [{"id": "e1", "title": "Sesión e1"}],
            })

        with pytest.raises(RemoteConflictError) as exc_info:
            await _repository(handler).create_event({"title": "x"})
        assert exc_info.value.status_code == 409
        assert exc_info.value.conflicts == [{"id": "e1", "title": "Sesión e1"}]

    @pytest.mark.asyncio
    async def test_create_and_update_unwrap_records(self):
        created = raw_event("e9", "t1", at(MONDAY, 16), at(MONDAY, 17))
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path, json.loads(request.content)))
            if request.method == "POST":
                return httpx.Response(201, json={"success": True, "data": created})
            return httpx.Response(200, json={**created, "status": "confirmed"})

        repository = _repository(handler)
        assert await repository.create_event({"title": "Nueva"}) == created
        updated = await repository.update_event("e9", {"status": "confirmed"})

        assert updated["status"] == "confirmed"
        assert seen[1] == ("PATCH", "/api/schedule/events/e9", {"status": "confirmed"})

    @pytest.mark.asyncio
    async def test_delete_accepts_empty_body(self):
        def handler(request):
            assert request.method == "DELETE"
            return httpx.Response(204)

        assert await _repository(handler).delete_event("e1") is None

    @pytest.mark.asyncio
    async def test_delete_rejected(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "message": "Evento bloqueado"})

        with pytest.raises(TransportError, match="Evento bloqueado"):
            await _repository(handler).delete_event("e1")

    def test_bearer_token_header(self):
        repository = ScheduleRepository(make_settings(SCHEDULE_API_TOKEN="secreto"), client=httpx.AsyncClient())
        assert repository._default_headers()["Authorization"] == "Bearer secreto"
