"""
Tests para el bus de notificaciones de la agenda.
"""

import logging

from fitschedule.schemas.schedule import ChangeAction, ScheduleChange
from fitschedule.services.subscriptions import ScheduleEventBus


def _change(action=ChangeAction.created):
    return ScheduleChange(action=action, created=["e1"], total_events=1)


class TestScheduleEventBus:

    def test_delivery_in_registration_order(self):
        bus = ScheduleEventBus()
        calls = []
        bus.subscribe(lambda events: calls.append("primero"))
        bus.subscribe(lambda events: calls.append("segundo"))
        bus.subscribe_changes(lambda change: calls.append(change.action.value))

        bus.publish([], _change())

        assert calls == ["primero", "segundo", "created"]

    def test_full_collection_is_a_copy(self):
        bus = ScheduleEventBus()
        received = []
        bus.subscribe(received.append)
        events = []

        bus.publish(events, _change())

        assert received[0] == events
        assert received[0] is not events

    def test_unsubscribe_is_idempotent(self):
        bus = ScheduleEventBus()
        unsubscribe = bus.subscribe(lambda events: None)
        bus.subscribe_changes(lambda change: None)

        unsubscribe()
        unsubscribe()

        assert bus.subscriber_count == 1

    def test_unsubscribe_during_delivery_keeps_current_round(self):
        bus = ScheduleEventBus()
        calls = []
        unsubscribers = {}

        def first(events):
            calls.append("first")
            unsubscribers["second"]()

        bus.subscribe(first)
        unsubscribers["second"] = bus.subscribe(lambda events: calls.append("second"))

        bus.publish([], _change())
        bus.publish([], _change())

        assert calls == ["first", "second", "first"]

    def test_failing_subscriber_is_logged_and_skipped(self, caplog):
        bus = ScheduleEventBus()
        calls = []

        def broken(events):
            raise RuntimeError("fallo del suscriptor")

        bus.subscribe(broken)
        bus.subscribe(lambda events: calls.append("ok"))

        with caplog.at_level(logging.ERROR, logger="fitschedule.services.subscriptions"):
            bus.publish([], _change())

        assert calls == ["ok"]
        assert "fallo del suscriptor" in caplog.text
