"""
Bus de notificaciones del store de agenda.

Cada mutación confirmada del store entrega, de forma síncrona y en orden de
registro, la colección completa de eventos a los suscriptores de
`subscribe` y el diff del cambio a los suscriptores de `subscribe_changes`.
"""

import logging
from typing import Callable, List, Sequence

from fitschedule.schemas.schedule import ScheduleChange, ScheduleEvent

logger = logging.getLogger(__name__)

EventsCallback = Callable[[List[ScheduleEvent]], None]
ChangeCallback = Callable[[ScheduleChange], None]


class _Subscription:
    __slots__ = ("callback", "active")

    def __init__(self, callback):
        self.callback = callback
        self.active = True


class ScheduleEventBus:
    """
    Observador explícito con orden y baja definidos.

    Note:
        - La entrega es en orden de registro
        - Darse de baja durante una entrega no altera la ronda en curso
        - La función de baja es idempotente
        - Un suscriptor que falla se registra en el log y no corta la difusión
    """

    def __init__(self):
        self._event_subscribers: List[_Subscription] = []
        self._change_subscribers: List[_Subscription] = []

    @staticmethod
    def _register(registry: List[_Subscription], callback) -> Callable[[], None]:
        subscription = _Subscription(callback)
        registry.append(subscription)

        def unsubscribe() -> None:
            if subscription.active:
                subscription.active = False
                registry.remove(subscription)

        return unsubscribe

    def subscribe(self, callback: EventsCallback) -> Callable[[], None]:
        """Registra un callback que recibe la colección completa tras cada mutación."""
        return self._register(self._event_subscribers, callback)

    def subscribe_changes(self, callback: ChangeCallback) -> Callable[[], None]:
        """Registra un callback que recibe solo el diff de cada mutación."""
        return self._register(self._change_subscribers, callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._event_subscribers) + len(self._change_subscribers)

    @staticmethod
    def _deliver(registry: List[_Subscription], payload) -> None:
        for subscription in list(registry):
            try:
                subscription.callback(payload)
            except Exception as e:
                logger.error(f"Error en suscriptor de agenda {subscription.callback!r}: {str(e)}", exc_info=True)

    def publish(self, events: Sequence[ScheduleEvent], change: ScheduleChange) -> None:
        self._deliver(self._event_subscribers, list(events))
        self._deliver(self._change_subscribers, change)
