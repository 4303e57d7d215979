"""
ScheduleRepository - cliente async del repositorio remoto de agenda.

Contrato remoto:
- GET    events           -> {success, data: [RawEvent]}
- GET    trainers         -> {success, data|items|trainers: [RawTrainer]}
- POST   events           -> RawEvent (o {success, data: RawEvent})
- PATCH  events/{id}      -> RawEvent (o {success, data: RawEvent})
- DELETE events/{id}      -> vacío

Las cancelaciones de asyncio se propagan a la petición en curso, de modo que
un refresh que reemplaza a otro puede abortar la carga anterior.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from fitschedule.core.config import Settings, get_settings
from fitschedule.core.exceptions import EnvelopeError, RemoteConflictError, TransportError
from fitschedule.repositories.base import BaseScheduleRepository
from fitschedule.repositories.normalizers import (
    normalize_events_payload,
    normalize_trainers_payload,
    unwrap_record,
)
from fitschedule.schemas.schedule import (
    EventFilters,
    NormalizedBatch,
    ScheduleEvent,
    TrainerSchedule,
)

logger = logging.getLogger(__name__)


class ScheduleRepository(BaseScheduleRepository):
    """
    Cliente HTTP del repositorio de eventos y entrenadores.

    Note:
        - Un único httpx.AsyncClient por instancia (cerrar con aclose())
        - Los fallos de red y los códigos no 2xx se convierten en TransportError
        - Un 409 se convierte en RemoteConflictError con la lista de conflictos
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.events_path = self.settings.SCHEDULE_EVENTS_PATH.rstrip("/")
        self.trainers_path = self.settings.SCHEDULE_TRAINERS_PATH.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.SCHEDULE_API_BASE_URL,
            timeout=self.settings.SCHEDULE_API_TIMEOUT_SECONDS,
            headers=self._default_headers(),
        )

    def _default_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.SCHEDULE_API_TOKEN:
            headers["Authorization"] = f"Bearer {self.settings.SCHEDULE_API_TOKEN}"
        return headers

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """
        Ejecuta la petición y devuelve el JSON decodificado (None si no hay cuerpo).

        Raises:
            RemoteConflictError: si el repositorio responde 409
            TransportError: error de red o respuesta no exitosa
            EnvelopeError: cuerpo que no es JSON
        """
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Error de red en {method} {path}: {str(e)}")
            raise TransportError(f"Error de red en {method} {path}: {e}") from e

        if response.status_code == 409:
            body = self._safe_json(response)
            conflicts = body.get("conflicts", []) if isinstance(body, dict) else []
            message = (body.get("message") if isinstance(body, dict) else None) or "Conflicto de horario"
            logger.warning(f"{method} {path} rechazado por conflicto: {message}")
            raise RemoteConflictError(message, conflicts=conflicts)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP {response.status_code} en {method} {path}")
            raise TransportError(
                f"HTTP {response.status_code} en {method} {path}",
                status_code=response.status_code,
            ) from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise EnvelopeError(f"La respuesta de {method} {path} no es JSON") from e

    @staticmethod
    def _safe_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {}

    async def load_events(self, filters: Optional[EventFilters] = None) -> NormalizedBatch[ScheduleEvent]:
        params = filters.in_timezone(self.settings.GYM_TIMEZONE).to_query_params() if filters else None
        payload = await self._request("GET", self.events_path, params=params)
        batch = normalize_events_payload(
            payload,
            self.settings.GYM_TIMEZONE,
            self.settings.DEFAULT_SLOT_DURATION_MINUTES,
        )
        logger.info(f"Eventos cargados: {len(batch.records)} ({len(batch.warnings)} avisos de normalización)")
        return batch

    async def load_trainers(self) -> NormalizedBatch[TrainerSchedule]:
        payload = await self._request("GET", self.trainers_path)
        batch = normalize_trainers_payload(payload)
        logger.info(f"Entrenadores cargados: {len(batch.records)} ({len(batch.warnings)} avisos de normalización)")
        return batch

    async def create_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", self.events_path, json=payload)
        return unwrap_record(response)

    async def update_event(self, event_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("PATCH", f"{self.events_path}/{event_id}", json=patch)
        return unwrap_record(response)

    async def delete_event(self, event_id: str) -> None:
        response = await self._request("DELETE", f"{self.events_path}/{event_id}")
        if isinstance(response, dict) and response.get("success") is False:
            raise TransportError(str(response.get("message") or "Eliminación rechazada"))
