import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fitschedule.api.v1.api import api_router
from fitschedule.core.config import Settings, get_settings
from fitschedule.core.logging_config import setup_logging
from fitschedule.repositories.base import BaseScheduleRepository
from fitschedule.repositories.schedule import ScheduleRepository
from fitschedule.services.schedule_store import ScheduleStore

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    repository: Optional[BaseScheduleRepository] = None,
) -> FastAPI:
    """
    Construye la aplicación con su store de agenda.

    Args:
        settings: Configuración (por defecto get_settings())
        repository: Repositorio remoto (por defecto el cliente HTTP de ScheduleRepository)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Código que se ejecuta al inicio
        repo = repository or ScheduleRepository(settings)
        store = ScheduleStore(repo, settings)
        app.state.schedule_store = store
        if settings.REFRESH_ON_STARTUP:
            if not await store.refresh():
                logger.warning(f"La carga inicial de la agenda falló: {store.error}")
        yield
        # Código que se ejecuta al cierre
        await repo.aclose()
        app.state.schedule_store = None

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description=settings.PROJECT_DESCRIPTION,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        lifespan=lifespan,
    )

    # Configurar CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Incluir routers
    app.include_router(api_router, prefix=settings.API_V1_STR)

    # Ruta raíz
    @app.get("/")
    def root():
        return {
            "message": "Bienvenido a FitSchedule",
            "docs": f"{settings.API_V1_STR}/docs",
        }

    return app


setup_logging()
app = create_app()

if __name__ == "__main__":
    uvicorn.run("fitschedule.main:app", host="0.0.0.0", port=8000, reload=True)
