import logging
import os
import sys
from datetime import datetime

from fitschedule.core.config import get_settings

NORMALIZATION_LOGGER = "fitschedule.normalization"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(filename)s:%(lineno)d | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging():
    """
    Logging de la aplicación: consola y un fichero diario en LOG_DIR.

    DEBUG_MODE sube el nivel a DEBUG. Las reparaciones de datos van por
    NORMALIZATION_LOGGER para poder filtrarlas o alertar sobre ellas.
    """
    settings = get_settings()
    level = logging.DEBUG if settings.DEBUG_MODE else logging.INFO

    os.makedirs(settings.LOG_DIR, exist_ok=True)
    log_file = os.path.join(settings.LOG_DIR, f"fitschedule_{datetime.now().strftime('%Y%m%d')}.log")

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout), logging.FileHandler(log_file)]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    # Uvicorn puede haber instalado sus propios handlers antes
    if root.hasHandlers():
        root.handlers.clear()
    for handler in handlers:
        root.addHandler(handler)

    logging.getLogger(NORMALIZATION_LOGGER).setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.INFO)

    root.info("Logging configurado (nivel %s, fichero %s)", logging.getLevelName(level), log_file)
