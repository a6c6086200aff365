import logging

from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)

# Shared application logger, imported as `from callsignal.core.log_config import logger`.
logger = logging.getLogger("callsignal")
