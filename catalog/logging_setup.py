import logging

from catalog.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: str | None = None) -> None:
    """Configure root logging once per process."""
    global _configured
    if _configured:
        return
    level_name = (level or ("DEBUG" if settings.debug else settings.log_level) or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
    _configured = True
