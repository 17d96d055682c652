import json
import logging

from securevet.core.config import settings

_event_logger = logging.getLogger("securevet.events")


def configure_logging():
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def log_event(event: str, data: dict):
    """
    Logs structured debug info if enabled.
    """
    if not settings.DEBUG_EVENTS:
        return
    _event_logger.debug("%s: %s", event, json.dumps(data, default=str))
