import sys

from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | {message}"

_sink_id = None


def configure_logging(level: str = "WARNING", sink=None) -> None:
    """Route interpreter diagnostics to a single stderr sink at `level`."""
    global _sink_id
    if _sink_id is None:
        logger.remove()
    else:
        logger.remove(_sink_id)
    _sink_id = logger.add(sink or sys.stderr, level=level, format=LOG_FORMAT)
