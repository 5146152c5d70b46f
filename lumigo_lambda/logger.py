import logging
import os

from lumigo_lambda.config import as_bool

# accepted by LUMIGO_LOG_LEVEL on top of the names logging knows
_EXTRA_LEVELS = {
    "TRACE": 5,
    "OFF": 100,
}


def _level_from_name(name):
    level = logging.getLevelName(name)
    if isinstance(level, int):
        return level
    return _EXTRA_LEVELS.get(name)


def initialize_logging(name):
    """Set the level of the ``name`` logger from the environment.

    ``LUMIGO_DEBUG`` forces DEBUG; otherwise ``LUMIGO_LOG_LEVEL`` is used,
    falling back to INFO when it is unset or not a level name.
    """
    logger = logging.getLogger(name)
    if as_bool(os.environ.get("LUMIGO_DEBUG", "false")):
        logger.setLevel(logging.DEBUG)
        return

    str_level = (os.environ.get("LUMIGO_LOG_LEVEL") or "INFO").upper()
    level = _level_from_name(str_level)
    if level is None:
        logger.setLevel(logging.INFO)
        logger.warning("Invalid log level: %s Defaulting to INFO", str_level)
        return
    logger.setLevel(level)
