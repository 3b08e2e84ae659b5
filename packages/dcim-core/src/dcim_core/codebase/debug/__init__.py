import logging
import os
from functools import wraps

_SPY_LOGGER = logging.getLogger("dcim.spy")


def spy_enabled() -> bool:
    val = os.getenv("DCIM_SPY", "0")
    return str(val).lower() not in {"", "0", "false", "no"}


def spy_trace(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        if spy_enabled():
            _SPY_LOGGER.debug("Entering %s", func.__qualname__)
        result = func(*args, **kwargs)
        if spy_enabled():
            _SPY_LOGGER.debug("Exiting %s", func.__qualname__)
        return result

    return wrapper


def configure_spy_logger(level: int = logging.DEBUG) -> None:
    """
    Attach a stream handler to the spy logger if the app didn't configure logging.
    Safe to call multiple times.
    """
    if not _SPY_LOGGER.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        _SPY_LOGGER.addHandler(handler)
    _SPY_LOGGER.setLevel(level)
