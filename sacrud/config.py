# Configuration settings can be set in app.config (Flask) or as SACRUD class attributes,
# environment variables are used as a last resort
import os
import logging
from flask import current_app
from functools import lru_cache
import sacrud
from typing import Any, Optional


@lru_cache(maxsize=128)
def get_config(option: str) -> Optional[Any]:
    """Retrieve a configuration parameter
    :param option: configuration parameter
    :return: configuration value
    """
    try:
        result = current_app.config[option]
    except (KeyError, RuntimeError):
        # RuntimeError: working outside of a flask application context (f.i. FastAPI)
        result = getattr(sacrud.SACRUD, option, None)
    if result is None:
        result = os.environ.get(option, None)
    return result


def get_int_config(option: str) -> int:
    """
    :param option: configuration parameter
    :return: the configuration value as an integer
    """
    return int(get_config(option))


def is_debug() -> bool:
    """
    We use the loglevel to check whether we're running in debug mode
    :return: whether the app is in debug mode
    :rtype: Boolean
    """
    return sacrud.log.getEffectiveLevel() < logging.INFO
