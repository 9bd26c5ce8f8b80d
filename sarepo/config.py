# Configuration settings should be set in app.config
# get_config looks up the option in the current app, then the SAREPO class defaults, then the environment
import os
import logging
from flask import current_app
import sarepo
from typing import Optional, Union


def get_config(option: str) -> Optional[Union[bool, int, str]]:
    """Retrieve a configuration parameter from the app
    :param option: configuration parameter
    :return: configuration value
    """
    try:
        result = current_app.config[option]
    except (KeyError, RuntimeError):
        # RuntimeError: working outside of the application context
        result = getattr(sarepo.SAREPO, option, None)
    if result is None:
        result = os.environ.get(option, None)
    return result


def get_int_config(option: str) -> int:
    """
    :param option: configuration parameter
    :return: the configuration value converted to an integer
    """
    return int(get_config(option))


def is_debug() -> bool:
    """
    We use the loglevel to check whether we're running in debug mode
    :return: whether the app is in debug mode
    :rtype: Boolean
    """
    return sarepo.log.getEffectiveLevel() < logging.INFO
