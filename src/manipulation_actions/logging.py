"""Define utility functions to log messages and errors in a middleware-agnostic manner."""

import logging

LOGGER_NAME = "manipulation_actions"

_logger = logging.getLogger(LOGGER_NAME)


def log_debug(message: str) -> None:
    """Log a message to the available debugging output channels.

    :param message: Message to be logged for debugging
    """
    _logger.debug(message)


def log_info(message: str) -> None:
    """Log a message to the available information output channels.

    :param message: Message to be logged as information
    """
    _logger.info(message)


def log_warning(message: str) -> None:
    """Log a message to the available warning output channels.

    :param message: Message to be logged as a warning
    """
    _logger.warning(message)


def log_error(message: str) -> None:
    """Log a message to the available error output channels.

    :param message: Message to be logged as an error
    """
    _logger.error(message)
