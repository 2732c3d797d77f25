"""
Shared helpers.
"""
import logging

from rbac_compiler.core import config

_configured = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with the specified name.

    The first call attaches a stream handler to the package logger using
    ``LOG_LEVEL`` from the environment.
    """
    global _configured
    if not _configured:
        package_logger = logging.getLogger("rbac_compiler")
        if not package_logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("{asctime} {levelname} {name} {message}", style="{"))
            package_logger.addHandler(handler)
        package_logger.setLevel(config.LOG_LEVEL)
        _configured = True
    return logging.getLogger(name)
