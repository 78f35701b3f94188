"""Logging configuration for the ping plugin.

The plugin talks to its host over stdout, so its own records never go
there. Only the ``pingplugin`` logger tree is configured; a host process
that embeds the package keeps whatever root configuration it already has.
"""

import logging
import os
import sys

PACKAGE_LOGGER = "pingplugin"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(default_level: str = "WARNING", environ=None) -> logging.Handler:
    """Attach a single handler to the package logger and return it.

    Environment Variables:
        PINGPLUGIN_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL.
                              Unknown names fall back to default_level.
        PINGPLUGIN_LOG_FILE: Append records to this file instead of stderr.

    Calling it again replaces the handler installed by the previous call.

    Examples:
        $ PINGPLUGIN_LOG_LEVEL=DEBUG PINGPLUGIN_LOG_FILE=/tmp/ping.log \\
            python -m pingplugin --execute='{"host": "example.com"}'
    """
    env = os.environ if environ is None else environ
    default = LEVELS.get(default_level.upper(), logging.WARNING)

    level_name = env.get("PINGPLUGIN_LOG_LEVEL", "").strip().upper()
    level = LEVELS.get(level_name, default)

    log_file = env.get("PINGPLUGIN_LOG_FILE") or None
    if log_file:
        path = os.path.expanduser(log_file)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for old in package_logger.handlers[:]:
        package_logger.removeHandler(old)
        old.close()
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    package_logger.propagate = False

    logger = logging.getLogger(__name__)
    if level_name and level_name not in LEVELS:
        logger.warning(
            "Unknown PINGPLUGIN_LOG_LEVEL=%r, using %s",
            level_name,
            logging.getLevelName(default),
        )
    logger.debug(
        "Logging configured: level=%s, destination=%s",
        logging.getLevelName(level),
        log_file or "stderr",
    )
    return handler
