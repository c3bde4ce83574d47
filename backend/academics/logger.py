import logging

from academics.core import config

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def get_logger(name: str = "academics") -> logging.Logger:
    """Returns a named logger, configuring the root handler on first use."""
    global _configured
    if not _configured:
        logging.basicConfig(level=config.LOG_LEVEL, format=LOG_FORMAT)
        _configured = True
    return logging.getLogger(name)
