# barrier_pricing/utils.py

import logging
import sys


__all__ = [
    "LOG_FORMAT",
    "get_logger",
]


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def get_logger(name, level="WARNING", stream=None):
    """
    Return a named logger with a single stream handler.

    Parameters
    ----------
    name : str
        Logger name (usually the package name so module loggers propagate to it).
    level : str
        "DEBUG", "INFO", "WARNING", ... Unknown names fall back to WARNING.
    stream : file-like, optional
        Destination of the handler; defaults to stderr so stdout stays free
        for the pricing report.

    Returns
    -------
    logging.Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, str(level).upper(), logging.WARNING))

    # drop handlers from earlier calls; their stream may already be closed
    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger
