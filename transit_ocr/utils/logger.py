"""Centralized logging setup for the permit card pipeline.

One configuration is shared by the CLI, the API server and the batch
pipeline modules. Imaging and upload libraries are held at WARNING so
that a DEBUG run shows page and strategy decisions, not plugin chatter.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that emit per-image or per-chunk DEBUG records.
NOISY_LOGGERS: tuple[str, ...] = ("PIL", "pdf2image", "multipart", "python_multipart")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a standard format.

    Calling this more than once does not add handlers, so both the CLI
    and the API entry point can call it unconditionally.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        Logger for the module.
    """
    return logging.getLogger(name)
