"""Logging setup shared by the command line and the API server."""

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(verbose: bool = False, log_file: Path | None = None) -> None:
    """Configure root logging for a protograph process.

    Args:
        verbose: Show DEBUG messages (resolution traces) on the console.
        log_file: Also write every protograph message, DEBUG included, to this file.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=level)

    package_logger = logging.getLogger("protograph")
    package_logger.setLevel(level)

    if log_file is not None:
        for handler in logging.getLogger().handlers:
            if handler.level == logging.NOTSET:
                handler.setLevel(level)
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        logging.getLogger().addHandler(file_handler)
        package_logger.setLevel(logging.DEBUG)
