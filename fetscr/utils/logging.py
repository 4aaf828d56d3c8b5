"""Logging configuration."""

import logging
import sys

ROOT_LOGGER_NAME = "fetscr"


def configure_logging(log_level: str = "INFO", stream=None) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream for log records (defaults to stdout)

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Reconfiguring replaces the handler instead of stacking a second one
    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(numeric_level)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger nested under the application logger."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_search(
    logger: logging.Logger,
    account_id: str,
    mode: str,
    result_count: int,
    upstream_errors: int = 0,
):
    """
    Log an accepted search.

    Args:
        logger: Logger instance
        account_id: Account the search was billed to
        mode: "simple" or "keyword"
        result_count: Items returned across all sub-queries
        upstream_errors: Pages degraded to empty while fetching
    """
    logger.info(
        f"Search for account {account_id} ({mode}): {result_count} results"
    )
    if upstream_errors:
        logger.warning(
            f"Search for account {account_id} served with "
            f"{upstream_errors} degraded upstream page(s)"
        )
