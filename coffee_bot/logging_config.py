"""
Logging configuration for the coffee bot application.

Usage:
    from coffee_bot.logging_config import setup_logging
    setup_logging()  # Call once at application startup

Environment variables:
    LOG_LEVEL: Set to DEBUG, INFO, WARNING, ERROR, or CRITICAL (default: INFO)
    TURN_LOG_LEVEL: Level for the conversation loggers only (default: LOG_LEVEL).
        TURN_LOG_LEVEL=DEBUG traces each turn's action and pending item and the
        oracle parsing without turning on debug output for the whole app.
"""
import logging
import os
import sys

VALID_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Loggers that follow TURN_LOG_LEVEL instead of LOG_LEVEL
TURN_LOGGERS = ["coffee_bot.engine", "coffee_bot.llm_client", "coffee_bot.single_turn"]

# Third-party loggers that are chatty below WARNING
NOISY_LOGGERS = ["httpx", "httpcore", "openai", "sqlalchemy.engine", "uvicorn.access"]


def _normalize_level(level: str, default: str = "INFO") -> str:
    level = (level or "").upper()
    return level if level in VALID_LEVELS else default


def setup_logging(level: str = None, turn_level: str = None) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               If not provided, reads from LOG_LEVEL env var, defaults to INFO.
        turn_level: Level for the conversation loggers. If not provided, reads
               from TURN_LOG_LEVEL env var, defaults to level.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    level = _normalize_level(level)

    if turn_level is None:
        turn_level = os.getenv("TURN_LOG_LEVEL", level)
    turn_level = _normalize_level(turn_level, default=level)

    numeric_level = getattr(logging, level)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )

    logging.getLogger("coffee_bot").setLevel(numeric_level)

    # The root handler has no level of its own, so turn-level DEBUG records
    # reach it even when LOG_LEVEL is higher.
    for name in TURN_LOGGERS:
        logging.getLogger(name).setLevel(getattr(logging, turn_level))

    if level != "DEBUG":
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug("Logging configured at %s level (turns at %s)", level, turn_level)
