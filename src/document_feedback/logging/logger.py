import logging
import os
from typing import Optional

ROOT_LOGGER_NAME = "document_feedback"


class LoggingConfig:
    """Singleton switch controlling whether package logs are emitted."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._enabled = True
            cls._instance._level = os.getenv("FEEDBACK_LOG_LEVEL", "INFO").upper()
        return cls._instance

    @property
    def enabled(self) -> bool:
        """Whether log records pass the package filter."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = bool(value)

    @property
    def level(self) -> str:
        """Name of the minimum level for the package handler."""
        return self._level

    @classmethod
    def reset(cls) -> None:
        """Reset the configuration to default state (useful for testing)."""
        cls._instance = None


class LogFilter(logging.Filter):
    """Drops every record while logging is switched off in LoggingConfig."""

    def filter(self, record):
        return LoggingConfig().enabled


class FeedbackLogger:
    """Owns the package root logger and hands out child loggers."""

    _instance: Optional[logging.Logger] = None

    @classmethod
    def get_logger(cls, name: Optional[str] = None) -> logging.Logger:
        """
        Get or create a logger under the package root.

        Args:
            name: Optional child name, usually the calling module's __name__.
                Names already under the package root are not nested twice.

        Returns:
            Configured logger instance
        """
        if cls._instance is None:
            logger = logging.getLogger(ROOT_LOGGER_NAME)
            level = logging.getLevelName(LoggingConfig().level)
            if not isinstance(level, int):
                level = logging.INFO
            logger.setLevel(level)
            logger.propagate = False

            if not logger.handlers:
                handler = logging.StreamHandler()
                handler.setLevel(level)
                handler.setFormatter(
                    logging.Formatter(
                        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                    )
                )
                handler.addFilter(LogFilter())
                logger.addHandler(handler)

            cls._instance = logger

        if not name or name == ROOT_LOGGER_NAME:
            return cls._instance

        prefix = f"{ROOT_LOGGER_NAME}."
        if name.startswith(prefix):
            name = name[len(prefix):]
        return cls._instance.getChild(name)

    @classmethod
    def reset(cls) -> None:
        """Reset the logger (useful for testing)."""
        cls._instance = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Convenience function to get a logger instance.

    Args:
        name: Optional name for the logger. If None, the package root is returned.

    Returns:
        Configured logger instance
    """
    return FeedbackLogger.get_logger(name)
