from document_feedback.feedback.interface import FeedbackNotifier
from document_feedback.logging.logger import get_logger

logger = get_logger(__name__)


class LogNotifier(FeedbackNotifier):
    """Sends notices to the package logger, for headless use."""

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.error(message)

    def info(self, message: str) -> None:
        logger.info(message)
