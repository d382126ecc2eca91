from .feedback import FeedbackCommands

__all__ = [
    "FeedbackCommands",
]
