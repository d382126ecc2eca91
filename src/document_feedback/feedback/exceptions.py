"""
Exception hierarchy for the feedback system.

Every error raised by the models, the lifecycle table, the gateways and the
panels derives from FeedbackError. Validation problems are prevented by
disabling controls, persistence problems are reported to the user as
transient notices, and stale references degrade into soft notices.
"""

from typing import Optional


class FeedbackError(Exception):
    """Base class for feedback-related exceptions."""
    pass


class ValidationError(FeedbackError):
    """Raised when input or item state does not allow the requested action."""
    pass


class InvalidTransitionError(ValidationError):
    """Raised when a lifecycle transition is not allowed from the item's state."""

    def __init__(self, feedback_id: str, status, transition, reason: str = ""):
        self.feedback_id = feedback_id
        self.status = status
        self.transition = transition
        message = (
            f"Cannot {transition.value} feedback {feedback_id} "
            f"in status '{status.value}'"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class PersistenceError(FeedbackError):
    """Raised when the persistence gateway fails to complete an operation."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Persistence operation '{operation}' failed{detail}")


class StaleReferenceError(FeedbackError):
    """Raised when an action targets a feedback id that is no longer held locally."""

    def __init__(self, feedback_id: str):
        self.feedback_id = feedback_id
        super().__init__(f"Feedback {feedback_id} no longer exists")


class AIFeedbackParseError(FeedbackError):
    """Raised when an AI response cannot be turned into feedback items."""
    pass
