"""
Lifecycle state machine for feedback items.

All status changes go through the transition table below. An item starts
ACTIVE; a suggestion can be applied (ACCEPTED) and a comment can be thanked
(THANKED). Both end states are terminal.
"""

from enum import Enum
from typing import Dict, Tuple

from document_feedback.feedback.exceptions import InvalidTransitionError
from document_feedback.feedback.models import FeedbackItem, FeedbackStatus, FeedbackType


class FeedbackTransition(str, Enum):
    """Actions a document owner can take on a feedback item."""

    APPLY = "apply"
    THANK = "thank"


TRANSITIONS: Dict[Tuple[FeedbackStatus, FeedbackTransition], FeedbackStatus] = {
    (FeedbackStatus.ACTIVE, FeedbackTransition.APPLY): FeedbackStatus.ACCEPTED,
    (FeedbackStatus.ACTIVE, FeedbackTransition.THANK): FeedbackStatus.THANKED,
}

REQUIRED_TYPE: Dict[FeedbackTransition, FeedbackType] = {
    FeedbackTransition.APPLY: FeedbackType.SUGGESTION,
    FeedbackTransition.THANK: FeedbackType.COMMENT,
}


def can_transition(item: FeedbackItem, transition: FeedbackTransition) -> bool:
    """Check whether the transition is allowed for the item's type and status."""
    if item.type != REQUIRED_TYPE[transition]:
        return False
    return (item.status, transition) in TRANSITIONS


def next_status(item: FeedbackItem, transition: FeedbackTransition) -> FeedbackStatus:
    """
    Resolve the status an item moves to under a transition.

    Args:
        item: The item being transitioned
        transition: The requested transition

    Returns:
        The new status

    Raises:
        InvalidTransitionError: If the type or current status does not allow it
    """
    required = REQUIRED_TYPE[transition]
    if item.type != required:
        raise InvalidTransitionError(
            item.id, item.status, transition, f"only {required.value}s allow it"
        )

    try:
        return TRANSITIONS[(item.status, transition)]
    except KeyError:
        raise InvalidTransitionError(item.id, item.status, transition)


def is_resolved(item: FeedbackItem) -> bool:
    """Whether the item has reached a terminal state."""
    return not any(status == item.status for status, _ in TRANSITIONS)
