"""
Core interfaces for the feedback system.

This module defines the seams between the feedback panels and the outside
world, following the Observer pattern for feedback events and the Strategy
pattern for user-facing notices.

The module provides:
- A Protocol for observers that want to follow confirmed feedback changes
- An abstract base class for the transient notices shown to the user
- A Protocol for the host editor that renders the document

Observers let a second view (for example the review island) stay in sync with
a panel without the two knowing about each other. The notifier strategy lets
the same panels report to a terminal, a log, or a UI toast layer.

Example:
    class IslandSync(FeedbackObserver):
        def on_feedback_removed(self, feedback_id):
            island.sync(panel.pending_items())

    class ToastNotifier(FeedbackNotifier):
        def error(self, message):
            ui.toast(message, kind="error")
        ...
"""

from abc import ABC, abstractmethod
from typing import List, Protocol

from document_feedback.feedback.highlights import HighlightSpec
from document_feedback.feedback.models import FeedbackItem


class FeedbackObserver(Protocol):
    """Interface for components that react to confirmed feedback changes."""

    def on_feedback_created(self, item: FeedbackItem) -> None:
        """Called after a new item has been stored."""
        ...

    def on_feedback_updated(self, item: FeedbackItem) -> None:
        """Called after an item's status has been stored."""
        ...

    def on_feedback_removed(self, feedback_id: str) -> None:
        """Called after an item has been removed."""
        ...


class FeedbackNotifier(ABC):
    """Abstract base class for user-visible transient notices."""

    @abstractmethod
    def success(self, message: str) -> None:
        """Report a completed action."""
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        """Report a failed action. Never raises."""
        pass

    @abstractmethod
    def info(self, message: str) -> None:
        """Report something the user should know that is not a failure."""
        pass


class HostEditor(Protocol):
    """The document view the feedback panels annotate."""

    def apply_text_substitution(self, find: str, replace: str) -> bool:
        """Replace ``find`` with ``replace`` in the document."""
        ...

    def set_highlights(self, highlights: List[HighlightSpec]) -> None:
        """Render the given highlight specs."""
        ...
