"""
Persistence gateway interface for feedback records.

Every storage backend implements FeedbackGateway. Callers only ever see
PersistenceError from a backend, whatever the underlying driver raised, and
must not assume partial success when a call fails.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from document_feedback.feedback.models import (
    FeedbackDraft,
    FeedbackItem,
    FeedbackStatus,
)


@dataclass(frozen=True)
class FeedbackFilter:
    """
    Selection criteria for listing feedback. ``None`` fields do not filter.

    Attributes:
        document_version_id: Only items scoped to this document version
        author_id: Only items written by this author (``"ai"`` for automated)
        recipient_id: Only items addressed to this document owner
    """

    document_version_id: Optional[str] = None
    author_id: Optional[str] = None
    recipient_id: Optional[str] = None

    def to_query(self) -> Dict[str, Any]:
        """Map the filter onto storage column names."""
        query = {}
        if self.document_version_id is not None:
            query["document_version_id"] = self.document_version_id
        if self.author_id is not None:
            query["mentor_id"] = self.author_id
        if self.recipient_id is not None:
            query["user_id"] = self.recipient_id
        return query


class FeedbackGateway(ABC):
    """Abstract base class for all feedback storage backends."""

    @abstractmethod
    async def list(self, filter: FeedbackFilter) -> List[FeedbackItem]:
        """
        List feedback matching a filter, oldest first.

        Args:
            filter: Selection criteria

        Returns:
            Matching items

        Raises:
            PersistenceError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def create(self, draft: FeedbackDraft) -> str:
        """
        Store a new feedback item.

        Args:
            draft: The item to store

        Returns:
            The durable id assigned to the item

        Raises:
            ValidationError: If the draft is incomplete
            PersistenceError: If the backend rejects the write
        """
        pass

    @abstractmethod
    async def update_status(self, feedback_id: str, status: FeedbackStatus) -> None:
        """
        Change the lifecycle status of a stored item.

        Raises:
            PersistenceError: If the item does not exist or the write fails
        """
        pass

    @abstractmethod
    async def delete(self, feedback_id: str) -> None:
        """
        Delete a stored item.

        Raises:
            PersistenceError: If the item does not exist or the delete fails
        """
        pass

    @abstractmethod
    async def delete_for_document_version(self, document_version_id: str) -> int:
        """
        Delete all feedback for a document version (cascade on version delete).

        Returns:
            Number of items deleted
        """
        pass
