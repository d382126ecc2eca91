"""
Data models for the feedback system.

This module defines the structures that represent reviewer feedback attached
to a span of document text, and the stages an item passes through on its way
to durable storage.

The module provides:
- FeedbackType / FeedbackStatus: the fixed kind of an item and its lifecycle state
- HumanAuthor / AutomatedAuthor: the two possible origins of an item
- FeedbackDraft: everything needed to persist an item, minus its durable id
- PendingFeedback: a draft that has been submitted but not yet confirmed
- FeedbackItem: a confirmed item as held by the panels

Items are frozen dataclasses. A status change produces a new item through
``with_status`` so the ``type`` of an item can never change after creation.

Example:
   draft = FeedbackDraft(
       text="This sentence lacks clarity.",
       selected_text="This sentence is unclear.",
       type=FeedbackType.SUGGESTION,
       author=HumanAuthor("m-42"),
       document_version_id="v-1",
   )
   pending = PendingFeedback(draft)
   item = pending.confirm(durable_id)

Note:
   Storage rows keep the shape of the ``document_feedback`` table: the author
   is written to ``mentor_id`` (``"ai"`` for automated feedback) and the body
   is nested under ``content``.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from document_feedback.feedback.exceptions import ValidationError

AI_AUTHOR_ID = "ai"


class FeedbackType(str, Enum):
    """Kind of feedback. Fixed when the item is created."""

    COMMENT = "comment"
    SUGGESTION = "suggestion"

    @classmethod
    def get_display(cls, value):
        """Get the display name for a given feedback type."""
        display_map = {
            cls.COMMENT: "Comment",
            cls.SUGGESTION: "Suggestion",
        }
        return display_map.get(value, value)


class FeedbackStatus(str, Enum):
    """Lifecycle state of a feedback item."""

    ACTIVE = "active"  # Awaiting a response from the document owner
    ACCEPTED = "accepted"  # Suggestion applied to the document
    THANKED = "thanked"  # Comment acknowledged

    @classmethod
    def get_display(cls, value):
        """Get the display name for a given status value."""
        display_map = {
            cls.ACTIVE: "Active",
            cls.ACCEPTED: "Accepted",
            cls.THANKED: "Thanked",
        }
        return display_map.get(value, value)


@dataclass(frozen=True)
class HumanAuthor:
    """Feedback written by a person, usually a mentor."""

    id: str

    def __post_init__(self):
        if not self.id or self.id == AI_AUTHOR_ID:
            raise ValidationError(f"Invalid human author id: {self.id!r}")


@dataclass(frozen=True)
class AutomatedAuthor:
    """Feedback produced by the AI reviewer."""

    @property
    def id(self) -> str:
        return AI_AUTHOR_ID


Author = Union[HumanAuthor, AutomatedAuthor]


def author_from_id(author_id: str) -> Author:
    """Resolve a stored author id into its author variant."""
    if not author_id:
        raise ValidationError("Feedback author id is required")
    if author_id == AI_AUTHOR_ID:
        return AutomatedAuthor()
    return HumanAuthor(author_id)


def author_id(author: Author) -> str:
    """Get the stored id for an author variant."""
    if isinstance(author, AutomatedAuthor):
        return AI_AUTHOR_ID
    return author.id


@dataclass(frozen=True)
class FeedbackDraft:
    """
    Feedback that has not been assigned a durable id yet.

    Attributes:
        text: Comment body, or the replacement text of a suggestion
        selected_text: Exact document substring the feedback refers to
        type: Comment or suggestion
        author: Who produced the feedback
        document_version_id: Document version the feedback is scoped to
        recipient_id: Owner of the document, if known
        status: Initial lifecycle state
        timestamp: Client-side creation time
        metadata: Optional free-form data stored alongside the item
    """

    text: str
    selected_text: str
    type: FeedbackType
    author: Author
    document_version_id: str
    recipient_id: Optional[str] = None
    status: FeedbackStatus = FeedbackStatus.ACTIVE
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        """
        Check the draft can be persisted.

        Raises:
            ValidationError: If the text or the selected span is empty
        """
        if not self.selected_text or not self.selected_text.strip():
            raise ValidationError("Feedback must refer to a non-empty selection")
        if not self.text or not self.text.strip():
            raise ValidationError("Feedback text must not be empty")
        if not self.document_version_id:
            raise ValidationError("Feedback must belong to a document version")

    def confirm(self, durable_id: str) -> "FeedbackItem":
        """Build the confirmed item once storage has assigned an id."""
        return FeedbackItem(
            id=durable_id,
            text=self.text,
            selected_text=self.selected_text,
            type=self.type,
            author=self.author,
            document_version_id=self.document_version_id,
            recipient_id=self.recipient_id,
            status=self.status,
            timestamp=self.timestamp,
            metadata=dict(self.metadata),
        )


@dataclass(frozen=True)
class PendingFeedback:
    """
    A submitted draft waiting for the gateway to confirm it.

    Has no ``id`` attribute. ``temp_id`` only identifies the entry in the
    local pending list and must never reach the gateway; ``confirm`` is the
    only way to obtain a FeedbackItem.
    """

    draft: FeedbackDraft
    temp_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def text(self) -> str:
        return self.draft.text

    @property
    def selected_text(self) -> str:
        return self.draft.selected_text

    @property
    def type(self) -> FeedbackType:
        return self.draft.type

    def confirm(self, durable_id: str) -> "FeedbackItem":
        """Swap the temporary key for the durable id returned by storage."""
        return self.draft.confirm(durable_id)


@dataclass(frozen=True)
class FeedbackItem:
    """
    A confirmed piece of reviewer feedback attached to a span of text.

    Attributes:
        id: Durable id for stored items, or an ``ai-`` client id for AI
            feedback that only lives in memory
        text: Comment body, or the replacement text of a suggestion
        selected_text: Exact document substring the feedback refers to
        type: Comment or suggestion
        author: Who produced the feedback
        document_version_id: Document version the feedback is scoped to
        status: Current lifecycle state
        timestamp: Creation time
        recipient_id: Owner of the document, if known
        metadata: Optional free-form data
    """

    id: str
    text: str
    selected_text: str
    type: FeedbackType
    author: Author
    document_version_id: str
    status: FeedbackStatus = FeedbackStatus.ACTIVE
    timestamp: datetime = field(default_factory=datetime.now)
    recipient_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_automated(self) -> bool:
        """Whether the item came from the AI reviewer."""
        return isinstance(self.author, AutomatedAuthor)

    @property
    def is_suggestion(self) -> bool:
        return self.type == FeedbackType.SUGGESTION

    def with_status(self, status: FeedbackStatus) -> "FeedbackItem":
        """Return a copy of this item in a new lifecycle state."""
        return replace(self, status=status)

    def to_draft(self, author: Optional[Author] = None) -> FeedbackDraft:
        """
        Build a fresh draft carrying this item's content.

        Args:
            author: Author for the new draft; defaults to this item's author

        Returns:
            A draft with a new timestamp and an active status
        """
        return FeedbackDraft(
            text=self.text,
            selected_text=self.selected_text,
            type=self.type,
            author=author or self.author,
            document_version_id=self.document_version_id,
            recipient_id=self.recipient_id,
            metadata=dict(self.metadata),
        )

    def to_dict(self) -> dict:
        """Convert the item to a storage row."""
        return {
            "id": self.id,
            "document_version_id": self.document_version_id,
            "user_id": self.recipient_id,
            "mentor_id": author_id(self.author),
            "content": {
                "text": self.text,
                "selectedText": self.selected_text,
                "type": self.type.value,
            },
            "metadata": dict(self.metadata),
            "status": self.status.value,
            "created_at": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FeedbackItem":
        """Create a FeedbackItem from a storage row."""
        content = data.get("content") or {}
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)

        return cls(
            id=str(data["id"]),
            text=content["text"],
            selected_text=content["selectedText"],
            type=FeedbackType(content["type"]),
            author=author_from_id(data["mentor_id"]),
            document_version_id=data["document_version_id"],
            status=FeedbackStatus(data.get("status") or FeedbackStatus.ACTIVE.value),
            timestamp=created_at or datetime.now(),
            recipient_id=data.get("user_id"),
            metadata=dict(data.get("metadata") or {}),
        )
