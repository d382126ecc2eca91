"""
In-process feedback gateway.

Holds storage rows in a dictionary. Used for tests, demos and embedding the
panels somewhere without a database.
"""

import uuid
from typing import Dict, List

from document_feedback.feedback.exceptions import PersistenceError
from document_feedback.feedback.models import (
    FeedbackDraft,
    FeedbackItem,
    FeedbackStatus,
)
from document_feedback.logging.logger import get_logger
from document_feedback.storage.gateway import FeedbackFilter, FeedbackGateway

logger = get_logger(__name__)


class InMemoryFeedbackGateway(FeedbackGateway):
    """Dictionary-backed implementation of the feedback gateway."""

    def __init__(self):
        self._rows: Dict[str, dict] = {}

    def __len__(self) -> int:
        return len(self._rows)

    async def list(self, filter: FeedbackFilter) -> List[FeedbackItem]:
        query = filter.to_query()
        items = [
            FeedbackItem.from_dict(row)
            for row in self._rows.values()
            if all(row.get(key) == value for key, value in query.items())
        ]
        return sorted(items, key=lambda item: item.timestamp)

    async def create(self, draft: FeedbackDraft) -> str:
        draft.validate()
        feedback_id = str(uuid.uuid4())
        self._rows[feedback_id] = draft.confirm(feedback_id).to_dict()
        logger.info(f"Stored feedback {feedback_id} for version {draft.document_version_id}")
        return feedback_id

    async def update_status(self, feedback_id: str, status: FeedbackStatus) -> None:
        if feedback_id not in self._rows:
            raise PersistenceError(
                "update_status", LookupError(f"feedback {feedback_id} not found")
            )
        self._rows[feedback_id]["status"] = status.value

    async def delete(self, feedback_id: str) -> None:
        if self._rows.pop(feedback_id, None) is None:
            raise PersistenceError(
                "delete", LookupError(f"feedback {feedback_id} not found")
            )

    async def delete_for_document_version(self, document_version_id: str) -> int:
        doomed = [
            feedback_id
            for feedback_id, row in self._rows.items()
            if row["document_version_id"] == document_version_id
        ]
        for feedback_id in doomed:
            del self._rows[feedback_id]
        logger.info(f"Deleted {len(doomed)} feedback items for version {document_version_id}")
        return len(doomed)
