"""
MongoDB-backed storage implementation for feedback records.

Documents keep the ``document_feedback`` row shape produced by
``FeedbackItem.to_dict`` so the same records can be read by any backend.
"""

from typing import List
from uuid import uuid4

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from document_feedback.feedback.exceptions import PersistenceError
from document_feedback.feedback.models import (
    FeedbackDraft,
    FeedbackItem,
    FeedbackStatus,
)
from document_feedback.logging.logger import get_logger
from document_feedback.storage.gateway import FeedbackFilter, FeedbackGateway

logger = get_logger(__name__)


class MongoFeedbackGateway(FeedbackGateway):
    """MongoDB implementation of the feedback gateway."""

    def __init__(
        self,
        connection_string: str,
        database: str = "document_feedback",
        client: MongoClient = None,
    ):
        """
        Initialize the MongoDB feedback store.

        Args:
            connection_string: MongoDB connection string
            database: Name of the database
            client: Optional pre-built client (e.g. shared across stores)
        """
        self.client = client or MongoClient(connection_string)
        self.db = self.client[database]
        self._init_collections()

    def _init_collections(self) -> None:
        """Initialize the feedback collection with proper indexes."""
        self.feedback: Collection = self.db.document_feedback

        self.feedback.create_index([("id", ASCENDING)], unique=True)
        self.feedback.create_index([("document_version_id", ASCENDING)])
        self.feedback.create_index([("mentor_id", ASCENDING)])
        self.feedback.create_index([("user_id", ASCENDING)])

    def _fail(self, operation: str, error: Exception) -> PersistenceError:
        logger.error(f"Feedback {operation} failed: {str(error)}")
        return PersistenceError(operation, error)

    async def list(self, filter: FeedbackFilter) -> List[FeedbackItem]:
        try:
            cursor = self.feedback.find(filter.to_query(), {"_id": 0}).sort(
                "created_at", ASCENDING
            )
            return [FeedbackItem.from_dict(doc) for doc in cursor]
        except PyMongoError as e:
            raise self._fail("list", e)

    async def create(self, draft: FeedbackDraft) -> str:
        draft.validate()
        feedback_id = str(uuid4())
        try:
            self.feedback.insert_one(draft.confirm(feedback_id).to_dict())
        except PyMongoError as e:
            raise self._fail("create", e)

        logger.info(f"Stored feedback {feedback_id} for version {draft.document_version_id}")
        return feedback_id

    async def update_status(self, feedback_id: str, status: FeedbackStatus) -> None:
        try:
            result = self.feedback.update_one(
                {"id": feedback_id}, {"$set": {"status": status.value}}
            )
        except PyMongoError as e:
            raise self._fail("update_status", e)

        if result.matched_count == 0:
            raise PersistenceError(
                "update_status", LookupError(f"feedback {feedback_id} not found")
            )
        logger.info(f"Feedback {feedback_id} is now {status.value}")

    async def delete(self, feedback_id: str) -> None:
        try:
            result = self.feedback.delete_one({"id": feedback_id})
        except PyMongoError as e:
            raise self._fail("delete", e)

        if result.deleted_count == 0:
            raise PersistenceError(
                "delete", LookupError(f"feedback {feedback_id} not found")
            )
        logger.info(f"Deleted feedback {feedback_id}")

    async def delete_for_document_version(self, document_version_id: str) -> int:
        try:
            result = self.feedback.delete_many(
                {"document_version_id": document_version_id}
            )
        except PyMongoError as e:
            raise self._fail("delete_for_document_version", e)

        logger.info(
            f"Deleted {result.deleted_count} feedback items for version {document_version_id}"
        )
        return result.deleted_count
