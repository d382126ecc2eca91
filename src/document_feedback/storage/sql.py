from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, List, Optional
from uuid import uuid4

from sqlalchemy import JSON, DateTime, String, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, Session, declarative_base, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from document_feedback.feedback.exceptions import PersistenceError
from document_feedback.feedback.models import (
    FeedbackDraft,
    FeedbackItem,
    FeedbackStatus,
    author_id,
)
from document_feedback.logging.logger import get_logger
from document_feedback.storage.gateway import FeedbackFilter, FeedbackGateway

logger = get_logger(__name__)

Base = declarative_base()


class CRUDMixin:
    """Row operations shared by the feedback tables. Filters are column=value pairs."""

    @classmethod
    def _filtered(cls, session: Session, **filters):
        query = session.query(cls)
        for key, value in filters.items():
            if not hasattr(cls, key):
                raise ValueError(f"Invalid filter key '{key}' for model {cls.__name__}")
            query = query.filter(getattr(cls, key) == value)
        return query

    @classmethod
    def create(cls, session: Session, **kwargs):
        instance = cls(**kwargs)
        session.add(instance)
        session.commit()
        return instance

    @classmethod
    def get_all(cls, session: Session, **filters):
        return cls._filtered(session, **filters).order_by(cls.created_at).all()

    @classmethod
    def set_fields(cls, session: Session, id, **values) -> bool:
        """Update columns on one row; False if the row does not exist."""
        instance = session.get(cls, id)
        if instance is None:
            return False
        for key, value in values.items():
            setattr(instance, key, value)
        session.commit()
        return True

    @classmethod
    def delete(cls, session: Session, id) -> bool:
        instance = session.get(cls, id)
        if instance is None:
            return False
        session.delete(instance)
        session.commit()
        return True

    @classmethod
    def delete_where(cls, session: Session, **filters) -> int:
        """Bulk delete matching rows and return how many went."""
        count = cls._filtered(session, **filters).delete(synchronize_session=False)
        session.commit()
        return count


class DocumentFeedback(Base, CRUDMixin):
    __tablename__ = "document_feedback"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    document_version_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), index=True, nullable=True)
    mentor_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    content: Mapped[dict] = mapped_column(JSON, nullable=False)
    # "metadata" is reserved on declarative classes
    extra: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=FeedbackStatus.ACTIVE.value
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    def to_row(self) -> Dict:
        """Convert the ORM instance into a storage row understood by FeedbackItem."""
        return {
            "id": self.id,
            "document_version_id": self.document_version_id,
            "user_id": self.user_id,
            "mentor_id": self.mentor_id,
            "content": self.content,
            "metadata": self.extra or {},
            "status": self.status,
            "created_at": self.created_at,
        }


class SQLFeedbackGateway(FeedbackGateway):
    """SQLAlchemy implementation of the feedback gateway."""

    def __init__(self, database_url: str):
        """
        Connect to the database and make sure the feedback table exists.

        Args:
            database_url: SQLAlchemy database URL
        """
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # A single shared connection keeps the in-memory database alive
            self.engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        elif database_url.startswith("sqlite"):
            self.engine = create_engine(
                database_url, connect_args={"check_same_thread": False}
            )
        else:
            self.engine = create_engine(database_url)

        self._session_factory = sessionmaker(autoflush=False, bind=self.engine)
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        """Open a session, translating driver errors into PersistenceError."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Feedback {operation} failed: {str(e)}")
            raise PersistenceError(operation, e)
        finally:
            session.close()

    async def list(self, filter: FeedbackFilter) -> List[FeedbackItem]:
        with self._session("list") as session:
            rows = DocumentFeedback.get_all(session, **filter.to_query())
            return [FeedbackItem.from_dict(row.to_row()) for row in rows]

    async def create(self, draft: FeedbackDraft) -> str:
        draft.validate()
        feedback_id = str(uuid4())
        with self._session("create") as session:
            DocumentFeedback.create(
                session,
                id=feedback_id,
                document_version_id=draft.document_version_id,
                user_id=draft.recipient_id,
                mentor_id=author_id(draft.author),
                content={
                    "text": draft.text,
                    "selectedText": draft.selected_text,
                    "type": draft.type.value,
                },
                extra=dict(draft.metadata),
                status=draft.status.value,
                created_at=draft.timestamp,
            )
        logger.info(f"Stored feedback {feedback_id} for version {draft.document_version_id}")
        return feedback_id

    async def update_status(self, feedback_id: str, status: FeedbackStatus) -> None:
        with self._session("update_status") as session:
            updated = DocumentFeedback.set_fields(session, feedback_id, status=status.value)
        if not updated:
            raise PersistenceError(
                "update_status", LookupError(f"feedback {feedback_id} not found")
            )
        logger.info(f"Feedback {feedback_id} is now {status.value}")

    async def delete(self, feedback_id: str) -> None:
        with self._session("delete") as session:
            deleted = DocumentFeedback.delete(session, feedback_id)
        if not deleted:
            raise PersistenceError(
                "delete", LookupError(f"feedback {feedback_id} not found")
            )
        logger.info(f"Deleted feedback {feedback_id}")

    async def delete_for_document_version(self, document_version_id: str) -> int:
        with self._session("delete_for_document_version") as session:
            count = DocumentFeedback.delete_where(
                session, document_version_id=document_version_id
            )
        logger.info(f"Deleted {count} feedback items for version {document_version_id}")
        return count
