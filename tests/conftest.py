"""
Shared fixtures for the feedback tests.

Panels are exercised against the in-memory gateway; failures are injected by
replacing individual gateway methods with AsyncMocks.
"""

from datetime import datetime, timedelta
from typing import List

import pytest

from document_feedback.feedback.interface import FeedbackNotifier
from document_feedback.feedback.models import (
    AutomatedAuthor,
    FeedbackItem,
    FeedbackStatus,
    FeedbackType,
    HumanAuthor,
)
from document_feedback.session import EditingSession
from document_feedback.storage.memory import InMemoryFeedbackGateway

VERSION_ID = "version-1"
DOCUMENT = "My goal is research. This sentence is unclear. I enjoy para 2 a lot."


class RecordingNotifier(FeedbackNotifier):
    """Keeps every notice so tests can assert on them."""

    def __init__(self):
        self.successes: List[str] = []
        self.errors: List[str] = []
        self.infos: List[str] = []

    def success(self, message: str) -> None:
        self.successes.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def info(self, message: str) -> None:
        self.infos.append(message)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def gateway():
    return InMemoryFeedbackGateway()


@pytest.fixture
def session():
    session = EditingSession(DOCUMENT)
    yield session
    session.dispose()


@pytest.fixture
def make_item():
    """Factory for confirmed items with increasing timestamps."""
    counter = {"n": 0}
    base = datetime(2024, 5, 1, 12, 0, 0)

    def _make(
        id=None,
        text="Consider shortening",
        selected_text="para 2",
        type=FeedbackType.COMMENT,
        author=None,
        status=FeedbackStatus.ACTIVE,
        document_version_id=VERSION_ID,
    ) -> FeedbackItem:
        counter["n"] += 1
        return FeedbackItem(
            id=id or f"item-{counter['n']}",
            text=text,
            selected_text=selected_text,
            type=FeedbackType(type),
            author=author or HumanAuthor("m-42"),
            document_version_id=document_version_id,
            status=status,
            timestamp=base + timedelta(minutes=counter["n"]),
        )

    return _make


@pytest.fixture
def ai_author():
    return AutomatedAuthor()
