"""
Reviewer-side feedback panel.

A mentor selects a span of the student's document and attaches a comment or
a suggestion to it. The panel also holds feedback proposed by the AI
reviewer, which the mentor can adopt (accept) or discard (reject). Adopted AI
feedback is re-created under the mentor's own id; it is never stored while
still attributed to the AI.
"""

from typing import Iterable, List, Optional, Set, Union

from document_feedback.config import FeedbackConfig
from document_feedback.feedback.exceptions import StaleReferenceError, ValidationError
from document_feedback.feedback.highlights import HighlightSpec, newest_first, project
from document_feedback.feedback.interface import FeedbackNotifier, FeedbackObserver
from document_feedback.feedback.mixins import PersistenceActionsMixin
from document_feedback.feedback.models import (
    FeedbackDraft,
    FeedbackItem,
    FeedbackType,
    HumanAuthor,
    PendingFeedback,
)
from document_feedback.logging.logger import get_logger
from document_feedback.session import EditingSession
from document_feedback.storage.gateway import FeedbackFilter, FeedbackGateway

logger = get_logger(__name__)


class AuthorFeedbackPanel(PersistenceActionsMixin):
    """
    Lets a reviewer create, adopt and remove feedback on one document version.

    Attributes:
        items: Confirmed feedback shown in the panel, including in-memory AI items
        pending: Submissions waiting for storage to confirm them
        draft_text: Text typed into the feedback input
        draft_type: Whether the next submission is a comment or a suggestion
    """

    def __init__(
        self,
        gateway: FeedbackGateway,
        notifier: FeedbackNotifier,
        session: EditingSession,
        reviewer: HumanAuthor,
        document_version_id: str,
        recipient_id: Optional[str] = None,
        common_suggestions: Optional[List[str]] = None,
        observers: Optional[Iterable[FeedbackObserver]] = None,
    ):
        PersistenceActionsMixin.__init__(self, gateway, notifier, observers)
        self._session = session
        self.reviewer = reviewer
        self.document_version_id = document_version_id
        self.recipient_id = recipient_id

        self.items: List[FeedbackItem] = []
        self.pending: List[PendingFeedback] = []
        self.draft_text = ""
        self.draft_type = FeedbackType.COMMENT
        self.common_suggestions = list(
            common_suggestions
            if common_suggestions is not None
            else FeedbackConfig().common_suggestions
        )

        self._busy_ids: Set[str] = set()

    # Loading

    async def load(self) -> bool:
        """
        Fetch this reviewer's stored feedback for the document version.

        AI feedback already held in memory is kept alongside the stored items.

        Returns:
            True if the list was refreshed
        """
        outcome = await self._persist(
            "load feedback",
            self._gateway.list(
                FeedbackFilter(
                    document_version_id=self.document_version_id,
                    author_id=self.reviewer.id,
                )
            ),
        )
        if not outcome.ok:
            return False

        ai_items = [item for item in self.items if item.is_automated]
        self.items = list(outcome.value) + ai_items
        logger.info(
            f"Loaded {len(outcome.value)} feedback items for version {self.document_version_id}"
        )
        self._publish_highlights()
        return True

    def add_ai_feedback(self, items: Iterable[FeedbackItem]) -> None:
        """
        Show AI-generated feedback in the panel without storing it.

        Raises:
            ValidationError: If an item is not AI-authored or belongs to another version
        """
        items = list(items)
        for item in items:
            if not item.is_automated:
                raise ValidationError(f"Feedback {item.id} is not AI-generated")
            if item.document_version_id != self.document_version_id:
                raise ValidationError(
                    f"Feedback {item.id} belongs to version {item.document_version_id}"
                )

        self.items.extend(items)
        self._publish_highlights()

    # Selection

    def select_text(self, text: str) -> None:
        """
        Receive a selection change from the host editor.

        A new selection clears the focused item, unless it is the focused
        item's own span being re-selected.
        """
        self._session.select_text(text)

        active_id = self._session.active_feedback_id
        if text and active_id is not None:
            active = self._get(active_id)
            if active is None or active.selected_text != text:
                self._session.active_feedback_id = None

        self._publish_highlights()

    def select_item(self, feedback_id: str) -> None:
        """Focus an item and highlight its span."""
        try:
            item = self._find(feedback_id)
        except StaleReferenceError as e:
            self._report_stale(e)
            return

        self._session.set_active(item.id, item.selected_text)
        self._publish_highlights()

    def clear_active(self) -> None:
        self._session.clear_selection()
        self._publish_highlights()

    # Drafting

    def use_common_suggestion(self, suggestion: Union[int, str]) -> None:
        """Fill the input with one of the canned suggestions (by index or text)."""
        if isinstance(suggestion, int):
            suggestion = self.common_suggestions[suggestion]
        self.draft_text = suggestion

    @property
    def can_submit(self) -> bool:
        """Whether the submit control should be enabled."""
        return bool(self.draft_text.strip()) and bool(self._session.selected_text.strip())

    async def submit(
        self,
        text: Optional[str] = None,
        type: Optional[Union[FeedbackType, str]] = None,
    ) -> Optional[FeedbackItem]:
        """
        Attach new feedback to the current selection.

        Args:
            text: Feedback body; defaults to the current draft text
            type: Comment or suggestion; defaults to the current draft type

        Returns:
            The stored item, or None if the submission was not possible or failed
        """
        if text is not None:
            self.draft_text = text
        if type is not None:
            self.draft_type = FeedbackType(type)

        draft = FeedbackDraft(
            text=self.draft_text.strip(),
            selected_text=self._session.selected_text,
            type=self.draft_type,
            author=self.reviewer,
            document_version_id=self.document_version_id,
            recipient_id=self.recipient_id,
        )
        try:
            draft.validate()
        except ValidationError as e:
            logger.debug(f"Submit ignored: {str(e)}")
            return None

        pending = PendingFeedback(draft)
        self.pending.append(pending)
        try:
            outcome = await self._persist("save feedback", self._gateway.create(draft))
        finally:
            self.pending = [p for p in self.pending if p.temp_id != pending.temp_id]

        if not outcome.ok:
            return None

        item = pending.confirm(outcome.value)
        self.items.append(item)
        self.draft_text = ""
        self._session.clear_selection()

        self._notify_created(item)
        self._publish_highlights()
        return item

    # Item actions

    async def remove(self, feedback_id: str) -> bool:
        """
        Delete an item. Stored items are deleted from storage first; AI items
        only exist in memory and are dropped directly.

        Returns:
            True if the item was removed
        """
        try:
            item = self._find(feedback_id)
        except StaleReferenceError as e:
            self._report_stale(e)
            return False

        if not self._begin(item.id):
            return False
        try:
            if not item.is_automated:
                outcome = await self._persist(
                    "delete feedback", self._gateway.delete(item.id)
                )
                if not outcome.ok:
                    return False
        finally:
            self._busy_ids.discard(item.id)

        self._drop(item.id)
        return True

    async def accept(self, feedback_id: str) -> Optional[FeedbackItem]:
        """
        Adopt an AI item as the reviewer's own feedback.

        The replacement is stored first. Only once storage confirms it is a
        suggestion applied to the document and the AI item dropped, so a
        failure leaves both the document and the list untouched.

        Returns:
            The reviewer-authored replacement, or None if nothing changed
        """
        try:
            item = self._find(feedback_id)
        except StaleReferenceError as e:
            self._report_stale(e)
            return None

        if not item.is_automated:
            logger.debug(f"Accept ignored: feedback {item.id} is not AI-generated")
            return None
        if not self._begin(item.id):
            return None

        draft = FeedbackDraft(
            text=item.text,
            selected_text=item.selected_text,
            type=item.type,
            author=self.reviewer,
            document_version_id=self.document_version_id,
            recipient_id=self.recipient_id or item.recipient_id,
        )
        try:
            outcome = await self._persist("accept AI feedback", self._gateway.create(draft))
        finally:
            self._busy_ids.discard(item.id)

        if not outcome.ok:
            return None

        adopted = draft.confirm(outcome.value)
        if item.is_suggestion:
            self._session.apply_text_substitution(item.selected_text, item.text)

        self.items = [i for i in self.items if i.id != item.id]
        self.items.append(adopted)
        self._session.active_feedback_id = None

        self._notify_removed(item.id)
        self._notify_created(adopted)
        self._publish_highlights()
        return adopted

    def reject(self, feedback_id: str) -> bool:
        """
        Discard an AI item. The document is never touched.

        Returns:
            True if the item was discarded
        """
        try:
            item = self._find(feedback_id)
        except StaleReferenceError as e:
            self._report_stale(e)
            return False

        if not item.is_automated:
            logger.debug(f"Reject ignored: feedback {item.id} is not AI-generated")
            return False
        if item.id in self._busy_ids:
            return False

        self._drop(item.id)
        return True

    # Views

    def highlights(self) -> List[HighlightSpec]:
        return project(
            self.items, self._session.active_feedback_id, self._session.selected_text
        )

    def ordered_items(self) -> List[FeedbackItem]:
        """Items for display, newest first."""
        return newest_first(self.items)

    # Helpers

    def _get(self, feedback_id: str) -> Optional[FeedbackItem]:
        return next((item for item in self.items if item.id == feedback_id), None)

    def _find(self, feedback_id: str) -> FeedbackItem:
        item = self._get(feedback_id)
        if item is None:
            raise StaleReferenceError(feedback_id)
        return item

    def _begin(self, feedback_id: str) -> bool:
        """Claim an item for an action; False if another action is running on it."""
        if feedback_id in self._busy_ids:
            logger.debug(f"Feedback {feedback_id} already has an action in flight")
            return False
        self._busy_ids.add(feedback_id)
        return True

    def _drop(self, feedback_id: str) -> None:
        self.items = [item for item in self.items if item.id != feedback_id]
        if self._session.active_feedback_id == feedback_id:
            self._session.clear_selection()

        self._notify_removed(feedback_id)
        self._publish_highlights()

    def _publish_highlights(self) -> None:
        if not self.is_disposed:
            self._session.set_highlights(self.highlights())
