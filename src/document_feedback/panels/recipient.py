"""
Document-owner side feedback panel.

The student sees the feedback left on a version of their document and can
apply a suggestion (its text replaces the span it was attached to), thank
the author for a comment, or dismiss an item altogether. Status changes are
only reflected locally once storage has confirmed them.
"""

from typing import Iterable, List, Optional, Set

from document_feedback.feedback.exceptions import InvalidTransitionError, StaleReferenceError
from document_feedback.feedback.highlights import HighlightSpec, newest_first, project
from document_feedback.feedback.interface import FeedbackNotifier, FeedbackObserver
from document_feedback.feedback.lifecycle import FeedbackTransition, next_status
from document_feedback.feedback.mixins import PersistenceActionsMixin
from document_feedback.feedback.models import FeedbackItem, FeedbackStatus
from document_feedback.logging.logger import get_logger
from document_feedback.session import EditingSession
from document_feedback.storage.gateway import FeedbackFilter, FeedbackGateway

logger = get_logger(__name__)


class RecipientFeedbackPanel(PersistenceActionsMixin):
    """Shows feedback on one document version and resolves it."""

    def __init__(
        self,
        gateway: FeedbackGateway,
        notifier: FeedbackNotifier,
        session: EditingSession,
        document_version_id: str,
        recipient_id: Optional[str] = None,
        observers: Optional[Iterable[FeedbackObserver]] = None,
    ):
        PersistenceActionsMixin.__init__(self, gateway, notifier, observers)
        self._session = session
        self.document_version_id = document_version_id
        self.recipient_id = recipient_id

        self.items: List[FeedbackItem] = []
        self._busy_ids: Set[str] = set()

    async def load(self) -> bool:
        """
        Fetch the feedback left on this document version.

        Returns:
            True if the list was refreshed
        """
        outcome = await self._persist(
            "load feedback",
            self._gateway.list(
                FeedbackFilter(
                    document_version_id=self.document_version_id,
                    recipient_id=self.recipient_id,
                )
            ),
        )
        if not outcome.ok:
            return False

        self.items = list(outcome.value)
        logger.info(
            f"Loaded {len(self.items)} feedback items for version {self.document_version_id}"
        )
        self._publish_highlights()
        return True

    def select_item(self, feedback_id: str) -> None:
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

    async def apply_suggestion(self, feedback_id: str) -> bool:
        """
        Accept a suggestion and apply its text to the document.

        If the suggested span is no longer in the document the text is left
        alone, but the suggestion is still marked as accepted.

        Returns:
            True if the suggestion was accepted
        """
        item = await self._transition(
            feedback_id, FeedbackTransition.APPLY, "apply suggestion"
        )
        if item is None:
            return False

        self._session.apply_text_substitution(item.selected_text, item.text)
        self._notifier.success("Suggestion applied")
        return True

    async def thank(self, feedback_id: str) -> bool:
        """
        Mark a comment as read and thank its author.

        Returns:
            True if the comment was thanked
        """
        item = await self._transition(
            feedback_id, FeedbackTransition.THANK, "mark feedback as read"
        )
        if item is None:
            return False

        self._notifier.success("Thanks sent to your mentor")
        return True

    async def dismiss(self, feedback_id: str) -> bool:
        """
        Delete an item without acting on it.

        Returns:
            True if the item was deleted
        """
        try:
            item = self._find(feedback_id)
        except StaleReferenceError as e:
            self._report_stale(e)
            return False

        if not self._begin(item.id):
            return False
        try:
            outcome = await self._persist("dismiss feedback", self._gateway.delete(item.id))
        finally:
            self._busy_ids.discard(item.id)

        if not outcome.ok:
            return False

        self.items = [i for i in self.items if i.id != item.id]
        if self._session.active_feedback_id == item.id:
            self._session.clear_selection()

        self._notify_removed(item.id)
        self._publish_highlights()
        return True

    def is_pending(self, feedback_id: str) -> bool:
        """Whether the item is still held here and awaiting a response."""
        return any(
            i.id == feedback_id and i.status == FeedbackStatus.ACTIVE for i in self.items
        )

    def pending_items(self) -> List[FeedbackItem]:
        """Unresolved items, newest first."""
        return newest_first(i for i in self.items if i.status == FeedbackStatus.ACTIVE)

    def highlights(self) -> List[HighlightSpec]:
        return project(self.items, self._session.active_feedback_id, None)

    async def _transition(
        self, feedback_id: str, transition: FeedbackTransition, description: str
    ) -> Optional[FeedbackItem]:
        """
        Move an item through the lifecycle once storage confirms the new status.

        Returns:
            The item before the change, or None if nothing happened
        """
        try:
            item = self._find(feedback_id)
        except StaleReferenceError as e:
            self._report_stale(e)
            return None

        try:
            status = next_status(item, transition)
        except InvalidTransitionError as e:
            logger.debug(str(e))
            return None

        if not self._begin(item.id):
            return None
        try:
            outcome = await self._persist(
                description, self._gateway.update_status(item.id, status)
            )
        finally:
            self._busy_ids.discard(item.id)

        if not outcome.ok:
            return None

        updated = item.with_status(status)
        self.items = [updated if i.id == item.id else i for i in self.items]
        if self._session.active_feedback_id == item.id:
            self._session.active_feedback_id = None

        self._notify_updated(updated)
        self._publish_highlights()
        return item

    def _find(self, feedback_id: str) -> FeedbackItem:
        item = next((i for i in self.items if i.id == feedback_id), None)
        if item is None:
            raise StaleReferenceError(feedback_id)
        return item

    def _begin(self, feedback_id: str) -> bool:
        if feedback_id in self._busy_ids:
            logger.debug(f"Feedback {feedback_id} already has an action in flight")
            return False
        self._busy_ids.add(feedback_id)
        return True

    def _publish_highlights(self) -> None:
        if not self.is_disposed:
            self._session.set_highlights(self.highlights())
