"""
Floating review island.

A compact carousel that sits over the document. Its first slot is a save
control; the remaining slots step through the unresolved feedback so the
document owner can apply, reject or acknowledge each item without opening
the full panel. Visibility and auto-hide are owned by the EditingSession.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from document_feedback.feedback.exceptions import PersistenceError
from document_feedback.feedback.interface import FeedbackNotifier
from document_feedback.feedback.models import FeedbackItem, FeedbackType
from document_feedback.logging.logger import get_logger
from document_feedback.panels.recipient import RecipientFeedbackPanel
from document_feedback.session import EditingSession

logger = get_logger(__name__)

SAVE_SLOT = -1


class SaveSlotState(str, Enum):
    SAVING = "saving"
    SAVED = "saved"
    UNSAVED = "unsaved"


@dataclass(frozen=True)
class SaveSlotView:
    """What the save slot should render."""

    state: SaveSlotState
    label: str
    enabled: bool


class ReviewIsland:
    """Carousel over a save slot followed by the pending feedback items."""

    def __init__(
        self,
        session: EditingSession,
        actions: RecipientFeedbackPanel,
        on_save: Callable[[str], Awaitable[None]],
        notifier: FeedbackNotifier,
        items: Optional[List[FeedbackItem]] = None,
    ):
        """
        Args:
            session: Shared editing session
            actions: Panel that carries out apply, reject and thank
            on_save: Coroutine function that stores the document content
            notifier: Where save failures are reported
            items: Initial carousel items; defaults to the panel's pending items
        """
        self._session = session
        self._actions = actions
        self._on_save = on_save
        self._notifier = notifier

        self.items: List[FeedbackItem] = list(
            items if items is not None else actions.pending_items()
        )
        self.index = SAVE_SLOT

    # Navigation

    @property
    def current_item(self) -> Optional[FeedbackItem]:
        if self.index == SAVE_SLOT:
            return None
        return self.items[self.index]

    def next(self) -> int:
        """Step forward; the slot after the last item is the save slot."""
        self.index = self.index + 1 if self.index < len(self.items) - 1 else SAVE_SLOT
        return self.index

    def prev(self) -> int:
        """Step back; the slot before the save slot is the last item."""
        self.index = self.index - 1 if self.index > SAVE_SLOT else len(self.items) - 1
        return self.index

    def go_to(self, index: int) -> None:
        if index < SAVE_SLOT or index >= len(self.items):
            raise IndexError(f"Carousel slot {index} out of range")
        self.index = index

    def sync(self, items: List[FeedbackItem]) -> None:
        """Replace the carousel items, keeping the index in range."""
        self.items = list(items)
        self._clamp()

    # Item actions

    async def apply_current(self) -> bool:
        item = self.current_item
        if item is None or item.type != FeedbackType.SUGGESTION:
            return False
        return self._settle(item, await self._actions.apply_suggestion(item.id))

    async def reject_current(self) -> bool:
        item = self.current_item
        if item is None:
            return False
        return self._settle(item, await self._actions.dismiss(item.id))

    async def mark_current_as_read(self) -> bool:
        item = self.current_item
        if item is None or item.type != FeedbackType.COMMENT:
            return False
        return self._settle(item, await self._actions.thank(item.id))

    def _settle(self, item: FeedbackItem, done: bool) -> bool:
        """
        Drop a handled item from the carousel and step back one slot.

        An item that failed because it was resolved or removed elsewhere is
        dropped too; one that failed for any other reason stays.
        """
        if not done and self._actions.is_pending(item.id):
            return False

        self.items = [i for i in self.items if i.id != item.id]
        self.index = max(self.index - 1, SAVE_SLOT)
        self._clamp()
        if done:
            self._session.show_island()
        return done

    def _clamp(self) -> None:
        self.index = max(SAVE_SLOT, min(self.index, len(self.items) - 1))

    # Save slot

    @property
    def save_slot(self) -> SaveSlotView:
        session = self._session
        if session.is_saving:
            return SaveSlotView(SaveSlotState.SAVING, "Saving...", False)
        if session.last_saved is not None and not session.is_dirty:
            return SaveSlotView(
                SaveSlotState.SAVED,
                f"Saved at {session.last_saved.strftime('%H:%M:%S')}",
                False,
            )
        return SaveSlotView(SaveSlotState.UNSAVED, "Save", session.is_dirty)

    async def save(self) -> bool:
        """
        Save the document if it has unsaved changes.

        Returns:
            True if the content was saved
        """
        try:
            return await self._session.save(self._on_save)
        except PersistenceError:
            self._notifier.error("Failed to save changes")
            return False

    # Visibility

    def on_hover(self) -> None:
        self._session.hold_island()

    def on_focus(self) -> None:
        self._session.hold_island()

    def on_leave(self) -> None:
        self._session.release_island()
