"""
Editing session shared by the feedback panels and the review island.

One EditingSession is created per open document and passed to every
component that needs the document content, the current selection or the
island's visibility. It also implements the host editor contract, so the
panels apply suggestions and publish highlights through it.

Auto-hide timers run on the asyncio event loop. ``dispose`` cancels them and
turns every later scheduling call into a no-op.
"""

import asyncio
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

from document_feedback.config import IslandTimings
from document_feedback.feedback.exceptions import PersistenceError
from document_feedback.feedback.highlights import HighlightSpec
from document_feedback.feedback.interface import HostEditor
from document_feedback.logging.logger import get_logger

logger = get_logger(__name__)


class EditingSession(HostEditor):
    """Content, save state, selection and island visibility for one document."""

    def __init__(
        self,
        content: str = "",
        timings: Optional[IslandTimings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Start a session on a document.

        Args:
            content: The document as last saved
            timings: Auto-hide delays for the review island
            clock: Source of the "saved at" timestamp
        """
        self.initial_content = content
        self.content = content
        self.is_dirty = False
        self.is_saving = False
        self.last_saved: Optional[datetime] = None

        self.selected_text = ""
        self.active_feedback_id: Optional[str] = None
        self.highlights: List[HighlightSpec] = []

        self.island_visible = False
        self.is_interacting = False

        self._timings = timings or IslandTimings()
        self._clock = clock
        self._hide_handle: Optional[asyncio.TimerHandle] = None
        self._disposed = False

    @property
    def timings(self) -> IslandTimings:
        return self._timings

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def hide_pending(self) -> bool:
        """Whether an auto-hide is currently scheduled."""
        return self._hide_handle is not None

    # Content

    def set_content(self, content: str) -> None:
        """Replace the document content and recompute the dirty flag."""
        self.content = content
        self.is_dirty = content != self.initial_content
        if self.is_dirty:
            self.show_island(self._timings.after_edit)

    def apply_text_substitution(self, find: str, replace: str) -> bool:
        """
        Replace the first occurrence of ``find`` in the document.

        Returns:
            True if the text was found and replaced
        """
        if not find or find not in self.content:
            logger.info("Substitution target not found in document; content unchanged")
            return False

        self.set_content(self.content.replace(find, replace, 1))
        return True

    def set_highlights(self, highlights: List[HighlightSpec]) -> None:
        self.highlights = list(highlights)

    async def save(self, saver: Callable[[str], Awaitable[None]]) -> bool:
        """
        Persist the current content through ``saver``.

        Args:
            saver: Coroutine function receiving the content to store

        Returns:
            True if a save happened, False if there was nothing to save

        Raises:
            PersistenceError: If the saver fails; the content stays dirty
        """
        if not self.is_dirty or self.is_saving:
            return False

        content = self.content
        self.is_saving = True
        try:
            await saver(content)
        except Exception as e:
            logger.error(f"Failed to save content: {str(e)}")
            raise PersistenceError("save", e)
        finally:
            self.is_saving = False

        self.last_saved = self._clock()
        self.initial_content = content
        self.is_dirty = self.content != content
        logger.info(f"Saved content at {self.last_saved.isoformat()}")

        self.show_island(self._timings.after_save)
        return True

    # Selection

    def select_text(self, text: str) -> None:
        self.selected_text = text or ""

    def set_active(self, feedback_id: Optional[str], selected_text: Optional[str] = None) -> None:
        """Focus a feedback item, optionally mirroring its span as the selection."""
        self.active_feedback_id = feedback_id
        if selected_text is not None:
            self.selected_text = selected_text

    def clear_selection(self) -> None:
        self.selected_text = ""
        self.active_feedback_id = None

    # Island visibility

    def show_island(self, delay: Optional[float] = None) -> None:
        """Show the island and schedule it to hide after ``delay`` seconds."""
        if self._disposed:
            return
        self.island_visible = True
        self._schedule_hide(self._timings.after_edit if delay is None else delay)

    def hold_island(self) -> None:
        """The user is hovering or focused on the island: keep it open."""
        if self._disposed:
            return
        self.is_interacting = True
        self._cancel_hide()
        self.island_visible = True

    def release_island(self) -> None:
        """The user left the island: hide it after the leave delay."""
        self.is_interacting = False
        if self._disposed:
            return
        self._schedule_hide(self._timings.after_leave)

    def _schedule_hide(self, delay: float) -> None:
        self._cancel_hide()
        if self.is_interacting or self._disposed:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: nothing can fire later, so the island stays visible
            return

        self._hide_handle = loop.call_later(delay, self._hide)

    def _cancel_hide(self) -> None:
        if self._hide_handle is not None:
            self._hide_handle.cancel()
            self._hide_handle = None

    def _hide(self) -> None:
        self._hide_handle = None
        if not self.is_interacting:
            self.island_visible = False

    def dispose(self) -> None:
        """Cancel timers and detach the session."""
        self._cancel_hide()
        self._disposed = True
