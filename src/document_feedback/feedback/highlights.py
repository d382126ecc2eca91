"""
Projection of feedback items onto highlight specs for the host editor.

The editor renders every exact-substring match of ``match_text`` with the
given style class. This module only decides which style each item gets; it
never searches the document itself.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from document_feedback.feedback.models import FeedbackItem


@dataclass(frozen=True)
class HighlightSpec:
    """One substring to highlight and the style class to use for it."""

    match_text: str
    style_class: str


@dataclass(frozen=True)
class HighlightPalette:
    """Style classes used when projecting highlights."""

    active: str = "bg-blue-200/70"
    suggestion: str = "bg-violet-100/60"
    ai_suggestion: str = "bg-emerald-100/60"
    comment: str = "bg-amber-100/50"
    ai_comment: str = "bg-emerald-100/50"
    pending_selection: str = "bg-blue-100/50"


DEFAULT_PALETTE = HighlightPalette()


def style_for(
    item: FeedbackItem,
    active_id: Optional[str],
    palette: HighlightPalette = DEFAULT_PALETTE,
) -> str:
    """Pick the style class for a single item."""
    if active_id is not None and item.id == active_id:
        return palette.active
    if item.is_suggestion:
        return palette.ai_suggestion if item.is_automated else palette.suggestion
    return palette.ai_comment if item.is_automated else palette.comment


def project(
    items: Iterable[FeedbackItem],
    active_id: Optional[str],
    current_selection: Optional[str],
    palette: HighlightPalette = DEFAULT_PALETTE,
) -> List[HighlightSpec]:
    """
    Build the highlight list for the host editor.

    Specs are emitted in the order the items are given and are not
    deduplicated. A "pending selection" spec is appended for the current
    selection only while no item is active.

    Args:
        items: Feedback items to highlight
        active_id: Id of the item currently focused, if any
        current_selection: Text the user has selected in the document, if any
        palette: Style classes to use

    Returns:
        List of highlight specs
    """
    specs = [
        HighlightSpec(item.selected_text, style_for(item, active_id, palette))
        for item in items
    ]

    if current_selection and active_id is None:
        specs.append(HighlightSpec(current_selection, palette.pending_selection))

    return specs


def newest_first(items: Iterable[FeedbackItem]) -> List[FeedbackItem]:
    """Sort items for display with the most recent first."""
    return sorted(items, key=lambda item: item.timestamp, reverse=True)
