from document_feedback.feedback.highlights import (
    DEFAULT_PALETTE,
    HighlightSpec,
    newest_first,
    project,
)
from document_feedback.feedback.models import FeedbackType


class TestProject:
    def test_projection_is_pure(self, make_item, ai_author):
        items = [
            make_item(),
            make_item(type=FeedbackType.SUGGESTION, author=ai_author),
        ]

        first = project(items, None, "selected")
        second = project(items, None, "selected")

        assert first == second

    def test_styles_by_type_and_author(self, make_item, ai_author):
        items = [
            make_item(selected_text="a"),
            make_item(selected_text="b", type=FeedbackType.SUGGESTION),
            make_item(selected_text="c", author=ai_author),
            make_item(selected_text="d", type=FeedbackType.SUGGESTION, author=ai_author),
        ]

        assert project(items, None, None) == [
            HighlightSpec("a", DEFAULT_PALETTE.comment),
            HighlightSpec("b", DEFAULT_PALETTE.suggestion),
            HighlightSpec("c", DEFAULT_PALETTE.ai_comment),
            HighlightSpec("d", DEFAULT_PALETTE.ai_suggestion),
        ]

    def test_active_item_always_uses_active_style(self, make_item, ai_author):
        items = [
            make_item(id="x", type=FeedbackType.SUGGESTION, author=ai_author),
            make_item(id="y"),
        ]

        specs = project(items, "x", None)

        assert specs[0].style_class == DEFAULT_PALETTE.active
        assert specs[1].style_class == DEFAULT_PALETTE.comment

    def test_selection_spec_only_without_active_item(self, make_item):
        items = [make_item(id="x")]

        without_active = project(items, None, "new span")
        with_active = project(items, "x", "new span")

        assert without_active[-1] == HighlightSpec("new span", DEFAULT_PALETTE.pending_selection)
        assert all(s.style_class != DEFAULT_PALETTE.pending_selection for s in with_active)

    def test_duplicates_are_kept(self, make_item):
        items = [make_item(selected_text="same"), make_item(selected_text="same")]

        assert len(project(items, None, "")) == 2


def test_newest_first(make_item):
    older, newer = make_item(id="old"), make_item(id="new")

    assert [i.id for i in newest_first([older, newer])] == ["new", "old"]
