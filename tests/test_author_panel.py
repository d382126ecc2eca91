import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from document_feedback.config import FeedbackConfig
from document_feedback.feedback.exceptions import PersistenceError, ValidationError
from document_feedback.feedback.highlights import DEFAULT_PALETTE, HighlightSpec
from document_feedback.feedback.models import (
    FeedbackDraft,
    FeedbackStatus,
    FeedbackType,
    HumanAuthor,
)
from document_feedback.panels.author import AuthorFeedbackPanel
from document_feedback.storage.gateway import FeedbackFilter

from conftest import DOCUMENT, VERSION_ID

UNCLEAR = "This sentence is unclear."
CLEARER = "This sentence lacks clarity."


@pytest.fixture
def observer():
    return MagicMock()


@pytest.fixture
def panel(gateway, notifier, session, observer):
    return AuthorFeedbackPanel(
        gateway,
        notifier,
        session,
        HumanAuthor("m-42"),
        VERSION_ID,
        recipient_id="s-1",
        observers=[observer],
    )


@pytest.fixture
def ai_comment(make_item, ai_author):
    return make_item(id="ai-1", text="Consider shortening", selected_text="para 2", author=ai_author)


@pytest.fixture
def ai_suggestion(make_item, ai_author):
    return make_item(
        id="ai-2",
        text=CLEARER,
        selected_text=UNCLEAR,
        type=FeedbackType.SUGGESTION,
        author=ai_author,
    )


class TestSubmit:
    @pytest.mark.asyncio
    async def test_submit_suggestion_on_selection(self, panel, gateway, session, observer):
        panel.select_text(UNCLEAR)

        item = await panel.submit(CLEARER, "suggestion")

        assert item.selected_text == UNCLEAR
        assert item.text == CLEARER
        assert item.type == FeedbackType.SUGGESTION
        assert item.status == FeedbackStatus.ACTIVE
        assert item.author == HumanAuthor("m-42")
        assert panel.items == [item]
        assert panel.pending == []
        assert panel.draft_text == ""
        assert session.selected_text == ""
        assert len(gateway) == 1
        observer.on_feedback_created.assert_called_once_with(item)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("selection,text", [("", "Some text"), (UNCLEAR, "   ")])
    async def test_submit_guard(self, panel, gateway, notifier, selection, text):
        panel.select_text(selection)

        assert await panel.submit(text) is None

        assert len(gateway) == 0
        assert panel.items == []
        assert notifier.errors == []

    @pytest.mark.asyncio
    async def test_failed_create_keeps_input(self, panel, gateway, notifier, session):
        gateway.create = AsyncMock(side_effect=PersistenceError("create"))
        panel.select_text(UNCLEAR)

        assert await panel.submit(CLEARER, "suggestion") is None

        assert panel.items == []
        assert panel.pending == []
        assert notifier.errors == ["Failed to save feedback"]
        assert panel.draft_text == CLEARER
        assert session.selected_text == UNCLEAR

    @pytest.mark.asyncio
    async def test_pending_entry_visible_while_in_flight(self, panel, gateway):
        release = asyncio.Event()
        create = gateway.create

        async def slow_create(draft):
            await release.wait()
            return await create(draft)

        gateway.create = slow_create
        panel.select_text(UNCLEAR)

        task = asyncio.create_task(panel.submit("Rephrase"))
        await asyncio.sleep(0)
        assert [p.text for p in panel.pending] == ["Rephrase"]
        assert panel.is_loading

        release.set()
        item = await task
        assert panel.pending == []
        assert panel.items == [item]

    def test_can_submit(self, panel):
        assert not panel.can_submit

        panel.select_text(UNCLEAR)
        panel.draft_text = "text"

        assert panel.can_submit

    def test_use_common_suggestion(self, panel):
        panel.use_common_suggestion(1)
        assert panel.draft_text == FeedbackConfig().common_suggestions[1]

        panel.use_common_suggestion("Custom")
        assert panel.draft_text == "Custom"


class TestAIFeedback:
    @pytest.mark.asyncio
    async def test_accept_ai_comment_reattributes(self, panel, gateway, session, ai_comment):
        panel.add_ai_feedback([ai_comment])

        adopted = await panel.accept("ai-1")

        assert not any(i.is_automated for i in panel.items)
        assert panel.items == [adopted]
        assert adopted.author == HumanAuthor("m-42")
        assert adopted.text == ai_comment.text
        assert adopted.selected_text == ai_comment.selected_text
        assert adopted.type == FeedbackType.COMMENT
        assert session.content == DOCUMENT

        stored = await gateway.list(FeedbackFilter(document_version_id=VERSION_ID))
        assert [i.author for i in stored] == [HumanAuthor("m-42")]

    @pytest.mark.asyncio
    async def test_accept_ai_suggestion_substitutes_once(self, panel, session, ai_suggestion):
        session.apply_text_substitution = MagicMock(wraps=session.apply_text_substitution)
        panel.add_ai_feedback([ai_suggestion])
        panel.select_item("ai-2")

        adopted = await panel.accept("ai-2")

        session.apply_text_substitution.assert_called_once_with(UNCLEAR, CLEARER)
        assert CLEARER in session.content
        assert adopted.type == FeedbackType.SUGGESTION
        assert session.active_feedback_id is None

    @pytest.mark.asyncio
    async def test_failed_accept_changes_nothing(self, panel, gateway, notifier, session, ai_suggestion):
        gateway.create = AsyncMock(side_effect=PersistenceError("create"))
        panel.add_ai_feedback([ai_suggestion])

        assert await panel.accept("ai-2") is None

        assert panel.items == [ai_suggestion]
        assert session.content == DOCUMENT
        assert notifier.errors == ["Failed to accept AI feedback"]

    @pytest.mark.asyncio
    async def test_accept_human_item_is_ignored(self, panel, gateway, session):
        panel.select_text(UNCLEAR)
        item = await panel.submit("Comment")

        assert await panel.accept(item.id) is None
        assert len(gateway) == 1

    def test_reject_removes_without_substitution(self, panel, gateway, session, ai_suggestion):
        session.apply_text_substitution = MagicMock()
        panel.add_ai_feedback([ai_suggestion])

        assert panel.reject("ai-2")

        assert panel.items == []
        session.apply_text_substitution.assert_not_called()
        assert len(gateway) == 0

    def test_add_ai_feedback_rejects_human_items(self, panel, make_item):
        with pytest.raises(ValidationError):
            panel.add_ai_feedback([make_item()])

    def test_add_ai_feedback_rejects_other_versions(self, panel, make_item, ai_author):
        with pytest.raises(ValidationError):
            panel.add_ai_feedback([make_item(author=ai_author, document_version_id="other")])

    @pytest.mark.asyncio
    async def test_removing_ai_item_is_local(self, panel, gateway, ai_comment):
        gateway.delete = AsyncMock()
        panel.add_ai_feedback([ai_comment])

        assert await panel.remove("ai-1")

        gateway.delete.assert_not_called()
        assert panel.items == []


class TestRemoveAndLoad:
    @pytest.mark.asyncio
    async def test_remove_stored_item(self, panel, gateway, session, observer):
        panel.select_text(UNCLEAR)
        item = await panel.submit("Comment")
        panel.select_item(item.id)

        assert await panel.remove(item.id)

        assert panel.items == []
        assert len(gateway) == 0
        assert session.active_feedback_id is None
        assert session.selected_text == ""
        observer.on_feedback_removed.assert_called_once_with(item.id)

    @pytest.mark.asyncio
    async def test_failed_remove_keeps_item(self, panel, gateway, notifier):
        panel.select_text(UNCLEAR)
        item = await panel.submit("Comment")
        gateway.delete = AsyncMock(side_effect=PersistenceError("delete"))

        assert not await panel.remove(item.id)

        assert panel.items == [item]
        assert notifier.errors == ["Failed to delete feedback"]

    @pytest.mark.asyncio
    async def test_load_keeps_ai_items(self, panel, gateway, ai_comment):
        await gateway.create(
            FeedbackDraft(
                text="Stored",
                selected_text="My goal",
                type=FeedbackType.COMMENT,
                author=HumanAuthor("m-42"),
                document_version_id=VERSION_ID,
            )
        )
        await gateway.create(
            FeedbackDraft(
                text="Someone else's",
                selected_text="My goal",
                type=FeedbackType.COMMENT,
                author=HumanAuthor("m-7"),
                document_version_id=VERSION_ID,
            )
        )
        panel.add_ai_feedback([ai_comment])

        assert await panel.load()

        assert sorted(i.text for i in panel.items) == ["Consider shortening", "Stored"]

    @pytest.mark.asyncio
    async def test_failed_load_leaves_items(self, panel, gateway, notifier, ai_comment):
        gateway.list = AsyncMock(side_effect=PersistenceError("list"))
        panel.add_ai_feedback([ai_comment])

        assert not await panel.load()

        assert panel.items == [ai_comment]
        assert notifier.errors == ["Failed to load feedback"]


class TestSelection:
    def test_new_selection_clears_active_item(self, panel, session, ai_comment):
        panel.add_ai_feedback([ai_comment])
        panel.select_item("ai-1")
        assert session.selected_text == "para 2"

        panel.select_text("para 2")
        assert session.active_feedback_id == "ai-1"

        panel.select_text("My goal")
        assert session.active_feedback_id is None

    def test_unknown_item_is_a_soft_notice(self, panel, notifier, session):
        panel.select_item("gone")

        assert notifier.infos == ["This feedback is no longer available"]
        assert notifier.errors == []
        assert session.active_feedback_id is None

    def test_highlights_are_published_to_session(self, panel, session, ai_comment):
        panel.add_ai_feedback([ai_comment])
        panel.select_text("My goal")

        assert session.highlights == [
            HighlightSpec("para 2", DEFAULT_PALETTE.ai_comment),
            HighlightSpec("My goal", DEFAULT_PALETTE.pending_selection),
        ]

    def test_clear_active(self, panel, session, ai_comment):
        panel.add_ai_feedback([ai_comment])
        panel.select_item("ai-1")

        panel.clear_active()

        assert session.active_feedback_id is None
        assert session.selected_text == ""


class TestDispose:
    @pytest.mark.asyncio
    async def test_late_results_are_discarded(self, panel, gateway, notifier):
        release = asyncio.Event()

        async def slow_create(draft):
            await release.wait()
            return "late-id"

        gateway.create = slow_create
        panel.select_text(UNCLEAR)

        task = asyncio.create_task(panel.submit("Comment"))
        await asyncio.sleep(0)
        panel.dispose()
        release.set()

        assert await task is None
        assert panel.items == []
        assert notifier.errors == []

    @pytest.mark.asyncio
    async def test_late_failures_are_silent(self, panel, gateway, notifier):
        release = asyncio.Event()

        async def failing_create(draft):
            await release.wait()
            raise PersistenceError("create")

        gateway.create = failing_create
        panel.select_text(UNCLEAR)

        task = asyncio.create_task(panel.submit("Comment"))
        await asyncio.sleep(0)
        panel.dispose()
        release.set()

        assert await task is None
        assert notifier.errors == []


def test_ordered_items_newest_first(panel, make_item, ai_author):
    older = make_item(id="ai-old", author=ai_author)
    newer = make_item(id="ai-new", author=ai_author)
    panel.add_ai_feedback([older, newer])

    assert [i.id for i in panel.ordered_items()] == ["ai-new", "ai-old"]
