"""
Command line interface for document feedback.

A plain text file stands in for the host document: suggestions applied from
the command line are written back to it. Storage is selected by the usual
environment variables (see FeedbackConfig.from_env) unless --database-url is
given.
"""

import asyncio
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from document_feedback.ai.generator import AIFeedbackGenerator
from document_feedback.config import FeedbackConfig
from document_feedback.feedback.interfaces.cli import ConsoleNotifier
from document_feedback.feedback.models import (
    FeedbackItem,
    FeedbackStatus,
    FeedbackType,
    HumanAuthor,
)
from document_feedback.logging.logger import LoggingConfig, get_logger
from document_feedback.panels.author import AuthorFeedbackPanel
from document_feedback.panels.recipient import RecipientFeedbackPanel
from document_feedback.session import EditingSession
from document_feedback.storage.factory import GatewayFactory
from document_feedback.storage.gateway import FeedbackFilter, FeedbackGateway

logger = get_logger(__name__)
console = Console()


class FeedbackCommands:
    """Commands for managing feedback on document versions."""

    def list(
        self,
        version_id: str,
        author_id: Optional[str] = None,
        recipient_id: Optional[str] = None,
        database_url: Optional[str] = None,
        logging_enabled: bool = False,
    ) -> None:
        """
        List feedback on a document version.

        Args:
            version_id: Document version to list feedback for
            author_id: Only show feedback left by this reviewer ("ai" is never stored)
            recipient_id: Only show feedback addressed to this user
            database_url: Database URL overriding DATABASE_URL
            logging_enabled: Whether to enable detailed logging
        """
        LoggingConfig().enabled = logging_enabled
        gateway = self._gateway(database_url)

        items = asyncio.run(
            gateway.list(
                FeedbackFilter(
                    document_version_id=version_id,
                    author_id=author_id,
                    recipient_id=recipient_id,
                )
            )
        )
        if not items:
            console.print(f"No feedback found for version {version_id}")
            return

        self._print_items(items, f"Feedback on {version_id}")

    def add(
        self,
        version_id: str,
        author_id: str,
        selected_text: str,
        text: str,
        type: str = "comment",
        document: Optional[str] = None,
        recipient_id: Optional[str] = None,
        database_url: Optional[str] = None,
        logging_enabled: bool = False,
    ) -> None:
        """
        Leave a comment or suggestion on a span of a document.

        Examples:
            document-feedback feedback add \\
                --version-id="v1" \\
                --author-id="mentor-7" \\
                --selected-text="very good" \\
                --text="excellent" \\
                --type="suggestion" \\
                --document="sop.txt"

        Args:
            version_id: Document version the feedback applies to
            author_id: Id of the reviewer leaving the feedback
            selected_text: Exact span of the document the feedback refers to
            text: Comment body, or the replacement text for a suggestion
            type: "comment" or "suggestion"
            document: Optional path to the document; the span must occur in it
            recipient_id: Owner of the document
            database_url: Database URL overriding DATABASE_URL
            logging_enabled: Whether to enable detailed logging
        """
        LoggingConfig().enabled = logging_enabled
        content = self._read(document) if document else ""
        if document and selected_text not in content:
            raise ValueError(f"Selected text does not occur in {document}")

        session = EditingSession(content)
        panel = AuthorFeedbackPanel(
            self._gateway(database_url),
            ConsoleNotifier(console),
            session,
            HumanAuthor(author_id),
            version_id,
            recipient_id=recipient_id,
        )

        async def submit() -> Optional[FeedbackItem]:
            panel.select_text(selected_text)
            try:
                return await panel.submit(text, type)
            finally:
                panel.dispose()
                session.dispose()

        item = asyncio.run(submit())
        if item is None:
            console.print("[yellow]Nothing to submit: text and selection are required[/yellow]")
            return

        console.print(f"Added {item.type.value}: {item.id}")

    def apply(
        self,
        version_id: str,
        feedback_id: str,
        document: str,
        database_url: Optional[str] = None,
        logging_enabled: bool = False,
    ) -> None:
        """
        Accept a suggestion and write its text into the document file.

        Args:
            version_id: Document version the suggestion belongs to
            feedback_id: Id of the suggestion
            document: Path to the document to update
            database_url: Database URL overriding DATABASE_URL
            logging_enabled: Whether to enable detailed logging
        """
        LoggingConfig().enabled = logging_enabled
        path = Path(document)
        session = EditingSession(self._read(document))

        async def write(content: str) -> None:
            path.write_text(content, encoding="utf-8")

        async def apply_and_save() -> bool:
            panel = self._recipient_panel(session, version_id, database_url)
            try:
                if not await panel.load():
                    return False
                if not await panel.apply_suggestion(feedback_id):
                    return False
                await session.save(write)
                return True
            finally:
                panel.dispose()
                session.dispose()

        if asyncio.run(apply_and_save()) and not session.last_saved:
            console.print(
                "[yellow]Suggested span no longer in the document; file left unchanged[/yellow]"
            )

    def thank(
        self,
        version_id: str,
        feedback_id: str,
        database_url: Optional[str] = None,
        logging_enabled: bool = False,
    ) -> None:
        """Mark a comment as read and thank its author."""
        LoggingConfig().enabled = logging_enabled
        asyncio.run(self._resolve(version_id, feedback_id, database_url, "thank"))

    def dismiss(
        self,
        version_id: str,
        feedback_id: str,
        database_url: Optional[str] = None,
        logging_enabled: bool = False,
    ) -> None:
        """Delete a feedback item without acting on it."""
        LoggingConfig().enabled = logging_enabled
        if asyncio.run(self._resolve(version_id, feedback_id, database_url, "dismiss")):
            console.print(f"Dismissed feedback {feedback_id}")

    def purge(
        self,
        version_id: str,
        database_url: Optional[str] = None,
        logging_enabled: bool = False,
    ) -> None:
        """
        Delete all feedback on a document version, e.g. when the version is deleted.

        Args:
            version_id: Document version whose feedback should be removed
            database_url: Database URL overriding DATABASE_URL
            logging_enabled: Whether to enable detailed logging
        """
        LoggingConfig().enabled = logging_enabled
        gateway = self._gateway(database_url)

        try:
            count = asyncio.run(gateway.delete_for_document_version(version_id))
        except Exception as e:
            logger.error(f"Failed to purge feedback for {version_id}: {str(e)}")
            raise

        console.print(f"Deleted {count} feedback items for version {version_id}")

    def generate(
        self,
        version_id: str,
        document: str,
        model: Optional[str] = None,
        logging_enabled: bool = False,
    ) -> None:
        """
        Ask the AI reviewer for feedback on a document. Nothing is stored.

        Args:
            version_id: Document version the feedback would apply to
            document: Path to the document to review
            model: OpenAI model overriding FEEDBACK_AI_MODEL
            logging_enabled: Whether to enable detailed logging
        """
        LoggingConfig().enabled = logging_enabled
        config = FeedbackConfig.from_env()
        if model:
            config.ai_model = model

        generator = AIFeedbackGenerator(config)
        items = asyncio.run(generator.generate(self._read(document), version_id))
        self._print_items(items, f"AI feedback for {version_id}")

    async def _resolve(
        self, version_id: str, feedback_id: str, database_url: Optional[str], action: str
    ) -> bool:
        session = EditingSession()
        panel = self._recipient_panel(session, version_id, database_url)
        try:
            if not await panel.load():
                return False
            return await getattr(panel, action)(feedback_id)
        finally:
            panel.dispose()
            session.dispose()

    def _recipient_panel(
        self, session: EditingSession, version_id: str, database_url: Optional[str]
    ) -> RecipientFeedbackPanel:
        return RecipientFeedbackPanel(
            self._gateway(database_url), ConsoleNotifier(console), session, version_id
        )

    @staticmethod
    def _gateway(database_url: Optional[str]) -> FeedbackGateway:
        config = FeedbackConfig.from_env()
        if database_url:
            config.backend = "sql"
            config.database_url = database_url
        return GatewayFactory.create_gateway(config)

    @staticmethod
    def _read(document: str) -> str:
        return Path(document).read_text(encoding="utf-8")

    @staticmethod
    def _print_items(items: List[FeedbackItem], title: str) -> None:
        table = Table(title=title)
        table.add_column("ID", style="cyan")
        table.add_column("Type")
        table.add_column("Status")
        table.add_column("Author")
        table.add_column("Selected text")
        table.add_column("Feedback")

        for item in items:
            table.add_row(
                item.id,
                FeedbackType.get_display(item.type),
                FeedbackStatus.get_display(item.status),
                item.author.id,
                item.selected_text,
                item.text,
            )

        console.print(table)
