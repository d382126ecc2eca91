from typing import List

from openai import AsyncOpenAI

from document_feedback.ai.parser import parse_ai_feedback
from document_feedback.config import FeedbackConfig
from document_feedback.feedback.exceptions import ValidationError
from document_feedback.feedback.models import FeedbackItem
from document_feedback.logging.logger import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """
You are an experienced admissions mentor reviewing a student's statement of
purpose. Point out passages that are unclear, vague, repetitive or
grammatically wrong.

Respond with a JSON array only. Each element must have:
- "selectedText": an exact, verbatim substring of the document
- "type": "suggestion" when you propose replacement text, otherwise "comment"
- "text": the replacement text for a suggestion, or your remark for a comment

Keep "selectedText" short enough to appear exactly once in the document.
"""


class AIFeedbackGenerator:
    """Asks an OpenAI chat model for feedback on a document."""

    def __init__(self, config: FeedbackConfig = None, client: AsyncOpenAI = None):
        """
        Initialize the generator.

        Args:
            config: Model name and temperature (defaults to FeedbackConfig())
            client: OpenAI client; one is created from the environment if omitted
        """
        self.config = config or FeedbackConfig()
        self._client = client or AsyncOpenAI()

    async def generate(self, content: str, document_version_id: str) -> List[FeedbackItem]:
        """
        Generate AI feedback for the document content.

        Returns:
            Unsaved AI-authored items

        Raises:
            ValidationError: If the document is empty
            AIFeedbackParseError: If the model's answer cannot be parsed
        """
        if not content or not content.strip():
            raise ValidationError("Document content is required")

        logger.info(f"Requesting AI feedback with {self.config.ai_model}")
        response = await self._client.chat.completions.create(
            model=self.config.ai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": f"The document content is:\n\n{content}"},
            ],
            temperature=self.config.ai_temperature,
        )
        return parse_ai_feedback(response.choices[0].message.content, document_version_id)
