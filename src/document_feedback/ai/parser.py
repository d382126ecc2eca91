"""
Parsing of AI reviewer responses into feedback items.

Language models rarely return bare JSON: the payload is usually wrapped in a
Markdown code fence or surrounded by prose. ``extract_json`` tries a series
of patterns, most specific first, and the result is validated against the
``AIFeedbackEntry`` schema before any item is built.
"""

import json
import re
from datetime import datetime
from typing import Any, List, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError as SchemaError

from document_feedback.feedback.exceptions import AIFeedbackParseError
from document_feedback.feedback.models import (
    AutomatedAuthor,
    FeedbackItem,
    FeedbackStatus,
    FeedbackType,
)
from document_feedback.logging.logger import get_logger

logger = get_logger(__name__)

AI_ID_PREFIX = "ai-"

JSON_PATTERNS = [
    re.compile(r"```json\s*\n(.*?)\n\s*```", re.DOTALL),  # fenced, tagged
    re.compile(r"```\s*\n(.*?)\n\s*```", re.DOTALL),  # fenced, untagged
    re.compile(r"\[\s*\{.*\}\s*\]", re.DOTALL),  # array of objects
    re.compile(r"\{.*\}", re.DOTALL),  # any object
]


class AIFeedbackEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(min_length=1)
    selected_text: str = Field(alias="selectedText", min_length=1)
    type: FeedbackType


class AIFeedbackResponse(BaseModel):
    feedback: List[AIFeedbackEntry]


def extract_json(raw_text: str) -> Any:
    """
    Pull the JSON payload out of a model response.

    Raises:
        AIFeedbackParseError: If the response is empty or holds no valid JSON
    """
    if not raw_text or not raw_text.strip():
        raise AIFeedbackParseError("Empty response from AI reviewer")

    candidate = raw_text.strip()
    for pattern in JSON_PATTERNS:
        match = pattern.search(raw_text)
        if match:
            candidate = (match.group(1) if match.groups() else match.group(0)).strip()
            break

    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        raise AIFeedbackParseError(f"AI response is not valid JSON: {str(e)}")


def parse_ai_feedback(raw_text: str, document_version_id: str) -> List[FeedbackItem]:
    """
    Turn a model response into AI-authored feedback items.

    The payload may be a bare list of entries or an object with a
    ``feedback`` list.

    Args:
        raw_text: The model's response text
        document_version_id: Version the feedback applies to

    Returns:
        Items with ``ai-`` client ids, status ACTIVE and the current time

    Raises:
        AIFeedbackParseError: If the response cannot be parsed or validated
    """
    payload: Union[list, dict] = extract_json(raw_text)
    if isinstance(payload, list):
        payload = {"feedback": payload}

    try:
        response = AIFeedbackResponse.model_validate(payload)
    except SchemaError as e:
        raise AIFeedbackParseError(f"AI response has an unexpected shape: {str(e)}")

    now = datetime.now()
    items = [
        FeedbackItem(
            id=f"{AI_ID_PREFIX}{uuid4()}",
            text=entry.text,
            selected_text=entry.selected_text,
            type=entry.type,
            author=AutomatedAuthor(),
            document_version_id=document_version_id,
            status=FeedbackStatus.ACTIVE,
            timestamp=now,
        )
        for entry in response.feedback
    ]
    logger.info(f"Parsed {len(items)} AI feedback items for version {document_version_id}")
    return items
