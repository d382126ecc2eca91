"""
Configuration for the feedback system.

Defaults suit local development (SQLite next to the working directory); every
value can be overridden from the environment via ``FeedbackConfig.from_env``.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class IslandTimings:
    """Seconds the review island stays visible before auto-hiding."""

    after_edit: float = 5.0  # Content became dirty
    after_save: float = 3.0  # Save completed
    after_leave: float = 2.0  # Pointer left / focus lost


@dataclass
class FeedbackConfig:
    """Top-level configuration for storage, AI and UI behaviour."""

    backend: str = "sql"  # "sql", "mongo" or "memory"
    database_url: str = "sqlite:///./document_feedback.db"
    mongodb_url: Optional[str] = None
    mongodb_database: str = "document_feedback"

    ai_model: str = "gpt-4o-mini"
    ai_temperature: float = 0.3

    timings: IslandTimings = field(default_factory=IslandTimings)

    common_suggestions: List[str] = field(
        default_factory=lambda: [
            "Consider revising this sentence for clarity",
            "This paragraph could be more concise",
            "Add more specific examples here",
            "Strengthen this argument with evidence",
            "Check grammar and sentence structure",
        ]
    )

    @classmethod
    def from_env(cls) -> "FeedbackConfig":
        """Build a configuration, letting environment variables override defaults."""
        config = cls()
        config.backend = os.getenv("FEEDBACK_BACKEND", config.backend).lower()
        config.database_url = os.getenv("DATABASE_URL") or config.database_url
        config.mongodb_url = os.getenv("MONGODB_URL") or config.mongodb_url
        config.mongodb_database = (
            os.getenv("MONGODB_DATABASE") or config.mongodb_database
        )
        config.ai_model = os.getenv("FEEDBACK_AI_MODEL") or config.ai_model
        return config
