from dataclasses import dataclass

from document_feedback.config import FeedbackConfig
from document_feedback.storage.gateway import FeedbackGateway


@dataclass
class GatewayFactory:
    """Factory for creating feedback gateways."""

    @staticmethod
    def create_gateway(config: FeedbackConfig) -> FeedbackGateway:
        """
        Create the gateway selected by the configuration.

        Args:
            config: Configuration naming the backend ("sql", "mongo", "memory")

        Returns:
            FeedbackGateway implementation
        """
        if config.backend == "sql":
            from document_feedback.storage.sql import SQLFeedbackGateway

            return SQLFeedbackGateway(config.database_url)
        elif config.backend == "mongo":
            if not config.mongodb_url:
                raise ValueError("MONGODB_URL is required for the mongo backend")
            from document_feedback.storage.mongo import MongoFeedbackGateway

            return MongoFeedbackGateway(config.mongodb_url, config.mongodb_database)
        elif config.backend == "memory":
            from document_feedback.storage.memory import InMemoryFeedbackGateway

            return InMemoryFeedbackGateway()
        else:
            raise ValueError(f"Unknown feedback backend: {config.backend}")
