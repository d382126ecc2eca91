import dotenv
import fire

from document_feedback.cli import feedback

dotenv.load_dotenv()


class CLI:
    """Main CLI interface for the document feedback package."""

    def __init__(self):
        self.feedback = feedback.FeedbackCommands()


def main():
    """Entry point for the CLI."""
    fire.Fire(CLI)


if __name__ == "__main__":
    main()
