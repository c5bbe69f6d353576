"""QueryLoop: Q&A community backend with voting and moderation."""

__version__ = "0.1.0"
