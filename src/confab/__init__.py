"""confab: a terminal chat client for OpenAI-compatible model endpoints."""

__version__ = "0.1.0"
