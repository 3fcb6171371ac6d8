"""OpenAI SDK wrapper for chat completions."""

from __future__ import annotations

import logging
from typing import Any, Iterator

import httpx
from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AuthenticationError,
    BadRequestError,
    OpenAI,
    RateLimitError,
)

from ..config import AIConfig
from .chat_session import ChatSessionError

logger = logging.getLogger(__name__)


class AIServiceError(ChatSessionError):
    """A failed request to the model endpoint, with an operator-facing message."""

    def __init__(self, message: str, code: str = "error") -> None:
        super().__init__(message)
        self.code = code


class AIService:
    def __init__(self, config: AIConfig) -> None:
        self.config = config
        self._build_client()

    def _build_client(self) -> None:
        """Build (or rebuild) the OpenAI client and its HTTP connection pool."""
        old_client = getattr(self, "client", None)
        if old_client is not None:
            try:
                old_client.close()
            except Exception:
                logger.debug("Failed to close old HTTP client", exc_info=True)

        timeout = httpx.Timeout(
            float(self.config.request_timeout),
            connect=float(self.config.connect_timeout),
        )
        # SECURITY-REVIEW: verify=False only when user explicitly sets verify_ssl: false in config
        http_client = httpx.Client(
            verify=self.config.verify_ssl,
            timeout=timeout,
        )
        self.client = OpenAI(
            base_url=self.config.base_url,
            api_key=self.config.api_key,
            http_client=http_client,
        )

    def _translate_error(self, e: Exception) -> AIServiceError:
        """Map an SDK exception onto an AIServiceError the CLI can show as-is."""
        if isinstance(e, AIServiceError):
            return e
        if isinstance(e, AuthenticationError):
            logger.error("Authentication failed")
            return AIServiceError("Authentication failed. Check your API key.", "auth_failed")
        if isinstance(e, BadRequestError):
            body = getattr(e, "body", {}) or {}
            err_code = body.get("error", {}).get("code", "") if isinstance(body, dict) else ""
            if err_code == "context_length_exceeded" or "context_length" in str(e).lower():
                logger.warning("Context length exceeded: %s", e)
                return AIServiceError(
                    "Conversation too long for model context window. Purge the history to continue.",
                    "context_length_exceeded",
                )
            logger.warning("AI bad request error: %s", e)
            return AIServiceError("AI request error", "bad_request")
        if isinstance(e, RateLimitError):
            logger.warning("Rate limited by AI provider: %s", e)
            return AIServiceError("Rate limited by API provider", "rate_limit")
        # Must be AFTER the APIStatusError subclasses handled above
        if isinstance(e, APIStatusError):
            logger.warning("API error %d: %s", e.status_code, type(e).__name__)
            return AIServiceError(f"API error (HTTP {e.status_code})", "api_error")
        # APITimeoutError is a subclass of APIConnectionError
        if isinstance(e, APITimeoutError):
            logger.warning("Request timed out after %ss", self.config.request_timeout)
            self._build_client()
            return AIServiceError("Request timed out", "timeout")
        if isinstance(e, APIConnectionError):
            logger.warning("Cannot connect to API at %s", self.config.base_url)
            self._build_client()
            return AIServiceError(f"Cannot connect to API at {self.config.base_url}", "connection_error")
        logger.exception("AI request error")
        return AIServiceError("An internal error occurred", "internal")

    def complete(self, messages: list[dict[str, Any]], model: str | None = None) -> str:
        try:
            response = self.client.chat.completions.create(
                model=model or self.config.model,
                messages=messages,
            )
        except Exception as e:
            raise self._translate_error(e) from e
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def stream(self, messages: list[dict[str, Any]], model: str | None = None) -> Iterator[str]:
        """Yield content chunks of a streamed completion as they arrive."""
        try:
            stream = self.client.chat.completions.create(
                model=model or self.config.model,
                messages=messages,
                stream=True,
            )
            try:
                for chunk in stream:
                    if not chunk.choices:
                        continue
                    content = chunk.choices[0].delta.content
                    if content:
                        yield content
            finally:
                # Release the pooled connection when the consumer stops early
                if hasattr(stream, "close"):
                    stream.close()
        except Exception as e:
            raise self._translate_error(e) from e

    def list_models(self) -> list[str]:
        try:
            models = self.client.models.list()
        except Exception as e:
            raise self._translate_error(e) from e
        return sorted(m.id for m in models.data)

    def validate_connection(self) -> tuple[bool, str, list[str]]:
        try:
            return True, "Connected successfully", self.list_models()
        except AIServiceError as e:
            return False, str(e), []

    def close(self) -> None:
        self.client.close()
