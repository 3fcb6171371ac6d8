"""Stateful conversation with a remote model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    from .ai_service import AIService

logger = logging.getLogger(__name__)


class ChatSessionError(Exception):
    """A turn could not be completed; the message is shown to the operator."""


@dataclass(frozen=True)
class Turn:
    user: str
    reply: str


class ChatSession:
    """Conversation history plus the model it is sent to.

    A turn is recorded only once the model's reply is complete, so a failed
    or interrupted request leaves the history exactly as it was.
    """

    def __init__(self, ai_service: AIService, model: str, system_prompt: str = "") -> None:
        self._ai_service = ai_service
        self._model = model
        self._system_prompt = system_prompt
        self._turns: list[Turn] = []

    @property
    def model(self) -> str:
        return self._model

    @model.setter
    def model(self, value: str) -> None:
        logger.info("Switching model %s -> %s", self._model, value)
        self._model = value

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @system_prompt.setter
    def system_prompt(self, value: str) -> None:
        self._system_prompt = value
        self.reset()

    @property
    def history(self) -> list[Turn]:
        return list(self._turns)

    @property
    def messages(self) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if self._system_prompt:
            messages.append({"role": "system", "content": self._system_prompt})
        for turn in self._turns:
            messages.append({"role": "user", "content": turn.user})
            messages.append({"role": "assistant", "content": turn.reply})
        return messages

    def _request(self, text: str) -> list[dict[str, Any]]:
        return self.messages + [{"role": "user", "content": text}]

    def send_turn(self, text: str) -> str:
        reply = self._ai_service.complete(self._request(text), model=self._model)
        self._turns.append(Turn(user=text, reply=reply))
        return reply

    def stream_turn(self, text: str) -> Iterator[str]:
        chunks: list[str] = []
        source = self._ai_service.stream(self._request(text), model=self._model)
        try:
            for chunk in source:
                chunks.append(chunk)
                yield chunk
        finally:
            if hasattr(source, "close"):
                source.close()
        self._turns.append(Turn(user=text, reply="".join(chunks)))

    def reset(self) -> None:
        logger.debug("Purging %d turns", len(self._turns))
        self._turns.clear()

    def list_models(self) -> list[str]:
        return self._ai_service.list_models()
