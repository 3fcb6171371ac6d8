"""Shared fixtures for CLI unit tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from confab.cli.chat import Chat, ChatOptions
from confab.services.chat_session import ChatSession


class ScriptedEditor:
    """Line editor stand-in that replays a script of lines and exceptions.

    When the script runs out it raises EOFError, which the reader treats as
    Ctrl+D at an empty prompt, so a chat loop driven by it always ends.
    """

    def __init__(self, *script: str | BaseException) -> None:
        self._script = list(script)
        self.prompt = ""
        self.prompts_seen: list[str] = []
        self.history_enabled = True
        self.closed = False

    def readline(self) -> str:
        self.prompts_seen.append(self.prompt)
        if not self._script:
            raise EOFError
        item = self._script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def set_prompt(self, text: str) -> None:
        self.prompt = text

    def disable_history(self) -> None:
        self.history_enabled = False

    def enable_history(self) -> None:
        self.history_enabled = True

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_editor() -> type[ScriptedEditor]:
    return ScriptedEditor


@pytest.fixture
def ai_service() -> MagicMock:
    service = MagicMock()
    service.complete.return_value = "model reply"
    service.stream.side_effect = lambda messages, model=None: iter(["model ", "reply"])
    service.list_models.return_value = ["gpt-4o", "gpt-4o-mini"]
    return service


@pytest.fixture
def session(ai_service: MagicMock) -> ChatSession:
    return ChatSession(ai_service, "gpt-4o-mini")


@pytest.fixture
def make_chat(session: ChatSession) -> Any:
    def _make(*script: str | BaseException, **option_overrides: Any) -> Chat:
        options = ChatOptions(model_id="gpt-4o-mini", **option_overrides)
        return Chat("alice", session, options, editor=ScriptedEditor(*script))

    return _make
