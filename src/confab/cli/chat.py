"""The interactive chat loop."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..services.chat_session import ChatSession
from .commands import Command, parse_command
from .editor import LineEditor
from .prompt import PromptSet
from .reader import Editor, InputReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatOptions:
    model_id: str
    format_output: bool = True
    style_name: str = "monokai"
    multiline: bool = False
    terminator: str = "$"

    def __post_init__(self) -> None:
        if self.multiline and not self.terminator:
            raise ValueError("a non-empty terminator is required for multi-line input")


class Chat:
    """Reads operator input and dispatches it until a command asks to quit.

    Owns the line editor; the session is borrowed and outlives the chat.
    """

    def __init__(
        self,
        user: str,
        session: ChatSession,
        options: ChatOptions,
        editor: Editor | None = None,
        system_prefix: str = "!",
        history_path: Path | None = None,
    ) -> None:
        if not system_prefix:
            raise ValueError("system_prefix must be non-empty")
        self.session = session
        self.options = options
        self.system_prefix = system_prefix
        self.prompts = PromptSet.for_user(user)
        self._editor = editor if editor is not None else LineEditor(history_path)
        self.reader = InputReader(self._editor, self.prompts, system_prefix)
        # Multi-line entries are not recorded in the editor history
        self.reader.set_history_enabled(not options.multiline)

    def __enter__(self) -> Chat:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def start(self) -> None:
        logger.info("Chat started (model=%s, multiline=%s)", self.options.model_id, self.options.multiline)
        while True:
            message, ok = self.read()
            if not ok:
                continue
            command = self.parse_command(message)
            if command.run(message):
                break
        logger.info("Chat ended after %d turns", len(self.session.history))

    def read(self) -> tuple[str, bool]:
        return self.reader.read(self.options.multiline, self.options.terminator)

    def parse_command(self, message: str) -> Command:
        return parse_command(self, message)

    def update_options(self, **changes: Any) -> ChatOptions:
        options = dataclasses.replace(self.options, **changes)
        if options.multiline != self.options.multiline:
            self.reader.set_history_enabled(not options.multiline)
        self.options = options
        return options

    def close(self) -> None:
        close = getattr(self._editor, "close", None)
        if close is not None:
            close()
