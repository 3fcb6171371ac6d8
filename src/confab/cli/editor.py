"""prompt_toolkit line editor used by the chat REPL."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import DummyHistory, FileHistory, History, InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.styles import Style as PtStyle

from .renderer import GOLD, SLATE

logger = logging.getLogger(__name__)


class ReadInterrupt(KeyboardInterrupt):
    """Ctrl+C during a read; carries whatever had been typed so far."""

    def __init__(self, partial: str = "") -> None:
        super().__init__(partial)
        self.partial = partial


class LineEditor:
    """A single-line prompt with history, driven one ``readline()`` at a time."""

    def __init__(self, history_path: Path | None = None) -> None:
        if history_path is not None:
            history_path.parent.mkdir(parents=True, exist_ok=True)
            self._history: History = FileHistory(str(history_path))
        else:
            self._history = InMemoryHistory()
        self._history_enabled = True
        self._prompt = ""

        kb = KeyBindings()

        # Ctrl+C: report how much was typed so the caller decides between clearing and quitting
        @kb.add("c-c")
        def _handle_ctrl_c(event: Any) -> None:
            event.app.exit(exception=ReadInterrupt(event.current_buffer.text), style="class:aborting")

        self._session: PromptSession[str] | None = PromptSession(
            history=self._history,
            key_bindings=kb,
            style=PtStyle.from_dict({"prompt": f"{GOLD} bold", "prompt.next": SLATE}),
        )

    @property
    def prompt(self) -> str:
        return self._prompt

    def set_prompt(self, text: str) -> None:
        self._prompt = text

    @property
    def history_enabled(self) -> bool:
        return self._history_enabled

    def _active_session(self) -> PromptSession[str]:
        if self._session is None:
            raise EOFError("line editor is closed")
        return self._session

    def disable_history(self) -> None:
        session = self._active_session()
        session.history = DummyHistory()
        session.default_buffer.history = session.history
        self._history_enabled = False

    def enable_history(self) -> None:
        session = self._active_session()
        session.history = self._history
        session.default_buffer.history = self._history
        self._history_enabled = True

    @property
    def closed(self) -> bool:
        return self._session is None

    def readline(self) -> str:
        session = self._active_session()
        style = "class:prompt" if self._prompt.strip(" >") else "class:prompt.next"
        return session.prompt(FormattedText([(style, self._prompt)]))

    def close(self) -> None:
        """Release the prompt session; later reads report end of input."""
        if self._session is None:
            return
        self._session = None
        self._history = InMemoryHistory()
        logger.debug("Line editor closed")
