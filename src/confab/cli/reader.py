"""Input acquisition for the chat REPL: single-line and terminator-delimited multi-line reads."""

from __future__ import annotations

import logging
from typing import Protocol

from . import renderer
from .prompt import PromptSet

logger = logging.getLogger(__name__)

QUIT_COMMAND = "quit"


class Editor(Protocol):
    def readline(self) -> str: ...

    def set_prompt(self, text: str) -> None: ...

    def disable_history(self) -> None: ...

    def enable_history(self) -> None: ...


def validate_input(text: str) -> tuple[str, bool]:
    text = text.strip()
    return text, text != ""


class InputReader:
    """Reads operator input through a line editor.

    Every read returns ``(text, usable)``. ``usable`` is False when the caller
    should skip dispatch and read again: blank input, an interrupt that only
    cleared the line, or a read error that has already been reported.
    """

    def __init__(self, editor: Editor, prompts: PromptSet, system_prefix: str = "!") -> None:
        self._editor = editor
        self.prompts = prompts
        self._quit = system_prefix + QUIT_COMMAND
        self._editor.set_prompt(prompts.user)

    def set_history_enabled(self, enabled: bool) -> None:
        if enabled:
            self._editor.enable_history()
        else:
            self._editor.disable_history()

    def read(self, multiline: bool = False, terminator: str = "") -> tuple[str, bool]:
        if multiline:
            return self.read_multi_line(terminator)
        return self.read_single_line()

    def read_single_line(self) -> tuple[str, bool]:
        try:
            line = self._editor.readline()
        except (Exception, KeyboardInterrupt) as e:
            return self._handle_read_error(len(getattr(e, "partial", "")), e)
        return validate_input(line)

    def read_multi_line(self, terminator: str) -> tuple[str, bool]:
        if not terminator:
            raise ValueError("multi-line input requires a non-empty terminator")
        parts: list[str] = []
        size = 0
        try:
            while True:
                try:
                    line = self._editor.readline()
                except (Exception, KeyboardInterrupt) as e:
                    return self._handle_read_error(size + len(getattr(e, "partial", "")), e)
                if line.endswith(terminator):
                    parts.append(line[: -len(terminator)])
                    break
                if not parts:
                    self._editor.set_prompt(self.prompts.user_next)
                parts.append(line + "\n")
                size += len(line) + 1
        finally:
            self._editor.set_prompt(self.prompts.user)
        return validate_input("".join(parts))

    def _handle_read_error(self, input_len: int, err: BaseException) -> tuple[str, bool]:
        if isinstance(err, (KeyboardInterrupt, EOFError)):
            if input_len == 0:
                logger.debug("%s at empty prompt, quitting", type(err).__name__)
                return self._quit, True
            logger.debug("%s discarded %d characters of input", type(err).__name__, input_len)
            return "", False
        logger.debug("Read error", exc_info=err)
        renderer.render_cli(self.prompts.cli, str(err))
        return "", False
