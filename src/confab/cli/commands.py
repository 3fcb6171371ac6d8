"""Commands dispatched by the chat loop.

Every input line becomes exactly one command. Lines that start with the
system prefix are handled locally by :class:`SystemCommand`; everything else
is a conversation turn sent to the model by :class:`ModelCommand`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import closing
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from ..services.chat_session import ChatSessionError
from . import renderer

if TYPE_CHECKING:
    from .chat import Chat

logger = logging.getLogger(__name__)


@dataclass
class Command(ABC):
    chat: Chat

    @abstractmethod
    def run(self, message: str) -> bool:
        """Execute the command; return True when the chat loop should stop."""


class ModelCommand(Command):
    def run(self, message: str) -> bool:
        chat = self.chat
        session = chat.session
        try:
            if chat.options.format_output:
                renderer.start_thinking()
                try:
                    reply = session.send_turn(message)
                finally:
                    elapsed = renderer.stop_thinking()
                logger.debug("Reply received in %.1fs", elapsed)
                renderer.render_markdown(reply, chat.options.style_name)
            else:
                try:
                    with closing(session.stream_turn(message)) as chunks:
                        for chunk in chunks:
                            renderer.render_raw_chunk(chunk)
                finally:
                    renderer.render_raw_end()
        except ChatSessionError as e:
            logger.warning("Turn failed: %s", e)
            renderer.render_cli(chat.prompts.cli, str(e))
        except KeyboardInterrupt:
            logger.info("Turn cancelled by operator")
            renderer.render_cli(chat.prompts.cli, "Request cancelled")
        return False


_Handler = Callable[["SystemCommand", str], bool]


@dataclass(frozen=True)
class _Entry:
    names: list[str]
    description: str
    handler: _Handler


class SystemCommand(Command):
    def run(self, message: str) -> bool:
        chat = self.chat
        body = message[len(chat.system_prefix) :].strip()
        parts = body.split(maxsplit=1)
        name = parts[0].lower() if parts else ""
        argument = parts[1] if len(parts) > 1 else ""
        entry = _COMMANDS.get(name)
        if entry is None:
            renderer.render_cli(
                chat.prompts.cli,
                f"Unknown command: {message}. Type {chat.system_prefix}help for the list of commands.",
            )
            return False
        logger.debug("System command %s", entry.names[0])
        try:
            return entry.handler(self, argument.strip())
        except ChatSessionError as e:
            logger.warning("Command %s failed: %s", entry.names[0], e)
            renderer.render_cli(chat.prompts.cli, str(e))
            return False
        except KeyboardInterrupt:
            logger.info("Command %s cancelled by operator", entry.names[0])
            renderer.render_cli(chat.prompts.cli, "Request cancelled")
            return False

    def _info(self, message: str) -> None:
        renderer.render_cli(self.chat.prompts.cli, message)

    def quit(self, argument: str) -> bool:
        return True

    def help(self, argument: str) -> bool:
        renderer.render_help(self.chat.system_prefix, ((e.names, e.description) for e in _ENTRIES))
        return False

    def purge(self, argument: str) -> bool:
        self.chat.session.reset()
        self._info("Chat history purged")
        return False

    def history(self, argument: str) -> bool:
        prompts = self.chat.prompts
        renderer.render_history(prompts.user, prompts.cli, self.chat.session.history)
        return False

    def model(self, argument: str) -> bool:
        session = self.chat.session
        if not argument:
            self._info(f"Current model: {session.model}")
            return False
        session.model = argument
        self.chat.update_options(model_id=argument)
        self._info(f"Switched to model: {argument}")
        return False

    def models(self, argument: str) -> bool:
        renderer.render_models(self.chat.session.list_models(), self.chat.session.model)
        return False

    def input_mode(self, argument: str) -> bool:
        multiline = not self.chat.options.multiline
        try:
            self.chat.update_options(multiline=multiline)
        except ValueError as e:
            self._info(f"Cannot switch input mode: {e}")
            return False
        if multiline:
            self._info(f"Switched to multi-line input (end with {self.chat.options.terminator})")
        else:
            self._info("Switched to single-line input")
        return False

    def format(self, argument: str) -> bool:
        format_output = not self.chat.options.format_output
        self.chat.update_options(format_output=format_output)
        self._info(f"Formatted output {'enabled' if format_output else 'disabled'}")
        return False

    def style(self, argument: str) -> bool:
        if not argument:
            self._info(f"Current style: {self.chat.options.style_name}")
            return False
        if not renderer.is_valid_style(argument):
            self._info(f"Unknown style: {argument}. Available: {', '.join(renderer.available_styles())}")
            return False
        self.chat.update_options(style_name=argument)
        self._info(f"Style set to {argument}")
        return False

    def system(self, argument: str) -> bool:
        session = self.chat.session
        if not argument:
            self._info(f"System prompt: {session.system_prompt or '(none)'}")
            return False
        session.system_prompt = argument
        self._info("System prompt updated, chat history purged")
        return False


_ENTRIES = [
    _Entry(["quit", "q", "exit"], "Exit the chat", SystemCommand.quit),
    _Entry(["help", "h", "?"], "Show this help", SystemCommand.help),
    _Entry(["purge", "p", "reset"], "Purge the chat history", SystemCommand.purge),
    _Entry(["history", "hist"], "Show the chat history", SystemCommand.history),
    _Entry(["model", "m"], "Show or switch the model: model [name]", SystemCommand.model),
    _Entry(["models"], "List models available at the endpoint", SystemCommand.models),
    _Entry(["input", "i"], "Toggle single-line / multi-line input", SystemCommand.input_mode),
    _Entry(["format", "f"], "Toggle formatted (markdown) output", SystemCommand.format),
    _Entry(["style", "s"], "Show or set the code highlight style: style [name]", SystemCommand.style),
    _Entry(["system"], "Show or replace the system prompt (purges history)", SystemCommand.system),
]

_COMMANDS: dict[str, _Entry] = {name: entry for entry in _ENTRIES for name in entry.names}


def parse_command(chat: Chat, message: str) -> Command:
    if message.startswith(chat.system_prefix):
        return SystemCommand(chat)
    return ModelCommand(chat)
