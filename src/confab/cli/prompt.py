"""Prompt strings shown by the chat REPL."""

from __future__ import annotations

from dataclasses import dataclass

ASSISTANT_NAME = "confab"


@dataclass(frozen=True)
class PromptSet:
    user: str
    user_next: str
    cli: str

    @classmethod
    def for_user(cls, name: str, assistant: str = ASSISTANT_NAME) -> PromptSet:
        """Build prompts padded to one column so input always starts at the same offset."""
        name = name.strip() or "user"
        width = max(len(name), len(assistant))
        return cls(
            user=f"{name.ljust(width)}> ",
            user_next=f"{' ' * width}> ",
            cli=f"{assistant.ljust(width)}> ",
        )
