from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(slots=True)
class Cursor:
    """
    A forward-only position over an input string, shared by the requirement and marker parsers.

    Offsets are character offsets into `text`, so they can be handed directly to the error
    classes to underline the offending span.

    Attributes:
        text (str): The complete input.
        pos (int): Offset of the next unread character.
    """
    text: str
    pos: int = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self) -> str | None:
        """Returns the next character without consuming it, or None at the end of input."""
        return None if self.at_end else self.text[self.pos]

    def next(self) -> str | None:
        char = self.peek()
        if char is not None:
            self.pos += 1
        return char

    def eat(self, token: str) -> int | None:
        """
        Consumes `token` if the input continues with it.

        Args:
            token (str): The expected text, usually a single character.

        Returns:
            int | None: The offset where the token started, or None (consuming nothing) when the
                input does not continue with it.
        """
        if self.text.startswith(token, self.pos):
            start = self.pos
            self.pos += len(token)
            return start
        return None

    def eat_whitespace(self) -> None:
        while not self.at_end and self.text[self.pos].isspace():
            self.pos += 1

    def peek_while(self, condition: Callable[[str], bool]) -> tuple[str, int]:
        """
        Looks ahead over the characters satisfying `condition` without consuming them.

        Returns:
            tuple[str, int]: The matched text and the offset it starts at.
        """
        end = self.pos
        while end < len(self.text) and condition(self.text[end]):
            end += 1
        return self.text[self.pos:end], self.pos

    def take_while(self, condition: Callable[[str], bool]) -> tuple[str, int]:
        """
        Consumes the characters satisfying `condition`.

        Returns:
            tuple[str, int]: The consumed text and the offset it starts at.
        """
        taken, start = self.peek_while(condition)
        self.pos += len(taken)
        return taken, start

    def remaining(self) -> str:
        return self.text[self.pos:]
