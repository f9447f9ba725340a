from __future__ import annotations

import getpass
from collections.abc import Callable, Sequence
from dataclasses import dataclass

CANCEL_WORD = "cancel"


class InputCancelled(Exception):
    pass


@dataclass(slots=True)
class ConsoleIO:
    read_line: Callable[[str], str] = input
    read_secret: Callable[[str], str] = getpass.getpass
    write: Callable[[str], None] = print
    cancel_word: str = CANCEL_WORD

    def text(self, prompt: str, *, allow_empty: bool = False) -> str:
        while True:
            value = self.read_line(prompt).strip()
            if value == self.cancel_word:
                raise InputCancelled
            if value or allow_empty:
                return value
            self.write("A value is required.")

    def secret(self, prompt: str) -> str:
        value = self.read_secret(prompt)
        if value == self.cancel_word:
            raise InputCancelled
        return value

    def integer(
        self,
        prompt: str,
        *,
        minimum: int | None = None,
        maximum: int | None = None,
        allow_empty: bool = False,
    ) -> int | None:
        while True:
            raw = self.text(prompt, allow_empty=allow_empty)
            if not raw and allow_empty:
                return None
            try:
                value = int(raw)
            except ValueError:
                self.write("Please enter a whole number.")
                continue
            if minimum is not None and value < minimum:
                self.write(f"Please enter a number of at least {minimum}.")
                continue
            if maximum is not None and value > maximum:
                self.write(f"Please enter a number of at most {maximum}.")
                continue
            return value

    def choose(self, title: str, labels: Sequence[str]) -> int:
        """Show a numbered menu and return the 0-based index picked."""
        self.write(f"\n{title}")
        for position, label in enumerate(labels, start=1):
            self.write(f"{position}. {label}")
        choice = self.integer(f"Choose (1-{len(labels)}): ", minimum=1, maximum=len(labels))
        assert choice is not None
        return choice - 1

    def confirm(self, prompt: str) -> bool:
        return self.read_line(f"{prompt} (y/n): ").strip().lower() in {"y", "yes"}
