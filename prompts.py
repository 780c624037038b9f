"""Interactive questions, with a scripted stand-in for non-interactive use."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.prompt import Confirm, Prompt


class Prompter(Protocol):
    def confirm(self, question: str, default: bool = True) -> bool: ...

    def ask(self, question: str, default: str | None = None) -> str: ...


class RichPrompter:
    """Asks on the terminal."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def confirm(self, question: str, default: bool = True) -> bool:
        return Confirm.ask(question, default=default, console=self.console)

    def ask(self, question: str, default: str | None = None) -> str:
        if default is None:
            return Prompt.ask(question, console=self.console)
        return Prompt.ask(question, default=default, console=self.console)


class AutoPrompter:
    """Answers every confirmation with a fixed value and every question with its default.

    `answers` may hold canned replies for `ask`, consumed in order.
    """

    def __init__(self, answer: bool = True, answers: list[str] | None = None):
        self.answer = answer
        self.answers = list(answers or [])
        self.questions: list[str] = []

    def confirm(self, question: str, default: bool = True) -> bool:
        self.questions.append(question)
        return self.answer

    def ask(self, question: str, default: str | None = None) -> str:
        self.questions.append(question)
        if self.answers:
            return self.answers.pop(0)
        return default or ""
