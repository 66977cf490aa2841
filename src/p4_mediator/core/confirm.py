"""Yes/no confirmation boundary used before edits and deletes."""

from abc import ABC, abstractmethod

import click


class ConfirmationProvider(ABC):
    """Asks the user to approve an operation."""

    @abstractmethod
    def confirm(self, title: str, message: str) -> bool:
        """Return True for "yes", False for "no"."""
        pass


class ClickConfirmationProvider(ConfirmationProvider):
    """Prompts on the terminal; anything but an explicit yes declines."""

    def confirm(self, title: str, message: str) -> bool:
        click.echo(click.style(title, bold=True), err=True)
        return click.confirm(message, default=False, err=True)


class StaticConfirmationProvider(ConfirmationProvider):
    """Always gives the same answer (scripted runs, `--yes`)."""

    def __init__(self, answer: bool):
        self.answer = answer

    def confirm(self, title: str, message: str) -> bool:
        return self.answer
