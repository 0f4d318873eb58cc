"""Interactive prompt helpers built on InquirerPy."""

from __future__ import annotations

import sys
from typing import Any, Callable, Sequence

from InquirerPy import inquirer
from InquirerPy.base.control import Choice
from InquirerPy.separator import Separator
from prompt_toolkit.validation import ValidationError as PromptValidationError
from prompt_toolkit.validation import Validator

from .exceptions import UserAbort, ValidationError


def _ensure_tty() -> None:
    if not sys.stdin.isatty():
        raise ValidationError(
            "Interactive mode requires a TTY. Provide the missing arguments to run non-interactively."
        )


class _MessageValidator(Validator):
    def __init__(self, check: Callable[[str], str | None]):
        self._check = check

    def validate(self, document) -> None:
        error = self._check(document.text)
        if error:
            raise PromptValidationError(message=error, cursor_position=len(document.text))


def _execute(prompt: Any) -> Any:
    try:
        return prompt.execute()
    except KeyboardInterrupt as exc:
        raise UserAbort("User cancelled the prompt.") from exc


def select(message: str, choices: Sequence[Choice | Separator | str], default: Any = None) -> Any:
    _ensure_tty()
    if not choices:
        raise UserAbort("No options available for selection.")
    return _execute(inquirer.select(message=message, choices=list(choices), default=default, qmark="›"))


def fuzzy_select(message: str, choices: Sequence[Choice | str]) -> Any:
    _ensure_tty()
    if not choices:
        raise UserAbort("No options available for selection.")
    return _execute(inquirer.fuzzy(message=message, choices=list(choices)))


def text_input(
    message: str,
    default: str | None = None,
    validate: Callable[[str], str | None] | None = None,
) -> str:
    """Ask for a line of text.

    ``validate`` returns an error message for bad input, or ``None``.
    """

    _ensure_tty()
    validator = _MessageValidator(validate) if validate is not None else None
    answer = _execute(inquirer.text(message=message, default=default or "", validate=validator))
    return str(answer).strip()


def confirm(message: str, default: bool = True) -> bool:
    _ensure_tty()
    return bool(_execute(inquirer.confirm(message=message, default=default)))


__all__ = [
    "Choice",
    "Separator",
    "select",
    "fuzzy_select",
    "text_input",
    "confirm",
]
