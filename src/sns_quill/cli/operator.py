"""Interactive prompts, kept behind a small interface so tests can script them."""

from __future__ import annotations

import getpass
import sys
from dataclasses import dataclass, field
from typing import Protocol, TextIO

from sns_quill.errors import InputValidationError

_YES_ANSWERS = {"y", "yes"}


class Operator(Protocol):
    def confirm(self, prompt: str) -> bool: ...

    def read_secret(self, prompt: str) -> bytes: ...

    def pause(self) -> None: ...


@dataclass
class TerminalOperator:
    stdin: TextIO = field(default_factory=lambda: sys.stdin)
    stdout: TextIO = field(default_factory=lambda: sys.stdout)

    def confirm(self, prompt: str) -> bool:
        print(prompt, file=self.stdout, flush=True)
        answer = self.stdin.readline()
        return answer.strip().lower() in _YES_ANSWERS

    def read_secret(self, prompt: str) -> bytes:
        return getpass.getpass(prompt).encode("utf-8")

    def pause(self) -> None:
        self.stdin.readline()


def read_new_secret(operator: Operator, prompt: str, confirm_prompt: str) -> bytes:
    secret = operator.read_secret(prompt)
    if operator.read_secret(confirm_prompt) != secret:
        raise InputValidationError("passwords did not match")
    if not secret:
        raise InputValidationError("password must not be empty")
    return secret
