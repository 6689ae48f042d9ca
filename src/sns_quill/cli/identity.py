"""Key material sources for the sns-quill CLI."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO

from sns_quill.cli.operator import Operator
from sns_quill.crypto.identity import Identity, load_identity
from sns_quill.crypto.mnemonic import mnemonic_to_pem
from sns_quill.errors import ConfigError, InputValidationError

STDIN_PATH = "-"


def read_source(path: str, *, stdin: TextIO | None = None, what: str = "file") -> str:
    """Read a file, or standard input when ``path`` is ``-``."""
    if path == STDIN_PATH:
        return (stdin or sys.stdin).read()
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {what} {path}: {exc}") from exc


def read_pem(
    *,
    pem_file: str | None,
    seed_file: str | None,
    stdin: TextIO | None = None,
) -> str | None:
    if pem_file and seed_file:
        raise InputValidationError("--pem-file and --seed-file are mutually exclusive")
    if pem_file:
        return read_source(pem_file, stdin=stdin, what="PEM file")
    if seed_file:
        phrase = read_source(seed_file, stdin=stdin, what="seed file")
        return mnemonic_to_pem(phrase)
    return None


def require_pem(pem: str | None) -> str:
    if pem is None:
        raise ConfigError(
            "cannot use anonymous principal, did you forget --pem-file <pem-file> ?"
        )
    return pem


def load_cli_identity(
    *,
    pem_file: str | None,
    seed_file: str | None,
    operator: Operator,
    stdin: TextIO | None = None,
    required: bool = True,
) -> Identity:
    pem = read_pem(pem_file=pem_file, seed_file=seed_file, stdin=stdin)
    if required:
        pem = require_pem(pem)
    return load_identity(
        pem or "",
        read_password=lambda: operator.read_secret("PEM decryption password: "),
    )
