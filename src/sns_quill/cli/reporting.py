"""Error categories, exit codes and redacted error printing."""

from __future__ import annotations

import re

from mnemonic import Mnemonic

from sns_quill.errors import (
    ConfigError,
    DecodingError,
    EncodingError,
    IdentityError,
    InputValidationError,
    ReplicaRejectError,
    SigningError,
    SnsQuillError,
    StatusTimeoutError,
    TransportError,
    UnsupportedResponseError,
)

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_NETWORK_ERROR = 2
EXIT_TIMEOUT = 3
EXIT_DECODING_ERROR = 4

_SENSITIVE_FIELDS = (
    "password",
    "passphrase",
    "private_key",
    "secret",
    "seed",
)

# Most specific first.
_CATEGORIES: tuple[tuple[type[SnsQuillError], str, int], ...] = (
    (InputValidationError, "input error", EXIT_VALIDATION_ERROR),
    (ConfigError, "config error", EXIT_VALIDATION_ERROR),
    (IdentityError, "identity error", EXIT_VALIDATION_ERROR),
    (SigningError, "signing error", EXIT_VALIDATION_ERROR),
    (EncodingError, "encoding error", EXIT_VALIDATION_ERROR),
    (UnsupportedResponseError, "unsupported response error", EXIT_DECODING_ERROR),
    (DecodingError, "decoding error", EXIT_DECODING_ERROR),
    (StatusTimeoutError, "timeout error", EXIT_TIMEOUT),
    (ReplicaRejectError, "replica error", EXIT_NETWORK_ERROR),
    (TransportError, "transport error", EXIT_NETWORK_ERROR),
)

_PEM_BLOCK = re.compile(
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?(?:-----END [A-Z ]*PRIVATE KEY-----|$)",
    re.DOTALL,
)
_WORD_RUN = re.compile(r"\b[a-z]+(?:\s+[a-z]+){11,}\b")
_BIP39_WORDS = frozenset(Mnemonic("english").wordlist)


def classify(exc: SnsQuillError) -> tuple[str, int]:
    for error_type, prefix, code in _CATEGORIES:
        if isinstance(exc, error_type):
            return prefix, code
    return "error", EXIT_VALIDATION_ERROR


def _redact_seed_phrase(match: re.Match[str]) -> str:
    words = match.group(0).split()
    if all(word in _BIP39_WORDS for word in words):
        return "[REDACTED]"
    return match.group(0)


def sanitize_error_text(value: str) -> str:
    redacted = _PEM_BLOCK.sub("[REDACTED]", value)
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)({field}\s*[=:]\s*)([^,\s]+)",
            r"\1[REDACTED]",
            redacted,
        )
    return _WORD_RUN.sub(_redact_seed_phrase, redacted)


def print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {sanitize_error_text(message)}", file=stderr)
    return code


def report(stderr, exc: SnsQuillError) -> int:
    prefix, code = classify(exc)
    return print_error(stderr, prefix, str(exc), code=code)
