"""Principal, account and neuron id derivation.

Formats:
- account identifier: crc32(h) || h, h = sha224(b"\\x0aaccount-id" || principal || subaccount)
- neuron staking subaccount: sha256(b"\\x0cneuron-stake" || controller || memo_be64)
- principal subaccount: len(principal) || principal, zero padded to 32 bytes
"""

from __future__ import annotations

import hashlib
import zlib

from ic.principal import Principal

from sns_quill.errors import InputValidationError

SUBACCOUNT_LEN = 32
NEURON_ID_LEN = 32
ANONYMOUS_PRINCIPAL_TEXT = "2vxsx-fae"

_ACCOUNT_DOMAIN = b"\x0aaccount-id"
_NEURON_STAKE_DOMAIN = b"\x0cneuron-stake"


def parse_principal(text: str) -> Principal:
    value = text.strip()
    if not value:
        raise InputValidationError("principal must not be empty")
    try:
        principal = Principal.from_str(value)
    except Exception as exc:
        raise InputValidationError(f"invalid principal: {value}") from exc
    if principal.to_str() != value:
        raise InputValidationError(f"invalid principal: {value}")
    return principal


def account_identifier(principal: Principal, subaccount: bytes | None = None) -> bytes:
    sub = subaccount if subaccount is not None else bytes(SUBACCOUNT_LEN)
    if len(sub) != SUBACCOUNT_LEN:
        raise InputValidationError("subaccount must be 32 bytes")
    digest = hashlib.sha224(_ACCOUNT_DOMAIN + principal.bytes + sub).digest()
    checksum = zlib.crc32(digest) & 0xFFFFFFFF
    return checksum.to_bytes(4, "big") + digest


def account_identifier_hex(principal: Principal, subaccount: bytes | None = None) -> str:
    return account_identifier(principal, subaccount).hex()


def neuron_staking_subaccount(controller: Principal, memo: int) -> bytes:
    if memo < 0 or memo >= 2**64:
        raise InputValidationError("memo must fit in an unsigned 64-bit integer")
    data = _NEURON_STAKE_DOMAIN + controller.bytes + memo.to_bytes(8, "big")
    return hashlib.sha256(data).digest()


def principal_subaccount(principal: Principal) -> bytes:
    raw = principal.bytes
    return (bytes([len(raw)]) + raw).ljust(SUBACCOUNT_LEN, b"\x00")


def parse_subaccount(hex_value: str) -> bytes:
    """Parse a hex subaccount; short values are left-padded with zeros."""
    try:
        raw = bytes.fromhex(hex_value.strip())
    except ValueError as exc:
        raise InputValidationError(f"subaccount is not valid hex: {hex_value}") from exc
    if len(raw) > SUBACCOUNT_LEN:
        raise InputValidationError("subaccount must be at most 32 bytes")
    return raw.rjust(SUBACCOUNT_LEN, b"\x00")


def parse_neuron_id(hex_value: str) -> bytes:
    try:
        raw = bytes.fromhex(hex_value.strip())
    except ValueError as exc:
        raise InputValidationError(f"neuron id is not valid hex: {hex_value}") from exc
    if len(raw) != NEURON_ID_LEN:
        raise InputValidationError(
            f"neuron id must be {NEURON_ID_LEN} bytes, got {len(raw)}"
        )
    return raw
