"""Token amounts and dissolve-delay shorthands."""

from __future__ import annotations

from sns_quill.errors import InputValidationError

E8S_PER_TOKEN = 100_000_000
DECIMALS = 8

ONE_DAY_SECONDS = 24 * 60 * 60
ONE_WEEK_SECONDS = 7 * ONE_DAY_SECONDS
ONE_YEAR_SECONDS = (4 * 365 + 1) * ONE_DAY_SECONDS // 4
ONE_MONTH_SECONDS = ONE_YEAR_SECONDS // 12

U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1

_ORDINALS = (
    "ONE",
    "TWO",
    "THREE",
    "FOUR",
    "FIVE",
    "SIX",
    "SEVEN",
    "EIGHT",
    "NINE",
    "TEN",
    "ELEVEN",
)


def _build_delay_table() -> dict[str, int]:
    table = {"ONE_DAY": ONE_DAY_SECONDS}
    for count, name in enumerate(_ORDINALS[:4], start=1):
        table[f"{name}_WEEK" if count == 1 else f"{name}_WEEKS"] = count * ONE_WEEK_SECONDS
    for count, name in enumerate(_ORDINALS[:11], start=1):
        table[f"{name}_MONTH" if count == 1 else f"{name}_MONTHS"] = count * ONE_MONTH_SECONDS
    for count, name in enumerate(_ORDINALS[:8], start=1):
        table[f"{name}_YEAR" if count == 1 else f"{name}_YEARS"] = count * ONE_YEAR_SECONDS
    return table


DELAY_SHORTHANDS: dict[str, int] = _build_delay_table()


def parse_tokens(amount: str) -> int:
    """Parse a decimal token amount into e8s.

    The fraction is right-padded to eight digits and anything beyond eight
    digits is truncated.
    """
    value = amount.strip()
    parts = value.split(".")
    if len(parts) > 2:
        raise InputValidationError(f"cannot parse amount {amount!r}: more than one '.'")
    whole = parts[0]
    fraction = parts[1] if len(parts) == 2 else ""
    if not whole or not whole.isdigit() or not whole.isascii():
        raise InputValidationError(f"cannot parse amount {amount!r}: invalid whole part")
    if fraction and (not fraction.isdigit() or not fraction.isascii()):
        raise InputValidationError(f"cannot parse amount {amount!r}: invalid fraction")
    fraction = fraction.ljust(DECIMALS, "0")[:DECIMALS]
    e8s = int(whole) * E8S_PER_TOKEN + int(fraction)
    if e8s > U64_MAX:
        raise InputValidationError(f"amount {amount!r} is too large")
    return e8s


def parse_delay_seconds(value: str) -> int:
    """Resolve a named shorthand such as ``ONE_YEAR`` or an unsigned 32-bit integer."""
    text = value.strip()
    if text in DELAY_SHORTHANDS:
        return DELAY_SHORTHANDS[text]
    if not text.isdigit() or not text.isascii():
        raise InputValidationError(
            f"cannot parse dissolve delay {value!r}: expected seconds or one of "
            f"{', '.join(DELAY_SHORTHANDS)}"
        )
    seconds = int(text)
    if seconds > U32_MAX:
        raise InputValidationError(f"dissolve delay {value!r} exceeds the 32-bit range")
    return seconds
