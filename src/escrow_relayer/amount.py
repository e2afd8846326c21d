"""
Fixed-point amount conversion.

Token amounts travel as integers scaled by 10**decimals. These helpers move
between that representation and decimal strings using integer arithmetic
only, so no value ever passes through a float.
"""

import re

TOKEN_DECIMALS = 6
NATIVE_DECIMALS = 18

PLACEHOLDER = "—"

_DECIMAL_PATTERN = re.compile(r"^(\d*)(?:\.(\d*))?$", re.ASCII)


def parse_amount(value: object, decimals: int = TOKEN_DECIMALS) -> int:
    """
    Convert a decimal string to its scaled integer form.

    Extra fractional digits are truncated, not rounded. Missing or invalid
    input yields 0.

    Example: parse_amount("1.23", 6) == 1_230_000
    """
    if not isinstance(value, str):
        return 0

    trimmed = value.strip()
    if trimmed in ("", "."):
        return 0

    match = _DECIMAL_PATTERN.match(trimmed)
    if match is None:
        return 0

    int_part = match.group(1) or "0"
    frac_part = (match.group(2) or "")[:decimals].ljust(decimals, "0")
    return int(int_part + frac_part)


def format_amount(raw: object, decimals: int = TOKEN_DECIMALS) -> str:
    """
    Convert a scaled integer back to a decimal string.

    Trailing fractional zeros are dropped; a whole value has no decimal
    point. None or a value that is not an integer renders as a placeholder.

    Example: format_amount(1_230_000, 6) == "1.23"
    """
    if raw is None or isinstance(raw, (bool, float)):
        return PLACEHOLDER

    try:
        value = int(raw)
    except (TypeError, ValueError):
        return PLACEHOLDER

    sign = "-" if value < 0 else ""
    int_part, frac_part = divmod(abs(value), 10**decimals)

    frac_str = str(frac_part).rjust(decimals, "0").rstrip("0") if decimals else ""
    if not frac_str:
        return f"{sign}{int_part}"
    return f"{sign}{int_part}.{frac_str}"


def is_decimal_string(value: str) -> bool:
    """True when `value` is digits with at most one decimal point."""
    trimmed = value.strip()
    return trimmed not in ("", ".") and _DECIMAL_PATTERN.match(trimmed) is not None
