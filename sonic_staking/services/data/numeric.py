"""Decoding helpers for the numeric encodings used by the staking API.

The upstream encodes integers as hex strings (``"0x1bc16d674ec80000"``) and
downtime as a fixed-point integer where 10^12 raw units equal 100%.

Decoding is deliberately lenient: the data source is trusted but sparse, so
empty, missing or malformed values decode to zero instead of raising. Callers
that must tell "absent" apart from "zero" have to check before decoding.
"""

import math
import re
from typing import Any

import structlog

logger = structlog.get_logger()

# 1 token = 1e18 wei
WEI_PER_TOKEN = 10 ** 18

# Downtime fixed point: 1e12 raw units represent 100%
DOWNTIME_SCALE = 10 ** 12

_HEX_DIGITS = re.compile(r"^[0-9a-fA-F]+$")
_DEC_DIGITS = re.compile(r"^[0-9]+$")

_COMPACT_UNITS = ["", "K", "M", "B", "T"]


def _strip_hex_prefix(text: str) -> str:
    if text[:2].lower() == "0x":
        return text[2:]
    return text


def hex_to_int(text: Any) -> int:
    """Decode a hex string, with or without ``0x``, into an int.

    Returns 0 for None, non-strings, empty strings and anything that is not
    plain hex digits.
    """
    if not text or not isinstance(text, str):
        return 0

    digits = _strip_hex_prefix(text.strip())
    if not _HEX_DIGITS.match(digits):
        logger.debug("Malformed hex value, decoding as zero", value=text[:80])
        return 0

    return int(digits, 16)


def parse_big_int(value: Any) -> int:
    """Decode a stake amount that may be hex (``0x``-prefixed) or decimal.

    Stake fields arrive either way depending on the upstream resolver.
    Ints pass through; anything unparseable or negative is 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if value >= 0 else 0
    if not value or not isinstance(value, str):
        return 0

    text = value.strip()
    if text[:2].lower() == "0x":
        return hex_to_int(text)
    if _DEC_DIGITS.match(text):
        return int(text)

    logger.debug("Malformed integer value, decoding as zero", value=text[:80])
    return 0


def format_downtime(downtime_hex: Any, is_offline: bool, is_active: bool) -> str:
    """Format a raw downtime value as a two-decimal percentage string.

    Offline validators that are no longer active are always at 100%. An
    offline validator still flagged active is floored at 100%. The result is
    clamped to [0, 100].
    """
    if is_offline and not is_active:
        return "100.00%"

    if not downtime_hex or not isinstance(downtime_hex, str):
        return "0.00%"

    digits = _strip_hex_prefix(downtime_hex.strip())
    if not _HEX_DIGITS.match(digits):
        return "0.00%"

    raw = int(digits, 16)

    # Truncating division on the scaled numerator, before any float conversion
    scaled = raw * 100 // DOWNTIME_SCALE
    percentage = float(scaled) if scaled.bit_length() <= 1023 else math.inf

    if is_offline and is_active:
        percentage = max(percentage, 100.0)

    if not math.isfinite(percentage):
        return "0.00%"

    percentage = min(100.0, max(0.0, percentage))
    return f"{percentage:.2f}%"


def wei_to_token(units: int) -> float:
    """Convert wei to display tokens. Display only, precision loss is fine."""
    return units / WEI_PER_TOKEN


def format_compact(units: int) -> str:
    """Thousands-grouped integer with a K/M/B/T suffix, e.g. 1234567 -> '1,234K'."""
    value = units
    unit_index = 0
    while value >= 1000 and unit_index < len(_COMPACT_UNITS) - 1:
        value //= 1000
        unit_index += 1
    return f"{value:,}{_COMPACT_UNITS[unit_index]}"


def format_duration(seconds: int) -> str:
    """Render a duration as '{minutes}m {seconds}s'."""
    seconds = max(0, seconds)
    return f"{seconds // 60}m {seconds % 60}s"
