"""Ledger typed-value decoding: `1500000u64`, `12field`, `"true"` -> host numbers/bools."""

from __future__ import annotations

import re

# Bit-width suffixes (u8..u128, i8..i128) and element tags attached to literals.
_TYPE_TAG_RE = re.compile(r"[ui]\d+|field|group|scalar")
_LEADING_INT_RE = re.compile(r"^[+-]?\d+")


def clean_value(raw: str | None) -> str | None:
    """Strip quotes and surrounding whitespace. None stays None."""
    if raw is None:
        return None
    return raw.replace('"', "").strip()


def read_int(raw: str | None) -> int | None:
    """Parse a ledger integer literal; None when absent or not an integer.

    Leading digits are taken after type tags are removed, so `"42u8"` -> 42
    and `"7field"` -> 7.
    """
    value = clean_value(raw)
    if not value:
        return None
    m = _LEADING_INT_RE.match(_TYPE_TAG_RE.sub("", value))
    if not m:
        return None
    return int(m.group(0))


def parse_int(raw: str | None) -> int:
    """Like read_int but absent/unparseable collapses to 0."""
    value = read_int(raw)
    return value if value is not None else 0


def parse_bool(raw: str | None) -> bool:
    return clean_value(raw) == "true"


def as_field_key(key: str) -> str:
    """Mapping keys are field elements; append the tag when the caller omitted it."""
    key = key.strip()
    return key if "field" in key else f"{key}field"
