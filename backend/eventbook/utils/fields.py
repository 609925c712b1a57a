"""Lenient readers for loosely-typed records.

Service lines, events and payments reach the pricing code as ORM rows,
pydantic models or raw mappings decoded from client JSON. These helpers read
a field from any of them and coerce money and flags without raising.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}

# Largest decimal exponent accepted as an amount or quantity
_MAX_MAGNITUDE = 15


def read_field(source: Any, key: str) -> Any:
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def _in_range(value: Decimal) -> bool:
    return value.is_finite() and value.adjusted() <= _MAX_MAGNITUDE


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Coerce ``value`` to Decimal; None, blanks and junk become ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if _in_range(value) else default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default
    return result if _in_range(result) else default


def to_flag(value: Any) -> bool:
    """Truthiness as stored by the legacy forms ("true"/"false" strings included)."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def is_explicit_false(value: Any) -> bool:
    if value is False:
        return True
    return isinstance(value, str) and value.strip().lower() in _FALSE_STRINGS - {""}


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
