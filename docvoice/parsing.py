"""Shared parsing helpers for configuration and CLI value normalization."""

from __future__ import annotations

import math


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_positive_int(value: object, field_name: str) -> int:
    """Parse a strictly positive integer from an int or numeric text.

    Raises:
        ValueError: If the value is boolean, non-numeric, or not positive.
    """

    message = f"`{field_name}` must be a positive integer."
    if isinstance(value, bool):
        raise ValueError(message)
    if isinstance(value, int):
        parsed = value
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            raise ValueError(message)
        try:
            parsed = int(normalized)
        except ValueError as exc:
            raise ValueError(message) from exc
    if parsed <= 0:
        raise ValueError(message)
    return parsed


def parse_positive_float(value: object, field_name: str) -> float:
    """Parse a strictly positive finite number from a number or numeric text.

    Raises:
        ValueError: If the value is boolean, non-numeric, non-finite, or not positive.
    """

    message = f"`{field_name}` must be a positive number."
    if isinstance(value, bool):
        raise ValueError(message)
    if isinstance(value, int | float):
        parsed = float(value)
    else:
        normalized = normalize_optional_string(value)
        if normalized is None:
            raise ValueError(message)
        try:
            parsed = float(normalized)
        except ValueError as exc:
            raise ValueError(message) from exc
    if not math.isfinite(parsed) or parsed <= 0.0:
        raise ValueError(message)
    return parsed
