"""
Bracket assignment helpers.

A scheme is an ordered list of Bracket with strictly increasing `max`.
A value belongs to the first bracket whose max is >= the value, so a value
sitting exactly on a boundary resolves to the lower bracket.
"""

import math
from typing import List, Optional, Sequence

from kalshi_brackets.core import Bracket


def to_float(value) -> Optional[float]:
    """Coerce a loosely typed number, returning None if it is not finite."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def find_bracket(scheme: Sequence[Bracket], value) -> int:
    """
    Locate the bracket containing a value.

    Args:
        scheme: Ordered brackets
        value: Value to place

    Returns:
        Index of the first bracket with value <= max, or -1 if the scheme is
        empty, the value is not a finite number, or it is above every
        (finite) threshold.
    """
    number = to_float(value)
    if not scheme or number is None:
        return -1
    for index, bracket in enumerate(scheme):
        if number <= bracket.max:
            return index
    return -1


def clamp(index: int, n: int) -> int:
    """Constrain an index into [0, n-1]."""
    return max(0, min(n - 1, index))


def lower_bound(scheme: Sequence[Bracket], index: int) -> float:
    """Exclusive lower bound of a bracket (-inf for the first one)."""
    return scheme[index - 1].max if index > 0 else -math.inf


def bracket_contains_actual(scheme: Sequence[Bracket], index: int, value) -> bool:
    """
    Check whether a realized value settles in a bracket.

    Args:
        scheme: Ordered brackets
        index: Bracket index to test
        value: Realized outcome; anything non-finite never matches

    Returns:
        True if lower_bound(index) < value <= scheme[index].max
    """
    if not scheme or index < 0 or index >= len(scheme):
        return False
    number = to_float(value)
    if number is None:
        return False
    return lower_bound(scheme, index) < number <= scheme[index].max


def argmax_first(values: Sequence) -> int:
    """
    Index of the largest value, first occurrence winning ties.

    Non-numeric or non-finite entries count as 0. Returns -1 when empty.
    """
    best_index = -1
    best_value = -math.inf
    for index, raw in enumerate(values):
        value = to_float(raw)
        if value is None:
            value = 0.0
        if value > best_value:
            best_value = value
            best_index = index
    return best_index


def schemes_compatible(a: Sequence[Bracket], b: Sequence[Bracket]) -> bool:
    """Same length and the same labels in the same order."""
    if a is None or b is None or len(a) != len(b):
        return False
    return all(x.label == y.label for x, y in zip(a, b))


# =============================================================================
# TEXT FORMAT
# =============================================================================

def parse_scheme_spec(text: str) -> List[Bracket]:
    """
    Parse a scheme written as "label:max,label:max,...".

    Use "inf" for an open-ended top bracket, e.g. "≤91:91,92–93:93,94+:inf".

    Raises:
        ValueError: If the text is empty, malformed, or thresholds are not
            strictly increasing.
    """
    scheme: List[Bracket] = []
    for part in (text or "").split(","):
        part = part.strip()
        if not part:
            continue
        label, sep, raw_max = part.rpartition(":")
        if not sep or not label.strip():
            raise ValueError(f"Bracket '{part}' must look like label:max")
        try:
            threshold = float(raw_max)
        except ValueError:
            raise ValueError(f"Bracket '{part}' has a non-numeric max") from None
        if math.isnan(threshold):
            raise ValueError(f"Bracket '{part}' has a non-numeric max")
        if scheme and threshold <= scheme[-1].max:
            raise ValueError(
                f"Bracket maxima must increase: {threshold:g} after {scheme[-1].max:g}"
            )
        scheme.append(Bracket(label=label.strip(), max=threshold))

    if not scheme:
        raise ValueError("A scheme needs at least one bracket")
    return scheme


def format_scheme(scheme: Sequence[Bracket]) -> str:
    """Inverse of parse_scheme_spec."""
    return ",".join(f"{b.label}:{'inf' if math.isinf(b.max) else f'{b.max:g}'}" for b in scheme)
