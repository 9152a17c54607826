"""Default bracket scheme and source rows for a fresh station."""

import math
from typing import List

from kalshi_brackets.core.models import Bracket, SourceRow


DEFAULT_SCHEME: List[Bracket] = [
    Bracket(label="≤91", max=91),
    Bracket(label="92–93", max=93),
    Bracket(label="94–95", max=95),
    Bracket(label="96–97", max=97),
    Bracket(label="98–99", max=99),
    Bracket(label="100+", max=math.inf),
]

# (source, forecast, weight)
DEFAULT_ROWS = [
    ("CBS Austin", 97, 0.25),
    ("KXAN", 96, 0.2),
    ("FOX", 96, 0.2),
    ("KVUE", 95, 0.15),
    ("WU", 95, 0.0667),
    ("NWS", 96, 0.0667),
    ("AW", 96, 0.0667),
]


def default_rows() -> List[SourceRow]:
    """Return a fresh copy of the default rows, numbered from 1."""
    return [
        SourceRow(id=index + 1, source=source, forecast=float(forecast), weight=weight)
        for index, (source, forecast, weight) in enumerate(DEFAULT_ROWS)
    ]


def default_scheme() -> List[Bracket]:
    """Return a copy of the default scheme."""
    return list(DEFAULT_SCHEME)
