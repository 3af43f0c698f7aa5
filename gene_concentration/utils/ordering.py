"""Deterministic ordering of cluster identifiers."""

import re
from typing import Iterable, List, Tuple, Union

_DIGITS = re.compile(r"(\d+)")


def natural_key(value) -> Tuple[Union[int, str], ...]:
    """Sort key that orders embedded integers numerically ("2" < "10")."""
    parts = _DIGITS.split(str(value))
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part)
        for part in parts
        if part != ""
    )


def order_clusters(clusters: Iterable) -> List[str]:
    """Return unique cluster ids as strings in natural sort order."""
    return sorted({str(c) for c in clusters}, key=natural_key)
