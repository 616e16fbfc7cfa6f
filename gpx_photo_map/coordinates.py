"""Angular conversions between degrees/minutes/seconds and decimal degrees."""

from __future__ import annotations

from typing import Sequence

# Hemispheres whose coordinates are negative in signed decimal degrees.
NEGATIVE_REFS = frozenset({"S", "W"})


def to_decimal_degrees(dms: Sequence[float], ref: str) -> float:
    """Convert a ``(degrees, minutes, seconds)`` triple to signed decimal degrees.

    No range validation is applied; callers decide whether the result is
    plausible.

    Args:
        dms: Degrees, minutes and seconds as numbers.
        ref: Hemisphere reference, one of ``N``, ``S``, ``E`` or ``W``.

    Returns:
        ``degrees + minutes / 60 + seconds / 3600``, negated for ``S``/``W``.
    """

    degrees, minutes, seconds = dms
    dd = float(degrees) + float(minutes) / 60 + float(seconds) / 3600
    if ref in NEGATIVE_REFS:
        dd = -dd
    return dd


__all__ = ["NEGATIVE_REFS", "to_decimal_degrees"]
