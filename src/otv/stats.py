"""Distribution statistics and min-max normalisation.

Degenerate populations never raise: an empty population summarises to
all zeros, and ``scaled`` returns 0 whenever the population has no spread.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .models import Stats


def asc(values: Sequence[float]) -> list[float]:
    """Return the values sorted ascending."""
    return sorted(values)


def abs_min(values: Sequence[float]) -> float:
    return float(np.min(values)) if len(values) else 0.0


def abs_max(values: Sequence[float]) -> float:
    return float(np.max(values)) if len(values) else 0.0


def mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def median(values: Sequence[float]) -> float:
    """Middle value; the mean of the two middle values for even lengths."""
    return float(np.median(values)) if len(values) else 0.0


def quantile(values: Sequence[float], q: float) -> float:
    """Linearly interpolated order statistic, ``q`` in [0, 1]."""
    if not len(values):
        return 0.0
    return float(np.quantile(np.asarray(values, dtype=float), q, method="linear"))


def q10(values: Sequence[float]) -> float:
    return quantile(values, 0.10)


def q25(values: Sequence[float]) -> float:
    return quantile(values, 0.25)


def q75(values: Sequence[float]) -> float:
    return quantile(values, 0.75)


def q90(values: Sequence[float]) -> float:
    return quantile(values, 0.90)


def std(values: Sequence[float]) -> float:
    """Population standard deviation."""
    return float(np.std(values)) if len(values) else 0.0


def get_stats(values: Sequence[float]) -> Stats:
    """Summarise a numeric population."""
    if not len(values):
        return Stats()
    return Stats(
        min=abs_min(values),
        max=abs_max(values),
        mean=mean(values),
        median=median(values),
        p10=q10(values),
        p25=q25(values),
        p75=q75(values),
        p90=q90(values),
        std=std(values),
    )


def scaled(value: float, population: Sequence[float]) -> float:
    """Min-max normalise ``value`` against ``population``.

    Returns 0 when ``max == min``, including empty and singleton populations.
    """
    if not len(population):
        return 0.0
    low = abs_min(population)
    high = abs_max(population)
    if high == low:
        return 0.0
    return (value - low) / (high - low)
