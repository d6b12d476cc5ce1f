"""Weighted scoring of valid candidates.

Each dimension is min-max scaled against the valid population and then
weighted. For most dimensions a lower raw value is better and the score
is ``(1 - scaled) * weight``; for rank and bonded higher is better and
the score is ``scaled * weight``.

Dimensions:
- inclusion, span_inclusion: lower is better
- discovered: earlier discovery is better
- nominated: not nominated in a while is better
- unclaimed: fewer unclaimed eras is better
- offline, faults: lower is better
- rank, bonded: higher is better
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence

from .config import ScoreWeights
from .constants import JITTER_SPREAD
from .models import Candidate, RankedCandidate, Score, Stats
from .stats import get_stats, scaled

# dimension -> (raw value extractor, higher_is_better)
DIMENSIONS: dict[str, tuple[Callable[[Candidate], float], bool]] = {
    "inclusion": (lambda c: c.inclusion or 0, False),
    "span_inclusion": (lambda c: c.span_inclusion or 0, False),
    "discovered": (lambda c: c.discovered_at or 0, False),
    "nominated": (lambda c: c.nominated_at or 0, False),
    "rank": (lambda c: c.rank or 0, True),
    "unclaimed": (lambda c: c.unclaimed_count, False),
    "bonded": (lambda c: c.bonded or 0, True),
    "faults": (lambda c: c.faults or 0, False),
    "offline": (lambda c: c.offline_accumulated or 0, False),
}


def collect_populations(candidates: Sequence[Candidate]) -> dict[str, list[float]]:
    """Extract one numeric population per dimension."""
    return {name: [extract(c) for c in candidates] for name, (extract, _) in DIMENSIONS.items()}


def population_stats(populations: dict[str, list[float]]) -> dict[str, Stats]:
    return {name: get_stats(values) for name, values in populations.items()}


def score_candidate(
    candidate: Candidate,
    populations: dict[str, list[float]],
    weights: ScoreWeights,
    randomness: float,
    updated: int,
) -> Score:
    """Compute the weighted score of one candidate."""
    parts: dict[str, float] = {}
    for name, (extract, higher_is_better) in DIMENSIONS.items():
        position = scaled(extract(candidate), populations[name])
        weight = getattr(weights, name)
        parts[name] = position * weight if higher_is_better else (1 - position) * weight

    aggregate = sum(parts.values())
    return Score(
        **parts,
        aggregate=aggregate,
        randomness=randomness,
        total=aggregate * randomness,
        updated=updated,
    )


def draw_jitter(rng: random.Random) -> float:
    """Uniform multiplier in [1.0, 1.05)."""
    return 1 + rng.random() * JITTER_SPREAD


def rank(scored: Sequence[RankedCandidate]) -> tuple[RankedCandidate, ...]:
    """Sort descending by total. Ties keep their input order."""
    return tuple(sorted(scored, key=lambda r: r.score.total, reverse=True))
