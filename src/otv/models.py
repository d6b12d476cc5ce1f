"""Data models for candidate evaluation.

Candidates are immutable snapshots for the duration of one pass. Scores,
statistics and ranked projections are produced fresh every pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# =============================================================================
# CANDIDATE
# =============================================================================


@dataclass(frozen=True)
class Candidate:
    """A validator competing for nomination.

    All timestamps and durations are in milliseconds.
    """

    stash: str
    name: str = ""

    # Connectivity
    discovered_at: float = 0
    online_since: float = 0
    offline_since: float = 0
    offline_accumulated: float = 0
    version: str | None = None

    # Performance
    bonded: float = 0
    inclusion: float = 0
    span_inclusion: float = 0
    faults: int = 0
    rank: int = 0
    nominated_at: float = 0
    unclaimed_eras: tuple[int, ...] | None = None

    # Secondary network stash (Kusama for Polkadot candidates)
    kusama_stash: str | None = None
    skip_self_stake: bool = False

    identity: dict[str, Any] | None = None

    @property
    def unclaimed_count(self) -> int:
        return len(self.unclaimed_eras) if self.unclaimed_eras else 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Candidate:
        """Create from a candidate-store record (camelCase keys).

        Missing or null numeric fields default to 0.
        """
        eras = data.get("unclaimedEras")
        version = data.get("version")
        return cls(
            stash=data["stash"],
            name=data.get("name") or "",
            discovered_at=data.get("discoveredAt") or 0,
            online_since=data.get("onlineSince") or 0,
            offline_since=data.get("offlineSince") or 0,
            offline_accumulated=data.get("offlineAccumulated") or 0,
            version=str(version) if version is not None else None,
            bonded=data.get("bonded") or 0,
            inclusion=data.get("inclusion") or 0,
            span_inclusion=data.get("spanInclusion") or 0,
            faults=data.get("faults") or 0,
            rank=data.get("rank") or 0,
            nominated_at=data.get("nominatedAt") or 0,
            unclaimed_eras=tuple(eras) if eras is not None else None,
            kusama_stash=data.get("kusamaStash") or None,
            skip_self_stake=bool(data.get("skipSelfStake", False)),
            identity=data.get("identity"),
        )


# =============================================================================
# VERDICTS
# =============================================================================


@dataclass(frozen=True)
class Verdict:
    """Outcome of checking one candidate: valid, or invalid with a reason."""

    valid: bool
    reason: str = ""

    @classmethod
    def ok(cls) -> Verdict:
        return cls(valid=True)

    @classmethod
    def invalid(cls, reason: str) -> Verdict:
        return cls(valid=False, reason=reason)


@dataclass(frozen=True)
class InvalidCandidate:
    """A candidate rejected by the batch filter."""

    stash: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"stash": self.stash, "reason": self.reason}


@dataclass(frozen=True)
class BadCandidate:
    """A nominated candidate that failed a round-end check."""

    candidate: Candidate
    reason: str


@dataclass
class RoundPartition:
    """Nominated cohort split at a round boundary, keyed by stash."""

    good: dict[str, Candidate] = field(default_factory=dict)
    bad: dict[str, BadCandidate] = field(default_factory=dict)


# =============================================================================
# STATISTICS AND SCORES
# =============================================================================


@dataclass(frozen=True)
class Stats:
    """Distribution summary of one scoring dimension."""

    min: float = 0.0
    max: float = 0.0
    mean: float = 0.0
    median: float = 0.0
    p10: float = 0.0
    p25: float = 0.0
    p75: float = 0.0
    p90: float = 0.0
    std: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "median": self.median,
            "p10": self.p10,
            "p25": self.p25,
            "p75": self.p75,
            "p90": self.p90,
            "std": self.std,
        }


@dataclass(frozen=True)
class Score:
    """Weighted sub-scores of one candidate.

    ``aggregate`` is the sum of the nine sub-scores and ``total`` is
    ``aggregate * randomness``; ``total`` is the ranking key.
    """

    inclusion: float
    span_inclusion: float
    discovered: float
    nominated: float
    rank: float
    unclaimed: float
    bonded: float
    faults: float
    offline: float
    aggregate: float
    randomness: float
    total: float
    updated: int  # ms timestamp of the scoring pass

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "aggregate": self.aggregate,
            "inclusion": self.inclusion,
            "spanInclusion": self.span_inclusion,
            "discovered": self.discovered,
            "nominated": self.nominated,
            "rank": self.rank,
            "unclaimed": self.unclaimed,
            "bonded": self.bonded,
            "faults": self.faults,
            "offline": self.offline,
            "randomness": self.randomness,
            "updated": self.updated,
        }


@dataclass(frozen=True)
class RankedCandidate:
    """Reduced projection of a candidate plus its score."""

    stash: str
    name: str
    score: Score
    discovered_at: float
    nominated_at: float
    rank: int
    inclusion: float
    span_inclusion: float
    bonded: float
    unclaimed_eras: tuple[int, ...] | None = None
    identity: dict[str, Any] | None = None

    @classmethod
    def from_candidate(cls, candidate: Candidate, score: Score) -> RankedCandidate:
        return cls(
            stash=candidate.stash,
            name=candidate.name,
            score=score,
            discovered_at=candidate.discovered_at,
            nominated_at=candidate.nominated_at,
            rank=candidate.rank,
            inclusion=candidate.inclusion,
            span_inclusion=candidate.span_inclusion,
            bonded=candidate.bonded,
            unclaimed_eras=candidate.unclaimed_eras,
            identity=candidate.identity,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "aggregate": self.score.to_dict(),
            "discoveredAt": self.discovered_at,
            "rank": self.rank,
            "unclaimedEras": list(self.unclaimed_eras) if self.unclaimed_eras is not None else None,
            "inclusion": self.inclusion,
            "spanInclusion": self.span_inclusion,
            "name": self.name,
            "stash": self.stash,
            "identity": self.identity,
            "nominatedAt": self.nominated_at,
            "bonded": self.bonded,
        }
