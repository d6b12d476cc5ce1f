"""Storage contract for releases, score metadata and scores.

Example usage:
    from otv.storage import MemoryStorage, Release

    storage = MemoryStorage()
    storage.latest_release = Release(name="v0.9.39")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .config import ScoreWeights
from .models import Score, Stats


@dataclass(frozen=True)
class Release:
    """A published client release."""

    name: str
    published_at: int = 0


@dataclass(frozen=True)
class ScoreMetadata:
    """Per-dimension statistics and weights of one scoring pass."""

    stats: dict[str, Stats]
    weights: ScoreWeights
    updated: int

    def to_dict(self) -> dict:
        weights = self.weights.to_dict()
        return {
            "updated": self.updated,
            **{f"{name}Stats": stats.to_dict() for name, stats in self.stats.items()},
            **{f"{name}Weight": weight for name, weight in weights.items()},
        }


class Storage(Protocol):
    """Persistence used by the constraints engine. Writes are upserts."""

    async def get_latest_release(self) -> Release | None: ...

    async def set_validator_score_metadata(
        self,
        stats: dict[str, Stats],
        weights: ScoreWeights,
        updated: int,
    ) -> None: ...

    async def set_validator_score(self, stash: str, updated: int, score: Score) -> None: ...


@dataclass
class MemoryStorage:
    """In-memory Storage keeping every metadata record and the latest score per stash."""

    latest_release: Release | None = None
    metadata: list[ScoreMetadata] = field(default_factory=list)
    scores: dict[str, Score] = field(default_factory=dict)

    async def get_latest_release(self) -> Release | None:
        return self.latest_release

    async def set_validator_score_metadata(
        self,
        stats: dict[str, Stats],
        weights: ScoreWeights,
        updated: int,
    ) -> None:
        self.metadata.append(ScoreMetadata(stats=dict(stats), weights=weights, updated=updated))

    async def set_validator_score(self, stash: str, updated: int, score: Score) -> None:
        self.scores[stash] = score
