"""Candidate admission, ranking and round-end partitioning.

The ``OTV`` engine decides which candidates may be nominated, ranks the
valid ones by a weighted score, and at the end of a nomination round
splits the nominated cohort into the ones that stayed compliant and the
ones that did not.

Checks run in a fixed order and the first failure wins. Remote read
failures become invalidity reasons; the only error that escapes is a
failed era lookup in ``process_candidates``.

Example:
    >>> engine = OTV(chaindata, storage, ConstraintConfig(commission=150_000_000))
    >>> table = await engine.populate_identity_hash_table(candidates)
    >>> ranked = await engine.get_valid_candidates(candidates, table)
"""

from __future__ import annotations

import asyncio
import logging
import random
import re
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import TypeVar

from packaging.version import InvalidVersion, Version

from . import identity, scoring
from .chaindata import ChainData, GuardedChainData, format_address
from .config import ConstraintConfig
from .constants import MAX_IDENTITY_SHARE, MAX_OFFLINE_FRACTION, MIN_CROSS_NETWORK_RANK, WEEK
from .crossnet import CrossNetworkClient
from .exceptions import CrossNetworkError, EraUnavailableError, RemoteReadError, StorageError
from .models import (
    BadCandidate,
    Candidate,
    InvalidCandidate,
    RankedCandidate,
    RoundPartition,
    Verdict,
)
from .storage import Release, Storage

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

_VERSION_RE = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def coerce_version(raw: str | None) -> Version | None:
    """Pull the first ``major[.minor[.patch]]`` out of a version string.

    ``"0.9.39-abc123-x86_64-linux-gnu"`` and ``"v0.9.39"`` both coerce to
    0.9.39. Returns None when no number is present.
    """
    if not raw:
        return None
    match = _VERSION_RE.search(raw)
    if not match:
        return None
    major, minor, patch = (part or "0" for part in match.groups())
    try:
        return Version(f"{major}.{minor}.{patch}")
    except InvalidVersion:
        return None


def _now_ms() -> int:
    return int(time.time() * 1000)


class OTV:
    """Validity checker, scorer and round partitioner for one network."""

    def __init__(
        self,
        chaindata: ChainData,
        storage: Storage,
        config: ConstraintConfig | None = None,
        cross_network: CrossNetworkClient | None = None,
        rng: random.Random | None = None,
    ):
        self.config = config or ConstraintConfig()
        self.chaindata = GuardedChainData(
            chaindata,
            timeout=self.config.rpc_timeout,
            retries=self.config.rpc_retries,
            backoff=self.config.rpc_backoff,
        )
        self.storage = storage
        if cross_network is None and self.config.cross_network_endpoint:
            cross_network = CrossNetworkClient(self.config.cross_network_endpoint)
        self.cross_network = cross_network
        self._rng = rng or random.Random()

        # Replaced wholesale at the end of each pass
        self._valid_cache: tuple[RankedCandidate, ...] = ()
        self._invalid_cache: tuple[str, ...] = ()

    @property
    def valid_candidate_cache(self) -> tuple[RankedCandidate, ...]:
        """Ranking produced by the last successful scoring pass."""
        return self._valid_cache

    @property
    def invalid_candidate_cache(self) -> tuple[str, ...]:
        """Invalidity reasons from the last batch filter run."""
        return self._invalid_cache

    async def populate_identity_hash_table(self, candidates: Iterable[Candidate | None]) -> dict[str, int]:
        return await identity.populate_identity_hash_table(self.chaindata, candidates)

    # -------------------------------------------------------------------------
    # ENTRY POINTS
    # -------------------------------------------------------------------------

    async def score_candidates(self, candidates: Sequence[Candidate | None]) -> tuple[RankedCandidate, ...]:
        """Filter and score a candidate pool.

        Builds the identity index, refreshes the invalid-reason cache and
        returns the ranking.
        """
        table = await self.populate_identity_hash_table(candidates)
        await self.get_invalid_candidates(candidates, table)
        return await self.get_valid_candidates(candidates, table)

    async def get_invalid_candidates(
        self,
        candidates: Sequence[Candidate | None],
        identity_hash_table: dict[str, int],
    ) -> list[InvalidCandidate]:
        """Check every candidate concurrently and return the invalid ones."""

        async def check(candidate: Candidate) -> InvalidCandidate | None:
            verdict = await self.check_single_candidate(candidate, identity_hash_table)
            if verdict.valid:
                return None
            return InvalidCandidate(stash=candidate.stash, reason=verdict.reason)

        results = await asyncio.gather(*(check(c) for c in self._present(candidates)))
        invalid = [r for r in results if r is not None]

        self._invalid_cache = tuple(i.reason for i in invalid)
        return invalid

    async def get_valid_candidates(
        self,
        candidates: Sequence[Candidate | None],
        identity_hash_table: dict[str, int],
    ) -> tuple[RankedCandidate, ...]:
        """Return the valid candidates ordered by nomination priority."""
        logger.info("Getting valid candidates")

        verdicts = await self._bounded(
            lambda c: self.check_single_candidate(c, identity_hash_table),
            self._present(candidates),
        )
        valid: list[Candidate] = []
        for candidate, verdict in verdicts:
            if not verdict.valid:
                logger.info(verdict.reason)
                continue
            valid.append(candidate)

        weights = self.config.weights
        populations = scoring.collect_populations(valid)
        updated = _now_ms()
        await self._storage_call(
            "setValidatorScoreMetadata",
            self.storage.set_validator_score_metadata(scoring.population_stats(populations), weights, updated),
        )

        scored: list[RankedCandidate] = []
        for candidate in valid:
            score = scoring.score_candidate(
                candidate,
                populations,
                weights,
                randomness=scoring.draw_jitter(self._rng),
                updated=updated,
            )
            await self._storage_call(
                "setValidatorScore",
                self.storage.set_validator_score(candidate.stash, updated, score),
            )
            scored.append(RankedCandidate.from_candidate(candidate, score))

        ranked = scoring.rank(scored)
        self._valid_cache = ranked
        logger.info(f"Ranked {len(ranked)} valid candidates out of {len(verdicts)}")
        return ranked

    async def process_candidates(self, candidates: Iterable[Candidate | None]) -> RoundPartition:
        """Split a nominated cohort into good and bad at a round boundary.

        Raises:
            EraUnavailableError: If the active era index cannot be read.
        """
        logger.info("Processing candidates")

        era = await self.chaindata.get_active_era_index()
        if not era.ok:
            raise EraUnavailableError(era.error)

        outcomes = await self._bounded(self._check_round_compliance, self._present(candidates))

        partition = RoundPartition()
        for candidate, reason in outcomes:
            if reason is None:
                partition.good[candidate.stash] = candidate
            else:
                logger.info(reason)
                partition.bad[candidate.stash] = BadCandidate(candidate=candidate, reason=reason)
        return partition

    # -------------------------------------------------------------------------
    # SINGLE CANDIDATE
    # -------------------------------------------------------------------------

    async def check_single_candidate(
        self,
        candidate: Candidate,
        identity_hash_table: dict[str, int],
    ) -> Verdict:
        """Run every admission check in order; the first failure wins."""
        checks: list[Callable[[], Awaitable[str | None]]] = [
            lambda: self._check_online(candidate),
            lambda: self._check_validate_intention(candidate),
            lambda: self._check_client_version(candidate),
            lambda: self._check_connection_time(candidate),
            lambda: self._check_identity(candidate, identity_hash_table),
            lambda: self._check_offline(candidate),
            lambda: self._check_staked_destination(candidate),
            lambda: self._check_commission(candidate),
            lambda: self._check_self_stake(candidate),
            lambda: self._check_unclaimed(candidate),
            lambda: self._check_cross_network(candidate),
        ]
        for check in checks:
            try:
                reason = await check()
            except RemoteReadError as e:
                reason = f"{candidate.name} {e}"
            except Exception as e:
                logger.exception(f"Unexpected error checking {candidate.name}")
                reason = f"{candidate.name} could not be checked: {e}"
            if reason:
                return Verdict.invalid(reason)
        return Verdict.ok()

    async def _check_online(self, candidate: Candidate) -> str | None:
        if not candidate.online_since or candidate.offline_since:
            return f"{candidate.name} offline. Offline since {candidate.offline_since}."
        return None

    async def _check_validate_intention(self, candidate: Candidate) -> str | None:
        try:
            stash = format_address(candidate.stash, self.config.network_prefix)
        except ValueError as e:
            return f"{candidate.name} has a malformed stash address {candidate.stash}: {e}"
        validators = await self.chaindata.get_validators()
        if stash not in validators:
            return f"{candidate.name} does not have a validate intention"
        return None

    async def _check_client_version(self, candidate: Candidate) -> str | None:
        if self.config.skip_client_upgrade:
            return None

        target = self.config.force_client_version
        if not target:
            release = await self._latest_release()
            if release is None:
                return None
            target = release.name

        latest = coerce_version(target)
        if latest is None:
            logger.warning(f"Cannot parse client release version {target!r}, skipping version check")
            return None
        node_version = coerce_version(candidate.version)
        if node_version is None or node_version < latest:
            return f"{candidate.name} is not running the latest client code."
        return None

    async def _check_connection_time(self, candidate: Candidate) -> str | None:
        if self.config.skip_connection_time:
            return None
        if _now_ms() - candidate.discovered_at < WEEK:
            return f"{candidate.name} hasn't been connected for minimum length."
        return None

    async def _check_identity(self, candidate: Candidate, identity_hash_table: dict[str, int]) -> str | None:
        if self.config.skip_identity:
            return None

        has_identity, verified = await self.chaindata.has_identity(candidate.stash)
        if not has_identity:
            return f"{candidate.name} does not have an identity set."
        if not verified:
            return f"{candidate.name} has an identity but is not verified by registrar."

        digest = identity.identity_hash(await self.chaindata.get_identity(candidate.stash))
        count = identity_hash_table.get(digest, 0)
        if not count or count > MAX_IDENTITY_SHARE:
            return (
                f"{candidate.name} has too many candidates in the set with same identity. "
                f"Number: {count} Hash: {digest}"
            )
        return None

    async def _check_offline(self, candidate: Candidate) -> str | None:
        if candidate.offline_accumulated / WEEK > MAX_OFFLINE_FRACTION:
            minutes = candidate.offline_accumulated / 1000 / 60
            return f"{candidate.name} has been offline {minutes} minutes this week."
        return None

    async def _check_staked_destination(self, candidate: Candidate) -> str | None:
        if self.config.skip_staked_destination:
            return None
        if not await self.chaindata.destination_is_staked(candidate.stash):
            return f"{candidate.name} does not have reward destination set to Staked"
        return None

    async def _check_commission(self, candidate: Candidate) -> str | None:
        commission = await self.chaindata.get_commission(candidate.stash)
        if not commission.ok:
            return f"{candidate.name} {commission.error}"
        if commission.value > self.config.commission:
            return (
                f"{candidate.name} commission is set higher than the maximum allowed. "
                f"Set: {commission.value} Allowed: {self.config.commission}"
            )
        return None

    async def _check_self_stake(self, candidate: Candidate) -> str | None:
        if candidate.skip_self_stake:
            return None
        bonded = await self.chaindata.get_bonded_amount(candidate.stash)
        if not bonded.ok:
            return f"{candidate.name} {bonded.error}"
        if bonded.value < self.config.min_self_stake:
            return f"{candidate.name} has less than the minimum amount bonded: {bonded.value} is bonded."
        return None

    async def _check_unclaimed(self, candidate: Candidate) -> str | None:
        if self.config.skip_unclaimed or not candidate.unclaimed_eras:
            return None
        era = await self.chaindata.get_active_era_index()
        if not era.ok:
            return f"{candidate.name} {era.error}"

        # No unclaimed rewards allowed at or before this era
        threshold = era.value - self.config.unclaimed_era_threshold - 1
        if any(e <= threshold for e in candidate.unclaimed_eras):
            eras = ",".join(str(e) for e in candidate.unclaimed_eras)
            return f"{candidate.name} has unclaimed eras: {eras} prior to era: {threshold + 1}"
        return None

    async def _check_cross_network(self, candidate: Candidate) -> str | None:
        if not candidate.kusama_stash or self.cross_network is None:
            return None
        try:
            data = await self.cross_network.fetch_candidate(candidate.kusama_stash)
            reasons = data.get("invalidityReasons")
            if reasons:
                return f"{candidate.name} has a kusama node that is invalid: {reasons}"
            # A missing rank is ignored, an explicit null counts as 0
            if "rank" not in data:
                return None
            rank = data["rank"]
            if float(rank or 0) < MIN_CROSS_NETWORK_RANK:
                return (
                    f"{candidate.name} has a Kusama stash with lower than {MIN_CROSS_NETWORK_RANK} rank "
                    f"in the Kusama OTV programme: {rank}."
                )
        except (CrossNetworkError, TypeError, ValueError) as e:
            logger.info(f"Error trying to get kusama data for {candidate.name}: {e}")
        return None

    # -------------------------------------------------------------------------
    # ROUND END
    # -------------------------------------------------------------------------

    async def _check_round_compliance(self, candidate: Candidate) -> str | None:
        """Reduced rule set for candidates that are already nominated."""
        name = candidate.name
        try:
            commission = await self.chaindata.get_commission(candidate.stash)
            # A failed read usually means the validator dropped its intention
            if not commission.ok:
                return f"{name} {commission.error}"
            if commission.value > self.config.commission:
                return f"{name} found commission higher than the maximum allowed: {commission.value}"

            if not candidate.skip_self_stake:
                bonded = await self.chaindata.get_bonded_amount(candidate.stash)
                if not bonded.ok:
                    return f"{name} {bonded.error}"
                if bonded.value < self.config.min_self_stake:
                    return f"{name} has less than the minimum required amount bonded: {bonded.value}"

            if not self.config.skip_staked_destination:
                if not await self.chaindata.destination_is_staked(candidate.stash):
                    return f"{name} does not have reward destination set to Staked"
            return await self._check_offline(candidate)
        except RemoteReadError as e:
            return f"{name} {e}"
        except Exception as e:
            logger.exception(f"Unexpected error checking {name}")
            return f"{name} could not be checked: {e}"

    # -------------------------------------------------------------------------
    # HELPERS
    # -------------------------------------------------------------------------

    @staticmethod
    def _present(candidates: Iterable[Candidate | None]) -> list[Candidate]:
        present = []
        for candidate in candidates:
            if candidate is None:
                logger.info("Candidate is null, skipping")
                continue
            present.append(candidate)
        return present

    async def _bounded(
        self,
        fn: Callable[[T], Awaitable[R]],
        items: Sequence[T],
    ) -> list[tuple[T, R]]:
        """Apply ``fn`` to each item with at most ``max_concurrency`` in flight.

        Results come back in input order.
        """
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def run(item: T) -> tuple[T, R]:
            async with semaphore:
                return item, await fn(item)

        return list(await asyncio.gather(*(run(item) for item in items)))

    async def _storage_call(self, label: str, call: Awaitable[T]) -> T:
        """Await a storage call under the remote-call timeout.

        Raises:
            StorageError: On timeout or any error from the backend.
        """
        try:
            return await asyncio.wait_for(call, timeout=self.config.rpc_timeout)
        except asyncio.TimeoutError as e:
            raise StorageError(f"{label} failed: timed out after {self.config.rpc_timeout}s") from e
        except Exception as e:
            raise StorageError(f"{label} failed: {e}") from e

    async def _latest_release(self) -> Release | None:
        return await self._storage_call("getLatestRelease", self.storage.get_latest_release())
