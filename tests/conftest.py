"""Shared fixtures: an in-memory chain-data reader and candidate factory."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field

import pytest

from otv.chaindata import ChainResult
from otv.config import ConstraintConfig
from otv.constants import WEEK
from otv.models import Candidate
from otv.storage import MemoryStorage


@dataclass
class FakeChainData:
    """ChainData backed by dicts. Unknown stashes get permissive defaults."""

    validators: set[str] = field(default_factory=set)
    identities: dict[str, str] = field(default_factory=dict)
    identity_status: dict[str, tuple[bool, bool]] = field(default_factory=dict)
    unstaked: set[str] = field(default_factory=set)
    commissions: dict[str, ChainResult] = field(default_factory=dict)
    bonded: dict[str, ChainResult] = field(default_factory=dict)
    era: ChainResult = field(default_factory=lambda: ChainResult.success(100))
    failing_identity: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    async def get_validators(self):
        self.calls.append("get_validators")
        return set(self.validators)

    async def get_identity(self, stash):
        self.calls.append(f"get_identity:{stash}")
        if stash in self.failing_identity:
            raise ConnectionError("identity rpc down")
        return self.identities.get(stash, f"identity-of-{stash}")

    async def has_identity(self, stash):
        return self.identity_status.get(stash, (True, True))

    async def destination_is_staked(self, stash):
        return stash not in self.unstaked

    async def get_commission(self, stash):
        self.calls.append(f"get_commission:{stash}")
        return self.commissions.get(stash, ChainResult.success(0.05))

    async def get_bonded_amount(self, stash):
        return self.bonded.get(stash, ChainResult.success(1_000))

    async def get_active_era_index(self):
        self.calls.append("get_active_era_index")
        return self.era


def make_candidate(stash: str = "stash-1", **overrides) -> Candidate:
    """A candidate that passes every check against a default FakeChainData."""
    now = time.time() * 1000
    values = dict(
        stash=stash,
        name=f"node-{stash}",
        discovered_at=now - 2 * WEEK,
        online_since=now - WEEK,
        offline_since=0,
        offline_accumulated=0,
        version="0.9.39-1a2b3c4d-x86_64-linux-gnu",
        bonded=100,
        inclusion=0.5,
        span_inclusion=0.5,
        faults=0,
        rank=10,
        nominated_at=now - WEEK,
    )
    values.update(overrides)
    return Candidate(**values)


@pytest.fixture
def chaindata():
    return FakeChainData(validators={f"stash-{i}" for i in range(1, 6)})


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def config():
    return ConstraintConfig(
        commission=0.1,
        min_self_stake=500,
        unclaimed_era_threshold=4,
        cross_network_endpoint=None,
        rpc_retries=0,
        rpc_backoff=0,
    )


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def candidate():
    """Factory for candidates; see ``make_candidate``."""
    return make_candidate
