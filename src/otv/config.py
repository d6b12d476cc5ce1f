"""Constraint configuration for the OTV engine.

The configuration is supplied once, at construction, and never mutated
afterwards. It can be built directly, from the ``constraints`` block of
the backend JSON config, or from ``OTV_*`` environment variables.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from .constants import KOTV_BACKEND_ENDPOINT
from .exceptions import ConfigException


@dataclass(frozen=True)
class ScoreWeights:
    """Weight of each scoring dimension."""

    inclusion: float = 5
    span_inclusion: float = 40
    discovered: float = 5
    nominated: float = 35
    rank: float = 5
    unclaimed: float = 15
    bonded: float = 13
    faults: float = 5
    offline: float = 2

    def to_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class ConstraintConfig:
    """Toggles and thresholds applied to every candidate in a run."""

    skip_connection_time: bool = False
    skip_identity: bool = False
    skip_staked_destination: bool = False
    skip_client_upgrade: bool = False
    skip_unclaimed: bool = False

    min_self_stake: float = 0
    commission: float = 0  # ceiling, same units as the chain reports
    unclaimed_era_threshold: int = 0

    force_client_version: str | None = None
    network_prefix: int | None = None
    cross_network_endpoint: str | None = KOTV_BACKEND_ENDPOINT

    # Remote call guard
    rpc_timeout: float = 30.0
    rpc_retries: int = 2
    rpc_backoff: float = 0.5

    # Cap on concurrent candidate evaluations in the admission paths
    max_concurrency: int = 4

    weights: ScoreWeights = field(default_factory=ScoreWeights)

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigException(f"max_concurrency must be >= 1, got {self.max_concurrency}")
        if self.rpc_retries < 0:
            raise ConfigException(f"rpc_retries must be >= 0, got {self.rpc_retries}")
        if self.rpc_timeout <= 0:
            raise ConfigException(f"rpc_timeout must be > 0, got {self.rpc_timeout}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConstraintConfig:
        """Build a config from the backend JSON layout.

        Accepts either the whole document (with ``constraints`` and
        ``global`` sections) or the bare ``constraints`` block.
        """
        if not isinstance(data, dict):
            raise ConfigException(f"Expected a mapping, got {type(data).__name__}")

        constraints = data.get("constraints", data)
        global_section = data.get("global", {})
        if not isinstance(constraints, dict) or not isinstance(global_section, dict):
            raise ConfigException("'constraints' and 'global' must be mappings")

        kwargs: dict[str, Any] = {}
        for key, (name, kind) in _JSON_KEYS.items():
            if key in constraints:
                kwargs[name] = _coerce(key, constraints[key], kind)

        if "networkPrefix" in global_section:
            kwargs["network_prefix"] = _coerce("networkPrefix", global_section["networkPrefix"], int)

        weights = constraints.get("weights")
        if weights is not None:
            if not isinstance(weights, dict):
                raise ConfigException("'weights' must be a mapping")
            known = {f.name for f in fields(ScoreWeights)}
            unknown = set(weights) - known
            if unknown:
                raise ConfigException(f"Unknown score weights: {sorted(unknown)}")
            kwargs["weights"] = ScoreWeights(**{k: _coerce(k, v, float) for k, v in weights.items()})

        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: str | Path) -> ConstraintConfig:
        """Load a config from a JSON file."""
        try:
            data = json.loads(Path(path).read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigException(f"Cannot load config from {path}: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_env(cls) -> ConstraintConfig:
        """Build a config from ``OTV_*`` environment variables.

        Raises:
            ConfigException: If a numeric variable does not parse.
        """
        prefix = os.environ.get("OTV_NETWORK_PREFIX")
        return cls(
            skip_connection_time=_env_flag("OTV_SKIP_CONNECTION_TIME"),
            skip_identity=_env_flag("OTV_SKIP_IDENTITY"),
            skip_staked_destination=_env_flag("OTV_SKIP_STAKED_DESTINATION"),
            skip_client_upgrade=_env_flag("OTV_SKIP_CLIENT_UPGRADE"),
            skip_unclaimed=_env_flag("OTV_SKIP_UNCLAIMED"),
            min_self_stake=_env_number("OTV_MIN_SELF_STAKE", "0", float),
            commission=_env_number("OTV_COMMISSION", "0", float),
            unclaimed_era_threshold=_env_number("OTV_UNCLAIMED_ERA_THRESHOLD", "0", int),
            force_client_version=os.environ.get("OTV_FORCE_CLIENT_VERSION") or None,
            network_prefix=_env_number("OTV_NETWORK_PREFIX", "0", int) if prefix else None,
            cross_network_endpoint=os.environ.get("OTV_CROSS_NETWORK_ENDPOINT", KOTV_BACKEND_ENDPOINT) or None,
            rpc_timeout=_env_number("OTV_RPC_TIMEOUT", "30", float),
            rpc_retries=_env_number("OTV_RPC_RETRIES", "2", int),
            rpc_backoff=_env_number("OTV_RPC_BACKOFF", "0.5", float),
            max_concurrency=_env_number("OTV_MAX_CONCURRENCY", "4", int),
        )


# camelCase JSON key -> (field name, type)
_JSON_KEYS: dict[str, tuple[str, type]] = {
    "skipConnectionTime": ("skip_connection_time", bool),
    "skipIdentity": ("skip_identity", bool),
    "skipStakedDestination": ("skip_staked_destination", bool),
    "skipClientUpgrade": ("skip_client_upgrade", bool),
    "skipUnclaimed": ("skip_unclaimed", bool),
    "minSelfStake": ("min_self_stake", float),
    "commission": ("commission", float),
    "unclaimedEraThreshold": ("unclaimed_era_threshold", int),
    "forceClientVersion": ("force_client_version", str),
    "crossNetworkEndpoint": ("cross_network_endpoint", str),
    "rpcTimeout": ("rpc_timeout", float),
    "rpcRetries": ("rpc_retries", int),
    "rpcBackoff": ("rpc_backoff", float),
    "maxConcurrency": ("max_concurrency", int),
}


def _coerce(key: str, value: Any, kind: type) -> Any:
    if kind is bool:
        if not isinstance(value, bool):
            raise ConfigException(f"'{key}' must be a boolean, got {value!r}")
        return value
    if kind is str:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ConfigException(f"'{key}' must be a string, got {value!r}")
        return value
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigException(f"'{key}' must be a number, got {value!r}")
    return kind(value)


def _env_number(name: str, default: str, kind: type) -> Any:
    raw = os.environ.get(name, default)
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigException(f"{name} must be a number, got {raw!r}") from e


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")
