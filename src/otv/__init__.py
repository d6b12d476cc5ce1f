"""OTV - validator candidate admission and ranking.

Provides:
- Ordered validity checks over candidate validators
- Weighted, normalised scoring of the valid set
- Round-end partitioning of a nominated cohort
"""

__version__ = "1.0.0"

from .chaindata import ChainData, ChainResult, GuardedChainData, format_address
from .config import ConstraintConfig, ScoreWeights
from .constraints import OTV, coerce_version
from .crossnet import CrossNetworkClient
from .exceptions import (
    ChainDataError,
    ConfigException,
    CrossNetworkError,
    EraUnavailableError,
    OTVException,
    RemoteReadError,
    StorageError,
)
from .identity import identity_hash, populate_identity_hash_table
from .logging import configure_logging, get_logger
from .models import (
    BadCandidate,
    Candidate,
    InvalidCandidate,
    RankedCandidate,
    RoundPartition,
    Score,
    Stats,
    Verdict,
)
from .stats import get_stats, scaled
from .storage import MemoryStorage, Release, ScoreMetadata, Storage

__all__ = [
    # Engine
    "OTV",
    "coerce_version",
    # Config
    "ConstraintConfig",
    "ScoreWeights",
    # Models
    "Candidate",
    "Verdict",
    "InvalidCandidate",
    "BadCandidate",
    "RoundPartition",
    "Stats",
    "Score",
    "RankedCandidate",
    # Collaborators
    "ChainData",
    "ChainResult",
    "GuardedChainData",
    "format_address",
    "Storage",
    "MemoryStorage",
    "Release",
    "ScoreMetadata",
    "CrossNetworkClient",
    # Identity
    "identity_hash",
    "populate_identity_hash_table",
    # Statistics
    "get_stats",
    "scaled",
    # Exceptions
    "OTVException",
    "ConfigException",
    "RemoteReadError",
    "ChainDataError",
    "StorageError",
    "EraUnavailableError",
    "CrossNetworkError",
    # Logging
    "configure_logging",
    "get_logger",
]
