"""Identity hash index for anti-Sybil checks.

Counts how many candidates share each on-chain identity. A candidate whose
identity is shared by more than two candidates, or that is missing from the
index, fails the identity check.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable

from .chaindata import ChainData
from .models import Candidate

logger = logging.getLogger(__name__)


def identity_hash(identity: str | None) -> str:
    """Return the 256-bit BLAKE2b digest of an identity string as 0x-prefixed hex.

    A missing identity hashes like the empty string.
    """
    digest = hashlib.blake2b((identity or "").encode(), digest_size=32).hexdigest()
    return f"0x{digest}"


async def populate_identity_hash_table(
    chaindata: ChainData,
    candidates: Iterable[Candidate | None],
) -> dict[str, int]:
    """Build the identity digest -> occurrence count table for a population.

    A failed identity read counts as the empty identity instead of aborting
    the whole build.
    """
    logger.info("Populating identity hash table")
    table: dict[str, int] = {}

    for candidate in candidates:
        if candidate is None:
            logger.info("Candidate is null, skipping identity lookup")
            continue
        try:
            identity = await chaindata.get_identity(candidate.stash)
        except Exception as e:
            logger.warning(f"Identity lookup failed for {candidate.stash}: {e}")
            identity = None

        digest = identity_hash(identity)
        table[digest] = table.get(digest, 0) + 1

    return table
