"""Client for the secondary-network OTV backend.

Polkadot candidates may link a Kusama stash. The Kusama backend reports
that stash's rank and any invalidity reasons. The lookup is advisory: the
caller treats every ``CrossNetworkError`` as "no information".
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from .constants import KOTV_BACKEND_ENDPOINT
from .exceptions import CrossNetworkError

logger = logging.getLogger(__name__)


class CrossNetworkClient:
    """Fetches candidate records from another network's backend."""

    def __init__(self, endpoint: str = KOTV_BACKEND_ENDPOINT, timeout: float = 10.0):
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout

    async def fetch_candidate(self, stash: str) -> dict[str, Any]:
        """GET ``{endpoint}/candidate/{stash}``.

        Raises:
            CrossNetworkError: On transport errors, timeouts, non-200
                responses and bodies that are not a JSON object.
        """
        url = f"{self.endpoint}/candidate/{stash}"
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as resp:
                    if resp.status != 200:
                        raise CrossNetworkError(f"{url} returned HTTP {resp.status}")
                    data = await resp.json()
        except aiohttp.ClientError as e:
            raise CrossNetworkError(f"Connection error for {url}: {e}") from e
        except asyncio.TimeoutError as e:
            raise CrossNetworkError(f"Request to {url} timed out") from e
        except ValueError as e:
            raise CrossNetworkError(f"Malformed response from {url}: {e}") from e

        if not isinstance(data, dict):
            raise CrossNetworkError(f"Unexpected response from {url}: {data!r}")
        return data
