"""Chain-data reader contract and its guarded wrapper.

The reader itself is external (an RPC client against a Substrate node).
``GuardedChainData`` adds a per-call timeout and bounded retry with
exponential backoff. Calls that return a ``ChainResult`` report exhausted
retries as a failed result; the other calls raise ``ChainDataError``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from scalecodec.utils.ss58 import ss58_decode, ss58_encode

from .exceptions import ChainDataError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ChainResult(Generic[T]):
    """Value of a chain read, or the error text explaining why there is none."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> ChainResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> ChainResult[T]:
        return cls(error=error)


class ChainData(Protocol):
    """Reads consumed by the constraints engine."""

    async def get_validators(self) -> Iterable[str]: ...

    async def get_identity(self, stash: str) -> str | None: ...

    async def has_identity(self, stash: str) -> tuple[bool, bool]: ...

    async def destination_is_staked(self, stash: str) -> bool: ...

    async def get_commission(self, stash: str) -> ChainResult[float]: ...

    async def get_bonded_amount(self, stash: str) -> ChainResult[float]: ...

    async def get_active_era_index(self) -> ChainResult[int]: ...


def format_address(address: str, network_prefix: int | None) -> str:
    """Re-encode an SS58 address for ``network_prefix``.

    Raises ValueError for a malformed address.
    """
    if network_prefix is None:
        return address
    return ss58_encode(ss58_decode(address), ss58_format=network_prefix)


class GuardedChainData:
    """ChainData wrapper with per-call timeout and bounded retry."""

    def __init__(
        self,
        reader: ChainData,
        timeout: float = 30.0,
        retries: int = 2,
        backoff: float = 0.5,
    ):
        self.reader = reader
        self.timeout = timeout
        self.retries = retries
        self.backoff = backoff

    async def _call(self, label: str, fn: Callable[..., Awaitable[T]], *args) -> T:
        last_error: Exception | None = None
        for attempt in range(self.retries + 1):
            if attempt:
                await asyncio.sleep(self.backoff * (2 ** (attempt - 1)))
            try:
                return await asyncio.wait_for(fn(*args), timeout=self.timeout)
            except asyncio.TimeoutError:
                last_error = TimeoutError(f"timed out after {self.timeout}s")
            except Exception as e:
                last_error = e
            logger.debug(f"{label} attempt {attempt + 1}/{self.retries + 1} failed: {last_error}")

        raise ChainDataError(f"{label} failed: {last_error}") from last_error

    async def _result(self, label: str, fn: Callable[..., Awaitable[ChainResult[T]]], *args) -> ChainResult[T]:
        try:
            return await self._call(label, fn, *args)
        except ChainDataError as e:
            return ChainResult.failure(str(e))

    async def get_validators(self) -> set[str]:
        return set(await self._call("getValidators", self.reader.get_validators))

    async def get_identity(self, stash: str) -> str | None:
        return await self._call("getIdentity", self.reader.get_identity, stash)

    async def has_identity(self, stash: str) -> tuple[bool, bool]:
        return await self._call("hasIdentity", self.reader.has_identity, stash)

    async def destination_is_staked(self, stash: str) -> bool:
        return await self._call("destinationIsStaked", self.reader.destination_is_staked, stash)

    async def get_commission(self, stash: str) -> ChainResult[float]:
        return await self._result("getCommission", self.reader.get_commission, stash)

    async def get_bonded_amount(self, stash: str) -> ChainResult[float]:
        return await self._result("getBondedAmount", self.reader.get_bonded_amount, stash)

    async def get_active_era_index(self) -> ChainResult[int]:
        return await self._result("getActiveEraIndex", self.reader.get_active_era_index)
