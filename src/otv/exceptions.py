"""Exception hierarchy for the OTV constraints engine.

Remote read failures are folded into candidate verdicts by the checker;
only the era lookup of the round partitioner escapes to the caller.
"""

from __future__ import annotations


class OTVException(Exception):
    """Base exception for the constraints engine."""


class ConfigException(OTVException):
    """Raised when the constraint configuration cannot be parsed."""


class RemoteReadError(OTVException):
    """A read from an external collaborator failed."""


class ChainDataError(RemoteReadError):
    """A chain-data read failed, timed out or exhausted its retries."""


class StorageError(RemoteReadError):
    """A storage read failed."""


class EraUnavailableError(ChainDataError):
    """The active era index could not be read."""


class CrossNetworkError(OTVException):
    """The secondary-network backend could not be queried."""
