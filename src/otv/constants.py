"""Fixed constants for candidate evaluation.

Timestamps on candidates are milliseconds since the epoch, so every
duration here is in milliseconds too.
"""

from __future__ import annotations

WEEK = 7 * 24 * 60 * 60 * 1000

# Max fraction of WEEK a candidate may have spent offline
MAX_OFFLINE_FRACTION = 0.02

# An identity may be shared by at most this many candidates
MAX_IDENTITY_SHARE = 2

# Secondary-network candidates ranked below this are rejected
MIN_CROSS_NETWORK_RANK = 25

# Upper bound (exclusive) of the per-candidate score jitter
JITTER_SPREAD = 0.05

KOTV_BACKEND_ENDPOINT = "https://kusama.w3f.community"
