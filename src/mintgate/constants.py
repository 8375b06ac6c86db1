"""Fixed distribution constants.

These values are part of the external contract of the distribution and
must not change between releases:

- Max total supply: 10,000 units of the single distributed asset.
- Whitelist phase: at most 5 units per address.
- Public phase: at most 1 unit per address.
- Each phase window lasts exactly 2 days.
"""

from __future__ import annotations

from datetime import timedelta

MAX_SUPPLY: int = 10_000

WHITELIST_MAX_PER_ADDRESS: int = 5
PUBLIC_MAX_PER_ADDRESS: int = 1

PHASE_DURATION_DAYS: int = 2
PHASE_DURATION: timedelta = timedelta(days=PHASE_DURATION_DAYS)

# Identifier of the distributed asset in the multi-token ledger
TOKEN_ID: int = 0

# Counters are checked as unsigned 256-bit integers
MAX_UINT256: int = 2**256 - 1

ZERO_ROOT: bytes = b"\x00" * 32
