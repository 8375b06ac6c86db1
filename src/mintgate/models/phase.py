"""Phase models for the distribution.

The phase is never stored. It is derived on every read from the two
start timestamps held in a PhaseClock, the current time, and the
terminal mint-ended flag (see mintgate.phase.controller).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from mintgate.constants import PHASE_DURATION


class MintPhase(str, enum.Enum):
    """The four mutually exclusive minting windows.

    Progression is one-way over time: NOT_STARTED → WHITELIST → (gap) →
    PUBLIC → ENDED. Any gap between the whitelist window closing and the
    public window opening reads as ENDED.
    """
    NOT_STARTED = "not_started"
    WHITELIST = "whitelist"
    PUBLIC = "public"
    ENDED = "ended"


@dataclass(frozen=True)
class PhaseClock:
    """Start times of the two minting windows.

    Invariants:
    - whitelist_start_utc is set at most once.
    - public_start_utc is set at most once, and only once
      whitelist_start_utc + phase_duration has elapsed.
    """
    whitelist_start_utc: Optional[datetime] = None
    public_start_utc: Optional[datetime] = None
    phase_duration: timedelta = PHASE_DURATION

    @property
    def whitelist_end_utc(self) -> Optional[datetime]:
        if self.whitelist_start_utc is None:
            return None
        return self.whitelist_start_utc + self.phase_duration

    @property
    def public_end_utc(self) -> Optional[datetime]:
        if self.public_start_utc is None:
            return None
        return self.public_start_utc + self.phase_duration
