"""Phase controller — derives the current phase and guards the two one-way starts.

Rules:
- Phase is a pure function of (now, whitelist start, public start,
  phase duration, mint-ended flag). Nothing caches it.
- The terminal flag overrides all time logic.
- Whitelist start requires a whitelist root and can happen once.
- Public start can happen once, and only after the whitelist window
  (whitelist start + phase duration) has fully elapsed.

There is no pause, restart or rewind. Time is an input; the controller
never advances it.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from mintgate.constants import PHASE_DURATION, ZERO_ROOT
from mintgate.errors import PhaseStateError
from mintgate.models.phase import MintPhase, PhaseClock


def current_phase(
    now: datetime,
    whitelist_start_utc: Optional[datetime],
    public_start_utc: Optional[datetime],
    phase_duration: timedelta = PHASE_DURATION,
    mint_ended: bool = False,
) -> MintPhase:
    """Derive the phase. Conditions are evaluated strictly in order."""
    if mint_ended:
        return MintPhase.ENDED
    if whitelist_start_utc is None or now < whitelist_start_utc:
        return MintPhase.NOT_STARTED
    if now < whitelist_start_utc + phase_duration:
        return MintPhase.WHITELIST
    if public_start_utc is None:
        return MintPhase.ENDED
    # Gap between whitelist close and public open
    if now < public_start_utc:
        return MintPhase.ENDED
    if now < public_start_utc + phase_duration:
        return MintPhase.PUBLIC
    return MintPhase.ENDED


class PhaseController:
    """Guards phase transitions over an immutable PhaseClock.

    Each transition returns a new clock; the caller decides when to
    store it, so a rejected transition never leaves a partial write.
    """

    def phase(self, clock: PhaseClock, now: datetime, mint_ended: bool = False) -> MintPhase:
        return current_phase(
            now,
            clock.whitelist_start_utc,
            clock.public_start_utc,
            clock.phase_duration,
            mint_ended,
        )

    def can_start_whitelist(
        self, clock: PhaseClock, whitelist_root: bytes
    ) -> tuple[bool, str]:
        """Check if the whitelist phase may start.

        Returns (allowed, reason).
        """
        if clock.whitelist_start_utc is not None:
            return False, "Whitelist phase already started"
        if whitelist_root == ZERO_ROOT:
            return False, "Whitelist root not set"
        return True, "Whitelist phase start allowed"

    def can_start_public(self, clock: PhaseClock, now: datetime) -> tuple[bool, str]:
        """Check if the public phase may start.

        Returns (allowed, reason).
        """
        if clock.whitelist_start_utc is None:
            return False, "Whitelist phase not started"
        if now < clock.whitelist_start_utc + clock.phase_duration:
            return False, "Whitelist not ended"
        if clock.public_start_utc is not None:
            return False, "Public phase already started"
        return True, "Public phase start allowed"

    def start_whitelist(
        self, clock: PhaseClock, whitelist_root: bytes, now: datetime
    ) -> PhaseClock:
        """Record the whitelist start. Raises PhaseStateError if invalid."""
        allowed, reason = self.can_start_whitelist(clock, whitelist_root)
        if not allowed:
            raise PhaseStateError(reason)
        return replace(clock, whitelist_start_utc=now)

    def start_public(self, clock: PhaseClock, now: datetime) -> PhaseClock:
        """Record the public start. Raises PhaseStateError if invalid."""
        allowed, reason = self.can_start_public(clock, now)
        if not allowed:
            raise PhaseStateError(reason)
        return replace(clock, public_start_utc=now)
