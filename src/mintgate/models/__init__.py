"""Data models — phases and the phase clock."""

from mintgate.models.phase import MintPhase, PhaseClock

__all__ = ["MintPhase", "PhaseClock"]
