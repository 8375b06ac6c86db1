"""Phase derivation and one-way phase transitions."""

from mintgate.phase.controller import PhaseController, current_phase

__all__ = ["PhaseController", "current_phase"]
