"""Failure taxonomy for the mint gate.

Every rejected operation raises exactly one of the subclasses below, so
callers can tell the reasons apart without parsing messages. All checks
run before the first state write; a raised error always means nothing
changed.
"""

from __future__ import annotations

from typing import Any, Optional


class MintGateError(Exception):
    """Base class for all mint gate rejections."""

    code: str = "mint_gate_error"

    def __init__(self, reason: str, details: Optional[Any] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.details = details

    def __str__(self) -> str:
        if self.details is None:
            return f"{self.code}: {self.reason}"
        return f"{self.code}: {self.reason} ({self.details})"


class AuthorizationError(MintGateError):
    """Caller lacks the required role (admin or super-admin)."""

    code = "unauthorized"


class PhaseStateError(MintGateError):
    """Wrong phase for the call, or an invalid phase transition."""

    code = "phase_state"


class AllocationExceededError(MintGateError):
    """Per-address per-phase cap would be exceeded."""

    code = "allocation_exceeded"


class SupplyExceededError(MintGateError):
    """Global supply cap would be exceeded."""

    code = "supply_exceeded"


class InvalidProofError(MintGateError):
    """Merkle inclusion proof does not verify against the stored root."""

    code = "invalid_proof"


class InputValidationError(MintGateError):
    """Malformed input: zero amount, bad address, mismatched arrays, unknown token."""

    code = "invalid_input"


class TerminalStateError(MintGateError):
    """Minting has been permanently ended."""

    code = "mint_ended"
