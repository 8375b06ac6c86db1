"""mintgate — eligibility-and-allocation gate for a fixed-supply, multi-phase mint."""

from mintgate.config import MintPolicy
from mintgate.errors import (
    AllocationExceededError,
    AuthorizationError,
    InputValidationError,
    InvalidProofError,
    MintGateError,
    PhaseStateError,
    SupplyExceededError,
    TerminalStateError,
)
from mintgate.models.phase import MintPhase
from mintgate.service import MintGate

__version__ = "0.1.0"

__all__ = [
    "AllocationExceededError",
    "AuthorizationError",
    "InputValidationError",
    "InvalidProofError",
    "MintGate",
    "MintGateError",
    "MintPhase",
    "MintPolicy",
    "PhaseStateError",
    "SupplyExceededError",
    "TerminalStateError",
]
