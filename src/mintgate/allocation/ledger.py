"""Allocation ledger — cumulative minted amounts per address per phase.

Caps:
- Whitelist phase: WHITELIST_MAX_PER_ADDRESS (5) per address.
- Public phase: PUBLIC_MAX_PER_ADDRESS (1) per address.

The two counters are independent. Counters only ever grow through
minting; burns happen in the token ledger and never reduce them.

Arithmetic is checked as unsigned 256-bit: a negative input is invalid
and an addition that would pass 2**256 - 1 fails instead of wrapping.
"""

from __future__ import annotations

from typing import Dict

from mintgate.constants import MAX_UINT256
from mintgate.crypto.address import AddressLike, normalize_address
from mintgate.errors import AllocationExceededError, InputValidationError
from mintgate.models.phase import MintPhase

TRACKED_PHASES = (MintPhase.WHITELIST, MintPhase.PUBLIC)


def _check_uint(value: int, label: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InputValidationError(f"{label} must be an integer", details=value)
    if value < 0 or value > MAX_UINT256:
        raise InputValidationError(f"{label} out of uint256 range", details=value)


def reserve(
    address: AddressLike,
    amount: int,
    phase_cap: int,
    current_cumulative: int,
) -> int:
    """Return the new cumulative total if ``amount`` fits under the cap.

    Raises AllocationExceededError if current + amount > cap, including
    the case where the sum overflows uint256.
    """
    _check_uint(amount, "amount")
    _check_uint(current_cumulative, "cumulative")
    total = current_cumulative + amount
    if total > MAX_UINT256:
        raise AllocationExceededError(
            "Allocation arithmetic overflow", details=normalize_address(address),
        )
    if total > phase_cap:
        raise AllocationExceededError(
            f"Allocation exceeded: {current_cumulative} + {amount} > {phase_cap}",
            details=normalize_address(address),
        )
    return total


class AllocationLedger:
    """Per-phase cumulative mint counters.

    Usage:
        ledger = AllocationLedger()
        new_total = ledger.reserve("0x7099...", MintPhase.WHITELIST, 3, cap=5)
        ledger.commit("0x7099...", MintPhase.WHITELIST, new_total)

    reserve() never writes; commit() stores a value computed by reserve().
    """

    def __init__(self) -> None:
        self._minted: Dict[MintPhase, Dict[str, int]] = {p: {} for p in TRACKED_PHASES}

    def _book(self, phase: MintPhase) -> Dict[str, int]:
        if phase not in self._minted:
            raise InputValidationError(
                "No allocation tracking for phase", details=phase.value,
            )
        return self._minted[phase]

    def minted(self, address: AddressLike, phase: MintPhase) -> int:
        return self._book(phase).get(normalize_address(address), 0)

    def remaining(self, address: AddressLike, phase: MintPhase, cap: int) -> int:
        return max(cap - self.minted(address, phase), 0)

    def reserve(
        self, address: AddressLike, phase: MintPhase, amount: int, cap: int
    ) -> int:
        return reserve(address, amount, cap, self.minted(address, phase))

    def commit(self, address: AddressLike, phase: MintPhase, new_total: int) -> None:
        """Store a reserved cumulative total. Counters never decrease here."""
        book = self._book(phase)
        addr = normalize_address(address)
        if new_total < book.get(addr, 0):
            raise ValueError("Allocation counters are monotonic")
        book[addr] = new_total

    def revert(self, address: AddressLike, phase: MintPhase, previous: int) -> None:
        """Undo a commit whose enclosing operation failed."""
        book = self._book(phase)
        addr = normalize_address(address)
        if previous:
            book[addr] = previous
        else:
            book.pop(addr, None)

    def total(self, phase: MintPhase) -> int:
        return sum(self._book(phase).values())

    def snapshot(self) -> dict[str, dict[str, int]]:
        return {p.value: dict(sorted(self._minted[p].items())) for p in TRACKED_PHASES}

    @classmethod
    def restore(cls, data: dict[str, dict[str, int]]) -> AllocationLedger:
        ledger = cls()
        for phase in TRACKED_PHASES:
            for addr, amount in (data.get(phase.value) or {}).items():
                _check_uint(int(amount), "cumulative")
                ledger._minted[phase][normalize_address(addr)] = int(amount)
        return ledger
