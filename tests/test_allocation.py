"""Tests for allocation caps and the supply guard."""

import pytest

from mintgate.allocation.ledger import AllocationLedger, reserve
from mintgate.allocation.supply import check_capacity, remaining_capacity
from mintgate.constants import MAX_UINT256
from mintgate.errors import (
    AllocationExceededError,
    InputValidationError,
    SupplyExceededError,
)
from mintgate.models.phase import MintPhase


ALICE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
BOB = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"


class TestReserve:
    def test_within_cap(self) -> None:
        assert reserve(ALICE, 3, 5, 0) == 3
        assert reserve(ALICE, 2, 5, 3) == 5

    def test_over_cap(self) -> None:
        with pytest.raises(AllocationExceededError):
            reserve(ALICE, 3, 5, 3)

    def test_overflow_is_rejected_not_wrapped(self) -> None:
        with pytest.raises(AllocationExceededError, match="overflow"):
            reserve(ALICE, 1, MAX_UINT256, MAX_UINT256)

    def test_negative_amount_invalid(self) -> None:
        with pytest.raises(InputValidationError):
            reserve(ALICE, -1, 5, 0)


class TestAllocationLedger:
    def test_reserve_does_not_write(self) -> None:
        ledger = AllocationLedger()
        ledger.reserve(ALICE, MintPhase.WHITELIST, 3, cap=5)
        assert ledger.minted(ALICE, MintPhase.WHITELIST) == 0

    def test_commit_and_remaining(self) -> None:
        ledger = AllocationLedger()
        total = ledger.reserve(ALICE, MintPhase.WHITELIST, 3, cap=5)
        ledger.commit(ALICE, MintPhase.WHITELIST, total)
        assert ledger.minted(ALICE.lower(), MintPhase.WHITELIST) == 3
        assert ledger.remaining(ALICE, MintPhase.WHITELIST, 5) == 2

    def test_phases_are_independent(self) -> None:
        ledger = AllocationLedger()
        ledger.commit(ALICE, MintPhase.WHITELIST, 5)
        assert ledger.minted(ALICE, MintPhase.PUBLIC) == 0
        assert ledger.reserve(ALICE, MintPhase.PUBLIC, 1, cap=1) == 1

    def test_addresses_are_independent(self) -> None:
        ledger = AllocationLedger()
        ledger.commit(ALICE, MintPhase.WHITELIST, 5)
        assert ledger.reserve(BOB, MintPhase.WHITELIST, 5, cap=5) == 5

    def test_commit_is_monotonic(self) -> None:
        ledger = AllocationLedger()
        ledger.commit(ALICE, MintPhase.WHITELIST, 3)
        with pytest.raises(ValueError):
            ledger.commit(ALICE, MintPhase.WHITELIST, 2)

    def test_revert_restores_previous(self) -> None:
        ledger = AllocationLedger()
        ledger.commit(ALICE, MintPhase.WHITELIST, 2)
        ledger.commit(ALICE, MintPhase.WHITELIST, 4)
        ledger.revert(ALICE, MintPhase.WHITELIST, 2)
        assert ledger.minted(ALICE, MintPhase.WHITELIST) == 2
        ledger.revert(ALICE, MintPhase.WHITELIST, 0)
        assert ledger.snapshot()["whitelist"] == {}

    def test_untracked_phase_rejected(self) -> None:
        ledger = AllocationLedger()
        with pytest.raises(InputValidationError):
            ledger.minted(ALICE, MintPhase.ENDED)

    def test_totals(self) -> None:
        ledger = AllocationLedger()
        ledger.commit(ALICE, MintPhase.WHITELIST, 3)
        ledger.commit(BOB, MintPhase.WHITELIST, 5)
        ledger.commit(BOB, MintPhase.PUBLIC, 1)
        assert ledger.total(MintPhase.WHITELIST) == 8
        assert ledger.total(MintPhase.PUBLIC) == 1

    def test_snapshot_restore(self) -> None:
        ledger = AllocationLedger()
        ledger.commit(ALICE, MintPhase.WHITELIST, 3)
        ledger.commit(BOB, MintPhase.PUBLIC, 1)
        restored = AllocationLedger.restore(ledger.snapshot())
        assert restored.minted(ALICE, MintPhase.WHITELIST) == 3
        assert restored.minted(BOB, MintPhase.PUBLIC) == 1


class TestSupply:
    def test_fits_exactly(self) -> None:
        check_capacity(9_995, 5, 10_000)

    def test_one_over(self) -> None:
        with pytest.raises(SupplyExceededError):
            check_capacity(9_996, 5, 10_000)

    def test_negative_rejected(self) -> None:
        with pytest.raises(InputValidationError):
            check_capacity(0, -1, 10_000)

    def test_remaining_capacity(self) -> None:
        assert remaining_capacity(9_000, 10_000) == 1_000
        assert remaining_capacity(12_000, 10_000) == 0
