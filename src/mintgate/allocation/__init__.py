"""Allocation accounting — per-address phase caps and the global supply cap."""

from mintgate.allocation.ledger import AllocationLedger, reserve
from mintgate.allocation.supply import check_capacity, remaining_capacity

__all__ = ["AllocationLedger", "check_capacity", "remaining_capacity", "reserve"]
