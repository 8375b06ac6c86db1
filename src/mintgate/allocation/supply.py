"""Supply guard — the global fixed cap.

Checked on every mint path (whitelist, public and admin). The admin path
skips phase and allocation checks but never this one.
"""

from __future__ import annotations

from mintgate.constants import MAX_UINT256
from mintgate.errors import InputValidationError, SupplyExceededError


def check_capacity(current_total_supply: int, amount: int, max_supply: int) -> None:
    """Raise SupplyExceededError if the mint would pass max_supply."""
    if amount < 0 or current_total_supply < 0:
        raise InputValidationError("Supply arithmetic on negative value")
    total = current_total_supply + amount
    if total > MAX_UINT256 or total > max_supply:
        raise SupplyExceededError(
            f"Supply exceeded: {current_total_supply} + {amount} > {max_supply}",
        )


def remaining_capacity(current_total_supply: int, max_supply: int) -> int:
    return max(max_supply - current_total_supply, 0)
