"""Token ledger contract — the external multi-token ledger the gate mints into.

The gate never tracks balances itself. It reads ``total_supply`` for the
supply cap and calls ``mint`` once every check has passed. The ledger is
assumed atomic: ``total_supply`` reflects every prior successful mint and
burn before the next gate call is evaluated.

Any ledger integrated with the gate must satisfy the TokenLedger
Protocol. InMemoryTokenLedger is the reference implementation used by
the tests and the CLI.
"""

from __future__ import annotations

from typing import Dict, Protocol, runtime_checkable

from mintgate.constants import TOKEN_ID
from mintgate.crypto.address import AddressLike, normalize_address
from mintgate.errors import InputValidationError


@runtime_checkable
class TokenLedger(Protocol):
    """Narrow view of the multi-token ledger for the distributed asset."""

    def mint(self, to: AddressLike, amount: int) -> None:
        """Issue ``amount`` units to ``to``."""
        ...

    def burn(self, account: AddressLike, amount: int) -> None:
        """Destroy ``amount`` units held by ``account``."""
        ...

    def balance_of(self, account: AddressLike, token_id: int = TOKEN_ID) -> int:
        ...

    def total_supply(self, token_id: int = TOKEN_ID) -> int:
        ...


class InMemoryTokenLedger:
    """Single-asset in-memory ledger with transfer and burn.

    Only ``token_id`` is known; queries for any other identifier are
    rejected rather than answered with zero.
    """

    def __init__(self, token_id: int = TOKEN_ID) -> None:
        self._token_id = token_id
        self._balances: Dict[str, int] = {}
        self._total_supply = 0

    @property
    def token_id(self) -> int:
        return self._token_id

    def _check_token(self, token_id: int) -> None:
        if token_id != self._token_id:
            raise InputValidationError("Unknown token identifier", details=token_id)

    @staticmethod
    def _check_amount(amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            raise InputValidationError("Amount must be a positive integer", details=amount)

    def mint(self, to: AddressLike, amount: int) -> None:
        self._check_amount(amount)
        addr = normalize_address(to)
        self._balances[addr] = self._balances.get(addr, 0) + amount
        self._total_supply += amount

    def burn(self, account: AddressLike, amount: int) -> None:
        self._check_amount(amount)
        addr = normalize_address(account)
        held = self._balances.get(addr, 0)
        if held < amount:
            raise InputValidationError(
                f"Burn amount exceeds balance ({amount} > {held})", details=addr,
            )
        self._balances[addr] = held - amount
        self._total_supply -= amount

    def transfer(self, sender: AddressLike, recipient: AddressLike, amount: int) -> None:
        self._check_amount(amount)
        src = normalize_address(sender)
        dst = normalize_address(recipient)
        held = self._balances.get(src, 0)
        if held < amount:
            raise InputValidationError(
                f"Transfer amount exceeds balance ({amount} > {held})", details=src,
            )
        self._balances[src] = held - amount
        self._balances[dst] = self._balances.get(dst, 0) + amount

    def balance_of(self, account: AddressLike, token_id: int = TOKEN_ID) -> int:
        self._check_token(token_id)
        return self._balances.get(normalize_address(account), 0)

    def total_supply(self, token_id: int = TOKEN_ID) -> int:
        self._check_token(token_id)
        return self._total_supply

    def snapshot(self) -> dict:
        return {
            "token_id": self._token_id,
            "balances": {a: b for a, b in sorted(self._balances.items()) if b},
            "total_supply": self._total_supply,
        }

    @classmethod
    def restore(cls, data: dict) -> InMemoryTokenLedger:
        ledger = cls(token_id=int(data.get("token_id", TOKEN_ID)))
        for addr, balance in (data.get("balances") or {}).items():
            ledger._balances[normalize_address(addr)] = int(balance)
        ledger._total_supply = int(data.get("total_supply", 0))
        if ledger._total_supply != sum(ledger._balances.values()):
            raise ValueError("Ledger snapshot total supply does not match balances")
        return ledger
