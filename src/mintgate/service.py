"""MintGate — unified facade for the distribution gate.

This is the primary interface for programmatic access. It composes:
- Role checks (super-admin / admin capability map)
- Phase derivation and the two one-way phase starts
- Per-address per-phase allocation caps
- The global supply cap against the external token ledger
- Merkle whitelist proofs

Every mutating call runs its checks in a fixed order, short-circuiting
on the first failure, and only then writes: allocation counter, ledger
mint, event append. A failed ledger mint rolls the counter back and a
failed event append undoes the whole change, so no call ever leaves a
partial effect behind. Failures surface as distinct
MintGateError subclasses; nothing is retried.

Check order for whitelist_mint:
    1. mint not permanently ended          TerminalStateError
    2. current phase is WHITELIST          PhaseStateError
    3. amount > 0                          InputValidationError
    4. allocation fits the whitelist cap   AllocationExceededError
    5. supply fits the global cap          SupplyExceededError
    6. Merkle proof verifies               InvalidProofError

public_mint is the same with PUBLIC, the public cap and no proof.
admin_mint checks role, terminal flag, amount and supply only.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Optional, Sequence

from mintgate.access.roles import Role, RoleRegistry
from mintgate.allocation.supply import check_capacity, remaining_capacity
from mintgate.config import MintPolicy
from mintgate.constants import MAX_UINT256, ZERO_ROOT
from mintgate.crypto.address import AddressLike, normalize_address
from mintgate.crypto.merkle import (
    HashLike,
    leaf_for_address,
    to_bytes32,
    to_hex,
    verify_proof,
)
from mintgate.errors import (
    InputValidationError,
    InvalidProofError,
    MintGateError,
    PhaseStateError,
    TerminalStateError,
)
from mintgate.logging_setup import log_event
from mintgate.models.phase import MintPhase, PhaseClock
from mintgate.persistence.event_log import EventKind, EventLog, EventRecord
from mintgate.phase.controller import PhaseController
from mintgate.state import MintState
from mintgate.token.ledger import InMemoryTokenLedger, TokenLedger

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise InputValidationError("Amount must be an integer", details=amount)
    if amount <= 0:
        raise InputValidationError("Amount must be positive", details=amount)
    if amount > MAX_UINT256:
        raise InputValidationError("Amount out of uint256 range", details=amount)


def _decode_proof(proof: Sequence[HashLike]) -> Optional[list[bytes]]:
    """Decode proof nodes; None if any node is malformed."""
    try:
        return [to_bytes32(node) for node in proof]
    except InputValidationError:
        return None


class MintGate:
    """Eligibility-and-allocation gate for a fixed-supply, multi-phase mint.

    Usage:
        policy = MintPolicy(super_admins=(owner,))
        gate = MintGate(policy)

        gate.set_whitelist_root(owner, snapshot.root)
        gate.start_whitelist_phase(owner)
        gate.whitelist_mint(alice, 3, snapshot.proof_for(alice))

        # two days later
        gate.start_public_phase(owner)
        gate.public_mint(bob, 1)

        # once both windows have closed
        gate.end_mint_permanently(owner)

    Every operation takes an optional ``now``; without it the injected
    clock is read. The gate never advances time itself.
    """

    def __init__(
        self,
        policy: Optional[MintPolicy] = None,
        ledger: Optional[TokenLedger] = None,
        event_log: Optional[EventLog] = None,
        state: Optional[MintState] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._policy = policy or MintPolicy()
        self._ledger = ledger if ledger is not None else InMemoryTokenLedger(self._policy.token_id)
        self._events = event_log if event_log is not None else EventLog()
        self._state = state if state is not None else MintState(
            clock=PhaseClock(phase_duration=self._policy.phase_duration),
            roles=RoleRegistry(self._policy.super_admins),
        )
        self._phases = PhaseController()
        self._clock = clock

    @property
    def policy(self) -> MintPolicy:
        return self._policy

    @property
    def ledger(self) -> TokenLedger:
        return self._ledger

    @property
    def event_log(self) -> EventLog:
        return self._events

    @property
    def state(self) -> MintState:
        return self._state

    # ------------------------------------------------------------------
    # Admin: root and phases
    # ------------------------------------------------------------------

    def set_whitelist_root(
        self, caller: AddressLike, root: HashLike, now: Optional[datetime] = None,
    ) -> None:
        """Install or replace the whitelist Merkle root."""
        with self._operation("set_whitelist_root", caller):
            self._state.roles.require(Role.ADMIN, caller)
            new_root = to_bytes32(root)
            if new_root == ZERO_ROOT:
                raise InputValidationError("Whitelist root must be non-zero")

            previous = self._state.whitelist_root

            def _rollback() -> None:
                self._state.whitelist_root = previous

            self._state.whitelist_root = new_root
            self._emit(
                EventKind.ROOT_UPDATED, caller,
                {"root": to_hex(new_root), "previous_root": to_hex(previous)},
                self._now(now), _rollback,
            )

    def start_whitelist_phase(
        self, caller: AddressLike, now: Optional[datetime] = None,
    ) -> datetime:
        """Open the whitelist window at ``now``. Returns the recorded start."""
        with self._operation("start_whitelist_phase", caller):
            self._state.roles.require(Role.ADMIN, caller)
            now = self._now(now)
            previous = self._state.clock
            self._state.clock = self._phases.start_whitelist(
                previous, self._state.whitelist_root, now,
            )
            self._emit(
                EventKind.WHITELIST_PHASE_STARTED, caller,
                {"start_utc": now.isoformat()}, now,
                lambda: setattr(self._state, "clock", previous),
            )
            return now

    def start_public_phase(
        self, caller: AddressLike, now: Optional[datetime] = None,
    ) -> datetime:
        """Open the public window at ``now``. Returns the recorded start."""
        with self._operation("start_public_phase", caller):
            self._state.roles.require(Role.ADMIN, caller)
            if self._state.mint_ended:
                raise TerminalStateError("Mint permanently ended")
            now = self._now(now)
            previous = self._state.clock
            self._state.clock = self._phases.start_public(previous, now)
            self._emit(
                EventKind.PUBLIC_PHASE_STARTED, caller,
                {"start_utc": now.isoformat()}, now,
                lambda: setattr(self._state, "clock", previous),
            )
            return now

    def end_mint_permanently(
        self, caller: AddressLike, now: Optional[datetime] = None,
    ) -> int:
        """Foreclose every future mint. Returns the unissued supply.

        Only flips the terminal flag: no tokens are burned and no balance
        changes. The notification carries the supply that will now never
        be issued.
        """
        with self._operation("end_mint_permanently", caller):
            self._state.roles.require(Role.ADMIN, caller)
            if self._state.mint_ended:
                raise TerminalStateError("Mint already permanently ended")
            now = self._now(now)
            phase = self._phases.phase(self._state.clock, now)
            if phase != MintPhase.ENDED:
                raise PhaseStateError(
                    f"Cannot end mint during phase {phase.value}", details=phase.value,
                )

            unissued = remaining_capacity(self._total_supply(), self._policy.max_supply)
            self._state.mint_ended = True
            self._emit(
                EventKind.MINT_PERMANENTLY_ENDED, caller,
                {"remaining_supply": unissued}, now,
                lambda: setattr(self._state, "mint_ended", False),
            )
            return unissued

    # ------------------------------------------------------------------
    # Admin: roles
    # ------------------------------------------------------------------

    def add_admin(
        self, caller: AddressLike, account: AddressLike, now: Optional[datetime] = None,
    ) -> bool:
        """Grant admin. Returns False (and emits nothing) if already admin."""
        with self._operation("add_admin", caller):
            added = self._state.roles.add_admin(caller, account)
            if added:
                self._emit(
                    EventKind.ADMIN_ADDED, caller,
                    {"account": normalize_address(account)}, self._now(now),
                    lambda: self._state.roles.remove_admin(caller, account),
                )
            return added

    def remove_admin(
        self, caller: AddressLike, account: AddressLike, now: Optional[datetime] = None,
    ) -> bool:
        """Revoke admin. Returns False (and emits nothing) if not an admin."""
        with self._operation("remove_admin", caller):
            removed = self._state.roles.remove_admin(caller, account)
            if removed:
                self._emit(
                    EventKind.ADMIN_REMOVED, caller,
                    {"account": normalize_address(account)}, self._now(now),
                    lambda: self._state.roles.add_admin(caller, account),
                )
            return removed

    # ------------------------------------------------------------------
    # Mint paths
    # ------------------------------------------------------------------

    def whitelist_mint(
        self,
        caller: AddressLike,
        amount: int,
        proof: Sequence[HashLike],
        now: Optional[datetime] = None,
    ) -> int:
        """Mint to a whitelisted caller. Returns the caller's new whitelist total."""
        with self._operation("whitelist_mint", caller):
            minter = normalize_address(caller)
            now = self._now(now)
            self._require_phase(MintPhase.WHITELIST, now)
            _require_amount(amount)
            new_total = self._state.allocations.reserve(
                minter, MintPhase.WHITELIST, amount, self._policy.whitelist_cap,
            )
            check_capacity(self._total_supply(), amount, self._policy.max_supply)

            nodes = _decode_proof(proof)
            if nodes is None or not verify_proof(
                nodes, self._state.whitelist_root, leaf_for_address(minter),
            ):
                raise InvalidProofError("Invalid whitelist proof", details=minter)

            self._apply_mint(minter, MintPhase.WHITELIST, amount, new_total, now)
            return new_total

    def public_mint(
        self, caller: AddressLike, amount: int, now: Optional[datetime] = None,
    ) -> int:
        """Mint to any caller during the public window. Returns the new public total."""
        with self._operation("public_mint", caller):
            minter = normalize_address(caller)
            now = self._now(now)
            self._require_phase(MintPhase.PUBLIC, now)
            _require_amount(amount)
            new_total = self._state.allocations.reserve(
                minter, MintPhase.PUBLIC, amount, self._policy.public_cap,
            )
            check_capacity(self._total_supply(), amount, self._policy.max_supply)

            self._apply_mint(minter, MintPhase.PUBLIC, amount, new_total, now)
            return new_total

    def admin_mint(
        self,
        caller: AddressLike,
        to: AddressLike,
        amount: int,
        now: Optional[datetime] = None,
    ) -> None:
        """Unrestricted administrative mint (airdrops, seeding).

        Exempt from phase, allocation and proof checks; never from the
        supply cap or the terminal flag.
        """
        with self._operation("admin_mint", caller):
            self._state.roles.require(Role.ADMIN, caller)
            if self._state.mint_ended:
                raise TerminalStateError("Mint permanently ended")
            _require_amount(amount)
            recipient = normalize_address(to)
            check_capacity(self._total_supply(), amount, self._policy.max_supply)

            self._ledger.mint(recipient, amount)
            log_event(
                logger, "admin_mint",
                caller=normalize_address(caller), to=recipient, amount=amount,
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_admin(self, account: AddressLike) -> bool:
        return self._state.roles.is_admin(account)

    def is_super_admin(self, account: AddressLike) -> bool:
        return self._state.roles.is_super_admin(account)

    def current_phase(self, now: Optional[datetime] = None) -> MintPhase:
        return self._phases.phase(self._state.clock, self._now(now), self._state.mint_ended)

    def remaining_supply(self) -> int:
        """Units still mintable; zero once the mint is permanently ended."""
        if self._state.mint_ended:
            return 0
        return remaining_capacity(self._total_supply(), self._policy.max_supply)

    def whitelist_minted(self, account: AddressLike) -> int:
        return self._state.allocations.minted(account, MintPhase.WHITELIST)

    def public_minted(self, account: AddressLike) -> int:
        return self._state.allocations.minted(account, MintPhase.PUBLIC)

    def whitelist_remaining_for(self, account: AddressLike) -> int:
        return self._state.allocations.remaining(
            account, MintPhase.WHITELIST, self._policy.whitelist_cap,
        )

    def public_remaining_for(self, account: AddressLike) -> int:
        return self._state.allocations.remaining(
            account, MintPhase.PUBLIC, self._policy.public_cap,
        )

    def verify_whitelist(
        self,
        accounts: Sequence[AddressLike],
        proofs: Sequence[Sequence[HashLike]],
    ) -> list[bool]:
        """Check many proofs against the stored root. Read-only."""
        if len(accounts) != len(proofs):
            raise InputValidationError(
                "accounts and proofs differ in length",
                details=(len(accounts), len(proofs)),
            )
        root = self._state.whitelist_root
        results: list[bool] = []
        for account, proof in zip(accounts, proofs):
            nodes = _decode_proof(proof)
            results.append(
                root != ZERO_ROOT
                and nodes is not None
                and verify_proof(nodes, root, leaf_for_address(account))
            )
        return results

    def status(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Return a summary of the gate."""
        now = self._now(now)
        clock = self._state.clock
        return {
            "phase": self.current_phase(now).value,
            "now_utc": now.isoformat(),
            "whitelist_root": to_hex(self._state.whitelist_root),
            "whitelist_start_utc": _iso(clock.whitelist_start_utc),
            "whitelist_end_utc": _iso(clock.whitelist_end_utc),
            "public_start_utc": _iso(clock.public_start_utc),
            "public_end_utc": _iso(clock.public_end_utc),
            "mint_ended": self._state.mint_ended,
            "supply": {
                "max": self._policy.max_supply,
                "total": self._total_supply(),
                "remaining": self.remaining_supply(),
            },
            "minted": {
                "whitelist": self._state.allocations.total(MintPhase.WHITELIST),
                "public": self._state.allocations.total(MintPhase.PUBLIC),
            },
            "super_admins": self._state.roles.members(Role.SUPER_ADMIN),
            "admins": self._state.roles.members(Role.ADMIN),
            "events": self._events.count,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _now(self, now: Optional[datetime]) -> datetime:
        """Resolve the operation time as an aware UTC datetime.

        A naive ``now`` is taken to be UTC.
        """
        return _as_utc(now if now is not None else self._clock())

    def _total_supply(self) -> int:
        return self._ledger.total_supply(self._policy.token_id)

    def _require_phase(self, expected: MintPhase, now: datetime) -> None:
        if self._state.mint_ended:
            raise TerminalStateError("Mint permanently ended")
        phase = self.current_phase(now)
        if phase != expected:
            raise PhaseStateError(
                f"Mint requires phase {expected.value}, current phase is {phase.value}",
                details=phase.value,
            )

    def _apply_mint(
        self,
        minter: str,
        phase: MintPhase,
        amount: int,
        new_total: int,
        now: datetime,
    ) -> None:
        """Write the allocation, mint on the ledger, then emit.

        Only called once every check has passed. If the ledger mint
        fails the counter is restored; if the event cannot be recorded
        the minted units are burned again as well.
        """
        kind = (
            EventKind.WHITELIST_MINT if phase == MintPhase.WHITELIST else EventKind.PUBLIC_MINT
        )
        previous = self._state.allocations.minted(minter, phase)
        self._state.allocations.commit(minter, phase, new_total)
        try:
            self._ledger.mint(minter, amount)
        except Exception:
            self._state.allocations.revert(minter, phase, previous)
            raise

        def _rollback() -> None:
            self._ledger.burn(minter, amount)
            self._state.allocations.revert(minter, phase, previous)

        self._emit(kind, minter, {"minter": minter, "amount": amount}, now, _rollback)

    def _emit(
        self,
        kind: EventKind,
        actor: AddressLike,
        payload: dict[str, Any],
        now: datetime,
        rollback: Callable[[], Any],
    ) -> EventRecord:
        """Record the event for a change already applied.

        The change is undone through ``rollback`` when the append fails,
        so a call either has its full effect or none.
        """
        try:
            actor_id = normalize_address(actor)
            event = EventRecord.create(
                event_id=self._events.next_event_id(kind),
                event_kind=kind,
                actor_id=actor_id,
                payload=payload,
                timestamp_utc=now,
            )
            self._events.append(event)
        except Exception:
            rollback()
            raise
        log_event(logger, kind.value, actor=actor_id, **payload)
        return event

    @contextmanager
    def _operation(self, name: str, caller: AddressLike) -> Iterator[None]:
        """Log rejections with their code, then let them propagate."""
        try:
            yield
        except MintGateError as e:
            log_event(
                logger, "rejected",
                operation=name, caller=_caller_label(caller), code=e.code, reason=e.reason,
            )
            raise


def _caller_label(caller: AddressLike) -> str:
    """Checksum form of the caller for logs, or its repr if it does not parse."""
    try:
        return normalize_address(caller)
    except InputValidationError:
        if isinstance(caller, (bytes, bytearray)):
            return "0x" + bytes(caller).hex()
        return str(caller)
