"""Mint state — the single owned record of everything the gate mutates.

The facade owns exactly one MintState and passes it by reference into
its checks. Nothing here is module-global, so any number of independent
gates can live in one process (tests rely on this).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from mintgate.access.roles import Role, RoleRegistry
from mintgate.allocation.ledger import AllocationLedger
from mintgate.constants import ZERO_ROOT
from mintgate.models.phase import PhaseClock


@dataclass
class MintState:
    """Phase clock, whitelist root, terminal flag, allocations and roles."""
    clock: PhaseClock = field(default_factory=PhaseClock)
    whitelist_root: bytes = ZERO_ROOT
    mint_ended: bool = False
    allocations: AllocationLedger = field(default_factory=AllocationLedger)
    roles: RoleRegistry = field(default_factory=RoleRegistry)

    def to_dict(self) -> dict[str, Any]:
        return {
            "whitelist_root": "0x" + self.whitelist_root.hex(),
            "whitelist_start_utc": _iso(self.clock.whitelist_start_utc),
            "public_start_utc": _iso(self.clock.public_start_utc),
            "phase_duration_seconds": int(self.clock.phase_duration.total_seconds()),
            "mint_ended": self.mint_ended,
            "allocations": self.allocations.snapshot(),
            "super_admins": self.roles.members(Role.SUPER_ADMIN),
            "admins": self.roles.members(Role.ADMIN),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MintState:
        root_hex = str(data.get("whitelist_root") or "").removeprefix("0x")
        return cls(
            clock=PhaseClock(
                whitelist_start_utc=_parse(data.get("whitelist_start_utc")),
                public_start_utc=_parse(data.get("public_start_utc")),
                phase_duration=timedelta(seconds=int(data["phase_duration_seconds"])),
            ),
            whitelist_root=bytes.fromhex(root_hex) if root_hex else ZERO_ROOT,
            mint_ended=bool(data.get("mint_ended", False)),
            allocations=AllocationLedger.restore(data.get("allocations") or {}),
            roles=RoleRegistry.restore(
                data.get("super_admins") or [], data.get("admins") or [],
            ),
        )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None
