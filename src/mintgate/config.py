"""Mint policy configuration.

Defaults are the fixed distribution constants. A JSON policy file can
restate them (and must, for a deployment: tools/check_invariants.py
fails if the shipped file drifts) and names the super-admins.

Environment (a .env file is loaded first when present):
    MINTGATE_CONFIG        path to the JSON policy file
    MINTGATE_SUPER_ADMINS  comma-separated super-admin addresses,
                           overriding the file
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from mintgate.constants import (
    MAX_SUPPLY,
    PHASE_DURATION,
    PUBLIC_MAX_PER_ADDRESS,
    TOKEN_ID,
    WHITELIST_MAX_PER_ADDRESS,
)
from mintgate.crypto.address import normalize_address

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "mint_policy.json"


@dataclass(frozen=True)
class MintPolicy:
    """Caps, phase duration and super-admins for one distribution.

    Invariants:
    - max_supply > 0
    - whitelist_cap > 0 and public_cap > 0
    - phase_duration > 0
    """
    max_supply: int = MAX_SUPPLY
    whitelist_cap: int = WHITELIST_MAX_PER_ADDRESS
    public_cap: int = PUBLIC_MAX_PER_ADDRESS
    phase_duration: timedelta = PHASE_DURATION
    token_id: int = TOKEN_ID
    super_admins: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.max_supply <= 0:
            raise ValueError("max_supply must be > 0")
        if self.whitelist_cap <= 0:
            raise ValueError("whitelist_cap must be > 0")
        if self.public_cap <= 0:
            raise ValueError("public_cap must be > 0")
        if self.phase_duration <= timedelta(0):
            raise ValueError("phase_duration must be positive")
        object.__setattr__(
            self, "super_admins", tuple(normalize_address(a) for a in self.super_admins),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MintPolicy:
        return cls(
            max_supply=int(data.get("max_supply", MAX_SUPPLY)),
            whitelist_cap=int(data.get("whitelist_max_per_address", WHITELIST_MAX_PER_ADDRESS)),
            public_cap=int(data.get("public_max_per_address", PUBLIC_MAX_PER_ADDRESS)),
            phase_duration=timedelta(
                seconds=int(data.get("phase_duration_seconds", PHASE_DURATION.total_seconds()))
            ),
            token_id=int(data.get("token_id", TOKEN_ID)),
            super_admins=tuple(data.get("super_admins") or ()),
        )

    @classmethod
    def from_config_file(cls, path: Path) -> MintPolicy:
        with path.open("r", encoding="utf-8") as handle:
            return cls.from_dict(json.load(handle))

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> MintPolicy:
        """Build the policy from the environment (after loading .env)."""
        load_dotenv(dotenv_path, override=False)

        config_path = Path(os.getenv("MINTGATE_CONFIG") or DEFAULT_CONFIG_PATH)
        data: dict[str, Any] = {}
        if config_path.exists():
            with config_path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)

        raw_admins = os.getenv("MINTGATE_SUPER_ADMINS")
        if raw_admins:
            data["super_admins"] = [a.strip() for a in raw_admins.split(",") if a.strip()]
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_supply": self.max_supply,
            "whitelist_max_per_address": self.whitelist_cap,
            "public_max_per_address": self.public_cap,
            "phase_duration_seconds": int(self.phase_duration.total_seconds()),
            "token_id": self.token_id,
            "super_admins": list(self.super_admins),
        }
