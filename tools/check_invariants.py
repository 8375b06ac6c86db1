#!/usr/bin/env python3
"""Mint policy invariant checks against the shipped config artifact.

The distribution constants are part of the external contract: a policy
file that restates them differently is a broken deployment, not a
tuning choice.
"""

import json
import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]
POLICY_PATH = ROOT / "config" / "mint_policy.json"

sys.path.insert(0, str(ROOT / "src"))

from mintgate.constants import (  # noqa: E402
    MAX_SUPPLY,
    PHASE_DURATION,
    PUBLIC_MAX_PER_ADDRESS,
    WHITELIST_MAX_PER_ADDRESS,
)
from mintgate.crypto.address import normalize_address  # noqa: E402
from mintgate.errors import InputValidationError  # noqa: E402


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def check(policy_path: Path = POLICY_PATH) -> int:
    policy = load_json(policy_path)
    errors: list[str] = []

    # --- Fixed distribution constants ---
    if policy.get("max_supply") != MAX_SUPPLY:
        errors.append(f"max_supply must be {MAX_SUPPLY}, got {policy.get('max_supply')}")
    if policy.get("whitelist_max_per_address") != WHITELIST_MAX_PER_ADDRESS:
        errors.append(
            f"whitelist_max_per_address must be {WHITELIST_MAX_PER_ADDRESS}, "
            f"got {policy.get('whitelist_max_per_address')}"
        )
    if policy.get("public_max_per_address") != PUBLIC_MAX_PER_ADDRESS:
        errors.append(
            f"public_max_per_address must be {PUBLIC_MAX_PER_ADDRESS}, "
            f"got {policy.get('public_max_per_address')}"
        )
    expected_seconds = int(PHASE_DURATION.total_seconds())
    if policy.get("phase_duration_seconds") != expected_seconds:
        errors.append(
            f"phase_duration_seconds must be {expected_seconds}, "
            f"got {policy.get('phase_duration_seconds')}"
        )

    # --- Roles ---
    super_admins = policy.get("super_admins") or []
    if not super_admins:
        errors.append("at least one super_admin is required")
    for raw in super_admins:
        try:
            normalize_address(raw)
        except InputValidationError:
            errors.append(f"super_admin is not a valid address: {raw}")

    if errors:
        print("Invariant check FAILED:")
        for err in errors:
            print(f"  - {err}")
        return 1

    print("All mint policy invariants hold.")
    return 0


if __name__ == "__main__":
    raise SystemExit(check())
