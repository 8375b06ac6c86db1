"""Whitelist snapshots — the off-line side of the Merkle whitelist.

A snapshot is the tree root plus a proof for every member. It is what
gets published to whitelisted users and what an admin installs with
``set_whitelist_root``. The JSON layout matches the data file the
distribution has always shipped:

    {
      "merkleRoot": "0x...",
      "totalAddresses": 5,
      "whitelist": ["0x...", ...],
      "proofs": {"0x...": ["0x...", ...], ...}
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from mintgate.crypto.address import AddressLike, normalize_address
from mintgate.crypto.merkle import (
    Hasher,
    MerkleTree,
    keccak256,
    leaf_for_address,
    to_bytes32,
    to_hex,
    verify_proof,
)


@dataclass(frozen=True)
class WhitelistSnapshot:
    """Root and per-address proofs for one whitelist."""
    root: bytes
    addresses: list[str] = field(default_factory=list)
    proofs: dict[str, list[bytes]] = field(default_factory=dict)

    def proof_for(self, address: AddressLike) -> Optional[list[bytes]]:
        return self.proofs.get(normalize_address(address))

    def verify_all(self, hasher: Hasher = keccak256) -> bool:
        """True if every stored proof verifies against the stored root."""
        return all(
            verify_proof(self.proofs[a], self.root, leaf_for_address(a, hasher), hasher)
            for a in self.addresses
        )

    def to_dict(self) -> dict:
        return {
            "merkleRoot": to_hex(self.root),
            "totalAddresses": len(self.addresses),
            "whitelist": list(self.addresses),
            "proofs": {a: [to_hex(p) for p in self.proofs[a]] for a in self.addresses},
        }

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")

    @staticmethod
    def from_dict(data: dict) -> WhitelistSnapshot:
        addresses = [normalize_address(a) for a in data["whitelist"]]
        raw_proofs = {normalize_address(a): p for a, p in data["proofs"].items()}
        return WhitelistSnapshot(
            root=to_bytes32(data["merkleRoot"]),
            addresses=addresses,
            proofs={a: [to_bytes32(p) for p in raw_proofs.get(a, [])] for a in addresses},
        )

    @staticmethod
    def load(path: Path) -> WhitelistSnapshot:
        with path.open("r", encoding="utf-8") as f:
            return WhitelistSnapshot.from_dict(json.load(f))


def build_whitelist(
    addresses: Iterable[AddressLike],
    hasher: Hasher = keccak256,
) -> WhitelistSnapshot:
    """Build the tree for a set of addresses and collect every proof.

    Duplicates (in any letter case) are dropped; first occurrence wins
    the position in the tree.
    """
    members: list[str] = []
    seen: set[str] = set()
    for raw in addresses:
        address = normalize_address(raw)
        if address not in seen:
            seen.add(address)
            members.append(address)
    if not members:
        raise ValueError("Whitelist must contain at least one address")

    tree = MerkleTree(hasher)
    for address in members:
        tree.add_leaf(leaf_for_address(address, hasher))
    root = tree.compute_root()

    proofs: dict[str, list[bytes]] = {}
    for address in members:
        proof = tree.inclusion_proof(leaf_for_address(address, hasher))
        if proof is None:
            raise RuntimeError(f"No inclusion proof for whitelist member {address}")
        proofs[address] = list(proof.path)

    return WhitelistSnapshot(root=root, addresses=members, proofs=proofs)
