"""Cryptographic primitives — address codec, sorted-pair Merkle trees, whitelist snapshots."""

from mintgate.crypto.address import address_bytes, normalize_address
from mintgate.crypto.merkle import MerkleTree, keccak256, leaf_for_address, verify_proof
from mintgate.crypto.whitelist import WhitelistSnapshot, build_whitelist

__all__ = [
    "MerkleTree",
    "WhitelistSnapshot",
    "address_bytes",
    "build_whitelist",
    "keccak256",
    "leaf_for_address",
    "normalize_address",
    "verify_proof",
]
