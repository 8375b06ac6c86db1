"""Sorted-pair Merkle tree and inclusion-proof verification.

Whitelist membership is proven with a Merkle inclusion proof against a
32-byte root. At every level the two child hashes are combined in
numerically sorted order (smaller value first), so a proof is a plain
list of sibling hashes with no left/right markers. This is the
convention of the off-line whitelist generator (``sortPairs: true``);
a tree built any other way yields proofs that never verify.

Leaves are keccak-256 hashes of the raw 20-byte address. The hash
function is a parameter everywhere so the primitive can be swapped in
tests without touching the tree logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Union

from web3 import Web3

from mintgate.crypto.address import AddressLike, address_bytes
from mintgate.errors import InputValidationError

Hasher = Callable[[bytes], bytes]
HashLike = Union[str, bytes]


def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest (the pre-standard SHA-3 variant used on-chain)."""
    return bytes(Web3.keccak(data))


def to_bytes32(value: HashLike) -> bytes:
    """Decode a 32-byte hash from raw bytes or a ``0x`` hex string."""
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        text = value.strip().removeprefix("0x").removeprefix("0X")
        try:
            raw = bytes.fromhex(text)
        except ValueError:
            raise InputValidationError("hash is not valid hex", details=value) from None
    else:
        raise InputValidationError("hash must be bytes or hex", details=type(value).__name__)
    if len(raw) != 32:
        raise InputValidationError("hash must be 32 bytes", details=len(raw))
    return raw


def to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def hash_pair(a: bytes, b: bytes, hasher: Hasher = keccak256) -> bytes:
    """Hash two nodes, smaller value first."""
    if a <= b:
        return hasher(a + b)
    return hasher(b + a)


def leaf_for_address(address: AddressLike, hasher: Hasher = keccak256) -> bytes:
    """Whitelist leaf for an address."""
    return hasher(address_bytes(address))


def verify_proof(
    proof: Sequence[bytes],
    root: bytes,
    leaf: bytes,
    hasher: Hasher = keccak256,
) -> bool:
    """Recompute the root from ``leaf`` and ``proof`` and compare.

    An empty proof only verifies when the leaf is the root itself
    (a single-leaf tree).
    """
    computed = leaf
    for sibling in proof:
        computed = hash_pair(computed, sibling, hasher)
    return computed == root


@dataclass(frozen=True)
class MerkleProof:
    """An inclusion proof for a single leaf."""
    leaf: bytes
    path: list[bytes] = field(default_factory=list)
    root: bytes = b""


class MerkleTree:
    """A sorted-pair Merkle tree.

    Leaves keep their insertion order. When a level has an odd number of
    nodes the last one is promoted unchanged to the next level.

    Usage:
        tree = MerkleTree()
        tree.add_leaf(leaf_for_address("0x7099..."))
        root = tree.compute_root()
        proof = tree.inclusion_proof(leaf_for_address("0x7099..."))
    """

    def __init__(self, hasher: Hasher = keccak256) -> None:
        self._hasher = hasher
        self._leaves: list[bytes] = []
        self._layers: list[list[bytes]] = []
        self._computed = False

    def add_leaf(self, leaf: bytes) -> None:
        """Add a leaf hash. Must be called before compute_root."""
        if self._computed:
            raise RuntimeError("Tree already computed. Create a new tree.")
        self._leaves.append(leaf)

    @property
    def leaf_count(self) -> int:
        return len(self._leaves)

    def compute_root(self) -> bytes:
        """Compute the root. An empty tree has no root."""
        if not self._leaves:
            raise ValueError("Cannot compute the root of an empty tree")

        current_level = list(self._leaves)
        self._layers = [current_level]
        while len(current_level) > 1:
            next_level: list[bytes] = []
            for i in range(0, len(current_level), 2):
                if i + 1 < len(current_level):
                    next_level.append(
                        hash_pair(current_level[i], current_level[i + 1], self._hasher)
                    )
                else:
                    next_level.append(current_level[i])
            self._layers.append(next_level)
            current_level = next_level

        self._computed = True
        return current_level[0]

    @property
    def root(self) -> bytes:
        if not self._computed:
            raise RuntimeError("Must call compute_root first")
        return self._layers[-1][0]

    def inclusion_proof(self, leaf: bytes) -> Optional[MerkleProof]:
        """Generate an inclusion proof for a leaf.

        Returns None if the leaf is not in the tree.
        """
        if not self._computed:
            raise RuntimeError("Must call compute_root before generating proofs")

        if leaf not in self._layers[0]:
            return None

        idx = self._layers[0].index(leaf)
        path: list[bytes] = []
        for level in self._layers[:-1]:
            sibling_idx = idx - 1 if idx % 2 else idx + 1
            if sibling_idx < len(level):
                path.append(level[sibling_idx])
            idx //= 2

        return MerkleProof(leaf=leaf, path=path, root=self.root)
