"""Account address codec.

Addresses are 20-byte account identifiers. They arrive as ``0x`` hex
strings in any case (or as raw bytes) and are normalised to their EIP-55
checksum form, which is the canonical key for every per-address map.
Mixed-case input must carry a valid checksum.

The canonical byte encoding used for whitelist leaves is the raw
20 bytes, the same encoding the off-line tree generator hashes.
"""

from __future__ import annotations

from typing import Union

from web3 import Web3

from mintgate.errors import InputValidationError

AddressLike = Union[str, bytes]


def normalize_address(value: AddressLike) -> str:
    """Return the checksum form of an address.

    Raises InputValidationError for anything that is not a 20-byte address.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise InputValidationError(
                "address must be 20 bytes", details=len(value),
            )
        return Web3.to_checksum_address("0x" + bytes(value).hex())
    if not isinstance(value, str):
        raise InputValidationError("address must be a hex string", details=type(value).__name__)
    candidate = value.strip()
    if not Web3.is_address(candidate):
        raise InputValidationError("not a valid address", details=value)
    return Web3.to_checksum_address(candidate)


def address_bytes(value: AddressLike) -> bytes:
    """Canonical 20-byte encoding of an address."""
    return bytes.fromhex(normalize_address(value)[2:])
