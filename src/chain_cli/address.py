"""Verification-key addresses.

Text format:
- addr_<lowercase-base32(payload || checksum)>, padding stripped
- payload is root(28) || tag(1) [|| network_magic(4, big-endian) when tag == 1]
- checksum is the first 4 bytes of blake2b-256(payload)
- root is blake2b-224 over the raw verification key
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from chain_cli.crypto.hashing import blake2b_224, blake2b_256
from chain_cli.keys import VerificationKey

ADDRESS_PREFIX = "addr_"
ROOT_LENGTH = 28
CHECKSUM_LENGTH = 4
_TAG_MAINNET = 0
_TAG_NETWORK_MAGIC = 1


@dataclass(frozen=True)
class Address:
    root: bytes
    network_magic: int | None = None

    def __post_init__(self) -> None:
        if len(self.root) != ROOT_LENGTH:
            raise ValueError("address root must be 28 bytes")
        if self.network_magic is not None and not 0 <= self.network_magic < 2**32:
            raise ValueError("network magic must fit in 32 bits")

    def payload_bytes(self) -> bytes:
        if self.network_magic is None:
            return self.root + bytes([_TAG_MAINNET])
        return self.root + bytes([_TAG_NETWORK_MAGIC]) + self.network_magic.to_bytes(4, "big")

    def to_text(self) -> str:
        payload = self.payload_bytes()
        checksum = blake2b_256(payload)[:CHECKSUM_LENGTH]
        encoded = base64.b32encode(payload + checksum).decode("ascii").rstrip("=").lower()
        return ADDRESS_PREFIX + encoded

    @classmethod
    def from_text(cls, text: str) -> Address:
        value = text.strip()
        if not value.startswith(ADDRESS_PREFIX):
            raise ValueError(f"address must start with {ADDRESS_PREFIX!r}")
        body = value[len(ADDRESS_PREFIX):].upper()
        body += "=" * (-len(body) % 8)
        try:
            raw = base64.b32decode(body)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("address is not valid base32") from exc

        payload, checksum = raw[:-CHECKSUM_LENGTH], raw[-CHECKSUM_LENGTH:]
        if blake2b_256(payload)[:CHECKSUM_LENGTH] != checksum:
            raise ValueError("address checksum mismatch")

        root, rest = payload[:ROOT_LENGTH], payload[ROOT_LENGTH:]
        if rest == bytes([_TAG_MAINNET]):
            return cls(root=root)
        if len(rest) == 5 and rest[0] == _TAG_NETWORK_MAGIC:
            return cls(root=root, network_magic=int.from_bytes(rest[1:], "big"))
        raise ValueError("address has an unknown network tag")

    def __str__(self) -> str:
        return self.to_text()


def make_verification_key_address(
    network_magic: int | None,
    verification_key: VerificationKey,
) -> Address:
    return Address(root=blake2b_224(verification_key.public_key_bytes), network_magic=network_magic)


def pretty_address(address: Address) -> str:
    network = "mainnet" if address.network_magic is None else f"testnet {address.network_magic}"
    return f"{address.to_text()} ({network})"


def format_hash_hex(digest: bytes) -> str:
    return digest.hex()
