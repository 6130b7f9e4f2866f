"""Signing and verification key handling."""

from __future__ import annotations

import getpass
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat

from chain_cli.crypto.ed25519 import public_key_from_private
from chain_cli.crypto.hashing import blake2b_224, decode_b64, encode_b64
from chain_cli.errors import (
    KeyDeserializationError,
    KeyFileNotFoundError,
    KeyFileReadError,
    PassphraseError,
)

if TYPE_CHECKING:
    from chain_cli.ops import CLIOps

KEY_LENGTH = 32


class PasswordRequirement(str, Enum):
    GET_PASSWORD = "get-password"
    EMPTY_PASSWORD = "empty-password"


@dataclass(frozen=True)
class VerificationKey:
    public_key_bytes: bytes

    def __post_init__(self) -> None:
        if len(self.public_key_bytes) != KEY_LENGTH:
            raise KeyDeserializationError("verification key must be 32 bytes")

    @property
    def public_key_b64(self) -> str:
        return encode_b64(self.public_key_bytes)

    @property
    def key_hash_hex(self) -> str:
        return blake2b_224(self.public_key_bytes).hex()


@dataclass(frozen=True)
class SigningKey:
    private_key_bytes: bytes = field(repr=False)
    passphrase: bytes | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if len(self.private_key_bytes) != KEY_LENGTH:
            raise KeyDeserializationError("signing key must be 32 bytes")

    def __str__(self) -> str:
        return "SigningKey(<redacted>)"

    @property
    def encrypted(self) -> bool:
        return bool(self.passphrase)


def derive_verification_key(signing_key: SigningKey) -> VerificationKey:
    return VerificationKey(public_key_from_private(signing_key.private_key_bytes))


def keygen(passphrase: bytes | None) -> SigningKey:
    private = Ed25519PrivateKey.generate()
    private_key_bytes = private.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    return SigningKey(private_key_bytes=private_key_bytes, passphrase=passphrase or None)


def get_passphrase(
    prompt: str,
    requirement: PasswordRequirement,
    *,
    reader: Callable[[str], str] = getpass.getpass,
) -> bytes | None:
    """Obtain a key passphrase according to an explicit policy.

    ``EMPTY_PASSWORD`` never prompts. ``GET_PASSWORD`` prompts twice and
    requires both entries to match; an empty entry means no passphrase.
    """
    if requirement is PasswordRequirement.EMPTY_PASSWORD:
        return None
    first = reader(prompt)
    second = reader("Repeat the passphrase: ")
    if first != second:
        raise PassphraseError("passphrases do not match")
    return first.encode("utf-8") or None


def format_full_verification_key(verification_key: VerificationKey) -> str:
    return verification_key.public_key_b64 + "\n"


def pretty_public_key(verification_key: VerificationKey) -> str:
    return "\n".join(
        (
            f"public key hash: {verification_key.key_hash_hex}",
            f"public key (base64): {verification_key.public_key_b64}",
            f"public key (base16): {verification_key.public_key_bytes.hex()}",
        )
    )


def _read_key_bytes(path: str | Path) -> bytes:
    key_path = Path(path)
    try:
        return key_path.read_bytes()
    except FileNotFoundError as exc:
        raise KeyFileNotFoundError(str(key_path)) from exc
    except OSError as exc:
        raise KeyFileReadError(str(key_path), exc.strerror or str(exc)) from exc


def read_verification_key(path: str | Path) -> VerificationKey:
    raw = _read_key_bytes(path)
    try:
        public_key_bytes = decode_b64(raw.decode("ascii").strip())
    except (UnicodeDecodeError, ValueError) as exc:
        raise KeyDeserializationError(f"invalid verification key file: {path}") from exc
    return VerificationKey(public_key_bytes)


def read_signing_key(
    ops: CLIOps,
    path: str | Path,
    *,
    passphrase: bytes | None = None,
) -> SigningKey:
    raw = _read_key_bytes(path)
    return ops.deserialise_signing_key(raw, passphrase=passphrase)
