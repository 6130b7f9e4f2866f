"""Ed25519 signing and verification helpers."""

from __future__ import annotations

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat


def public_key_from_private(private_key_bytes: bytes) -> bytes:
    private = Ed25519PrivateKey.from_private_bytes(private_key_bytes)
    return private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def sign_ed25519(message: bytes, private_key_bytes: bytes) -> bytes:
    return Ed25519PrivateKey.from_private_bytes(private_key_bytes).sign(message)


def verify_ed25519(signature: bytes, message: bytes, public_key: bytes) -> bool:
    try:
        key = Ed25519PublicKey.from_public_bytes(public_key)
        key.verify(signature, message)
    except (InvalidSignature, ValueError):
        return False
    return True
