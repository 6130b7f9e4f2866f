"""Hashing and canonical encoding helpers.

Every signed or hashed document is encoded as canonical JSON:
- keys sorted, no insignificant whitespace, UTF-8
- floats rejected (amounts and indices are integers)
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json


def reject_floats(value: object) -> None:
    if isinstance(value, float):
        raise ValueError("floats are not allowed")
    if isinstance(value, dict):
        for nested_value in value.values():
            reject_floats(nested_value)
    elif isinstance(value, (list, tuple)):
        for nested_value in value:
            reject_floats(nested_value)


def canonical_bytes(payload: object) -> bytes:
    reject_floats(payload)
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


def blake2b_224(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=28).digest()


def encode_b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_b64(data_b64: str) -> bytes:
    try:
        return base64.b64decode(data_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("invalid base64") from exc
