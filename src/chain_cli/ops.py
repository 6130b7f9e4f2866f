"""Protocol-specific capability providers.

A ``CLIOps`` bundles the operations whose encoding differs between protocol
versions: signing key persistence, delegation certificate persistence and
transaction submission. Providers are resolved once per command through
``decide_cli_ops``.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    NoEncryption,
    PrivateFormat,
    load_pem_private_key,
)

from chain_cli.client import SubmissionClient
from chain_cli.crypto.hashing import canonical_bytes, decode_b64, encode_b64
from chain_cli.errors import (
    EncryptedKeyError,
    KeyDeserializationError,
    PassphraseError,
    UnsupportedProtocolError,
)
from chain_cli.keys import SigningKey
from chain_cli.topology import TopologyInfo, resolve_node
from chain_cli.tx import TxAux, serialise_tx_aux

if TYPE_CHECKING:
    from chain_cli.certificates import DelegationCertificate
    from chain_cli.config import ChainConfig


class Protocol(str, Enum):
    BYRON_LEGACY = "byron-legacy"
    BFT = "bft"
    MOCK_PBFT = "mock-pbft"
    REAL_PBFT = "real-pbft"
    PRAOS = "praos"


LEGACY_KEY_FORMAT = "byron-legacy-signing-key"


@dataclass(frozen=True)
class CLIOps(ABC):
    protocol: Protocol
    tx_sign_tag: str
    submit_path: str

    @abstractmethod
    def serialise_signing_key(self, signing_key: SigningKey) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def deserialise_signing_key(self, raw: bytes, *, passphrase: bytes | None = None) -> SigningKey:
        raise NotImplementedError

    @abstractmethod
    def serialise_delegation_certificate(self, certificate: DelegationCertificate) -> bytes:
        raise NotImplementedError

    def submit_transaction(
        self,
        topology: TopologyInfo,
        chain_config: ChainConfig,
        tx_aux: TxAux,
    ) -> dict:
        node = resolve_node(topology)
        client = SubmissionClient(
            base_url=node.base_url,
            timeout=chain_config.submit_timeout,
            retries=chain_config.submit_retries,
        )
        return client.submit_tx(
            self.submit_path,
            serialise_tx_aux(tx_aux),
            protocol_magic=chain_config.protocol_magic,
        )


@dataclass(frozen=True)
class RealPBFTOps(CLIOps):
    protocol: Protocol = Protocol.REAL_PBFT
    tx_sign_tag: str = "chain-cli/SignTx"
    submit_path: str = "/api/submit/tx"

    def serialise_signing_key(self, signing_key: SigningKey) -> bytes:
        private = Ed25519PrivateKey.from_private_bytes(signing_key.private_key_bytes)
        encryption = (
            BestAvailableEncryption(signing_key.passphrase)
            if signing_key.passphrase
            else NoEncryption()
        )
        return private.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, encryption)

    def deserialise_signing_key(self, raw: bytes, *, passphrase: bytes | None = None) -> SigningKey:
        if passphrase is None and b"ENCRYPTED PRIVATE KEY" in raw:
            raise EncryptedKeyError("signing key is encrypted; a passphrase is required")
        try:
            private = load_pem_private_key(raw, password=passphrase)
        except (TypeError, ValueError) as exc:
            raise KeyDeserializationError(f"invalid signing key: {exc}") from exc
        if not isinstance(private, Ed25519PrivateKey):
            raise KeyDeserializationError("signing key must be an Ed25519 key")
        private_key_bytes = private.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
        return SigningKey(private_key_bytes=private_key_bytes, passphrase=passphrase)

    def serialise_delegation_certificate(self, certificate: DelegationCertificate) -> bytes:
        payload = certificate.model_dump(mode="json")
        return (json.dumps(payload, sort_keys=True, indent=2) + "\n").encode("utf-8")


@dataclass(frozen=True)
class ByronLegacyOps(CLIOps):
    protocol: Protocol = Protocol.BYRON_LEGACY
    tx_sign_tag: str = "chain-cli/SignTx/legacy"
    submit_path: str = "/api/legacy/submit/tx"

    def serialise_signing_key(self, signing_key: SigningKey) -> bytes:
        if signing_key.encrypted:
            raise PassphraseError("byron-legacy signing keys cannot be passphrase-protected")
        return canonical_bytes(
            {
                "format": LEGACY_KEY_FORMAT,
                "signing_key_b64": encode_b64(signing_key.private_key_bytes),
            }
        )

    def deserialise_signing_key(self, raw: bytes, *, passphrase: bytes | None = None) -> SigningKey:
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise KeyDeserializationError("invalid legacy signing key: not JSON") from exc
        if not isinstance(payload, dict) or payload.get("format") != LEGACY_KEY_FORMAT:
            raise KeyDeserializationError("invalid legacy signing key: unexpected format")
        signing_key_b64 = payload.get("signing_key_b64")
        if not isinstance(signing_key_b64, str):
            raise KeyDeserializationError("invalid legacy signing key: missing key material")
        try:
            private_key_bytes = decode_b64(signing_key_b64)
        except ValueError as exc:
            raise KeyDeserializationError("invalid legacy signing key: bad base64") from exc
        return SigningKey(private_key_bytes=private_key_bytes)

    def serialise_delegation_certificate(self, certificate: DelegationCertificate) -> bytes:
        return canonical_bytes(certificate.model_dump(mode="json"))


_CLI_OPS: dict[Protocol, CLIOps] = {
    Protocol.BYRON_LEGACY: ByronLegacyOps(),
    Protocol.REAL_PBFT: RealPBFTOps(),
}


def parse_protocol(value: Protocol | str) -> Protocol:
    try:
        return Protocol(value)
    except ValueError as exc:
        raise UnsupportedProtocolError(str(value)) from exc


def decide_cli_ops(protocol: Protocol | str) -> CLIOps:
    resolved = parse_protocol(protocol)
    ops = _CLI_OPS.get(resolved)
    if ops is None:
        raise UnsupportedProtocolError(resolved.value)
    return ops
