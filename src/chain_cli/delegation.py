"""Heavyweight delegation certificate issuance and checking."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from chain_cli.certificates import DELEGATION_ISSUED_INTENT, DelegationCertificate
from chain_cli.crypto.ed25519 import sign_ed25519, verify_ed25519
from chain_cli.crypto.hashing import canonical_bytes, decode_b64, encode_b64
from chain_cli.errors import CertificateReadError, CertificateVerificationFailedError
from chain_cli.keys import SigningKey, VerificationKey, derive_verification_key

CHECK_OK = "ok"
FIELD_MISMATCH = "field-mismatch"
SIGNATURE_MISMATCH = "signature-mismatch"


@dataclass(frozen=True)
class DelegationCheckResult:
    ok: bool
    kind: str
    reason: str

    def raise_for_failure(self) -> None:
        if not self.ok:
            raise CertificateVerificationFailedError(self.kind, self.reason)


def delegation_payload_bytes(
    protocol_magic: int,
    epoch: int,
    issuer_vk: VerificationKey,
    delegate_vk: VerificationKey,
) -> bytes:
    """Build canonical bytes signed by the certificate issuer."""
    return canonical_bytes(
        {
            "issued_intent": DELEGATION_ISSUED_INTENT,
            "protocol_magic": protocol_magic,
            "epoch": epoch,
            "issuer_vk_b64": issuer_vk.public_key_b64,
            "delegate_vk_b64": delegate_vk.public_key_b64,
        }
    )


def issue_delegation_certificate(
    protocol_magic: int,
    epoch: int,
    issuer_sk: SigningKey,
    delegate_vk: VerificationKey,
) -> DelegationCertificate:
    issuer_vk = derive_verification_key(issuer_sk)
    payload = delegation_payload_bytes(protocol_magic, epoch, issuer_vk, delegate_vk)
    signature = sign_ed25519(payload, issuer_sk.private_key_bytes)
    return DelegationCertificate(
        protocol_magic=protocol_magic,
        epoch=epoch,
        issuer_vk_b64=issuer_vk.public_key_b64,
        delegate_vk_b64=delegate_vk.public_key_b64,
        signature_b64=encode_b64(signature),
    )


def check_delegation_certificate(
    certificate: DelegationCertificate,
    protocol_magic: int,
    issuer_vk: VerificationKey,
    delegate_vk: VerificationKey,
) -> DelegationCheckResult:
    """Re-verify a certificate against the expected magic and keys.

    Field mismatches (magic, issuer, delegate) are reported before the
    signature is checked.
    """
    if certificate.protocol_magic != protocol_magic:
        return DelegationCheckResult(
            False,
            FIELD_MISMATCH,
            f"protocol magic mismatch: certificate has {certificate.protocol_magic}, "
            f"expected {protocol_magic}",
        )
    if certificate.issuer_vk_b64 != issuer_vk.public_key_b64:
        return DelegationCheckResult(
            False, FIELD_MISMATCH, "certificate issuer does not match the issuer key"
        )
    if certificate.delegate_vk_b64 != delegate_vk.public_key_b64:
        return DelegationCheckResult(
            False, FIELD_MISMATCH, "certificate delegate does not match the delegate key"
        )

    try:
        signature = decode_b64(certificate.signature_b64)
    except ValueError:
        return DelegationCheckResult(
            False, SIGNATURE_MISMATCH, "certificate signature is not base64"
        )

    payload = delegation_payload_bytes(protocol_magic, certificate.epoch, issuer_vk, delegate_vk)
    if not verify_ed25519(signature, payload, issuer_vk.public_key_bytes):
        return DelegationCheckResult(
            False, SIGNATURE_MISMATCH, "certificate does not have a valid signature"
        )
    return DelegationCheckResult(True, CHECK_OK, "certificate is valid")


def read_delegation_certificate(path: str | Path) -> DelegationCertificate:
    cert_path = Path(path)
    try:
        payload = json.loads(cert_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise CertificateReadError(f"certificate file not found: {cert_path}") from exc
    except OSError as exc:
        raise CertificateReadError(
            f"cannot read certificate file {cert_path}: {exc.strerror or exc}"
        ) from exc
    except (UnicodeDecodeError, ValueError) as exc:
        raise CertificateReadError(f"invalid certificate file: {cert_path}") from exc
    if not isinstance(payload, dict):
        raise CertificateReadError("certificate must be a JSON object")
    try:
        return DelegationCertificate(**payload)
    except ValidationError as exc:
        raise CertificateReadError(f"invalid certificate file: {cert_path}: {exc}") from exc
