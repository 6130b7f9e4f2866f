"""Delegation certificate schema."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CERTIFICATE_VERSION = "CHAIN-0.1"
DELEGATION_TYPE = "Chain-Delegation-0.1"
DELEGATION_ISSUED_INTENT = "chain-cli/HeavyDelegation"


class DelegationCertificate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    certificate_version: Literal["CHAIN-0.1"] = CERTIFICATE_VERSION
    certificate_type: Literal["Chain-Delegation-0.1"] = DELEGATION_TYPE
    protocol_magic: int = Field(..., ge=0)
    epoch: int = Field(..., ge=0)
    issuer_vk_b64: str
    delegate_vk_b64: str
    signature_b64: str
