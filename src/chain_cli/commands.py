"""Operator commands.

Each command is an immutable value carrying exactly the parameters its
operation needs. Paths are wrapped by role: plain ``*File`` types name existing
inputs, ``New*`` types name outputs that must not exist when written.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from chain_cli.address import Address
from chain_cli.config import CommonCLI
from chain_cli.genesis import GenesisParameters
from chain_cli.keys import PasswordRequirement
from chain_cli.ops import Protocol
from chain_cli.topology import TopologyInfo
from chain_cli.tx import TxIn, TxOut


@dataclass(frozen=True)
class SigningKeyFile:
    path: str


@dataclass(frozen=True)
class VerificationKeyFile:
    path: str


@dataclass(frozen=True)
class CertificateFile:
    path: str


@dataclass(frozen=True)
class TxFile:
    path: str


@dataclass(frozen=True)
class GenesisFile:
    path: str


@dataclass(frozen=True)
class NewDirectory:
    path: str


@dataclass(frozen=True)
class NewSigningKeyFile:
    path: str


@dataclass(frozen=True)
class NewVerificationKeyFile:
    path: str


@dataclass(frozen=True)
class NewCertificateFile:
    path: str


@dataclass(frozen=True)
class NewTxFile:
    path: str


def _require_non_empty(items: tuple, what: str) -> None:
    if not isinstance(items, tuple) or not items:
        raise ValueError(f"{what} must be a non-empty tuple")


@dataclass(frozen=True)
class Genesis:
    out_dir: NewDirectory
    params: GenesisParameters


@dataclass(frozen=True)
class DumpHardcodedGenesis:
    out_dir: NewDirectory


@dataclass(frozen=True)
class PrintGenesisHash:
    genesis_file: GenesisFile


@dataclass(frozen=True)
class PrettySigningKeyPublic:
    signing_key: SigningKeyFile


@dataclass(frozen=True)
class PrintSigningKeyAddress:
    network_magic: int | None
    signing_key: SigningKeyFile


@dataclass(frozen=True)
class MigrateDelegateKeyFrom:
    from_protocol: Protocol
    new_key: NewSigningKeyFile
    old_key: SigningKeyFile


@dataclass(frozen=True)
class Keygen:
    new_key: NewSigningKeyFile
    password_requirement: PasswordRequirement


@dataclass(frozen=True)
class ToVerification:
    signing_key: SigningKeyFile
    new_verification_key: NewVerificationKeyFile


@dataclass(frozen=True)
class IssueDelegationCertificate:
    protocol_magic: int
    epoch: int
    issuer_key: SigningKeyFile
    delegate_key: VerificationKeyFile
    certificate: NewCertificateFile

    def __post_init__(self) -> None:
        if self.epoch < 0:
            raise ValueError("epoch must be >= 0")
        if self.protocol_magic < 0:
            raise ValueError("protocol magic must be >= 0")


@dataclass(frozen=True)
class CheckDelegation:
    protocol_magic: int
    certificate: CertificateFile
    issuer_key: VerificationKeyFile
    delegate_key: VerificationKeyFile


@dataclass(frozen=True)
class SubmitTx:
    topology: TopologyInfo
    tx_file: TxFile
    common: CommonCLI


@dataclass(frozen=True)
class SpendGenesisUTxO:
    new_tx: NewTxFile
    signing_key: SigningKeyFile
    genesis_address: Address
    outputs: tuple[TxOut, ...]
    common: CommonCLI

    def __post_init__(self) -> None:
        _require_non_empty(self.outputs, "outputs")


@dataclass(frozen=True)
class SpendUTxO:
    new_tx: NewTxFile
    signing_key: SigningKeyFile
    inputs: tuple[TxIn, ...]
    outputs: tuple[TxOut, ...]
    common: CommonCLI

    def __post_init__(self) -> None:
        _require_non_empty(self.inputs, "inputs")
        _require_non_empty(self.outputs, "outputs")


ClientCommand = Union[
    Genesis,
    DumpHardcodedGenesis,
    PrintGenesisHash,
    PrettySigningKeyPublic,
    PrintSigningKeyAddress,
    MigrateDelegateKeyFrom,
    Keygen,
    ToVerification,
    IssueDelegationCertificate,
    CheckDelegation,
    SubmitTx,
    SpendGenesisUTxO,
    SpendUTxO,
]
