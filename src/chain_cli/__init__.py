"""chain-cli public surface."""

from chain_cli.address import Address, make_verification_key_address
from chain_cli.certificates import DelegationCertificate
from chain_cli.commands import ClientCommand
from chain_cli.config import ChainConfig, CommonCLI, build_configuration, mainnet_configuration
from chain_cli.delegation import (
    DelegationCheckResult,
    check_delegation_certificate,
    issue_delegation_certificate,
)
from chain_cli.errors import (
    CertificateReadError,
    CertificateVerificationFailedError,
    ChainCLIError,
    ConfigError,
    EncryptedKeyError,
    GenesisBuildError,
    GenesisReadError,
    KeyDeserializationError,
    KeyFileNotFoundError,
    KeyFileReadError,
    OutputMustNotAlreadyExistError,
    OutputWriteError,
    PassphraseError,
    TopologyError,
    TransportError,
    TxAssemblyError,
    UnsupportedProtocolError,
)
from chain_cli.genesis import (
    GenesisData,
    GenesisParameters,
    dummy_genesis,
    mk_genesis,
    read_genesis,
)
from chain_cli.keys import SigningKey, VerificationKey, derive_verification_key, keygen
from chain_cli.ops import CLIOps, Protocol, decide_cli_ops
from chain_cli.run import run_command
from chain_cli.tx import TxAux, assemble_expenditure, assemble_genesis_expenditure, tx_id

__all__ = [
    "ChainCLIError",
    "OutputMustNotAlreadyExistError",
    "OutputWriteError",
    "KeyFileNotFoundError",
    "KeyFileReadError",
    "KeyDeserializationError",
    "EncryptedKeyError",
    "PassphraseError",
    "UnsupportedProtocolError",
    "CertificateReadError",
    "CertificateVerificationFailedError",
    "TxAssemblyError",
    "TransportError",
    "TopologyError",
    "GenesisReadError",
    "GenesisBuildError",
    "ConfigError",
    "Address",
    "make_verification_key_address",
    "DelegationCertificate",
    "DelegationCheckResult",
    "issue_delegation_certificate",
    "check_delegation_certificate",
    "ClientCommand",
    "ChainConfig",
    "CommonCLI",
    "build_configuration",
    "mainnet_configuration",
    "GenesisData",
    "GenesisParameters",
    "mk_genesis",
    "dummy_genesis",
    "read_genesis",
    "SigningKey",
    "VerificationKey",
    "derive_verification_key",
    "keygen",
    "CLIOps",
    "Protocol",
    "decide_cli_ops",
    "run_command",
    "TxAux",
    "assemble_expenditure",
    "assemble_genesis_expenditure",
    "tx_id",
]
