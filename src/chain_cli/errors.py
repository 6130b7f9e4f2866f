"""CLI error types."""

from __future__ import annotations


class ChainCLIError(RuntimeError):
    """Base chain-cli error."""


class OutputMustNotAlreadyExistError(ChainCLIError):
    """A new output artifact already exists on disk."""

    def __init__(self, path: str) -> None:
        super().__init__(f"output file must not already exist: {path}")
        self.path = path


class OutputWriteError(ChainCLIError):
    """A new output artifact could not be written."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot write output {path}: {reason}")
        self.path = path
        self.reason = reason


class KeyFileNotFoundError(ChainCLIError):
    """Key file could not be found."""

    def __init__(self, path: str) -> None:
        super().__init__(f"key file not found: {path}")
        self.path = path


class KeyFileReadError(ChainCLIError):
    """Key file exists but could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot read key file {path}: {reason}")
        self.path = path
        self.reason = reason


class KeyDeserializationError(ChainCLIError):
    """Key bytes are malformed for the expected format."""


class EncryptedKeyError(KeyDeserializationError):
    """Signing key is passphrase-protected and no passphrase was given."""


class PassphraseError(ChainCLIError):
    """Passphrase could not be obtained."""


class UnsupportedProtocolError(ChainCLIError):
    """No capability provider exists for a protocol identifier."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"unsupported protocol: {identifier}")
        self.identifier = identifier


class CertificateReadError(ChainCLIError):
    """Delegation certificate file is missing or malformed."""


class CertificateVerificationFailedError(ChainCLIError):
    """Delegation certificate check failed."""

    def __init__(self, kind: str, reason: str) -> None:
        super().__init__(f"{kind}: {reason}")
        self.kind = kind
        self.reason = reason


class TxAssemblyError(ChainCLIError):
    """Transaction could not be assembled or read."""


class TransportError(ChainCLIError):
    """Transaction submission failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class TopologyError(ChainCLIError):
    """Topology file is invalid or does not name the requested node."""


class GenesisReadError(ChainCLIError):
    """Genesis file is missing, malformed or inconsistent."""


class GenesisBuildError(ChainCLIError):
    """Genesis parameters are inconsistent."""


class ConfigError(ChainCLIError):
    """Configuration is invalid."""
