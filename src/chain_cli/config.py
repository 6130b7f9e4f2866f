"""Chain configuration presets and command-line overrides."""

from __future__ import annotations

from dataclasses import dataclass, replace

from chain_cli.errors import ConfigError, GenesisReadError
from chain_cli.genesis import read_genesis

MAINNET_PROTOCOL_MAGIC = 764_824_073


@dataclass(frozen=True)
class ChainConfig:
    protocol_magic: int
    require_network_magic: bool = False
    genesis_file: str | None = None
    genesis_hash: str | None = None
    submit_timeout: float = 10.0
    submit_retries: int = 2

    @property
    def network_magic(self) -> int | None:
        return self.protocol_magic if self.require_network_magic else None


@dataclass(frozen=True)
class CommonCLI:
    genesis_file: str | None = None
    genesis_hash: str | None = None
    protocol_magic: int | None = None
    require_network_magic: bool | None = None
    submit_timeout: float | None = None
    submit_retries: int | None = None


def mainnet_configuration() -> ChainConfig:
    return ChainConfig(protocol_magic=MAINNET_PROTOCOL_MAGIC)


def build_configuration(base: ChainConfig, common: CommonCLI) -> ChainConfig:
    """Apply command-line overrides to a preset.

    When a genesis file is given its protocol magic and network-magic
    requirement win over the preset, and an expected genesis hash must match
    the file.
    """
    config = base

    if common.genesis_hash is not None and common.genesis_file is None:
        raise ConfigError("--genesis-hash requires --genesis-file")

    if common.genesis_file is not None:
        genesis, genesis_hash = read_genesis(common.genesis_file)
        expected_hash = common.genesis_hash.strip().lower() if common.genesis_hash else None
        if expected_hash is not None and expected_hash != genesis_hash.hex:
            raise GenesisReadError(
                f"genesis hash mismatch: expected {expected_hash}, file has {genesis_hash.hex}"
            )
        if common.protocol_magic is not None and common.protocol_magic != genesis.protocol_magic:
            raise ConfigError(
                f"protocol magic {common.protocol_magic} does not match genesis "
                f"protocol magic {genesis.protocol_magic}"
            )
        config = replace(
            config,
            protocol_magic=genesis.protocol_magic,
            require_network_magic=genesis.require_network_magic,
            genesis_file=common.genesis_file,
            genesis_hash=genesis_hash.hex,
        )
    elif common.protocol_magic is not None:
        if common.protocol_magic < 0:
            raise ConfigError("protocol magic must be >= 0")
        config = replace(config, protocol_magic=common.protocol_magic)

    if common.require_network_magic is not None:
        config = replace(config, require_network_magic=common.require_network_magic)

    if common.submit_timeout is not None:
        if common.submit_timeout <= 0:
            raise ConfigError("submit timeout must be > 0")
        config = replace(config, submit_timeout=common.submit_timeout)

    if common.submit_retries is not None:
        if common.submit_retries < 0:
            raise ConfigError("submit retries must be >= 0")
        config = replace(config, submit_retries=common.submit_retries)

    return config
