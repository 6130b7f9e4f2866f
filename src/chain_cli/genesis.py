"""Genesis data generation, reading and dumping."""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chain_cli.address import make_verification_key_address
from chain_cli.certificates import DelegationCertificate
from chain_cli.crypto.hashing import blake2b_256, canonical_bytes, decode_b64
from chain_cli.delegation import check_delegation_certificate, issue_delegation_certificate
from chain_cli.errors import (
    GenesisBuildError,
    GenesisReadError,
    KeyDeserializationError,
    OutputMustNotAlreadyExistError,
    OutputWriteError,
)
from chain_cli.files import ensure_new_directory, ensure_new_file_bytes
from chain_cli.keys import SigningKey, VerificationKey, derive_verification_key, keygen
from chain_cli.ops import CLIOps

GENESIS_FILE_NAME = "genesis.json"
SECRET_FILE_MODE = 0o600

DEFAULT_PROTOCOL_PARAMETERS: dict[str, int] = {
    "heavy_del_threshold_bps": 300,
    "max_block_size": 2_000_000,
    "max_header_size": 2_000_000,
    "max_proposal_size": 700,
    "max_tx_size": 4_096,
    "mpc_threshold_bps": 20,
    "script_version": 0,
    "slot_duration_ms": 20_000,
    "tx_fee_policy_a": 155_381,
    "tx_fee_policy_b": 44,
    "unlock_stake_epoch": 18_446_744_073_709_551_615,
    "update_implicit": 10_000,
    "update_proposal_threshold_bps": 10,
    "update_vote_threshold_bps": 100,
}


class GenesisParameters(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    start_time: int = Field(..., ge=0)
    protocol_magic: int = Field(..., ge=0)
    security_param_k: int = Field(..., ge=1)
    n_delegate_addresses: int = Field(..., ge=1)
    n_poor_addresses: int = Field(0, ge=0)
    total_balance: int = Field(..., ge=1)
    delegate_share: Decimal = Field(Decimal("1"), ge=0, le=1)
    require_network_magic: bool = True
    protocol_parameters_file: str | None = None
    secret_seed: int | None = None


class GenesisData(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    protocol_magic: int = Field(..., ge=0)
    require_network_magic: bool
    start_time: int = Field(..., ge=0)
    security_param_k: int = Field(..., ge=1)
    protocol_parameters: dict[str, int]
    boot_stakeholders: dict[str, int]
    heavy_delegation: dict[str, DelegationCertificate]
    non_avvm_balances: dict[str, int]

    @property
    def network_magic(self) -> int | None:
        return self.protocol_magic if self.require_network_magic else None


@dataclass(frozen=True)
class GeneratedSecrets:
    genesis_keys: tuple[SigningKey, ...]
    delegate_keys: tuple[SigningKey, ...]
    poor_keys: tuple[SigningKey, ...]


@dataclass(frozen=True)
class GenesisHash:
    digest: bytes

    @property
    def hex(self) -> str:
        return self.digest.hex()


def _seeded_key(seed: int | None, role: str, index: int) -> SigningKey:
    if seed is None:
        return keygen(None)
    material = blake2b_256(canonical_bytes({"seed": seed, "role": role, "index": index}))
    return SigningKey(private_key_bytes=material)


def _load_protocol_parameters(path: str | None) -> dict[str, int]:
    parameters = dict(DEFAULT_PROTOCOL_PARAMETERS)
    if path is None:
        return parameters
    try:
        overrides = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise GenesisBuildError(f"cannot read protocol parameters file {path}: {exc}") from exc
    if not isinstance(overrides, dict):
        raise GenesisBuildError("protocol parameters file must contain a JSON object")
    for name, value in overrides.items():
        if not isinstance(value, int) or isinstance(value, bool):
            raise GenesisBuildError(f"protocol parameter {name} must be an integer")
        parameters[name] = value
    return parameters


def _split_balances(params: GenesisParameters) -> tuple[int, int]:
    rich_total = int(
        (Decimal(params.total_balance) * params.delegate_share).to_integral_value(ROUND_FLOOR)
    )
    poor_total = params.total_balance - rich_total

    if rich_total < params.n_delegate_addresses:
        raise GenesisBuildError("delegate share too small to fund every delegate address")
    if params.n_poor_addresses == 0:
        if poor_total:
            raise GenesisBuildError(
                "balance left for poor addresses but n_poor_addresses is 0"
            )
        return rich_total // params.n_delegate_addresses, 0
    if poor_total < params.n_poor_addresses:
        raise GenesisBuildError("remaining balance too small to fund every poor address")
    return rich_total // params.n_delegate_addresses, poor_total // params.n_poor_addresses


def mk_genesis(params: GenesisParameters) -> tuple[GenesisData, GeneratedSecrets]:
    protocol_parameters = _load_protocol_parameters(params.protocol_parameters_file)
    rich_balance, poor_balance = _split_balances(params)
    network_magic = params.protocol_magic if params.require_network_magic else None

    genesis_keys = tuple(
        _seeded_key(params.secret_seed, "genesis", i) for i in range(params.n_delegate_addresses)
    )
    delegate_keys = tuple(
        _seeded_key(params.secret_seed, "delegate", i) for i in range(params.n_delegate_addresses)
    )
    poor_keys = tuple(
        _seeded_key(params.secret_seed, "poor", i) for i in range(params.n_poor_addresses)
    )

    boot_stakeholders: dict[str, int] = {}
    heavy_delegation: dict[str, DelegationCertificate] = {}
    balances: dict[str, int] = {}
    for genesis_key, delegate_key in zip(genesis_keys, delegate_keys):
        issuer_vk = derive_verification_key(genesis_key)
        boot_stakeholders[issuer_vk.key_hash_hex] = 1
        heavy_delegation[issuer_vk.key_hash_hex] = issue_delegation_certificate(
            params.protocol_magic,
            0,
            genesis_key,
            derive_verification_key(delegate_key),
        )
        address = make_verification_key_address(network_magic, issuer_vk)
        balances[address.to_text()] = rich_balance
    for poor_key in poor_keys:
        address = make_verification_key_address(network_magic, derive_verification_key(poor_key))
        balances[address.to_text()] = poor_balance

    data = GenesisData(
        protocol_magic=params.protocol_magic,
        require_network_magic=params.require_network_magic,
        start_time=params.start_time,
        security_param_k=params.security_param_k,
        protocol_parameters=protocol_parameters,
        boot_stakeholders=boot_stakeholders,
        heavy_delegation=heavy_delegation,
        non_avvm_balances=balances,
    )
    return data, GeneratedSecrets(genesis_keys, delegate_keys, poor_keys)


DUMMY_GENESIS_PARAMETERS = GenesisParameters(
    start_time=1_506_203_091,
    protocol_magic=55_550_001,
    security_param_k=10,
    n_delegate_addresses=3,
    n_poor_addresses=6,
    total_balance=60_000_000_000_000,
    delegate_share=Decimal("0.9"),
    secret_seed=0,
)


def dummy_genesis() -> tuple[GenesisData, GeneratedSecrets]:
    """Hard-coded genesis usable without any input file."""
    return mk_genesis(DUMMY_GENESIS_PARAMETERS)


def serialise_genesis(data: GenesisData) -> bytes:
    payload = data.model_dump(mode="json")
    return (json.dumps(payload, sort_keys=True, indent=2) + "\n").encode("utf-8")


def _check_heavy_delegation(data: GenesisData) -> None:
    for issuer_hash, certificate in data.heavy_delegation.items():
        try:
            issuer_vk = VerificationKey(decode_b64(certificate.issuer_vk_b64))
            delegate_vk = VerificationKey(decode_b64(certificate.delegate_vk_b64))
        except (ValueError, KeyDeserializationError) as exc:
            raise GenesisReadError(f"heavy delegation for {issuer_hash} has invalid keys") from exc
        if issuer_vk.key_hash_hex != issuer_hash:
            raise GenesisReadError(
                f"heavy delegation for {issuer_hash} is keyed by the wrong issuer"
            )
        if issuer_hash not in data.boot_stakeholders:
            raise GenesisReadError(
                f"heavy delegation issuer {issuer_hash} is not a boot stakeholder"
            )
        result = check_delegation_certificate(
            certificate, data.protocol_magic, issuer_vk, delegate_vk
        )
        if not result.ok:
            raise GenesisReadError(f"heavy delegation for {issuer_hash}: {result.reason}")


def read_genesis(path: str | Path) -> tuple[GenesisData, GenesisHash]:
    genesis_path = Path(path)
    try:
        raw = genesis_path.read_bytes()
    except FileNotFoundError as exc:
        raise GenesisReadError(f"genesis file not found: {genesis_path}") from exc
    except OSError as exc:
        raise GenesisReadError(
            f"cannot read genesis file {genesis_path}: {exc.strerror or exc}"
        ) from exc
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise GenesisReadError(f"invalid genesis JSON in {genesis_path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise GenesisReadError("genesis file must contain a JSON object")
    try:
        data = GenesisData.model_validate(payload)
    except ValidationError as exc:
        raise GenesisReadError(f"invalid genesis data in {genesis_path}: {exc}") from exc
    _check_heavy_delegation(data)
    return data, GenesisHash(blake2b_256(raw))


def _write_secret_keys(
    ops: CLIOps,
    directory: Path,
    stem: str,
    keys: tuple[SigningKey, ...],
) -> None:
    for index, key in enumerate(keys):
        ensure_new_file_bytes(
            directory / f"{stem}.{index:03d}.key",
            ops.serialise_signing_key(key),
            mode=SECRET_FILE_MODE,
        )


def dump_genesis(
    ops: CLIOps,
    out_dir: str | Path,
    data: GenesisData,
    secrets: GeneratedSecrets,
) -> Path:
    """Write genesis data and generated secrets into a new directory.

    Files are built in a sibling staging directory. The target is then created
    with an exclusive ``mkdir`` and the staged files are moved into it, so a
    directory that appears while the files are being built is never reused.
    On failure neither the staging directory nor a half-filled target remains.
    """
    target = Path(out_dir)
    if os.path.lexists(target):
        raise OutputMustNotAlreadyExistError(str(target))
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{target.name}.", dir=target.parent))
    except OSError as exc:
        raise OutputWriteError(str(target), exc.strerror or str(exc)) from exc

    created = False
    try:
        ensure_new_file_bytes(staging / GENESIS_FILE_NAME, serialise_genesis(data))
        _write_secret_keys(ops, staging, "genesis-keys", secrets.genesis_keys)
        _write_secret_keys(ops, staging, "delegate-keys", secrets.delegate_keys)
        _write_secret_keys(ops, staging, "poor-keys", secrets.poor_keys)
        for index, genesis_key in enumerate(secrets.genesis_keys):
            issuer_hash = derive_verification_key(genesis_key).key_hash_hex
            certificate = data.heavy_delegation.get(issuer_hash)
            if certificate is None:
                raise GenesisBuildError(f"no heavy delegation certificate for genesis key {index}")
            ensure_new_file_bytes(
                staging / f"delegation-cert.{index:03d}.json",
                ops.serialise_delegation_certificate(certificate),
            )
        ensure_new_directory(target)
        created = True
        for child in sorted(staging.iterdir()):
            try:
                child.rename(target / child.name)
            except OSError as exc:
                raise OutputWriteError(str(target), exc.strerror or str(exc)) from exc
    except BaseException:
        if created:
            shutil.rmtree(target, ignore_errors=True)
        raise
    finally:
        shutil.rmtree(staging, ignore_errors=True)
    return target
