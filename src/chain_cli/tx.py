"""Transaction assembly for genesis and ordinary UTxO expenditure."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from chain_cli.address import Address, make_verification_key_address
from chain_cli.crypto.ed25519 import sign_ed25519, verify_ed25519
from chain_cli.crypto.hashing import blake2b_256, canonical_bytes, decode_b64, encode_b64
from chain_cli.errors import TxAssemblyError
from chain_cli.keys import SigningKey, derive_verification_key

if TYPE_CHECKING:
    from chain_cli.ops import CLIOps

_TX_ID_RE = re.compile(r"^[0-9a-f]{64}$")


class TxIn(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    tx_id: str
    index: int = Field(..., ge=0)

    @field_validator("tx_id")
    @classmethod
    def _check_tx_id(cls, value: str) -> str:
        if not _TX_ID_RE.fullmatch(value):
            raise ValueError("tx_id must be 64 lowercase hex characters")
        return value


class TxOut(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    address: str
    lovelace: int = Field(..., ge=0)

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        return Address.from_text(value).to_text()


class Tx(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    inputs: tuple[TxIn, ...] = Field(..., min_length=1)
    outputs: tuple[TxOut, ...] = Field(..., min_length=1)
    attributes: dict[str, str] = Field(default_factory=dict)


class TxWitness(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    verification_key_b64: str
    signature_b64: str


class TxAux(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    tx: Tx
    witnesses: tuple[TxWitness, ...]


def tx_id(tx: Tx) -> str:
    return blake2b_256(canonical_bytes(tx.model_dump(mode="json"))).hex()


def tx_sig_data(ops: CLIOps, protocol_magic: int, transaction_id: str) -> bytes:
    return canonical_bytes(
        {
            "tag": ops.tx_sign_tag,
            "protocol_magic": protocol_magic,
            "tx_id": transaction_id,
        }
    )


def genesis_utxo_input(address: Address) -> TxIn:
    """Input referencing the genesis allocation held at ``address``."""
    return TxIn(tx_id=blake2b_256(address.payload_bytes()).hex(), index=0)


def _build_tx(inputs: Iterable[TxIn], outputs: Iterable[TxOut]) -> Tx:
    try:
        return Tx(inputs=tuple(inputs), outputs=tuple(outputs))
    except ValidationError as exc:
        raise TxAssemblyError(f"invalid transaction: {exc}") from exc


def _witness(ops: CLIOps, tx: Tx, signing_key: SigningKey, protocol_magic: int) -> TxWitness:
    verification_key = derive_verification_key(signing_key)
    signature = sign_ed25519(
        tx_sig_data(ops, protocol_magic, tx_id(tx)),
        signing_key.private_key_bytes,
    )
    return TxWitness(
        verification_key_b64=verification_key.public_key_b64,
        signature_b64=encode_b64(signature),
    )


def assemble_genesis_expenditure(
    ops: CLIOps,
    genesis_address: Address,
    owner_sk: SigningKey,
    outputs: Iterable[TxOut],
    *,
    protocol_magic: int,
) -> TxAux:
    owner_vk = derive_verification_key(owner_sk)
    if make_verification_key_address(genesis_address.network_magic, owner_vk) != genesis_address:
        raise TxAssemblyError(
            f"signing key does not own genesis address {genesis_address.to_text()}"
        )
    tx = _build_tx((genesis_utxo_input(genesis_address),), outputs)
    return TxAux(tx=tx, witnesses=(_witness(ops, tx, owner_sk, protocol_magic),))


def assemble_expenditure(
    ops: CLIOps,
    inputs: Iterable[TxIn],
    outputs: Iterable[TxOut],
    underwriter_sk: SigningKey,
    *,
    protocol_magic: int,
) -> TxAux:
    tx = _build_tx(inputs, outputs)
    return TxAux(tx=tx, witnesses=(_witness(ops, tx, underwriter_sk, protocol_magic),))


def verify_tx_witnesses(ops: CLIOps, tx_aux: TxAux, *, protocol_magic: int) -> bool:
    if not tx_aux.witnesses:
        return False
    message = tx_sig_data(ops, protocol_magic, tx_id(tx_aux.tx))
    for witness in tx_aux.witnesses:
        try:
            signature = decode_b64(witness.signature_b64)
            public_key = decode_b64(witness.verification_key_b64)
        except ValueError:
            return False
        if not verify_ed25519(signature, message, public_key):
            return False
    return True


def serialise_tx_aux(tx_aux: TxAux) -> bytes:
    return canonical_bytes(tx_aux.model_dump(mode="json"))


def read_tx_aux(path: str | Path) -> TxAux:
    tx_path = Path(path)
    try:
        payload = json.loads(tx_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise TxAssemblyError(f"transaction file not found: {tx_path}") from exc
    except OSError as exc:
        raise TxAssemblyError(
            f"cannot read transaction file {tx_path}: {exc.strerror or exc}"
        ) from exc
    except (UnicodeDecodeError, ValueError) as exc:
        raise TxAssemblyError(f"invalid transaction file: {tx_path}") from exc
    try:
        return TxAux.model_validate(payload)
    except ValidationError as exc:
        raise TxAssemblyError(f"invalid transaction file: {tx_path}: {exc}") from exc


def parse_tx_in(value: str) -> TxIn:
    """Parse ``<tx-id-hex>#<index>``."""
    tx_id_hex, sep, index = value.strip().partition("#")
    if not sep:
        raise ValueError("transaction input must look like <tx-id>#<index>")
    try:
        return TxIn(tx_id=tx_id_hex.lower(), index=int(index))
    except ValidationError as exc:
        raise ValueError(f"invalid transaction input: {value}") from exc


def parse_tx_out(value: str) -> TxOut:
    """Parse ``<address>:<lovelace>``."""
    address, sep, lovelace = value.strip().rpartition(":")
    if not sep:
        raise ValueError("transaction output must look like <address>:<lovelace>")
    try:
        return TxOut(address=address, lovelace=int(lovelace))
    except ValidationError as exc:
        raise ValueError(f"invalid transaction output: {value}") from exc
