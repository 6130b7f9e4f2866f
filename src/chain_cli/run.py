"""Command dispatcher.

``run_command`` maps each command onto its reads, one core operation and the
guarded write of its artifact. Reads happen before the operation and writes
only after it succeeded in memory, so a failing step never leaves a partial
output behind. Errors propagate unchanged as ``ChainCLIError`` subclasses.
"""

from __future__ import annotations

import getpass
import sys
from dataclasses import dataclass
from typing import Any, Callable, TextIO, get_args

from chain_cli.address import format_hash_hex, make_verification_key_address, pretty_address
from chain_cli.commands import (
    CheckDelegation,
    ClientCommand,
    DumpHardcodedGenesis,
    Genesis,
    IssueDelegationCertificate,
    Keygen,
    MigrateDelegateKeyFrom,
    PrettySigningKeyPublic,
    PrintGenesisHash,
    PrintSigningKeyAddress,
    SigningKeyFile,
    SpendGenesisUTxO,
    SpendUTxO,
    SubmitTx,
    ToVerification,
)
from chain_cli.config import build_configuration, mainnet_configuration
from chain_cli.delegation import (
    DelegationCheckResult,
    check_delegation_certificate,
    issue_delegation_certificate,
    read_delegation_certificate,
)
from chain_cli.errors import EncryptedKeyError
from chain_cli.files import ensure_new_file_bytes, ensure_new_file_text
from chain_cli.genesis import dummy_genesis, dump_genesis, mk_genesis, read_genesis
from chain_cli.keys import (
    SigningKey,
    derive_verification_key,
    format_full_verification_key,
    get_passphrase,
    keygen,
    pretty_public_key,
    read_signing_key,
    read_verification_key,
)
from chain_cli.ops import CLIOps, decide_cli_ops
from chain_cli.tx import (
    assemble_expenditure,
    assemble_genesis_expenditure,
    read_tx_aux,
    serialise_tx_aux,
    tx_id,
)

SIGNING_KEY_FILE_MODE = 0o600


@dataclass(frozen=True)
class _Context:
    stdout: TextIO
    passphrase_reader: Callable[[str], str]


def _read_signing_key(ops: CLIOps, key_file: SigningKeyFile, ctx: _Context) -> SigningKey:
    try:
        return read_signing_key(ops, key_file.path)
    except EncryptedKeyError:
        passphrase = ctx.passphrase_reader(f"Enter password to decrypt '{key_file.path}': ")
        return read_signing_key(ops, key_file.path, passphrase=passphrase.encode("utf-8"))


def _run_genesis(ops: CLIOps, command: Genesis, ctx: _Context) -> None:
    data, secrets = mk_genesis(command.params)
    out_dir = dump_genesis(ops, command.out_dir.path, data, secrets)
    print(f"genesis written to {out_dir}", file=ctx.stdout)


def _run_dump_hardcoded_genesis(ops: CLIOps, command: DumpHardcodedGenesis, ctx: _Context) -> None:
    data, secrets = dummy_genesis()
    out_dir = dump_genesis(ops, command.out_dir.path, data, secrets)
    print(f"genesis written to {out_dir}", file=ctx.stdout)


def _run_print_genesis_hash(ops: CLIOps, command: PrintGenesisHash, ctx: _Context) -> None:
    _, genesis_hash = read_genesis(command.genesis_file.path)
    print(format_hash_hex(genesis_hash.digest), file=ctx.stdout)


def _run_pretty_signing_key_public(
    ops: CLIOps, command: PrettySigningKeyPublic, ctx: _Context
) -> None:
    signing_key = _read_signing_key(ops, command.signing_key, ctx)
    print(pretty_public_key(derive_verification_key(signing_key)), file=ctx.stdout)


def _run_print_signing_key_address(
    ops: CLIOps, command: PrintSigningKeyAddress, ctx: _Context
) -> None:
    signing_key = _read_signing_key(ops, command.signing_key, ctx)
    address = make_verification_key_address(
        command.network_magic, derive_verification_key(signing_key)
    )
    print(pretty_address(address), file=ctx.stdout)


def _run_migrate_delegate_key_from(
    ops: CLIOps, command: MigrateDelegateKeyFrom, ctx: _Context
) -> None:
    source_ops = decide_cli_ops(command.from_protocol)
    signing_key = _read_signing_key(source_ops, command.old_key, ctx)
    serialized = ops.serialise_signing_key(signing_key)
    ensure_new_file_bytes(command.new_key.path, serialized, mode=SIGNING_KEY_FILE_MODE)


def _run_keygen(ops: CLIOps, command: Keygen, ctx: _Context) -> None:
    passphrase = get_passphrase(
        f"Enter password to encrypt '{command.new_key.path}': ",
        command.password_requirement,
        reader=ctx.passphrase_reader,
    )
    signing_key = keygen(passphrase)
    serialized = ops.serialise_signing_key(signing_key)
    ensure_new_file_bytes(command.new_key.path, serialized, mode=SIGNING_KEY_FILE_MODE)


def _run_to_verification(ops: CLIOps, command: ToVerification, ctx: _Context) -> None:
    signing_key = _read_signing_key(ops, command.signing_key, ctx)
    verification_key = derive_verification_key(signing_key)
    ensure_new_file_text(
        command.new_verification_key.path,
        format_full_verification_key(verification_key),
    )


def _run_issue_delegation_certificate(
    ops: CLIOps, command: IssueDelegationCertificate, ctx: _Context
) -> None:
    delegate_vk = read_verification_key(command.delegate_key.path)
    issuer_sk = _read_signing_key(ops, command.issuer_key, ctx)
    certificate = issue_delegation_certificate(
        command.protocol_magic, command.epoch, issuer_sk, delegate_vk
    )
    serialized = ops.serialise_delegation_certificate(certificate)
    ensure_new_file_bytes(command.certificate.path, serialized)


def _run_check_delegation(
    ops: CLIOps, command: CheckDelegation, ctx: _Context
) -> DelegationCheckResult:
    issuer_vk = read_verification_key(command.issuer_key.path)
    delegate_vk = read_verification_key(command.delegate_key.path)
    certificate = read_delegation_certificate(command.certificate.path)
    result = check_delegation_certificate(
        certificate, command.protocol_magic, issuer_vk, delegate_vk
    )
    if result.ok:
        print("Certificate is valid.", file=ctx.stdout)
    else:
        print(f"Certificate check failed ({result.kind}): {result.reason}", file=ctx.stdout)
    return result


def _run_submit_tx(ops: CLIOps, command: SubmitTx, ctx: _Context) -> None:
    chain_config = build_configuration(mainnet_configuration(), command.common)
    tx_aux = read_tx_aux(command.tx_file.path)
    ops.submit_transaction(command.topology, chain_config, tx_aux)
    print(f"transaction submitted: {tx_id(tx_aux.tx)}", file=ctx.stdout)


def _run_spend_genesis_utxo(ops: CLIOps, command: SpendGenesisUTxO, ctx: _Context) -> None:
    chain_config = build_configuration(mainnet_configuration(), command.common)
    signing_key = _read_signing_key(ops, command.signing_key, ctx)
    tx_aux = assemble_genesis_expenditure(
        ops,
        command.genesis_address,
        signing_key,
        command.outputs,
        protocol_magic=chain_config.protocol_magic,
    )
    ensure_new_file_bytes(command.new_tx.path, serialise_tx_aux(tx_aux))
    print(f"transaction id: {tx_id(tx_aux.tx)}", file=ctx.stdout)


def _run_spend_utxo(ops: CLIOps, command: SpendUTxO, ctx: _Context) -> None:
    chain_config = build_configuration(mainnet_configuration(), command.common)
    signing_key = _read_signing_key(ops, command.signing_key, ctx)
    tx_aux = assemble_expenditure(
        ops,
        command.inputs,
        command.outputs,
        signing_key,
        protocol_magic=chain_config.protocol_magic,
    )
    ensure_new_file_bytes(command.new_tx.path, serialise_tx_aux(tx_aux))
    print(f"transaction id: {tx_id(tx_aux.tx)}", file=ctx.stdout)


_HANDLERS: dict[type, Callable[[CLIOps, Any, _Context], DelegationCheckResult | None]] = {
    Genesis: _run_genesis,
    DumpHardcodedGenesis: _run_dump_hardcoded_genesis,
    PrintGenesisHash: _run_print_genesis_hash,
    PrettySigningKeyPublic: _run_pretty_signing_key_public,
    PrintSigningKeyAddress: _run_print_signing_key_address,
    MigrateDelegateKeyFrom: _run_migrate_delegate_key_from,
    Keygen: _run_keygen,
    ToVerification: _run_to_verification,
    IssueDelegationCertificate: _run_issue_delegation_certificate,
    CheckDelegation: _run_check_delegation,
    SubmitTx: _run_submit_tx,
    SpendGenesisUTxO: _run_spend_genesis_utxo,
    SpendUTxO: _run_spend_utxo,
}

_unhandled = set(get_args(ClientCommand)) ^ set(_HANDLERS)
if _unhandled:
    raise RuntimeError(
        "command handlers out of sync: " + ", ".join(sorted(t.__name__ for t in _unhandled))
    )


def run_command(
    ops: CLIOps,
    command: ClientCommand,
    *,
    stdout: TextIO = sys.stdout,
    passphrase_reader: Callable[[str], str] = getpass.getpass,
) -> DelegationCheckResult | None:
    handler = _HANDLERS.get(type(command))
    if handler is None:
        raise TypeError(f"unknown command: {type(command).__name__}")
    return handler(ops, command, _Context(stdout=stdout, passphrase_reader=passphrase_reader))
