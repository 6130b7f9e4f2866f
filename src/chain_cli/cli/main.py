"""Command-line interface for chain-cli."""

from __future__ import annotations

import argparse
import getpass
import json
import re
import sys
from decimal import Decimal, InvalidOperation
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Callable, Sequence

from chain_cli.address import Address
from chain_cli.certificates import CERTIFICATE_VERSION
from chain_cli.cli.config import CLIConfig, load_cli_config
from chain_cli.commands import (
    CertificateFile,
    CheckDelegation,
    ClientCommand,
    DumpHardcodedGenesis,
    Genesis,
    GenesisFile,
    IssueDelegationCertificate,
    Keygen,
    MigrateDelegateKeyFrom,
    NewCertificateFile,
    NewDirectory,
    NewSigningKeyFile,
    NewTxFile,
    NewVerificationKeyFile,
    PrettySigningKeyPublic,
    PrintGenesisHash,
    PrintSigningKeyAddress,
    SigningKeyFile,
    SpendGenesisUTxO,
    SpendUTxO,
    SubmitTx,
    ToVerification,
    TxFile,
    VerificationKeyFile,
)
from chain_cli.config import CommonCLI
from chain_cli.delegation import DelegationCheckResult
from chain_cli.errors import (
    CertificateReadError,
    ChainCLIError,
    ConfigError,
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
from chain_cli.genesis import GenesisParameters
from chain_cli.keys import PasswordRequirement
from chain_cli.ops import Protocol, decide_cli_ops, parse_protocol
from chain_cli.run import run_command
from chain_cli.topology import TopologyInfo
from chain_cli.tx import parse_tx_in, parse_tx_out

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_NETWORK_ERROR = 2
EXIT_VERIFICATION_FAILED = 4

_SENSITIVE_FIELDS = (
    "signing_key_b64",
    "private_key",
    "passphrase",
    "password",
    "secret",
    "token",
    "authorization",
)

# Most specific first; the first matching class decides prefix and exit code.
_ERROR_CATEGORIES: tuple[tuple[type[ChainCLIError], str, int], ...] = (
    (TransportError, "network error", EXIT_NETWORK_ERROR),
    (OutputMustNotAlreadyExistError, "output error", EXIT_VALIDATION_ERROR),
    (OutputWriteError, "output error", EXIT_VALIDATION_ERROR),
    (KeyFileNotFoundError, "key error", EXIT_VALIDATION_ERROR),
    (KeyFileReadError, "key error", EXIT_VALIDATION_ERROR),
    (KeyDeserializationError, "key error", EXIT_VALIDATION_ERROR),
    (PassphraseError, "key error", EXIT_VALIDATION_ERROR),
    (CertificateReadError, "certificate error", EXIT_VALIDATION_ERROR),
    (GenesisReadError, "genesis error", EXIT_VALIDATION_ERROR),
    (GenesisBuildError, "genesis error", EXIT_VALIDATION_ERROR),
    (UnsupportedProtocolError, "protocol error", EXIT_VALIDATION_ERROR),
    (TopologyError, "topology error", EXIT_VALIDATION_ERROR),
    (TxAssemblyError, "transaction error", EXIT_VALIDATION_ERROR),
    (ConfigError, "config error", EXIT_VALIDATION_ERROR),
)


def _cli_version() -> str:
    try:
        return pkg_version("chain-cli")
    except PackageNotFoundError:
        return "0.0.0+local"


def _non_negative_int(value: str) -> int:
    parsed = int(value)
    if parsed < 0:
        raise ValueError("must be >= 0")
    return parsed


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"not a decimal: {value}") from exc


def _add_common_cli(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--genesis-file", default=None, help="Genesis JSON file")
    parser.add_argument(
        "--genesis-hash",
        default=None,
        help="Expected hash of --genesis-file (hex)",
    )
    parser.add_argument(
        "--require-network-magic",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Whether addresses on this chain carry the network magic",
    )
    parser.add_argument("--submit-timeout", type=float, default=None)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chain-cli")
    parser.add_argument(
        "--version",
        action="version",
        version=f"chain-cli {_cli_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to CLI config TOML (default: ~/.chain_cli/config.toml)",
    )
    parser.add_argument(
        "--protocol",
        default=None,
        help=(
            "Protocol whose key and certificate formats to use "
            f"({', '.join(p.value for p in Protocol)}; default from config)"
        ),
    )

    sub = parser.add_subparsers(dest="command", required=True)

    version = sub.add_parser("version", help="Show CLI and protocol version")
    version.add_argument("--json", action="store_true", help="Print version details as JSON")

    genesis = sub.add_parser("genesis", help="Generate genesis data and secrets")
    genesis.add_argument("--genesis-output-dir", required=True)
    genesis.add_argument("--start-time", type=_non_negative_int, required=True)
    genesis.add_argument("--protocol-parameters-file", default=None)
    genesis.add_argument("--k", dest="security_param_k", type=int, required=True)
    genesis.add_argument("--protocol-magic", type=_non_negative_int, required=True)
    genesis.add_argument("--n-delegate-addresses", type=int, required=True)
    genesis.add_argument("--n-poor-addresses", type=_non_negative_int, default=0)
    genesis.add_argument("--total-balance", type=int, required=True)
    genesis.add_argument(
        "--delegate-share",
        type=_decimal,
        default=Decimal("1"),
        help="Share of the total balance held by delegating addresses, in [0, 1]",
    )
    genesis.add_argument(
        "--require-network-magic",
        action=argparse.BooleanOptionalAction,
        default=True,
    )
    genesis.add_argument(
        "--secret-seed",
        type=_non_negative_int,
        default=None,
        help="Derive generated secrets deterministically from this seed",
    )

    dump = sub.add_parser("dump-hardcoded-genesis", help="Write the built-in genesis")
    dump.add_argument("--genesis-output-dir", required=True)

    genesis_hash = sub.add_parser("print-genesis-hash", help="Print the hash of a genesis file")
    genesis_hash.add_argument("--genesis-json", required=True)

    key_public = sub.add_parser(
        "signing-key-public", help="Pretty-print a signing key's public key"
    )
    key_public.add_argument("--secret", required=True)

    key_address = sub.add_parser("signing-key-address", help="Print a signing key's address")
    key_address.add_argument("--secret", required=True)
    key_address.add_argument(
        "--testnet-magic",
        type=_non_negative_int,
        default=None,
        help="Network magic to embed (omit for mainnet)",
    )

    migrate = sub.add_parser(
        "migrate-delegate-key-from",
        help="Re-encode a signing key from another protocol's format",
    )
    migrate.add_argument("--from", dest="from_protocol", required=True)
    migrate.add_argument("--to", required=True, help="New signing key file")
    migrate.add_argument("--secret", required=True, help="Existing signing key file")

    keygen = sub.add_parser("keygen", help="Generate a new signing key")
    keygen.add_argument("--secret", required=True, help="New signing key file")
    keygen.add_argument(
        "--no-password",
        action="store_true",
        help="Do not prompt for a passphrase; store the key unencrypted",
    )

    to_verification = sub.add_parser(
        "to-verification", help="Extract the verification key of a signing key"
    )
    to_verification.add_argument("--secret", required=True)
    to_verification.add_argument("--to", required=True, help="New verification key file")

    issue = sub.add_parser(
        "issue-delegation-certificate", help="Issue a heavyweight delegation certificate"
    )
    issue.add_argument("--protocol-magic", type=_non_negative_int, required=True)
    issue.add_argument("--since-epoch", type=_non_negative_int, required=True)
    issue.add_argument("--secret", required=True, help="Issuer signing key file")
    issue.add_argument("--delegate-key", required=True, help="Delegate verification key file")
    issue.add_argument("--certificate", required=True, help="New certificate file")

    check = sub.add_parser("check-delegation", help="Check a delegation certificate")
    check.add_argument("--protocol-magic", type=_non_negative_int, required=True)
    check.add_argument("--certificate", required=True)
    check.add_argument("--issuer-key", required=True, help="Issuer verification key file")
    check.add_argument("--delegate-key", required=True, help="Delegate verification key file")

    submit = sub.add_parser("submit-tx", help="Submit a transaction file to a node")
    submit.add_argument("--topology", required=True, help="Topology file (JSON or YAML)")
    submit.add_argument("--node-id", type=_non_negative_int, required=True)
    submit.add_argument("--tx", required=True)
    _add_common_cli(submit)

    spend_genesis = sub.add_parser(
        "issue-genesis-utxo-expenditure", help="Spend a genesis UTxO"
    )
    spend_genesis.add_argument("--tx", required=True, help="New transaction file")
    spend_genesis.add_argument("--wallet-key", required=True, help="Genesis UTxO owner key")
    spend_genesis.add_argument("--rich-addr-from", required=True)
    spend_genesis.add_argument(
        "--txout",
        action="append",
        required=True,
        help="Output as <address>:<lovelace> (repeat for multiple outputs)",
    )
    spend_genesis.add_argument("--protocol-magic", type=_non_negative_int, default=None)
    _add_common_cli(spend_genesis)

    spend = sub.add_parser("issue-utxo-expenditure", help="Spend regular UTxOs")
    spend.add_argument("--tx", required=True, help="New transaction file")
    spend.add_argument("--wallet-key", required=True, help="Underwriter signing key")
    spend.add_argument(
        "--txin",
        action="append",
        required=True,
        help="Input as <tx-id>#<index> (repeat for multiple inputs)",
    )
    spend.add_argument(
        "--txout",
        action="append",
        required=True,
        help="Output as <address>:<lovelace> (repeat for multiple outputs)",
    )
    spend.add_argument("--protocol-magic", type=_non_negative_int, default=None)
    _add_common_cli(spend)

    return parser


def _sanitize_error_text(value: str) -> str:
    redacted = value
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)({field}\s*[=:]\s*)([^,\s]+)",
            r"\1[REDACTED]",
            redacted,
        )
    redacted = re.sub(
        r"-----BEGIN[^-]*PRIVATE KEY-----.*?-----END[^-]*PRIVATE KEY-----",
        "[REDACTED]",
        redacted,
        flags=re.DOTALL,
    )
    return redacted


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {_sanitize_error_text(message)}", file=stderr)
    return code


def _report_error(stderr, exc: ChainCLIError) -> int:
    for error_type, prefix, code in _ERROR_CATEGORIES:
        if isinstance(exc, error_type):
            return _print_error(stderr, prefix, str(exc), code=code)
    return _print_error(stderr, "error", str(exc), code=EXIT_VALIDATION_ERROR)


def _run_version(*, config: CLIConfig, as_json: bool, stdout) -> int:
    payload = {
        "cli": "chain-cli",
        "cli_version": _cli_version(),
        "certificate_version": CERTIFICATE_VERSION,
        "default_protocol": config.protocol,
    }
    if as_json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
    else:
        print(f"chain-cli {payload['cli_version']}", file=stdout)
        print(f"certificates: {payload['certificate_version']}", file=stdout)
        print(f"default protocol: {payload['default_protocol']}", file=stdout)
    return EXIT_SUCCESS


def _common_cli(args, config: CLIConfig) -> CommonCLI:
    submit_timeout = args.submit_timeout
    return CommonCLI(
        genesis_file=args.genesis_file,
        genesis_hash=args.genesis_hash,
        protocol_magic=getattr(args, "protocol_magic", None),
        require_network_magic=args.require_network_magic,
        submit_timeout=submit_timeout if submit_timeout is not None else config.submit_timeout,
        submit_retries=config.submit_retries,
    )


def _build_command(args, config: CLIConfig) -> ClientCommand:
    if args.command == "genesis":
        params = GenesisParameters(
            start_time=args.start_time,
            protocol_magic=args.protocol_magic,
            security_param_k=args.security_param_k,
            n_delegate_addresses=args.n_delegate_addresses,
            n_poor_addresses=args.n_poor_addresses,
            total_balance=args.total_balance,
            delegate_share=args.delegate_share,
            require_network_magic=args.require_network_magic,
            protocol_parameters_file=args.protocol_parameters_file,
            secret_seed=args.secret_seed,
        )
        return Genesis(NewDirectory(args.genesis_output_dir), params)
    if args.command == "dump-hardcoded-genesis":
        return DumpHardcodedGenesis(NewDirectory(args.genesis_output_dir))
    if args.command == "print-genesis-hash":
        return PrintGenesisHash(GenesisFile(args.genesis_json))
    if args.command == "signing-key-public":
        return PrettySigningKeyPublic(SigningKeyFile(args.secret))
    if args.command == "signing-key-address":
        return PrintSigningKeyAddress(args.testnet_magic, SigningKeyFile(args.secret))
    if args.command == "migrate-delegate-key-from":
        return MigrateDelegateKeyFrom(
            parse_protocol(args.from_protocol.strip().lower()),
            NewSigningKeyFile(args.to),
            SigningKeyFile(args.secret),
        )
    if args.command == "keygen":
        requirement = (
            PasswordRequirement.EMPTY_PASSWORD
            if args.no_password
            else PasswordRequirement.GET_PASSWORD
        )
        return Keygen(NewSigningKeyFile(args.secret), requirement)
    if args.command == "to-verification":
        return ToVerification(SigningKeyFile(args.secret), NewVerificationKeyFile(args.to))
    if args.command == "issue-delegation-certificate":
        return IssueDelegationCertificate(
            protocol_magic=args.protocol_magic,
            epoch=args.since_epoch,
            issuer_key=SigningKeyFile(args.secret),
            delegate_key=VerificationKeyFile(args.delegate_key),
            certificate=NewCertificateFile(args.certificate),
        )
    if args.command == "check-delegation":
        return CheckDelegation(
            protocol_magic=args.protocol_magic,
            certificate=CertificateFile(args.certificate),
            issuer_key=VerificationKeyFile(args.issuer_key),
            delegate_key=VerificationKeyFile(args.delegate_key),
        )
    if args.command == "submit-tx":
        return SubmitTx(
            topology=TopologyInfo(node_id=args.node_id, topology_file=args.topology),
            tx_file=TxFile(args.tx),
            common=_common_cli(args, config),
        )
    if args.command == "issue-genesis-utxo-expenditure":
        return SpendGenesisUTxO(
            new_tx=NewTxFile(args.tx),
            signing_key=SigningKeyFile(args.wallet_key),
            genesis_address=Address.from_text(args.rich_addr_from),
            outputs=tuple(parse_tx_out(value) for value in args.txout),
            common=_common_cli(args, config),
        )
    if args.command == "issue-utxo-expenditure":
        return SpendUTxO(
            new_tx=NewTxFile(args.tx),
            signing_key=SigningKeyFile(args.wallet_key),
            inputs=tuple(parse_tx_in(value) for value in args.txin),
            outputs=tuple(parse_tx_out(value) for value in args.txout),
            common=_common_cli(args, config),
        )
    raise ValueError(f"unknown command: {args.command}")


def main(
    argv: Sequence[str] | None = None,
    *,
    stdout=sys.stdout,
    stderr=sys.stderr,
    passphrase_reader: Callable[[str], str] = getpass.getpass,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_cli_config(args.config)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    if args.command == "version":
        return _run_version(config=config, as_json=args.json, stdout=stdout)

    try:
        ops = decide_cli_ops((args.protocol or config.protocol).strip().lower())
        command = _build_command(args, config)
        result = run_command(ops, command, stdout=stdout, passphrase_reader=passphrase_reader)
    except ChainCLIError as exc:
        return _report_error(stderr, exc)
    except ValueError as exc:
        return _print_error(stderr, "usage error", str(exc), code=EXIT_VALIDATION_ERROR)

    if isinstance(result, DelegationCheckResult) and not result.ok:
        return EXIT_VERIFICATION_FAILED
    return EXIT_SUCCESS


if __name__ == "__main__":
    raise SystemExit(main())
