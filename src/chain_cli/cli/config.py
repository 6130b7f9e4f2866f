"""Configuration helpers for the chain-cli command line."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from chain_cli.errors import ConfigError

DEFAULT_CONFIG_PATH = Path.home() / ".chain_cli" / "config.toml"
DEFAULT_PROTOCOL = "real-pbft"
PROTOCOL_ENV_VAR = "CHAIN_CLI_PROTOCOL"


@dataclass(frozen=True)
class CLIConfig:
    protocol: str = DEFAULT_PROTOCOL
    submit_timeout: float = 10.0
    submit_retries: int = 2


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise ConfigError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _to_positive_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{field_name} must be a number")
    if value <= 0:
        raise ConfigError(f"{field_name} must be > 0")
    return float(value)


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{field_name} must be an integer")
    if value < 0:
        raise ConfigError(f"{field_name} must be >= 0")
    return value


def load_cli_config(path: str | Path | None = None) -> CLIConfig:
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    env_protocol = os.getenv(PROTOCOL_ENV_VAR)
    if not config_path.exists():
        source: dict[str, Any] = {}
    else:
        parsed = _load_toml(config_path)
        section = parsed.get("cli")
        if isinstance(section, dict):
            source = section
        elif section is None:
            source = parsed
        else:
            raise ConfigError("[cli] must be a table")

    configured_protocol = str(source.get("protocol", DEFAULT_PROTOCOL)).strip().lower()
    protocol = env_protocol.strip().lower() if env_protocol else configured_protocol
    if not protocol:
        raise ConfigError("protocol must not be empty")

    submit_timeout = _to_positive_float(source.get("submit_timeout", 10.0), "submit_timeout")
    submit_retries = _to_non_negative_int(source.get("submit_retries", 2), "submit_retries")

    return CLIConfig(
        protocol=protocol,
        submit_timeout=submit_timeout,
        submit_retries=submit_retries,
    )
