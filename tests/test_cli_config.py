from __future__ import annotations

import pytest

from chain_cli.cli.config import PROTOCOL_ENV_VAR, load_cli_config
from chain_cli.errors import ConfigError


def test_defaults_when_config_file_missing(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv(PROTOCOL_ENV_VAR, raising=False)
    config = load_cli_config(tmp_path / "missing.toml")
    assert config.protocol == "real-pbft"
    assert config.submit_timeout == 10.0
    assert config.submit_retries == 2


def test_cli_table_values_are_used(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv(PROTOCOL_ENV_VAR, raising=False)
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        '[cli]\nprotocol = "Byron-Legacy"\nsubmit_timeout = 2.5\nsubmit_retries = 0\n',
        encoding="utf-8",
    )
    config = load_cli_config(config_path)
    assert config.protocol == "byron-legacy"
    assert config.submit_timeout == 2.5
    assert config.submit_retries == 0


def test_top_level_keys_are_accepted_without_table(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv(PROTOCOL_ENV_VAR, raising=False)
    config_path = tmp_path / "config.toml"
    config_path.write_text('protocol = "byron-legacy"\n', encoding="utf-8")
    assert load_cli_config(config_path).protocol == "byron-legacy"


def test_env_protocol_overrides_config_file(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('[cli]\nprotocol = "byron-legacy"\n', encoding="utf-8")
    monkeypatch.setenv(PROTOCOL_ENV_VAR, "real-pbft")
    assert load_cli_config(config_path).protocol == "real-pbft"


@pytest.mark.parametrize(
    "content",
    [
        "submit_timeout = 0\n",
        'submit_timeout = "fast"\n',
        "submit_retries = -1\n",
        "submit_retries = true\n",
        'protocol = "  "\n',
        "cli = 3\n",
        "[cli\n",
    ],
)
def test_invalid_config_values_are_rejected(tmp_path, monkeypatch, content: str) -> None:
    monkeypatch.delenv(PROTOCOL_ENV_VAR, raising=False)
    config_path = tmp_path / "config.toml"
    config_path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_cli_config(config_path)


def test_unreadable_config_path_is_a_config_error(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv(PROTOCOL_ENV_VAR, raising=False)
    config_dir = tmp_path / "config.toml"
    config_dir.mkdir()

    with pytest.raises(ConfigError, match="cannot read config file"):
        load_cli_config(config_dir)
