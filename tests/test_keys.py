from __future__ import annotations

import pytest

from chain_cli.errors import (
    KeyDeserializationError,
    KeyFileNotFoundError,
    KeyFileReadError,
    PassphraseError,
)
from chain_cli.keys import (
    PasswordRequirement,
    SigningKey,
    VerificationKey,
    derive_verification_key,
    format_full_verification_key,
    get_passphrase,
    keygen,
    pretty_public_key,
    read_signing_key,
    read_verification_key,
)
from chain_cli.ops import decide_cli_ops


def _signing_key(fill: int = 7) -> SigningKey:
    return SigningKey(private_key_bytes=bytes([fill]) * 32)


def test_derive_verification_key_is_deterministic() -> None:
    signing_key = _signing_key()
    assert derive_verification_key(signing_key) == derive_verification_key(signing_key)
    assert derive_verification_key(signing_key) != derive_verification_key(_signing_key(8))


def test_signing_key_never_renders_secret() -> None:
    signing_key = _signing_key(0xAB)
    rendered = repr(signing_key) + str(signing_key)
    assert "abab" not in rendered.lower()
    assert "171" not in rendered
    assert str(signing_key) == "SigningKey(<redacted>)"


def test_key_lengths_are_enforced() -> None:
    with pytest.raises(KeyDeserializationError):
        SigningKey(private_key_bytes=b"short")
    with pytest.raises(KeyDeserializationError):
        VerificationKey(b"\x00" * 31)


def test_keygen_keeps_passphrase_only_when_non_empty() -> None:
    assert keygen(None).encrypted is False
    assert keygen(b"").passphrase is None
    assert keygen(b"pw").encrypted is True


def test_empty_password_requirement_never_prompts() -> None:
    def reader(prompt: str) -> str:
        raise AssertionError("should not prompt")

    assert get_passphrase("pw: ", PasswordRequirement.EMPTY_PASSWORD, reader=reader) is None


def test_get_password_requires_matching_confirmation() -> None:
    answers = iter(["hunter2", "hunter2"])
    passphrase = get_passphrase(
        "pw: ", PasswordRequirement.GET_PASSWORD, reader=lambda prompt: next(answers)
    )
    assert passphrase == b"hunter2"

    answers = iter(["hunter2", "hunter3"])
    with pytest.raises(PassphraseError):
        get_passphrase(
            "pw: ", PasswordRequirement.GET_PASSWORD, reader=lambda prompt: next(answers)
        )


def test_empty_entered_password_means_unencrypted() -> None:
    passphrase = get_passphrase("pw: ", PasswordRequirement.GET_PASSWORD, reader=lambda prompt: "")
    assert passphrase is None


def test_verification_key_file_round_trip(tmp_path) -> None:
    verification_key = derive_verification_key(_signing_key())
    path = tmp_path / "key.vk"
    path.write_text(format_full_verification_key(verification_key), encoding="utf-8")

    assert read_verification_key(path) == verification_key


def test_invalid_verification_key_file(tmp_path) -> None:
    path = tmp_path / "key.vk"
    path.write_text("not base64!!\n", encoding="utf-8")

    with pytest.raises(KeyDeserializationError):
        read_verification_key(path)


def test_missing_key_files_raise_not_found(tmp_path) -> None:
    with pytest.raises(KeyFileNotFoundError):
        read_verification_key(tmp_path / "missing.vk")
    with pytest.raises(KeyFileNotFoundError):
        read_signing_key(decide_cli_ops("real-pbft"), tmp_path / "missing.key")


def test_directory_key_path_is_a_read_error(tmp_path) -> None:
    with pytest.raises(KeyFileReadError) as excinfo:
        read_signing_key(decide_cli_ops("real-pbft"), tmp_path)
    assert excinfo.value.path == str(tmp_path)
    with pytest.raises(KeyFileReadError):
        read_verification_key(tmp_path)


def test_pretty_public_key_lists_hash_and_encodings() -> None:
    verification_key = derive_verification_key(_signing_key())
    lines = pretty_public_key(verification_key).splitlines()

    assert lines == [
        f"public key hash: {verification_key.key_hash_hex}",
        f"public key (base64): {verification_key.public_key_b64}",
        f"public key (base16): {verification_key.public_key_bytes.hex()}",
    ]
    assert len(verification_key.key_hash_hex) == 56
