"""Write-once helpers for new output artifacts.

Every artifact the CLI produces goes through ``ensure_new_file``: the payload is
written to a temporary file next to the target and then hard-linked into place.
Linking fails when the target exists, so a pre-existing file is never replaced
even if it appears between the existence check and the write, and a failed
write never leaves a partial artifact behind.

Files get the usual ``0o666`` minus the process umask unless a ``mode`` is
given; secrets pass ``0o600``.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, TypeVar

from chain_cli.errors import OutputMustNotAlreadyExistError, OutputWriteError

T = TypeVar("T")


def _write_bytes(path: Path, payload: bytes) -> None:
    path.write_bytes(payload)


def _write_text(path: Path, payload: str) -> None:
    path.write_text(payload, encoding="utf-8")


def _os_reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


def _default_file_mode() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def ensure_new_file(
    writer: Callable[[Path, T], None],
    path: str | Path,
    payload: T,
    *,
    mode: int | None = None,
) -> Path:
    target = Path(path)
    if os.path.lexists(target):
        raise OutputMustNotAlreadyExistError(str(target))

    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
    except OSError as exc:
        raise OutputWriteError(str(target), _os_reason(exc)) from exc
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        writer(tmp_path, payload)
        if os.name == "posix":
            tmp_path.chmod(mode if mode is not None else _default_file_mode())
        os.link(tmp_path, target)
    except FileExistsError as exc:
        raise OutputMustNotAlreadyExistError(str(target)) from exc
    except OSError as exc:
        raise OutputWriteError(str(target), _os_reason(exc)) from exc
    finally:
        tmp_path.unlink(missing_ok=True)
    return target


def ensure_new_file_bytes(path: str | Path, payload: bytes, *, mode: int | None = None) -> Path:
    return ensure_new_file(_write_bytes, path, payload, mode=mode)


def ensure_new_file_text(path: str | Path, payload: str, *, mode: int | None = None) -> Path:
    return ensure_new_file(_write_text, path, payload, mode=mode)


def ensure_new_directory(path: str | Path) -> Path:
    target = Path(path)
    try:
        target.mkdir()
    except FileExistsError as exc:
        raise OutputMustNotAlreadyExistError(str(target)) from exc
    except OSError as exc:
        raise OutputWriteError(str(target), _os_reason(exc)) from exc
    return target
