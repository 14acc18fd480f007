# Author: PB & Claude
# Maintainer: PB
# Original date: 2025-06-13
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/storage/durable.py

"""
Durable file primitives.

A write returned from here has reached stable storage (barring device
failure). Content is always staged in a sibling `.pending-<token>` file and
only then moved into place, so readers see either the old content or the
new content, never a prefix of it.
"""

import os
import uuid
from pathlib import Path

from loguru import logger

from vaultwal.system.exceptions import WalIoError


def _pending_path(path: Path) -> Path:
    return path.with_name(f"{path.name}.pending-{uuid.uuid4().hex[:8]}")


def fsync_directory(directory: Path) -> None:
    """Flush directory metadata (renames, links, unlinks) to disk.

    Platforms that cannot open a directory (Windows) are skipped silently.
    """
    try:
        fd = os.open(directory, os.O_RDONLY)
    except (PermissionError, IsADirectoryError):
        return
    except OSError as e:
        if os.name == "nt":
            return
        raise WalIoError(f"Failed to open directory for sync: {e}", path=directory) from e
    try:
        os.fsync(fd)
    except OSError as e:
        if os.name != "nt":
            raise WalIoError(f"Failed to sync directory: {e}", path=directory) from e
    finally:
        os.close(fd)


def _write_pending(path: Path, content: bytes) -> Path:
    """Write and fsync content into a fresh sibling of path, return its path."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WalIoError(f"Failed to create directory: {e}", path=path.parent) from e

    pending = _pending_path(path)
    try:
        with open(pending, "xb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        pending.unlink(missing_ok=True)
        raise WalIoError(f"Failed to write file: {e}", path=path) from e
    return pending


def _as_bytes(content: str | bytes) -> bytes:
    if isinstance(content, str):
        return content.encode("utf-8")
    return content


def write_synced(path: Path, content: str | bytes) -> None:
    """
    Replace the whole content of path and flush it to disk.

    Creates missing parent directories. Strings are encoded as UTF-8 without
    any transformation, so a registry snapshot is restored byte for byte.

    Raises:
        WalIoError: directory creation, write, flush or rename failed
    """
    path = Path(path)
    pending = _write_pending(path, _as_bytes(content))
    try:
        os.replace(pending, path)
    except OSError as e:
        pending.unlink(missing_ok=True)
        raise WalIoError(f"Failed to replace file: {e}", path=path) from e
    fsync_directory(path.parent)
    logger.debug(f"Synced write of {path}")


def create_exclusive(path: Path, content: str | bytes) -> None:
    """
    Create path with content only if it does not exist yet.

    The content is complete and flushed before the file becomes visible
    under its final name, and the existence check and the creation are a
    single hard-link operation.

    Raises:
        FileExistsError: path already exists (nothing was changed)
        WalIoError: any other filesystem failure
    """
    path = Path(path)
    pending = _write_pending(path, _as_bytes(content))
    try:
        os.link(pending, path)
    except FileExistsError:
        raise
    except OSError as e:
        raise WalIoError(f"Failed to create file: {e}", path=path) from e
    finally:
        pending.unlink(missing_ok=True)
    fsync_directory(path.parent)
    logger.debug(f"Exclusively created {path}")


def read_bytes(path: Path) -> bytes:
    """Read a file exactly as stored.

    Raises:
        FileNotFoundError: path does not exist
        WalIoError: any other read failure
    """
    path = Path(path)
    try:
        return path.read_bytes()
    except FileNotFoundError:
        raise
    except OSError as e:
        raise WalIoError(f"Failed to read file: {e}", path=path) from e


def read_text(path: Path) -> str:
    """Read a UTF-8 file exactly as stored (no newline translation).

    Raises:
        FileNotFoundError: path does not exist
        WalIoError: any other read failure, including invalid UTF-8
    """
    content = read_bytes(path)
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise WalIoError(f"Failed to read file: {e}", path=path) from e


def remove_file(path: Path, missing_ok: bool = True) -> bool:
    """Delete path and flush the directory entry removal.

    Returns:
        True if a file was removed, False if it was already absent
    """
    path = Path(path)
    try:
        path.unlink()
    except FileNotFoundError:
        if missing_ok:
            return False
        raise
    except OSError as e:
        raise WalIoError(f"Failed to remove file: {e}", path=path) from e
    fsync_directory(path.parent)
    return True


def sweep_pending(path: Path) -> list[Path]:
    """Remove `.pending-<token>` siblings of path left behind by a crash.

    Only safe while no writer for path is running, i.e. during startup
    recovery. Returns the removed paths.
    """
    path = Path(path)
    if not path.parent.is_dir():
        return []
    removed = []
    for stale in sorted(path.parent.glob(f"{path.name}.pending-*")):
        if not stale.is_file():
            continue
        remove_file(stale)
        removed.append(stale)
        logger.info(f"Removed stale pending file {stale}")
    return removed
