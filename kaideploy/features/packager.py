from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

logger = logging.getLogger(__name__)

VCS_DIR_NAME = ".git"


class PackagingError(Exception):
    """Raised when the app directory cannot be packaged."""

    pass


def pack_directory(
    root: Union[str, Path],
    on_entry: Optional[Callable[[str], None]] = None,
) -> bytes:
    """Zip every file and directory under ``root`` into an in-memory archive.

    Entry names are relative to ``root`` with ``/`` separators; directories
    end with ``/``. ``.git`` directories are skipped at any depth. Files are
    deflated, directories stored.
    """
    root_path = Path(root)
    if not root_path.exists():
        raise PackagingError(f"Source path {root} does not exist")
    if not root_path.is_dir():
        raise PackagingError(f"Source path {root} is not a directory")

    buffer = io.BytesIO()
    try:
        with zipfile.ZipFile(buffer, "w", strict_timestamps=False) as archive:
            for path, is_dir in _iter_entries(root_path):
                name = path.relative_to(root_path).as_posix()
                if is_dir:
                    archive.write(path, arcname=name)
                    name += "/"
                else:
                    archive.write(path, arcname=name, compress_type=zipfile.ZIP_DEFLATED)
                logger.debug("Packed %s", name)
                if on_entry:
                    on_entry(name)
    except OSError as exc:
        raise PackagingError(f"Failed to package {root}: {exc}") from exc

    data = buffer.getvalue()
    logger.info("Packed %s into %s bytes", root_path, len(data))
    return data


def _iter_entries(directory: Path) -> Iterator[Tuple[Path, bool]]:
    """Depth-first walk in name order, each directory before its contents."""
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            if entry.name == VCS_DIR_NAME:
                continue
            yield entry, True
            if entry.is_symlink():
                logger.warning("Not following symlinked directory %s", entry)
                continue
            yield from _iter_entries(entry)
        else:
            yield entry, False


__all__ = ["PackagingError", "pack_directory"]
