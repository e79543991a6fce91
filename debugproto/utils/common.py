from __future__ import annotations

from uuid import uuid4


def generate_app_id() -> str:
    """Random app id in canonical lowercase UUID text form."""
    return str(uuid4())


def format_bytes(size: int) -> str:
    """Human readable byte count for progress output."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KiB"
    return f"{size / (1024 * 1024):.1f} MiB"


__all__ = ["generate_app_id", "format_bytes"]
