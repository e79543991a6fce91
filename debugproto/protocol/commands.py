from __future__ import annotations

from enum import StrEnum
from typing import Union


class MsgType(StrEnum):
    """
    Request ``type`` values sent by the deploy client.
    Member order is the order the install sequence sends them in.
    """

    LIST_TABS = "listTabs"
    UPLOAD_PACKAGE = "uploadPackage"
    CHUNK = "chunk"
    DONE = "done"
    INSTALL = "install"
    REMOVE = "remove"
    LAUNCH = "launch"


def normalize_command(command: Union[str, MsgType]) -> str:
    """Convert enum/string into canonical command text."""
    return command.value if isinstance(command, MsgType) else str(command)


def is_command(value: str) -> bool:
    """Check if `value` is a known request type."""
    try:
        MsgType(value)
        return True
    except ValueError:
        return False


__all__ = ["MsgType", "normalize_command", "is_command"]
