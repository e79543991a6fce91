from __future__ import annotations

from enum import IntEnum


class ErrorCode(IntEnum):
    """Protocol failure categories."""

    MALFORMED_JSON = 1001
    MISSING_FIELD = 1002
    INVALID_LENGTH = 1003
    ENCODE_FAILED = 1004
    SCHEMA_MISMATCH = 1005
    INVALID_STATE = 1007
    CANCELLED = 1008


class ProtocolError(Exception):
    """Structured protocol exception carrying an error code + message."""

    def __init__(self, code: ErrorCode, message: str = "") -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code.name.lower().replace('_', '-')}: {message}")


class FrameIOError(OSError):
    """The stream closed, stalled or refused bytes in the middle of a frame."""

    pass


__all__ = ["ErrorCode", "ProtocolError", "FrameIOError"]
