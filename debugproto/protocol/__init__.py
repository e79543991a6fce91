"""
Protocol package that centralizes request types, message models, framing helpers,
and validation utilities for the deploy client.
"""

from .commands import MsgType, is_command, normalize_command
from .constants import DEFAULT_CHUNK_SIZE, ENCODING, FRAME_DELIMITER, ROOT_ACTOR
from .errors import ErrorCode, FrameIOError, ProtocolError
from .framing import (
    JSONLiteral,
    decode_msg,
    encode_msg,
    escape_chunk,
    parse_length,
    read_frame,
    write_frame,
)
from .messages import (
    BaseMsg,
    BaseReply,
    ChunkMsg,
    ChunkReply,
    DeviceInfo,
    DoneMsg,
    InstallMsg,
    InstallReply,
    LaunchMsg,
    ListTabsMsg,
    ListTabsReply,
    RemoveMsg,
    UploadPackageMsg,
    UploadPackageReply,
    reply_error,
)
from .validator import load_schema, validate_msg

__all__ = [
    "MsgType",
    "is_command",
    "normalize_command",
    "DEFAULT_CHUNK_SIZE",
    "ENCODING",
    "FRAME_DELIMITER",
    "ROOT_ACTOR",
    "ErrorCode",
    "FrameIOError",
    "ProtocolError",
    "JSONLiteral",
    "encode_msg",
    "decode_msg",
    "escape_chunk",
    "parse_length",
    "read_frame",
    "write_frame",
    "BaseMsg",
    "ListTabsMsg",
    "UploadPackageMsg",
    "ChunkMsg",
    "DoneMsg",
    "InstallMsg",
    "RemoveMsg",
    "LaunchMsg",
    "BaseReply",
    "DeviceInfo",
    "ListTabsReply",
    "UploadPackageReply",
    "ChunkReply",
    "InstallReply",
    "reply_error",
    "load_schema",
    "validate_msg",
]
