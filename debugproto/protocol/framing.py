"""Length-prefixed JSON framing for the remote debugger socket.

Frame layout::

    <decimal length>:<exactly `length` bytes of UTF-8 JSON>

There is no trailing delimiter after the payload. Upload chunks are carried
as JSON strings produced by :func:`escape_chunk`, which maps every byte on its
own instead of treating the data as UTF-8 text.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .constants import ENCODING, FRAME_DELIMITER
from .errors import ErrorCode, FrameIOError, ProtocolError

logger = logging.getLogger(__name__)

_HEX_DIGITS = "0123456789abcdef"
_SHORT_ESCAPES = {
    0x08: "\\b",
    0x09: "\\t",
    0x0A: "\\n",
    0x0C: "\\f",
    0x0D: "\\r",
    0x22: '\\"',
    0x5C: "\\\\",
}


def _build_escape_table() -> Tuple[str, ...]:
    table = []
    for value in range(256):
        if value in _SHORT_ESCAPES:
            table.append(_SHORT_ESCAPES[value])
        elif 0x20 <= value <= 0x7E:
            table.append(chr(value))
        else:
            table.append("\\u00" + _HEX_DIGITS[value >> 4] + _HEX_DIGITS[value & 0x0F])
    return tuple(table)


_ESCAPE_TABLE = _build_escape_table()


@dataclass(frozen=True)
class JSONLiteral:
    """Already-encoded JSON text that :func:`encode_msg` embeds verbatim."""

    text: str


def escape_chunk(data: bytes) -> JSONLiteral:
    """Encode raw bytes as a double-quoted JSON string literal.

    Printable ASCII passes through, the usual short escapes are used for
    backspace, tab, newline, form feed, carriage return, quote and backslash,
    and every other byte (0x7F and above included) becomes ``\\u00xx``.
    """
    return JSONLiteral('"' + "".join(_ESCAPE_TABLE[value] for value in data) + '"')


def _dumps(value: Any) -> str:
    if isinstance(value, JSONLiteral):
        return value.text
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def encode_msg(msg: Dict[str, Any]) -> bytes:
    """Encode a message dict into one frame (length prefix + compact JSON)."""
    try:
        members = []
        for key, value in msg.items():
            if not isinstance(key, str):
                raise TypeError(f"message keys must be str, not {type(key).__name__}")
            members.append(f"{_dumps(key)}:{_dumps(value)}")
        data = ("{" + ",".join(members) + "}").encode(ENCODING)
    except (TypeError, ValueError) as exc:
        raise ProtocolError(ErrorCode.ENCODE_FAILED, f"Encode failed: {exc}") from exc
    return str(len(data)).encode("ascii") + FRAME_DELIMITER + data


def decode_msg(data: bytes) -> Dict[str, Any]:
    """Decode one frame payload into a dictionary."""
    try:
        msg = json.loads(data.decode(ENCODING))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ProtocolError(ErrorCode.MALFORMED_JSON, f"Decode failed: {exc}") from exc
    if not isinstance(msg, dict):
        raise ProtocolError(ErrorCode.MALFORMED_JSON, f"Expected a JSON object, got {type(msg).__name__}")
    return msg


def parse_length(digits: bytes, strict: bool = False) -> int:
    """Parse the decimal length prefix of a frame.

    A missing or malformed prefix is read as length 0 unless ``strict`` is
    set. The zero-length payload then fails JSON decoding, so the frame is
    still rejected; only the reported cause differs.
    """
    if digits.isdigit():
        return int(digits)
    if strict:
        raise ProtocolError(ErrorCode.INVALID_LENGTH, f"Malformed length prefix {digits!r}")
    logger.warning("Malformed length prefix %r, treating as zero", digits)
    return 0


async def read_frame(reader: asyncio.StreamReader, strict_length: bool = False) -> Dict[str, Any]:
    """Read a single frame from the stream and decode it."""
    try:
        prefix = await reader.readuntil(FRAME_DELIMITER)
    except asyncio.IncompleteReadError as exc:
        raise FrameIOError(f"Stream closed before frame delimiter ({len(exc.partial)} bytes pending)") from exc
    except asyncio.LimitOverrunError as exc:
        raise ProtocolError(
            ErrorCode.INVALID_LENGTH, f"No frame delimiter within {exc.consumed} bytes"
        ) from exc

    length = parse_length(prefix[: -len(FRAME_DELIMITER)], strict=strict_length)
    try:
        data = await reader.readexactly(length)
    except asyncio.IncompleteReadError as exc:
        raise FrameIOError(f"Stream closed after {len(exc.partial)} of {length} payload bytes") from exc
    return decode_msg(data)


async def write_frame(writer: asyncio.StreamWriter, msg: Dict[str, Any]) -> int:
    """Encode ``msg`` and write it as one frame. Returns the bytes written."""
    data = encode_msg(msg)
    writer.write(data)
    await writer.drain()
    return len(data)
