from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from debugproto.protocol import framing, validator
from debugproto.protocol.errors import FrameIOError
from kaideploy.config import CLIENT_CONFIG

logger = logging.getLogger(__name__)


class DeviceConnectionError(ConnectionError):
    """Transport level error surfaced to higher layers."""

    pass


class DebuggerClient:
    """TCP client for one debugger socket: every frame sent is answered by one frame read.

    There is no background receive loop. Callers alternate :meth:`send` and
    :meth:`receive` (or use :meth:`request`) from a single task.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> None:
        self.config = config or CLIENT_CONFIG
        self.host: str = host or self.config["device_host"]
        self.port: int = int(port or self.config["device_port"])
        self.request_timeout: float = float(self.config.get("request_timeout") or 0)
        self.connect_timeout: float = float(self.config.get("connect_timeout") or 0)
        self.strict_length: bool = bool(self.config.get("strict_frame_length", False))

        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.connected: bool = False

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    async def connect(self) -> None:
        if self.connected:
            return
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port), self.connect_timeout or None
            )
        except (OSError, asyncio.TimeoutError) as exc:
            logger.warning("Connect to %s failed: %s", self.address, exc)
            raise DeviceConnectionError(f"Cannot connect to {self.address}: {str(exc) or type(exc).__name__}") from exc
        self.connected = True
        logger.info("Connected to %s", self.address)

    async def close(self) -> None:
        if self.writer is None:
            return
        writer = self.writer
        self.reader = None
        self.writer = None
        self.connected = False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError as exc:
            logger.debug("Error while closing %s: %s", self.address, exc)
        logger.info("Connection to %s closed", self.address)

    async def send(self, message: Dict[str, Any]) -> int:
        if not self.connected or self.writer is None:
            raise DeviceConnectionError("Not connected to device")
        validator.validate_msg(message)
        try:
            written = await framing.write_frame(self.writer, message)
        except (ConnectionResetError, BrokenPipeError, ConnectionAbortedError) as exc:
            self.connected = False
            raise DeviceConnectionError(f"Connection lost: {exc}") from exc
        except OSError as exc:
            raise FrameIOError(f"Send failed: {exc}") from exc
        logger.debug("Sent %s to %s (%s bytes)", message.get("type"), message.get("to"), written)
        return written

    async def receive(self) -> Dict[str, Any]:
        if not self.connected or self.reader is None:
            raise DeviceConnectionError("Not connected to device")
        try:
            message = await asyncio.wait_for(
                framing.read_frame(self.reader, strict_length=self.strict_length),
                self.request_timeout or None,
            )
        except asyncio.TimeoutError as exc:
            raise FrameIOError(f"No reply from {self.address} within {self.request_timeout}s") from exc
        except (ConnectionResetError, ConnectionAbortedError) as exc:
            self.connected = False
            raise DeviceConnectionError(f"Connection lost: {exc}") from exc
        logger.debug("Received reply from %s: %s", message.get("from", self.address), sorted(message))
        return message

    async def request(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """Send one request and wait for its single reply."""
        await self.send(message)
        return await self.receive()
