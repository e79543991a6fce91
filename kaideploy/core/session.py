"""Install session: the fixed request/reply sequence that uploads and installs a package.

Every step is a coroutine guarded by the state it must start from::

    IDLE -> CONNECTED -> GREETED -> TABS_LISTED -> UPLOAD_REQUESTED -> UPLOADED
         -> UPLOAD_FINISHED -> INSTALLED -> UPLOAD_REMOVED [-> LAUNCHED] -> CLOSED

A step that raises moves the session to FAILED; nothing after it is sent.
:meth:`InstallSession.run` drives the whole sequence and always releases the
connection.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from functools import wraps
from typing import Any, Dict, Iterator, Optional

from debugproto.protocol.constants import DEFAULT_CHUNK_SIZE
from debugproto.protocol.errors import ErrorCode, ProtocolError
from debugproto.protocol.messages import (
    BaseMsg,
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
from debugproto.utils import generate_app_id
from kaideploy.core.network import DebuggerClient

logger = logging.getLogger(__name__)

EventObserver = Callable[[Dict[str, Any]], None]


class SessionError(ProtocolError):
    pass


class InstallState(StrEnum):
    IDLE = "idle"
    CONNECTED = "connected"
    GREETED = "greeted"
    TABS_LISTED = "tabs_listed"
    UPLOAD_REQUESTED = "upload_requested"
    UPLOADED = "uploaded"
    UPLOAD_FINISHED = "upload_finished"
    INSTALLED = "installed"
    UPLOAD_REMOVED = "upload_removed"
    LAUNCHED = "launched"
    FAILED = "failed"
    CLOSED = "closed"


@dataclass
class InstallResult:
    app_id: str
    requested_app_id: str
    app_path: Optional[str]
    chunks_sent: int
    bytes_sent: int
    launched: bool


def _step(entry: InstallState, exit_state: InstallState):
    """Guard a step coroutine with its entry state and advance on success."""

    def decorator(func):
        @wraps(func)
        async def wrapper(self: "InstallSession", *args, **kwargs):
            self._require(entry, func.__name__)
            try:
                self._check_cancelled(func.__name__)
                result = await func(self, *args, **kwargs)
            except (Exception, asyncio.CancelledError):
                self._fail(func.__name__)
                raise
            self._advance(exit_state)
            return result

        return wrapper

    return decorator


class InstallSession:
    """Drives one install transaction over one debugger connection."""

    def __init__(
        self,
        client: DebuggerClient,
        payload: bytes,
        launch: bool = False,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        observer: Optional[EventObserver] = None,
        app_id_factory: Callable[[], str] = generate_app_id,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.client = client
        self.payload = bytes(payload)
        self.launch_after_install = launch
        self.chunk_size = chunk_size
        self.observer = observer
        self.app_id_factory = app_id_factory

        self.state = InstallState.IDLE
        self.failed_step: Optional[str] = None
        self.device_info: Optional[DeviceInfo] = None
        self.webapps_actor: Optional[str] = None
        self.upload_actor: Optional[str] = None
        self.requested_app_id: Optional[str] = None
        self.app_id: Optional[str] = None
        self.app_path: Optional[str] = None
        self.chunks_sent = 0
        self.bytes_sent = 0
        self.launched = False
        self._cancel_requested = False

    async def run(self) -> InstallResult:
        """Run every step in order; the connection is closed on every exit path."""
        try:
            await self.connect()
            await self.await_greeting()
            await self.list_tabs()
            await self.request_upload()
            await self.upload_chunks()
            await self.finish_upload()
            await self.install()
            await self.remove_upload_actor()
            if self.launch_after_install:
                await self.launch()
        finally:
            await self.close()
        return self.result()

    def result(self) -> InstallResult:
        if self.app_id is None or self.requested_app_id is None:
            raise SessionError(ErrorCode.INVALID_STATE, "Install has not completed")
        return InstallResult(
            app_id=self.app_id,
            requested_app_id=self.requested_app_id,
            app_path=self.app_path,
            chunks_sent=self.chunks_sent,
            bytes_sent=self.bytes_sent,
            launched=self.launched,
        )

    def cancel(self) -> None:
        """Stop the session at the next step or chunk boundary.

        A frame that is already being written or awaited is completed first so
        the stream never stops in the middle of a frame.
        """
        self._cancel_requested = True

    def iter_chunks(self) -> Iterator[bytes]:
        for offset in range(0, len(self.payload), self.chunk_size):
            yield self.payload[offset : offset + self.chunk_size]

    @_step(InstallState.IDLE, InstallState.CONNECTED)
    async def connect(self) -> None:
        await self.client.connect()

    @_step(InstallState.CONNECTED, InstallState.GREETED)
    async def await_greeting(self) -> DeviceInfo:
        self.device_info = DeviceInfo.from_dict(await self.client.receive())
        self._emit_event(
            {
                "type": "device",
                "application_type": self.device_info.application_type,
                "traits": self.device_info.traits,
            }
        )
        return self.device_info

    @_step(InstallState.GREETED, InstallState.TABS_LISTED)
    async def list_tabs(self) -> str:
        reply = ListTabsReply.from_dict(await self._exchange(ListTabsMsg()))
        self.webapps_actor = reply.webapps_actor
        self._emit_event({"type": "actor", "role": "webapps", "actor": self.webapps_actor})
        logger.info("webapps actor: %s", self.webapps_actor)
        return self.webapps_actor

    @_step(InstallState.TABS_LISTED, InstallState.UPLOAD_REQUESTED)
    async def request_upload(self) -> str:
        reply = UploadPackageReply.from_dict(await self._exchange(UploadPackageMsg(to=self.webapps_actor)))
        self.upload_actor = reply.actor
        self._emit_event({"type": "actor", "role": "upload", "actor": self.upload_actor})
        logger.info("upload actor: %s", self.upload_actor)
        return self.upload_actor

    @_step(InstallState.UPLOAD_REQUESTED, InstallState.UPLOADED)
    async def upload_chunks(self) -> int:
        total = len(self.payload)
        for window in self.iter_chunks():
            self._check_cancelled("upload_chunks")
            reply = ChunkReply.from_dict(await self._exchange(ChunkMsg(to=self.upload_actor, data=window)))
            self.chunks_sent += 1
            self.bytes_sent += len(window)
            self._emit_event(
                {
                    "type": "progress",
                    "chunks": self.chunks_sent,
                    "bytes": self.bytes_sent,
                    "total": total,
                    "written": reply.written,
                    "size": reply.size,
                }
            )
        logger.info("Uploaded %s bytes in %s chunks", self.bytes_sent, self.chunks_sent)
        return self.chunks_sent

    @_step(InstallState.UPLOADED, InstallState.UPLOAD_FINISHED)
    async def finish_upload(self) -> None:
        await self._exchange(DoneMsg(to=self.upload_actor))

    @_step(InstallState.UPLOAD_FINISHED, InstallState.INSTALLED)
    async def install(self) -> str:
        self.requested_app_id = self.app_id_factory()
        request = InstallMsg(to=self.webapps_actor, upload=self.upload_actor, app_id=self.requested_app_id)
        reply = InstallReply.from_dict(await self._exchange(request))
        # The device may assign its own id; everything after this uses the reply's.
        self.app_id = reply.app_id
        self.app_path = reply.path if isinstance(reply.path, str) else None
        self._emit_event({"type": "installed", "app_id": self.app_id, "path": self.app_path})
        logger.info("Installed app %s", self.app_id)
        return self.app_id

    @_step(InstallState.INSTALLED, InstallState.UPLOAD_REMOVED)
    async def remove_upload_actor(self) -> None:
        await self._exchange(RemoveMsg(to=self.upload_actor))

    @_step(InstallState.UPLOAD_REMOVED, InstallState.LAUNCHED)
    async def launch(self) -> None:
        await self._exchange(LaunchMsg.for_app(self.webapps_actor, self.app_id))
        self.launched = True
        logger.info("Launched app %s", self.app_id)

    async def close(self) -> None:
        if self.state == InstallState.CLOSED:
            return
        try:
            await self.client.close()
        finally:
            self._advance(InstallState.CLOSED)

    async def _exchange(self, request: BaseMsg) -> Dict[str, Any]:
        command = request.command_text
        await self.client.send(request.to_wire())
        self._emit_event({"type": "sent", "command": command, "to": request.to})
        reply = await self.client.receive()
        error = reply_error(reply)
        if error:
            logger.warning("Device reported an error for %s: %s", command, error)
        self._emit_event({"type": "received", "command": command, "reply": reply, "error": error})
        return reply

    def _require(self, expected: InstallState, step: str) -> None:
        if self.state != expected:
            raise SessionError(
                ErrorCode.INVALID_STATE,
                f"{step} requires state {expected.value}, session is {self.state.value}",
            )

    def _check_cancelled(self, step: str) -> None:
        if self._cancel_requested:
            raise SessionError(ErrorCode.CANCELLED, f"Session cancelled before {step}")

    def _advance(self, state: InstallState) -> None:
        self.state = state
        logger.debug("Install session -> %s", state.value)
        self._emit_event({"type": "state", "state": state.value})

    def _fail(self, step: str) -> None:
        self.failed_step = step
        self.state = InstallState.FAILED
        logger.debug("Install session failed during %s", step)
        self._emit_event({"type": "state", "state": InstallState.FAILED.value, "step": step})

    def _emit_event(self, event: Dict[str, Any]) -> None:
        if self.observer is not None:
            self.observer(event)


__all__ = ["EventObserver", "InstallResult", "InstallSession", "InstallState", "SessionError"]
