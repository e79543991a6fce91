"""Shared fixtures for deploy tests.

Fakes the device side of the debugger socket:
- greets every new connection with an unsolicited frame
- records each request frame it reads
- answers by request ``type`` from a scripted reply table
"""

import asyncio
import threading

import pytest

from debugproto.protocol.errors import FrameIOError
from debugproto.protocol.framing import read_frame, write_frame
from kaideploy.core.network import DebuggerClient

# Reply markers understood by FakeDevice
DROP = object()  # close the connection instead of replying
SILENT = object()  # read the request but never answer


def default_replies():
    return {
        "listTabs": {"from": "root", "webappsActor": "actor-42"},
        "uploadPackage": {"from": "actor-42", "actor": "actor-99"},
        "chunk": {"from": "actor-99", "written": 0, "_size": 0},
        "done": {"from": "actor-99"},
        "install": {"from": "actor-42", "appId": "abc-123", "path": "/data/local/webapps/abc-123"},
        "remove": {"from": "actor-99"},
        "launch": {"from": "actor-42"},
    }


class FakeDevice:
    DROP = DROP
    SILENT = SILENT

    def __init__(self, replies=None, greeting=None):
        self.replies = default_replies()
        self.replies.update(replies or {})
        self.greeting = {"from": "root", "applicationType": "browser", "traits": {}} if greeting is None else greeting
        self.received = []
        self.connections = 0
        self._server = None

    @property
    def types(self):
        return [msg.get("type") for msg in self.received]

    def of_type(self, msg_type):
        return [msg for msg in self.received if msg.get("type") == msg_type]

    async def start(self):
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        return self._server.sockets[0].getsockname()[1]

    async def stop(self):
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def _handle(self, reader, writer):
        self.connections += 1
        try:
            await write_frame(writer, self.greeting)
            while True:
                try:
                    msg = await read_frame(reader)
                except (FrameIOError, ConnectionError):
                    break
                self.received.append(msg)
                reply = self.replies.get(msg.get("type"), {})
                if callable(reply):
                    reply = reply(msg)
                if reply is DROP:
                    break
                if reply is SILENT:
                    continue
                if isinstance(reply, bytes):
                    writer.write(reply)
                    await writer.drain()
                    continue
                await write_frame(writer, reply)
        finally:
            writer.close()


class CountingClient(DebuggerClient):
    """DebuggerClient that records how often it was closed."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.close_calls = 0

    async def close(self):
        self.close_calls += 1
        await super().close()


def make_config(port, **overrides):
    config = {
        "device_host": "127.0.0.1",
        "device_port": port,
        "request_timeout": 5.0,
        "connect_timeout": 5.0,
        "strict_frame_length": False,
    }
    config.update(overrides)
    return config


@pytest.fixture
def make_device():
    return FakeDevice


@pytest.fixture
def device_config():
    return make_config


@pytest.fixture
def client_for():
    def factory(port, **overrides):
        return CountingClient(make_config(port, **overrides))

    return factory


@pytest.fixture
def background_device():
    """Run FakeDevice instances on their own event loop thread."""
    running = []

    def start(device):
        loop = asyncio.new_event_loop()
        thread = threading.Thread(target=loop.run_forever, daemon=True)
        thread.start()
        port = asyncio.run_coroutine_threadsafe(device.start(), loop).result(timeout=5)
        running.append((device, loop, thread))
        return port

    yield start

    for device, loop, thread in running:
        asyncio.run_coroutine_threadsafe(device.stop(), loop).result(timeout=5)
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout=5)
        loop.close()
