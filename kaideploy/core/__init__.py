from .network import DebuggerClient, DeviceConnectionError
from .session import InstallResult, InstallSession, InstallState, SessionError

__all__ = [
    "DebuggerClient",
    "DeviceConnectionError",
    "InstallResult",
    "InstallSession",
    "InstallState",
    "SessionError",
]
