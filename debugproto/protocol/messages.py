from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from .commands import MsgType, normalize_command
from .constants import MANIFEST_URL_TEMPLATE, ROOT_ACTOR
from .errors import ErrorCode, ProtocolError
from .framing import escape_chunk


class BaseMsg(BaseModel):
    """Base envelope shared by every request: destination actor + type."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    to: str = Field(..., description="Destination actor handle")
    type: Union[MsgType, str] = Field(..., description="Request type such as listTabs")

    @property
    def command_text(self) -> str:
        return normalize_command(self.type)

    def to_wire(self) -> Dict[str, Any]:
        """Dump to the dict handed to the frame encoder (wire field names)."""
        data = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        data["type"] = self.command_text
        return data


class ListTabsMsg(BaseMsg):
    to: str = ROOT_ACTOR
    type: MsgType = Field(default=MsgType.LIST_TABS, frozen=True)


class UploadPackageMsg(BaseMsg):
    type: MsgType = Field(default=MsgType.UPLOAD_PACKAGE, frozen=True)


class ChunkMsg(BaseMsg):
    type: MsgType = Field(default=MsgType.CHUNK, frozen=True)
    data: bytes = Field(..., exclude=True, description="Raw payload window")

    def to_wire(self) -> Dict[str, Any]:
        wire = super().to_wire()
        wire["chunk"] = escape_chunk(self.data)
        return wire


class DoneMsg(BaseMsg):
    type: MsgType = Field(default=MsgType.DONE, frozen=True)


class InstallMsg(BaseMsg):
    type: MsgType = Field(default=MsgType.INSTALL, frozen=True)
    upload: str = Field(..., description="Upload actor holding the package")
    app_id: str = Field(..., alias="appId")


class RemoveMsg(BaseMsg):
    type: MsgType = Field(default=MsgType.REMOVE, frozen=True)


class LaunchMsg(BaseMsg):
    type: MsgType = Field(default=MsgType.LAUNCH, frozen=True)
    manifest_url: str = Field(..., alias="manifestURL")

    @classmethod
    def for_app(cls, to: str, app_id: str) -> "LaunchMsg":
        return cls(to=to, manifest_url=MANIFEST_URL_TEMPLATE.format(app_id=app_id))


class BaseReply(BaseModel):
    """Base for device replies. Unknown keys are kept, never rejected."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    sender: Optional[Any] = Field(default=None, alias="from")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BaseReply":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ProtocolError(ErrorCode.MISSING_FIELD, f"{cls.__name__} validation failed: {exc}") from exc


class DeviceInfo(BaseReply):
    """Unsolicited greeting sent by the device when the socket opens."""

    application_type: Optional[Any] = Field(default=None, alias="applicationType")
    traits: Optional[Any] = None


class ListTabsReply(BaseReply):
    webapps_actor: StrictStr = Field(..., alias="webappsActor")


class UploadPackageReply(BaseReply):
    actor: StrictStr


class ChunkReply(BaseReply):
    # Progress counters are informational; any value (or none) is accepted.
    written: Optional[Any] = None
    size: Optional[Any] = Field(default=None, alias="_size")


class InstallReply(BaseReply):
    app_id: StrictStr = Field(..., alias="appId")
    path: Optional[Any] = None


def reply_error(msg: Dict[str, Any]) -> Optional[str]:
    """Describe the device error carried by ``msg``, or ``None``.

    Error replies are informational only; the install sequence does not stop
    on them.
    """
    error = msg.get("error")
    if error is None:
        return None
    detail = msg.get("message") or ""
    return f"{error} {detail}".strip()


__all__ = [
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
]
