import pytest

from debugproto.protocol import (
    ChunkMsg,
    ChunkReply,
    DeviceInfo,
    ErrorCode,
    InstallMsg,
    InstallReply,
    JSONLiteral,
    LaunchMsg,
    ListTabsMsg,
    ListTabsReply,
    MsgType,
    ProtocolError,
    UploadPackageMsg,
    UploadPackageReply,
    load_schema,
    reply_error,
    validate_msg,
)

APP_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"


def test_list_tabs_goes_to_root():
    assert ListTabsMsg().to_wire() == {"to": "root", "type": "listTabs"}


def test_requests_use_wire_field_names():
    assert UploadPackageMsg(to="actor-42").to_wire() == {"to": "actor-42", "type": "uploadPackage"}
    install = InstallMsg(to="actor-42", upload="actor-99", app_id=APP_ID).to_wire()
    assert install == {"to": "actor-42", "type": "install", "upload": "actor-99", "appId": APP_ID}
    launch = LaunchMsg.for_app("actor-42", "abc-123").to_wire()
    assert launch == {"to": "actor-42", "type": "launch", "manifestURL": "app://abc-123/manifest.webapp"}


def test_chunk_request_carries_escaped_literal_not_raw_bytes():
    wire = ChunkMsg(to="actor-99", data=b"\x00\n").to_wire()
    assert set(wire) == {"to", "type", "chunk"}
    assert wire["type"] == "chunk"
    assert wire["chunk"] == JSONLiteral('"\\u0000\\n"')


def test_command_text():
    assert ListTabsMsg().command_text == "listTabs"
    assert MsgType.UPLOAD_PACKAGE == "uploadPackage"


def test_list_tabs_reply():
    reply = ListTabsReply.from_dict({"from": "root", "webappsActor": "actor-42", "tabs": []})
    assert reply.webapps_actor == "actor-42"
    assert reply.sender == "root"


@pytest.mark.parametrize("payload", [{"from": "root"}, {"webappsActor": 42}, {"webappsActor": None}])
def test_list_tabs_reply_requires_string_actor(payload):
    with pytest.raises(ProtocolError) as excinfo:
        ListTabsReply.from_dict(payload)
    assert excinfo.value.code == ErrorCode.MISSING_FIELD


def test_upload_reply_requires_actor():
    assert UploadPackageReply.from_dict({"actor": "actor-99"}).actor == "actor-99"
    with pytest.raises(ProtocolError) as excinfo:
        UploadPackageReply.from_dict({"from": "actor-42"})
    assert excinfo.value.code == ErrorCode.MISSING_FIELD


def test_chunk_reply_counters_are_informational():
    reply = ChunkReply.from_dict({"written": "lots", "_size": [1]})
    assert reply.written == "lots"
    assert reply.size == [1]
    assert ChunkReply.from_dict({}).written is None


def test_install_reply():
    reply = InstallReply.from_dict({"appId": "abc-123", "path": "/data/app"})
    assert reply.app_id == "abc-123"
    assert reply.path == "/data/app"

    with pytest.raises(ProtocolError) as excinfo:
        InstallReply.from_dict({"path": "/data/app"})
    assert excinfo.value.code == ErrorCode.MISSING_FIELD


def test_device_info_keeps_unknown_fields():
    info = DeviceInfo.from_dict({"from": "root", "applicationType": "browser", "traits": {"bulk": True}, "extra": 1})
    assert info.application_type == "browser"
    assert info.traits == {"bulk": True}
    assert DeviceInfo.from_dict({}).application_type is None


def test_reply_error():
    assert reply_error({"from": "actor-42", "appId": "x"}) is None
    assert reply_error({"from": "actor-42", "error": "badParameterType", "message": "missing upload"}) == (
        "badParameterType missing upload"
    )
    assert reply_error({"error": "noSuchActor"}) == "noSuchActor"


def test_validate_well_formed_requests():
    validate_msg(ListTabsMsg().to_wire())
    validate_msg(ChunkMsg(to="actor-99", data=b"abc").to_wire())
    validate_msg(InstallMsg(to="actor-42", upload="actor-99", app_id=APP_ID).to_wire())
    validate_msg(LaunchMsg.for_app("actor-42", "abc-123").to_wire())


@pytest.mark.parametrize(
    "msg",
    [
        {"to": "actor-42", "type": "install", "upload": "actor-99", "appId": "NOT-A-UUID"},
        {"to": "actor-42", "type": "install", "appId": APP_ID},
        {"to": "actor-99", "type": "chunk"},
        {"to": 7, "type": "done"},
        {"type": "somethingElse"},
    ],
)
def test_validate_rejects_bad_requests(msg):
    with pytest.raises(ProtocolError) as excinfo:
        validate_msg(msg)
    assert excinfo.value.code == ErrorCode.SCHEMA_MISMATCH


def test_load_schema():
    assert load_schema("chunk")["title"] == "chunk request"
    assert load_schema(MsgType.INSTALL)["required"] == ["to", "type", "upload", "appId"]
    assert "to" in load_schema("unknownType")["required"]


def test_device_supplied_handles_are_passed_through():
    validate_msg({"to": "", "type": "uploadPackage"})
    validate_msg({"to": "", "type": "install", "upload": "", "appId": APP_ID})
    validate_msg(LaunchMsg.for_app("", "").to_wire())
    validate_msg({"to": "actor-42", "type": "launch", "manifestURL": "http://abc/manifest.webapp"})
