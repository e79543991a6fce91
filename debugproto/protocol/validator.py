from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import jsonschema

from .commands import MsgType, is_command, normalize_command
from .errors import ErrorCode, ProtocolError

SCHEMA_DIR = Path(__file__).parent / "schemas"
BASE_SCHEMA = "base.json"

# Mapping request type -> schema filename (relative to SCHEMA_DIR)
SCHEMA_REGISTRY: Dict[str, str] = {
    MsgType.LIST_TABS.value: "listTabs.json",
    MsgType.UPLOAD_PACKAGE.value: "uploadPackage.json",
    MsgType.CHUNK.value: "chunk.json",
    MsgType.DONE.value: "done.json",
    MsgType.INSTALL.value: "install.json",
    MsgType.REMOVE.value: "remove.json",
    MsgType.LAUNCH.value: "launch.json",
}


def _schema_path(command: str) -> Path:
    filename = SCHEMA_REGISTRY[command] if is_command(command) else BASE_SCHEMA
    return SCHEMA_DIR / filename


@lru_cache(maxsize=16)
def load_schema(command: str) -> Optional[dict]:
    """Load the JSON schema for a request type; unknown types get the envelope schema."""
    path = _schema_path(normalize_command(command))
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def validate_msg(msg: Dict[str, Any], schema: Optional[dict] = None) -> None:
    """Check an outbound request against its json-schema before it is framed."""
    if not schema:
        schema = load_schema(str(msg.get("type", "")))
    if schema:
        try:
            jsonschema.validate(instance=msg, schema=schema)
        except jsonschema.ValidationError as exc:
            raise ProtocolError(ErrorCode.SCHEMA_MISMATCH, f"Schema validation failed: {exc.message}") from exc


__all__ = ["SCHEMA_REGISTRY", "load_schema", "validate_msg"]
