"""Protocol-wide constants for the remote debugger wire format."""

ENCODING = "utf-8"
FRAME_DELIMITER = b":"
ROOT_ACTOR = "root"
DEFAULT_CHUNK_SIZE = 10240  # bytes of payload per upload chunk
MANIFEST_URL_TEMPLATE = "app://{app_id}/manifest.webapp"

__all__ = [
    "ENCODING",
    "FRAME_DELIMITER",
    "ROOT_ACTOR",
    "DEFAULT_CHUNK_SIZE",
    "MANIFEST_URL_TEMPLATE",
]
