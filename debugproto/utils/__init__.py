from .common import format_bytes, generate_app_id

__all__ = ["generate_app_id", "format_bytes"]
