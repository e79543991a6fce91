from .packager import PackagingError, pack_directory

__all__ = ["PackagingError", "pack_directory"]
