"""Media library sources."""

from holidarr.library.base import MediaLibrary
from holidarr.library.static_library import StaticLibrary

__all__ = ["MediaLibrary", "StaticLibrary"]
