"""renamebot: rename TV episodes and movies against metadata datasources."""

from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("renamebot")
except _metadata.PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = ["__version__"]
