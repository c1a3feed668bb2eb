"""File information listing."""

from .info import DEFAULT_INFO_FORMAT, get_media_info, matches_glob

__all__ = ["get_media_info", "matches_glob", "DEFAULT_INFO_FORMAT"]
