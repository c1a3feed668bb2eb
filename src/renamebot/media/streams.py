"""Read stream and container details from media files with ffprobe.

ffprobe is optional. When the executable is missing, or a file cannot be read,
every media binding is left empty instead of failing the command.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

LOGGER = logging.getLogger(__name__)

MEDIA_BINDINGS = frozenset(
    {
        "vc",
        "ac",
        "vf",
        "af",
        "width",
        "height",
        "resolution",
        "duration",
        "minutes",
        "bitrate",
    }
)

# (min width, min height, label), largest first
_VIDEO_FORMATS = (
    (3800, 2000, "2160p"),
    (1900, 1000, "1080p"),
    (1260, 700, "720p"),
    (1000, 560, "576p"),
    (0, 470, "480p"),
)


def _stream(data: Mapping[str, Any], kind: str) -> Mapping[str, Any]:
    for stream in data.get("streams") or []:
        if isinstance(stream, dict) and stream.get("codec_type") == kind:
            return stream
    return {}


def _number(value: Any, kind: Callable[[Any], Any] = float) -> Any:
    try:
        return kind(value) if value not in (None, "", "N/A") else None
    except (TypeError, ValueError):
        return None


def video_format(width: Optional[int], height: Optional[int]) -> Optional[str]:
    """Return a ``1080p`` style label for a frame size."""
    if not width or not height:
        return None
    for min_width, min_height, label in _VIDEO_FORMATS:
        # wide aspect ratios are classified by width
        if height >= min_height or (min_width and width >= min_width):
            return label
    return f"{height}p"


def media_bindings(data: Mapping[str, Any]) -> dict[str, Any]:
    """Map ffprobe JSON output onto template bindings.

    Args:
        data: Parsed ``ffprobe -show_format -show_streams`` output. An empty
            mapping yields ``None`` for every binding.

    Returns:
        dict[str, Any]: One value per name in :data:`MEDIA_BINDINGS`.
    """
    video = _stream(data, "video")
    audio = _stream(data, "audio")
    container = data.get("format") or {}

    width = _number(video.get("width"), int)
    height = _number(video.get("height"), int)
    channels = _number(audio.get("channels"), int)
    duration = _number(container.get("duration"))
    return {
        "vc": video.get("codec_name"),
        "ac": audio.get("codec_name"),
        "vf": video_format(width, height),
        "af": f"{channels}ch" if channels else None,
        "width": width,
        "height": height,
        "resolution": f"{width}x{height}" if width and height else None,
        "duration": duration,
        "minutes": round(duration / 60) if duration is not None else None,
        "bitrate": _number(container.get("bit_rate"), int),
    }


class MediaInspector:
    """Run ffprobe on files, retrying once on timeout.

    Args:
        executable: ffprobe command name or path.
        runner: ``subprocess.run`` compatible callable.
        which: ``shutil.which`` compatible lookup used to detect the executable.
        timeout: Seconds allowed per attempt.
        attempts: Number of tries when ffprobe times out.
    """

    def __init__(
        self,
        executable: str = "ffprobe",
        *,
        runner: Callable[..., Any] = subprocess.run,
        which: Callable[[str], Optional[str]] = shutil.which,
        timeout: float = 5.0,
        attempts: int = 2,
    ) -> None:
        self.executable = executable
        self.timeout = timeout
        self.attempts = max(1, attempts)
        self._runner = runner
        self._which = which
        self._available: Optional[bool] = None

    @property
    def available(self) -> bool:
        if self._available is None:
            self._available = self._which(self.executable) is not None
            if not self._available:
                LOGGER.info("%s not found; media bindings will be empty", self.executable)
        return self._available

    def inspect(self, path: Path) -> dict[str, Any]:
        """Return the parsed ffprobe output for ``path``, or ``{}`` when unavailable."""
        path = Path(path)
        if not self.available or not path.is_file():
            return {}
        command = [
            self.executable,
            "-v",
            "quiet",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]
        for attempt in range(1, self.attempts + 1):
            try:
                completed = self._runner(
                    command, capture_output=True, text=True, timeout=self.timeout, check=False
                )
            except subprocess.TimeoutExpired:
                LOGGER.debug("ffprobe timed out (%d/%d): %s", attempt, self.attempts, path)
                continue
            except OSError as exc:
                LOGGER.debug("ffprobe could not start: %s", exc)
                return {}
            if completed.returncode != 0:
                LOGGER.debug("ffprobe exited with %d for %s", completed.returncode, path)
                return {}
            try:
                data = json.loads(completed.stdout or "{}")
            except json.JSONDecodeError:
                LOGGER.debug("ffprobe returned invalid JSON for %s", path)
                return {}
            return data if isinstance(data, dict) else {}
        return {}

    def bindings(self, path: Path) -> dict[str, Any]:
        """Return :data:`MEDIA_BINDINGS` values for ``path``."""
        return media_bindings(self.inspect(path))


__all__ = ["MEDIA_BINDINGS", "MediaInspector", "media_bindings", "video_format"]
