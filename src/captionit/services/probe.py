from __future__ import annotations

from pathlib import Path
from typing import Protocol

from captionit.domain.captions import VideoGeometry
from captionit.exceptions import ProbeError
from captionit.utils import ffmpeg
from captionit.utils.logging import get_logger

log = get_logger(__name__)


class GeometryProber(Protocol):
    def probe(self, path: Path) -> VideoGeometry: ...


class FFprobeGeometryProber:
    """Reads width, height and duration of the first video stream via ffprobe."""

    def probe(self, path: Path) -> VideoGeometry:
        info = ffmpeg.probe_media(path)
        width = info.get("width")
        height = info.get("height")
        if not isinstance(width, int) or not isinstance(height, int) or width <= 0 or height <= 0:
            raise ProbeError(f"Invalid video dimensions for {path}: {width}x{height}")
        log.debug("Probed %s: %sx%s, duration=%s", path, width, height, info.get("duration_seconds"))
        return VideoGeometry(
            width=width,
            height=height,
            duration=info.get("duration_seconds"),
        )
