"""
ffmpeg rendering boundary.

Responsibilities:
- Serialize typed filter primitives to ffmpeg syntax, in order
- Build and run the ffmpeg command, with optional input trim
- Report start/progress/end/error to a listener

Does NOT:
- Decide layout or styles
- Own the caption text files it references
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

from captionit.domain.captions import Trim
from captionit.domain.filters import FilterPrimitive
from captionit.exceptions import CaptionItError, RenderError
from captionit.utils import ffmpeg
from captionit.utils.logging import get_logger

log = get_logger(__name__)


class RenderListener(Protocol):
    def on_start(self, command: str) -> None: ...

    def on_progress(self, percent: float) -> None: ...

    def on_end(self) -> None: ...

    def on_error(self, error: Exception) -> None: ...


class LoggingRenderListener:
    """Default listener: mirrors render events into the log."""

    def on_start(self, command: str) -> None:
        log.debug("ffmpeg cmd: %s", command)

    def on_progress(self, percent: float) -> None:
        log.info("Processing: %d%% done", round(percent))

    def on_end(self) -> None:
        log.info("Caption render finished.")

    def on_error(self, error: Exception) -> None:
        log.error("Error adding caption: %s", error)


class Renderer(Protocol):
    def render(
        self,
        input_path: Path,
        filters: Sequence[FilterPrimitive],
        *,
        output_path: Path,
        trim: Trim | None = None,
        expected_duration: float | None = None,
        listener: RenderListener | None = None,
    ) -> Path: ...


@dataclass
class FFmpegRenderer:
    timeout_seconds: float | None = None

    def render(
        self,
        input_path: Path,
        filters: Sequence[FilterPrimitive],
        *,
        output_path: Path,
        trim: Trim | None = None,
        expected_duration: float | None = None,
        listener: RenderListener | None = None,
    ) -> Path:
        listener = listener or LoggingRenderListener()
        try:
            ffmpeg_bin = ffmpeg.ensure_ffmpeg()
            cmd = ffmpeg.build_caption_cmd(
                input_path,
                ffmpeg.serialize_filters(filters),
                output_path,
                trim=trim,
                ffmpeg_bin=ffmpeg_bin,
            )
            listener.on_start(" ".join(cmd))
            log.info("Rendering captions -> %s", output_path)

            ffmpeg.run_ffmpeg(
                cmd,
                expected_duration=expected_duration,
                on_progress=listener.on_progress,
                timeout=self.timeout_seconds,
            )
            if not output_path.exists() or output_path.stat().st_size == 0:
                raise RenderError(f"ffmpeg produced no output: {output_path}")
        except CaptionItError as exc:
            listener.on_error(exc)
            raise

        listener.on_end()
        return output_path
