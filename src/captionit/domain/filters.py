"""
Typed filter-graph primitives.

The synthesizer produces an ordered tuple of these values; they are turned
into ffmpeg filter strings only by `captionit.utils.ffmpeg.serialize_filters`.
Later primitives draw over earlier ones, and `CanvasExpand` must precede
any `TextDraw` whose coordinates assume the expanded canvas.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class VisibilityWindow:
    """Half-open interval [start, end) in seconds."""

    start: float
    end: float

    def contains(self, t: float) -> bool:
        return self.start <= t < self.end


@dataclass(frozen=True)
class BoxFill:
    color: str
    border_width: int


@dataclass(frozen=True)
class CanvasExpand:
    """Grow the frame height by `extra_height`, shifting the video down by `offset_y`."""

    extra_height: int
    offset_y: int
    color: str


@dataclass(frozen=True)
class TextDraw:
    text_file: Path
    font_size: int
    font_color: str
    x: str
    y: str
    line_spacing: int = 0
    stroke_width: int = 0
    stroke_color: str | None = None
    box: BoxFill | None = None
    window: VisibilityWindow | None = None
    font_file: Path | None = None


FilterPrimitive = Union[CanvasExpand, TextDraw]
