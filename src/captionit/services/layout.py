"""
Resolution-aware caption layout.

Responsibilities:
- Derive a scale factor for a style from the video geometry
- Scale a style's metrics (font, stroke, spacing, padding, box border)
- Estimate characters per line and the pixel height of a wrapped block

Does NOT:
- Measure real glyphs (uses a fixed average character width)
- Build ffmpeg filters (see services/filtergraph.py)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from captionit.styles.base import REFERENCE_HEIGHT, REFERENCE_WIDTH, ScaledStyle, Style
from captionit.utils.text import line_count

if TYPE_CHECKING:
    from captionit.config.settings import Settings

STROKE_SCALE = 0.7
BOX_BORDER_SCALE = 0.8
BOX_BORDER_MIN = 2


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class ScalingPolicy:
    small_video_threshold: int = 700
    small_video_exponent: float = 1.5
    min_factor: float = 0.3
    max_factor: float = 3.0
    char_width_ratio: float = 0.6
    wrap_min: int = 15
    wrap_max: int = 80
    wrap_padding: int = 40

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScalingPolicy":
        return cls(
            small_video_threshold=settings.small_video_threshold,
            small_video_exponent=settings.small_video_exponent,
            min_factor=settings.min_scale_factor,
            max_factor=settings.max_scale_factor,
        )


class LayoutEstimator:
    def __init__(self, policy: ScalingPolicy | None = None) -> None:
        self.policy = policy or ScalingPolicy()

    def scale_factor(self, video_width: int, video_height: int, style: Style) -> float:
        if not style.scales_with_resolution:
            return 1.0

        policy = self.policy
        area_ratio = (video_width * video_height) / (REFERENCE_WIDTH * REFERENCE_HEIGHT)
        factor = math.sqrt(area_ratio)

        # Small media (thumbnails, GIFs) shrink faster than area alone suggests.
        min_dimension = min(video_width, video_height)
        if min_dimension < policy.small_video_threshold:
            factor *= (min_dimension / policy.small_video_threshold) ** policy.small_video_exponent

        return max(policy.min_factor, min(factor, policy.max_factor))

    def scaled_style(self, style: Style, video_width: int, video_height: int) -> ScaledStyle:
        factor = self.scale_factor(video_width, video_height, style)

        stroke_width = 0
        if style.stroke_width > 0:
            stroke_width = max(1, round_half_up(style.stroke_width * factor * STROKE_SCALE))

        text_padding = None
        if style.text_padding is not None:
            text_padding = round_half_up(style.text_padding * factor)

        box_border_width = None
        if style.has_box:
            box_border_width = max(
                BOX_BORDER_MIN,
                round_half_up(style.box_border_width * factor * BOX_BORDER_SCALE),
            )

        return ScaledStyle(
            name=style.name,
            scale_factor=factor,
            font_size=max(1, round_half_up(style.base_font_size * factor)),
            font_color=style.font_color,
            stroke_width=stroke_width,
            stroke_color=style.stroke_color,
            line_spacing=round_half_up(style.line_spacing * factor),
            text_padding=text_padding,
            background_color=style.background_color,
            box_color=style.box_color,
            box_border_width=box_border_width,
            x=style.x,
            y=style.y,
        )

    def wrap_length(self, video_width: int, font_size: int, padding: int | None = None) -> int:
        policy = self.policy
        if padding is None:
            padding = policy.wrap_padding
        char_width = font_size * policy.char_width_ratio
        usable_width = video_width - padding * 2
        max_chars = math.floor(usable_width / char_width) if char_width > 0 else policy.wrap_max
        return max(policy.wrap_min, min(max_chars, policy.wrap_max))

    def text_block_height(
        self,
        text: str,
        wrap_length: int,
        font_size: int,
        line_spacing: int,
    ) -> int:
        lines = line_count(text, wrap_length)
        return lines * font_size + max(0, lines - 1) * line_spacing
