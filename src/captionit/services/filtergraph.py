"""
Filter-graph synthesis for burned-in captions.

Produces the ordered primitives ffmpeg applies for one request:

- band styles (top-overlay): one CanvasExpand sized for the tallest
  caption, then one TextDraw per caption centered inside the band
- overlay styles (centered-overlay): one boxed TextDraw per caption

Captions with a visibility window are drawn only inside it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from captionit.domain.captions import WrappedCaption
from captionit.domain.filters import BoxFill, CanvasExpand, FilterPrimitive, TextDraw
from captionit.exceptions import CaptionItError
from captionit.services.layout import LayoutEstimator
from captionit.styles.base import CENTER_Y, ScaledStyle


class FilterGraphSynthesizer:
    def __init__(self, estimator: LayoutEstimator | None = None) -> None:
        self.estimator = estimator or LayoutEstimator()

    def text_area_height(
        self,
        texts: Sequence[str],
        style: ScaledStyle,
        *,
        wrap_length: int,
    ) -> int:
        """Height of the band added above the video: tallest caption plus padding."""
        tallest = max(
            self.estimator.text_block_height(
                text,
                wrap_length,
                style.font_size,
                style.line_spacing,
            )
            for text in texts
        )
        return tallest + (style.text_padding or 0) * 2

    def synthesize(
        self,
        captions: Sequence[WrappedCaption],
        style: ScaledStyle,
        *,
        wrap_length: int,
        font_file: Path | None = None,
    ) -> tuple[FilterPrimitive, ...]:
        if not captions:
            raise CaptionItError("At least one caption is required to build a filter graph.")

        if style.expands_canvas:
            return self._band_filters(captions, style, wrap_length=wrap_length, font_file=font_file)
        return self._overlay_filters(captions, style, font_file=font_file)

    def _band_filters(
        self,
        captions: Sequence[WrappedCaption],
        style: ScaledStyle,
        *,
        wrap_length: int,
        font_file: Path | None,
    ) -> tuple[FilterPrimitive, ...]:
        area_height = self.text_area_height(
            [c.text for c in captions],
            style,
            wrap_length=wrap_length,
        )
        # Evaluated on the expanded canvas, so the pad must come first.
        text_y = f"({area_height}-text_h)/2"

        filters: list[FilterPrimitive] = [
            CanvasExpand(
                extra_height=area_height,
                offset_y=area_height,
                color=style.background_color or "black",
            )
        ]
        for caption in captions:
            filters.append(self._text_draw(caption, style, y=text_y, font_file=font_file))
        return tuple(filters)

    def _overlay_filters(
        self,
        captions: Sequence[WrappedCaption],
        style: ScaledStyle,
        *,
        font_file: Path | None,
    ) -> tuple[FilterPrimitive, ...]:
        box = None
        if style.has_box:
            box = BoxFill(color=style.box_color, border_width=style.box_border_width)
        return tuple(
            self._text_draw(
                caption,
                style,
                y=style.y or CENTER_Y,
                box=box,
                font_file=font_file,
            )
            for caption in captions
        )

    @staticmethod
    def _text_draw(
        caption: WrappedCaption,
        style: ScaledStyle,
        *,
        y: str,
        box: BoxFill | None = None,
        font_file: Path | None = None,
    ) -> TextDraw:
        return TextDraw(
            text_file=caption.text_path,
            font_size=style.font_size,
            font_color=style.font_color,
            x=style.x,
            y=y,
            line_spacing=style.line_spacing,
            stroke_width=style.stroke_width,
            stroke_color=style.stroke_color if style.stroke_width > 0 else None,
            box=box,
            window=caption.window,
            font_file=font_file,
        )
