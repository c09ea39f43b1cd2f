from __future__ import annotations

from dataclasses import asdict, dataclass

REFERENCE_WIDTH = 1920
REFERENCE_HEIGHT = 1080
CENTER_X = "(w-text_w)/2"
CENTER_Y = "(h-text_h)/2"


@dataclass(frozen=True)
class Style:
    """Caption preset expressed at its reference resolution."""

    name: str
    base_font_size: int
    font_color: str = "white"
    stroke_width: int = 0
    stroke_color: str = "black"
    line_spacing: int = 0
    text_padding: int | None = None
    background_color: str | None = None
    box_color: str | None = None
    box_border_width: int | None = None
    x: str = CENTER_X
    y: str | None = None
    reference_width: int = REFERENCE_WIDTH
    reference_height: int = REFERENCE_HEIGHT
    scales_with_resolution: bool = True
    description: str = ""

    @property
    def has_box(self) -> bool:
        return self.box_color is not None and self.box_border_width is not None

    @property
    def expands_canvas(self) -> bool:
        return self.background_color is not None and self.text_padding is not None


@dataclass(frozen=True)
class ScaledStyle:
    """A Style resolved for one video geometry."""

    name: str
    scale_factor: float
    font_size: int
    font_color: str
    stroke_width: int
    stroke_color: str
    line_spacing: int
    text_padding: int | None
    background_color: str | None
    box_color: str | None
    box_border_width: int | None
    x: str
    y: str | None

    @property
    def has_box(self) -> bool:
        return self.box_color is not None and self.box_border_width is not None

    @property
    def expands_canvas(self) -> bool:
        return self.background_color is not None and self.text_padding is not None

    def to_dict(self) -> dict:
        return asdict(self)
