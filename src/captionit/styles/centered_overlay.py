from .base import CENTER_X, CENTER_Y, Style

CENTERED_OVERLAY = Style(
    "centered-overlay",
    48,
    font_color="white",
    stroke_width=0,
    stroke_color="black",
    line_spacing=10,
    box_color="black@0.6",
    box_border_width=10,
    x=CENTER_X,
    y=CENTER_Y,
    reference_width=1080,
    reference_height=1920,
    scales_with_resolution=False,
    description="Text on a translucent box centered over the video.",
)
