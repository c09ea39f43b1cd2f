from .base import CENTER_X, Style

TOP_OVERLAY = Style(
    "top-overlay",
    124,
    font_color="white",
    stroke_width=6,
    stroke_color="black@0.95",
    line_spacing=30,
    text_padding=40,
    background_color="black",
    x=CENTER_X,
    reference_width=1920,
    reference_height=1080,
    scales_with_resolution=True,
    description="Outlined text in a solid band added above the video.",
)
