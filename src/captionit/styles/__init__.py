from .base import ScaledStyle, Style
from .catalog import StyleCatalog, default_catalog
from .centered_overlay import CENTERED_OVERLAY
from .top_overlay import TOP_OVERLAY

__all__ = [
    "CENTERED_OVERLAY",
    "TOP_OVERLAY",
    "ScaledStyle",
    "Style",
    "StyleCatalog",
    "default_catalog",
]
