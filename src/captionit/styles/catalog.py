from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable

from captionit.exceptions import ConfigurationError, UnknownStyleError

from .base import ScaledStyle, Style
from .centered_overlay import CENTERED_OVERLAY
from .top_overlay import TOP_OVERLAY

if TYPE_CHECKING:
    from captionit.services.layout import LayoutEstimator


class StyleCatalog:
    """Read-only set of caption styles, keyed by name in insertion order."""

    def __init__(self, styles: Iterable[Style]) -> None:
        by_name: dict[str, Style] = {}
        for style in styles:
            if style.name in by_name:
                raise ConfigurationError(f"Duplicate style name: {style.name}")
            by_name[style.name] = style
        if not by_name:
            raise ConfigurationError("A style catalog needs at least one style.")
        self._styles = MappingProxyType(by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._styles

    def __len__(self) -> int:
        return len(self._styles)

    def names(self) -> list[str]:
        return list(self._styles)

    def get(self, name: str) -> Style:
        try:
            return self._styles[name]
        except KeyError:
            raise UnknownStyleError(name, self._styles) from None

    def base(self, name: str) -> Style | None:
        return self._styles.get(name)

    def scaled(
        self,
        name: str,
        video_width: int,
        video_height: int,
        *,
        estimator: LayoutEstimator | None = None,
    ) -> ScaledStyle:
        style = self.get(name)
        if estimator is None:
            from captionit.services.layout import LayoutEstimator

            estimator = LayoutEstimator()
        return estimator.scaled_style(style, video_width, video_height)


def default_catalog() -> StyleCatalog:
    return StyleCatalog([TOP_OVERLAY, CENTERED_OVERLAY])
