"""
Caption session: the public API for burning captions into media.

Each request runs the phases

    validating -> probing -> wrapping -> synthesizing -> rendering

and ends in `succeeded` or `failed`. Wrapped caption text files live only
for the wrapping-to-rendering span and are removed on every exit path.

Responsibilities:
- Validate inputs before any probing, file creation or rendering
- Resolve the style for the probed geometry and wrap each caption
- Hand the synthesized primitives to the renderer, exactly once

Does NOT:
- Retry failed renders
- Parse CLI arguments or caption files (see cli/main.py)
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from captionit.config.settings import Settings
from captionit.domain.captions import (
    Caption,
    Trim,
    VideoGeometry,
    WrappedCaption,
    validate_captions,
)
from captionit.domain.filters import CanvasExpand, FilterPrimitive, VisibilityWindow
from captionit.exceptions import InvalidCaptionError
from captionit.services.filtergraph import FilterGraphSynthesizer
from captionit.services.layout import LayoutEstimator, ScalingPolicy
from captionit.services.probe import FFprobeGeometryProber, GeometryProber
from captionit.services.render import FFmpegRenderer, LoggingRenderListener, Renderer, RenderListener
from captionit.styles.base import ScaledStyle, Style
from captionit.styles.catalog import StyleCatalog, default_catalog
from captionit.utils.checks import require_input_file
from captionit.utils.logging import get_logger
from captionit.utils.tempfiles import TextFileScope, TextFileStore
from captionit.utils.text import preview_text, wrap_text
from captionit.utils.timing import Clock, Phase, PhaseTracker

log = get_logger(__name__)

CaptionInput = Caption | Mapping[str, Any]


class CaptionSession:
    def __init__(
        self,
        *,
        catalog: StyleCatalog | None = None,
        estimator: LayoutEstimator | None = None,
        prober: GeometryProber | None = None,
        renderer: Renderer | None = None,
        text_store: TextFileStore | None = None,
        listener: RenderListener | None = None,
        default_style: str = "top-overlay",
        default_font: str | Path | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.catalog = catalog or default_catalog()
        self.estimator = estimator or LayoutEstimator()
        self.synthesizer = FilterGraphSynthesizer(self.estimator)
        self.prober = prober or FFprobeGeometryProber()
        self.renderer = renderer or FFmpegRenderer()
        self.text_store = text_store or TextFileStore()
        self.listener = listener or LoggingRenderListener()
        self.default_style = default_style
        self.default_font = default_font
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "CaptionSession":
        kwargs: dict[str, Any] = {
            "estimator": LayoutEstimator(ScalingPolicy.from_settings(settings)),
            "renderer": FFmpegRenderer(timeout_seconds=settings.render_timeout_seconds),
            "text_store": TextFileStore(settings.temp_dir),
            "default_style": settings.default_style,
            "default_font": settings.font_file,
        }
        kwargs.update(overrides)
        return cls(**kwargs)

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------
    def list_styles(self) -> list[str]:
        return self.catalog.names()

    def get_style_config(
        self,
        name: str,
        video_width: int = 1920,
        video_height: int = 1080,
    ) -> ScaledStyle | None:
        if name not in self.catalog:
            return None
        return self.catalog.scaled(name, video_width, video_height, estimator=self.estimator)

    def get_base_style_config(self, name: str) -> Style | None:
        return self.catalog.base(name)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    def add_caption(
        self,
        input_path: str | Path,
        output_path: str | Path,
        text: str,
        *,
        style: str | None = None,
        start_time: float = 0.0,
        duration: float | None = None,
        fontfile: str | Path | None = None,
        stroke_width: int | None = None,
    ) -> Path:
        """Burn one caption over the whole (optionally trimmed) input."""
        tracker = self._tracker()
        with tracker.phase(Phase.VALIDATING):
            source = require_input_file(input_path)
            resolved_style = self.catalog.get(style or self.default_style)
            if not text or not text.strip():
                raise InvalidCaptionError("Caption text must not be empty.")
            if start_time < 0:
                raise InvalidCaptionError(f"startTime must be >= 0, got {start_time:g}.")
            if duration is not None and duration <= 0:
                raise InvalidCaptionError(f"duration must be > 0, got {duration:g}.")
            self._check_stroke_override(stroke_width)

        return self._process(
            tracker,
            source=source,
            output_path=Path(output_path),
            style=resolved_style,
            entries=[(text, None)],
            fontfile=fontfile,
            stroke_width=stroke_width,
            trim=Trim(start=start_time, duration=duration),
        )

    def add_multiple_captions(
        self,
        input_path: str | Path,
        output_path: str | Path,
        captions: Iterable[CaptionInput],
        *,
        style: str | None = None,
        fontfile: str | Path | None = None,
        stroke_width: int | None = None,
    ) -> Path:
        """Burn several captions, each visible only during its own time window."""
        tracker = self._tracker()
        with tracker.phase(Phase.VALIDATING):
            source = require_input_file(input_path)
            resolved_style = self.catalog.get(style or self.default_style)
            batch = validate_captions(captions)
            self._check_stroke_override(stroke_width)

        return self._process(
            tracker,
            source=source,
            output_path=Path(output_path),
            style=resolved_style,
            entries=[(c.text, c.window) for c in batch],
            fontfile=fontfile,
            stroke_width=stroke_width,
            trim=None,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _tracker(self) -> PhaseTracker:
        if self._clock is None:
            return PhaseTracker()
        return PhaseTracker(clock=self._clock)

    @staticmethod
    def _check_stroke_override(stroke_width: int | None) -> None:
        if stroke_width is not None and stroke_width < 0:
            raise InvalidCaptionError(f"stroke width must be >= 0, got {stroke_width}.")

    def _resolve_font(self, fontfile: str | Path | None) -> Path | None:
        candidate = fontfile or self.default_font
        if not candidate:
            return None
        path = Path(candidate).expanduser()
        if path.exists():
            return path
        log.warning("Font file not found (%s); using ffmpeg's default font.", path)
        return None

    def _scale(self, style: Style, geometry: VideoGeometry, stroke_width: int | None) -> ScaledStyle:
        scaled = self.estimator.scaled_style(style, geometry.width, geometry.height)
        if stroke_width is not None:
            scaled = dataclasses.replace(scaled, stroke_width=stroke_width)
        return scaled

    @staticmethod
    def _expected_duration(geometry: VideoGeometry, trim: Trim | None) -> float | None:
        if trim is not None and trim.duration is not None:
            return trim.duration
        if geometry.duration is None:
            return None
        start = trim.start if trim is not None else 0.0
        return max(0.0, geometry.duration - start)

    def _wrap(
        self,
        files: TextFileScope,
        entries: Sequence[tuple[str, VisibilityWindow | None]],
        wrap_length: int,
    ) -> list[WrappedCaption]:
        wrapped = []
        for text, window in entries:
            lines = wrap_text(text, wrap_length)
            path = files.create("\n".join(lines))
            log.debug("Wrapped %r into %d line(s) -> %s", preview_text(text), len(lines), path)
            wrapped.append(
                WrappedCaption(text=text, lines=tuple(lines), text_path=path, window=window)
            )
        return wrapped

    def _process(
        self,
        tracker: PhaseTracker,
        *,
        source: Path,
        output_path: Path,
        style: Style,
        entries: Sequence[tuple[str, VisibilityWindow | None]],
        fontfile: str | Path | None,
        stroke_width: int | None,
        trim: Trim | None,
    ) -> Path:
        with tracker.phase(Phase.PROBING):
            geometry = self.prober.probe(source)

        scaled = self._scale(style, geometry, stroke_width)
        wrap_length = self.estimator.wrap_length(geometry.width, scaled.font_size)
        font_file = self._resolve_font(fontfile)

        log.info("Video resolution: %dx%d", geometry.width, geometry.height)
        log.info("Scaled font size: %d (base: %d)", scaled.font_size, style.base_font_size)
        log.info("Calculated wrap length: %d characters", wrap_length)

        with self.text_store.scope() as files:
            with tracker.phase(Phase.WRAPPING):
                wrapped = self._wrap(files, entries, wrap_length)

            with tracker.phase(Phase.SYNTHESIZING):
                filters = self.synthesizer.synthesize(
                    wrapped,
                    scaled,
                    wrap_length=wrap_length,
                    font_file=font_file,
                )
            self._log_filters(filters, len(wrapped))

            with tracker.phase(Phase.RENDERING):
                self.renderer.render(
                    source,
                    filters,
                    output_path=output_path,
                    trim=None if trim is None or trim.is_noop else trim,
                    expected_duration=self._expected_duration(geometry, trim),
                    listener=self.listener,
                )

        tracker.succeed()
        log.debug("Caption request phases: %s", tracker.summary())
        return output_path

    @staticmethod
    def _log_filters(filters: Sequence[FilterPrimitive], caption_count: int) -> None:
        if caption_count > 1:
            log.info("Processing %d captions", caption_count)
        expand = next((f for f in filters if isinstance(f, CanvasExpand)), None)
        if expand is not None:
            log.info("Text area height: %d", expand.extra_height)
