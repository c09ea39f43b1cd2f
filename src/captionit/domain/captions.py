from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, ValidationError

from captionit.domain.filters import VisibilityWindow
from captionit.exceptions import InvalidCaptionError


@dataclass(frozen=True)
class Caption:
    text: str
    start_time: float
    end_time: float

    @property
    def window(self) -> VisibilityWindow:
        return VisibilityWindow(self.start_time, self.end_time)


@dataclass(frozen=True)
class VideoGeometry:
    width: int
    height: int
    duration: float | None = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Video geometry must be positive, got {self.width}x{self.height}")


@dataclass(frozen=True)
class Trim:
    """Input trim for single-caption renders."""

    start: float = 0.0
    duration: float | None = None

    @property
    def is_noop(self) -> bool:
        return self.start <= 0 and self.duration is None


@dataclass(frozen=True)
class WrappedCaption:
    """Caption text wrapped into lines and written to `text_path` for drawtext."""

    text: str
    lines: tuple[str, ...]
    text_path: Path
    window: VisibilityWindow | None = None


class CaptionEntry(BaseModel):
    """One entry of a caption-list JSON file (`{text, startTime, endTime}`)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    text: str = Field(min_length=1)
    start_time: StrictInt | StrictFloat = Field(alias="startTime")
    end_time: StrictInt | StrictFloat = Field(alias="endTime")

    def to_caption(self) -> Caption:
        return Caption(
            text=self.text,
            start_time=float(self.start_time),
            end_time=float(self.end_time),
        )


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ())) or "entry"
        parts.append(f"{loc}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_caption(data: Caption | Mapping[str, Any], index: int = 0) -> Caption:
    if isinstance(data, Caption):
        return data
    if not isinstance(data, Mapping):
        raise InvalidCaptionError(
            f"Caption #{index} must be an object with text, startTime and endTime."
        )
    try:
        return CaptionEntry.model_validate(dict(data)).to_caption()
    except ValidationError as exc:
        raise InvalidCaptionError(f"Caption #{index} is invalid ({_describe(exc)}).") from exc


def validate_captions(captions: Iterable[Caption | Mapping[str, Any]]) -> list[Caption]:
    """
    Coerce and validate a caption batch.

    The whole batch is rejected on the first bad entry so nothing is
    written or rendered for a partially valid list.
    """
    parsed: list[Caption] = []
    for index, raw in enumerate(captions):
        caption = parse_caption(raw, index)
        if not caption.text.strip():
            raise InvalidCaptionError(f"Caption #{index} has empty text.")
        if caption.end_time <= caption.start_time:
            raise InvalidCaptionError(
                f"Caption #{index} must end after it starts "
                f"(startTime={caption.start_time:g}, endTime={caption.end_time:g})."
            )
        parsed.append(caption)
    if not parsed:
        raise InvalidCaptionError("Caption list is empty.")
    return parsed
