from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class ErrorCategory(str, Enum):
    CONFIG = "config"
    DEPENDENCY = "dependency"
    INPUT = "input"
    RUNTIME = "runtime"


DEFAULT_EXIT_CODES: dict[ErrorCategory, int] = {
    ErrorCategory.RUNTIME: 1,
    ErrorCategory.CONFIG: 2,
    ErrorCategory.DEPENDENCY: 3,
    ErrorCategory.INPUT: 4,
}


@dataclass
class CaptionItError(Exception):
    """Base exception for captionit with standardized categories."""

    message: str
    category: ErrorCategory = ErrorCategory.RUNTIME
    exit_code: int | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.exit_code is None:
            self.exit_code = DEFAULT_EXIT_CODES.get(self.category, 1)

    def label(self) -> str:
        return {
            ErrorCategory.CONFIG: "Configuration error",
            ErrorCategory.DEPENDENCY: "Dependency error",
            ErrorCategory.INPUT: "Input error",
            ErrorCategory.RUNTIME: "Runtime error",
        }.get(self.category, "Error")


class DependencyMissingError(CaptionItError):
    """Raised when a required external dependency is missing."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.DEPENDENCY,
            exit_code=exit_code,
        )


class ConfigurationError(CaptionItError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            category=ErrorCategory.CONFIG,
            exit_code=exit_code,
        )


class UnknownStyleError(CaptionItError):
    """Raised when a caption style name is not in the catalog."""

    def __init__(self, style: str, available: Iterable[str]) -> None:
        self.style = style
        self.available = tuple(available)
        super().__init__(
            f"Unknown style: {style}. Available styles: {', '.join(self.available)}",
            category=ErrorCategory.CONFIG,
        )


class InputNotFoundError(CaptionItError):
    """Raised when an input media or caption file does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=ErrorCategory.INPUT)


class InvalidCaptionError(CaptionItError):
    """Raised when a caption (or caption list) is missing fields or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=ErrorCategory.INPUT)


class ProbeError(CaptionItError):
    """Raised when ffprobe cannot read geometry from the input."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=ErrorCategory.RUNTIME)


class RenderError(CaptionItError):
    """Raised when ffmpeg fails to render the captioned output."""

    def __init__(self, message: str, *, stderr: str | None = None) -> None:
        self.stderr = stderr
        super().__init__(message, category=ErrorCategory.RUNTIME)
