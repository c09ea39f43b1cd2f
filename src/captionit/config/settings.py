from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime configuration for captionit.

    All settings are loaded from environment variables with the
    `CAPTIONIT_` prefix and optional `.env` support. CLI options are
    applied on top of these values.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAPTIONIT_",
        env_file=".env",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Captions
    # ------------------------------------------------------------------
    default_style: str = Field(
        default="top-overlay",
        description="Caption style used when none is given (top-overlay, centered-overlay).",
    )
    font_file: str | None = Field(
        default=None,
        description="Optional font file passed to drawtext for every caption.",
    )
    temp_dir: str | None = Field(
        default=None,
        description="Directory for wrapped caption text files (system temp dir when unset).",
    )

    # ------------------------------------------------------------------
    # Layout tuning
    # ------------------------------------------------------------------
    small_video_threshold: int = Field(
        default=700,
        gt=0,
        description="Shorter side (px) below which the small-video font penalty applies.",
    )
    small_video_exponent: float = Field(
        default=1.5,
        ge=0,
        description="Exponent of the small-video font penalty.",
    )
    min_scale_factor: float = Field(
        default=0.3,
        gt=0,
        description="Lower clamp for the resolution scale factor.",
    )
    max_scale_factor: float = Field(
        default=3.0,
        gt=0,
        description="Upper clamp for the resolution scale factor.",
    )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    render_timeout_seconds: float | None = Field(
        default=None,
        description="Abort ffmpeg after this many seconds (no limit when unset).",
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )

    def to_public_dict(self) -> dict:
        """Return the resolved settings for CLI display."""
        return {
            "default_style": self.default_style,
            "font_file": self.font_file,
            "temp_dir": self.temp_dir,
            "small_video_threshold": self.small_video_threshold,
            "small_video_exponent": self.small_video_exponent,
            "min_scale_factor": self.min_scale_factor,
            "max_scale_factor": self.max_scale_factor,
            "render_timeout_seconds": self.render_timeout_seconds,
            "log_level": self.log_level,
        }
