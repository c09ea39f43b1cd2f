"""Burn styled, time-windowed captions into videos with ffmpeg."""

__version__ = "0.1.0"
