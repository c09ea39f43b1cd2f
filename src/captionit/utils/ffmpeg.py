from __future__ import annotations

import json
import shutil
import subprocess
import tempfile
import threading
from pathlib import Path
from typing import Callable, Iterable, Sequence

from captionit.domain.captions import Trim
from captionit.domain.filters import CanvasExpand, FilterPrimitive, TextDraw, VisibilityWindow
from captionit.exceptions import ProbeError, RenderError
from captionit.utils.checks import require_binary

ProgressCallback = Callable[[float], None]


def ensure_ffmpeg() -> str:
    return require_binary("ffmpeg")


def ensure_ffprobe() -> str:
    return require_binary("ffprobe")


# ----------------------------------------------------------------------
# Filter serialization
# ----------------------------------------------------------------------
def _quote_filter_value(value: str | Path) -> str:
    text = str(value)
    return "'" + text.replace("'", r"'\''") + "'"


def format_seconds(value: float) -> str:
    """Shortest text that round-trips to the same float ("3", "1.5", "1.0001")."""
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def visibility_expr(window: VisibilityWindow) -> str:
    # Half-open so back-to-back captions never overlap on the boundary frame.
    return f"gte(t,{format_seconds(window.start)})*lt(t,{format_seconds(window.end)})"


def serialize_canvas_expand(primitive: CanvasExpand) -> str:
    return (
        f"pad=iw:ih+{primitive.extra_height}:0:{primitive.offset_y}"
        f":color={primitive.color}"
    )


def serialize_text_draw(primitive: TextDraw) -> str:
    parts = [
        f"drawtext=textfile={_quote_filter_value(primitive.text_file)}",
        # Caption text is literal: no %{...} expansion, backslashes kept.
        "expansion=none",
        f"fontsize={primitive.font_size}",
        f"fontcolor={primitive.font_color}",
        f"x={primitive.x}",
        f"y={primitive.y}",
        f"line_spacing={primitive.line_spacing}",
    ]
    if primitive.stroke_width > 0:
        parts.append(f"borderw={primitive.stroke_width}")
        parts.append(f"bordercolor={primitive.stroke_color or 'black'}")
    if primitive.box is not None:
        parts.append("box=1")
        parts.append(f"boxcolor={primitive.box.color}")
        parts.append(f"boxborderw={primitive.box.border_width}")
    if primitive.window is not None:
        parts.append(f"enable={_quote_filter_value(visibility_expr(primitive.window))}")
    if primitive.font_file is not None:
        parts.append(f"fontfile={_quote_filter_value(primitive.font_file)}")
    return ":".join(parts)


def serialize_filter(primitive: FilterPrimitive) -> str:
    if isinstance(primitive, CanvasExpand):
        return serialize_canvas_expand(primitive)
    if isinstance(primitive, TextDraw):
        return serialize_text_draw(primitive)
    raise TypeError(f"Unsupported filter primitive: {type(primitive).__name__}")


def serialize_filters(primitives: Iterable[FilterPrimitive]) -> list[str]:
    return [serialize_filter(p) for p in primitives]


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------
def build_caption_cmd(
    input_path: str | Path,
    filters: Sequence[str],
    output_path: str | Path,
    *,
    trim: Trim | None = None,
    ffmpeg_bin: str = "ffmpeg",
    report_progress: bool = True,
) -> list[str]:
    cmd: list[str] = [
        ffmpeg_bin,
        "-y",
        "-hide_banner",
        "-loglevel",
        "error",
    ]
    if report_progress:
        cmd += ["-nostats", "-progress", "pipe:1"]
    if trim is not None and trim.start > 0:
        cmd += ["-ss", f"{trim.start:.3f}"]
    cmd += ["-i", str(input_path)]
    if trim is not None and trim.duration is not None:
        cmd += ["-t", f"{trim.duration:.3f}"]
    if filters:
        cmd += ["-vf", ",".join(filters)]
    cmd.append(str(output_path))
    return cmd


def build_probe_cmd(path: str | Path, *, ffprobe_bin: str = "ffprobe") -> list[str]:
    return [
        ffprobe_bin,
        "-v",
        "error",
        "-show_format",
        "-show_streams",
        "-of",
        "json",
        str(path),
    ]


# ----------------------------------------------------------------------
# Progress
# ----------------------------------------------------------------------
def parse_progress_seconds(line: str) -> float | None:
    """Return the encoded position from one `-progress` line, if it carries one."""
    key, sep, value = line.strip().partition("=")
    if not sep:
        return None
    if key in {"out_time_us", "out_time_ms"}:
        # ffmpeg reports microseconds under both keys.
        try:
            return max(0.0, int(value) / 1_000_000)
        except ValueError:
            return None
    return None


def progress_percent(position_seconds: float, expected_duration: float | None) -> float | None:
    if not expected_duration or expected_duration <= 0:
        return None
    return max(0.0, min(100.0, position_seconds / expected_duration * 100.0))


def run_ffmpeg(
    cmd: list[str],
    *,
    expected_duration: float | None = None,
    on_progress: ProgressCallback | None = None,
    timeout: float | None = None,
) -> str:
    """
    Run an ffmpeg command built with `report_progress=True`.

    Progress lines on stdout are turned into percentages for `on_progress`.
    Returns stderr; raises RenderError on a non-zero exit or timeout.
    """
    # Only stdout is a pipe; stderr is spooled to a file and read after exit.
    with tempfile.TemporaryFile(mode="w+", encoding="utf-8", errors="replace") as stderr_file:
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=stderr_file,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as exc:
            raise RenderError(f"ffmpeg could not be started: {exc}") from exc

        timed_out = threading.Event()
        timer = None
        if timeout:
            def _kill() -> None:
                timed_out.set()
                proc.kill()

            timer = threading.Timer(timeout, _kill)
            timer.daemon = True
            timer.start()

        last_percent = -1
        try:
            assert proc.stdout is not None
            for line in proc.stdout:
                position = parse_progress_seconds(line)
                if position is None or on_progress is None:
                    continue
                percent = progress_percent(position, expected_duration)
                if percent is not None and int(percent) != last_percent:
                    last_percent = int(percent)
                    on_progress(percent)
            returncode = proc.wait()
        except BaseException:
            proc.kill()
            proc.wait()
            raise
        finally:
            if timer is not None:
                timer.cancel()

        stderr_file.seek(0)
        stderr = stderr_file.read()

    if timed_out.is_set() and returncode != 0:
        raise RenderError(f"ffmpeg timed out after {timeout:g}s.", stderr=stderr)
    if returncode != 0:
        raise RenderError(
            f"ffmpeg failed (exit {returncode}): {stderr.strip() or 'no error output'}",
            stderr=stderr,
        )
    return stderr


# ----------------------------------------------------------------------
# Probing
# ----------------------------------------------------------------------
def _parse_fps(rate: str | None) -> float | None:
    if not rate or rate == "0/0":
        return None
    try:
        num, den = rate.split("/")
        return float(num) / float(den)
    except (ValueError, ZeroDivisionError):
        return None


def parse_probe_output(raw: str) -> dict:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ProbeError(f"ffprobe returned invalid JSON: {exc}") from exc

    video = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "video"),
        None,
    )
    if video is None:
        raise ProbeError("No video stream found")

    duration = None
    raw_duration = data.get("format", {}).get("duration") or video.get("duration")
    try:
        duration = float(raw_duration) if raw_duration else None
    except (TypeError, ValueError):
        duration = None

    return {
        "width": video.get("width"),
        "height": video.get("height"),
        "duration_seconds": duration,
        "fps": _parse_fps(video.get("avg_frame_rate") or video.get("r_frame_rate")),
        "video_codec": video.get("codec_name"),
    }


def probe_media(path: str | Path) -> dict:
    ffprobe = shutil.which("ffprobe")
    if not ffprobe:
        raise ProbeError("ffprobe not found; cannot read video geometry.")
    proc = subprocess.run(
        build_probe_cmd(path, ffprobe_bin=ffprobe),
        capture_output=True,
        text=True,
    )
    if proc.returncode != 0:
        raise ProbeError(f"ffprobe failed for {path}: {proc.stderr.strip()}")
    return parse_probe_output(proc.stdout)
