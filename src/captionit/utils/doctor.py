from __future__ import annotations

import subprocess
import sys
import tempfile
from pathlib import Path

from captionit import __version__ as captionit_version
from captionit.config.settings import Settings


def _run_cmd(cmd: list[str]) -> tuple[int, str]:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        return 1, ""
    return proc.returncode, proc.stdout.strip() or proc.stderr.strip()


def _check_writable(path: Path) -> bool:
    try:
        path.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=path, delete=True):
            return True
    except OSError:
        return False


def _get_version() -> str:
    return captionit_version or "unknown"


def _status_line(ok: bool, label: str, detail: str = "") -> str:
    icon = "✅" if ok else "❌"
    return f"{icon} {label}{detail}"


def _warn_line(label: str, detail: str = "") -> str:
    return f"⚠️ {label}{detail}"


def _ffmpeg_hint() -> str:
    if sys.platform.startswith("win"):
        return "Windows: install via winget (`winget install Gyan.FFmpeg`) or add ffmpeg.exe to PATH."
    if sys.platform.startswith("darwin"):
        return "macOS: install via Homebrew (`brew install ffmpeg`) and restart your shell."
    return "Linux: install ffmpeg with your package manager (e.g. `apt install ffmpeg`)."


def _has_drawtext(filters_output: str) -> bool:
    return any(
        len(parts) >= 2 and parts[1] == "drawtext"
        for parts in (line.split() for line in filters_output.splitlines())
    )


def run_doctor(settings: Settings) -> int:
    required_ok = True
    lines: list[str] = []

    lines.append("captionit doctor")
    lines.append("")

    python_version = sys.version.split()[0]
    lines.append(_status_line(True, "Python", f": {python_version}"))
    lines.append(_status_line(True, "captionit version", f": {_get_version()}"))

    temp_dir = Path(settings.temp_dir or tempfile.gettempdir()).expanduser().resolve()
    writable = _check_writable(temp_dir)
    if not writable:
        required_ok = False
    lines.append(_status_line(writable, "Temp dir writable", f": {temp_dir}"))

    ffmpeg_code, ffmpeg_out = _run_cmd(["ffmpeg", "-version"])
    ffmpeg_ok = ffmpeg_code == 0
    if not ffmpeg_ok:
        required_ok = False
        lines.append(_status_line(False, "ffmpeg", " (not found)"))
        lines.append(_ffmpeg_hint())
    else:
        first_line = ffmpeg_out.splitlines()[0] if ffmpeg_out else "available"
        lines.append(_status_line(True, "ffmpeg", f": {first_line}"))

    ffprobe_code, ffprobe_out = _run_cmd(["ffprobe", "-version"])
    if ffprobe_code != 0:
        required_ok = False
        lines.append(_status_line(False, "ffprobe", " (not found)"))
    else:
        first_line = ffprobe_out.splitlines()[0] if ffprobe_out else "available"
        lines.append(_status_line(True, "ffprobe", f": {first_line}"))

    if ffmpeg_ok:
        filters_code, filters_out = _run_cmd(["ffmpeg", "-hide_banner", "-filters"])
        drawtext = filters_code == 0 and _has_drawtext(filters_out)
        if not drawtext:
            required_ok = False
        lines.append(
            _status_line(
                drawtext,
                "drawtext filter",
                " (available)" if drawtext else " (missing; ffmpeg built without libfreetype)",
            )
        )

    if settings.font_file:
        font_path = Path(settings.font_file).expanduser()
        if font_path.exists():
            lines.append(_status_line(True, "Font file", f": {font_path}"))
        else:
            lines.append(_warn_line("Font file", f": {font_path} (not found, default font used)"))

    lines.append(_status_line(True, "Default style", f": {settings.default_style}"))

    print("\n".join(lines))
    return 0 if required_ok else 1
