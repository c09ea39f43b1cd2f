from __future__ import annotations

import json
import subprocess
import sys
import threading
from pathlib import Path

import pytest

from captionit.domain.captions import Trim
from captionit.domain.filters import BoxFill, CanvasExpand, TextDraw, VisibilityWindow
from captionit.exceptions import ProbeError, RenderError
from captionit.utils import ffmpeg


def test_serialize_canvas_expand() -> None:
    assert (
        ffmpeg.serialize_filter(CanvasExpand(extra_height=204, offset_y=204, color="black"))
        == "pad=iw:ih+204:0:204:color=black"
    )


def test_serialize_text_draw_with_stroke_window_and_font() -> None:
    draw = TextDraw(
        text_file=Path("/tmp/caption-1.txt"),
        font_size=124,
        font_color="white",
        x="(w-text_w)/2",
        y="(204-text_h)/2",
        line_spacing=30,
        stroke_width=4,
        stroke_color="black@0.95",
        window=VisibilityWindow(1.5, 3),
        font_file=Path("/fonts/Inter.ttf"),
    )
    assert ffmpeg.serialize_filter(draw) == (
        "drawtext=textfile='/tmp/caption-1.txt':expansion=none:fontsize=124:fontcolor=white"
        ":x=(w-text_w)/2:y=(204-text_h)/2:line_spacing=30"
        ":borderw=4:bordercolor=black@0.95"
        ":enable='gte(t,1.5)*lt(t,3)'"
        ":fontfile='/fonts/Inter.ttf'"
    )


def test_serialize_boxed_text_draw_omits_zero_stroke() -> None:
    draw = TextDraw(
        text_file=Path("/tmp/a.txt"),
        font_size=48,
        font_color="white",
        x="(w-text_w)/2",
        y="(h-text_h)/2",
        line_spacing=10,
        box=BoxFill(color="black@0.6", border_width=8),
    )
    text = ffmpeg.serialize_filter(draw)
    assert ":expansion=none:" in text
    assert "borderw" not in text
    assert text.endswith(":box=1:boxcolor=black@0.6:boxborderw=8")
    assert "enable" not in text


def test_quotes_in_paths_are_escaped() -> None:
    assert ffmpeg._quote_filter_value("/tmp/it's.txt") == r"'/tmp/it'\''s.txt'"


def test_serialize_rejects_unknown_primitives() -> None:
    with pytest.raises(TypeError):
        ffmpeg.serialize_filter("pad=iw:ih")  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, "0"), (3, "3"), (1.5, "1.5"), (2.25, "2.25"), (0.0001, "0.0001"), (1.0004, "1.0004")],
)
def test_format_seconds(value: float, expected: str) -> None:
    assert ffmpeg.format_seconds(value) == expected


def test_sub_millisecond_window_keeps_distinct_bounds() -> None:
    assert ffmpeg.visibility_expr(VisibilityWindow(1.0001, 1.0004)) == "gte(t,1.0001)*lt(t,1.0004)"


def test_build_caption_cmd_orders_trim_around_input() -> None:
    cmd = ffmpeg.build_caption_cmd(
        "in.mp4",
        ["pad=iw:ih+10:0:10:color=black", "drawtext=textfile='a.txt'"],
        "out.mp4",
        trim=Trim(start=2.0, duration=3.0),
    )
    assert cmd[0] == "ffmpeg"
    assert cmd.index("-ss") < cmd.index("-i") < cmd.index("-t") < cmd.index("-vf")
    assert cmd[cmd.index("-ss") + 1] == "2.000"
    assert cmd[cmd.index("-t") + 1] == "3.000"
    assert cmd[cmd.index("-vf") + 1] == "pad=iw:ih+10:0:10:color=black,drawtext=textfile='a.txt'"
    assert cmd[-1] == "out.mp4"
    assert "pipe:1" in cmd


def test_build_caption_cmd_without_trim_or_progress() -> None:
    cmd = ffmpeg.build_caption_cmd("in.mp4", ["x"], "out.mp4", report_progress=False)
    assert "-ss" not in cmd
    assert "-t" not in cmd
    assert "-progress" not in cmd


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("out_time_us=1500000\n", 1.5),
        ("out_time_ms=2000000", 2.0),
        ("out_time_us=N/A", None),
        ("frame=12", None),
        ("progress=continue", None),
        ("garbage", None),
    ],
)
def test_parse_progress_seconds(line: str, expected: float | None) -> None:
    assert ffmpeg.parse_progress_seconds(line) == expected


def test_progress_percent_is_clamped() -> None:
    assert ffmpeg.progress_percent(5.0, 10.0) == 50.0
    assert ffmpeg.progress_percent(12.0, 10.0) == 100.0
    assert ffmpeg.progress_percent(1.0, None) is None
    assert ffmpeg.progress_percent(1.0, 0) is None


def _probe_json(streams: list[dict], duration: str | None = "10.5") -> str:
    payload: dict = {"streams": streams, "format": {}}
    if duration is not None:
        payload["format"]["duration"] = duration
    return json.dumps(payload)


def test_parse_probe_output_reads_first_video_stream() -> None:
    raw = _probe_json(
        [
            {"codec_type": "audio", "codec_name": "aac"},
            {
                "codec_type": "video",
                "codec_name": "h264",
                "width": 1280,
                "height": 720,
                "avg_frame_rate": "30000/1001",
            },
        ]
    )
    info = ffmpeg.parse_probe_output(raw)
    assert info["width"] == 1280
    assert info["height"] == 720
    assert info["duration_seconds"] == 10.5
    assert info["video_codec"] == "h264"
    assert info["fps"] == pytest.approx(29.97, rel=1e-3)


def test_parse_probe_output_without_video_stream() -> None:
    with pytest.raises(ProbeError, match="No video stream found"):
        ffmpeg.parse_probe_output(_probe_json([{"codec_type": "audio"}]))


def test_parse_probe_output_invalid_json() -> None:
    with pytest.raises(ProbeError, match="invalid JSON"):
        ffmpeg.parse_probe_output("not json")


def test_parse_probe_output_missing_duration() -> None:
    raw = _probe_json([{"codec_type": "video", "width": 10, "height": 10}], duration=None)
    assert ffmpeg.parse_probe_output(raw)["duration_seconds"] is None


def test_probe_media_without_ffprobe(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ffmpeg.shutil, "which", lambda _name: None)
    with pytest.raises(ProbeError, match="ffprobe not found"):
        ffmpeg.probe_media("in.mp4")


def test_probe_media_nonzero_exit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ffmpeg.shutil, "which", lambda _name: "/usr/bin/ffprobe")

    def fake_run(cmd, **_kwargs):  # noqa: ANN001, ANN003
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="in.mp4: Invalid data found")

    monkeypatch.setattr(ffmpeg.subprocess, "run", fake_run)
    with pytest.raises(ProbeError, match="Invalid data found"):
        ffmpeg.probe_media("in.mp4")


def test_probe_media_success(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[list[str]] = []
    monkeypatch.setattr(ffmpeg.shutil, "which", lambda _name: "/usr/bin/ffprobe")

    def fake_run(cmd, **_kwargs):  # noqa: ANN001, ANN003
        seen.append(cmd)
        stdout = _probe_json([{"codec_type": "video", "width": 640, "height": 480}])
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")

    monkeypatch.setattr(ffmpeg.subprocess, "run", fake_run)
    info = ffmpeg.probe_media("in.mp4")
    assert (info["width"], info["height"]) == (640, 480)
    assert seen[0][0] == "/usr/bin/ffprobe"
    assert seen[0][-1] == "in.mp4"


class FakePopen:
    def __init__(self, stdout_lines: list[str], stderr: str = "", returncode: int = 0) -> None:
        self.stdout = iter(stdout_lines)
        self.stderr_text = stderr
        self.returncode = returncode
        self.killed = False

    def wait(self) -> int:
        return self.returncode

    def kill(self) -> None:
        self.killed = True


def _patch_popen(monkeypatch: pytest.MonkeyPatch, proc: FakePopen) -> list[list[str]]:
    seen: list[list[str]] = []

    def factory(cmd, **kwargs):  # noqa: ANN001, ANN003
        seen.append(cmd)
        kwargs["stderr"].write(proc.stderr_text)
        return proc

    monkeypatch.setattr(ffmpeg.subprocess, "Popen", factory)
    return seen


def test_run_ffmpeg_reports_progress_once_per_percent(monkeypatch: pytest.MonkeyPatch) -> None:
    lines = [
        "frame=1\n",
        "out_time_us=1000000\n",
        "out_time_us=1001000\n",
        "out_time_us=5000000\n",
        "progress=continue\n",
        "out_time_us=10000000\n",
        "progress=end\n",
    ]
    _patch_popen(monkeypatch, FakePopen(lines, stderr="warning"))
    reported: list[float] = []

    stderr = ffmpeg.run_ffmpeg(["ffmpeg"], expected_duration=10.0, on_progress=reported.append)

    assert stderr == "warning"
    assert reported == [10.0, 50.0, 100.0]


def test_run_ffmpeg_without_expected_duration_reports_nothing(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_popen(monkeypatch, FakePopen(["out_time_us=1000000\n"]))
    reported: list[float] = []
    ffmpeg.run_ffmpeg(["ffmpeg"], expected_duration=None, on_progress=reported.append)
    assert reported == []


def test_run_ffmpeg_failure_includes_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_popen(monkeypatch, FakePopen([], stderr="No such filter: 'drawtext'\n", returncode=1))

    with pytest.raises(RenderError, match="exit 1") as excinfo:
        ffmpeg.run_ffmpeg(["ffmpeg"])

    assert "No such filter" in str(excinfo.value)
    assert excinfo.value.stderr == "No such filter: 'drawtext'\n"


def test_run_ffmpeg_kills_process_when_callback_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    proc = FakePopen(["out_time_us=1000000\n"])
    _patch_popen(monkeypatch, proc)

    def explode(_percent: float) -> None:
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        ffmpeg.run_ffmpeg(["ffmpeg"], expected_duration=2.0, on_progress=explode)
    assert proc.killed


def test_run_ffmpeg_missing_binary(monkeypatch: pytest.MonkeyPatch) -> None:
    def factory(cmd, **_kwargs):  # noqa: ANN001, ANN003
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(ffmpeg.subprocess, "Popen", factory)
    with pytest.raises(RenderError, match="could not be started"):
        ffmpeg.run_ffmpeg(["ffmpeg"])


def test_run_ffmpeg_survives_large_stderr() -> None:
    script = (
        "import sys\n"
        "sys.stderr.write('x' * 200000)\n"
        "sys.stderr.flush()\n"
        "print('out_time_us=1000000', flush=True)\n"
        "print('progress=end', flush=True)\n"
    )
    outcome: dict = {}

    def target() -> None:
        outcome["stderr"] = ffmpeg.run_ffmpeg([sys.executable, "-c", script], expected_duration=1.0)

    worker = threading.Thread(target=target, daemon=True)
    worker.start()
    worker.join(timeout=10)

    assert not worker.is_alive()
    assert len(outcome["stderr"]) == 200000


def test_run_ffmpeg_timeout_kills_child(monkeypatch: pytest.MonkeyPatch) -> None:
    real_popen = subprocess.Popen
    started: list[subprocess.Popen] = []

    def tracking_popen(*args, **kwargs):  # noqa: ANN002, ANN003
        proc = real_popen(*args, **kwargs)
        started.append(proc)
        return proc

    monkeypatch.setattr(ffmpeg.subprocess, "Popen", tracking_popen)

    with pytest.raises(RenderError, match="ffmpeg timed out after 0.5s"):
        ffmpeg.run_ffmpeg([sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5)

    assert started[0].poll() is not None
