from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import typer.testing

from captionit.domain.captions import Trim, VideoGeometry
from captionit.domain.filters import TextDraw
from captionit.exceptions import RenderError
from captionit.services.captions import CaptionSession
from captionit.utils.tempfiles import TextFileStore


def _patch_clirunner() -> None:
    if "mix_stderr" in inspect.signature(typer.testing.CliRunner).parameters:
        return

    class PatchedCliRunner(typer.testing.CliRunner):
        def __init__(self, *args, **kwargs):  # noqa: ANN002, ANN003
            kwargs.pop("mix_stderr", None)
            super().__init__(*args, **kwargs)

    typer.testing.CliRunner = PatchedCliRunner


_patch_clirunner()


@dataclass
class FakeProber:
    geometry: VideoGeometry
    calls: list[Path] = field(default_factory=list)

    def probe(self, path: Path) -> VideoGeometry:
        self.calls.append(path)
        return self.geometry


@dataclass
class RecordingRenderer:
    fail_with: Exception | None = None
    calls: list[dict] = field(default_factory=list)

    def render(
        self,
        input_path: Path,
        filters,
        *,
        output_path: Path,
        trim: Trim | None = None,
        expected_duration: float | None = None,
        listener=None,
    ) -> Path:
        texts = [
            f.text_file.read_text(encoding="utf-8")
            for f in filters
            if isinstance(f, TextDraw)
        ]
        self.calls.append(
            {
                "input_path": input_path,
                "filters": list(filters),
                "output_path": output_path,
                "trim": trim,
                "expected_duration": expected_duration,
                "texts": texts,
            }
        )
        if self.fail_with is not None:
            raise self.fail_with
        output_path.write_bytes(b"FAKE_VIDEO")
        return output_path


class RecordingTextStore(TextFileStore):
    def __init__(self, directory: Path) -> None:
        super().__init__(directory)
        self.created: list[Path] = []
        self.deleted: list[Path] = []

    def create(self, content: str) -> Path:
        path = super().create(content)
        self.created.append(path)
        return path

    def delete(self, path: Path) -> None:
        self.deleted.append(path)
        super().delete(path)


@pytest.fixture
def input_video(tmp_path: Path) -> Path:
    path = tmp_path / "input.mp4"
    path.write_bytes(b"FAKE_INPUT")
    return path


@pytest.fixture
def text_store(tmp_path: Path) -> RecordingTextStore:
    return RecordingTextStore(tmp_path / "captions")


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def make_session(text_store: RecordingTextStore, renderer: RecordingRenderer):
    def _make(width: int = 1920, height: int = 1080, duration: float = 10.0, **kwargs) -> CaptionSession:
        kwargs.setdefault("prober", FakeProber(VideoGeometry(width, height, duration)))
        kwargs.setdefault("renderer", renderer)
        kwargs.setdefault("text_store", text_store)
        return CaptionSession(**kwargs)

    return _make


@pytest.fixture
def failing_renderer() -> RecordingRenderer:
    return RecordingRenderer(fail_with=RenderError("ffmpeg failed (exit 1): boom", stderr="boom"))
