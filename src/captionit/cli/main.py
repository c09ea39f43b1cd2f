from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Iterator

import typer

from captionit.config.settings import Settings
from captionit.exceptions import CaptionItError, InvalidCaptionError
from captionit.services.captions import CaptionSession
from captionit.utils.checks import require_input_file
from captionit.utils.doctor import run_doctor
from captionit.utils.logging import configure_logging, get_logger

app = typer.Typer(add_completion=False, help="Add captions to videos with different styles.")
log = get_logger(__name__)

EXAMPLE_CAPTIONS = [
    {"text": "First caption", "startTime": 0, "endTime": 3},
    {"text": "Second caption", "startTime": 3, "endTime": 6},
    {"text": "Third caption", "startTime": 6, "endTime": 9},
]


@contextmanager
def _handle_errors() -> Iterator[None]:
    try:
        yield
    except CaptionItError as exc:
        typer.echo(f"{exc.label()}: {exc.message}", err=True)
        raise typer.Exit(code=exc.exit_code or 1) from exc


def _build_session(settings: Settings) -> CaptionSession:
    return CaptionSession.from_settings(settings)


def _load_settings(log_level: str | None) -> Settings:
    settings = Settings()
    configure_logging(log_level or settings.log_level)
    return settings


def _load_captions_file(path: str) -> list:
    captions_path = require_input_file(path, kind="Captions file")
    try:
        data = json.loads(captions_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidCaptionError(f"Captions file is not valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise InvalidCaptionError("Captions file must contain an array of caption objects")
    return data


@app.command()
def add(
    input_path: str = typer.Option(..., "--input", "-i", help="Input video file path."),
    output_path: str = typer.Option(..., "--output", "-o", help="Output video file path."),
    text: str = typer.Option(..., "--text", "-t", help="Caption text."),
    style: str = typer.Option(None, "--style", "-s", help="Caption style (overrides config)."),
    start: float = typer.Option(0.0, "--start", help="Start time in seconds."),
    duration: float = typer.Option(None, "--duration", help="Duration in seconds."),
    font: str = typer.Option(None, "--font", help="Path to a custom font file."),
    log_level: str = typer.Option(None, help="Log level (overrides config)."),
) -> None:
    """Add a single caption to a video."""
    settings = _load_settings(log_level)
    with _handle_errors():
        session = _build_session(settings)
        result = session.add_caption(
            input_path,
            output_path,
            text,
            style=style,
            start_time=start,
            duration=duration,
            fontfile=font,
        )
    typer.echo(f"✅ Caption added successfully! Output: {result}")


@app.command("add-multiple")
def add_multiple(
    input_path: str = typer.Option(..., "--input", "-i", help="Input video file path."),
    output_path: str = typer.Option(..., "--output", "-o", help="Output video file path."),
    captions: str = typer.Option(..., "--captions", "-c", help="JSON file with captions data."),
    style: str = typer.Option(None, "--style", "-s", help="Caption style (overrides config)."),
    font: str = typer.Option(None, "--font", help="Path to a custom font file."),
    log_level: str = typer.Option(None, help="Log level (overrides config)."),
) -> None:
    """Add multiple timed captions from a JSON file."""
    settings = _load_settings(log_level)
    with _handle_errors():
        entries = _load_captions_file(captions)
        session = _build_session(settings)
        result = session.add_multiple_captions(
            input_path,
            output_path,
            entries,
            style=style,
            fontfile=font,
        )
    typer.echo(f"✅ Multiple captions added successfully! Output: {result}")


@app.command()
def styles(
    width: int = typer.Option(1920, help="Video width used to scale the styles."),
    height: int = typer.Option(1080, help="Video height used to scale the styles."),
    json_output: bool = typer.Option(False, "--json", help="Output scaled styles as JSON."),
) -> None:
    """List available caption styles."""
    if width <= 0 or height <= 0:
        raise typer.BadParameter("Width and height must be positive.")
    session = _build_session(Settings())

    if json_output:
        payload = {
            name: session.get_style_config(name, width, height).to_dict()
            for name in session.list_styles()
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(f"Available caption styles ({width}x{height}):")
    for name in session.list_styles():
        config = session.get_style_config(name, width, height)
        base = session.get_base_style_config(name)
        typer.echo(f"\n{name}:")
        typer.echo(f"  Font size: {config.font_size} (base: {base.base_font_size})")
        typer.echo(f"  Font color: {config.font_color}")
        typer.echo(f"  Position: {config.x}, {config.y or 'top band'}")
        if base.description:
            typer.echo(f"  Style: {base.description}")


@app.command()
def example() -> None:
    """Show example usage and the caption JSON format."""
    typer.echo("Example usage:")
    typer.echo("\n# Add single caption:")
    typer.echo('captionit add -i input.mp4 -o output.mp4 -t "Hello World!" -s top-overlay')
    typer.echo("\n# Add multiple captions:")
    typer.echo("captionit add-multiple -i input.mp4 -o output.mp4 -c captions.json -s centered-overlay")
    typer.echo("\nExample captions.json format:")
    typer.echo(json.dumps(EXAMPLE_CAPTIONS, indent=2))


@app.command()
def config() -> None:
    """Print resolved config."""
    s = Settings()
    typer.echo(json.dumps(s.to_public_dict(), indent=2))


@app.command()
def doctor() -> None:
    """Run environment diagnostics."""
    settings = Settings()
    with _handle_errors():
        code = run_doctor(settings)
    raise typer.Exit(code=code)


def _main() -> None:
    app()


if __name__ == "__main__":
    _main()
