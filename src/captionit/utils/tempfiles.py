from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from captionit.utils.logging import get_logger

log = get_logger(__name__)


class TextFileStore:
    """Creates the temporary text files drawtext reads captions from."""

    def __init__(self, directory: str | Path | None = None, *, suffix: str = ".txt") -> None:
        self.directory = Path(directory).expanduser() if directory else None
        self.suffix = suffix

    def create(self, content: str) -> Path:
        if self.directory is not None:
            self.directory.mkdir(parents=True, exist_ok=True)
        fd, name = tempfile.mkstemp(
            prefix="caption-",
            suffix=self.suffix,
            dir=str(self.directory) if self.directory else None,
        )
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        return Path(name)

    def delete(self, path: Path) -> None:
        path.unlink()

    @contextmanager
    def scope(self) -> Iterator["TextFileScope"]:
        """Yield a scope whose files are deleted on exit, whatever the outcome."""
        scope = TextFileScope(self)
        try:
            yield scope
        finally:
            scope.release()


class TextFileScope:
    def __init__(self, store: TextFileStore) -> None:
        self._store = store
        self.paths: list[Path] = []

    def create(self, content: str) -> Path:
        path = self._store.create(content)
        self.paths.append(path)
        return path

    def release(self) -> None:
        while self.paths:
            path = self.paths.pop()
            try:
                self._store.delete(path)
            except OSError as exc:
                log.warning("Could not delete temp caption file %s: %s", path, exc)
