from __future__ import annotations

import shutil
from pathlib import Path

from captionit.exceptions import DependencyMissingError, InputNotFoundError


def require_binary(binary: str) -> str:
    resolved = shutil.which(binary)
    if resolved is None:
        raise DependencyMissingError(
            f"Missing required dependency '{binary}'. Install it and try again."
        )
    return resolved


def require_input_file(path: str | Path, *, kind: str = "Input file") -> Path:
    resolved = Path(path).expanduser()
    if not resolved.exists():
        raise InputNotFoundError(f"{kind} does not exist: {path}")
    return resolved
