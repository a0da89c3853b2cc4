"""Shared CLI utilities.

This module provides:
- Standardized exit codes
- Console helpers for error handling
- Loading of template data files
"""

from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Never

import orjson
import yaml
from rich.markup import escape

if TYPE_CHECKING:
    from rich.console import Console

__all__ = [
    "ExitCode",
    "exit_with_error",
    "load_data",
]


class ExitCode(IntEnum):
    """Standard exit codes for temple CLI commands."""

    SUCCESS = 0
    LOAD_ERROR = 1
    VALIDATION_ERROR = 2
    NOT_FOUND = 3
    IO_ERROR = 4
    RENDER_ERROR = 5


def exit_with_error(
    message: str,
    code: ExitCode,
    *,
    console: "Console",  # noqa: UP037
) -> Never:
    """Print an error message and exit with the specified code.

    Raises:
        SystemExit: Always raised with the specified exit code.
    """
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    raise SystemExit(code)


def load_data(path: Path) -> object:
    """Load template data from a JSON or YAML file.

    The format is chosen by suffix: ``.json`` is read with orjson, ``.yaml``
    and ``.yml`` with PyYAML.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the suffix is unsupported or the content is invalid.
    """
    suffix = path.suffix.lower()
    content = path.read_bytes()

    if suffix == ".json":
        try:
            return orjson.loads(content)
        except orjson.JSONDecodeError as e:
            msg = f"{path}: invalid JSON: {e}"
            raise ValueError(msg) from e

    if suffix in {".yaml", ".yml"}:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            msg = f"{path}: invalid YAML: {e}"
            raise ValueError(msg) from e

    msg = f"{path}: unsupported data format {suffix or '(none)'!r}, use .json or .yaml"
    raise ValueError(msg)
