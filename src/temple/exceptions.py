"""temple exceptions."""
# ruff: noqa: TC003  # Sequence and PurePath needed at runtime for signatures

from collections.abc import Sequence
from pathlib import PurePath


class TempleError(Exception):
    """Base exception for temple errors."""


class DelimiterError(TempleError, ValueError):
    """Raised when a delimiter pair is malformed.

    Attributes:
        delimiters: The delimiters that were supplied.
    """

    def __init__(self, message: str, *, delimiters: Sequence[str]) -> None:
        """Initialize with error message and the offending delimiters."""
        super().__init__(message)
        self.delimiters: tuple[str, ...] = tuple(delimiters)


# =============================================================================
# Compile Exceptions
# =============================================================================


class TemplateLoadError(TempleError):
    """Raised when a template source cannot be enumerated or read.

    Attributes:
        path: The path being processed when the error occurred.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        path: PurePath | str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and path context."""
        super().__init__(message)
        self.path: str = str(path)
        self.cause: Exception | None = cause


class TemplateParseError(TemplateLoadError):
    """Raised when a template source is malformed.

    Attributes:
        line: Line number reported by the parser, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        path: PurePath | str,
        line: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and source location."""
        super().__init__(message, path=path, cause=cause)
        self.line: int | None = line


class TemplateNameCollisionError(TemplateLoadError):
    """Raised when two template files share a base name.

    Attributes:
        name: The colliding template name.
        existing_path: The path that registered the name first.
    """

    def __init__(
        self,
        message: str,
        *,
        name: str,
        path: PurePath | str,
        existing_path: PurePath | str,
    ) -> None:
        """Initialize with the colliding name and both paths."""
        super().__init__(message, path=path)
        self.name: str = name
        self.existing_path: str = str(existing_path)


# =============================================================================
# Render Exceptions
# =============================================================================


class TemplateNotFoundError(TempleError, KeyError):
    """Raised when a template name is not registered in the compiled set.

    Attributes:
        name: The name that was requested.
    """

    def __init__(self, message: str, *, name: str) -> None:
        """Initialize with error message and template name."""
        super().__init__(message)
        self.name: str = name

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


# =============================================================================
# Settings Exceptions
# =============================================================================


class SettingsError(TempleError):
    """Raised when settings cannot be loaded or validated.

    Attributes:
        path: Path to the settings file, if the settings came from one.
    """

    def __init__(self, message: str, *, path: PurePath | str | None = None) -> None:
        """Initialize with error message and optional file path."""
        super().__init__(message)
        self.path: str | None = str(path) if path is not None else None
