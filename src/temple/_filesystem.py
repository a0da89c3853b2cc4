# ruff: noqa: TC003  # PurePath needed at runtime for Protocol method bodies
"""Filesystem protocol for template discovery.

Compilation only needs to enumerate a directory tree and read files. This
module defines that capability as a runtime-checkable Protocol so a store
can be handed the real filesystem or an in-memory fake.
"""

import os
from collections.abc import Iterator
from pathlib import Path, PurePath
from typing import Protocol, runtime_checkable


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for the filesystem operations used by compilation.

    Example:
        >>> def count_entries(fs: FileSystem, root: str) -> int:
        ...     return sum(1 for _ in fs.walk(root))
    """

    def walk(self, root: PurePath | str) -> Iterator[tuple[PurePath, bool]]:
        """Yield every entry under root, root included.

        Entries are yielded depth-first with the children of each directory
        in lexical order, as ``(path, is_dir)`` pairs. Symbolic links to
        directories are reported as non-directories and not descended into.

        Raises:
            OSError: If root or a directory below it cannot be listed.
        """
        ...

    def read_bytes(self, path: PurePath | str) -> bytes:
        """Open a file by path and return its full contents.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        ...


class OSFileSystem:
    """FileSystem backed by the process filesystem."""

    def walk(self, root: PurePath | str) -> Iterator[tuple[PurePath, bool]]:
        root_path = Path(root)
        if not root_path.is_dir():
            # Surfaces FileNotFoundError / NotADirectoryError with the path
            os.scandir(root_path).close()
        yield root_path, True
        yield from self._walk_dir(root_path)

    def _walk_dir(self, directory: Path) -> Iterator[tuple[PurePath, bool]]:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
        for entry in entries:
            path = directory / entry.name
            is_dir = entry.is_dir(follow_symlinks=False)
            yield path, is_dir
            if is_dir:
                yield from self._walk_dir(path)

    def read_bytes(self, path: PurePath | str) -> bytes:
        with Path(path).open("rb") as f:
            return f.read()


_default_filesystem: FileSystem = OSFileSystem()


def get_default_filesystem() -> FileSystem:
    """Return the process-wide default filesystem."""
    return _default_filesystem


def set_default_filesystem(fs: FileSystem) -> None:
    """Replace the process-wide default filesystem.

    Stores resolve their filesystem when they are constructed, so this only
    affects stores created afterwards.
    """
    global _default_filesystem  # noqa: PLW0603
    _default_filesystem = fs
