"""In-memory filesystem for testing.

This module provides a MemoryFileSystem class that implements the FileSystem
protocol without touching disk. Useful for unit testing template stores and
for embedding templates that ship inside an application.
"""

import errno
import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import PurePath, PurePosixPath
from typing import Self

FsTree = Mapping[str, "str | bytes | FsTree | None"]


@dataclass(slots=True)
class MemoryFileSystem:
    """Filesystem held in dictionaries.

    Paths are POSIX-style and absolute; relative paths are taken relative to
    ``/``. Writing a file creates its parent directories.

    Example:
        >>> fs = MemoryFileSystem.from_tree({"html": {"index.html": "Hello"}})
        >>> fs.read_bytes("/html/index.html")
        b'Hello'
    """

    files: dict[PurePosixPath, bytes] = field(default_factory=dict)
    directories: set[PurePosixPath] = field(
        default_factory=lambda: {PurePosixPath("/")}
    )
    unreadable: set[PurePosixPath] = field(default_factory=set)

    @classmethod
    def from_tree(cls, tree: FsTree, root: str = "/") -> Self:
        """Build a filesystem from a nested mapping.

        String or bytes values become files; mappings (or None) become
        directories.
        """
        fs = cls()
        fs.add_tree(tree, root)
        return fs

    @staticmethod
    def _normalize(path: PurePath | str) -> PurePosixPath:
        posix = PurePosixPath(os.fspath(path).replace("\\", "/"))
        if not posix.is_absolute():
            posix = PurePosixPath("/") / posix
        return posix

    def add_tree(self, tree: FsTree, root: str = "/") -> None:
        """Add every file and directory of a nested mapping under root."""
        base = self._normalize(root)
        self.mkdir(base)
        for name, value in tree.items():
            node = base / name
            if isinstance(value, str | bytes):
                self.write(node, value)
            else:
                self.mkdir(node)
                if value:
                    self.add_tree(value, str(node))

    def mkdir(self, path: PurePath | str) -> None:
        """Create a directory and any missing parents."""
        directory = self._normalize(path)
        self.directories.add(directory)
        self.directories.update(directory.parents)

    def write(self, path: PurePath | str, content: str | bytes) -> None:
        """Create or replace a file."""
        file_path = self._normalize(path)
        self.mkdir(file_path.parent)
        self.files[file_path] = (
            content.encode("utf-8") if isinstance(content, str) else content
        )

    def remove(self, path: PurePath | str) -> None:
        """Delete a file.

        Raises:
            FileNotFoundError: If no such file exists.
        """
        file_path = self._normalize(path)
        if file_path not in self.files:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path))
        del self.files[file_path]

    def mark_unreadable(self, path: PurePath | str) -> None:
        """Make reads of a file or listings of a directory fail."""
        self.unreadable.add(self._normalize(path))

    def _children(self, directory: PurePosixPath) -> list[tuple[PurePosixPath, bool]]:
        children = [(d, True) for d in self.directories if d.parent == directory]
        children.extend((f, False) for f in self.files if f.parent == directory)
        # The root is its own parent
        children = [(p, is_dir) for p, is_dir in children if p != directory]
        return sorted(children, key=lambda child: child[0].name)

    def walk(self, root: PurePath | str) -> Iterator[tuple[PurePath, bool]]:
        root_path = self._normalize(root)
        if root_path not in self.directories:
            if root_path in self.files:
                raise NotADirectoryError(
                    errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(root)
                )
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(root))
        yield root_path, True
        yield from self._walk_dir(root_path)

    def _walk_dir(self, directory: PurePosixPath) -> Iterator[tuple[PurePath, bool]]:
        if directory in self.unreadable:
            raise PermissionError(
                errno.EACCES, os.strerror(errno.EACCES), str(directory)
            )
        for path, is_dir in self._children(directory):
            yield path, is_dir
            if is_dir:
                yield from self._walk_dir(path)

    def read_bytes(self, path: PurePath | str) -> bytes:
        file_path = self._normalize(path)
        if file_path in self.unreadable:
            raise PermissionError(errno.EACCES, os.strerror(errno.EACCES), str(path))
        try:
            return self.files[file_path]
        except KeyError:
            raise FileNotFoundError(
                errno.ENOENT, os.strerror(errno.ENOENT), str(path)
            ) from None
