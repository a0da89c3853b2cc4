"""Shared test fixtures for temple tests."""

from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from rich.console import Console

from temple import (
    LogLevel,
    MemoryFileSystem,
    OSFileSystem,
    StoreOption,
    TemplateStore,
    reset_default_delimiters,
    set_default_filesystem,
    set_log_level,
    with_filesystem,
)

TEMPLATE_ROOT = "/html"


@pytest.fixture(autouse=True)
def _reset_process_defaults() -> Generator[None]:
    """Restore process-wide defaults around every test."""
    yield
    reset_default_delimiters()
    set_log_level(LogLevel.NONE)
    set_default_filesystem(OSFileSystem())


@pytest.fixture
def fs() -> MemoryFileSystem:
    """Empty in-memory filesystem with a /html template root."""
    memory = MemoryFileSystem()
    memory.mkdir(TEMPLATE_ROOT)
    return memory


StoreFactory = Callable[..., TemplateStore]


@pytest.fixture
def make_store(fs: MemoryFileSystem) -> StoreFactory:
    """Return a factory for stores rooted at /html on the in-memory fs."""

    def _make(*options: StoreOption, directory: str = TEMPLATE_ROOT) -> TemplateStore:
        return TemplateStore(directory, with_filesystem(fs), *options)

    return _make


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """Create an on-disk template directory.

    Structure:
        tmp_path/templates/
            index.html      # block "index"
            layout.html     # block "content"
            pages/about.tmpl
            static/logo.jpg # not a template
    """
    root = tmp_path / "templates"
    (root / "pages").mkdir(parents=True)
    (root / "static").mkdir()
    (root / "index.html").write_text(
        "<% block index %>Hello <%= name %>!<% endblock %>"
    )
    (root / "layout.html").write_text(
        "<main><% block content %>Default<% endblock %></main>"
    )
    (root / "pages" / "about.tmpl").write_text(
        '<% extends "layout.html" %><% block content %>About<% endblock %>'
    )
    (root / "static" / "logo.jpg").write_text("<% block logo %>nope<% endblock %>")
    return root


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )
