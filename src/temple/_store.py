"""Template store: compile, lookup and render.

A TemplateStore owns one template directory and the set compiled from it.
Compiling walks the directory and builds a brand-new TemplateSet under the
store's lock, publishing it only once it is complete. Lookups and the
execution phase of renders read whichever set is current without locking,
so they see either the previous set or the new one, never a partial one.

Basic usage:
    from temple import TemplateStore

    store = TemplateStore("templates")
    store.compile()
    store.render(sys.stdout, "index", {"title": "Hello"})

Development mode recompiles before every render:
    from temple import TemplateStore, dev_mode

    store = TemplateStore("templates", dev_mode)
    store.render(sys.stdout, "index", {"title": "Hello"})
"""

import os
import threading
from io import StringIO
from pathlib import PurePath
from types import MappingProxyType
from typing import Self

from structlog.typing import FilteringBoundLogger

from temple._config import StoreConfig, StoreOption, TempleSettings
from temple._delimiters import Delimiters, get_default_delimiters
from temple._filesystem import FileSystem, get_default_filesystem
from temple._functions import FunctionMap
from temple._logging import create_logger
from temple._set import NamedTemplate, Sink, TemplateSet, build_template_set
from temple.exceptions import TemplateLoadError, TemplateNotFoundError


class TemplateStore:
    """Compiles a directory of templates and renders them by name.

    Attributes:
        directory: Template root directory.
        config: The configuration the store was built with.
    """

    def __init__(
        self,
        directory: str | os.PathLike[str],
        *options: StoreOption,
        config: StoreConfig | None = None,
    ) -> None:
        """Initialize a store for a template directory.

        Nothing is read until ``compile`` (or a render in reload mode).

        Args:
            directory: Template root directory.
            *options: Option callables applied to the config in order.
            config: Starting configuration. Defaults to ``StoreConfig()``.
        """
        resolved = config if config is not None else StoreConfig()
        for option in options:
            resolved = option(resolved)

        self._directory: str = os.fspath(directory)
        self._config: StoreConfig = resolved
        self._functions: FunctionMap = MappingProxyType(dict(resolved.functions))
        self._fs: FileSystem = (
            resolved.filesystem
            if resolved.filesystem is not None
            else get_default_filesystem()
        )
        self._lock = threading.Lock()
        self._set: TemplateSet | None = None

    @classmethod
    def from_settings(cls, settings: TempleSettings, *options: StoreOption) -> Self:
        """Create a store from file-backed settings.

        Options are applied after the settings, so they take precedence.
        """
        return cls(settings.directory, config=settings.to_config(*options))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._directory!r}, reload={self.reload})"

    def __contains__(self, name: object) -> bool:
        current = self._set
        return current is not None and name in current

    @property
    def directory(self) -> str:
        return self._directory

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def reload(self) -> bool:
        """Whether every render recompiles first."""
        return self._config.reload

    @property
    def functions(self) -> FunctionMap:
        """The store's base function map (read-only)."""
        return self._functions

    @property
    def filesystem(self) -> FileSystem:
        return self._fs

    @property
    def template_set(self) -> TemplateSet | None:
        """The current compiled set, or None if nothing has been compiled."""
        return self._set

    def _logger(self) -> FilteringBoundLogger:
        return create_logger(
            self._config.log_level,
            log_format=self._config.log_format,
            stream=self._config.log_stream,
        ).bind(directory=self._directory)

    def _resolve_delimiters(self, delimiters: tuple[str, ...]) -> Delimiters:
        if delimiters:
            return Delimiters.from_sequence(delimiters)
        if self._config.delimiters is not None:
            return self._config.delimiters
        return get_default_delimiters()

    def compile(self, *delimiters: str) -> TemplateSet:
        """Walk the directory and compile every template into a new set.

        Delimiters resolve as: the arguments, else the config's delimiters,
        else the process-wide default.

        Args:
            *delimiters: Nothing, or exactly a left and a right delimiter.

        Returns:
            The newly published set.

        Raises:
            DelimiterError: If delimiters are given but are not exactly two
                non-empty strings. Raised before anything is read or locked.
            TemplateLoadError: If the tree or a file cannot be read, a file
                does not parse, or two files share a base name. The previous
                set stays published.
        """
        resolved = self._resolve_delimiters(delimiters)
        logger = self._logger()

        with self._lock:
            logger.info("compiling", delimiters=[resolved.left, resolved.right])
            template_set = build_template_set(
                self._fs,
                self._directory,
                functions=self._functions,
                delimiters=resolved,
                extensions=self._config.extensions,
                logger=logger,
            )
            self._set = template_set

        logger.info("compiled", templates=len(template_set))
        return template_set

    def lookup(self, name: str) -> NamedTemplate | None:
        """Return the template registered under name, or None.

        Reads the current set only; never compiles.
        """
        current = self._set
        if current is None:
            return None
        return current.get(name)

    def render(
        self,
        sink: Sink,
        name: str,
        data: object = None,
        *functions: FunctionMap,
    ) -> None:
        """Execute a named template, writing output to sink.

        In reload mode the set is recompiled first, and a compile error aborts
        the render. Extra function maps are layered over the store's functions
        for this render only, later maps winning.

        Args:
            sink: Object with a ``write(str)`` method.
            name: Template name.
            data: Template data. Mappings are spread into the template's
                variables; other values are bound as ``data``.
            *functions: Extra function maps for this render.

        Raises:
            TemplateLoadError: If the reload compile fails.
            TemplateNotFoundError: If the name is not registered or nothing
                has been compiled.
            Exception: Errors raised while executing the template propagate
                unchanged. Output already written to sink stays written.
        """
        logger = self._logger()

        if self._config.reload:
            logger.info("reload")
            try:
                self.compile()
            except TemplateLoadError as e:
                logger.error("reload failed", error=str(e))
                raise

        template = self._get(name, logger)
        try:
            template.stream(sink, data, *functions)
        except Exception as e:
            logger.error("render failed", name=name, error=str(e))
            raise

    def render_string(
        self,
        name: str,
        data: object = None,
        *functions: FunctionMap,
    ) -> str:
        """Render a named template to a string. See ``render``."""
        buffer = StringIO()
        self.render(buffer, name, data, *functions)
        return buffer.getvalue()

    def _get(self, name: str, logger: FilteringBoundLogger) -> NamedTemplate:
        current = self._set
        if current is None:
            msg = f"template {name!r} requested before templates were compiled"
            logger.error("render failed", name=name, error=msg)
            raise TemplateNotFoundError(msg, name=name)

        template = current.get(name)
        if template is None:
            msg = f"no template named {name!r} in {PurePath(self._directory)}"
            logger.error("render failed", name=name, error=msg)
            raise TemplateNotFoundError(msg, name=name)
        return template
