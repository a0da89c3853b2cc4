"""Store configuration.

``StoreConfig`` holds everything a TemplateStore is built from. Stores are
configured with option callables, each taking a config and returning an
updated copy:

    store = TemplateStore("templates", dev_mode, with_log_level("debug"))

``TempleSettings`` is the file-backed form of the same settings, read from
TOML by ``load_settings``.
"""

import tomllib
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, ClassVar, TextIO

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from temple._delimiters import Delimiters
from temple._filesystem import FileSystem
from temple._functions import DEFAULT_FUNCTIONS, FunctionMap, merge_functions
from temple._logging import LogFormatType, LogLevel, coerce_log_level
from temple._set import DEFAULT_EXTENSIONS
from temple.exceptions import SettingsError


@dataclass(slots=True, frozen=True)
class StoreConfig:
    """Configuration for a TemplateStore.

    Attributes:
        reload: Recompile the whole set before every render.
        functions: Function map available to templates.
        delimiters: Tag delimiters. None falls back to the process-wide default.
        extensions: File suffixes that are compiled as templates.
        filesystem: Filesystem to read templates from. None falls back to the
            process-wide default.
        log_level: Log threshold. None falls back to the process-wide level.
        log_format: Log output format.
        log_stream: Stream for log output. None means the current stderr.
    """

    reload: bool = False
    functions: FunctionMap = field(default_factory=lambda: dict(DEFAULT_FUNCTIONS))
    delimiters: Delimiters | None = None
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    filesystem: FileSystem | None = None
    log_level: LogLevel | None = None
    log_format: LogFormatType = "text"
    log_stream: TextIO | None = None


StoreOption = Callable[[StoreConfig], StoreConfig]


def dev_mode(config: StoreConfig) -> StoreConfig:
    """Enable reload mode: every render recompiles the set first."""
    return replace(config, reload=True)


def with_functions(functions: FunctionMap) -> StoreOption:
    """Replace the function map.

    The default functions are not carried over; include them explicitly
    when they are still wanted.
    """

    def _apply(config: StoreConfig) -> StoreConfig:
        return replace(config, functions=dict(functions))

    return _apply


def with_extra_functions(*functions: FunctionMap) -> StoreOption:
    """Layer function maps over the current ones, later maps winning."""

    def _apply(config: StoreConfig) -> StoreConfig:
        return replace(config, functions=merge_functions(config.functions, *functions))

    return _apply


def with_delimiters(left: str, right: str) -> StoreOption:
    """Use the given delimiters whenever compile is called without any."""
    delimiters = Delimiters(left, right)

    def _apply(config: StoreConfig) -> StoreConfig:
        return replace(config, delimiters=delimiters)

    return _apply


def with_extensions(*extensions: str) -> StoreOption:
    """Compile files with these suffixes instead of ``.html`` and ``.tmpl``."""

    def _apply(config: StoreConfig) -> StoreConfig:
        return replace(config, extensions=tuple(extensions))

    return _apply


def with_filesystem(fs: FileSystem) -> StoreOption:
    """Read templates through the given filesystem."""

    def _apply(config: StoreConfig) -> StoreConfig:
        return replace(config, filesystem=fs)

    return _apply


def with_log_level(
    level: LogLevel | str,
    *,
    log_format: LogFormatType | None = None,
    stream: TextIO | None = None,
) -> StoreOption:
    """Give the store its own log threshold, format and stream."""
    log_level = coerce_log_level(level)

    def _apply(config: StoreConfig) -> StoreConfig:
        return replace(
            config,
            log_level=log_level,
            log_format=log_format if log_format is not None else config.log_format,
            log_stream=stream if stream is not None else config.log_stream,
        )

    return _apply


# =============================================================================
# File-backed settings
# =============================================================================


class TempleSettings(BaseModel):
    """Store settings as read from a settings file.

    Attributes:
        directory: Template root directory. Relative paths are resolved
            against the settings file's directory by ``load_settings``.
        reload: Recompile before every render.
        delimiters: Two-item list of tag delimiters, or None for the default.
        extensions: File suffixes compiled as templates.
        log_level: Log threshold, or None for the process-wide level.
        log_format: Log output format.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    directory: Path = Path("templates")
    reload: bool = False
    delimiters: tuple[str, str] | None = None
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    log_level: LogLevel | None = None
    log_format: LogFormatType = "text"

    @field_validator("extensions")
    @classmethod
    def check_extensions(
        cls, value: tuple[str, ...], info: ValidationInfo
    ) -> tuple[str, ...]:
        for extension in value:
            if not extension.startswith(".") or len(extension) < 2:  # noqa: PLR2004
                msg = f"{info.field_name}: {extension!r} must look like '.html'"
                raise ValueError(msg)
        return value

    @field_validator("delimiters")
    @classmethod
    def check_delimiters(
        cls, value: tuple[str, str] | None
    ) -> tuple[str, str] | None:
        if value is not None and not all(value):
            msg = "delimiters must be non-empty strings"
            raise ValueError(msg)
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def coerce_level(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, str) and value.strip().lower() == "warning":
            return LogLevel.WARN
        return value

    def to_config(self, *options: StoreOption) -> StoreConfig:
        """Build a StoreConfig, then apply options on top of it."""
        config = StoreConfig(
            reload=self.reload,
            delimiters=Delimiters(*self.delimiters) if self.delimiters else None,
            extensions=self.extensions,
            log_level=self.log_level,
            log_format=self.log_format,
        )
        for option in options:
            config = option(config)
        return config


def read_toml_file(path: Path) -> dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        SettingsError: If the file cannot be read or parsed.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except OSError as e:
        msg = f"Failed to read settings file: {e}"
        raise SettingsError(msg, path=path) from e
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse settings file: {e}"
        raise SettingsError(msg, path=path) from e


def load_settings(path: Path) -> TempleSettings:
    """Load settings from a TOML file.

    Settings may sit at the top level or under a ``[temple]`` table (so they
    can live in a shared ``pyproject.toml``-style file as ``[tool.temple]``).

    Args:
        path: Path to the TOML file.

    Returns:
        Validated settings with ``directory`` made absolute.

    Raises:
        SettingsError: If the file cannot be read, parsed or validated.
    """
    data = read_toml_file(path)
    tool: Any = data.get("tool", {})
    if not isinstance(tool, dict):
        msg = "tool must be a table"
        raise SettingsError(msg, path=path)
    section: Any = tool.get("temple", data.get("temple", data))
    if not isinstance(section, dict):
        msg = "temple settings must be a table"
        raise SettingsError(msg, path=path)

    try:
        settings = TempleSettings.model_validate(section)
    except ValidationError as e:
        msg = f"Invalid settings: {e}"
        raise SettingsError(msg, path=path) from e

    if not settings.directory.is_absolute():
        directory = (path.parent / settings.directory).resolve()
        settings = settings.model_copy(update={"directory": directory})
    return settings
