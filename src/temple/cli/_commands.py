# pyright: reportUnusedFunction=false
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing
"""Commands for the temple CLI: render, list and check."""

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from temple._config import StoreOption, load_settings, with_log_level
from temple._store import TemplateStore
from temple.exceptions import (
    DelimiterError,
    SettingsError,
    TemplateLoadError,
    TemplateNotFoundError,
)

from ._shared import ExitCode, exit_with_error, load_data

DirectoryArg = Annotated[
    Path | None,
    Parameter(help="Template directory (defaults to the settings file's directory)"),
]
DelimitersOpt = Annotated[
    tuple[str, str] | None,
    Parameter(name="--delimiters", help="Left and right tag delimiters"),
]
ConfigOpt = Annotated[
    Path | None, Parameter(name="--config", help="Path to a TOML settings file")
]
LogLevelOpt = Annotated[
    str | None,
    Parameter(name="--log-level", help="Log threshold: none, error, warn, info, debug"),
]


def _open_store(
    directory: Path | None,
    config: Path | None,
    log_level: str | None,
    error_console: Console,
) -> TemplateStore:
    """Build a store from the command line and optional settings file."""
    options: list[StoreOption] = []
    if log_level is not None:
        try:
            options.append(with_log_level(log_level))
        except ValueError:
            exit_with_error(
                f"unknown log level {log_level!r}",
                ExitCode.VALIDATION_ERROR,
                console=error_console,
            )

    if config is not None:
        try:
            settings = load_settings(config)
        except SettingsError as e:
            exit_with_error(str(e), ExitCode.VALIDATION_ERROR, console=error_console)
        if directory is not None:
            settings = settings.model_copy(update={"directory": directory})
        return TemplateStore.from_settings(settings, *options)

    if directory is None:
        exit_with_error(
            "a template directory or --config is required",
            ExitCode.VALIDATION_ERROR,
            console=error_console,
        )
    return TemplateStore(directory, *options)


def _compile(
    store: TemplateStore,
    delimiters: tuple[str, str] | None,
    error_console: Console,
) -> None:
    try:
        store.compile(*(delimiters or ()))
    except DelimiterError as e:
        exit_with_error(str(e), ExitCode.VALIDATION_ERROR, console=error_console)
    except TemplateLoadError as e:
        exit_with_error(str(e), ExitCode.LOAD_ERROR, console=error_console)


def register_commands(app: App, console: Console, error_console: Console) -> None:
    """Register the temple commands on an app."""

    @app.command(name="render")
    def render(  # noqa: PLR0913
        name: Annotated[str, Parameter(help="Template name")],
        /,
        *,
        directory: Annotated[
            Path | None,
            Parameter(name=["--directory", "-d"], help="Template directory"),
        ] = None,
        data: Annotated[
            Path | None, Parameter(name="--data", help="JSON or YAML data file")
        ] = None,
        output: Annotated[
            Path | None, Parameter(name="--output", help="Write output to a file")
        ] = None,
        delimiters: DelimitersOpt = None,
        config: ConfigOpt = None,
        log_level: LogLevelOpt = None,
    ) -> None:
        """Render a template to stdout or a file.

        Args:
            name: Name of the template to render.
            directory: Template directory (defaults to the settings file's).
            data: JSON or YAML file whose content is passed as template data.
            output: File to write instead of stdout.
            delimiters: Left and right tag delimiters.
            config: TOML settings file.
            log_level: Log threshold.
        """
        store = _open_store(directory, config, log_level, error_console)

        template_data: object = None
        if data is not None:
            try:
                template_data = load_data(data)
            except OSError as e:
                exit_with_error(str(e), ExitCode.IO_ERROR, console=error_console)
            except ValueError as e:
                exit_with_error(
                    str(e), ExitCode.VALIDATION_ERROR, console=error_console
                )

        _compile(store, delimiters, error_console)

        try:
            if output is None:
                store.render(console.file, name, template_data)
                return
            with output.open("w", encoding="utf-8") as f:
                store.render(f, name, template_data)
        except TemplateNotFoundError as e:
            exit_with_error(str(e), ExitCode.NOT_FOUND, console=error_console)
        except OSError as e:
            exit_with_error(str(e), ExitCode.IO_ERROR, console=error_console)
        except Exception as e:  # noqa: BLE001
            exit_with_error(
                f"{name}: {e}", ExitCode.RENDER_ERROR, console=error_console
            )

    @app.command(name="list")
    def list_templates(
        directory: DirectoryArg = None,
        /,
        *,
        delimiters: DelimitersOpt = None,
        config: ConfigOpt = None,
        log_level: LogLevelOpt = None,
    ) -> None:
        """List the names registered by compiling a directory.

        Args:
            directory: Template directory.
            delimiters: Left and right tag delimiters.
            config: TOML settings file.
            log_level: Log threshold.
        """
        store = _open_store(directory, config, log_level, error_console)
        _compile(store, delimiters, error_console)

        template_set = store.template_set
        table = Table(show_header=True, header_style="bold")
        table.add_column("Name", style="cyan")
        table.add_column("Block")
        table.add_column("Source", overflow="fold")
        if template_set is not None:
            for template_name in template_set.names:
                template = template_set.templates[template_name]
                table.add_row(template_name, template.block or "", template.path)
        console.print(table)

    @app.command(name="check")
    def check(
        directory: DirectoryArg = None,
        /,
        *,
        delimiters: DelimitersOpt = None,
        config: ConfigOpt = None,
        log_level: LogLevelOpt = None,
    ) -> None:
        """Compile a directory and report whether every template parses.

        Args:
            directory: Template directory.
            delimiters: Left and right tag delimiters.
            config: TOML settings file.
            log_level: Log threshold.
        """
        store = _open_store(directory, config, log_level, error_console)
        _compile(store, delimiters, error_console)

        count = len(store.template_set or ())
        source = escape(store.directory)
        console.print(
            f"[green]OK[/green] {count} templates compiled from {source}",
            highlight=False,
        )
