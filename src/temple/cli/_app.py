"""The command-line interface for temple."""

from cyclopts import App
from rich.console import Console

from ._commands import register_commands

_HELP = "Compile and render directories of Jinja2 templates."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="temple",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )
    register_commands(app, console, error_console)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `temple` CLI."""
    app()


if __name__ == "__main__":
    main()
