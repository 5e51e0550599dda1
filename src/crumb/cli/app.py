"""
Main Typer application for the crumb CLI.

This module defines the root CLI application and registers all commands.
"""

from typing import Annotated

import typer

from crumb import __version__
from crumb.cli.commands import export, profile, secrets
from crumb.cli.output import print_info, setup_logging
from crumb.cli.session import CliState
from crumb.config import get_profile_name

# Create the main Typer app
app = typer.Typer(
    name="crumb",
    help="Encrypted secrets in a single file, exported per project.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        print_info(f"crumb version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    profile: Annotated[
        str | None,
        typer.Option(
            "--profile",
            "-p",
            help="Profile to use (default: $CRUMB_PROFILE or 'default').",
        ),
    ] = None,
    storage: Annotated[
        str | None,
        typer.Option(
            "--storage",
            "-s",
            help="Secrets file to use instead of the profile's.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log debug output to stderr.",
        ),
    ] = False,
) -> None:
    """
    [bold blue]crumb[/bold blue] - encrypted secrets for your shell

    Secrets live in one file encrypted to your SSH key. Run
    [bold]crumb setup[/bold] once, then [bold]crumb set[/bold] and
    [bold]crumb export[/bold].
    """
    setup_logging(verbose)
    ctx.obj = CliState(profile=get_profile_name(profile), storage=storage)


# Register commands
app.command("setup")(profile.setup)
app.command("list")(secrets.list_secrets)
app.command("ls", hidden=True)(secrets.list_secrets)
app.command("set")(secrets.set_secret)
app.command("get")(secrets.get_secret)
app.command("delete")(secrets.delete_secret)
app.command("rm", hidden=True)(secrets.delete_secret)
app.command("move")(secrets.move_secret)
app.command("mv", hidden=True)(secrets.move_secret)
app.command("import")(secrets.import_secrets)
app.command("init")(export.init)
app.command("export")(export.export)
app.add_typer(profile.app, name="storage")


if __name__ == "__main__":
    app()
