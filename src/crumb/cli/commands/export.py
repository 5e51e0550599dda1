"""
crumb project commands.

Usage:
    crumb init
    crumb export
    crumb export --env staging --shell fish
    crumb export --path /prod/billing-svc
"""

from pathlib import Path
from typing import Annotated

import typer

from crumb.cli.output import print_cancelled, print_error, print_success, print_warning
from crumb.cli.session import ProfileSession, confirm, get_state
from crumb.config import (
    create_default_project_config,
    get_shell,
    load_project_config,
    save_project_config,
)
from crumb.exceptions import ConfigError, CrumbError, NoSecretsError
from crumb.export import ExportResolver, check_shell, format_comment, format_exports
from crumb.secrets import normalize_filter
from crumb.storage.paths import DEFAULT_PROJECT_CONFIG


def init(
    file: Annotated[
        Path,
        typer.Option(
            "--file",
            "-f",
            help="Project config file to create.",
        ),
    ] = Path(DEFAULT_PROJECT_CONFIG),
) -> None:
    """Create a default .crumb.yaml in the current directory."""
    if file.exists() and not confirm(f"Config file {file} already exists. Overwrite?"):
        print_cancelled()
        return

    try:
        save_project_config(create_default_project_config(), file)
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Successfully created {file}")


def export(
    ctx: typer.Context,
    file: Annotated[
        Path,
        typer.Option(
            "--file",
            "-f",
            help="Project config file.",
        ),
    ] = Path(DEFAULT_PROJECT_CONFIG),
    env_name: Annotated[
        str,
        typer.Option(
            "--env",
            "-e",
            help="Environment in the project config to export.",
        ),
    ] = "default",
    path: Annotated[
        str | None,
        typer.Option(
            "--path",
            help="Export every secret under this path directly, ignoring the project config.",
        ),
    ] = None,
    shell: Annotated[
        str | None,
        typer.Option(
            "--shell",
            help="Output format: bash or fish.",
        ),
    ] = None,
) -> None:
    """Print shell commands that export secrets as environment variables."""
    try:
        shell_name = check_shell(get_shell(shell))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    lines: list[str] = []
    try:
        environment = None
        if not path:
            project = load_project_config(file)
            environment = project.get_environment(env_name)
            if environment is None:
                raise ConfigError(f"environment '{env_name}' not found in {file}")

        session = ProfileSession(get_state(ctx))
        resolver = ExportResolver(session.load())

        if path:
            lines.append(format_comment(f"Exported from {normalize_filter(path)}"))
            env_vars = resolver.resolve_path(path)
        else:
            if environment.path:
                lines.append(format_comment(f"Exported from {environment.path}"))
            env_vars = resolver.resolve(environment)
    except NoSecretsError as e:
        print_warning(str(e))
        return
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    lines.extend(format_exports(env_vars, shell_name))
    for line in lines:
        typer.echo(line)
