"""
crumb secret commands.

Usage:
    crumb list /prod
    crumb set /prod/api/key s3cret
    crumb get /prod/api/key --show
    crumb delete /prod/api/key
    crumb move /prod/api/key /prod/api/token
    crumb import --file .env --path /prod/api
"""

from pathlib import Path
from typing import Annotated

import typer

from crumb.cli.output import (
    print_cancelled,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from crumb.cli.session import ProfileSession, confirm, get_state
from crumb.config import get_shell
from crumb.exceptions import CancelledError, CrumbError, ValidationError
from crumb.export import check_shell, extract_var_name, format_assignment
from crumb.secrets import filtered_sorted_keys, parse_env_file, validate_key_path


def list_secrets(
    ctx: typer.Context,
    path_filter: Annotated[
        str,
        typer.Argument(
            help="Only list keys starting with this path (e.g., '/prod/').",
        ),
    ] = "",
) -> None:
    """List stored keys, optionally filtered by path prefix."""
    try:
        session = ProfileSession(get_state(ctx))
        secrets = session.load()
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not secrets:
        print_info("No secrets found")
        return

    keys = filtered_sorted_keys(secrets, path_filter)
    if not keys:
        if path_filter:
            print_info(f"No secrets found matching path: {path_filter}")
        else:
            print_info("No secrets found")
        return

    for key in keys:
        typer.echo(key)


def set_secret(
    ctx: typer.Context,
    key_path: Annotated[
        str,
        typer.Argument(
            help="Secret path (e.g., '/prod/api/key').",
        ),
    ],
    value: Annotated[
        str,
        typer.Argument(
            help="Secret value.",
        ),
    ],
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Overwrite an existing key without asking.",
        ),
    ] = False,
) -> None:
    """Store a secret."""
    try:
        validate_key_path(key_path)
        session = ProfileSession(get_state(ctx))
        secrets = session.load()

        _, exists = secrets.exists(key_path)
        if exists and not yes:
            print_warning(f"Key '{key_path}' already exists.")
            if not confirm("Overwrite?"):
                raise CancelledError("operation cancelled")

        secrets.set(key_path, value)
        session.save(secrets)
    except CancelledError:
        print_cancelled()
        return
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Successfully set key: {key_path}")


def get_secret(
    ctx: typer.Context,
    key_path: Annotated[
        str,
        typer.Argument(
            help="Secret path.",
        ),
    ],
    show: Annotated[
        bool,
        typer.Option(
            "--show",
            help="Print the value instead of a mask.",
        ),
    ] = False,
    export: Annotated[
        bool,
        typer.Option(
            "--export",
            help="Print a shell export line named after the last path segment.",
        ),
    ] = False,
    shell: Annotated[
        str | None,
        typer.Option(
            "--shell",
            help="Shell format for --export: bash or fish.",
        ),
    ] = None,
) -> None:
    """Show a secret."""
    try:
        validate_key_path(key_path)
        shell_name = check_shell(get_shell(shell)) if export else None
        session = ProfileSession(get_state(ctx))
        secrets = session.load()
    except (CrumbError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(1)

    value, exists = secrets.exists(key_path)
    if not exists:
        print_error("Key not found.")
        raise typer.Exit(1)

    if shell_name is not None:
        typer.echo(format_assignment(extract_var_name(key_path), value, shell_name))
    elif show:
        typer.echo(value)
    else:
        typer.echo("****")


def delete_secret(
    ctx: typer.Context,
    key_path: Annotated[
        str,
        typer.Argument(
            help="Secret path to delete.",
        ),
    ],
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation.",
        ),
    ] = False,
) -> None:
    """Delete a secret (asks you to type the path to confirm)."""
    try:
        validate_key_path(key_path)
        session = ProfileSession(get_state(ctx))
        secrets = session.load()
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    _, exists = secrets.exists(key_path)
    if not exists:
        print_error("Key not found.")
        raise typer.Exit(1)

    if not yes:
        confirmation = typer.prompt("Type the key path to confirm deletion", default="", show_default=False)
        if confirmation.strip() != key_path:
            print_cancelled("Confirmation failed. Deletion cancelled.")
            return

    secrets.delete(key_path)
    try:
        session.save(secrets)
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Successfully deleted key: {key_path}")


def move_secret(
    ctx: typer.Context,
    old_key_path: Annotated[
        str,
        typer.Argument(
            help="Current secret path.",
        ),
    ],
    new_key_path: Annotated[
        str,
        typer.Argument(
            help="New secret path.",
        ),
    ],
) -> None:
    """Move a secret to a new path."""
    try:
        validate_key_path(old_key_path)
    except ValidationError as e:
        print_error(f"invalid old key path: {e}")
        raise typer.Exit(1)
    try:
        validate_key_path(new_key_path)
    except ValidationError as e:
        print_error(f"invalid new key path: {e}")
        raise typer.Exit(1)

    try:
        session = ProfileSession(get_state(ctx))
        secrets = session.load()
        secrets.move(old_key_path, new_key_path, confirm=confirm)
        session.save(secrets)
    except CancelledError:
        print_cancelled()
        return
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Successfully moved key from {old_key_path} to {new_key_path}")


def import_secrets(
    ctx: typer.Context,
    file: Annotated[
        Path,
        typer.Option(
            "--file",
            "-f",
            help=".env file to import.",
        ),
    ],
    base_path: Annotated[
        str,
        typer.Option(
            "--path",
            help="Secret path to import under (e.g., '/prod/api').",
        ),
    ],
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Overwrite existing keys without asking.",
        ),
    ] = False,
) -> None:
    """Import variables from a .env file as secrets."""
    try:
        validate_key_path(base_path)
    except ValidationError as e:
        print_error(f"invalid path: {e}")
        raise typer.Exit(1)

    try:
        env_vars = parse_env_file(file)
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    if not env_vars:
        print_info("No environment variables found in the .env file")
        return

    base_path = base_path.rstrip("/")
    to_import: dict[str, str] = {}
    for env_key in sorted(env_vars):
        full_key_path = f"{base_path}/{env_key}"
        try:
            validate_key_path(full_key_path)
        except ValidationError as e:
            print_warning(f"Skipping '{env_key}': {e}")
            continue
        to_import[full_key_path] = env_vars[env_key]

    try:
        session = ProfileSession(get_state(ctx))
        secrets = session.load()

        conflicts = [key for key in to_import if secrets.exists(key)[1]]
        print_info(f"Found {len(env_vars)} environment variables in {file}")
        new_count = len(to_import) - len(conflicts)
        if new_count:
            print_info(f"New keys to import: {new_count}")
        if conflicts:
            print_warning(f"Existing keys that will be updated: {len(conflicts)}")
            for key in conflicts:
                typer.echo(f"  - {key}")
            if not yes and not confirm("Continue with import? This will overwrite existing keys."):
                raise CancelledError("import cancelled")

        for key, value in to_import.items():
            secrets.set(key, value)
        session.save(secrets)
    except CancelledError:
        print_cancelled("Import cancelled.")
        return
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Successfully imported {len(to_import)} secrets from {file} to {base_path}")
