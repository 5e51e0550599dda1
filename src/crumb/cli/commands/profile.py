"""
crumb setup and storage commands.

Usage:
    crumb setup
    crumb --profile work setup
    crumb storage get
    crumb storage set ~/Dropbox/crumb-secrets
    crumb storage clear
"""

from typing import Annotated

import typer

from crumb.cli.output import print_error, print_info, print_success
from crumb.cli.session import confirm, get_state
from crumb.config import (
    DEFAULT_PROFILE,
    ProfileConfig,
    get_storage_path,
    load_config,
    load_profile,
    save_config,
)
from crumb.crypto import load_recipient, validate_key_pair
from crumb.exceptions import ConfigError, CrumbError, KeyLoadError
from crumb.secrets import SecretStore
from crumb.storage.paths import ensure_directory, expand_path, get_default_storage_path

app = typer.Typer(
    name="storage",
    help="Storage location management.",
)


def setup(ctx: typer.Context) -> None:
    """Configure a profile's SSH key pair and create its secrets file."""
    state = get_state(ctx)
    profile = state.profile

    if profile == DEFAULT_PROFILE:
        default_public, default_private = "~/.ssh/id_ed25519.pub", "~/.ssh/id_ed25519"
    else:
        default_public, default_private = f"~/.ssh/{profile}.pub", f"~/.ssh/{profile}"

    public_key_path = typer.prompt("Path to SSH public key", default=default_public)
    private_key_path = typer.prompt("Path to SSH private key", default=default_private)
    public_key = expand_path(public_key_path.strip())
    private_key = expand_path(private_key_path.strip())

    try:
        validate_key_pair(public_key, private_key)
    except KeyLoadError as e:
        print_error(
            "Invalid or missing SSH key pair. Generate one with "
            f"`ssh-keygen -t ed25519` or `ssh-keygen -t rsa` first: {e}"
        )
        raise typer.Exit(1)

    storage = state.storage
    if not storage:
        if profile == DEFAULT_PROFILE:
            storage = str(get_default_storage_path())
        else:
            storage = typer.prompt(
                "Storage file path", default=str(get_default_storage_path(profile))
            )
    storage_path = expand_path(storage.strip())

    try:
        ensure_directory(storage_path.parent)
        config = load_config()
        config.profiles[profile] = ProfileConfig(
            public_key_path=str(public_key),
            private_key_path=str(private_key),
            storage=str(storage_path),
        )
        config_path = save_config(config)

        store = SecretStore(storage_path)
        if store.exists() and not confirm(
            f"Secrets file {storage_path} already exists. Replace it with an empty one?"
        ):
            print_info("Keeping existing secrets file.")
        else:
            store.create_empty(load_recipient(public_key))
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except OSError as e:
        print_error(f"failed to create storage directory: {e}")
        raise typer.Exit(1)

    print_success(f"Setup completed successfully for profile '{profile}'!")
    print_info(f"Config file: {config_path}")
    print_info(f"Storage file: {storage_path}")


@app.command("set")
def set_storage(
    ctx: typer.Context,
    storage: Annotated[
        str,
        typer.Argument(
            help="New secrets file location for the profile.",
        ),
    ],
) -> None:
    """Point the profile at a different secrets file."""
    profile = get_state(ctx).profile
    try:
        config = load_config()
        profile_config = config.get_profile(profile)
        if profile_config is None:
            raise ConfigError(
                f"profile '{profile}' not found. Run 'crumb setup --profile {profile}' first"
            )
        profile_config.storage = str(expand_path(storage))
        save_config(config)
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Storage path set to: {profile_config.storage} (profile: {profile})")


@app.command("get")
def get_storage(ctx: typer.Context) -> None:
    """Show which secrets file the profile uses."""
    state = get_state(ctx)
    try:
        storage_path = get_storage_path(state.storage, load_profile(state.profile))
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    typer.echo(f"Storage: {storage_path} (profile: {state.profile})")


@app.command("clear")
def clear_storage(ctx: typer.Context) -> None:
    """Reset the profile to the default secrets file."""
    profile = get_state(ctx).profile
    try:
        config = load_config()
        profile_config = config.get_profile(profile)
        if profile_config is None:
            raise ConfigError("config file not found")
        profile_config.storage = ""
        save_config(config)
    except CrumbError as e:
        print_error(str(e))
        raise typer.Exit(1)

    print_success(f"Storage path cleared for profile: {profile} (using default)")
