"""
Per-invocation state shared by CLI commands.

The root callback records the global --profile/--storage options; commands
turn them into a ProfileSession that knows which keys and which secrets file
to use.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import typer

from crumb.config import ProfileConfig, get_profile_name, get_storage_path, load_profile
from crumb.crypto import load_identity, load_recipient
from crumb.secrets import SecretSet, SecretStore
from crumb.storage.paths import expand_path

logger = logging.getLogger(__name__)


@dataclass
class CliState:
    """Global options from the root callback."""

    profile: str = "default"
    storage: str | None = None


def get_state(ctx: typer.Context) -> CliState:
    if isinstance(ctx.obj, CliState):
        return ctx.obj
    return CliState(profile=get_profile_name())


class ProfileSession:
    """A loaded profile plus the secret store it points at."""

    def __init__(self, state: CliState):
        self.profile_name = state.profile
        self.profile: ProfileConfig = load_profile(state.profile)
        self.storage_path: Path = get_storage_path(state.storage, self.profile)
        self.store = SecretStore(self.storage_path)
        logger.debug(f"Profile '{self.profile_name}' uses storage {self.storage_path}")

    def load(self) -> SecretSet:
        identity = load_identity(expand_path(self.profile.private_key_path))
        return self.store.load(identity)

    def save(self, secrets: SecretSet) -> None:
        recipient = load_recipient(expand_path(self.profile.public_key_path))
        self.store.save(secrets, recipient)


def confirm(prompt: str) -> bool:
    """Ask a yes/no question on the terminal."""
    return typer.confirm(prompt, default=False)
