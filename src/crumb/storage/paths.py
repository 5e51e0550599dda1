"""
Path utilities for crumb.

Provides consistent path resolution for the configuration home, the profiles
file and the default secrets storage file.
"""

import os
from pathlib import Path

DEFAULT_PROJECT_CONFIG = ".crumb.yaml"


def get_crumb_home() -> Path:
    """
    Get the crumb configuration directory.

    Resolution order:
    1. CRUMB_HOME environment variable
    2. Default: ~/.config/crumb

    Returns:
        Path to the crumb home directory.
    """
    env_home = os.environ.get("CRUMB_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()
    return Path.home() / ".config" / "crumb"


def get_global_config_path() -> Path:
    """
    Get the path to the profiles configuration file.

    Returns:
        Path to ~/.config/crumb/config.yaml
    """
    return get_crumb_home() / "config.yaml"


def get_default_storage_path(profile_name: str = "default") -> Path:
    """
    Get the default secrets file for a profile.

    Args:
        profile_name: Name of the profile.

    Returns:
        Path to ~/.config/crumb/secrets (or secrets-<profile> for other profiles).
    """
    if profile_name == "default":
        return get_crumb_home() / "secrets"
    return get_crumb_home() / f"secrets-{profile_name}"


def expand_path(path: str | Path) -> Path:
    """
    Expand a path string, handling ~ and environment variables.

    Args:
        path: Path string or Path object.

    Returns:
        Expanded Path.
    """
    if isinstance(path, str):
        path = os.path.expandvars(path)
        path = os.path.expanduser(path)
    return Path(path)


def ensure_directory(path: Path, mode: int = 0o700) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path.
        mode: Permission mode for created directories.

    Returns:
        The path (for chaining).
    """
    path.mkdir(parents=True, exist_ok=True, mode=mode)
    return path
