"""
Configuration loader for crumb.

Loads the profiles file (~/.config/crumb/config.yaml) and per-project export
files (.crumb.yaml), and resolves which storage file and shell a command
should use.

Storage resolution order:
1. --storage flag
2. Profile ``storage`` setting
3. Default: ~/.config/crumb/secrets
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from crumb.config.schema import Config, ExportEnvironment, ProfileConfig, ProjectExportConfig
from crumb.exceptions import ConfigError
from crumb.storage.paths import (
    expand_path,
    get_default_storage_path,
    get_global_config_path,
)

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"
DEFAULT_SHELL = "bash"
PROJECT_CONFIG_VERSION = "1.0"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed configuration dictionary ({} for a missing or empty file).

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"Invalid {path}: expected a mapping at the top level")
    return content


def save_yaml_file(path: Path, config: dict[str, Any]) -> None:
    """
    Save a configuration dictionary to a YAML file (mode 0600).

    Raises:
        ConfigError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False, allow_unicode=True, indent=2)
    except OSError as e:
        raise ConfigError(f"Cannot write {path}: {e}") from e

    try:
        path.chmod(0o600)
    except OSError:
        logger.warning(f"Could not set permissions on config file: {path}")
    logger.info(f"Wrote configuration: {path}")


# =============================================================================
# Profiles
# =============================================================================


def get_profile_name(profile: str | None = None) -> str:
    """Resolve the active profile: explicit value, then CRUMB_PROFILE, then 'default'."""
    return profile or os.environ.get("CRUMB_PROFILE") or DEFAULT_PROFILE


def load_config(config_path: Path | None = None) -> Config:
    """
    Load the profiles file.

    Returns:
        Config (empty if the file does not exist).

    Raises:
        ConfigError: If the file is invalid.
    """
    config_path = config_path or get_global_config_path()
    config_dict = load_yaml_file(config_path)
    try:
        return Config.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigError(f"failed to parse config file {config_path}: {e}") from e


def save_config(config: Config, config_path: Path | None = None) -> Path:
    """Write the profiles file and return its path."""
    config_path = config_path or get_global_config_path()
    save_yaml_file(config_path, config.model_dump(exclude_none=True))
    return config_path


def load_profile(profile: str | None = None, config_path: Path | None = None) -> ProfileConfig:
    """
    Load one profile from the profiles file.

    Raises:
        ConfigError: If the file or profile does not exist.
    """
    name = get_profile_name(profile)
    config_path = config_path or get_global_config_path()

    if not config_path.exists():
        raise ConfigError("configuration not found. Run 'crumb setup' first")

    profile_config = load_config(config_path).get_profile(name)
    if profile_config is None:
        raise ConfigError(
            f"profile '{name}' not found. Run 'crumb setup --profile {name}' first"
        )
    return profile_config


def get_storage_path(storage_flag: str | None, profile_config: ProfileConfig | None) -> Path:
    """
    Determine the secrets file location.

    Priority: CLI flag > profile storage > default.
    """
    if storage_flag:
        return expand_path(storage_flag)

    if profile_config is not None and profile_config.storage:
        return expand_path(profile_config.storage)

    return get_default_storage_path()


def get_shell(shell_flag: str | None = None, config: Config | None = None) -> str:
    """
    Determine the output shell format.

    Priority: --shell flag > CRUMB_SHELL > config ``shell`` > bash.
    """
    if shell_flag:
        return shell_flag

    env_shell = os.environ.get("CRUMB_SHELL")
    if env_shell:
        return env_shell

    if config is None:
        try:
            config = load_config()
        except ConfigError as e:
            logger.debug(f"Ignoring unreadable config for shell lookup: {e}")
            config = None

    if config is not None and config.shell:
        return config.shell

    return DEFAULT_SHELL


# =============================================================================
# Project export configuration
# =============================================================================


def load_project_config(path: Path) -> ProjectExportConfig:
    """
    Load a project's .crumb.yaml.

    Missing remap/env maps are treated as empty.

    Raises:
        ConfigError: If the file is missing, unparsable, or has no version.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"no {path} found")

    config_dict = load_yaml_file(path)
    if not config_dict.get("version"):
        raise ConfigError(f"invalid {path}: missing version")

    try:
        return ProjectExportConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigError(f"failed to parse {path}: {e}") from e


def create_default_project_config() -> ProjectExportConfig:
    """Build the config written by `crumb init`: one empty 'default' environment."""
    return ProjectExportConfig(
        version=PROJECT_CONFIG_VERSION,
        environments={"default": ExportEnvironment()},
    )


def save_project_config(config: ProjectExportConfig, path: Path) -> None:
    """Write a project export configuration."""
    save_yaml_file(Path(path), config.model_dump())
