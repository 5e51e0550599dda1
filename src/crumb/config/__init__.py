"""
crumb configuration.

Profiles (key pair + storage location) and per-project export files.
"""

from crumb.config.loader import (
    DEFAULT_PROFILE,
    DEFAULT_SHELL,
    PROJECT_CONFIG_VERSION,
    create_default_project_config,
    get_profile_name,
    get_shell,
    get_storage_path,
    load_config,
    load_profile,
    load_project_config,
    load_yaml_file,
    save_config,
    save_project_config,
    save_yaml_file,
)
from crumb.config.schema import (
    Config,
    ExportEnvironment,
    ProfileConfig,
    ProjectExportConfig,
)

__all__ = [
    "DEFAULT_PROFILE",
    "DEFAULT_SHELL",
    "PROJECT_CONFIG_VERSION",
    "Config",
    "ExportEnvironment",
    "ProfileConfig",
    "ProjectExportConfig",
    "create_default_project_config",
    "get_profile_name",
    "get_shell",
    "get_storage_path",
    "load_config",
    "load_profile",
    "load_project_config",
    "load_yaml_file",
    "save_config",
    "save_project_config",
    "save_yaml_file",
]
