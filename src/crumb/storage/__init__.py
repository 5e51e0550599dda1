"""Storage utilities for crumb."""

from crumb.storage.locking import read_file_with_lock, write_file_with_lock
from crumb.storage.paths import (
    DEFAULT_PROJECT_CONFIG,
    ensure_directory,
    expand_path,
    get_crumb_home,
    get_default_storage_path,
    get_global_config_path,
)

__all__ = [
    "DEFAULT_PROJECT_CONFIG",
    "ensure_directory",
    "expand_path",
    "get_crumb_home",
    "get_default_storage_path",
    "get_global_config_path",
    "read_file_with_lock",
    "write_file_with_lock",
]
