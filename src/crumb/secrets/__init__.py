"""
crumb secrets management.

Provides the encrypted single-file secret store and secret path helpers.
"""

from crumb.secrets.envfile import parse_env_content, parse_env_file
from crumb.secrets.paths import (
    filtered_sorted_keys,
    matches_path_filter,
    normalize_filter,
    validate_key_path,
)
from crumb.secrets.store import (
    Confirm,
    SecretSet,
    SecretStore,
    parse_secrets,
    serialize_secrets,
)

__all__ = [
    "Confirm",
    "SecretSet",
    "SecretStore",
    "filtered_sorted_keys",
    "matches_path_filter",
    "normalize_filter",
    "parse_env_content",
    "parse_env_file",
    "parse_secrets",
    "serialize_secrets",
    "validate_key_path",
]
