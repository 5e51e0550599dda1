"""
crumb export.

Resolves stored secrets into shell environment variables.
"""

from crumb.export.resolver import (
    ExportResolver,
    convert_path_to_env_var,
    convert_path_to_project_var,
    extract_var_name,
    resolve,
    sanitize_var_name,
    secrets_for_path,
)
from crumb.export.shell import (
    SUPPORTED_SHELLS,
    check_shell,
    format_assignment,
    format_comment,
    format_exports,
    shell_quote_value,
)

__all__ = [
    "SUPPORTED_SHELLS",
    "ExportResolver",
    "check_shell",
    "convert_path_to_env_var",
    "convert_path_to_project_var",
    "extract_var_name",
    "format_assignment",
    "format_comment",
    "format_exports",
    "resolve",
    "sanitize_var_name",
    "secrets_for_path",
    "shell_quote_value",
]
