"""Shell output formats for exported variables."""

import re
import shlex
from collections.abc import Mapping

SUPPORTED_SHELLS = ("bash", "fish")

# Same safe set shlex.quote leaves bare
_SAFE_VALUE = re.compile(r"[\w@%+=:,./-]+", re.ASCII)


def shell_quote_value(value: str, shell: str = "bash") -> str:
    """
    Quote a value so the shell reads it back verbatim.

    Values made only of safe characters are left bare. Everything else is
    single-quoted: POSIX style for bash, and with ``\\`` and ``'`` escaped
    for fish, which allows those two escapes inside single quotes.
    """
    if shell == "fish":
        if _SAFE_VALUE.fullmatch(value):
            return value
        escaped = value.replace("\\", "\\\\").replace("'", "\\'")
        return f"'{escaped}'"
    return shlex.quote(value)


def check_shell(shell: str) -> str:
    """
    Validate a shell name.

    Raises:
        ValueError: For shells other than bash and fish.
    """
    if shell not in SUPPORTED_SHELLS:
        raise ValueError(f"unsupported shell format: {shell} (supported: bash, fish)")
    return shell


def format_assignment(name: str, value: str, shell: str = "bash") -> str:
    """Render one variable assignment for the given shell."""
    check_shell(shell)
    quoted = shell_quote_value(value, shell)
    if shell == "fish":
        return f"set -x {name} {quoted}"
    return f"export {name}={quoted}"


def format_exports(env_vars: Mapping[str, str], shell: str = "bash") -> list[str]:
    """Render assignments in sorted key order."""
    return [format_assignment(name, env_vars[name], shell) for name in sorted(env_vars)]


def format_comment(text: str) -> str:
    return f"# {text}"
