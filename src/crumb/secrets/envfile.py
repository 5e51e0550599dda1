"""Parsing of .env files for `crumb import`."""

from pathlib import Path

from crumb.exceptions import StorageIOError


def parse_env_content(content: str) -> dict[str, str]:
    """
    Parse .env content into a dictionary.

    Blank lines and ``#`` comments are skipped, the key is everything before
    the first '=', and one pair of matching surrounding quotes is stripped
    from the value.
    """
    env_vars: dict[str, str] = {}
    for line in content.split("\n"):
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]

        if key:
            env_vars[key] = value

    return env_vars


def parse_env_file(path: Path) -> dict[str, str]:
    """
    Read and parse a .env file.

    Raises:
        StorageIOError: If the file cannot be read.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise StorageIOError(f"failed to read .env file: {e}") from e
    return parse_env_content(content)
