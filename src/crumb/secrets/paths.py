"""
Secret path rules and prefix matching.

Secret paths are hierarchical strings such as ``/prod/api/key``. Filtering is a
plain string-prefix match: ``/prod`` matches ``/production/x`` as well as
``/prod/x``. Include the trailing slash in a filter to stop at a segment
boundary.
"""

from collections.abc import Iterable, Mapping

from crumb.exceptions import ValidationError

# Characters that would corrupt the "path=value" line format
_FORBIDDEN = {
    " ": "spaces",
    "=": "'=' character",
    "\n": "newlines",
    "\t": "tabs",
}


def validate_key_path(key_path: str) -> None:
    """
    Validate that a key path follows the required format.

    Args:
        key_path: Path to check.

    Raises:
        ValidationError: If the path is empty, relative, or contains a
            space, '=', tab or newline.
    """
    if not key_path:
        raise ValidationError("key path cannot be empty", key_path)

    if not key_path.startswith("/"):
        raise ValidationError("key path must start with '/'", key_path)

    for char, description in _FORBIDDEN.items():
        if char in key_path:
            raise ValidationError(f"key path cannot contain {description}", key_path)


def normalize_filter(path_filter: str) -> str:
    """Trim one trailing slash from a filter, leaving "" and "/" alone."""
    if path_filter and path_filter != "/" and path_filter.endswith("/"):
        return path_filter[:-1]
    return path_filter


def matches_path_filter(key: str, path_filter: str) -> bool:
    """Check if a key matches the given (normalized) filter."""
    if path_filter == "/":
        return True
    return key.startswith(path_filter)


def filtered_sorted_keys(secrets: Mapping[str, str] | Iterable[str], path_filter: str = "") -> list[str]:
    """
    Return the sorted keys that match a path filter.

    Args:
        secrets: A secret set (or any iterable of paths).
        path_filter: Prefix filter; "" returns every key.

    Returns:
        Matching keys in ascending order.
    """
    path_filter = normalize_filter(path_filter)
    keys = list(secrets)
    if path_filter:
        keys = [key for key in keys if matches_path_filter(key, path_filter)]
    return sorted(keys)
